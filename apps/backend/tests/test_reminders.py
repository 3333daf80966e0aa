from __future__ import annotations

from datetime import timedelta

import pytest

from conftest import make_entry, make_user
from finbook import models
from finbook.services.reminder_service import run_auto_reminders


@pytest.fixture()
def receivable(db_session, pro_user):
    return make_entry(
        db_session,
        pro_user,
        models.EntryKind.PENDING_IN,
        name="Logo design",
        amount="1250.50",
        due=models.today_local() + timedelta(days=3),
        client_email="client@example.com",
    )


class TestManualReminder:
    """수동 리마인더 상태 코드 순서 검증"""

    def test_sends_and_records_timestamp(self, client, db_session, pro_user, receivable, act_as, sent_emails):
        act_as(pro_user)
        resp = client.post(f"/api/entries/{receivable.id}/remind")
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["sent_at"]

        assert len(sent_emails) == 1
        message = sent_emails[0]
        assert message["to"] == ["client@example.com"]
        assert message["subject"] == "Payment Reminder – Logo design"
        assert "$1250.50" in message["html"]
        assert "pro@example.com" in message["html"]

        db_session.refresh(receivable)
        assert receivable.last_manual_reminder_sent is not None

    def test_second_request_within_a_day_is_rate_limited(self, client, pro_user, receivable, act_as, sent_emails):
        act_as(pro_user)
        assert client.post(f"/api/entries/{receivable.id}/remind").status_code == 200
        resp = client.post(f"/api/entries/{receivable.id}/remind")
        assert resp.status_code == 429
        assert resp.json()["detail"] == "Reminder already sent today"
        assert len(sent_emails) == 1

    def test_cooldown_expires_after_24_hours(self, client, db_session, pro_user, receivable, act_as, sent_emails):
        receivable.last_manual_reminder_sent = models.now_local_naive() - timedelta(hours=25)
        db_session.commit()
        act_as(pro_user)
        assert client.post(f"/api/entries/{receivable.id}/remind").status_code == 200

    @pytest.mark.parametrize("kind", [models.EntryKind.SENT, models.EntryKind.PENDING_OUT, models.EntryKind.RECEIVED])
    def test_only_pending_in_is_allowed(self, client, db_session, act_as, sent_emails, kind):
        # Free plan, no client email and a fresh timestamp: the kind check still wins
        owner = make_user(db_session, "free@example.com")
        row = make_entry(
            db_session,
            owner,
            kind,
            due=models.today_local(),
            last_manual_reminder_sent=models.now_local_naive(),
        )
        act_as(owner)
        resp = client.post(f"/api/entries/{row.id}/remind")
        assert resp.status_code == 403
        assert resp.json()["detail"] == "Manual reminders are only allowed for Pending In entries"
        assert sent_emails == []

    def test_free_plan_is_forbidden(self, client, db_session, demo_user, act_as, sent_emails):
        row = make_entry(
            db_session, demo_user, models.EntryKind.PENDING_IN, due=models.today_local(), client_email="c@example.com"
        )
        act_as(demo_user)
        resp = client.post(f"/api/entries/{row.id}/remind")
        assert resp.status_code == 403
        assert resp.json()["detail"] == "Payment reminders are a Pro feature"

    def test_missing_client_email(self, client, db_session, pro_user, act_as, sent_emails):
        row = make_entry(db_session, pro_user, models.EntryKind.PENDING_IN, due=models.today_local())
        act_as(pro_user)
        resp = client.post(f"/api/entries/{row.id}/remind")
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Client email missing. Add a client email to send reminders."

    def test_unknown_or_foreign_entry(self, client, db_session, receivable, act_as, sent_emails):
        stranger = make_user(db_session, "stranger@example.com", plan=models.Plan.PRO)
        act_as(stranger)
        assert client.post(f"/api/entries/{receivable.id}/remind").status_code == 404
        assert client.post("/api/entries/does-not-exist/remind").status_code == 404

    def test_requires_authentication(self, client, receivable):
        assert client.post(f"/api/entries/{receivable.id}/remind").status_code == 401

    def test_provider_failure_keeps_timestamp(self, client, db_session, pro_user, receivable, act_as, failing_email):
        act_as(pro_user)
        resp = client.post(f"/api/entries/{receivable.id}/remind")
        assert resp.status_code == 502
        db_session.refresh(receivable)
        assert receivable.last_manual_reminder_sent is None


class TestAutoReminders:
    def test_sweeps_due_receivables_once_per_interval(self, db_session, pro_user, receivable, sent_emails):
        now = models.now_local_naive()
        result = run_auto_reminders(db_session, now=now)
        assert (result.sent, result.failed) == (1, 0)
        assert sent_emails[0]["to"] == ["client@example.com"]

        db_session.refresh(receivable)
        assert receivable.last_reminder_sent_at == now

        # Within the interval nothing is sent again
        result = run_auto_reminders(db_session, now=now + timedelta(days=3))
        assert result.sent == 0
        result = run_auto_reminders(db_session, now=now + timedelta(days=8))
        assert result.sent == 1
        assert len(sent_emails) == 2

    def test_skips_free_plans_and_entries_without_email(self, db_session, demo_user, pro_user, sent_emails):
        make_entry(db_session, demo_user, models.EntryKind.PENDING_IN, due=models.today_local(), client_email="a@example.com")
        make_entry(db_session, pro_user, models.EntryKind.PENDING_IN, due=models.today_local())
        make_entry(db_session, pro_user, models.EntryKind.RECEIVED, client_email="b@example.com")
        result = run_auto_reminders(db_session)
        assert result.sent == 0
        assert sent_emails == []

    def test_failures_are_counted_not_raised(self, db_session, receivable, failing_email):
        result = run_auto_reminders(db_session)
        assert result.ok is True
        assert (result.sent, result.failed) == (0, 1)
        db_session.refresh(receivable)
        assert receivable.last_reminder_sent_at is None

    def test_commit_failure_after_send_is_logged_as_unrecorded(
        self, db_session, receivable, sent_emails, monkeypatch, caplog
    ):
        def _commit_fails():
            raise RuntimeError("database is locked")

        monkeypatch.setattr(db_session, "commit", _commit_fails)
        with caplog.at_level("ERROR", logger="finbook.services.reminder_service"):
            result = run_auto_reminders(db_session)
        monkeypatch.undo()

        assert (result.sent, result.failed) == (0, 1)
        assert len(sent_emails) == 1
        messages = [record.getMessage() for record in caplog.records]
        assert f"Automated reminder for entry {receivable.id} was sent but not recorded" in messages
        assert not any(message.startswith("Automated reminder failed") for message in messages)
        db_session.refresh(receivable)
        assert receivable.last_reminder_sent_at is None
