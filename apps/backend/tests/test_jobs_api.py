from __future__ import annotations

import asyncio
from datetime import timedelta

import pytest

from conftest import make_entry
from finbook import models, worker
from finbook.core.config import settings


@pytest.fixture()
def cron_secret(monkeypatch) -> str:
    monkeypatch.setattr(settings, "CRON_SECRET", "s3cret")
    return "s3cret"


def test_job_endpoints_require_the_cron_secret(client, cron_secret):
    assert client.post("/api/jobs/reports").status_code == 401
    assert client.post("/api/jobs/reports", headers={"Authorization": "Bearer nope"}).status_code == 401
    assert client.post("/api/jobs/reminders").status_code == 401


def test_job_endpoints_closed_without_configured_secret(client, monkeypatch):
    monkeypatch.setattr(settings, "CRON_SECRET", None)
    assert client.post("/api/jobs/reports", headers={"Authorization": "Bearer "}).status_code == 401


def test_reports_trigger_with_forced_period(client, pro_user, cron_secret, sent_emails):
    headers = {"Authorization": f"Bearer {cron_secret}"}
    resp = client.post("/api/jobs/reports", params={"period": "weekly"}, headers=headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["ok"] is True
    assert body["sent"] == 1
    assert body["periods"][0].startswith("weekly-")

    resp = client.post("/api/jobs/reports", params={"period": "weekly"}, headers=headers)
    assert resp.json()["skipped"] == 1
    assert len(sent_emails) == 1


def test_reports_trigger_reports_failures_with_200(client, pro_user, cron_secret, failing_email):
    resp = client.post(
        "/api/jobs/reports", params={"period": "monthly"}, headers={"Authorization": f"Bearer {cron_secret}"}
    )
    assert resp.status_code == 200
    assert resp.json()["failed"] == 1


def test_reminders_trigger(client, db_session, pro_user, cron_secret, sent_emails):
    make_entry(
        db_session,
        pro_user,
        models.EntryKind.PENDING_IN,
        due=models.today_local() + timedelta(days=1),
        client_email="client@example.com",
    )
    resp = client.post("/api/jobs/reminders", headers={"Authorization": f"Bearer {cron_secret}"})
    assert resp.status_code == 200
    assert resp.json() == {"ok": True, "sent": 1, "failed": 0}


def test_worker_tasks_use_their_own_session(db_session, engine, pro_user, monkeypatch, sent_emails):
    from sqlalchemy.orm import sessionmaker

    monkeypatch.setattr(worker, "SessionLocal", sessionmaker(bind=engine, autocommit=False, autoflush=False))
    make_entry(
        db_session,
        pro_user,
        models.EntryKind.PENDING_IN,
        due=models.today_local(),
        client_email="client@example.com",
    )
    result = asyncio.run(worker.auto_reminders_task({}))
    assert result == {"ok": True, "sent": 1, "failed": 0}

    result = asyncio.run(worker.send_reports_task({}))
    assert result["ok"] is True


def test_worker_settings():
    assert {f.__name__ for f in worker.WorkerSettings.functions} == {"send_reports_task", "auto_reminders_task"}
    assert len(worker.WorkerSettings.cron_jobs) == 2
    assert worker.WorkerSettings.max_tries == 1


def test_redis_settings_from_url(monkeypatch):
    monkeypatch.setattr(settings, "REDIS_URL", "rediss://default:pw@cache.example.com:6380/2")
    redis = worker.get_redis_settings()
    assert (redis.host, redis.port, redis.password, redis.database, redis.ssl) == (
        "cache.example.com",
        6380,
        "pw",
        2,
        True,
    )


def test_worker_tasks_run_off_the_event_loop(monkeypatch):
    import threading

    seen = []

    def _record() -> dict:
        seen.append(threading.get_ident())
        return {"ok": True, "sent": 0, "failed": 0}

    monkeypatch.setattr(worker, "_run_auto_reminders", _record)
    monkeypatch.setattr(worker, "_run_reports", _record)
    asyncio.run(worker.auto_reminders_task({}))
    asyncio.run(worker.send_reports_task({}))
    assert len(seen) == 2
    assert threading.get_ident() not in seen
