from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from finbook import models
from finbook.core.config import settings
from finbook.schemas import AutoReminderResult
from finbook.services import email_service
from finbook.services.entry_cache import EntryQueryCache, entry_cache
from finbook.services.entry_service import EntryService
from finbook.utils.entry_kind import EntryKind, EntryStatusColumn, EntryTypeColumn

logger = logging.getLogger(__name__)


class ReminderRejected(Exception):
    """A manual reminder request failed a precondition.

    ``status_code`` is the HTTP status the API answers with.
    """

    def __init__(self, status_code: int, detail: str) -> None:
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail


class ManualReminderService:
    """One user-triggered reminder email for one PendingIn entry.

    Checks run in a fixed order: ownership (404), entry kind (403), plan
    (403), client email (400), then the rolling cooldown (429).
    """

    def __init__(self, db: Session, cache: EntryQueryCache | None = None) -> None:
        self.db = db
        self.entries = EntryService(db, cache if cache is not None else entry_cache)

    @property
    def cooldown(self) -> timedelta:
        return timedelta(hours=settings.MANUAL_REMINDER_COOLDOWN_HOURS)

    def send(self, user: models.User, entry_id: str, *, now: Optional[datetime] = None) -> models.Entry:
        now = now or models.now_local_naive()
        entry = self.entries.get(user.id, entry_id)
        if entry is None:
            raise ReminderRejected(404, "Entry not found")
        if entry.kind is not EntryKind.PENDING_IN:
            raise ReminderRejected(403, "Manual reminders are only allowed for Pending In entries")
        profile = user.profile
        if profile is None or not profile.is_pro:
            raise ReminderRejected(403, "Payment reminders are a Pro feature")
        if not entry.client_email:
            raise ReminderRejected(400, "Client email missing. Add a client email to send reminders.")
        last = entry.last_manual_reminder_sent
        if last is not None and now - last < self.cooldown:
            raise ReminderRejected(429, "Reminder already sent today")

        subject, body = email_service.payment_reminder_email(entry, user, profile)
        try:
            email_service.send_email(entry.client_email, subject, body)
        except email_service.EmailDeliveryError as exc:
            logger.exception("Manual reminder for entry %s failed", entry.id)
            raise ReminderRejected(502, "Failed to send reminder email") from exc

        self.entries.record_manual_reminder(entry, now)
        logger.info("Manual reminder sent for entry %s to %s", entry.id, entry.client_email)
        return entry


def run_auto_reminders(db: Session, *, now: Optional[datetime] = None, cache: EntryQueryCache | None = None) -> AutoReminderResult:
    """Remind clients of overdue receivables on behalf of Pro-tier owners.

    An entry qualifies when it is PendingIn, has a client email, and has not
    been auto-reminded within ``AUTO_REMINDER_INTERVAL_DAYS``. Failures are
    logged and counted, never raised.
    """
    now = now or models.now_local_naive()
    result = AutoReminderResult()
    cache = cache if cache is not None else entry_cache
    try:
        threshold = now - timedelta(days=settings.AUTO_REMINDER_INTERVAL_DAYS)
        rows = (
            db.query(models.Entry)
            .join(models.User, models.User.id == models.Entry.user_id)
            .join(models.UserProfile, models.UserProfile.user_id == models.User.id)
            .filter(
                models.User.is_active.is_(True),
                models.UserProfile.plan.in_([models.Plan.PRO, models.Plan.ENTERPRISE]),
                models.Entry.type == EntryTypeColumn.INCOME.value,
                models.Entry.status == EntryStatusColumn.PENDING.value,
                models.Entry.client_email.isnot(None),
                or_(
                    models.Entry.last_reminder_sent_at.is_(None),
                    models.Entry.last_reminder_sent_at < threshold,
                ),
            )
            .order_by(models.Entry.user_id, models.Entry.date)
            .all()
        )
        for entry in rows:
            entry_id, owner_id = entry.id, entry.user_id
            try:
                subject, body = email_service.payment_reminder_email(entry, entry.user, entry.user.profile)
                email_service.send_email(entry.client_email, subject, body)
            except Exception:
                db.rollback()
                result.failed += 1
                logger.exception("Automated reminder failed for entry %s", entry_id)
                continue
            try:
                entry.last_reminder_sent_at = now
                db.add(
                    models.ReminderLog(
                        user_id=entry.user_id,
                        type=models.ReminderType.AUTO_REMINDER,
                        period_key=f"auto-{entry.id}-{now.date().isoformat()}",
                        entry_id=entry.id,
                        sent_at=now,
                    )
                )
                db.commit()
            except Exception:
                # The client got the email; without the timestamp the next sweep mails them again.
                db.rollback()
                result.failed += 1
                logger.exception("Automated reminder for entry %s was sent but not recorded", entry_id)
                continue
            cache.invalidate(owner_id)
            result.sent += 1
    except Exception:
        db.rollback()
        result.failed += 1
        logger.exception("Automated reminder sweep aborted")
    logger.info("Automated reminders: sent=%s failed=%s", result.sent, result.failed)
    return result
