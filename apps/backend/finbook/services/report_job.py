"""
Weekly and monthly CSV report emails for Pro-tier owners.

The job is meant to be triggered once a day (cron endpoint or ARQ cron). It
decides by itself which periods are due, and a ``payment_reminders`` row per
(owner, period) keeps a second run from sending the same report again.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Literal, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from finbook import models
from finbook.core.config import settings
from finbook.schemas import EntryOut, ReportJobResult
from finbook.services import email_service
from finbook.services.export import entries_to_csv
from finbook.utils.dates import monday_of, month_start

logger = logging.getLogger(__name__)

ReportKind = Literal["weekly", "monthly"]

_LOG_TYPES = {
    "weekly": models.ReminderType.WEEKLY_REPORT,
    "monthly": models.ReminderType.MONTHLY_REPORT,
}
_LABELS = {"weekly": "Weekly", "monthly": "Monthly"}


@dataclass(frozen=True)
class ReportPeriod:
    kind: ReportKind
    start: date
    end: date  # exclusive
    key: str

    @property
    def log_type(self) -> models.ReminderType:
        return _LOG_TYPES[self.kind]

    @property
    def label(self) -> str:
        return _LABELS[self.kind]

    @property
    def last_day(self) -> date:
        return self.end - timedelta(days=1)


def period_for(kind: ReportKind, today: date) -> ReportPeriod:
    if kind == "weekly":
        # The week that ended on the most recent Monday, whatever day this runs
        end = monday_of(today)
        start = end - timedelta(days=7)
        return ReportPeriod("weekly", start, end, f"weekly-{start.isoformat()}")
    if kind == "monthly":
        start = month_start(today, -1)
        end = month_start(today)
        return ReportPeriod("monthly", start, end, f"monthly-{start.strftime('%Y-%m')}")
    raise ValueError(f"Unknown report period: {kind!r}")


def due_reports(today: date) -> list[ReportPeriod]:
    periods: list[ReportPeriod] = []
    if today.weekday() == 0:
        periods.append(period_for("weekly", today))
    if today.day == 1:
        periods.append(period_for("monthly", today))
    return periods


class ReportJob:
    def __init__(self, db: Session) -> None:
        self.db = db

    def _owners(self) -> list[models.User]:
        return (
            self.db.query(models.User)
            .join(models.UserProfile, models.UserProfile.user_id == models.User.id)
            .filter(
                models.User.is_active.is_(True),
                models.UserProfile.plan.in_([models.Plan.PRO, models.Plan.ENTERPRISE]),
            )
            .order_by(models.User.id)
            .all()
        )

    def already_sent(self, user_id: int, period: ReportPeriod) -> bool:
        return (
            self.db.query(models.ReminderLog.id)
            .filter(
                models.ReminderLog.user_id == user_id,
                models.ReminderLog.type == period.log_type,
                models.ReminderLog.period_key == period.key,
            )
            .first()
            is not None
        )

    def entries_for(self, user_id: int, period: ReportPeriod) -> list[EntryOut]:
        rows = (
            self.db.query(models.Entry)
            .filter(
                models.Entry.user_id == user_id,
                models.Entry.created_at >= datetime.combine(period.start, datetime.min.time()),
                models.Entry.created_at < datetime.combine(period.end, datetime.min.time()),
            )
            .order_by(models.Entry.date, models.Entry.created_at)
            .all()
        )
        return [EntryOut.from_entry(row) for row in rows]

    def send(self, owner: models.User, period: ReportPeriod, entries: Optional[list[EntryOut]] = None) -> None:
        """Email ``owner`` the CSV report for ``period``; raises on delivery failure."""
        if entries is None:
            entries = self.entries_for(owner.id, period)
        currency = owner.profile.currency if owner.profile else models.Currency.USD
        csv_text = entries_to_csv(entries, currency)
        subject, body = email_service.report_email(
            period.label, period.start.isoformat(), period.last_day.isoformat(), len(entries)
        )
        email_service.send_email(
            owner.email,
            subject,
            body,
            attachments=[
                {"filename": f"{period.kind}-report-{period.key}.csv", "content": list(csv_text.encode("utf-8"))}
            ],
            from_address=settings.REPORT_FROM_ADDRESS,
        )

    def _record(self, owner: models.User, period: ReportPeriod, sent_at: datetime) -> None:
        self.db.add(
            models.ReminderLog(
                user_id=owner.id,
                type=period.log_type,
                period_key=period.key,
                sent_at=sent_at,
            )
        )
        try:
            self.db.commit()
        except IntegrityError:
            # Another run logged the same period first.
            self.db.rollback()
            logger.warning("Report %s for user %s was already logged", period.key, owner.id)

    def run_period(self, period: ReportPeriod, result: ReportJobResult) -> None:
        for owner in self._owners():
            try:
                if self.already_sent(owner.id, period):
                    result.skipped += 1
                    logger.info("Skipping %s for user %s, already sent", period.key, owner.id)
                    continue
                self.send(owner, period)
                self._record(owner, period, models.now_local_naive())
                result.sent += 1
                logger.info("Sent %s report %s to user %s", period.kind, period.key, owner.id)
            except Exception:
                self.db.rollback()
                result.failed += 1
                logger.exception("Report %s failed for user %s", period.key, owner.id)

    def run(self, today: Optional[date] = None, force: Optional[ReportKind] = None) -> ReportJobResult:
        """Send every report due ``today``; never raises.

        ``force`` runs one period kind regardless of the weekday/day-of-month.
        """
        today = today or models.today_local()
        result = ReportJobResult()
        try:
            periods = [period_for(force, today)] if force else due_reports(today)
            result.periods = [period.key for period in periods]
            if not periods:
                logger.info("No reports due on %s", today.isoformat())
            for period in periods:
                self.run_period(period, result)
        except Exception:
            self.db.rollback()
            result.failed += 1
            logger.exception("Report job aborted")
        return result
