from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Literal, Optional

from sqlalchemy.orm import Session

from finbook import models
from finbook.core.config import settings
from finbook.schemas import EntryCreate, EntryOut, EntryPatch, EntryUpdate
from finbook.services.entry_cache import EntryQueryCache, entry_cache
from finbook.utils.dates import shift_months
from finbook.utils.entry_kind import EntryKind, completed_kind

logger = logging.getLogger(__name__)

DateRange = Literal["30", "90", "year"]


def history_cutoff(today: date, months: int | None = None) -> date:
    """First date a Free-plan user may still see."""
    return shift_months(today, -(settings.FREE_HISTORY_MONTHS if months is None else months))


def matches_filters(
    entry: EntryOut,
    *,
    today: date,
    search: Optional[str] = None,
    kind: Optional[EntryKind] = None,
    date_range: Optional[DateRange] = None,
) -> bool:
    if search:
        needle = search.strip().lower()
        haystack = (entry.name.lower(), (entry.description or "").lower())
        if needle and not any(needle in field for field in haystack):
            return False
    if kind is not None and entry.type != kind:
        return False
    if date_range == "30":
        return entry.date >= today - timedelta(days=30)
    if date_range == "90":
        return entry.date >= today - timedelta(days=90)
    if date_range == "year":
        return entry.date.year == today.year
    return True


class EntryService:
    """Owner-scoped entry persistence.

    Reads go through the per-user :class:`EntryQueryCache`; every write
    invalidates the owner's cache key after commit.
    """

    def __init__(self, db: Session, cache: EntryQueryCache | None = None) -> None:
        self.db = db
        self.cache = cache if cache is not None else entry_cache

    # ---- Reads -----------------------------------------------------------
    def _load(self, user_id: int) -> list[EntryOut]:
        rows = (
            self.db.query(models.Entry)
            .filter(models.Entry.user_id == user_id)
            .order_by(models.Entry.date.desc(), models.Entry.created_at.desc())
            .all()
        )
        return [EntryOut.from_entry(row) for row in rows]

    def list_all(self, user_id: int) -> tuple[EntryOut, ...]:
        return self.cache.get_or_load(user_id, lambda: self._load(user_id))

    def list_visible(self, user: models.User, *, today: date) -> tuple[list[EntryOut], int]:
        """Entries the owner's plan allows them to see, and how many are hidden."""
        rows = self.list_all(user.id)
        if user.profile is not None and user.profile.is_pro:
            return list(rows), 0
        cutoff = history_cutoff(today)
        visible = [row for row in rows if row.date >= cutoff]
        return visible, len(rows) - len(visible)

    def search(
        self,
        user: models.User,
        *,
        today: date,
        search: Optional[str] = None,
        kind: Optional[EntryKind] = None,
        date_range: Optional[DateRange] = None,
    ) -> tuple[list[EntryOut], int]:
        visible, hidden = self.list_visible(user, today=today)
        filtered = [
            row
            for row in visible
            if matches_filters(row, today=today, search=search, kind=kind, date_range=date_range)
        ]
        return filtered, hidden

    def get(self, user_id: int, entry_id: str) -> models.Entry | None:
        return (
            self.db.query(models.Entry)
            .filter(models.Entry.user_id == user_id, models.Entry.id == entry_id)
            .first()
        )

    # ---- Writes ----------------------------------------------------------
    def _commit(self, user_id: int, row: models.Entry | None = None) -> None:
        self.db.commit()
        if row is not None:
            self.db.refresh(row)
        self.cache.invalidate(user_id)

    @staticmethod
    def _apply(row: models.Entry, payload: EntryCreate | EntryUpdate) -> None:
        row.name = payload.name
        row.description = payload.description
        row.amount = payload.amount
        row.date = payload.date
        row.due_date = payload.due_date
        row.payment_mode = payload.payment_mode
        row.kind = payload.kind
        row.client_email = str(payload.client_email) if payload.client_email else None

    def create(self, user_id: int, payload: EntryCreate) -> models.Entry:
        row = models.Entry(user_id=user_id)
        self._apply(row, payload)
        self.db.add(row)
        self._commit(user_id, row)
        logger.info("Created entry %s (%s) for user %s", row.id, row.kind.value, user_id)
        return row

    def replace(self, row: models.Entry, payload: EntryUpdate) -> models.Entry:
        self._apply(row, payload)
        self._commit(row.user_id, row)
        return row

    def patch(self, row: models.Entry, patch: EntryPatch) -> models.Entry:
        """Merge ``patch`` into the stored values and validate the result.

        Raises:
            pydantic.ValidationError: when the merged entry is invalid, e.g. a
                pending kind without a due date.
        """
        merged = {
            "name": row.name,
            "description": row.description,
            "amount": row.amount,
            "date": row.date,
            "due_date": row.due_date,
            "payment_mode": row.payment_mode,
            "kind": row.kind,
            "client_email": row.client_email,
        }
        merged.update(patch.model_dump(exclude_unset=True))
        payload = EntryUpdate.model_validate(merged)
        return self.replace(row, payload)

    def mark_completed(self, row: models.Entry) -> models.Entry:
        """PendingIn → Received, PendingOut → Sent.

        Raises:
            InvalidEntryState: if the entry is already completed.
        """
        previous = row.kind
        row.kind = completed_kind(previous)
        self._commit(row.user_id, row)
        logger.info("Entry %s marked %s (was %s)", row.id, row.kind.value, previous.value)
        return row

    def delete(self, row: models.Entry) -> None:
        user_id, entry_id = row.user_id, row.id
        self.db.delete(row)
        self._commit(user_id)
        logger.info("Deleted entry %s for user %s", entry_id, user_id)

    def record_manual_reminder(self, row: models.Entry, sent_at: datetime) -> models.Entry:
        row.last_manual_reminder_sent = sent_at
        self._commit(row.user_id, row)
        return row
