"""Entry handlers: CRUD, completion, CSV export and manual reminders."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, HTTPException, Query, Response
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlalchemy.orm import Session

from finbook import models
from finbook.core.database import get_db
from finbook.core.deps import get_current_user
from finbook.schemas import EntryCreate, EntryOut, EntryPatch, EntryUpdate, ReminderResult
from finbook.services import EntryService, ManualReminderService, ReminderRejected
from finbook.services.entry_service import DateRange
from finbook.services.export import entries_to_csv, export_filename
from finbook.utils.entry_kind import EntryKind, InvalidEntryState, is_pending

logger = logging.getLogger(__name__)

INVALID_STATE_DETAIL = "Entry has an invalid type/status combination"


def _to_out(row: models.Entry) -> EntryOut:
    try:
        return EntryOut.from_entry(row)
    except InvalidEntryState as exc:
        logger.error("Entry %s has an invalid stored state: %s", row.id, exc)
        raise HTTPException(status_code=500, detail=INVALID_STATE_DETAIL) from exc


def _get_owned(svc: EntryService, user: models.User, entry_id: str) -> models.Entry:
    row = svc.get(user.id, entry_id)
    if row is None:
        raise HTTPException(status_code=404, detail="Entry not found")
    return row


def _search(
    svc: EntryService,
    user: models.User,
    search: Optional[str],
    kind: Optional[EntryKind],
    date_range: Optional[DateRange],
) -> tuple[list[EntryOut], int]:
    try:
        return svc.search(user, today=models.today_local(), search=search, kind=kind, date_range=date_range)
    except InvalidEntryState as exc:
        logger.error("User %s has an entry with an invalid stored state: %s", user.id, exc)
        raise HTTPException(status_code=500, detail=INVALID_STATE_DETAIL) from exc


def list_entries(
    response: Response,
    search: Optional[str] = Query(None, description="Case-insensitive match on name or description"),
    kind: Optional[EntryKind] = Query(None, alias="type"),
    date_range: Optional[DateRange] = Query(None, alias="range"),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> list[EntryOut]:
    rows, hidden = _search(EntryService(db), current_user, search, kind, date_range)
    response.headers["X-Hidden-Count"] = str(hidden)
    return rows


def export_entries(
    search: Optional[str] = Query(None),
    kind: Optional[EntryKind] = Query(None, alias="type"),
    date_range: Optional[DateRange] = Query(None, alias="range"),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> Response:
    rows, _ = _search(EntryService(db), current_user, search, kind, date_range)
    currency = current_user.profile.currency if current_user.profile else models.Currency.USD
    filename = export_filename(models.today_local())
    return Response(
        content=entries_to_csv(rows, currency),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


def create_entry(
    payload: EntryCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> EntryOut:
    row = EntryService(db).create(current_user.id, payload)
    return _to_out(row)


def get_entry(
    entry_id: str,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> EntryOut:
    return _to_out(_get_owned(EntryService(db), current_user, entry_id))


def replace_entry(
    entry_id: str,
    payload: EntryUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> EntryOut:
    svc = EntryService(db)
    row = _get_owned(svc, current_user, entry_id)
    return _to_out(svc.replace(row, payload))


def patch_entry(
    entry_id: str,
    payload: EntryPatch,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> EntryOut:
    svc = EntryService(db)
    row = _get_owned(svc, current_user, entry_id)
    try:
        updated = svc.patch(row, payload)
    except ValidationError as exc:
        raise RequestValidationError(exc.errors(include_url=False, include_context=False)) from exc
    except InvalidEntryState as exc:
        logger.error("Entry %s has an invalid stored state: %s", row.id, exc)
        raise HTTPException(status_code=500, detail=INVALID_STATE_DETAIL) from exc
    return _to_out(updated)


def delete_entry(
    entry_id: str,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> Response:
    svc = EntryService(db)
    row = _get_owned(svc, current_user, entry_id)
    svc.delete(row)
    return Response(status_code=204)


def complete_entry(
    entry_id: str,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> EntryOut:
    svc = EntryService(db)
    row = _get_owned(svc, current_user, entry_id)
    current = _to_out(row).type
    if not is_pending(current):
        raise HTTPException(status_code=409, detail="Entry is already completed")
    return _to_out(svc.mark_completed(row))


def send_reminder(
    entry_id: str,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> ReminderResult:
    try:
        row = ManualReminderService(db).send(current_user, entry_id)
    except ReminderRejected as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    except InvalidEntryState as exc:
        logger.error("Entry %s has an invalid stored state: %s", entry_id, exc)
        raise HTTPException(status_code=500, detail=INVALID_STATE_DETAIL) from exc
    return ReminderResult(sent_at=row.last_manual_reminder_sent)
