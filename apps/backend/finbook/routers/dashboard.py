from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from finbook import models
from finbook.core.database import get_db
from finbook.core.deps import get_current_user
from finbook.schemas import DashboardOut
from finbook.services import EntryService
from finbook.services.dashboard import build_dashboard
from finbook.utils.entry_kind import InvalidEntryState

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("", response_model=DashboardOut)
def get_dashboard(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    svc = EntryService(db)
    today = models.today_local()
    try:
        entries = svc.list_all(current_user.id)
        visible, hidden = svc.list_visible(current_user, today=today)
    except InvalidEntryState as exc:
        logger.error("User %s has an entry with an invalid stored state: %s", current_user.id, exc)
        raise HTTPException(status_code=500, detail="Entry has an invalid type/status combination") from exc
    return build_dashboard(
        entries,
        visible,
        today=today,
        currency=current_user.profile.currency,
        hidden_count=hidden,
    )
