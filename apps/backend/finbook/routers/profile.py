from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from finbook import models
from finbook.core.database import get_db
from finbook.core.deps import get_current_user
from finbook.schemas import ProfileOut, ProfileUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/profile", tags=["profile"])


@router.get("", response_model=ProfileOut)
def get_profile(current_user: models.User = Depends(get_current_user)):
    return ProfileOut.from_profile(current_user.profile)


@router.patch("", response_model=ProfileOut)
def update_profile(
    payload: ProfileUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    profile = current_user.profile
    data = payload.model_dump(exclude_unset=True)
    for list_field in ("receiving_accounts", "payment_methods"):
        if list_field in data and data[list_field] is None:
            data[list_field] = []
    for field, value in data.items():
        setattr(profile, field, value)
    db.commit()
    db.refresh(profile)
    return ProfileOut.from_profile(profile)


@router.post("/upgrade", response_model=ProfileOut)
def upgrade_plan(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    profile = current_user.profile
    if not profile.is_pro:
        profile.plan = models.Plan.PRO
        profile.plan_started_at = models.now_local_naive()
        db.commit()
        db.refresh(profile)
        logger.info("User %s upgraded to Pro", current_user.id)
    return ProfileOut.from_profile(profile)
