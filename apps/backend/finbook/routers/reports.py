"""On-demand report emails for the signed-in owner."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from finbook import models
from finbook.core.database import get_db
from finbook.core.deps import get_current_user
from finbook.schemas import ReportSendResult
from finbook.services import ReportJob, period_for

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["reports"])


@router.post("/monthly", response_model=ReportSendResult)
def send_monthly_report(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    """Email last month's CSV report to the owner now.

    Not logged in ``payment_reminders``, so it neither blocks nor repeats the
    scheduled monthly report.
    """
    if not current_user.profile.is_pro:
        raise HTTPException(status_code=403, detail="Monthly reports are a Pro feature")

    job = ReportJob(db)
    period = period_for("monthly", models.today_local())
    entries = job.entries_for(current_user.id, period)
    if not entries:
        raise HTTPException(status_code=400, detail="No data for last month")

    try:
        job.send(current_user, period, entries)
    except Exception as exc:
        logger.exception("On-demand report %s failed for user %s", period.key, current_user.id)
        raise HTTPException(status_code=500, detail="Failed to send report") from exc

    logger.info("On-demand report %s sent to user %s", period.key, current_user.id)
    return ReportSendResult(period=period.key, entry_count=len(entries))
