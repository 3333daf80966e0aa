"""Cron triggers for the periodic jobs, authorized by the shared cron secret."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from finbook.core.database import get_db
from finbook.core.deps import require_cron_secret
from finbook.schemas import AutoReminderResult, ReportJobResult
from finbook.services import ReportJob, run_auto_reminders
from finbook.services.report_job import ReportKind

router = APIRouter(prefix="/jobs", tags=["jobs"], dependencies=[Depends(require_cron_secret)])


@router.post("/reports", response_model=ReportJobResult)
def trigger_reports(
    period: Optional[ReportKind] = Query(None, description="Run this period regardless of the date"),
    db: Session = Depends(get_db),
):
    return ReportJob(db).run(force=period)


@router.post("/reminders", response_model=AutoReminderResult)
def trigger_reminders(db: Session = Depends(get_db)):
    return run_auto_reminders(db)
