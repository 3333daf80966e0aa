"""
Services package

Business logic used by the API handlers and the background worker.
"""

from .entry_cache import EntryQueryCache, entry_cache
from .entry_service import EntryService
from .reminder_service import ManualReminderService, ReminderRejected, run_auto_reminders
from .report_job import ReportJob, ReportPeriod, due_reports, period_for

__all__ = [
    "EntryQueryCache",
    "EntryService",
    "ManualReminderService",
    "ReminderRejected",
    "ReportJob",
    "ReportPeriod",
    "due_reports",
    "entry_cache",
    "period_for",
    "run_auto_reminders",
]
