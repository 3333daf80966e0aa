"""
Utils 패키지
"""

from .entry_kind import (
    EntryKind,
    EntryStatusColumn,
    EntryTypeColumn,
    InvalidEntryState,
    completed_kind,
    display_status,
    from_columns,
    is_pending,
    to_columns,
)

__all__ = [
    "EntryKind",
    "EntryStatusColumn",
    "EntryTypeColumn",
    "InvalidEntryState",
    "completed_kind",
    "display_status",
    "from_columns",
    "is_pending",
    "to_columns",
]
