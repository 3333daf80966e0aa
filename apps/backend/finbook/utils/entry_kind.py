"""
Entry kind ↔ (type, status) 컬럼 매핑

The four user-facing entry kinds are persisted as a pair of columns:

    ============  ========  =========
    kind          type      status
    ============  ========  =========
    Received      income    completed
    Sent          expense   completed
    Pending In    income    pending
    Pending Out   expense   pending
    ============  ========  =========

This module is the only place the mapping is written down. Every other
module converts through :func:`to_columns` / :func:`from_columns`.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class EntryKind(str, Enum):
    RECEIVED = "Received"
    SENT = "Sent"
    PENDING_IN = "Pending In"
    PENDING_OUT = "Pending Out"


class EntryTypeColumn(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class EntryStatusColumn(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"


class InvalidEntryState(ValueError):
    """Raised for any (type, status) pair or kind outside the four-way mapping."""


_KIND_TO_COLUMNS: dict[EntryKind, tuple[EntryTypeColumn, EntryStatusColumn]] = {
    EntryKind.RECEIVED: (EntryTypeColumn.INCOME, EntryStatusColumn.COMPLETED),
    EntryKind.SENT: (EntryTypeColumn.EXPENSE, EntryStatusColumn.COMPLETED),
    EntryKind.PENDING_IN: (EntryTypeColumn.INCOME, EntryStatusColumn.PENDING),
    EntryKind.PENDING_OUT: (EntryTypeColumn.EXPENSE, EntryStatusColumn.PENDING),
}

_COLUMNS_TO_KIND: dict[tuple[EntryTypeColumn, EntryStatusColumn], EntryKind] = {
    columns: kind for kind, columns in _KIND_TO_COLUMNS.items()
}

_COMPLETION: dict[EntryKind, EntryKind] = {
    EntryKind.PENDING_IN: EntryKind.RECEIVED,
    EntryKind.PENDING_OUT: EntryKind.SENT,
}


def _coerce(enum_cls: type[Enum], value: Any, label: str):
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        token = value.strip()
        for member in enum_cls:
            if token == member.value or token.lower() == str(member.value).lower():
                return member
    raise InvalidEntryState(f"Unrecognized entry {label}: {value!r}")


def coerce_kind(value: Any) -> EntryKind:
    """Parse a kind from an enum member or its display value ("Pending In")."""
    return _coerce(EntryKind, value, "kind")


def to_columns(kind: EntryKind | str) -> tuple[EntryTypeColumn, EntryStatusColumn]:
    """Map a logical kind to its persisted ``(type, status)`` pair."""
    return _KIND_TO_COLUMNS[coerce_kind(kind)]


def from_columns(type_: Any, status: Any) -> EntryKind:
    """Rebuild the logical kind from a persisted ``(type, status)`` pair.

    Raises:
        InvalidEntryState: for unknown strings (``pending_in``, ``promised``),
            ``None`` or any other value outside the canonical schema.
    """
    pair = (_coerce(EntryTypeColumn, type_, "type"), _coerce(EntryStatusColumn, status, "status"))
    try:
        return _COLUMNS_TO_KIND[pair]
    except KeyError:  # pragma: no cover - the table is total over both enums
        raise InvalidEntryState(f"Unrepresentable entry state: {type_!r}/{status!r}") from None


def is_pending(kind: EntryKind | str) -> bool:
    return to_columns(kind)[1] is EntryStatusColumn.PENDING


def display_status(kind: EntryKind | str) -> str:
    return "Pending" if is_pending(kind) else "Completed"


def completed_kind(kind: EntryKind | str) -> EntryKind:
    """Kind an entry becomes once marked received/paid."""
    parsed = coerce_kind(kind)
    try:
        return _COMPLETION[parsed]
    except KeyError:
        raise InvalidEntryState(f"{parsed.value} entries are already completed") from None
