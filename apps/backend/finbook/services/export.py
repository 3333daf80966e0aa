"""CSV rendering for entry exports and emailed reports."""

from __future__ import annotations

import csv
import io
from datetime import date
from typing import Iterable

from finbook.models import Currency
from finbook.schemas import EntryOut

CSV_HEADERS = [
    "Date",
    "Name",
    "Description",
    "Type",
    "Amount",
    "Currency",
    "Payment Mode",
    "Status",
    "Due Date",
    "Client Email",
]

# Free-text columns are always quoted; everything else only when needed.
_QUOTED_COLUMNS = {1, 2}


def _quote(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'


def _cell(index: int, value: str) -> str:
    if index in _QUOTED_COLUMNS:
        return _quote(value)
    if not value:
        return ""
    buffer = io.StringIO()
    csv.writer(buffer, lineterminator="").writerow([value])
    return buffer.getvalue()


def entry_row(entry: EntryOut, currency: Currency | str) -> list[str]:
    return [
        entry.date.isoformat(),
        entry.name,
        entry.description or "",
        entry.type.value,
        f"{entry.amount:.2f}",
        Currency(currency).value,
        entry.payment_mode.value,
        entry.status,
        entry.due_date.isoformat() if entry.due_date else "",
        entry.client_email or "",
    ]


def entries_to_csv(entries: Iterable[EntryOut], currency: Currency | str) -> str:
    lines = [",".join(CSV_HEADERS)]
    for entry in entries:
        lines.append(",".join(_cell(i, value) for i, value in enumerate(entry_row(entry, currency))))
    return "\n".join(lines) + "\n"


def export_filename(today: date) -> str:
    return f"finbook_export_{today.isoformat()}.csv"
