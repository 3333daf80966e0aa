from __future__ import annotations

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Iterable, Sequence

from finbook.models import Currency
from finbook.schemas import ChartPoint, DashboardOut, DashboardTotals, DashboardTrends, EntryOut
from finbook.utils.dates import month_start
from finbook.utils.entry_kind import EntryKind

CHART_MONTHS = 7
RECENT_LIMIT = 5

_ZERO = Decimal("0")


def calc_trend(current: Decimal, previous: Decimal) -> str:
    """Month-over-month change as an unsigned percentage string."""
    if previous == 0:
        return "0%" if current == 0 else "100%"
    change = abs((current - previous) / previous * 100)
    return f"{change:.1f}%"


def _sums_by_month(entries: Iterable[EntryOut]) -> dict[tuple[int, int], dict[EntryKind, Decimal]]:
    buckets: dict[tuple[int, int], dict[EntryKind, Decimal]] = defaultdict(lambda: defaultdict(lambda: _ZERO))
    for entry in entries:
        buckets[(entry.date.year, entry.date.month)][entry.type] += entry.amount
    return buckets


def _totals(entries: Iterable[EntryOut]) -> DashboardTotals:
    sums: dict[EntryKind, Decimal] = defaultdict(lambda: _ZERO)
    for entry in entries:
        sums[entry.type] += entry.amount
    received = sums[EntryKind.RECEIVED]
    sent = sums[EntryKind.SENT]
    return DashboardTotals(
        received=received,
        sent=sent,
        pending_in=sums[EntryKind.PENDING_IN],
        pending_out=sums[EntryKind.PENDING_OUT],
        balance=received - sent,
    )


def build_dashboard(
    entries: Sequence[EntryOut],
    visible: Sequence[EntryOut],
    *,
    today: date,
    currency: Currency,
    hidden_count: int = 0,
) -> DashboardOut:
    """Aggregate an owner's entries for the dashboard.

    ``entries`` is the full, newest-first list used for totals, trends and the
    chart; ``visible`` is what the owner's plan shows and feeds the recent list.
    """
    by_month = _sums_by_month(entries)

    def month(offset: int) -> dict[EntryKind, Decimal]:
        start = month_start(today, -offset)
        return by_month.get((start.year, start.month), {})

    this_month, last_month = month(0), month(1)
    income_this = this_month.get(EntryKind.RECEIVED, _ZERO)
    income_last = last_month.get(EntryKind.RECEIVED, _ZERO)
    expense_this = this_month.get(EntryKind.SENT, _ZERO)
    expense_last = last_month.get(EntryKind.SENT, _ZERO)
    pending_this = this_month.get(EntryKind.PENDING_IN, _ZERO)
    pending_last = last_month.get(EntryKind.PENDING_IN, _ZERO)
    net_this = income_this - expense_this
    net_last = income_last - expense_last

    trends = DashboardTrends(
        income=calc_trend(income_this, income_last),
        income_up=income_this >= income_last,
        expenses=calc_trend(expense_this, expense_last),
        # fewer expenses is the favourable direction
        expenses_up=expense_this <= expense_last,
        pending_in=calc_trend(pending_this, pending_last),
        pending_in_up=pending_this >= pending_last,
        net=calc_trend(net_this, net_last),
        net_up=net_this >= net_last,
    )

    chart = []
    for offset in range(CHART_MONTHS - 1, -1, -1):
        start = month_start(today, -offset)
        sums = month(offset)
        chart.append(
            ChartPoint(
                month=start.strftime("%b"),
                income=sums.get(EntryKind.RECEIVED, _ZERO),
                expense=sums.get(EntryKind.SENT, _ZERO),
            )
        )

    return DashboardOut(
        currency=currency,
        totals=_totals(entries),
        trends=trends,
        chart=chart,
        recent=list(visible[:RECENT_LIMIT]),
        hidden_count=hidden_count,
    )
