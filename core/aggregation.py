from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Tuple

from core.models import Aggregation, Bucket, EarningRecord

MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)

Period = Tuple[str, str, date]


def month_key(d: date) -> str:
    return f"{d.year:04d}-{d.month:02d}"


def month_label(d: date) -> str:
    return f"{MONTH_NAMES[d.month - 1]} {d.year}"


def iso_week(d: date) -> int:
    return d.isocalendar()[1]


def week_key(d: date) -> str:
    """Calendar year and month of ``d`` plus its (unpadded) ISO week number."""
    return f"{month_key(d)}-WEEK-{iso_week(d)}"


def _month_period(d: date) -> Period:
    return month_key(d), month_label(d), date(d.year, d.month, 1)


def _week_period(d: date) -> Period:
    # An ISO week that straddles a month boundary yields one bucket per month.
    monday = d - timedelta(days=d.weekday())
    start = max(monday, date(d.year, d.month, 1))
    key = week_key(d)
    return key, key, start


PERIODS: Dict[str, Callable[[date], Period]] = {
    "monthly": _month_period,
    "weekly": _week_period,
}


def aggregate(records: Iterable[EarningRecord], granularity: str = "monthly") -> Aggregation:
    """Group records into calendar buckets and sum their amounts.

    Buckets are ordered chronologically by period start, which for monthly
    buckets is the numeric ``(year, month)`` order, never the order of the
    display labels. The grand total is reduced from the emitted buckets.
    """
    try:
        period_of = PERIODS[granularity]
    except KeyError:
        raise ValueError(f"Unknown granularity {granularity!r}; expected one of {sorted(PERIODS)}") from None

    ordered: List[EarningRecord] = sorted(records, key=lambda r: r.date)

    totals: Dict[str, Decimal] = {}
    counts: Dict[str, int] = {}
    periods: Dict[str, Period] = {}
    for rec in ordered:
        period = period_of(rec.date)
        key = period[0]
        if key not in totals:
            totals[key] = Decimal(0)
            counts[key] = 0
            periods[key] = period
        totals[key] += rec.amount
        counts[key] += 1

    buckets = tuple(
        sorted(
            (
                Bucket(key=key, label=label, total=totals[key], start=start, count=counts[key])
                for key, label, start in periods.values()
            ),
            key=lambda b: (b.start, b.key),
        )
    )
    total = sum((b.total for b in buckets), Decimal(0))
    return Aggregation(granularity=granularity, buckets=buckets, total=total)
