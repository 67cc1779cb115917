"""Typed records flowing from the CSV parser through the bucket aggregator."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Dict, List, Tuple


@dataclass(frozen=True)
class EarningRecord:
    """One parsed earnings row. ``line`` is the 1-based data row it came from."""

    date: date
    amount: Decimal
    line: int = 0


@dataclass(frozen=True)
class RejectedRow:
    line: int
    reason: str
    raw_date: str = ""
    raw_amount: str = ""


@dataclass(frozen=True)
class ParseResult:
    records: Tuple[EarningRecord, ...] = field(default_factory=tuple)
    rejected: Tuple[RejectedRow, ...] = field(default_factory=tuple)

    @property
    def row_count(self) -> int:
        return len(self.records) + len(self.rejected)


@dataclass(frozen=True)
class Bucket:
    """Sum of earnings for one calendar period.

    ``key`` is the stable period id (``2024-03`` or ``2024-03-WEEK-11``),
    ``label`` is what the chart shows and ``start`` is the first calendar day
    the bucket can cover, used for ordering.
    """

    key: str
    label: str
    total: Decimal
    start: date
    count: int = 0


@dataclass(frozen=True)
class Aggregation:
    granularity: str
    buckets: Tuple[Bucket, ...] = field(default_factory=tuple)
    total: Decimal = Decimal(0)

    def is_empty(self) -> bool:
        return not self.buckets

    def to_chart_rows(self) -> List[Dict[str, object]]:
        return [{"label": b.label, "value": float(b.total)} for b in self.buckets]
