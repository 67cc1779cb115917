from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel


class EarningsFiltersModel(BaseModel):
    granularity: Literal["monthly", "weekly"] = "monthly"
    currency: str = "USD"
    show_value_labels: bool = True


class ChartRowModel(BaseModel):
    label: str
    value: float


class BucketModel(BaseModel):
    key: str
    label: str
    total: float
    count: int
    start: str


class EarningsResponse(BaseModel):
    granularity: str
    buckets: List[BucketModel]
    chart_rows: List[ChartRowModel]
    total: float
    total_display: str
    chart: Optional[dict] = None


class ErrorResponse(BaseModel):
    error: str
    type: str
