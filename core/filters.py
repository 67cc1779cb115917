from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

GRANULARITIES = ("monthly", "weekly")
DEFAULT_GRANULARITY = "monthly"
DEFAULT_CURRENCY = "USD"


@dataclass(frozen=True)
class EarningsFilters:
    granularity: str = DEFAULT_GRANULARITY
    currency: str = DEFAULT_CURRENCY
    show_value_labels: bool = True


def _as_bool(value: object, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() not in {"", "0", "false", "no", "off"}
    return bool(value)


def normalize_filters(raw: Optional[dict]) -> EarningsFilters:
    raw = raw or {}

    granularity = str(raw.get("granularity") or DEFAULT_GRANULARITY).strip().lower()
    if granularity not in GRANULARITIES:
        granularity = DEFAULT_GRANULARITY

    currency = str(raw.get("currency") or DEFAULT_CURRENCY).strip().upper() or DEFAULT_CURRENCY

    show_value_labels = _as_bool(raw.get("show_value_labels"), True)
    return EarningsFilters(
        granularity=granularity,
        currency=currency,
        show_value_labels=show_value_labels,
    )
