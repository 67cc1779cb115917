from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

from core.charts import earnings_bar_chart, to_vega_spec
from core.data import format_currency
from core.filters import EarningsFilters
from core.models import Aggregation


def compute_earnings(filters: EarningsFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    aggregation: Aggregation = ctx.get("aggregation") or Aggregation(granularity=filters.granularity)

    chart = earnings_bar_chart(
        aggregation,
        currency=filters.currency,
        show_value_labels=filters.show_value_labels,
    )
    return {
        "filters": asdict(filters),
        "granularity": aggregation.granularity,
        "buckets": [
            {
                "key": b.key,
                "label": b.label,
                "total": b.total,
                "count": b.count,
                "start": b.start.isoformat(),
            }
            for b in aggregation.buckets
        ],
        "chart_rows": aggregation.to_chart_rows(),
        "total": aggregation.total,
        "total_display": format_currency(aggregation.total),
        "chart": to_vega_spec(chart) if chart is not None else None,
    }
