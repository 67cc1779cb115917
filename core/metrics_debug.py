from __future__ import annotations

from collections import Counter
from dataclasses import asdict
from typing import Any, Dict

from core.filters import EarningsFilters


def compute_debug(filters: EarningsFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    records = ctx.get("records", ()) or ()
    rejected = ctx.get("rejected", ()) or ()
    zero_amount_rows = sum(1 for r in records if r.amount == 0)

    return {
        "filters": asdict(filters),
        "source_hash": ctx.get("source_hash"),
        "row_counts": {
            "rows_read": int(ctx.get("row_count", len(records) + len(rejected)) or 0),
            "rows_kept": len(records),
            "rows_rejected": len(rejected),
            "rows_zero_amount": zero_amount_rows,
        },
        "rejected_by_reason": dict(Counter(r.reason for r in rejected)),
        "rejected_rows": [asdict(r) for r in rejected],
        "date_range": {
            "min": min(r.date for r in records).isoformat() if records else None,
            "max": max(r.date for r in records).isoformat() if records else None,
        },
    }
