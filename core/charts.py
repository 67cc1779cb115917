from __future__ import annotations

from typing import Any, Dict, Optional

import altair as alt
import pandas as pd

from core.models import Aggregation

alt.data_transformers.disable_max_rows()

CURRENCY_AXIS_FORMAT = {"USD": "$,.2f"}


def to_vega_spec(chart: alt.Chart | alt.LayerChart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def aggregation_frame(aggregation: Aggregation) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {"key": b.key, "label": b.label, "value": float(b.total), "count": b.count}
            for b in aggregation.buckets
        ],
        columns=["key", "label", "value", "count"],
    )


def earnings_bar_chart(
    aggregation: Aggregation,
    *,
    currency: str = "USD",
    show_value_labels: bool = True,
) -> Optional[alt.Chart | alt.LayerChart]:
    df = aggregation_frame(aggregation)
    if df.empty:
        return None

    value_format = CURRENCY_AXIS_FORMAT.get(currency, ",.2f")
    period_title = "Week" if aggregation.granularity == "weekly" else "Month"
    # Keep bucket order; Altair would otherwise sort labels alphabetically.
    x = alt.X(
        "label:N",
        title=period_title,
        sort=df["label"].tolist(),
        axis=alt.Axis(labelAngle=-45, labelFontSize=12),
    )
    bar = (
        alt.Chart(df)
        .mark_bar()
        .encode(
            x=x,
            y=alt.Y("value:Q", title="Earning", axis=alt.Axis(format=value_format)),
            tooltip=[
                alt.Tooltip("label:N", title=period_title),
                alt.Tooltip("value:Q", title="Earning", format=value_format),
                alt.Tooltip("count:Q", title="Rows"),
            ],
        )
    )
    if not show_value_labels:
        return bar
    text = bar.mark_text(baseline="bottom", dy=-4, fontWeight=500, fontSize=14).encode(
        text=alt.Text("value:Q", format=value_format)
    )
    return alt.layer(bar, text)
