from dataclasses import asdict
from typing import Optional

import altair as alt
import pandas as pd
import streamlit as st

from core.charts import earnings_bar_chart
from core.data import RecordParseError, format_currency, load_earnings_data, prepare_context
from core.filters import EarningsFilters, normalize_filters

alt.data_transformers.disable_max_rows()


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .total-banner {text-align: center;font-size: 24px;font-weight: 700;margin: 8px 0 16px;
                       text-shadow: 1px 1px 5px rgba(0,0,0,0.1);}
        .hint {text-align: center;color: #6b7280;font-size: 1.05rem;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


def render_total(total: object):
    st.markdown(
        f"<div class='total-banner'>Total Earnings: {format_currency(total)}</div>",
        unsafe_allow_html=True,
    )


def render_rejected(rejected) -> None:
    if not rejected:
        return
    with st.expander(f"Skipped rows ({len(rejected)})"):
        st.caption("Rows without a readable Date are left out of every bucket and the total.")
        st.dataframe(pd.DataFrame([asdict(r) for r in rejected]), hide_index=True, use_container_width=True)


def load_upload(upload) -> Optional[dict]:
    if upload is None:
        return None
    try:
        return load_earnings_data(upload.getvalue())
    except RecordParseError as exc:
        st.error(f"Could not read {upload.name}: {exc}")
        return None


# ---------- UI setup ----------
st.set_page_config(page_title="Revenue Visualizer", layout="centered")
inject_base_styles()
st.title("Revenue Visualizer")
st.markdown("<div class='hint'>Upload your CSV file to visualize monthly revenue trends.</div>", unsafe_allow_html=True)

upload = st.file_uploader("Drag and drop your CSV file here or click to select", type=["csv"])
granularity_choice = st.radio("Group by", ["Monthly", "Weekly"], horizontal=True)
show_value_labels = st.checkbox("Show values on bars", value=True)

filters: EarningsFilters = normalize_filters(
    {"granularity": granularity_choice.lower(), "show_value_labels": show_value_labels}
)

data_ctx = load_upload(upload)
if data_ctx is None:
    st.stop()

ctx = prepare_context(filters, data_ctx)
aggregation = ctx["aggregation"]

render_total(aggregation.total)
if aggregation.is_empty():
    st.info("No rows with a readable Date were found in this file.")
else:
    chart = earnings_bar_chart(aggregation, currency=filters.currency, show_value_labels=filters.show_value_labels)
    st.altair_chart(chart.properties(height=300), use_container_width=True)
render_rejected(ctx["rejected"])
