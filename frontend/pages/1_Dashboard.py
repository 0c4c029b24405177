"""
Dashboard page displaying the store KPIs.

The figures come from the analytics backend's real-time dashboard payload.
The payload is loosely structured, so it is normalised with the same
``dashboard_kpis`` helper the API uses before anything is rendered.
"""

import pandas as pd
import streamlit as st

from utils.api import DASHBOARD_PATH, load_payload
from backend.app.services.summary_service import dashboard_kpis

TREND_ARROWS = {"up": "⬆️", "down": "⬇️", "stable": "➡️"}

st.title("📊 Dashboard")

st.write("A quick overview of inventory value, stock alerts and performance trends.")

payload = load_payload("Dashboard data", DASHBOARD_PATH)

if payload is not None:
    kpis = dashboard_kpis(payload if isinstance(payload, dict) else {})

    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Total items", f"{kpis.total_items:,}")
    c2.metric("Inventory value", f"¥{kpis.total_value:,.0f}")
    c3.metric("Low stock", f"{kpis.low_stock_items:,}")
    c4.metric("Out of stock", f"{kpis.out_of_stock_items:,}")

    st.subheader("Performance trends")
    if kpis.trends:
        df = pd.DataFrame(
            [
                {
                    "Metric": trend.label,
                    "Value": trend.value,
                    "Change": trend.change,
                    "Trend": f"{TREND_ARROWS.get(trend.trend or '', '')} {trend.trend or ''}".strip(),
                }
                for trend in kpis.trends
            ]
        )
        st.dataframe(df, use_container_width=True, hide_index=True)
    else:
        st.info("No trend data in this payload.")

    if kpis.system_status:
        st.caption(f"System status: {kpis.system_status} · last updated {kpis.last_updated or 'unknown'}")
