r"""frontend/pages/4_Profitability.py

Profitability heatmap for categories or titles."""

from __future__ import annotations

import altair as alt
import pandas as pd
import requests
import streamlit as st

from utils.api import PROFITABILITY_PATH, api_post, error_detail, load_payload


def _items(payload) -> list:
    if isinstance(payload, dict):
        return payload.get("items") or payload.get("profitability") or []
    return payload if isinstance(payload, list) else []


st.title("💹 Profitability")
st.caption("Items coloured by profit margin relative to the rest of the set.")

payload = load_payload("Profitability data", PROFITABILITY_PATH)

if payload is not None:
    try:
        bands = api_post("/profitability/bands", _items(payload))
    except requests.RequestException as exc:
        st.error(f"API error: {error_detail(exc)}")
        st.stop()

    cells = bands.get("items") or []
    if not cells:
        st.info("No profitability items in this payload.")
        st.stop()

    if bands.get("degenerate"):
        st.info("Every item has the same margin, so they share one colour.")

    legend = bands.get("legend") or []
    colour_scale = alt.Scale(
        domain=[entry["band"] for entry in legend],
        range=[entry["color"] for entry in legend],
    )
    df = pd.DataFrame(cells)

    view = st.radio("View", ["Grid", "Scatter"], horizontal=True)
    if view == "Grid":
        columns = 4
        df["row"] = [index // columns for index in range(len(df))]
        df["col"] = [index % columns for index in range(len(df))]
        base = alt.Chart(df).encode(
            x=alt.X("col:O", axis=None),
            y=alt.Y("row:O", axis=None),
        )
        tiles = base.mark_rect(stroke="white", strokeWidth=2).encode(
            color=alt.Color("band:N", scale=colour_scale, legend=None),
            tooltip=["itemName", "revenue", "profit", "profitMargin", "roi"],
        )
        labels = base.mark_text(fontSize=12).encode(text="itemName:N")
        st.altair_chart((tiles + labels).properties(height=80 * (df["row"].max() + 1)), use_container_width=True)
    else:
        scatter = (
            alt.Chart(df)
            .mark_circle(size=160)
            .encode(
                x=alt.X("revenue:Q", title="Revenue"),
                y=alt.Y("profitMargin:Q", title="Profit margin (%)"),
                color=alt.Color("band:N", scale=colour_scale, legend=None),
                tooltip=["itemName", "revenue", "profit", "profitMargin", "roi"],
            )
            .properties(height=380)
        )
        st.altair_chart(scatter, use_container_width=True)

    legend_cols = st.columns(len(legend) or 1)
    for column, entry in zip(legend_cols, legend):
        column.markdown(
            f"<span style='color:{entry['color']}'>■</span> {entry['label']}",
            unsafe_allow_html=True,
        )
    st.caption(f"Margin range: {bands.get('minMargin')} – {bands.get('maxMargin')}")
