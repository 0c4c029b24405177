"""frontend/pages/2_Forecasts.py

Streamlit page for the reconciled demand and sales forecast."""

from __future__ import annotations

from typing import Any, Dict, List

import altair as alt
import pandas as pd
import requests
import streamlit as st

from utils.api import PREDICTIONS_PATH, api_post, error_detail, load_payload

SEVERITY_RENDERERS = {
    "success": st.success,
    "warning": st.warning,
    "error": st.error,
}


def _timeline_frame(points: List[Dict[str, Any]]) -> pd.DataFrame:
    df = pd.DataFrame(points)
    if df.empty:
        return df
    df["parsedDate"] = pd.to_datetime(df["date"], errors="coerce", utc=True)
    return df


def _timeline_chart(df: pd.DataFrame, reorder_point: float) -> alt.LayerChart:
    dated = df.dropna(subset=["parsedDate"])
    base = alt.Chart(dated).encode(x=alt.X("parsedDate:T", title="Date"))
    layers = []
    if "predictedDemand" in dated.columns:
        layers.append(
            base.mark_bar(color="#8884d8", opacity=0.8).encode(
                y=alt.Y("predictedDemand:Q", title="Units"),
                tooltip=["date", "bookTitle", "predictedDemand", "currentStock"],
            )
        )
    if "currentStock" in dated.columns:
        layers.append(base.mark_line(color="#82ca9d", strokeWidth=2).encode(y="currentStock:Q"))
    layers.append(
        alt.Chart(pd.DataFrame({"reorderPoint": [reorder_point]}))
        .mark_rule(color="red", strokeDash=[5, 5])
        .encode(y="reorderPoint:Q")
    )
    units = alt.layer(*layers)

    if "predictedRevenue" in dated.columns:
        revenue = base.mark_line(color="#ffc658", strokeWidth=2, point=True).encode(
            y=alt.Y("predictedRevenue:Q", title="Revenue"),
            tooltip=["date", "categoryName", "predictedRevenue", "predictedOrderCount"],
        )
        return alt.layer(units, revenue).resolve_scale(y="independent").properties(height=360)
    return units.properties(height=360)


st.title("🔮 Forecasts")
st.caption("Demand and sales forecasts merged into one timeline.")

payload = load_payload("Prediction data", PREDICTIONS_PATH)

if payload is not None:
    try:
        with st.spinner("Reconciling forecast timeline…"):
            timeline = api_post("/forecasts/timeline", payload)
    except requests.Timeout:
        st.error("The timeline request timed out. Please retry in a moment.")
        st.stop()
    except requests.RequestException as exc:
        st.error(f"API error: {error_detail(exc)}")
        st.stop()

    st.subheader(f"Algorithm: {timeline.get('algorithm') or 'unknown'}")
    if timeline.get("timeHorizon"):
        st.caption(f"Horizon: {timeline['timeHorizon']}")

    confidence = timeline.get("confidencePresentation") or {}
    overall = timeline.get("overallConfidence")
    with st.container(border=True):
        st.markdown(
            f"<span style='color:{confidence.get('color', '#9e9e9e')}'>●</span> "
            f"**Confidence: {timeline.get('confidenceClass', 'UNKNOWN')}**"
            + (f" ({overall:.0f}%)" if isinstance(overall, (int, float)) else ""),
            unsafe_allow_html=True,
        )
        if timeline.get("dataQuality"):
            st.write(f"Data quality: {timeline['dataQuality']}")
        if timeline.get("recommendation"):
            st.write(timeline["recommendation"])

    severity = timeline.get("accuracySeverity")
    if severity:
        SEVERITY_RENDERERS[severity](f"Forecast accuracy: {timeline['accuracy']:.1f}%")

    issues = timeline.get("issues") or []
    if issues:
        st.warning(
            f"{len(issues)} forecast point(s) have dates that could not be read and are shown last: "
            + ", ".join(str(issue.get("date")) for issue in issues)
        )

    df = _timeline_frame(timeline.get("points") or [])
    if df.empty:
        st.info("The payload contains no demand or sales forecasts.")
    else:
        st.altair_chart(
            _timeline_chart(df, float(timeline.get("reorderPoint") or 0.0)),
            use_container_width=True,
        )
        with st.expander("Timeline data"):
            st.dataframe(df.drop(columns=["parsedDate"]), use_container_width=True, hide_index=True)

    key_predictions = timeline.get("keyPredictions") or []
    if key_predictions:
        st.subheader("Key predictions")
        columns = st.columns(len(key_predictions))
        for column, prediction in zip(columns, key_predictions):
            with column.container(border=True):
                st.markdown(f"**{prediction.get('bookTitle') or 'Untitled'}**")
                st.metric(
                    "Predicted demand",
                    prediction.get("predictedDemand"),
                    help=f"Current stock: {prediction.get('currentStock')}",
                )
                colour = (prediction.get("presentation") or {}).get("color", "#9e9e9e")
                st.markdown(
                    f"<span style='color:{colour}'>{prediction.get('confidenceClass')}</span>"
                    f" · {prediction.get('demandTrend') or 'no trend'}",
                    unsafe_allow_html=True,
                )

    factors = timeline.get("seasonalFactors") or []
    uncertainty = timeline.get("uncertaintyFactors") or []
    left, right = st.columns(2)
    with left:
        st.subheader("Seasonal factors")
        if factors:
            st.dataframe(pd.DataFrame(factors), use_container_width=True, hide_index=True)
        else:
            st.caption("None reported.")
    with right:
        st.subheader("Uncertainty factors")
        if uncertainty:
            st.markdown("\n".join(f"- {factor}" for factor in uncertainty))
        else:
            st.caption("None reported.")
