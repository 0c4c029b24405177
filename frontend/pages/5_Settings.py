"""
Settings page for the classification thresholds.

This page reads the thresholds from the backend (``configs/thresholds.yaml``)
and saves edits back through ``PUT /configs/thresholds``.  The backend
rejects inconsistent cut-offs, such as a medium confidence threshold above
the high one.
"""

import requests
import streamlit as st

from utils.api import api_get, api_put, error_detail

BAND_OPTIONS = ["EXCELLENT", "GOOD", "AVERAGE", "POOR", "VERY_POOR"]

st.title("⚙️ Settings")

try:
    thresholds = api_get("/configs/thresholds")
except requests.RequestException as exc:
    st.error(f"Failed to load thresholds: {error_detail(exc)}")
    st.stop()

st.subheader("Current thresholds (thresholds.yaml)")
st.json(thresholds)

st.markdown("---")
st.subheader("Edit & Save")

with st.form("edit_thresholds"):
    col1, col2, col3 = st.columns(3)
    with col1:
        st.markdown("**Confidence (%)**")
        confidence_high = st.number_input(
            "confidence_high", value=float(thresholds["confidence_high"]), min_value=0.0, max_value=100.0, step=1.0
        )
        confidence_medium = st.number_input(
            "confidence_medium", value=float(thresholds["confidence_medium"]), min_value=0.0, max_value=100.0, step=1.0
        )
        st.markdown("**Forecast accuracy (%)**")
        accuracy_success = st.number_input(
            "accuracy_success", value=float(thresholds["accuracy_success"]), min_value=0.0, max_value=100.0, step=1.0
        )
        accuracy_warning = st.number_input(
            "accuracy_warning", value=float(thresholds["accuracy_warning"]), min_value=0.0, max_value=100.0, step=1.0
        )
    with col2:
        st.markdown("**Profitability bands (normalised margin)**")
        band_excellent = st.number_input(
            "band_excellent", value=float(thresholds["band_excellent"]), min_value=0.0, max_value=1.0, step=0.05
        )
        band_good = st.number_input(
            "band_good", value=float(thresholds["band_good"]), min_value=0.0, max_value=1.0, step=0.05
        )
        band_average = st.number_input(
            "band_average", value=float(thresholds["band_average"]), min_value=0.0, max_value=1.0, step=0.05
        )
        band_poor = st.number_input(
            "band_poor", value=float(thresholds["band_poor"]), min_value=0.0, max_value=1.0, step=0.05
        )
    with col3:
        current_band = thresholds.get("degenerate_band", "EXCELLENT")
        degenerate_band = st.selectbox(
            "Band when all margins are equal",
            BAND_OPTIONS,
            index=BAND_OPTIONS.index(current_band) if current_band in BAND_OPTIONS else 0,
        )
        reorder_point = st.number_input(
            "reorder_point (units)", value=float(thresholds["reorder_point"]), min_value=0.0, step=1.0
        )

    submitted = st.form_submit_button("Save")
    if submitted:
        payload = {
            "confidence_high": confidence_high,
            "confidence_medium": confidence_medium,
            "accuracy_success": accuracy_success,
            "accuracy_warning": accuracy_warning,
            "band_excellent": band_excellent,
            "band_good": band_good,
            "band_average": band_average,
            "band_poor": band_poor,
            "degenerate_band": degenerate_band,
            "reorder_point": reorder_point,
        }
        try:
            api_put("/configs/thresholds", payload)
        except requests.RequestException as exc:
            st.error(f"Backend did not accept the thresholds: {error_detail(exc)}")
        else:
            st.success("Saved to backend.")
