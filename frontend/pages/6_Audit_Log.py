r"""frontend/pages/6_Audit_Log.py

Audit log page for order decisions and quantity changes."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List

import pandas as pd
import requests
import streamlit as st

from utils.api import api_get, error_detail


def _fetch_audit_log(limit: int = 200) -> List[Dict[str, Any]]:
    payload = api_get("/approvals/audit-log", limit=limit) or {}
    events = payload.get("events", [])
    return events if isinstance(events, list) else []


st.title("🗒️ Audit Log")
st.caption("Review approvals, rejections and quantity changes.")

limit = st.slider("Events to load", min_value=50, max_value=1000, value=200, step=50)

with st.spinner("Loading audit log…"):
    try:
        audit_events = _fetch_audit_log(limit)
    except requests.Timeout:
        st.error("Audit log request timed out. Please retry shortly.")
        audit_events = []
    except requests.RequestException as exc:
        st.error(f"Failed to fetch audit events: {error_detail(exc)}")
        audit_events = []

if not audit_events:
    st.info("No audit events yet.")
else:
    df = pd.DataFrame(audit_events)
    if "recorded_at" in df.columns:
        local_tz = datetime.now().astimezone().tzinfo
        df["timestamp"] = (
            pd.to_datetime(df["recorded_at"], utc=True, errors="coerce")
            .dt.tz_convert(local_tz)
            .dt.strftime("%Y-%m-%d %H:%M:%S %Z")
        )
        df = df.drop(columns=["recorded_at"])

    actions = sorted(df["action"].dropna().unique()) if "action" in df.columns else []
    chosen = st.multiselect("Actions", actions, default=actions)
    if "action" in df.columns:
        df = df[df["action"].isin(chosen)]

    display_columns = [
        "timestamp",
        "book_id",
        "book_title",
        "action",
        "qty",
        "reason",
    ]
    ordered_cols = [col for col in display_columns if col in df.columns]
    remaining_cols = [col for col in df.columns if col not in ordered_cols]
    df = df[ordered_cols + remaining_cols]

    sort_column = "timestamp" if "timestamp" in df.columns else None
    if sort_column:
        df = df.sort_values(by=sort_column, ascending=False)

    st.dataframe(
        df,
        use_container_width=True,
    )
