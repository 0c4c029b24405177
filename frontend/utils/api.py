r"""frontend\utils\api.py

Shared helpers for talking to the dashboard API and the analytics backend."""

import json
import os
import sys
from pathlib import Path
from typing import Any, Optional

import requests
import streamlit as st

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

API_URL = os.getenv("API_URL", "http://localhost:8000/api/v1")
ANALYTICS_URL = os.getenv("ANALYTICS_URL", "http://localhost:8080/api/v1")

# Analytics backend endpoints, relative to ANALYTICS_URL
DASHBOARD_PATH = "/reports/dashboard"
PREDICTIONS_PATH = "/reports/predictions/demand"
SUGGESTIONS_PATH = "/reports/suggestions/orders"
PROFITABILITY_PATH = "/reports/profitability"


def format_validation_error(error: Any) -> str:
    """Render one FastAPI validation error as ``field: message``."""

    if not isinstance(error, dict):
        return str(error)
    location = [str(part) for part in error.get("loc") or [] if part != "body"]
    message = error.get("msg") or "invalid value"
    return f"{'.'.join(location)}: {message}" if location else message


def error_detail(exc: requests.RequestException) -> str:
    """Return the backend's error message when the response carries one."""

    response = getattr(exc, "response", None)
    if response is None:
        return str(exc)
    try:
        detail = response.json().get("detail")
    except ValueError:
        return response.text or str(exc)
    if isinstance(detail, dict):
        return detail.get("message") or detail.get("error") or str(detail)
    if isinstance(detail, list):
        # FastAPI request validation errors
        return "; ".join(format_validation_error(err) for err in detail) or str(exc)
    return str(detail or exc)


def api_get(path: str, **params: Any) -> Any:
    response = requests.get(f"{API_URL}{path}", params=params or None, timeout=20)
    response.raise_for_status()
    return response.json()


def api_post(path: str, payload: Any) -> Any:
    response = requests.post(f"{API_URL}{path}", json=payload, timeout=30)
    response.raise_for_status()
    return response.json()


def api_put(path: str, payload: Any) -> Any:
    response = requests.put(f"{API_URL}{path}", json=payload, timeout=20)
    response.raise_for_status()
    return response.json()


@st.cache_data(ttl=300)
def fetch_analytics(path: str) -> Any:
    """Fetch one analytics payload; cached for five minutes."""

    response = requests.get(f"{ANALYTICS_URL}{path}", timeout=30)
    response.raise_for_status()
    body = response.json()
    # Some analytics endpoints wrap their payload in {"data": ...}
    if isinstance(body, dict) and set(body) == {"data"}:
        return body["data"]
    return body


def load_payload(label: str, path: str) -> Optional[Any]:
    """Return a payload from an uploaded JSON file or the analytics backend.

    The sidebar offers a file uploader so the pages can be used without a
    running analytics service.  Errors are shown in the page and ``None`` is
    returned.
    """

    uploaded = st.sidebar.file_uploader(f"{label} JSON (optional)", type=["json"], key=f"upload::{path}")
    if uploaded is not None:
        try:
            return json.load(uploaded)
        except ValueError as exc:
            st.error(f"Uploaded file is not valid JSON: {exc}")
            return None

    if st.sidebar.button("Refresh analytics data", key=f"refresh::{path}"):
        fetch_analytics.clear()

    try:
        with st.spinner(f"Fetching {label.lower()} from analytics backend…"):
            return fetch_analytics(path)
    except requests.Timeout:
        st.error("The analytics backend timed out. Please retry in a moment.")
    except requests.RequestException as exc:
        st.error(f"Failed to fetch {label.lower()}: {error_detail(exc)}")
    st.caption(f"Set `ANALYTICS_URL` (currently {ANALYTICS_URL}) or upload a JSON file in the sidebar.")
    return None
