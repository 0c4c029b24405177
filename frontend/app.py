r"""frontend/app.py

Streamlit multipage application for the bookstore forecast dashboard.

This file configures global options and provides a simple welcome page.
Individual pages live in the ``pages/`` subdirectory; Streamlit will
automatically load them.  To run the app locally use:

```bash
streamlit run app.py
```
"""

import requests
import streamlit as st

from utils.api import ANALYTICS_URL, API_URL

st.set_page_config(page_title="Bookstore Forecasts", layout="wide")

st.title("Bookstore Forecast Dashboard")

status = "⚠️ not reachable"

try:
    response = requests.get(f"{API_URL}/health", timeout=5)
except requests.RequestException:
    response = None

if response is not None and response.ok:
    status = "✅ healthy"

st.caption(f"Backend API: {status} · {API_URL}  ·  Analytics: {ANALYTICS_URL}")

st.markdown(
    """
    Use the navigation sidebar to review store KPIs, the reconciled demand
    and sales forecast, reorder suggestions and category profitability.
    Analytics payloads are fetched from the analytics backend configured by
    `ANALYTICS_URL`; every page also accepts an uploaded JSON payload.
    Approvals and quantity changes are recorded by the FastAPI backend at
    `API_URL` and can be reviewed on the audit log page.
    """
)
