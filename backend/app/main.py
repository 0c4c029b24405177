r"""backend\app\main.py

Main entrypoint for the FastAPI application.

The API exposes the dashboard's data-shaping logic: reconciling demand and
sales forecasts into one timeline, banding profitability for the heatmap,
classifying confidence and urgency, and recording order approvals and
quantity changes in an audit log.  A health endpoint is also provided for
readiness/liveness checks.  Configuration is read from environment
variables and the thresholds YAML in `configs/`.
"""

import logging
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse

from .api.v1 import (
    approvals,
    configs,
    forecasts,
    health,
    presentation,
    profitability,
    suggestions,
)
from .core.config import get_settings
from .core.observability import RequestMetricsMiddleware, configure_logging, metrics_endpoint

# Load .env from repo root
BASE_DIR = Path(__file__).resolve().parents[2]
load_dotenv(BASE_DIR / ".env")

settings = get_settings()
configure_logging(settings.log_level)

logging.getLogger(__name__).info(
    "Thresholds read from %s; audit log at %s",
    settings.config_dir,
    approvals.LOG_PATH,
)

app = FastAPI(title="Bookstore Forecast Dashboard API", version="0.1.0")

# Allow cross-origin requests from the Streamlit UI (and others).
origins = [origin.strip() for origin in settings.cors_origins.split(",") if origin.strip()] or ["*"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,  # In production specify your UI domain(s)
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestMetricsMiddleware)

# Include versioned routers
app.include_router(health.router, prefix="/api/v1")
app.include_router(forecasts.router, prefix="/api/v1")
app.include_router(profitability.router, prefix="/api/v1")
app.include_router(presentation.router, prefix="/api/v1")
app.include_router(suggestions.router, prefix="/api/v1")
app.include_router(approvals.router, prefix="/api/v1")
app.include_router(configs.router, prefix="/api/v1")


@app.get("/", include_in_schema=False)
def _root() -> RedirectResponse:
    """Redirect the root path to the interactive docs."""

    return RedirectResponse(url="/docs")


@app.get("/metrics", include_in_schema=False)
async def _metrics() -> Response:
    """Expose Prometheus metrics."""

    return metrics_endpoint()
