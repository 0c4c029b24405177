"""Routes for forecast timelines."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from ...core.config import get_settings, load_thresholds
from ...core.observability import RECONCILIATION_ISSUES
from ...models import schemas
from ...services.timeline_service import reconcile_payload

LOGGER = logging.getLogger(__name__)

router = APIRouter()

CONFIG_DIR = get_settings().config_dir


def _error_payload(code: str, message: str) -> dict[str, str]:
    """Return a standardised error payload."""

    return {"error": code, "message": message}


@router.post("/forecasts/timeline", response_model=schemas.TimelineResponse)
async def get_timeline(body: schemas.PredictionData) -> schemas.TimelineResponse:
    """Reconcile demand and sales forecasts into one date-ordered series."""

    LOGGER.info(
        "Timeline request received: demand=%d sales=%d",
        len(body.demand_predictions),
        len(body.sales_predictions),
    )

    try:
        timeline = reconcile_payload(body, load_thresholds(CONFIG_DIR))
    except Exception as exc:  # pragma: no cover
        LOGGER.exception("Unexpected error while reconciling forecast timeline")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_error_payload("timeline_failed", "An unexpected error occurred while building the timeline."),
        ) from exc

    for issue in timeline.issues:
        RECONCILIATION_ISSUES.labels(issue.code).inc()
    return timeline
