r"""backend\app\api\v1\presentation.py

Lookup endpoints exposing the display classes used by the dashboard."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Query

from ...core.config import get_settings, load_thresholds
from ...models import schemas
from ...services.classification_service import (
    BAND_LEGEND,
    classify_confidence,
    confidence_presentation,
    parse_urgency,
    urgency_presentation,
)

router = APIRouter()

CONFIG_DIR = get_settings().config_dir


@router.get("/presentation/confidence")
def get_confidence_class(
    pct: Optional[float] = Query(None, description="Confidence percentage, 0-100"),
) -> dict[str, object]:
    confidence_class = classify_confidence(pct, load_thresholds(CONFIG_DIR))
    return {
        "confidenceClass": confidence_class.value,
        "presentation": confidence_presentation(confidence_class).model_dump(by_alias=True),
    }


@router.get("/presentation/urgency/{urgency}")
def get_urgency_presentation(urgency: str) -> dict[str, object]:
    return {
        "urgencyClass": parse_urgency(urgency).value,
        "presentation": urgency_presentation(urgency).model_dump(by_alias=True),
    }


@router.get("/presentation/profitability-legend", response_model=list[schemas.LegendEntry])
def get_profitability_legend() -> list[schemas.LegendEntry]:
    return BAND_LEGEND
