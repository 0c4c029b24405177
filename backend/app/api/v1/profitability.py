r"""backend\app\api\v1\profitability.py

Colour banding for the profitability heatmap."""

from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter

from ...core.config import get_settings, load_thresholds
from ...core.observability import PROFITABILITY_DEGENERATE
from ...models import schemas
from ...services.classification_service import BAND_LEGEND, classify_profitability

LOGGER = logging.getLogger(__name__)

router = APIRouter()

CONFIG_DIR = get_settings().config_dir


@router.post("/profitability/bands", response_model=schemas.ProfitabilityResponse)
def get_profitability_bands(items: List[schemas.ProfitabilityItem]) -> schemas.ProfitabilityResponse:
    """Band each item by profit margin relative to the submitted set."""

    result = classify_profitability(items, load_thresholds(CONFIG_DIR))
    if result.degenerate:
        PROFITABILITY_DEGENERATE.inc()
        LOGGER.info("All %d profitability items share margin %s", len(result.items), result.min_margin)
    return schemas.ProfitabilityResponse(**result.model_dump(), legend=BAND_LEGEND)
