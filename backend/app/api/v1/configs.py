"""API endpoints for reading and updating the classifier thresholds YAML."""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from typing import Any, Dict, Optional

import yaml
from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, Field, ValidationError

from ...core.config import ClassifierThresholds, get_settings, load_thresholds, thresholds_path
from ...models.schemas import ProfitabilityBand
from .forecasts import _error_payload

LOGGER = logging.getLogger(__name__)

router = APIRouter()

CONFIG_DIR = get_settings().config_dir


def _safe_write_yaml(path: str, payload: Dict[str, Any]) -> None:
    directory = os.path.dirname(path) or "."
    os.makedirs(directory, exist_ok=True)

    fd, tmp_path = tempfile.mkstemp(
        prefix=".tmp-", suffix=".yaml", dir=directory
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            yaml.safe_dump(payload, handle, sort_keys=False)
        shutil.move(tmp_path, path)
    finally:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)


class ThresholdsUpdate(BaseModel):
    confidence_high: Optional[float] = Field(None, ge=0.0, le=100.0)
    confidence_medium: Optional[float] = Field(None, ge=0.0, le=100.0)
    band_excellent: Optional[float] = Field(None, ge=0.0, le=1.0)
    band_good: Optional[float] = Field(None, ge=0.0, le=1.0)
    band_average: Optional[float] = Field(None, ge=0.0, le=1.0)
    band_poor: Optional[float] = Field(None, ge=0.0, le=1.0)
    degenerate_band: Optional[ProfitabilityBand] = None
    accuracy_success: Optional[float] = Field(None, ge=0.0, le=100.0)
    accuracy_warning: Optional[float] = Field(None, ge=0.0, le=100.0)
    reorder_point: Optional[float] = Field(None, ge=0.0)


@router.get("/configs/thresholds")
def get_thresholds() -> Dict[str, Any]:
    """Return the effective thresholds, defaults filled in."""

    return load_thresholds(CONFIG_DIR).model_dump(mode="json")


@router.put("/configs/thresholds")
def put_thresholds(body: ThresholdsUpdate) -> Dict[str, Any]:
    path = thresholds_path(CONFIG_DIR)
    current = load_thresholds(CONFIG_DIR).model_dump(mode="json")
    updates = body.model_dump(mode="json", exclude_none=True)

    merged = {**current, **updates}
    try:
        validated = ClassifierThresholds(**merged)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=_error_payload("invalid_thresholds", "; ".join(err["msg"] for err in exc.errors())),
        ) from exc

    payload = validated.model_dump(mode="json")
    if payload == current and os.path.exists(path):
        return payload

    try:
        _safe_write_yaml(path, payload)
    except OSError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_error_payload("write_failed", str(exc)),
        ) from exc
    LOGGER.info("Updated classifier thresholds at %s: %s", path, sorted(updates))
    return payload
