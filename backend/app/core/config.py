"""
Application configuration utilities.

This module defines the ``Settings`` class used throughout the service for
environment variables and provides helpers to load the YAML file holding the
classification thresholds used by the dashboard.
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import Any, Dict

import yaml
from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..models.schemas import ProfitabilityBand

LOGGER = logging.getLogger(__name__)

THRESHOLDS_FILENAME = "thresholds.yaml"


class Settings(BaseSettings):
    """Configuration loaded from environment variables or a .env file."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # API server configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    config_dir: str = "configs"
    data_dir: str = "data"

    # Comma separated list; empty means allow all origins
    cors_origins: str = ""
    log_level: str = "INFO"

    # Base URL of the analytics backend that produces the dashboard payloads
    analytics_url: str = "http://localhost:8080/api/v1"


@lru_cache(maxsize=None)
def get_settings() -> Settings:
    """Return a cached instance of ``Settings``.

    Using a cache ensures that environment variables are only read once.
    """
    return Settings()


class ClassifierThresholds(BaseModel):
    """Cut-offs used to bucket continuous values into display classes."""

    confidence_high: float = Field(80.0, ge=0.0, le=100.0)
    confidence_medium: float = Field(60.0, ge=0.0, le=100.0)

    band_excellent: float = Field(0.8, ge=0.0, le=1.0)
    band_good: float = Field(0.6, ge=0.0, le=1.0)
    band_average: float = Field(0.4, ge=0.0, le=1.0)
    band_poor: float = Field(0.2, ge=0.0, le=1.0)
    degenerate_band: ProfitabilityBand = ProfitabilityBand.EXCELLENT

    accuracy_success: float = Field(80.0, ge=0.0, le=100.0)
    accuracy_warning: float = Field(60.0, ge=0.0, le=100.0)

    reorder_point: float = Field(10.0, ge=0.0)

    @model_validator(mode="after")
    def _check_ordering(self) -> "ClassifierThresholds":
        if self.confidence_medium > self.confidence_high:
            raise ValueError("confidence_medium must not exceed confidence_high")
        if self.accuracy_warning > self.accuracy_success:
            raise ValueError("accuracy_warning must not exceed accuracy_success")
        cuts = [self.band_poor, self.band_average, self.band_good, self.band_excellent]
        if any(lower >= upper for lower, upper in zip(cuts, cuts[1:])):
            raise ValueError("profitability band cut-offs must be strictly increasing")
        return self

    def band_cutoffs(self) -> list[float]:
        """Return the band edges in ascending order, as used by ``numpy.digitize``."""

        return [self.band_poor, self.band_average, self.band_good, self.band_excellent]


def load_yaml(file_path: str) -> dict:
    """Load a YAML file from the given path and return its contents.

    If the file does not exist, an empty dictionary is returned.
    """
    if not os.path.exists(file_path):
        return {}
    with open(file_path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def thresholds_path(config_dir: str | None = None) -> str:
    return os.path.join(config_dir or get_settings().config_dir, THRESHOLDS_FILENAME)


def load_thresholds(config_dir: str | None = None) -> ClassifierThresholds:
    """Read ``thresholds.yaml`` and fall back to defaults for anything missing.

    A malformed file is logged and ignored so the dashboard keeps rendering
    with the built-in cut-offs.
    """

    path = thresholds_path(config_dir)
    try:
        raw: Dict[str, Any] = load_yaml(path)
    except yaml.YAMLError:
        LOGGER.exception("Failed to parse thresholds file at %s; using defaults", path)
        return ClassifierThresholds()

    if not isinstance(raw, dict):
        LOGGER.warning("Thresholds at %s are not a mapping; using defaults", path)
        return ClassifierThresholds()

    known = {key: value for key, value in raw.items() if key in ClassifierThresholds.model_fields}
    try:
        return ClassifierThresholds(**known)
    except ValueError as exc:
        LOGGER.warning("Invalid thresholds in %s (%s); using defaults", path, exc)
        return ClassifierThresholds()
