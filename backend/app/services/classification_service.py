r"""backend\app\services\classification_service.py

Bucket continuous analytics values into the small set of display classes
used by the dashboard.

Every classifier here is total: missing, non-numeric or NaN inputs map to a
neutral class instead of raising, so a partially populated payload can
always be rendered.  Profitability banding normalises margins across the
whole data set in two linear passes (min/max, then a vectorised
``numpy.digitize``) and resolves the degenerate ``max == min`` case to a
configured band without dividing.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Iterable, List, Mapping, Optional, Union

import numpy as np

from ..core.config import ClassifierThresholds
from ..models.schemas import (
    ConfidenceClass,
    LegendEntry,
    Presentation,
    ProfitabilityBand,
    ProfitabilityCell,
    ProfitabilityItem,
    ProfitabilityResult,
    Severity,
    UrgencyClass,
)

LOGGER = logging.getLogger(__name__)

_DEFAULT_THRESHOLDS = ClassifierThresholds()

_NEUTRAL = Presentation(icon="info", color="#9e9e9e", chip_color="default", sort_weight=0)

_CONFIDENCE_PRESENTATION = {
    ConfidenceClass.HIGH: Presentation(icon="check_circle", color="#4caf50", chip_color="primary"),
    ConfidenceClass.MEDIUM: Presentation(icon="info", color="#ff9800", chip_color="default"),
    ConfidenceClass.LOW: Presentation(icon="warning", color="#f44336", chip_color="secondary"),
}

_URGENCY_PRESENTATION = {
    UrgencyClass.IMMEDIATE: Presentation(icon="warning", color="#f44336", chip_color="secondary", sort_weight=0),
    UrgencyClass.WITHIN_WEEK: Presentation(icon="schedule", color="#3f51b5", chip_color="primary", sort_weight=1),
    UrgencyClass.WITHIN_MONTH: Presentation(icon="check_circle", color="#9e9e9e", chip_color="default", sort_weight=2),
}
_URGENCY_FALLBACK = Presentation(icon="info", color="#9e9e9e", chip_color="default", sort_weight=3)

# Ascending, so that ``numpy.digitize`` indices map straight onto bands
_BAND_ORDER = [
    ProfitabilityBand.VERY_POOR,
    ProfitabilityBand.POOR,
    ProfitabilityBand.AVERAGE,
    ProfitabilityBand.GOOD,
    ProfitabilityBand.EXCELLENT,
]

BAND_COLOURS = {
    ProfitabilityBand.EXCELLENT: "#4caf50",
    ProfitabilityBand.GOOD: "#8bc34a",
    ProfitabilityBand.AVERAGE: "#ffeb3b",
    ProfitabilityBand.POOR: "#ff9800",
    ProfitabilityBand.VERY_POOR: "#f44336",
}

BAND_LEGEND: List[LegendEntry] = [
    LegendEntry(band=ProfitabilityBand.VERY_POOR, color=BAND_COLOURS[ProfitabilityBand.VERY_POOR], label="Low profit"),
    LegendEntry(band=ProfitabilityBand.POOR, color=BAND_COLOURS[ProfitabilityBand.POOR], label="Below average"),
    LegendEntry(band=ProfitabilityBand.AVERAGE, color=BAND_COLOURS[ProfitabilityBand.AVERAGE], label="Average"),
    LegendEntry(band=ProfitabilityBand.GOOD, color=BAND_COLOURS[ProfitabilityBand.GOOD], label="Good"),
    LegendEntry(band=ProfitabilityBand.EXCELLENT, color=BAND_COLOURS[ProfitabilityBand.EXCELLENT], label="Excellent"),
]


def _as_finite(value: Any) -> Optional[float]:
    """Return ``value`` as a finite float, or ``None`` when that is impossible."""

    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


# ---------------------------------------------------------------------------
# Confidence


def classify_confidence(
    pct: Any,
    thresholds: Optional[ClassifierThresholds] = None,
) -> ConfidenceClass:
    """Map a confidence percentage onto HIGH / MEDIUM / LOW.

    ``None`` and anything that is not a finite number yields ``UNKNOWN``.
    """

    thresholds = thresholds or _DEFAULT_THRESHOLDS
    value = _as_finite(pct)
    if value is None:
        return ConfidenceClass.UNKNOWN
    if value >= thresholds.confidence_high:
        return ConfidenceClass.HIGH
    if value >= thresholds.confidence_medium:
        return ConfidenceClass.MEDIUM
    return ConfidenceClass.LOW


def parse_confidence_class(value: Any) -> Optional[ConfidenceClass]:
    """Interpret a backend-supplied class label such as ``"HIGH"``."""

    if isinstance(value, ConfidenceClass):
        return value
    if not isinstance(value, str):
        return None
    try:
        return ConfidenceClass(value.strip().upper())
    except ValueError:
        return None


def confidence_presentation(level: Union[ConfidenceClass, str, None]) -> Presentation:
    parsed = parse_confidence_class(level)
    return _CONFIDENCE_PRESENTATION.get(parsed, _NEUTRAL)


# ---------------------------------------------------------------------------
# Urgency


def parse_urgency(value: Any) -> UrgencyClass:
    if isinstance(value, UrgencyClass):
        return value
    if isinstance(value, str):
        try:
            return UrgencyClass(value.strip().upper())
        except ValueError:
            pass
    return UrgencyClass.UNKNOWN


def urgency_presentation(urgency: Union[UrgencyClass, str, None]) -> Presentation:
    """Icon, chip colour and sort weight for an urgency label.

    Unrecognised labels get the info-level fallback, which sorts last.
    """

    return _URGENCY_PRESENTATION.get(parse_urgency(urgency), _URGENCY_FALLBACK)


# ---------------------------------------------------------------------------
# Forecast accuracy


def accuracy_severity(
    accuracy: Any,
    thresholds: Optional[ClassifierThresholds] = None,
) -> Optional[Severity]:
    thresholds = thresholds or _DEFAULT_THRESHOLDS
    value = _as_finite(accuracy)
    if value is None:
        return None
    if value >= thresholds.accuracy_success:
        return Severity.SUCCESS
    if value >= thresholds.accuracy_warning:
        return Severity.WARNING
    return Severity.ERROR


# ---------------------------------------------------------------------------
# Profitability


def band_colour(band: ProfitabilityBand) -> str:
    return BAND_COLOURS[band]


def _profit_margin(item: ProfitabilityItem) -> float:
    # A missing margin counts as zero, matching how the heatmap always treated it
    value = _as_finite(item.profit_margin)
    return 0.0 if value is None else value


def classify_profitability(
    items: Iterable[Union[ProfitabilityItem, Mapping[str, Any]]],
    thresholds: Optional[ClassifierThresholds] = None,
) -> ProfitabilityResult:
    """Band every item by its margin relative to the rest of the data set.

    ``normalized = (margin - min) / (max - min)`` is bucketed with the
    configured cut-offs.  When every margin is equal the range is empty; all
    items are then reported with ``normalized == 1.0`` and the configured
    degenerate band, and ``degenerate`` is set on the result.
    """

    thresholds = thresholds or _DEFAULT_THRESHOLDS
    records = [
        item if isinstance(item, ProfitabilityItem) else ProfitabilityItem.model_validate(item)
        for item in items
    ]
    if not records:
        return ProfitabilityResult(items=[])

    margins = np.fromiter((_profit_margin(item) for item in records), dtype=float, count=len(records))
    min_margin = float(margins.min())
    max_margin = float(margins.max())
    span = max_margin - min_margin

    degenerate = not (span > 0.0 and math.isfinite(span))
    if degenerate:
        LOGGER.debug(
            "Profitability range is empty (min=max=%s); assigning %s to %d items",
            min_margin,
            thresholds.degenerate_band.value,
            len(records),
        )
        normalized = np.ones_like(margins)
        bands = [thresholds.degenerate_band] * len(records)
    else:
        normalized = np.clip((margins - min_margin) / span, 0.0, 1.0)
        indices = np.digitize(normalized, thresholds.band_cutoffs())
        bands = [_BAND_ORDER[int(idx)] for idx in indices]

    cells = [
        ProfitabilityCell(
            item_name=item.item_name,
            revenue=item.revenue,
            profit=item.profit,
            profit_margin=item.profit_margin,
            roi=item.roi,
            normalized=float(norm),
            band=band,
            color=band_colour(band),
        )
        for item, norm, band in zip(records, normalized, bands)
    ]
    return ProfitabilityResult(
        items=cells,
        min_margin=min_margin,
        max_margin=max_margin,
        degenerate=degenerate,
    )
