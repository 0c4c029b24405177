from __future__ import annotations

import math
from pathlib import Path
import sys

import pytest
from pydantic import ValidationError

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

from backend.app.core.config import ClassifierThresholds
from backend.app.models.schemas import (
    ConfidenceClass,
    ProfitabilityBand,
    ProfitabilityItem,
    Severity,
    UrgencyClass,
)
from backend.app.services.classification_service import (
    BAND_LEGEND,
    accuracy_severity,
    classify_confidence,
    classify_profitability,
    confidence_presentation,
    parse_urgency,
    urgency_presentation,
)


@pytest.mark.parametrize(
    "pct, expected",
    [
        (100, ConfidenceClass.HIGH),
        (80, ConfidenceClass.HIGH),
        (79.99, ConfidenceClass.MEDIUM),
        (60, ConfidenceClass.MEDIUM),
        (59, ConfidenceClass.LOW),
        (0, ConfidenceClass.LOW),
        (None, ConfidenceClass.UNKNOWN),
        (float("nan"), ConfidenceClass.UNKNOWN),
        ("eighty", ConfidenceClass.UNKNOWN),
        (True, ConfidenceClass.UNKNOWN),
    ],
)
def test_classify_confidence_boundaries(pct, expected) -> None:
    assert classify_confidence(pct) == expected


def test_classify_confidence_uses_thresholds() -> None:
    thresholds = ClassifierThresholds(confidence_high=90, confidence_medium=70)

    assert classify_confidence(85, thresholds) == ConfidenceClass.MEDIUM
    assert classify_confidence(69, thresholds) == ConfidenceClass.LOW


def test_confidence_presentation() -> None:
    assert confidence_presentation(ConfidenceClass.HIGH).chip_color == "primary"
    assert confidence_presentation("medium").color == "#ff9800"
    assert confidence_presentation(ConfidenceClass.LOW).icon == "warning"
    assert confidence_presentation(None).color == "#9e9e9e"
    assert confidence_presentation(ConfidenceClass.UNKNOWN).icon == "info"


def test_urgency_fallback_for_unknown_labels() -> None:
    assert parse_urgency("immediate") == UrgencyClass.IMMEDIATE
    assert parse_urgency("SOMEDAY") == UrgencyClass.UNKNOWN
    assert parse_urgency(None) == UrgencyClass.UNKNOWN

    weights = [
        urgency_presentation(label).sort_weight
        for label in ("IMMEDIATE", "WITHIN_WEEK", "WITHIN_MONTH", "SOMEDAY")
    ]
    assert weights == [0, 1, 2, 3]
    assert urgency_presentation("SOMEDAY").icon == "info"
    assert urgency_presentation(UrgencyClass.WITHIN_WEEK).icon == "schedule"


@pytest.mark.parametrize(
    "accuracy, expected",
    [(95, Severity.SUCCESS), (80, Severity.SUCCESS), (60, Severity.WARNING), (59.9, Severity.ERROR), (None, None)],
)
def test_accuracy_severity(accuracy, expected) -> None:
    assert accuracy_severity(accuracy) == expected


def test_equal_margins_are_degenerate() -> None:
    result = classify_profitability([{"profitMargin": 10}, {"profitMargin": 10}])

    assert result.degenerate is True
    assert [cell.normalized for cell in result.items] == [1.0, 1.0]
    assert [cell.band for cell in result.items] == [ProfitabilityBand.EXCELLENT] * 2
    assert all(math.isfinite(cell.normalized) for cell in result.items)


def test_degenerate_band_is_configurable() -> None:
    thresholds = ClassifierThresholds(degenerate_band=ProfitabilityBand.AVERAGE)

    result = classify_profitability([ProfitabilityItem(profit_margin=3.0)], thresholds)

    assert result.items[0].band == ProfitabilityBand.AVERAGE
    assert result.items[0].color == "#ffeb3b"


def test_profitability_bands_follow_cutoffs() -> None:
    margins = [0, 10, 30, 50, 70, 90, 100]

    result = classify_profitability([ProfitabilityItem(item_name=str(m), profit_margin=m) for m in margins])

    assert result.degenerate is False
    assert result.min_margin == 0
    assert result.max_margin == 100
    assert [cell.normalized for cell in result.items] == pytest.approx([0, 0.1, 0.3, 0.5, 0.7, 0.9, 1.0])
    assert [cell.band for cell in result.items] == [
        ProfitabilityBand.VERY_POOR,
        ProfitabilityBand.VERY_POOR,
        ProfitabilityBand.POOR,
        ProfitabilityBand.AVERAGE,
        ProfitabilityBand.GOOD,
        ProfitabilityBand.EXCELLENT,
        ProfitabilityBand.EXCELLENT,
    ]
    assert [cell.item_name for cell in result.items] == [str(m) for m in margins]


def test_band_edges_are_inclusive_lower_bounds() -> None:
    result = classify_profitability([{"profitMargin": m} for m in (0, 20, 40, 60, 80, 100)])

    assert [cell.band for cell in result.items] == [
        ProfitabilityBand.VERY_POOR,
        ProfitabilityBand.POOR,
        ProfitabilityBand.AVERAGE,
        ProfitabilityBand.GOOD,
        ProfitabilityBand.EXCELLENT,
        ProfitabilityBand.EXCELLENT,
    ]


def test_missing_margin_counts_as_zero() -> None:
    result = classify_profitability([{"itemName": "a"}, {"itemName": "b", "profitMargin": 50}])

    assert result.min_margin == 0
    assert result.items[0].normalized == 0.0
    assert result.items[0].profit_margin is None
    assert result.items[1].band == ProfitabilityBand.EXCELLENT


def test_empty_profitability_input() -> None:
    result = classify_profitability([])

    assert result.items == []
    assert result.min_margin is None
    assert result.degenerate is False


def test_legend_runs_from_low_to_high() -> None:
    assert [entry.band for entry in BAND_LEGEND] == [
        ProfitabilityBand.VERY_POOR,
        ProfitabilityBand.POOR,
        ProfitabilityBand.AVERAGE,
        ProfitabilityBand.GOOD,
        ProfitabilityBand.EXCELLENT,
    ]


def test_thresholds_reject_inverted_cutoffs() -> None:
    with pytest.raises(ValidationError):
        ClassifierThresholds(confidence_high=50, confidence_medium=70)
    with pytest.raises(ValidationError):
        ClassifierThresholds(band_good=0.3)
