from __future__ import annotations

from pathlib import Path
import sys

import pytest

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

from backend.app.core.config import ClassifierThresholds
from backend.app.models.schemas import (
    ConfidenceClass,
    DemandRecord,
    PredictionConfidence,
    PredictionData,
    SalesRecord,
    Severity,
)
from backend.app.services.timeline_service import (
    ReconciliationError,
    key_predictions,
    parse_date_key,
    reconcile,
    reconcile_payload,
)


def _demand(day: str, demand: float = 10.0, **extra) -> DemandRecord:
    return DemandRecord(forecast_date=day, predicted_demand=demand, **extra)


def _sales(day: str, revenue: float = 100.0, **extra) -> SalesRecord:
    return SalesRecord(forecast_period_start=day, predicted_revenue=revenue, **extra)


def test_matching_dates_merge_into_one_point() -> None:
    result = reconcile(
        [_demand("2024-01-01", 10, current_stock=5, book_title="Dune")],
        [_sales("2024-01-01", 250, predicted_order_count=4, category_name="Fiction")],
    )

    assert len(result.points) == 1
    point = result.points[0]
    assert point.date == "2024-01-01"
    assert point.source == "merged"
    assert point.predicted_demand == 10
    assert point.current_stock == 5
    assert point.book_title == "Dune"
    assert point.predicted_revenue == 250
    assert point.predicted_order_count == 4
    assert point.category_name == "Fiction"
    assert result.issues == []


def test_disjoint_dates_are_kept_and_sorted() -> None:
    result = reconcile(
        [_demand("2024-01-03"), _demand("2024-01-01")],
        [_sales("2024-01-04"), _sales("2024-01-02")],
    )

    assert [p.date for p in result.points] == [
        "2024-01-01",
        "2024-01-02",
        "2024-01-03",
        "2024-01-04",
    ]
    assert [p.source for p in result.points] == ["demand", "sales", "demand", "sales"]
    sales_only = result.points[1]
    assert sales_only.predicted_demand is None
    assert sales_only.predicted_revenue == 100.0


def test_one_point_per_distinct_key() -> None:
    demand = [_demand("2024-02-01"), _demand("2024-02-02"), _demand("2024-02-03")]
    sales = [_sales("2024-02-02"), _sales("2024-02-05")]

    result = reconcile(demand, sales)

    keys = {d.forecast_date for d in demand} | {s.forecast_period_start for s in sales}
    assert len(result.points) == len(keys)
    assert len({p.date for p in result.points}) == len(result.points)


def test_duplicate_sales_dates_last_write_wins() -> None:
    result = reconcile(
        [_demand("2024-01-01")],
        [_sales("2024-01-01", 100), _sales("2024-01-01", 300)],
    )

    assert len(result.points) == 1
    assert result.points[0].predicted_revenue == 300


def test_duplicate_demand_dates_last_write_wins() -> None:
    result = reconcile([_demand("2024-01-01", 1), _demand("2024-01-01", 7)], [])

    assert len(result.points) == 1
    assert result.points[0].predicted_demand == 7


def test_sales_without_category_keeps_existing_name() -> None:
    result = reconcile(
        [],
        [_sales("2024-01-01", 1, category_name="Poetry"), _sales("2024-01-01", 2)],
    )

    assert result.points[0].category_name == "Poetry"
    assert result.points[0].predicted_revenue == 2


def test_missing_sales_values_do_not_erase_earlier_ones() -> None:
    result = reconcile(
        [_demand("2024-01-01", 4)],
        [
            _sales("2024-01-01", 250, predicted_order_count=6),
            SalesRecord(forecast_period_start="2024-01-01", category_name="Fiction"),
        ],
    )

    point = result.points[0]
    assert point.predicted_revenue == 250
    assert point.predicted_order_count == 6
    assert point.category_name == "Fiction"
    assert point.predicted_demand == 4


def test_missing_demand_values_do_not_erase_earlier_ones() -> None:
    result = reconcile(
        [_demand("2024-01-01", 5, current_stock=2), DemandRecord(forecast_date="2024-01-01", current_stock=9)],
        [],
    )

    assert result.points[0].predicted_demand == 5
    assert result.points[0].current_stock == 9


def test_empty_inputs() -> None:
    assert reconcile([], []).points == []
    assert reconcile(None, None).points == []

    only_sales = reconcile([], [_sales("2024-03-01")])
    assert [p.source for p in only_sales.points] == ["sales"]


def test_datetime_keys_order_by_instant() -> None:
    result = reconcile(
        [_demand("2024-01-02T00:00:00Z")],
        [_sales("2024-01-01T12:30:00")],
    )

    assert [p.date for p in result.points] == ["2024-01-01T12:30:00", "2024-01-02T00:00:00Z"]


def test_same_day_timestamps_sort_ascending() -> None:
    result = reconcile(
        [_demand("2024-01-01T18:00:00")],
        [_sales("2024-01-01T06:00:00")],
    )

    assert [p.date for p in result.points] == ["2024-01-01T06:00:00", "2024-01-01T18:00:00"]


def test_mixed_date_and_offset_keys_compare() -> None:
    result = reconcile(
        [_demand("2024-01-01T09:00:00+09:00"), _demand("2024-01-01")],
        [_sales("2023-12-31T23:30:00Z"), _sales("2024-01-01T01:00:00")],
    )

    assert [p.date for p in result.points] == [
        "2023-12-31T23:30:00Z",
        "2024-01-01T09:00:00+09:00",
        "2024-01-01",
        "2024-01-01T01:00:00",
    ]
    assert result.issues == []


def test_invalid_dates_are_appended_with_issue() -> None:
    result = reconcile(
        [_demand("not-a-date", 3), _demand("2024-01-02")],
        [_sales("2024-01-01"), SalesRecord(predicted_revenue=9.0)],
    )

    assert [p.date for p in result.points] == ["2024-01-01", "2024-01-02", "not-a-date", None]
    assert [issue.code for issue in result.issues] == ["invalid_date", "invalid_date"]
    assert result.issues[0].date == "not-a-date"
    assert result.issues[0].source == "demand"
    assert result.issues[1].source == "sales"
    assert result.points[2].predicted_demand == 3


def test_inputs_are_not_mutated() -> None:
    demand = [_demand("2024-01-02", book_title="A"), _demand("2024-01-01", book_title="B")]
    sales = [_sales("2024-01-01")]
    demand_before = [d.model_dump() for d in demand]
    sales_before = [s.model_dump() for s in sales]

    reconcile(demand, sales)

    assert [d.model_dump() for d in demand] == demand_before
    assert [s.model_dump() for s in sales] == sales_before


def test_parse_date_key_errors() -> None:
    assert parse_date_key("2024-05-06").isoformat() == "2024-05-06T00:00:00+00:00"
    assert parse_date_key("2024-05-06T10:00:00+02:00").isoformat() == "2024-05-06T08:00:00+00:00"
    for raw in (None, "", "  ", "06/05/2024"):
        with pytest.raises(ReconciliationError):
            parse_date_key(raw)


def test_key_predictions_are_limited_and_classified() -> None:
    demand = [
        _demand("2024-01-01", book_title="A", confidence_level=85),
        _demand("2024-01-02", book_title="B", confidence_level=60),
        _demand("2024-01-03", book_title="C", confidence_level=None),
        _demand("2024-01-04", book_title="D", confidence_level=10),
    ]

    highlighted = key_predictions(demand)

    assert [k.book_title for k in highlighted] == ["A", "B", "C"]
    assert [k.confidence_class for k in highlighted] == [
        ConfidenceClass.HIGH,
        ConfidenceClass.MEDIUM,
        ConfidenceClass.UNKNOWN,
    ]
    assert highlighted[0].presentation.icon == "check_circle"


def test_reconcile_payload_prefers_backend_confidence_label() -> None:
    payload = PredictionData(
        algorithm="ensemble",
        accuracy=72.5,
        demand_predictions=[_demand("2024-01-01")],
        confidence=PredictionConfidence(
            overall_confidence=90,
            confidence_level="low",
            uncertainty_factors=["holiday season"],
        ),
    )

    response = reconcile_payload(payload, ClassifierThresholds(reorder_point=25))

    assert response.confidence_class == ConfidenceClass.LOW
    assert response.confidence_presentation.color == "#f44336"
    assert response.accuracy_severity == Severity.WARNING
    assert response.uncertainty_factors == ["holiday season"]
    assert response.reorder_point == 25


def test_reconcile_payload_without_confidence() -> None:
    response = reconcile_payload(PredictionData())

    assert response.points == []
    assert response.confidence_class == ConfidenceClass.UNKNOWN
    assert response.accuracy_severity is None
    assert response.reorder_point == 10.0
