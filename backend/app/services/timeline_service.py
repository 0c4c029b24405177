r"""backend\app\services\timeline_service.py

Merge demand forecasts and sales forecasts into one date-ordered timeline.

The analytics backend returns two independently indexed streams: per-book
demand forecasts keyed by ``forecastDate`` and per-category sales forecasts
keyed by ``forecastPeriodStart``.  The chart needs a single series with one
entry per date, so the streams are joined on the exact date key through a
dictionary (two linear passes) and the result is ordered by the parsed date.

Points whose key cannot be parsed are never dropped.  They are appended
after every orderable point, in the order they were first seen, and an
``invalid_date`` issue is reported for each of them.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timezone
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..core.config import ClassifierThresholds
from ..models.schemas import (
    DemandRecord,
    ForecastPoint,
    KeyPrediction,
    PredictionData,
    ReconciliationIssue,
    ReconciliationResult,
    SalesRecord,
    TimelineResponse,
)
from .classification_service import (
    accuracy_severity,
    classify_confidence,
    confidence_presentation,
    parse_confidence_class,
)

LOGGER = logging.getLogger(__name__)

KEY_PREDICTION_LIMIT = 3


class ReconciliationError(ValueError):
    """Raised when a timeline point cannot be placed in date order."""

    def __init__(self, raw_date: Optional[str], reason: str) -> None:
        self.raw_date = raw_date
        self.reason = reason
        super().__init__(f"invalid date {raw_date!r}: {reason}")


def parse_date_key(raw: Optional[str]) -> datetime:
    """Return the UTC instant for an ISO-8601 date or datetime string.

    A date-only key is midnight of that day and a naive datetime is read as
    UTC, so mixed keys compare without raising.
    """

    if raw is None:
        raise ReconciliationError(raw, "date is missing")
    text = str(raw).strip()
    if not text:
        raise ReconciliationError(raw, "date is empty")
    try:
        return datetime.combine(date.fromisoformat(text), time.min, tzinfo=timezone.utc)
    except ValueError:
        pass
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError as exc:
        raise ReconciliationError(raw, "not an ISO-8601 date") from exc
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


_DEMAND_FIELDS = ("predicted_demand", "current_stock", "book_title", "category_code", "confidence_level")
_SALES_FIELDS = ("predicted_revenue", "predicted_order_count", "category_name")


def _merge_fields(point: ForecastPoint, record: object, fields: Tuple[str, ...]) -> None:
    # A later record only overwrites the values it actually carries
    for name in fields:
        value = getattr(record, name)
        if value is not None:
            setattr(point, name, value)


def _order(points: Iterable[ForecastPoint]) -> Tuple[List[ForecastPoint], List[ReconciliationIssue]]:
    dated: List[Tuple[datetime, ForecastPoint]] = []
    undated: List[ForecastPoint] = []
    issues: List[ReconciliationIssue] = []

    for point in points:
        try:
            dated.append((parse_date_key(point.date), point))
        except ReconciliationError as exc:
            undated.append(point)
            issues.append(
                ReconciliationIssue(
                    code="invalid_date",
                    date=point.date,
                    source=point.source,
                    message=str(exc),
                )
            )

    # ``sorted`` is stable, so points sharing an instant keep insertion order
    dated.sort(key=lambda pair: pair[0])
    return [point for _, point in dated] + undated, issues


def reconcile(
    demand_predictions: Optional[Sequence[DemandRecord]],
    sales_predictions: Optional[Sequence[SalesRecord]],
) -> ReconciliationResult:
    """Join demand and sales forecasts into one point per distinct date key.

    Demand records are placed first.  A sales record whose
    ``forecast_period_start`` equals an existing key is merged into that
    point; otherwise it starts a sales-only point.  When several records of
    the same stream share a key, the later record wins for every field it
    carries; a missing field keeps the earlier value.
    """

    by_date: Dict[Optional[str], ForecastPoint] = {}

    for record in demand_predictions or ():
        key = record.forecast_date
        point = by_date.get(key)
        if point is None:
            point = by_date[key] = ForecastPoint(date=key, source="demand")
        else:
            LOGGER.debug("Multiple demand forecasts share date %s; keeping the latest", key)
        _merge_fields(point, record, _DEMAND_FIELDS)

    for record in sales_predictions or ():
        key = record.forecast_period_start
        point = by_date.get(key)
        if point is None:
            point = by_date[key] = ForecastPoint(date=key, source="sales")
        elif point.source == "demand":
            point.source = "merged"
        _merge_fields(point, record, _SALES_FIELDS)

    points, issues = _order(by_date.values())
    for issue in issues:
        LOGGER.warning("Timeline point left unordered: %s", issue.message)
    return ReconciliationResult(points=points, issues=issues)


def key_predictions(
    demand_predictions: Sequence[DemandRecord],
    thresholds: Optional[ClassifierThresholds] = None,
    limit: int = KEY_PREDICTION_LIMIT,
) -> List[KeyPrediction]:
    """Return the leading demand predictions with their confidence chips."""

    highlighted: List[KeyPrediction] = []
    for record in list(demand_predictions)[: max(limit, 0)]:
        confidence_class = classify_confidence(record.confidence_level, thresholds)
        highlighted.append(
            KeyPrediction(
                book_title=record.book_title,
                predicted_demand=record.predicted_demand,
                current_stock=record.current_stock,
                demand_trend=record.demand_trend,
                confidence_level=record.confidence_level,
                confidence_class=confidence_class,
                presentation=confidence_presentation(confidence_class),
            )
        )
    return highlighted


def reconcile_payload(
    prediction_data: PredictionData,
    thresholds: Optional[ClassifierThresholds] = None,
) -> TimelineResponse:
    """Build everything the forecast chart needs from one prediction payload."""

    thresholds = thresholds or ClassifierThresholds()
    result = reconcile(prediction_data.demand_predictions, prediction_data.sales_predictions)

    confidence = prediction_data.confidence
    overall = confidence.overall_confidence if confidence else None
    # Prefer the class supplied by the backend; derive it from the percentage otherwise
    confidence_class = parse_confidence_class(confidence.confidence_level if confidence else None)
    if confidence_class is None:
        confidence_class = classify_confidence(overall, thresholds)

    return TimelineResponse(
        algorithm=prediction_data.algorithm,
        time_horizon=prediction_data.time_horizon,
        points=result.points,
        issues=result.issues,
        overall_confidence=overall,
        confidence_class=confidence_class,
        confidence_presentation=confidence_presentation(confidence_class),
        data_quality=confidence.data_quality if confidence else None,
        accuracy=prediction_data.accuracy,
        accuracy_severity=accuracy_severity(prediction_data.accuracy, thresholds),
        key_predictions=key_predictions(prediction_data.demand_predictions, thresholds),
        seasonal_factors=prediction_data.seasonal_factors,
        uncertainty_factors=confidence.uncertainty_factors if confidence else [],
        recommendation=confidence.recommendation if confidence else None,
        reorder_point=thresholds.reorder_point,
    )
