"""Headline figures for the order-suggestion panel and the dashboard cards."""

from __future__ import annotations

import math
from typing import Any, Dict, Iterable, List, Optional

from ..models.schemas import (
    DashboardKpis,
    OrderSuggestion,
    OrderSuggestions,
    RankedSuggestion,
    SuggestionSummary,
    TrendMetric,
)
from .classification_service import parse_urgency, urgency_presentation

TREND_LABELS = {
    "inventory_turnover": "Inventory turnover",
    "stock_efficiency": "Stock efficiency",
}


def _ratio_pct(numerator: Optional[float], denominator: Optional[float]) -> Optional[float]:
    if numerator is None or not denominator:
        return None
    value = numerator / denominator * 100.0
    return round(value, 4) if math.isfinite(value) else None


def sort_by_urgency(suggestions: Iterable[OrderSuggestion]) -> List[RankedSuggestion]:
    """Rank suggestions by urgency weight; ties keep payload order."""

    ranked = [
        RankedSuggestion(
            suggestion=suggestion,
            urgency_class=parse_urgency(suggestion.urgency),
            presentation=urgency_presentation(suggestion.urgency),
        )
        for suggestion in suggestions
    ]
    return sorted(ranked, key=lambda entry: entry.presentation.sort_weight)


def summarize_suggestions(payload: OrderSuggestions) -> SuggestionSummary:
    optimization = payload.optimization
    total_suggestions = (
        payload.total_suggestions
        if payload.total_suggestions is not None
        else len(payload.book_suggestions)
    )
    return SuggestionSummary(
        priority=payload.priority,
        suggestion_type=payload.suggestion_type,
        total_suggestions=total_suggestions,
        total_order_value=float(payload.total_order_value or 0.0),
        expected_revenue=optimization.expected_revenue if optimization else None,
        expected_roi_pct=(
            _ratio_pct(optimization.expected_profit, optimization.suggested_spending)
            if optimization
            else None
        ),
        budget_utilisation_pct=(
            _ratio_pct(optimization.suggested_spending, optimization.total_budget)
            if optimization
            else None
        ),
        suggestions=sort_by_urgency(payload.book_suggestions),
    )


def _int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def _float(value: Any) -> float:
    try:
        number = float(value or 0.0)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def dashboard_kpis(payload: Optional[Dict[str, Any]]) -> DashboardKpis:
    """Extract the KPI card values from a real-time dashboard payload.

    The payload is loosely structured, so every lookup tolerates absence and
    counts default to zero.
    """

    payload = payload or {}
    kpis = payload.get("kpis")
    if not isinstance(kpis, dict):
        kpis = {}
    health = payload.get("systemHealth")
    if not isinstance(health, dict):
        health = {}

    trends: List[TrendMetric] = []
    for raw in payload.get("trends") or []:
        if not isinstance(raw, dict):
            continue
        metric = raw.get("metric")
        trends.append(
            TrendMetric(
                metric=metric,
                label=TREND_LABELS.get(metric, metric),
                value=raw.get("value"),
                change=raw.get("change"),
                trend=raw.get("trend"),
            )
        )

    return DashboardKpis(
        total_items=_int(kpis.get("totalItems")),
        total_value=_float(kpis.get("totalValue")),
        low_stock_items=_int(kpis.get("lowStockItems")),
        out_of_stock_items=_int(kpis.get("outOfStockItems")),
        trends=trends,
        system_status=health.get("status"),
        last_updated=health.get("lastUpdated"),
    )
