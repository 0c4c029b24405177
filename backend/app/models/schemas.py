r"""backend\app\models\schemas.py

Pydantic models used throughout the API.

Inbound models mirror the JSON payloads produced by the analytics backend,
which speaks camelCase.  Every field other than identifiers is optional so
that partially populated payloads still validate; the services treat a
missing value as "unknown" rather than as an error.  Responses serialise
with the same camelCase aliases.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


SuggestionId = Union[int, str]


class CamelModel(BaseModel):
    """Base model accepting both camelCase and snake_case keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Classification enums


class ConfidenceClass(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    UNKNOWN = "UNKNOWN"


class UrgencyClass(str, Enum):
    IMMEDIATE = "IMMEDIATE"
    WITHIN_WEEK = "WITHIN_WEEK"
    WITHIN_MONTH = "WITHIN_MONTH"
    UNKNOWN = "UNKNOWN"


class ProfitabilityBand(str, Enum):
    EXCELLENT = "EXCELLENT"
    GOOD = "GOOD"
    AVERAGE = "AVERAGE"
    POOR = "POOR"
    VERY_POOR = "VERY_POOR"


class Severity(str, Enum):
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class Presentation(CamelModel):
    """Display hints for a categorical value."""

    icon: str
    color: str
    chip_color: str = "default"
    sort_weight: int = 0


# ---------------------------------------------------------------------------
# Forecast payloads


class DemandRecord(CamelModel):
    """A single demand forecast for one book on one date."""

    book_title: Optional[str] = None
    forecast_date: Optional[str] = None
    predicted_demand: Optional[float] = None
    current_stock: Optional[float] = None
    demand_trend: Optional[str] = None
    confidence_level: Optional[float] = None
    category_code: Optional[str] = None


class SalesRecord(CamelModel):
    """A sales forecast for one category over a period."""

    category_name: Optional[str] = None
    forecast_period_start: Optional[str] = None
    predicted_revenue: Optional[float] = None
    predicted_order_count: Optional[float] = None


class SeasonalFactor(CamelModel):
    season: Optional[str] = None
    seasonal_multiplier: Optional[float] = None
    description: Optional[str] = None


class PredictionConfidence(CamelModel):
    overall_confidence: Optional[float] = None
    confidence_level: Optional[str] = None
    data_quality: Optional[str] = None
    uncertainty_factors: List[str] = Field(default_factory=list)
    recommendation: Optional[str] = None


class PredictionData(CamelModel):
    """Prediction payload as returned by the analytics backend."""

    algorithm: Optional[str] = None
    time_horizon: Optional[str] = None
    accuracy: Optional[float] = None
    demand_predictions: List[DemandRecord] = Field(default_factory=list)
    sales_predictions: List[SalesRecord] = Field(default_factory=list)
    seasonal_factors: List[SeasonalFactor] = Field(default_factory=list)
    confidence: Optional[PredictionConfidence] = None


class ForecastPoint(CamelModel):
    """One entry of the reconciled timeline; at most one per date key."""

    date: Optional[str] = Field(None, description="Date key exactly as received")
    source: Literal["demand", "sales", "merged"] = "demand"
    predicted_demand: Optional[float] = None
    current_stock: Optional[float] = None
    book_title: Optional[str] = None
    category_code: Optional[str] = None
    confidence_level: Optional[float] = None
    predicted_revenue: Optional[float] = None
    predicted_order_count: Optional[float] = None
    category_name: Optional[str] = None


class ReconciliationIssue(CamelModel):
    """A problem found while ordering the timeline; the point is still kept."""

    code: Literal["invalid_date"] = "invalid_date"
    date: Optional[str] = None
    source: Literal["demand", "sales", "merged"]
    message: str


class ReconciliationResult(CamelModel):
    points: List[ForecastPoint]
    issues: List[ReconciliationIssue] = Field(default_factory=list)


class KeyPrediction(CamelModel):
    book_title: Optional[str] = None
    predicted_demand: Optional[float] = None
    current_stock: Optional[float] = None
    demand_trend: Optional[str] = None
    confidence_level: Optional[float] = None
    confidence_class: ConfidenceClass
    presentation: Presentation


class TimelineResponse(CamelModel):
    """Reconciled timeline plus the display classifications around it."""

    algorithm: Optional[str] = None
    time_horizon: Optional[str] = None
    points: List[ForecastPoint]
    issues: List[ReconciliationIssue] = Field(default_factory=list)
    overall_confidence: Optional[float] = None
    confidence_class: ConfidenceClass
    confidence_presentation: Presentation
    data_quality: Optional[str] = None
    accuracy: Optional[float] = None
    accuracy_severity: Optional[Severity] = None
    key_predictions: List[KeyPrediction] = Field(default_factory=list)
    seasonal_factors: List[SeasonalFactor] = Field(default_factory=list)
    uncertainty_factors: List[str] = Field(default_factory=list)
    recommendation: Optional[str] = None
    reorder_point: float


# ---------------------------------------------------------------------------
# Profitability


class ProfitabilityItem(CamelModel):
    item_name: Optional[str] = None
    revenue: Optional[float] = None
    profit: Optional[float] = None
    profit_margin: Optional[float] = None
    roi: Optional[float] = None


class ProfitabilityCell(ProfitabilityItem):
    normalized: float = Field(..., description="Margin scaled to [0, 1] across the data set")
    band: ProfitabilityBand
    color: str


class ProfitabilityResult(CamelModel):
    items: List[ProfitabilityCell]
    min_margin: Optional[float] = None
    max_margin: Optional[float] = None
    degenerate: bool = False


class LegendEntry(CamelModel):
    band: ProfitabilityBand
    color: str
    label: str


class ProfitabilityResponse(ProfitabilityResult):
    legend: List[LegendEntry]


# ---------------------------------------------------------------------------
# Order suggestions


class OrderSuggestion(CamelModel):
    """A single recommended reorder action for one book."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    book_id: SuggestionId
    book_title: Optional[str] = None
    isbn13: Optional[str] = None
    current_stock: Optional[int] = None
    suggested_quantity: Optional[int] = None
    unit_cost: Optional[float] = None
    total_cost: Optional[float] = None
    reason: Optional[str] = None
    urgency: Optional[str] = None
    days_until_stockout: Optional[int] = None
    expected_roi: Optional[float] = None


class OrderOptimization(CamelModel):
    total_budget: Optional[float] = None
    suggested_spending: Optional[float] = None
    expected_revenue: Optional[float] = None
    expected_profit: Optional[float] = None
    cash_flow_impact: Optional[str] = None
    risk_level: Optional[str] = None
    optimization_recommendations: List[str] = Field(default_factory=list)


class RiskFactor(CamelModel):
    risk_type: Optional[str] = None
    description: Optional[str] = None
    mitigation: Optional[str] = None
    severity: Optional[str] = None


class OrderSuggestions(CamelModel):
    suggestion_type: Optional[str] = None
    priority: Optional[str] = None
    total_suggestions: Optional[int] = None
    total_order_value: Optional[float] = None
    book_suggestions: List[OrderSuggestion] = Field(default_factory=list)
    category_suggestions: List[Dict[str, Any]] = Field(default_factory=list)
    optimization: Optional[OrderOptimization] = None
    risk_factors: List[RiskFactor] = Field(default_factory=list)


class RankedSuggestion(CamelModel):
    suggestion: OrderSuggestion
    urgency_class: UrgencyClass
    presentation: Presentation


class SuggestionSummary(CamelModel):
    priority: Optional[str] = None
    suggestion_type: Optional[str] = None
    total_suggestions: int
    total_order_value: float
    expected_revenue: Optional[float] = None
    expected_roi_pct: Optional[float] = None
    budget_utilisation_pct: Optional[float] = None
    suggestions: List[RankedSuggestion] = Field(default_factory=list)


class BulkApproveRequest(CamelModel):
    selected_ids: List[SuggestionId] = Field(..., description="Selected ids in selection order")
    suggestions: List[OrderSuggestion]


class BulkApproveResponse(CamelModel):
    approved: List[OrderSuggestion]
    skipped: List[SuggestionId]
    selected_ids: List[SuggestionId]


class QuantityChange(CamelModel):
    quantity: int = Field(..., description="New quantity; not clamped")


# ---------------------------------------------------------------------------
# Dashboard


class TrendMetric(CamelModel):
    metric: Optional[str] = None
    label: Optional[str] = None
    value: Optional[Any] = None
    change: Optional[str] = None
    trend: Optional[str] = None


class DashboardKpis(CamelModel):
    total_items: int = 0
    total_value: float = 0.0
    low_stock_items: int = 0
    out_of_stock_items: int = 0
    trends: List[TrendMetric] = Field(default_factory=list)
    system_status: Optional[str] = None
    last_updated: Optional[str] = None
