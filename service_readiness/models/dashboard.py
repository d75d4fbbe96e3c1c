"""Output models for the dashboard and data-readiness result objects.

Every model serializes to the camelCase JSON contract via
``model_dump(by_alias=True)``. Scores and rates are floats in [0, 100].
"""

from __future__ import annotations

from datetime import date
from enum import StrEnum

from pydantic import Field

from service_readiness.models.common import ReadinessBase
from service_readiness.models.records import ServiceResult


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class QualityDimension(StrEnum):
    """The five open-data quality dimensions."""

    COMPLETENESS = "completeness"
    ACCURACY = "accuracy"
    CONSISTENCY = "consistency"
    TIMELINESS = "timeliness"
    METADATA = "metadata"


class RecommendationCategory(StrEnum):
    DATA = "data"
    OPERATIONAL = "operational"
    QUALITY = "quality"


class RecommendationPriority(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class BinningStrategy(StrEnum):
    """Histogram strategy chosen for a cost column."""

    EMPTY = "empty"
    LINEAR = "linear"
    HYBRID = "hybrid"


# ---------------------------------------------------------------------------
# Quality dimensions
# ---------------------------------------------------------------------------


class QualityDimensionResult(ReadinessBase):
    """Score and explanation for a single quality dimension."""

    score: float = Field(ge=0.0, le=100.0)
    details: str
    issues: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)


class DataQualityMetrics(ReadinessBase):
    """The five dimension results plus their arithmetic mean."""

    completeness: QualityDimensionResult
    accuracy: QualityDimensionResult
    consistency: QualityDimensionResult
    timeliness: QualityDimensionResult
    metadata: QualityDimensionResult
    overall_score: float = Field(ge=0.0, le=100.0)

    def scores(self) -> dict[QualityDimension, float]:
        return {dim: getattr(self, dim.value).score for dim in QualityDimension}


class FieldCompleteness(ReadinessBase):
    field: str
    completeness: float
    total_records: int
    complete_records: int
    missing_records: int
    description: str


# ---------------------------------------------------------------------------
# Cost distribution
# ---------------------------------------------------------------------------


class CostBin(ReadinessBase):
    """One histogram bucket of the positive-cost population."""

    min: float
    max: float
    count: int
    percentage: float
    label: str


# ---------------------------------------------------------------------------
# Group aggregates (ward / division)
# ---------------------------------------------------------------------------


class GroupAggregate(ReadinessBase):
    """Totals and rates for one ward or division."""

    key: int | str
    total_count: int
    total_cost: float
    avg_cost: float
    pass_count: int
    fail_count: int
    unknown_count: int
    pass_rate: float
    fail_rate: float
    unknown_rate: float
    cost_efficiency: float


class EfficiencyRankItem(ReadinessBase):
    key: int | str
    efficiency_score: float
    total_services: int
    total_cost: float
    pass_rate: float
    cost_per_passing_service: float | None
    rank: int


class ValidWardComparison(ReadinessBase):
    avg_cost_difference: float = 0.0
    pass_rate_difference: float = 0.0


class AnomalyImpact(ReadinessBase):
    percentage_of_total_services: float = 0.0
    percentage_of_total_cost: float = 0.0
    compared_to_valid_wards: ValidWardComparison = Field(
        default_factory=ValidWardComparison
    )


class WardAnomalyBlock(ReadinessBase):
    """Records whose ward code falls outside the valid domain."""

    count: int = 0
    total_cost: float = 0.0
    avg_cost: float = 0.0
    pass_rate: float = 0.0
    codes: dict[int, int] = Field(default_factory=dict)
    impact_analysis: AnomalyImpact = Field(default_factory=AnomalyImpact)
    recommendations: list[str] = Field(default_factory=list)


class WardAnalysis(ReadinessBase):
    valid_wards: list[GroupAggregate] = Field(default_factory=list)
    invalid_ward_anomaly: WardAnomalyBlock = Field(default_factory=WardAnomalyBlock)
    ward_efficiency_ranking: list[EfficiencyRankItem] = Field(default_factory=list)
    total_wards_covered: int = 0
    ward_coverage_percentage: float = 0.0


class DivisionAnalysis(ReadinessBase):
    divisions: list[GroupAggregate] = Field(default_factory=list)
    division_efficiency_ranking: list[EfficiencyRankItem] = Field(
        default_factory=list
    )


# ---------------------------------------------------------------------------
# Time series
# ---------------------------------------------------------------------------


class MonthOverMonthChange(ReadinessBase):
    services: float = 0.0
    cost: float = 0.0
    pass_rate: float = 0.0


class TimeSeriesPoint(ReadinessBase):
    """Monthly rollup keyed by ``YYYY-MM`` of the record start date."""

    period: str
    total_services: int
    total_cost: float
    avg_cost: float
    pass_count: int
    fail_count: int
    unknown_count: int
    pass_rate: float
    fail_rate: float
    unknown_rate: float
    mom_change: MonthOverMonthChange = Field(default_factory=MonthOverMonthChange)
    cost_efficiency: float


# ---------------------------------------------------------------------------
# Readiness
# ---------------------------------------------------------------------------


class ReadinessRecommendation(ReadinessBase):
    category: RecommendationCategory
    priority: RecommendationPriority
    issue: str
    recommendation: str
    estimated_impact: str


class ReadinessResult(ReadinessBase):
    """Composite open-data readiness score with synthesized findings."""

    overall_score: float = Field(ge=0.0, le=100.0)
    data_readiness_score: float
    operational_readiness_score: float
    quality_readiness_score: float
    consolidated_dimensions: dict[QualityDimension, float]
    critical_issues: list[str] = Field(default_factory=list)
    strengths: list[str] = Field(default_factory=list)
    recommendations: list[ReadinessRecommendation] = Field(default_factory=list)
    days_since_update: int | None = None
    out_of_domain_ward_count: int = 0


# ---------------------------------------------------------------------------
# KPI and supplemental breakdowns
# ---------------------------------------------------------------------------


class DateRange(ReadinessBase):
    earliest_service: date | None = None
    latest_service: date | None = None
    time_span: str = "N/A"


class KpiData(ReadinessBase):
    total_services: int = 0
    total_cost: float = 0.0
    avg_cost: float = 0.0
    pass_rate: float = 0.0
    fail_rate: float = 0.0
    unknown_rate: float = 0.0
    unique_divisions: int = 0
    unique_wards: int = 0
    date_range: DateRange = Field(default_factory=DateRange)


class ResultBreakdown(ReadinessBase):
    result: ServiceResult
    count: int
    percentage: float
    total_cost: float
    avg_cost: float


class TopListItem(ReadinessBase):
    id: int | str
    name: str
    value: float
    count: int
    avg_cost: float
    pass_rate: float


class HighestExpenseItem(ReadinessBase):
    id: int
    division: str | None
    ward: int | None
    cost: float
    result: ServiceResult
    start_date: date | None
    end_date: date | None
    notes: str | None
    rank: int


# ---------------------------------------------------------------------------
# Top-level result objects
# ---------------------------------------------------------------------------


class DashboardResult(ReadinessBase):
    """Full result object for one invocation over a record set."""

    kpi_data: KpiData
    data_quality: DataQualityMetrics
    cost_distribution: list[CostBin] = Field(default_factory=list)
    ward_analysis: WardAnalysis
    division_analysis: DivisionAnalysis
    time_series_data: list[TimeSeriesPoint] = Field(default_factory=list)
    readiness_metrics: ReadinessResult
    services_by_result: list[ResultBreakdown] = Field(default_factory=list)
    top_divisions: list[TopListItem] = Field(default_factory=list)
    top_wards: list[TopListItem] = Field(default_factory=list)
    highest_expenses: list[HighestExpenseItem] = Field(default_factory=list)
    heatmap_data: list[tuple[int, int, float]] = Field(default_factory=list)
    field_completeness: list[FieldCompleteness] = Field(default_factory=list)


class DataReadinessResult(ReadinessBase):
    """Reduced result object for the data-readiness view."""

    kpi_data: KpiData
    data_quality: DataQualityMetrics
    readiness_metrics: ReadinessResult
    field_completeness: list[FieldCompleteness] = Field(default_factory=list)
