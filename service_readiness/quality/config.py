"""Quality scoring configuration.

Every weighting constant and threshold used by the dimension
calculators, the readiness aggregator, the cost binner and the group
aggregators. Defaults reproduce the reference tuning for the Toronto
service-results dataset and can be overridden per call.
"""

from __future__ import annotations

from pydantic import Field

from service_readiness.models.common import ReadinessBase


class QualityScoringConfig(ReadinessBase):
    """Configuration for the readiness scoring engine."""

    # --- Record domain ---
    ward_max: int = 25
    ward_sentinel_code: int = 66

    # --- Accuracy ---
    max_years_past: int = 50
    max_years_future: int = 1
    unknown_result_penalty: float = 0.5

    # --- Consistency ---
    unknown_high_cost_threshold: float = 100_000.0
    division_casing_min_length: int = 4

    # --- Timeliness ---
    recency_horizon_days: int = 365
    gap_days_per_point: float = 30.0
    recency_weight: float = 0.6
    coverage_weight: float = 0.4
    default_coverage_score: float = 50.0
    stale_issue_days: int = 90

    # --- Metadata ---
    metadata_weights: dict[str, float] = Field(
        default_factory=lambda: {
            "field_diversity": 0.25,
            "value_diversity": 0.25,
            "notes_quality": 0.25,
            "uniqueness": 0.25,
        },
    )
    notes_any_credit: float = 30.0
    notes_meaningful_credit: float = 70.0
    notes_meaningful_length: int = 10
    division_diversity_ratio: float = 0.01

    # --- Per-dimension issue thresholds (issues emitted below these) ---
    issue_thresholds: dict[str, float] = Field(
        default_factory=lambda: {
            "completeness": 70.0,
            "accuracy": 95.0,
            "consistency": 90.0,
            "timeliness": 70.0,
            "metadata": 80.0,
        },
    )

    # --- Readiness rules ---
    poor_thresholds: dict[str, float] = Field(
        default_factory=lambda: {
            "completeness": 70.0,
            "accuracy": 80.0,
            "consistency": 70.0,
            "timeliness": 10.0,
            "metadata": 60.0,
        },
    )
    good_thresholds: dict[str, float] = Field(
        default_factory=lambda: {
            "completeness": 90.0,
            "accuracy": 95.0,
            "consistency": 90.0,
            "timeliness": 70.0,
            "metadata": 80.0,
        },
    )
    # Points below the poor threshold at which priority escalates.
    high_priority_gap: float = 30.0
    medium_priority_gap: float = 10.0
    stale_data_days: int = 365

    # --- Cost distribution ---
    hybrid_skew_ratio: float = 100.0
    lower_quantile: float = 0.75
    min_bins: int = 6
    max_bins: int = 12
    bin_count_factor: float = 0.8
    linear_bin_share: float = 0.7

    # --- Efficiency ---
    efficiency_cost_unit: float = 1000.0

    # --- Highest expenses / top lists ---
    highest_expenses_limit: int = 50
    top_list_limit: int = 5
