"""Readiness aggregator -- composite open-data readiness score.

Combines the five dimension scores into an overall score and evaluates
threshold rules over the scores and record-level facts (out-of-domain
ward count, days since last update) to synthesize critical issues,
strengths and structured recommendations.

Deterministic -- no I/O.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date

from service_readiness.models.common import today
from service_readiness.models.dashboard import (
    DataQualityMetrics,
    QualityDimension,
    ReadinessRecommendation,
    ReadinessResult,
    RecommendationCategory,
    RecommendationPriority,
)
from service_readiness.models.records import ServiceRecord, coerce_records
from service_readiness.quality.config import QualityScoringConfig
from service_readiness.quality.dimensions import QualityDimensionCalculator

logger = logging.getLogger(__name__)

NO_DATA_ISSUE = "No data available for analysis"


@dataclass(frozen=True)
class DimensionRule:
    """Wording attached to one dimension's poor/good thresholds."""

    dimension: QualityDimension
    category: RecommendationCategory
    label: str
    critical_issue: str
    recommendation: str
    estimated_impact: str
    strength: str
    sustain: str


DIMENSION_RULES: tuple[DimensionRule, ...] = (
    DimensionRule(
        dimension=QualityDimension.COMPLETENESS,
        category=RecommendationCategory.DATA,
        label="Data completeness",
        critical_issue="Incomplete data records affecting analysis quality",
        recommendation=(
            "Implement mandatory field validation and convert UNKNOWN results "
            "to PASS/FAIL"
        ),
        estimated_impact="Improve data reliability by 15-20%",
        strength="High data completeness ({score:.1f}%) across required fields",
        sustain="Keep required-field constraints in place at data entry",
    ),
    DimensionRule(
        dimension=QualityDimension.ACCURACY,
        category=RecommendationCategory.QUALITY,
        label="Data accuracy",
        critical_issue="Validation errors in wards, dates, costs or results",
        recommendation="Implement data validation rules and quality monitoring",
        estimated_impact="Reduce data errors by 50%",
        strength=(
            "Excellent data accuracy ({score:.1f}%) with minimal validation errors"
        ),
        sustain="Continue automated validation of ward, date and cost ranges",
    ),
    DimensionRule(
        dimension=QualityDimension.CONSISTENCY,
        category=RecommendationCategory.QUALITY,
        label="Data consistency",
        critical_issue="Cross-field business rules frequently violated",
        recommendation="Enforce cross-field validation and standardize text formatting",
        estimated_impact="Improve comparability of records across divisions",
        strength="Strong data consistency ({score:.1f}%) following business rules",
        sustain="Document the business rules applied at data entry",
    ),
    DimensionRule(
        dimension=QualityDimension.TIMELINESS,
        category=RecommendationCategory.OPERATIONAL,
        label="Data freshness",
        critical_issue="Data staleness: dataset is significantly outdated",
        recommendation=(
            "Refresh data from source systems and establish automated update pipeline"
        ),
        estimated_impact="Improve data currency and user trust",
        strength="Timely data ({score:.1f}%) with regular updates",
        sustain="Keep the current publication cadence",
    ),
    DimensionRule(
        dimension=QualityDimension.METADATA,
        category=RecommendationCategory.DATA,
        label="Metadata quality",
        critical_issue="Sparse metadata limits reuse of the dataset",
        recommendation="Add descriptive notes and unique record identifiers",
        estimated_impact="Improve discoverability and reuse of published data",
        strength="Good metadata quality ({score:.1f}%) with strong documentation",
        sustain="Maintain the data dictionary alongside each release",
    ),
)


class ReadinessAggregator:
    """Builds a ``ReadinessResult`` from dimension scores and record facts."""

    def __init__(self, config: QualityScoringConfig | None = None) -> None:
        self._config = config or QualityScoringConfig()

    def priority_for_gap(self, gap: float) -> RecommendationPriority:
        """Priority by how many points a score falls below its threshold."""
        if gap >= self._config.high_priority_gap:
            return RecommendationPriority.HIGH
        if gap >= self._config.medium_priority_gap:
            return RecommendationPriority.MEDIUM
        return RecommendationPriority.LOW

    def aggregate(
        self,
        quality: DataQualityMetrics,
        *,
        total_records: int,
        out_of_domain_ward_count: int = 0,
        out_of_domain_codes: Sequence[int] = (),
        days_since_update: int | None = None,
    ) -> ReadinessResult:
        """Evaluate readiness rules over precomputed dimension scores."""
        scores = quality.scores()
        overall = sum(scores.values()) / len(scores)

        critical_issues: list[str] = []
        strengths: list[str] = []
        recommendations: list[ReadinessRecommendation] = []

        if total_records == 0:
            critical_issues.append(NO_DATA_ISSUE)
            recommendations.append(
                ReadinessRecommendation(
                    category=RecommendationCategory.DATA,
                    priority=RecommendationPriority.HIGH,
                    issue="No records supplied",
                    recommendation="Expand the date range or check the data source",
                    estimated_impact="Enables any readiness assessment",
                )
            )
        else:
            self._evaluate_dimensions(scores, critical_issues, strengths, recommendations)
            self._evaluate_record_facts(
                out_of_domain_ward_count,
                out_of_domain_codes,
                days_since_update,
                critical_issues,
                recommendations,
            )

        logger.debug(
            "Readiness %.2f: %d critical, %d strengths, %d recommendations",
            overall,
            len(critical_issues),
            len(strengths),
            len(recommendations),
        )
        return ReadinessResult(
            overall_score=overall,
            data_readiness_score=overall,
            operational_readiness_score=scores[QualityDimension.TIMELINESS],
            quality_readiness_score=(
                scores[QualityDimension.ACCURACY]
                + scores[QualityDimension.CONSISTENCY]
                + scores[QualityDimension.COMPLETENESS]
            )
            / 3,
            consolidated_dimensions=scores,
            critical_issues=critical_issues,
            strengths=strengths,
            recommendations=recommendations,
            days_since_update=days_since_update,
            out_of_domain_ward_count=out_of_domain_ward_count,
        )

    def _evaluate_dimensions(
        self,
        scores: dict[QualityDimension, float],
        critical_issues: list[str],
        strengths: list[str],
        recommendations: list[ReadinessRecommendation],
    ) -> None:
        cfg = self._config
        for rule in DIMENSION_RULES:
            score = scores[rule.dimension]
            poor = cfg.poor_thresholds[rule.dimension.value]
            good = cfg.good_thresholds[rule.dimension.value]

            if score < poor:
                critical_issues.append(f"{rule.critical_issue} ({score:.1f}%)")
                recommendations.append(
                    ReadinessRecommendation(
                        category=rule.category,
                        priority=self.priority_for_gap(poor - score),
                        issue=f"{rule.label} below {poor:.0f}%",
                        recommendation=rule.recommendation,
                        estimated_impact=rule.estimated_impact,
                    )
                )
            elif score <= good:
                recommendations.append(
                    ReadinessRecommendation(
                        category=rule.category,
                        priority=RecommendationPriority.LOW,
                        issue=f"{rule.label} at or below {good:.0f}%",
                        recommendation=rule.recommendation,
                        estimated_impact=rule.estimated_impact,
                    )
                )
            else:
                strengths.append(rule.strength.format(score=score))
                recommendations.append(
                    ReadinessRecommendation(
                        category=rule.category,
                        priority=RecommendationPriority.LOW,
                        issue=f"{rule.label} meets target",
                        recommendation=rule.sustain,
                        estimated_impact="Sustains current readiness",
                    )
                )

    def _evaluate_record_facts(
        self,
        out_of_domain_ward_count: int,
        out_of_domain_codes: Sequence[int],
        days_since_update: int | None,
        critical_issues: list[str],
        recommendations: list[ReadinessRecommendation],
    ) -> None:
        cfg = self._config
        if out_of_domain_ward_count > 0:
            codes = ", ".join(str(c) for c in out_of_domain_codes) or "unknown"
            critical_issues.append(
                f"{out_of_domain_ward_count} records with invalid ward numbers "
                f"(codes outside 1-{cfg.ward_max}: {codes})"
            )
            recommendations.append(
                ReadinessRecommendation(
                    category=RecommendationCategory.DATA,
                    priority=RecommendationPriority.HIGH,
                    issue="Invalid ward numbers detected",
                    recommendation=(
                        f"Investigate and correct Ward {cfg.ward_sentinel_code} "
                        "assignments, implement ward validation"
                    ),
                    estimated_impact=(
                        "Resolve data accuracy issues affecting geographic analysis"
                    ),
                )
            )

        if days_since_update is not None and days_since_update > cfg.stale_data_days:
            critical_issues.append(
                f"Most recent record is {days_since_update} days old"
            )
            recommendations.append(
                ReadinessRecommendation(
                    category=RecommendationCategory.OPERATIONAL,
                    priority=RecommendationPriority.HIGH,
                    issue=f"No updates in over {cfg.stale_data_days} days",
                    recommendation="Set a target update frequency and monitor staleness",
                    estimated_impact="Improve decision-making timeliness by 25%",
                )
            )

    def assess(
        self,
        records: Sequence[ServiceRecord],
        as_of: date | None = None,
    ) -> tuple[DataQualityMetrics, ReadinessResult]:
        """Score all dimensions for ``records`` and aggregate readiness."""
        cfg = self._config
        rows = coerce_records(records)
        reference = as_of or today()
        quality = QualityDimensionCalculator(cfg).score_all(rows, reference)

        out_of_domain = [r.ward for r in rows if r.ward_out_of_domain(cfg.ward_max)]
        stats = QualityDimensionCalculator.update_stats(rows, reference)
        readiness = self.aggregate(
            quality,
            total_records=len(rows),
            out_of_domain_ward_count=len(out_of_domain),
            out_of_domain_codes=sorted(set(out_of_domain)),  # type: ignore[type-var]
            days_since_update=stats["days_since_update"],
        )
        return quality, readiness
