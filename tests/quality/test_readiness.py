"""Tests for ReadinessAggregator -- composite readiness and rule synthesis."""

from __future__ import annotations

import pytest

from service_readiness.models.dashboard import (
    DataQualityMetrics,
    QualityDimension,
    QualityDimensionResult,
    RecommendationCategory,
    RecommendationPriority,
)
from service_readiness.quality.readiness import (
    DIMENSION_RULES,
    NO_DATA_ISSUE,
    ReadinessAggregator,
)


# ===================================================================
# Fixtures / helpers
# ===================================================================


def _metrics(
    completeness: float = 100.0,
    accuracy: float = 100.0,
    consistency: float = 100.0,
    timeliness: float = 100.0,
    metadata: float = 100.0,
) -> DataQualityMetrics:
    def dim(score: float) -> QualityDimensionResult:
        return QualityDimensionResult(score=score, details="")

    scores = (completeness, accuracy, consistency, timeliness, metadata)
    return DataQualityMetrics(
        completeness=dim(completeness),
        accuracy=dim(accuracy),
        consistency=dim(consistency),
        timeliness=dim(timeliness),
        metadata=dim(metadata),
        overall_score=sum(scores) / 5,
    )


@pytest.fixture
def agg() -> ReadinessAggregator:
    return ReadinessAggregator()


# ===================================================================
# Scores
# ===================================================================


class TestScores:
    """Overall and sub-scores derive from the five dimension scores."""

    def test_overall_is_mean(self, agg: ReadinessAggregator) -> None:
        result = agg.aggregate(_metrics(completeness=20.0), total_records=10)
        assert result.overall_score == pytest.approx(84.0)
        assert result.data_readiness_score == pytest.approx(84.0)

    def test_sub_scores(self, agg: ReadinessAggregator) -> None:
        result = agg.aggregate(
            _metrics(completeness=60.0, accuracy=90.0, consistency=75.0, timeliness=40.0),
            total_records=10,
        )
        assert result.operational_readiness_score == pytest.approx(40.0)
        assert result.quality_readiness_score == pytest.approx(75.0)

    def test_consolidated_dimensions(self, agg: ReadinessAggregator) -> None:
        result = agg.aggregate(_metrics(metadata=55.0), total_records=1)
        assert set(result.consolidated_dimensions) == set(QualityDimension)
        assert result.consolidated_dimensions[QualityDimension.METADATA] == pytest.approx(55.0)


# ===================================================================
# Dimension rules
# ===================================================================


class TestDimensionRules:
    """Poor / moderate / good thresholds per dimension."""

    def test_all_good(self, agg: ReadinessAggregator) -> None:
        result = agg.aggregate(_metrics(), total_records=10)
        assert result.critical_issues == []
        assert len(result.strengths) == len(DIMENSION_RULES)
        assert len(result.recommendations) == len(DIMENSION_RULES)
        assert all(
            r.priority == RecommendationPriority.LOW for r in result.recommendations
        )

    def test_every_dimension_emits_a_recommendation(self, agg) -> None:
        result = agg.aggregate(
            _metrics(completeness=10.0, accuracy=85.0, timeliness=5.0), total_records=3
        )
        assert len(result.recommendations) == 5

    def test_poor_completeness_is_critical(self, agg: ReadinessAggregator) -> None:
        result = agg.aggregate(_metrics(completeness=20.0), total_records=10)
        assert result.critical_issues == [
            "Incomplete data records affecting analysis quality (20.0%)"
        ]
        rec = result.recommendations[0]
        assert rec.category == RecommendationCategory.DATA
        assert rec.priority == RecommendationPriority.HIGH
        assert rec.issue == "Data completeness below 70%"

    @pytest.mark.parametrize(
        ("score", "priority"),
        [
            (20.0, RecommendationPriority.HIGH),
            (55.0, RecommendationPriority.MEDIUM),
            (65.0, RecommendationPriority.LOW),
        ],
    )
    def test_priority_scales_with_gap(
        self, agg: ReadinessAggregator, score: float, priority: RecommendationPriority
    ) -> None:
        result = agg.aggregate(_metrics(completeness=score), total_records=10)
        assert result.recommendations[0].priority == priority

    def test_priority_for_gap(self, agg: ReadinessAggregator) -> None:
        assert agg.priority_for_gap(35) == RecommendationPriority.HIGH
        assert agg.priority_for_gap(30) == RecommendationPriority.HIGH
        assert agg.priority_for_gap(10) == RecommendationPriority.MEDIUM
        assert agg.priority_for_gap(9.9) == RecommendationPriority.LOW

    def test_moderate_consistency(self, agg: ReadinessAggregator) -> None:
        result = agg.aggregate(_metrics(consistency=80.0), total_records=10)
        assert result.critical_issues == []
        assert len(result.strengths) == 4
        rec = result.recommendations[2]
        assert rec.category == RecommendationCategory.QUALITY
        assert rec.priority == RecommendationPriority.LOW
        assert rec.issue == "Data consistency at or below 90%"

    def test_accuracy_strength(self, agg: ReadinessAggregator) -> None:
        result = agg.aggregate(_metrics(accuracy=99.0), total_records=10)
        assert (
            "Excellent data accuracy (99.0%) with minimal validation errors"
            in result.strengths
        )

    def test_score_at_good_threshold_is_not_a_strength(
        self, agg: ReadinessAggregator
    ) -> None:
        result = agg.aggregate(_metrics(accuracy=95.0), total_records=10)
        assert not any("accuracy" in s for s in result.strengths)
        assert len(result.strengths) == 4
        rec = result.recommendations[1]
        assert rec.priority == RecommendationPriority.LOW
        assert rec.issue == "Data accuracy at or below 95%"

    def test_timeliness_is_operational(self, agg: ReadinessAggregator) -> None:
        result = agg.aggregate(_metrics(timeliness=5.0), total_records=10)
        rec = result.recommendations[3]
        assert rec.category == RecommendationCategory.OPERATIONAL
        assert "Data staleness: dataset is significantly outdated (5.0%)" in (
            result.critical_issues
        )


# ===================================================================
# Record-level facts
# ===================================================================


class TestRecordFacts:
    """Out-of-domain wards and stale data add critical issues."""

    def test_out_of_domain_wards(self, agg: ReadinessAggregator) -> None:
        result = agg.aggregate(
            _metrics(),
            total_records=100,
            out_of_domain_ward_count=40,
            out_of_domain_codes=[66],
        )
        assert (
            "40 records with invalid ward numbers (codes outside 1-25: 66)"
            in result.critical_issues
        )
        rec = result.recommendations[-1]
        assert rec.category == RecommendationCategory.DATA
        assert rec.priority == RecommendationPriority.HIGH
        assert "Ward 66" in rec.recommendation
        assert result.out_of_domain_ward_count == 40

    def test_stale_data(self, agg: ReadinessAggregator) -> None:
        result = agg.aggregate(_metrics(), total_records=5, days_since_update=400)
        assert "Most recent record is 400 days old" in result.critical_issues
        rec = result.recommendations[-1]
        assert rec.category == RecommendationCategory.OPERATIONAL
        assert rec.priority == RecommendationPriority.HIGH

    def test_exactly_one_year_is_not_stale(self, agg: ReadinessAggregator) -> None:
        result = agg.aggregate(_metrics(), total_records=5, days_since_update=365)
        assert result.critical_issues == []


# ===================================================================
# Empty input and assess()
# ===================================================================


class TestEmptyAndAssess:
    """No-data marker and the end-to-end assess helper."""

    def test_no_records(self, agg: ReadinessAggregator) -> None:
        result = agg.aggregate(_metrics(timeliness=0.0), total_records=0)
        assert result.critical_issues == [NO_DATA_ISSUE]
        assert result.strengths == []
        assert len(result.recommendations) == 1
        assert result.overall_score == pytest.approx(80.0)

    def test_assess_empty(self, agg: ReadinessAggregator, as_of) -> None:
        quality, readiness = agg.assess([], as_of)
        assert readiness.critical_issues == [NO_DATA_ISSUE]
        assert readiness.overall_score == pytest.approx(quality.overall_score)

    def test_assess_counts_out_of_domain_wards(self, agg, make_record, as_of) -> None:
        rows = [make_record(ward=5) for _ in range(6)] + [
            make_record(ward=66) for _ in range(4)
        ]
        quality, readiness = agg.assess(rows, as_of)
        assert readiness.out_of_domain_ward_count == 4
        assert readiness.days_since_update == 21
        assert any("codes outside 1-25: 66" in issue for issue in readiness.critical_issues)
        assert readiness.overall_score == pytest.approx(
            sum(quality.scores().values()) / 5
        )
