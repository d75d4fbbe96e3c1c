"""Quality dimension calculator: completeness, accuracy, consistency,
timeliness and metadata.

Each ``score_*`` method is a pure function of the record set (plus the
``as_of`` reference date where time matters). It computes a 0-100 score
and a context of summary statistics, then renders issues and
recommendations from ordered ``TextRule`` lists.

Deterministic -- no I/O.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date

from service_readiness.models.common import safe_pct, today
from service_readiness.models.dashboard import (
    DataQualityMetrics,
    QualityDimension,
    QualityDimensionResult,
)
from service_readiness.models.records import (
    ServiceRecord,
    ServiceResult,
    coerce_records,
)
from service_readiness.quality.config import QualityScoringConfig
from service_readiness.quality.rules import (
    TextRule,
    at_least,
    below,
    below_and,
    evaluate_rules,
)

logger = logging.getLogger(__name__)

# Fields considered for metadata field diversity.
METADATA_FIELDS: tuple[str, ...] = ("division", "result", "ward", "cost", "notes")


# ---------------------------------------------------------------------------
# Issue / recommendation rules
# ---------------------------------------------------------------------------

_COMPLETENESS_ISSUES: list[TextRule] = [
    TextRule(below("threshold"), "Only {score:.1f}% of records have every required field"),
    TextRule(
        below_and("threshold", "unknown_count"),
        "{unknown_pct:.1f}% of records have UNKNOWN service results",
    ),
    TextRule(
        below_and("threshold", "missing_cost_count"),
        "Missing cost data in {missing_cost_pct:.1f}% of records",
    ),
    TextRule(
        below_and("threshold", "missing_date_count"),
        "Missing start or end date in {missing_date_pct:.1f}% of records",
    ),
    TextRule(
        below_and("threshold", "missing_ward_count"),
        "Missing ward in {missing_ward_pct:.1f}% of records",
    ),
    TextRule(
        below_and("threshold", "missing_division_count"),
        "Missing division owner in {missing_division_pct:.1f}% of records",
    ),
]
_COMPLETENESS_RECOMMENDATIONS: list[TextRule] = [
    TextRule(
        below_and("threshold", "unknown_count"),
        "Convert UNKNOWN results to actual PASS/FAIL values",
    ),
    TextRule(
        below_and("threshold", "missing_cost_count"),
        "Populate all missing cost estimates",
    ),
    TextRule(
        below("threshold"),
        "Ensure all records have complete date and location data",
    ),
    TextRule(at_least("threshold"), "Continue efforts to maintain data completeness"),
]

_ACCURACY_ISSUES: list[TextRule] = [
    TextRule(
        below_and("threshold", "invalid_ward_count"),
        "{invalid_ward_count} records with invalid ward numbers",
    ),
    TextRule(
        below_and("threshold", "invalid_date_count"),
        "{invalid_date_count} records with invalid or illogical dates",
    ),
    TextRule(
        below_and("threshold", "negative_cost_count"),
        "{negative_cost_count} records with negative costs",
    ),
    TextRule(
        below_and("threshold", "unrecognized_result_count"),
        "{unrecognized_result_count} records with unrecognized result values",
    ),
    TextRule(
        below_and("threshold", "unknown_count"),
        "{unknown_count} records with UNKNOWN results",
    ),
]
_ACCURACY_RECOMMENDATIONS: list[TextRule] = [
    TextRule(
        below("threshold"),
        "Implement ward validation (1-{ward_max} only)",
    ),
    TextRule(
        below("threshold"),
        "Add date range validation ({max_years_past} years past to "
        "{max_years_future} year future)",
    ),
    TextRule(below("threshold"), "Ensure costs are non-negative"),
    TextRule(
        below_and("threshold", "unrecognized_result_count"),
        "Restrict service results to PASS or FAIL",
    ),
    TextRule(at_least("threshold"), "Data accuracy meets standards"),
]

_CONSISTENCY_ISSUES: list[TextRule] = [
    TextRule(
        below_and("threshold", "result_without_division"),
        "{result_without_division} records with results missing division owners",
    ),
    TextRule(
        below_and("threshold", "cost_without_context"),
        "{cost_without_context} costs without associated dates or divisions",
    ),
    TextRule(
        below_and("threshold", "unknown_high_cost"),
        "{unknown_high_cost} UNKNOWN results carrying implausibly high costs",
    ),
    TextRule(
        below_and("threshold", "division_without_context"),
        "{division_without_context} records with a division but no other data",
    ),
    TextRule(
        below_and("threshold", "casing_inconsistent"),
        "{casing_inconsistent} division labels with inconsistent formatting",
    ),
]
_CONSISTENCY_RECOMMENDATIONS: list[TextRule] = [
    TextRule(below("threshold"), "Enforce business rules at data entry"),
    TextRule(
        below_and("threshold", "casing_inconsistent"),
        "Standardize text field formatting",
    ),
    TextRule(below("threshold"), "Implement cross-field validation"),
    TextRule(at_least("threshold"), "Data consistency is good"),
]

_TIMELINESS_ISSUES: list[TextRule] = [
    TextRule(
        lambda ctx: ctx["score"] < ctx["threshold"] and ctx["days_since_update"] is None,
        "No records have an end date",
    ),
    TextRule(
        lambda ctx: (
            ctx["score"] < ctx["threshold"]
            and ctx["days_since_update"] is not None
            and ctx["days_since_update"] > ctx["stale_issue_days"]
        ),
        "Data is {days_since_update} days old; freshness below acceptable threshold",
    ),
    TextRule(
        below_and("threshold", "total_gap_days"),
        "Coverage gaps totalling {total_gap_days} days between service periods",
    ),
]
_TIMELINESS_RECOMMENDATIONS: list[TextRule] = [
    TextRule(below("threshold"), "Establish automated data refresh pipeline"),
    TextRule(below("threshold"), "Set target update frequency (e.g., monthly)"),
    TextRule(below("threshold"), "Monitor and alert on data staleness"),
    TextRule(at_least("threshold"), "Data timeliness is acceptable"),
]

_METADATA_ISSUES: list[TextRule] = [
    TextRule(
        below_and("threshold", "missing_fields"),
        "Limited field diversity: no values for {missing_fields}",
    ),
    TextRule(
        below_and("threshold", "sparse_notes"),
        "Lack of descriptive notes: {meaningful_notes_pct:.1f}% of records "
        "have meaningful notes",
    ),
    TextRule(
        below_and("threshold", "duplicate_count"),
        "{duplicate_count} potential duplicate records",
    ),
]
_METADATA_RECOMMENDATIONS: list[TextRule] = [
    TextRule(
        below_and("threshold", "sparse_notes"),
        "Add descriptive notes to provide context",
    ),
    TextRule(below("threshold"), "Ensure all relevant fields are populated"),
    TextRule(
        below_and("threshold", "duplicate_count"),
        "Implement unique record identifiers",
    ),
    TextRule(at_least("threshold"), "Metadata quality is acceptable"),
]


def _shift_years(day: date, years: int) -> date:
    try:
        return day.replace(year=day.year + years)
    except ValueError:
        # Feb 29 into a non-leap year.
        return day.replace(year=day.year + years, day=28)


def _clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


class QualityDimensionCalculator:
    """Scores the five open-data quality dimensions of a record set.

    All methods accept any collection of ``ServiceRecord`` instances or
    record mappings; invalid collection shapes raise ``TypeError``.
    """

    def __init__(self, config: QualityScoringConfig | None = None) -> None:
        self._config = config or QualityScoringConfig()

    @property
    def config(self) -> QualityScoringConfig:
        return self._config

    def _result(
        self,
        dimension: QualityDimension,
        score: float,
        details: str,
        context: dict[str, object],
        issues: list[TextRule],
        recommendations: list[TextRule],
    ) -> QualityDimensionResult:
        context["score"] = score
        context["threshold"] = self._config.issue_thresholds[dimension.value]
        return QualityDimensionResult(
            score=score,
            details=details,
            issues=evaluate_rules(issues, context),
            recommendations=evaluate_rules(recommendations, context),
        )

    # ---------------------------------------------------------------
    # Completeness
    # ---------------------------------------------------------------

    def score_completeness(self, records: Iterable[ServiceRecord]) -> QualityDimensionResult:
        """Share of records with every required field populated.

        Required: division, start date, end date, cost, ward, and a result
        that is PASS or FAIL. Empty input scores 100.
        """
        rows = coerce_records(records)
        total = len(rows)

        complete = 0
        missing = {
            "division": 0,
            "date": 0,
            "cost": 0,
            "ward": 0,
            "unknown": 0,
        }
        for r in rows:
            has_division = r.division_owner is not None
            has_dates = r.start_date is not None and r.end_date is not None
            has_cost = r.estimated_cost is not None
            has_ward = r.ward is not None
            has_result = r.result != ServiceResult.UNKNOWN
            missing["division"] += not has_division
            missing["date"] += not has_dates
            missing["cost"] += not has_cost
            missing["ward"] += not has_ward
            missing["unknown"] += not has_result
            if has_division and has_dates and has_cost and has_ward and has_result:
                complete += 1

        score = 100.0 if total == 0 else complete / total * 100.0
        context: dict[str, object] = {
            "unknown_count": missing["unknown"],
            "unknown_pct": safe_pct(missing["unknown"], total),
            "missing_cost_count": missing["cost"],
            "missing_cost_pct": safe_pct(missing["cost"], total),
            "missing_date_count": missing["date"],
            "missing_date_pct": safe_pct(missing["date"], total),
            "missing_ward_count": missing["ward"],
            "missing_ward_pct": safe_pct(missing["ward"], total),
            "missing_division_count": missing["division"],
            "missing_division_pct": safe_pct(missing["division"], total),
        }
        details = (
            f"{score:.2f}% of records have ALL required fields: division, "
            "start date, end date, cost, ward, and valid result (not UNKNOWN)"
        )
        return self._result(
            QualityDimension.COMPLETENESS,
            score,
            details,
            context,
            _COMPLETENESS_ISSUES,
            _COMPLETENESS_RECOMMENDATIONS,
        )

    # ---------------------------------------------------------------
    # Accuracy
    # ---------------------------------------------------------------

    def score_accuracy(
        self,
        records: Iterable[ServiceRecord],
        as_of: date | None = None,
    ) -> QualityDimensionResult:
        """Validity-violation score.

        Per record: +1 for an out-of-domain ward, +1 for any date outside
        the historical window or an end date before the start date, +1
        for a negative cost, +1 for an unrecognized result value, and a
        partial penalty for an UNKNOWN result. Floored at 0.
        """
        cfg = self._config
        rows = coerce_records(records)
        total = len(rows)
        reference = as_of or today()
        earliest = _shift_years(reference, -cfg.max_years_past)
        latest = _shift_years(reference, cfg.max_years_future)

        violations = 0.0
        counts = {
            "invalid_ward_count": 0,
            "invalid_date_count": 0,
            "negative_cost_count": 0,
            "unrecognized_result_count": 0,
            "unknown_count": 0,
        }
        for r in rows:
            if r.ward_out_of_domain(cfg.ward_max):
                violations += 1
                counts["invalid_ward_count"] += 1
            if self._has_invalid_dates(r, earliest, latest):
                violations += 1
                counts["invalid_date_count"] += 1
            if r.estimated_cost is not None and r.estimated_cost < 0:
                violations += 1
                counts["negative_cost_count"] += 1
            if not r.result_recognized:
                violations += 1
                counts["unrecognized_result_count"] += 1
            elif r.result == ServiceResult.UNKNOWN:
                violations += cfg.unknown_result_penalty
                counts["unknown_count"] += 1

        score = 100.0 if total == 0 else max(0.0, (total - violations) / total * 100.0)
        context: dict[str, object] = {
            **counts,
            "ward_max": cfg.ward_max,
            "max_years_past": cfg.max_years_past,
            "max_years_future": cfg.max_years_future,
        }
        details = (
            f"{score:.2f}% accurate - checking wards, dates, costs, and result values"
        )
        return self._result(
            QualityDimension.ACCURACY,
            score,
            details,
            context,
            _ACCURACY_ISSUES,
            _ACCURACY_RECOMMENDATIONS,
        )

    @staticmethod
    def _has_invalid_dates(record: ServiceRecord, earliest: date, latest: date) -> bool:
        for day in (record.start_date, record.end_date):
            if day is not None and not earliest <= day <= latest:
                return True
        return (
            record.start_date is not None
            and record.end_date is not None
            and record.end_date < record.start_date
        )

    # ---------------------------------------------------------------
    # Consistency
    # ---------------------------------------------------------------

    def score_consistency(self, records: Iterable[ServiceRecord]) -> QualityDimensionResult:
        """Share of records passing the cross-field business rules.

        A record is counted inconsistent once, by the first rule it fails.
        """
        rows = coerce_records(records)
        total = len(rows)

        counts = {
            "result_without_division": 0,
            "cost_without_context": 0,
            "unknown_high_cost": 0,
            "division_without_context": 0,
            "casing_inconsistent": 0,
        }
        for r in rows:
            rule = self._first_inconsistency(r)
            if rule is not None:
                counts[rule] += 1

        inconsistent = sum(counts.values())
        score = 100.0 if total == 0 else (total - inconsistent) / total * 100.0
        details = (
            f"{score:.2f}% consistent - checking business rules and data patterns"
        )
        return self._result(
            QualityDimension.CONSISTENCY,
            score,
            details,
            dict(counts),
            _CONSISTENCY_ISSUES,
            _CONSISTENCY_RECOMMENDATIONS,
        )

    def _first_inconsistency(self, r: ServiceRecord) -> str | None:
        cfg = self._config
        division = r.division_owner
        if r.result != ServiceResult.UNKNOWN and division is None:
            return "result_without_division"
        if r.cost > 0 and (division is None or r.start_date is None or r.end_date is None):
            return "cost_without_context"
        if r.result == ServiceResult.UNKNOWN and r.cost > cfg.unknown_high_cost_threshold:
            return "unknown_high_cost"
        if division is None:
            return None
        has_other = (
            r.raw_result is not None
            or r.estimated_cost is not None
            or r.ward is not None
            or r.start_date is not None
            or r.end_date is not None
        )
        if not has_other:
            return "division_without_context"
        if len(division) >= cfg.division_casing_min_length and (
            division == division.upper() or division == division.lower()
        ):
            return "casing_inconsistent"
        return None

    # ---------------------------------------------------------------
    # Timeliness
    # ---------------------------------------------------------------

    def score_timeliness(
        self,
        records: Iterable[ServiceRecord],
        as_of: date | None = None,
    ) -> QualityDimensionResult:
        """Recency of the newest end date blended with gap-aware coverage.

        recency  = clamp(0, 100, 100 * (1 - days_since_update / horizon))
        coverage = max(0, 100 - total_gap_days / gap_days_per_point),
                   or the default when fewer than 2 records carry both dates
        score    = recency_weight * recency + coverage_weight * coverage

        Scores 0 when no record has an end date.
        """
        cfg = self._config
        rows = coerce_records(records)
        reference = as_of or today()

        stats = self.update_stats(rows, reference)
        days = stats["days_since_update"]
        if days is None:
            score = 0.0
            details = "No dated records available to assess timeliness"
        else:
            recency = _clamp((1 - days / cfg.recency_horizon_days) * 100.0)
            if stats["dated_count"] > 1:
                coverage = max(0.0, 100.0 - stats["total_gap_days"] / cfg.gap_days_per_point)
            else:
                coverage = cfg.default_coverage_score
            score = _clamp(cfg.recency_weight * recency + cfg.coverage_weight * coverage)
            details = (
                f"Data is {days} days old "
                f"(last update: {stats['most_recent'].isoformat()})"
            )

        context: dict[str, object] = {
            **stats,
            "stale_issue_days": cfg.stale_issue_days,
        }
        return self._result(
            QualityDimension.TIMELINESS,
            score,
            details,
            context,
            _TIMELINESS_ISSUES,
            _TIMELINESS_RECOMMENDATIONS,
        )

    @staticmethod
    def update_stats(rows: list[ServiceRecord], reference: date) -> dict:
        """Most recent end date, its age in days, and summed coverage gaps."""
        end_dates = [r.end_date for r in rows if r.end_date is not None]
        most_recent = max(end_dates) if end_dates else None

        ranges = sorted(
            (
                (r.start_date, r.end_date)
                for r in rows
                if r.start_date is not None and r.end_date is not None
            ),
            key=lambda pair: pair[1],
        )
        total_gap_days = 0
        for (_, prev_end), (next_start, _) in zip(ranges, ranges[1:]):
            gap = (next_start - prev_end).days
            if gap > 0:
                total_gap_days += gap

        return {
            "most_recent": most_recent,
            "days_since_update": (
                (reference - most_recent).days if most_recent is not None else None
            ),
            "dated_count": len(ranges),
            "total_gap_days": total_gap_days,
        }

    # ---------------------------------------------------------------
    # Metadata
    # ---------------------------------------------------------------

    def score_metadata(self, records: Iterable[ServiceRecord]) -> QualityDimensionResult:
        """Weighted blend of field diversity, value diversity, notes quality
        and uniqueness of the (start, end, division, ward) key.
        """
        cfg = self._config
        rows = coerce_records(records)
        total = len(rows)
        if total == 0:
            return self._result(
                QualityDimension.METADATA,
                100.0,
                "No records to assess metadata quality",
                {"missing_fields": "", "sparse_notes": False, "duplicate_count": 0,
                 "meaningful_notes_pct": 0.0},
                _METADATA_ISSUES,
                _METADATA_RECOMMENDATIONS,
            )

        present: set[str] = set()
        divisions: set[str] = set()
        wards: set[int] = set()
        any_notes = 0
        meaningful_notes = 0
        seen_keys: set[tuple] = set()
        duplicates = 0

        for r in rows:
            if r.division_owner is not None:
                present.add("division")
                divisions.add(r.division_owner)
            if r.raw_result is not None:
                present.add("result")
            if r.ward is not None:
                present.add("ward")
                if r.ward_in_domain(cfg.ward_max):
                    wards.add(r.ward)
            if r.estimated_cost is not None:
                present.add("cost")
            note = (r.notes or "").strip()
            if note:
                present.add("notes")
                any_notes += 1
                if len(note) > cfg.notes_meaningful_length:
                    meaningful_notes += 1

            key = (r.start_date, r.end_date, r.division_owner, r.ward)
            if key in seen_keys:
                duplicates += 1
            else:
                seen_keys.add(key)

        field_diversity = len(present) / len(METADATA_FIELDS) * 100.0
        division_ceiling = max(1.0, total * cfg.division_diversity_ratio)
        division_diversity = min(100.0, len(divisions) / division_ceiling * 100.0)
        ward_diversity = min(100.0, len(wards) / cfg.ward_max * 100.0)
        value_diversity = (division_diversity + ward_diversity) / 2
        notes_quality = (
            any_notes / total * cfg.notes_any_credit
            + meaningful_notes / total * cfg.notes_meaningful_credit
        )
        uniqueness = (total - duplicates) / total * 100.0

        sub_scores = {
            "field_diversity": field_diversity,
            "value_diversity": value_diversity,
            "notes_quality": notes_quality,
            "uniqueness": uniqueness,
        }
        score = _clamp(
            sum(sub_scores[name] * cfg.metadata_weights[name] for name in sub_scores)
        )
        logger.debug("Metadata sub-scores: %s", sub_scores)

        context: dict[str, object] = {
            **sub_scores,
            "missing_fields": ", ".join(f for f in METADATA_FIELDS if f not in present),
            "sparse_notes": notes_quality < 50.0,
            "meaningful_notes_pct": safe_pct(meaningful_notes, total),
            "duplicate_count": duplicates,
        }
        details = (
            f"{score:.2f}% metadata quality - based on documentation, "
            "diversity, and uniqueness"
        )
        return self._result(
            QualityDimension.METADATA,
            score,
            details,
            context,
            _METADATA_ISSUES,
            _METADATA_RECOMMENDATIONS,
        )

    # ---------------------------------------------------------------
    # All dimensions
    # ---------------------------------------------------------------

    def score_all(
        self,
        records: Iterable[ServiceRecord],
        as_of: date | None = None,
    ) -> DataQualityMetrics:
        """Score all five dimensions; overall is their arithmetic mean."""
        rows = coerce_records(records)
        reference = as_of or today()
        completeness = self.score_completeness(rows)
        accuracy = self.score_accuracy(rows, reference)
        consistency = self.score_consistency(rows)
        timeliness = self.score_timeliness(rows, reference)
        metadata = self.score_metadata(rows)
        overall = (
            completeness.score
            + accuracy.score
            + consistency.score
            + timeliness.score
            + metadata.score
        ) / 5
        return DataQualityMetrics(
            completeness=completeness,
            accuracy=accuracy,
            consistency=consistency,
            timeliness=timeliness,
            metadata=metadata,
            overall_score=overall,
        )
