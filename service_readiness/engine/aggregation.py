"""Ward and division aggregator.

Groups records by a categorical key in a single pass (running totals
per key), derives rates and cost efficiency, isolates ward codes outside
the valid domain into an anomaly block, and ranks groups by efficiency.

Cost efficiency is "success per thousand currency units spent":
``(pass_rate / 100) / (avg_cost / cost_unit)`` when ``avg_cost > 0``,
else 0.

Deterministic -- no I/O.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Hashable, Iterable, Sequence
from dataclasses import dataclass

from service_readiness.models.common import safe_pct
from service_readiness.models.dashboard import (
    AnomalyImpact,
    DivisionAnalysis,
    EfficiencyRankItem,
    GroupAggregate,
    ValidWardComparison,
    WardAnalysis,
    WardAnomalyBlock,
)
from service_readiness.models.records import ServiceRecord, ServiceResult, coerce_records
from service_readiness.quality.config import QualityScoringConfig

logger = logging.getLogger(__name__)

ANOMALY_RECOMMENDATIONS: tuple[str, ...] = (
    "Investigate data entry process for Ward {code} assignments",
    "Implement ward validation rules to prevent invalid assignments",
    "Review and correct historical Ward {code} records",
    "Create mapping table for proper ward assignment",
)


def cost_efficiency(pass_rate: float, avg_cost: float, cost_unit: float = 1000.0) -> float:
    """Pass share per ``cost_unit`` of average cost; 0 when cost is not positive."""
    if avg_cost <= 0:
        return 0.0
    return (pass_rate / 100.0) / (avg_cost / cost_unit)


@dataclass
class GroupTotals:
    """Running totals for one group key."""

    count: int = 0
    total_cost: float = 0.0
    pass_count: int = 0
    fail_count: int = 0
    unknown_count: int = 0

    def add(self, record: ServiceRecord) -> None:
        self.count += 1
        self.total_cost += record.cost
        if record.result == ServiceResult.PASS:
            self.pass_count += 1
        elif record.result == ServiceResult.FAIL:
            self.fail_count += 1
        else:
            self.unknown_count += 1

    def merge(self, other: GroupTotals) -> None:
        self.count += other.count
        self.total_cost += other.total_cost
        self.pass_count += other.pass_count
        self.fail_count += other.fail_count
        self.unknown_count += other.unknown_count

    @property
    def avg_cost(self) -> float:
        return self.total_cost / self.count if self.count else 0.0

    @property
    def pass_rate(self) -> float:
        return safe_pct(self.pass_count, self.count)

    def to_aggregate(self, key: int | str, cost_unit: float = 1000.0) -> GroupAggregate:
        avg_cost = self.avg_cost
        pass_rate = self.pass_rate
        return GroupAggregate(
            key=key,
            total_count=self.count,
            total_cost=self.total_cost,
            avg_cost=avg_cost,
            pass_count=self.pass_count,
            fail_count=self.fail_count,
            unknown_count=self.unknown_count,
            pass_rate=pass_rate,
            fail_rate=safe_pct(self.fail_count, self.count),
            unknown_rate=safe_pct(self.unknown_count, self.count),
            cost_efficiency=cost_efficiency(pass_rate, avg_cost, cost_unit),
        )


def group_totals(
    records: Iterable[ServiceRecord],
    key: Callable[[ServiceRecord], Hashable | None],
) -> dict[Hashable, GroupTotals]:
    """One pass over ``records``; keys in first-appearance order, None skipped."""
    groups: dict[Hashable, GroupTotals] = {}
    for record in records:
        k = key(record)
        if k is None:
            continue
        totals = groups.get(k)
        if totals is None:
            totals = groups[k] = GroupTotals()
        totals.add(record)
    return groups


def rank_by_efficiency(groups: Sequence[GroupAggregate]) -> list[EfficiencyRankItem]:
    """Descending cost efficiency; ties keep input order; ranks 1..N."""
    ordered = sorted(groups, key=lambda g: -g.cost_efficiency)
    return [
        EfficiencyRankItem(
            key=g.key,
            efficiency_score=g.cost_efficiency,
            total_services=g.total_count,
            total_cost=g.total_cost,
            pass_rate=g.pass_rate,
            cost_per_passing_service=(
                g.total_cost / g.pass_count if g.pass_count > 0 else None
            ),
            rank=position,
        )
        for position, g in enumerate(ordered, start=1)
    ]


def analyze_wards(
    records: Iterable[ServiceRecord],
    config: QualityScoringConfig | None = None,
) -> WardAnalysis:
    """Per-ward aggregates over the valid domain plus the anomaly block."""
    cfg = config or QualityScoringConfig()
    rows = coerce_records(records)
    totals = group_totals(rows, lambda r: r.ward)

    valid_wards = [
        totals[ward].to_aggregate(ward, cfg.efficiency_cost_unit)
        for ward in range(1, cfg.ward_max + 1)
        if ward in totals
    ]

    anomaly_totals = GroupTotals()
    codes: dict[int, int] = {}
    for code in sorted(k for k in totals if not 1 <= k <= cfg.ward_max):  # type: ignore[operator]
        anomaly_totals.merge(totals[code])
        codes[code] = totals[code].count  # type: ignore[index]

    if anomaly_totals.count:
        logger.warning(
            "%d records carry out-of-domain ward codes %s",
            anomaly_totals.count,
            list(codes),
        )

    return WardAnalysis(
        valid_wards=valid_wards,
        invalid_ward_anomaly=_anomaly_block(rows, anomaly_totals, codes, valid_wards, cfg),
        ward_efficiency_ranking=rank_by_efficiency(valid_wards),
        total_wards_covered=len(valid_wards),
        ward_coverage_percentage=len(valid_wards) / cfg.ward_max * 100.0,
    )


def _anomaly_block(
    rows: list[ServiceRecord],
    anomaly: GroupTotals,
    codes: dict[int, int],
    valid_wards: list[GroupAggregate],
    cfg: QualityScoringConfig,
) -> WardAnomalyBlock:
    if valid_wards:
        valid_avg_cost = sum(w.avg_cost for w in valid_wards) / len(valid_wards)
        valid_pass_rate = sum(w.pass_rate for w in valid_wards) / len(valid_wards)
    else:
        valid_avg_cost = valid_pass_rate = 0.0
    overall_cost = sum(r.cost for r in rows)

    return WardAnomalyBlock(
        count=anomaly.count,
        total_cost=anomaly.total_cost,
        avg_cost=anomaly.avg_cost,
        pass_rate=anomaly.pass_rate,
        codes=codes,
        impact_analysis=AnomalyImpact(
            percentage_of_total_services=safe_pct(anomaly.count, len(rows)),
            percentage_of_total_cost=safe_pct(anomaly.total_cost, overall_cost),
            compared_to_valid_wards=ValidWardComparison(
                avg_cost_difference=anomaly.avg_cost - valid_avg_cost,
                pass_rate_difference=anomaly.pass_rate - valid_pass_rate,
            ),
        ),
        recommendations=(
            [text.format(code=cfg.ward_sentinel_code) for text in ANOMALY_RECOMMENDATIONS]
            if anomaly.count
            else []
        ),
    )


def analyze_divisions(
    records: Iterable[ServiceRecord],
    config: QualityScoringConfig | None = None,
) -> DivisionAnalysis:
    """Per-division aggregates sorted by total cost, plus efficiency ranking."""
    cfg = config or QualityScoringConfig()
    rows = coerce_records(records)
    totals = group_totals(rows, lambda r: r.division_owner)
    groups = [t.to_aggregate(k, cfg.efficiency_cost_unit) for k, t in totals.items()]  # type: ignore[arg-type]
    logger.debug("Aggregated %d divisions", len(groups))
    return DivisionAnalysis(
        divisions=sorted(groups, key=lambda g: -g.total_cost),
        division_efficiency_ranking=rank_by_efficiency(groups),
    )
