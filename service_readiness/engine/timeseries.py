"""Time-series aggregator -- monthly rollups of service records.

Records are grouped by the calendar month of their start date; records
without a usable start date are skipped. Month-over-month changes are
percentage changes against the previous month present in the series, so
a skipped calendar month does not reset the comparison; they are 0 for
the first month or when the prior value is 0.
"""

from __future__ import annotations

from collections.abc import Iterable

from service_readiness.engine.aggregation import GroupTotals, cost_efficiency, group_totals
from service_readiness.models.common import safe_pct
from service_readiness.models.dashboard import MonthOverMonthChange, TimeSeriesPoint
from service_readiness.models.records import ServiceRecord, coerce_records
from service_readiness.quality.config import QualityScoringConfig


def month_key(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def pct_change(current: float, previous: float) -> float:
    if previous == 0:
        return 0.0
    return (current - previous) / previous * 100.0


def monthly_totals(records: Iterable[ServiceRecord]) -> dict[tuple[int, int], GroupTotals]:
    """``(year, month) -> GroupTotals`` sorted chronologically."""
    totals = group_totals(
        coerce_records(records),
        lambda r: (r.start_date.year, r.start_date.month) if r.start_date else None,
    )
    return {k: totals[k] for k in sorted(totals)}  # type: ignore[type-var]


def calculate_time_series(
    records: Iterable[ServiceRecord],
    config: QualityScoringConfig | None = None,
) -> list[TimeSeriesPoint]:
    cfg = config or QualityScoringConfig()
    months = monthly_totals(records)

    points: list[TimeSeriesPoint] = []
    prior: GroupTotals | None = None
    for (year, month), t in months.items():
        if prior is None:
            change = MonthOverMonthChange()
        else:
            change = MonthOverMonthChange(
                services=pct_change(t.count, prior.count),
                cost=pct_change(t.total_cost, prior.total_cost),
                pass_rate=pct_change(t.pass_rate, prior.pass_rate),
            )
        points.append(
            TimeSeriesPoint(
                period=month_key(year, month),
                total_services=t.count,
                total_cost=t.total_cost,
                avg_cost=t.avg_cost,
                pass_count=t.pass_count,
                fail_count=t.fail_count,
                unknown_count=t.unknown_count,
                pass_rate=t.pass_rate,
                fail_rate=safe_pct(t.fail_count, t.count),
                unknown_rate=safe_pct(t.unknown_count, t.count),
                mom_change=change,
                cost_efficiency=cost_efficiency(
                    t.pass_rate, t.avg_cost, cfg.efficiency_cost_unit
                ),
            )
        )
        prior = t
    return points


def calculate_heatmap(records: Iterable[ServiceRecord]) -> list[tuple[int, int, float]]:
    """``[year, month, total_cost]`` per month, chronologically."""
    return [(y, m, t.total_cost) for (y, m), t in monthly_totals(records).items()]
