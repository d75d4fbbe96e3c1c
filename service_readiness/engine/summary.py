"""KPI block and supplemental breakdowns for the dashboard result.

Headline KPIs, per-result breakdown, top divisions/wards by cost, the
highest individual expenses, and per-field completeness.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from datetime import date

from service_readiness.engine.aggregation import group_totals
from service_readiness.models.common import safe_pct
from service_readiness.models.dashboard import (
    DateRange,
    FieldCompleteness,
    GroupAggregate,
    HighestExpenseItem,
    KpiData,
    ResultBreakdown,
    TopListItem,
)
from service_readiness.models.records import ServiceRecord, ServiceResult, coerce_records
from service_readiness.quality.config import QualityScoringConfig

# (output field name, description, populated predicate)
FIELD_CHECKS: tuple[tuple[str, str, Callable[[ServiceRecord], bool]], ...] = (
    (
        "service_division_owner",
        "Division responsible for the service",
        lambda r: r.division_owner is not None,
    ),
    (
        "service_result",
        "Result of the service (PASS/FAIL)",
        lambda r: r.raw_result is not None,
    ),
    (
        "estimated_cost",
        "Estimated cost of the service",
        lambda r: r.estimated_cost is not None,
    ),
    ("ward", "Ward where the service was provided", lambda r: r.ward is not None),
    ("start_date", "Start date of the service", lambda r: r.start_date is not None),
    ("end_date", "End date of the service", lambda r: r.end_date is not None),
)


def _plural(n: int, unit: str) -> str:
    return f"{n} {unit}{'' if n == 1 else 's'}"


def time_span(start: date | None, end: date | None) -> str:
    """Inclusive month span, e.g. ``"7 months"`` or ``"2 years 3 months"``."""
    if start is None or end is None or end < start:
        return "N/A"
    months = (end.year - start.year) * 12 + (end.month - start.month)
    if end.day < start.day:
        months -= 1
    months += 1
    if months < 12:
        return _plural(months, "month")
    years, remainder = divmod(months, 12)
    text = _plural(years, "year")
    if remainder:
        text += f" {_plural(remainder, 'month')}"
    return text


def calculate_kpis(records: Iterable[ServiceRecord]) -> KpiData:
    rows = coerce_records(records)
    total = len(rows)
    if total == 0:
        return KpiData()

    total_cost = sum(r.cost for r in rows)
    results = [r.result for r in rows]
    starts = [r.start_date for r in rows if r.start_date is not None]
    ends = [r.end_date for r in rows if r.end_date is not None]
    earliest = min(starts) if starts else None
    latest = max(ends) if ends else None

    return KpiData(
        total_services=total,
        total_cost=total_cost,
        avg_cost=total_cost / total,
        pass_rate=safe_pct(results.count(ServiceResult.PASS), total),
        fail_rate=safe_pct(results.count(ServiceResult.FAIL), total),
        unknown_rate=safe_pct(results.count(ServiceResult.UNKNOWN), total),
        unique_divisions=len({r.division_owner for r in rows if r.division_owner}),
        unique_wards=len({r.ward for r in rows if r.ward is not None}),
        date_range=DateRange(
            earliest_service=earliest,
            latest_service=latest,
            time_span=time_span(earliest, latest),
        ),
    )


def results_breakdown(records: Iterable[ServiceRecord]) -> list[ResultBreakdown]:
    """One entry per PASS / FAIL / UNKNOWN; empty input yields an empty list."""
    rows = coerce_records(records)
    if not rows:
        return []
    totals = group_totals(rows, lambda r: r.result)
    breakdown: list[ResultBreakdown] = []
    for result in ServiceResult:
        t = totals.get(result)
        count = t.count if t else 0
        cost = t.total_cost if t else 0.0
        breakdown.append(
            ResultBreakdown(
                result=result,
                count=count,
                percentage=safe_pct(count, len(rows)),
                total_cost=cost,
                avg_cost=cost / count if count else 0.0,
            )
        )
    return breakdown


def top_by_cost(
    groups: Sequence[GroupAggregate],
    name: Callable[[int | str], str],
    limit: int = 5,
) -> list[TopListItem]:
    ordered = sorted(groups, key=lambda g: -g.total_cost)[:limit]
    return [
        TopListItem(
            id=g.key,
            name=name(g.key),
            value=g.total_cost,
            count=g.total_count,
            avg_cost=g.avg_cost,
            pass_rate=g.pass_rate,
        )
        for g in ordered
    ]


def highest_expenses(
    records: Iterable[ServiceRecord],
    config: QualityScoringConfig | None = None,
) -> list[HighestExpenseItem]:
    cfg = config or QualityScoringConfig()
    costly = sorted(
        (r for r in coerce_records(records) if r.cost > 0),
        key=lambda r: -r.cost,
    )[: cfg.highest_expenses_limit]
    return [
        HighestExpenseItem(
            id=r.id,
            division=r.division_owner,
            ward=r.ward,
            cost=r.cost,
            result=r.result,
            start_date=r.start_date,
            end_date=r.end_date,
            notes=r.notes,
            rank=rank,
        )
        for rank, r in enumerate(costly, start=1)
    ]


def field_completeness(records: Iterable[ServiceRecord]) -> list[FieldCompleteness]:
    rows = coerce_records(records)
    total = len(rows)
    if total == 0:
        return []
    out: list[FieldCompleteness] = []
    for field_name, description, populated in FIELD_CHECKS:
        complete = sum(1 for r in rows if populated(r))
        out.append(
            FieldCompleteness(
                field=field_name,
                completeness=complete / total * 100.0,
                total_records=total,
                complete_records=complete,
                missing_records=total - complete,
                description=description,
            )
        )
    return out
