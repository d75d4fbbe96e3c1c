"""Dashboard orchestrator service.

Validates the record set once, runs the quality dimension calculator,
the ward/division and time-series aggregators and the cost binner over
it, then feeds the dimension scores to the readiness aggregator and
returns a single ``DashboardResult``.

Every call recomputes from scratch; no state is kept between calls.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable
from datetime import date

from service_readiness.engine.aggregation import analyze_divisions, analyze_wards
from service_readiness.engine.binning import calculate_cost_distribution
from service_readiness.engine.summary import (
    calculate_kpis,
    field_completeness,
    highest_expenses,
    results_breakdown,
    top_by_cost,
)
from service_readiness.engine.timeseries import calculate_heatmap, calculate_time_series
from service_readiness.models.common import today
from service_readiness.models.dashboard import DashboardResult, DataReadinessResult
from service_readiness.models.records import ServiceRecord, coerce_records
from service_readiness.quality.config import QualityScoringConfig
from service_readiness.quality.dimensions import QualityDimensionCalculator
from service_readiness.quality.readiness import ReadinessAggregator

logger = logging.getLogger(__name__)


class DashboardService:
    """Runs the whole computation layer over one record set."""

    def __init__(self, config: QualityScoringConfig | None = None) -> None:
        self._config = config or QualityScoringConfig()
        self._calculator = QualityDimensionCalculator(config=self._config)
        self._readiness = ReadinessAggregator(config=self._config)

    def _prepare(self, records: Iterable[ServiceRecord | dict]) -> list[ServiceRecord]:
        rows = coerce_records(records)
        repeated = [rid for rid, n in Counter(r.id for r in rows).items() if n > 1]
        if repeated:
            logger.warning("%d record ids appear more than once", len(repeated))
        return rows

    def build(
        self,
        records: Iterable[ServiceRecord | dict],
        as_of: date | None = None,
    ) -> DashboardResult:
        """Compute the full dashboard result object.

        Raises:
            TypeError: If ``records`` is not a collection of record-like values.
            ValueError: If a record has no integer id.
        """
        cfg = self._config
        rows = self._prepare(records)
        reference = as_of or today()
        logger.info("Building dashboard for %d records as of %s", len(rows), reference)

        quality = self._calculator.score_all(rows, reference)
        wards = analyze_wards(rows, cfg)
        divisions = analyze_divisions(rows, cfg)
        stats = QualityDimensionCalculator.update_stats(rows, reference)
        readiness = self._readiness.aggregate(
            quality,
            total_records=len(rows),
            out_of_domain_ward_count=wards.invalid_ward_anomaly.count,
            out_of_domain_codes=list(wards.invalid_ward_anomaly.codes),
            days_since_update=stats["days_since_update"],
        )

        return DashboardResult(
            kpi_data=calculate_kpis(rows),
            data_quality=quality,
            cost_distribution=calculate_cost_distribution(rows, cfg),
            ward_analysis=wards,
            division_analysis=divisions,
            time_series_data=calculate_time_series(rows, cfg),
            readiness_metrics=readiness,
            services_by_result=results_breakdown(rows),
            top_divisions=top_by_cost(
                divisions.divisions, str, cfg.top_list_limit
            ),
            top_wards=top_by_cost(
                wards.valid_wards, lambda ward: f"Ward {ward}", cfg.top_list_limit
            ),
            highest_expenses=highest_expenses(rows, cfg),
            heatmap_data=calculate_heatmap(rows),
            field_completeness=field_completeness(rows),
        )

    def build_readiness(
        self,
        records: Iterable[ServiceRecord | dict],
        as_of: date | None = None,
    ) -> DataReadinessResult:
        """Compute only the data-readiness view (KPIs, quality, readiness)."""
        rows = self._prepare(records)
        quality, readiness = self._readiness.assess(rows, as_of or today())
        return DataReadinessResult(
            kpi_data=calculate_kpis(rows),
            data_quality=quality,
            readiness_metrics=readiness,
            field_completeness=field_completeness(rows),
        )
