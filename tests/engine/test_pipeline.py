"""Tests for DashboardService -- the end-to-end dashboard computation."""

from __future__ import annotations

import logging

import pytest

from service_readiness.engine.pipeline import DashboardService
from service_readiness.quality.readiness import NO_DATA_ISSUE


@pytest.fixture
def service() -> DashboardService:
    return DashboardService()


@pytest.fixture
def raw_records() -> list[dict]:
    """Records as they arrive from the source table, warts and all."""
    rows: list[dict] = []
    for i in range(1, 61):
        rows.append({
            "id": i,
            "start_date": f"2026-0{1 + i % 3}-1{i % 9}",
            "end_date": f"2026-0{1 + i % 3}-2{i % 9}",
            "service_division_owner": "Toronto Water" if i % 2 else "Parks",
            "ward": 5 if i % 4 else 12,
            "estimated_cost": 1000 + 10 * i,
            "service_result": "PASS" if i % 5 else "FAIL",
            "notes": "Routine maintenance visit",
        })
    for i in range(61, 101):
        rows.append({
            "id": i,
            "start_date": "2026-03-01",
            "end_date": "2026-03-05",
            "service_division_owner": "Toronto Water",
            "ward": 66,
            "estimated_cost": "2,000",
            "service_result": "",
        })
    return rows


class TestBuild:
    """Full dashboard result."""

    def test_sections_consistent(self, service, raw_records, as_of) -> None:
        result = service.build(raw_records, as_of=as_of)
        assert result.kpi_data.total_services == 100
        assert result.ward_analysis.invalid_ward_anomaly.count == 40
        assert result.readiness_metrics.out_of_domain_ward_count == 40
        assert sum(b.count for b in result.cost_distribution) == 100
        assert sum(p.total_services for p in result.time_series_data) == 100
        assert result.readiness_metrics.overall_score == pytest.approx(
            result.data_quality.overall_score
        )
        assert len(result.field_completeness) == 6
        assert len(result.top_wards) == 2
        assert result.top_wards[0].name.startswith("Ward ")

    def test_empty_input(self, service, as_of) -> None:
        result = service.build([], as_of=as_of)
        assert result.kpi_data.total_services == 0
        assert result.cost_distribution == []
        assert result.time_series_data == []
        assert result.ward_analysis.valid_wards == []
        assert result.readiness_metrics.critical_issues == [NO_DATA_ISSUE]

    def test_camel_case_json(self, service, raw_records, as_of) -> None:
        dumped = service.build(raw_records, as_of=as_of).model_dump(
            mode="json", by_alias=True
        )
        assert {
            "kpiData",
            "dataQuality",
            "costDistribution",
            "wardAnalysis",
            "timeSeriesData",
            "readinessMetrics",
        } <= set(dumped)
        assert "invalidWardAnomaly" in dumped["wardAnalysis"]
        assert "overallScore" in dumped["readinessMetrics"]
        assert "momChange" in dumped["timeSeriesData"][0]

    def test_deterministic(self, service, raw_records, as_of) -> None:
        first = service.build(raw_records, as_of=as_of)
        second = service.build(raw_records, as_of=as_of)
        assert first == second

    def test_bad_shape_raises(self, service) -> None:
        with pytest.raises(TypeError):
            service.build("not records")  # type: ignore[arg-type]

    def test_duplicate_ids_logged(self, service, make_record, as_of, caplog) -> None:
        rows = [make_record(id=1), make_record(id=1)]
        with caplog.at_level(logging.WARNING):
            service.build(rows, as_of=as_of)
        assert "appear more than once" in caplog.text


class TestBuildReadiness:
    """Readiness-only view."""

    def test_matches_full_build(self, service, raw_records, as_of) -> None:
        full = service.build(raw_records, as_of=as_of)
        view = service.build_readiness(raw_records, as_of=as_of)
        assert view.data_quality == full.data_quality
        assert view.readiness_metrics == full.readiness_metrics
        assert view.kpi_data == full.kpi_data
