"""Shared fixtures for service-readiness tests."""

from __future__ import annotations

import itertools
from collections.abc import Callable
from datetime import date
from typing import Any

import pytest

from service_readiness.models.records import ServiceRecord
from service_readiness.quality.config import QualityScoringConfig

RecordFactory = Callable[..., ServiceRecord]


@pytest.fixture
def as_of() -> date:
    """Fixed reference date so time-dependent scores are reproducible."""
    return date(2026, 10, 1)


@pytest.fixture
def config() -> QualityScoringConfig:
    return QualityScoringConfig()


@pytest.fixture
def make_record() -> RecordFactory:
    """Factory for a complete, clean record; keyword overrides win.

    Ids auto-increment unless ``id`` is given.
    """
    ids = itertools.count(1)

    def _make(**overrides: Any) -> ServiceRecord:
        data: dict[str, Any] = {
            "id": next(ids),
            "start_date": "2026-09-01",
            "end_date": "2026-09-10",
            "division_owner": "Toronto Water",
            "ward": 5,
            "estimated_cost": 1000.0,
            "raw_result": "PASS",
            "notes": "Hydrant inspected and flushed",
        }
        data.update(overrides)
        return ServiceRecord.model_validate(data)

    return _make
