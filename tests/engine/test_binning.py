"""Tests for the cost distribution binner (linear and hybrid strategies)."""

from __future__ import annotations

import numpy as np
import pytest

from service_readiness.engine.binning import (
    bin_costs,
    calculate_cost_distribution,
    format_cost,
    nearest_rank,
    positive_costs,
    select_strategy,
    split_bin_count,
    target_bin_count,
)
from service_readiness.models.dashboard import BinningStrategy, CostBin


def _records(costs: list[float | None]) -> list[dict]:
    return [{"id": i, "estimated_cost": c} for i, c in enumerate(costs, start=1)]


def _assert_partition(bins: list[CostBin], n: int) -> None:
    assert sum(b.count for b in bins) == n
    assert sum(b.percentage for b in bins) == pytest.approx(100.0)
    for left, right in zip(bins, bins[1:]):
        assert left.max <= right.min
        assert left.max < right.max


# ===================================================================
# Helpers
# ===================================================================


class TestHelpers:
    """Bin count, split, quantile and label formatting."""

    @pytest.mark.parametrize(
        ("n", "expected"), [(1, 6), (36, 6), (100, 8), (101, 9), (400, 12)]
    )
    def test_target_bin_count(self, n: int, expected: int) -> None:
        assert target_bin_count(n) == expected

    @pytest.mark.parametrize(
        ("total", "expected"), [(6, (5, 1)), (8, (6, 2)), (9, (7, 2)), (12, (9, 3))]
    )
    def test_split_bin_count(self, total: int, expected: tuple[int, int]) -> None:
        assert split_bin_count(total, 0.7) == expected

    def test_nearest_rank(self) -> None:
        values = np.arange(1.0, 11.0)
        assert nearest_rank(values, 0.5) == 6.0
        assert nearest_rank(values, 0.75) == 8.0
        assert nearest_rank(values, 1.0) == 10.0

    @pytest.mark.parametrize(
        ("cost", "label"),
        [(999, "$999"), (1500, "$1.5K"), (2_500_000, "$2.50M")],
    )
    def test_format_cost(self, cost: float, label: str) -> None:
        assert format_cost(cost) == label

    def test_positive_costs_filters_and_sorts(self) -> None:
        costs = positive_costs(_records([30, None, 0, -5, 10, 20]))
        assert costs.tolist() == [10.0, 20.0, 30.0]


# ===================================================================
# Strategy selection
# ===================================================================


class TestSelectStrategy:
    """HYBRID only when the range dwarfs the median."""

    def test_empty(self) -> None:
        assert select_strategy(np.array([])) == BinningStrategy.EMPTY

    def test_compact_is_linear(self) -> None:
        costs = np.arange(1.0, 101.0)
        assert select_strategy(costs) == BinningStrategy.LINEAR

    def test_skewed_is_hybrid(self) -> None:
        costs = np.array([*range(10, 1001, 10), 10_000_000], dtype=float)
        assert select_strategy(costs) == BinningStrategy.HYBRID


# ===================================================================
# Binning
# ===================================================================


class TestLinearBins:
    """Equal-width bins over a compact distribution."""

    def test_partition(self) -> None:
        bins = calculate_cost_distribution(_records(list(range(1, 101))))
        assert len(bins) == 8
        _assert_partition(bins, 100)
        assert bins[0].min == pytest.approx(1.0)
        assert bins[-1].max == pytest.approx(100.0)

    def test_single_value(self) -> None:
        bins = calculate_cost_distribution(_records([500]))
        assert len(bins) == 1
        assert bins[0].count == 1
        assert bins[0].percentage == pytest.approx(100.0)
        assert bins[0].min == bins[0].max == pytest.approx(500.0)

    def test_identical_values(self) -> None:
        bins = calculate_cost_distribution(_records([100] * 10))
        assert [b.count for b in bins] == [10]

    def test_labels(self) -> None:
        bins = calculate_cost_distribution(_records([500, 1500]))
        assert bins[0].label.startswith("$500 - ")
        assert bins[-1].label.endswith(" - $1.5K")


class TestHybridBins:
    """Linear lower segment plus log-spaced upper tail."""

    @pytest.fixture
    def skewed(self) -> list[dict]:
        return _records([*range(10, 1001, 10), 10_000_000])

    def test_partition(self, skewed: list[dict]) -> None:
        bins = calculate_cost_distribution(skewed)
        _assert_partition(bins, 101)
        assert bins[-1].max == pytest.approx(10_000_000)
        assert bins[-1].count == 1

    def test_upper_widths_non_decreasing(self, skewed: list[dict]) -> None:
        costs = positive_costs(skewed)
        pivot = nearest_rank(costs, 0.75)
        upper = [b for b in bin_costs(costs) if b.min >= pivot]
        assert len(upper) == 2
        widths = [b.max - b.min for b in upper]
        assert widths == sorted(widths)

    def test_pivot_value_in_lower_segment(self, skewed: list[dict]) -> None:
        costs = positive_costs(skewed)
        pivot = nearest_rank(costs, 0.75)
        bins = bin_costs(costs)
        lower = [b for b in bins if b.max <= pivot]
        assert sum(b.count for b in lower) == int((costs <= pivot).sum())


def test_empty_distribution() -> None:
    assert calculate_cost_distribution([]) == []
    assert calculate_cost_distribution(_records([0, None, -1])) == []
