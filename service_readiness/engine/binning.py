"""Cost distribution binner -- histogram bins for the cost column.

Positive costs only. Plain equal-width bins when the distribution is
compact; hybrid bins when the full range exceeds ``hybrid_skew_ratio``
times the median: equal-width bins up to the lower quantile, then bins
of equal width in log10 space for the upper tail, so outliers land in
progressively wider buckets.

Bins partition the observed range without overlap: linear bins are
``[min, max)`` with the last one closed, log bins are ``(min, max]``.
Empty bins are omitted from the output.

Deterministic -- no I/O.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable

import numpy as np

from service_readiness.models.dashboard import BinningStrategy, CostBin
from service_readiness.models.records import ServiceRecord, coerce_records
from service_readiness.quality.config import QualityScoringConfig

logger = logging.getLogger(__name__)


def positive_costs(records: Iterable[ServiceRecord]) -> np.ndarray:
    """Sorted array of every strictly positive estimated cost."""
    costs = [r.estimated_cost for r in coerce_records(records)]
    arr = np.array([c for c in costs if c is not None and c > 0], dtype=np.float64)
    return np.sort(arr)


def target_bin_count(n: int, config: QualityScoringConfig | None = None) -> int:
    """clamp(min_bins, max_bins, ceil(sqrt(n) * factor))."""
    cfg = config or QualityScoringConfig()
    raw = math.ceil(math.sqrt(n) * cfg.bin_count_factor)
    return min(cfg.max_bins, max(cfg.min_bins, raw))


def split_bin_count(total: int, linear_share: float) -> tuple[int, int]:
    """Split ``total`` bins into (linear, log) counts; each at least 1."""
    linear = max(1, min(total - 1, math.ceil(total * linear_share)))
    return linear, max(1, total - linear)


def nearest_rank(sorted_values: np.ndarray, quantile: float) -> float:
    """Value at index ``floor(n * quantile)`` of an ascending array."""
    index = min(len(sorted_values) - 1, int(math.floor(len(sorted_values) * quantile)))
    return float(sorted_values[index])


def select_strategy(
    sorted_costs: np.ndarray,
    config: QualityScoringConfig | None = None,
) -> BinningStrategy:
    """HYBRID when ``max - min > hybrid_skew_ratio * median``."""
    cfg = config or QualityScoringConfig()
    if sorted_costs.size == 0:
        return BinningStrategy.EMPTY
    spread = float(sorted_costs[-1] - sorted_costs[0])
    median = nearest_rank(sorted_costs, 0.5)
    if spread > median * cfg.hybrid_skew_ratio:
        return BinningStrategy.HYBRID
    return BinningStrategy.LINEAR


def format_cost(cost: float) -> str:
    if cost < 1_000:
        return f"${cost:.0f}"
    if cost < 1_000_000:
        return f"${cost / 1_000:.1f}K"
    return f"${cost / 1_000_000:.2f}M"


def format_cost_range(low: float, high: float) -> str:
    return f"{format_cost(low)} - {format_cost(high)}"


def _linear_edges(low: float, high: float, count: int) -> np.ndarray:
    if high <= low:
        return np.array([low, high], dtype=np.float64)
    edges = np.linspace(low, high, count + 1)
    edges[0], edges[-1] = low, high
    return edges


def _log_edges(low: float, high: float, count: int) -> np.ndarray:
    edges = np.power(10.0, np.linspace(math.log10(low), math.log10(high), count + 1))
    edges[0], edges[-1] = low, high
    return edges


def _to_bins(
    values: np.ndarray,
    edges: np.ndarray,
    population: int,
    right_closed: bool,
) -> list[CostBin]:
    count = len(edges) - 1
    if values.size == 0:
        return []
    side = "left" if right_closed else "right"
    index = np.clip(np.searchsorted(edges, values, side=side) - 1, 0, count - 1)
    counts = np.bincount(index, minlength=count)

    bins: list[CostBin] = []
    for i, n in enumerate(counts):
        if n == 0:
            continue
        low, high = float(edges[i]), float(edges[i + 1])
        bins.append(
            CostBin(
                min=low,
                max=high,
                count=int(n),
                percentage=int(n) / population * 100.0,
                label=format_cost_range(low, high),
            )
        )
    return bins


def bin_costs(
    sorted_costs: np.ndarray,
    config: QualityScoringConfig | None = None,
) -> list[CostBin]:
    """Bin an ascending array of positive costs."""
    cfg = config or QualityScoringConfig()
    strategy = select_strategy(sorted_costs, cfg)
    if strategy == BinningStrategy.EMPTY:
        return []

    n = int(sorted_costs.size)
    low, high = float(sorted_costs[0]), float(sorted_costs[-1])
    total_bins = target_bin_count(n, cfg)

    if strategy == BinningStrategy.LINEAR:
        logger.debug("Linear cost binning: %d values, %d bins", n, total_bins)
        edges = _linear_edges(low, high, total_bins)
        return _to_bins(sorted_costs, edges, n, right_closed=False)

    pivot = nearest_rank(sorted_costs, cfg.lower_quantile)
    linear_count, log_count = split_bin_count(total_bins, cfg.linear_bin_share)
    logger.debug(
        "Hybrid cost binning: %d values, pivot %.2f, %d linear + %d log bins",
        n,
        pivot,
        linear_count,
        log_count,
    )
    lower = sorted_costs[sorted_costs <= pivot]
    upper = sorted_costs[sorted_costs > pivot]

    bins = _to_bins(lower, _linear_edges(low, pivot, linear_count), n, right_closed=False)
    if upper.size > 0:
        bins.extend(
            _to_bins(upper, _log_edges(pivot, high, log_count), n, right_closed=True)
        )
    return bins


def calculate_cost_distribution(
    records: Iterable[ServiceRecord],
    config: QualityScoringConfig | None = None,
) -> list[CostBin]:
    """Histogram bins over every record with a positive cost."""
    return bin_costs(positive_costs(records), config)
