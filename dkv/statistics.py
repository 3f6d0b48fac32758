"""Descriptive statistics and a bucketed size histogram for database metrics."""

from __future__ import annotations

import math
import threading
from dataclasses import dataclass
from typing import Sequence

_BOUNDARIES: tuple[int, ...] = (
    16, 64, 256, 1024, 4096,
    16384, 65536, 262144, 1048576,
    4194304, 16777216, 67108864,
    268435456, 1073741824, 4294967296,
)


@dataclass(frozen=True)
class Stats:
    """Population statistics of a series of values."""

    std_deviation: float = 0.0
    min: float = 0.0
    max: float = 0.0
    mean: float = 0.0
    min_max_ratio: float = 0.0


@dataclass(frozen=True)
class DistributionStats(Stats):
    """Statistics plus a 0..1 score of how evenly values are spread (1 is perfectly even)."""

    distribution_quality: float = 0.0


def new_stats(values: Sequence[float]) -> Stats:
    """Compute mean, population standard deviation, min, max and min/max ratio."""
    if not values:
        return Stats()
    lowest = min(values)
    highest = max(values)
    mean = math.fsum(values) / len(values)
    variance = math.fsum((v - mean) ** 2 for v in values) / len(values)
    ratio = lowest / highest if highest > 0 else 1.0
    return Stats(
        std_deviation=math.sqrt(variance),
        min=lowest,
        max=highest,
        mean=mean,
        min_max_ratio=ratio,
    )


def new_distribution_stats(shard_sizes: Sequence[float]) -> DistributionStats:
    """Rate the evenness of shard sizes from the coefficient of variation and min/max ratio."""
    stats = new_stats(shard_sizes)
    cv = stats.std_deviation / stats.mean if stats.mean > 0 else 0.0
    quality = (1.0 - min(1.0, cv)) * 0.5 + stats.min_max_ratio * 0.5
    return DistributionStats(
        std_deviation=stats.std_deviation,
        min=stats.min,
        max=stats.max,
        mean=stats.mean,
        min_max_ratio=stats.min_max_ratio,
        distribution_quality=quality,
    )


def _trunc_div(numerator: int, denominator: int) -> int:
    quotient = abs(numerator) // abs(denominator)
    return quotient if (numerator >= 0) == (denominator >= 0) else -quotient


class SizeHistogram:
    """Thread-safe histogram of sizes in exponential buckets from bytes to gigabytes."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._boundaries = _BOUNDARIES
        self._buckets = [0] * (len(_BOUNDARIES) + 1)
        self._count = 0
        self._sum = 0

    def add_sample(self, size: int) -> None:
        """Record one size sample."""
        index = next(
            (i for i, bound in enumerate(self._boundaries) if size <= bound),
            len(self._boundaries),
        )
        with self._lock:
            self._buckets[index] += 1
            self._count += 1
            self._sum += size

    def count(self) -> int:
        """Return the number of recorded samples."""
        with self._lock:
            return self._count

    def average_size(self) -> int:
        """Return the integer mean of all samples, 0 when empty."""
        with self._lock:
            if self._count == 0:
                return 0
            return _trunc_div(self._sum, self._count)

    def _bucket_estimate(self, index: int) -> int:
        bounds = self._boundaries
        if index == 0:
            return bounds[0] // 2
        if index < len(bounds):
            return (bounds[index - 1] + bounds[index]) // 2
        return bounds[-1] * 2

    def _estimate_at(self, target: int) -> int:
        cumulative = 0
        for index, bucket_count in enumerate(self._buckets):
            cumulative += bucket_count
            if cumulative >= target:
                return self._bucket_estimate(index)
        return _trunc_div(self._sum, self._count)

    def median_estimate(self) -> int:
        """Estimate the median size from the bucket counts, 0 when empty."""
        with self._lock:
            if self._count == 0:
                return 0
            return self._estimate_at(self._count // 2)

    def reset(self) -> None:
        """Discard all samples."""
        with self._lock:
            self._count = 0
            self._sum = 0
            self._buckets = [0] * len(self._buckets)

    def percentile_estimate(self, percentile: int) -> int:
        """Estimate the given percentile (0-100); 0 when empty or out of range."""
        with self._lock:
            if self._count == 0 or percentile < 0 or percentile > 100:
                return 0
            target = math.ceil(self._count * percentile / 100.0)
            return self._estimate_at(target)

    def size_distribution(self) -> tuple[list[int], list[float]]:
        """Return the bucket boundaries and the percentage of samples in each bucket."""
        with self._lock:
            if self._count == 0:
                return list(self._boundaries), [0.0] * len(self._buckets)
            percentages = [c * 100.0 / self._count for c in self._buckets]
            return list(self._boundaries), percentages