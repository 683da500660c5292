"""Reduce timing samples to a statistical digest."""

import math
from typing import Sequence

from dqlbench.core.models import StatDigest


def percentile(sorted_values: Sequence[float], fraction: float) -> float:
    """Nearest-rank style percentile: element at floor(n * fraction), clamped."""
    index = min(int(math.floor(len(sorted_values) * fraction)), len(sorted_values) - 1)
    return sorted_values[index]


def summarize(samples: Sequence[float], result_count: int) -> StatDigest:
    """
    Compute mean, median, extremes, population standard deviation and
    p95/p99 for a non-empty sequence of timings in milliseconds.

    Args:
        samples: Timings from each successful repetition, any order
        result_count: Rows returned by the first successful repetition

    Raises:
        ValueError: If there are no samples or a sample is negative
    """
    if not samples:
        raise ValueError("No timing samples to summarize")
    if any(s < 0 for s in samples):
        raise ValueError("Timing samples must be non-negative")

    ordered = sorted(samples)
    n = len(ordered)
    mean = sum(ordered) / n

    if n % 2 == 0:
        median = (ordered[n // 2 - 1] + ordered[n // 2]) / 2
    else:
        median = ordered[n // 2]

    variance = sum((s - mean) ** 2 for s in ordered) / n

    # Clamp float error so min <= mean <= max holds exactly
    mean = min(max(mean, ordered[0]), ordered[-1])

    return StatDigest(
        mean=mean,
        median=median,
        min=ordered[0],
        max=ordered[-1],
        std_dev=math.sqrt(variance),
        p95=percentile(ordered, 0.95),
        p99=percentile(ordered, 0.99),
        result_count=result_count,
        runs=n,
    )
