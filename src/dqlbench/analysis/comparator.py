"""Classify timing changes and choose which historical baselines to compare against."""

from dataclasses import dataclass
from typing import Iterable, Optional

from dqlbench.analysis.versions import parse_version, sort_versions
from dqlbench.core.models import BaselineRecord, ComparisonTag, DiffMode, Significance

# Baselines faster than this are compared in absolute milliseconds
ABSOLUTE_MODE_BELOW_MS = 10.0
NOISE_MS = 1.0
LARGE_REGRESSION_MS = 2.0
NOISE_PERCENT = 5.0
LARGE_REGRESSION_PERCENT = 15.0

MAX_PATCH_COMPARISONS = 3
MAX_MINOR_COMPARISONS = 2


@dataclass(frozen=True)
class Classification:
    """Result of comparing a current timing against a baseline timing."""
    significance: Significance
    mode: DiffMode
    baseline_value: float
    current_value: float
    diff: float
    formatted: str

    @property
    def is_significant(self) -> bool:
        return self.significance != Significance.NO_CHANGE


def classify(baseline_value: float, current_value: float) -> Classification:
    """
    Decide whether ``current_value`` is an improvement, a regression or noise
    relative to ``baseline_value``.

    The baseline's magnitude picks the mode: under 10ms the absolute
    difference is used, otherwise the percentage difference.
    """
    if baseline_value < 0 or current_value < 0:
        raise ValueError("Cannot classify unsupported (negative) timings")

    if baseline_value < ABSOLUTE_MODE_BELOW_MS:
        mode = DiffMode.ABSOLUTE
        diff = current_value - baseline_value
        noise, large, unit = NOISE_MS, LARGE_REGRESSION_MS, "ms"
    else:
        mode = DiffMode.PERCENT
        diff = (current_value - baseline_value) / baseline_value * 100
        noise, large, unit = NOISE_PERCENT, LARGE_REGRESSION_PERCENT, "%"

    if abs(diff) < noise:
        significance = Significance.NO_CHANGE
    elif diff < 0:
        significance = Significance.IMPROVEMENT
    elif diff < large:
        significance = Significance.SMALL_REGRESSION
    else:
        significance = Significance.LARGE_REGRESSION

    sign = "+" if diff >= 0 else ""
    return Classification(
        significance=significance,
        mode=mode,
        baseline_value=baseline_value,
        current_value=current_value,
        diff=diff,
        formatted=f"{sign}{diff:.1f}{unit}",
    )


@dataclass
class ComparisonEntry:
    """A historical baseline selected for display next to a current run."""
    record: BaselineRecord
    tag: ComparisonTag
    classification: Optional[Classification] = None

    @property
    def version(self) -> str:
        return self.record.version


class BaselineComparator:
    """Select and classify historical baselines for one engine version."""

    def __init__(self, current_version: str):
        self.current_version = current_version
        self._current = parse_version(current_version)

    def select(self, records: Iterable[BaselineRecord]) -> list[ComparisonEntry]:
        """
        Pick up to 3 most recent patches of the current minor version, then
        the most recent patch of up to 2 earlier minor versions.

        The record for the current version and unsupported records are never
        candidates.
        """
        same_minor: dict[str, BaselineRecord] = {}
        earlier_minor: dict[str, BaselineRecord] = {}

        for record in records:
            if record.version == self.current_version or not record.metrics.is_supported:
                continue
            version = parse_version(record.version)
            if version.minor_key == self._current.minor_key:
                same_minor[record.version] = record
            elif version.major == self._current.major and version.minor < self._current.minor:
                earlier_minor[record.version] = record

        patches = [
            ComparisonEntry(record=same_minor[v], tag=ComparisonTag.PATCH)
            for v in sort_versions(same_minor)[:MAX_PATCH_COMPARISONS]
        ]

        # Versions arrive most recent first, so the first seen per minor wins
        representatives: dict[int, BaselineRecord] = {}
        for v in sort_versions(earlier_minor):
            representatives.setdefault(parse_version(v).minor, earlier_minor[v])
        minors = [
            ComparisonEntry(record=representatives[minor], tag=ComparisonTag.MINOR)
            for minor in sorted(representatives, reverse=True)[:MAX_MINOR_COMPARISONS]
        ]

        return patches + minors

    def compare(self, current_value: float, records: Iterable[BaselineRecord]) -> list[ComparisonEntry]:
        """Select comparison baselines and classify the current value against each."""
        entries = self.select(records)
        for entry in entries:
            entry.classification = classify(entry.record.mean, current_value)
        return entries
