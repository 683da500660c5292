"""Statistics, identity, version ordering and comparison of benchmark results."""
from dqlbench.analysis.comparator import BaselineComparator, Classification, classify
from dqlbench.analysis.identity import fingerprint
from dqlbench.analysis.statistics import summarize
from dqlbench.analysis.table import ComparisonTable, build_table
from dqlbench.analysis.versions import Version, compare_versions, is_version_at_least, parse_version

__all__ = [
    "BaselineComparator",
    "Classification",
    "classify",
    "fingerprint",
    "summarize",
    "ComparisonTable",
    "build_table",
    "Version",
    "compare_versions",
    "is_version_at_least",
    "parse_version",
]
