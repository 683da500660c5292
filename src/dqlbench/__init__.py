"""
DQLBench - Benchmarking and regression tracking for embedded query engines.

Times queries against an embedded engine, keeps per-version baselines and
reports how performance drifts across engine releases.
"""

__version__ = "1.0.0"
__license__ = "Apache-2.0"

__all__ = [
    "__version__",
]
