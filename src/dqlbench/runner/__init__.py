"""
Benchmark execution and baseline workflows for DQLBench.
"""

from dqlbench.runner.runner import BenchmarkRunner, RunResult
from dqlbench.runner.orchestrator import (
    BaselineOrchestrator,
    BaselineOutcome,
    BaselineSummary,
    BatchListener,
    BenchmarkReport,
    SuiteReport,
    resolve_conflict,
)
from dqlbench.runner.scenarios import QueryExecutor, ScenarioRunner, extract_index_info

__all__ = [
    "BenchmarkRunner",
    "RunResult",
    "BaselineOrchestrator",
    "BaselineOutcome",
    "BaselineSummary",
    "BatchListener",
    "BenchmarkReport",
    "SuiteReport",
    "resolve_conflict",
    "QueryExecutor",
    "ScenarioRunner",
    "extract_index_info",
]
