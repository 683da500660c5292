"""
Core infrastructure for DQLBench.

Provides configuration management, data models, the engine adapter,
baseline stores, suite loading and NDJSON transfer.
"""

from dqlbench.core.config import Config, get_config, set_config
from dqlbench.core.exceptions import (
    DqlBenchError,
    SuiteError,
    BenchmarkNotFoundError,
    ScenarioNotFoundError,
    SuiteParseError,
    SuiteValidationError,
    EngineError,
    EngineLoadError,
    QueryExecutionError,
    StoreError,
    BaselineImportError,
    ConfigurationError,
    UsageError,
)
from dqlbench.core.models import (
    UNSUPPORTED,
    Significance,
    DiffMode,
    ComparisonTag,
    OverwritePolicy,
    BaselineStatus,
    StatDigest,
    BaselineMetrics,
    BaselineId,
    BaselineRecord,
    BenchmarkDefinition,
    PlainStep,
    ValidatedStep,
)
from dqlbench.core.engine import (
    QueryEngine,
    QueryItem,
    QueryResult,
    SqliteEngine,
    load_engine,
    prepare_engine,
    resolve_engine_version,
)
from dqlbench.core.store import (
    BaselineStore,
    EngineBaselineStore,
    FileBaselineStore,
    get_baseline_store,
)
from dqlbench.core.suite_loader import BenchmarkSuite, ScenarioSuite, load_benchmarks, load_scenarios
from dqlbench.core.transfer import TransferSummary, export_baselines, export_query, import_baselines

__all__ = [
    # Config
    "Config",
    "get_config",
    "set_config",
    # Exceptions
    "DqlBenchError",
    "SuiteError",
    "BenchmarkNotFoundError",
    "ScenarioNotFoundError",
    "SuiteParseError",
    "SuiteValidationError",
    "EngineError",
    "EngineLoadError",
    "QueryExecutionError",
    "StoreError",
    "BaselineImportError",
    "ConfigurationError",
    "UsageError",
    # Models
    "UNSUPPORTED",
    "Significance",
    "DiffMode",
    "ComparisonTag",
    "OverwritePolicy",
    "BaselineStatus",
    "StatDigest",
    "BaselineMetrics",
    "BaselineId",
    "BaselineRecord",
    "BenchmarkDefinition",
    "PlainStep",
    "ValidatedStep",
    # Engine
    "QueryEngine",
    "QueryItem",
    "QueryResult",
    "SqliteEngine",
    "load_engine",
    "prepare_engine",
    "resolve_engine_version",
    # Stores
    "BaselineStore",
    "EngineBaselineStore",
    "FileBaselineStore",
    "get_baseline_store",
    # Suites
    "BenchmarkSuite",
    "ScenarioSuite",
    "load_benchmarks",
    "load_scenarios",
    # Transfer
    "TransferSummary",
    "export_baselines",
    "export_query",
    "import_baselines",
]
