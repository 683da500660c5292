"""
Configuration management for DQLBench.

Handles loading configuration from environment variables and .env files,
and provides defaults for all harness settings.
"""

import os
from pathlib import Path
from typing import Optional
from dataclasses import dataclass, field

from dotenv import load_dotenv

from dqlbench.core.exceptions import ConfigurationError
from dqlbench.utils.logging import LOG_LEVELS


@dataclass
class EngineConfig:
    """Query engine configuration."""

    target: str = "sqlite"  # "sqlite" or "package.module:factory"
    database: str = ":memory:"
    version: Optional[str] = None  # overrides the detected engine version


@dataclass
class StoreConfig:
    """Baseline store configuration."""

    backend: str = "file"  # file or engine
    path: Optional[Path] = None


@dataclass
class RunsConfig:
    """Default repetition counts per command."""

    adhoc: int = 20
    benchmark: int = 5
    baseline: int = 50


@dataclass
class Config:
    """
    Main configuration class for DQLBench.

    Loads configuration from environment variables and provides
    sensible defaults for all settings.
    """

    # Paths
    base_dir: Path = field(default_factory=lambda: Path.cwd())
    benchmarks_file: Optional[Path] = None
    scenarios_file: Optional[Path] = None
    baselines_seed_file: Optional[Path] = None
    exports_dir: Optional[Path] = None
    logs_dir: Optional[Path] = None

    # Logging
    log_level: str = "WARNING"

    # Stored query text is truncated to this length; fingerprints are not
    query_id_max_length: int = 100

    # Sub-configurations
    engine: EngineConfig = field(default_factory=EngineConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    runs: RunsConfig = field(default_factory=RunsConfig)

    def __post_init__(self) -> None:
        if self.benchmarks_file is None:
            self.benchmarks_file = self.base_dir / "benchmarks.json"
        if self.scenarios_file is None:
            self.scenarios_file = self.base_dir / "scenarios.json"
        if self.baselines_seed_file is None:
            self.baselines_seed_file = self.base_dir / "benchmark_baselines.ndjson"
        if self.exports_dir is None:
            self.exports_dir = self.base_dir / "exports"
        if self.logs_dir is None:
            self.logs_dir = self.base_dir / "logs"
        if self.store.path is None:
            self.store.path = self.base_dir / "benchmark_baselines.json"

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> "Config":
        """
        Load configuration from environment variables.

        Args:
            env_file: Optional path to .env file

        Returns:
            Config instance with values from environment

        Raises:
            ConfigurationError: If a run count, the store backend or the log
                level is invalid
        """
        if env_file and env_file.exists():
            load_dotenv(env_file)
        else:
            load_dotenv()

        base_dir = Path(os.getenv("DQLBENCH_BASE_DIR", str(Path.cwd())))

        def path_env(name: str) -> Optional[Path]:
            value = os.getenv(name)
            return Path(value) if value else None

        config = cls(
            base_dir=base_dir,
            benchmarks_file=path_env("DQLBENCH_BENCHMARKS_FILE"),
            scenarios_file=path_env("DQLBENCH_SCENARIOS_FILE"),
            baselines_seed_file=path_env("DQLBENCH_BASELINES_FILE"),
            exports_dir=path_env("DQLBENCH_EXPORTS_DIR"),
            logs_dir=path_env("DQLBENCH_LOGS_DIR"),
            log_level=os.getenv("DQLBENCH_LOG_LEVEL", "WARNING").upper(),
            query_id_max_length=_int_env("DQLBENCH_QUERY_ID_MAX", 100),
            engine=EngineConfig(
                target=os.getenv("DQLBENCH_ENGINE", "sqlite"),
                database=os.getenv("DQLBENCH_DATABASE", ":memory:"),
                version=os.getenv("DQLBENCH_ENGINE_VERSION") or None,
            ),
            store=StoreConfig(
                backend=os.getenv("DQLBENCH_STORE", "file").lower(),
                path=path_env("DQLBENCH_STORE_PATH"),
            ),
            runs=RunsConfig(
                adhoc=_int_env("DQLBENCH_RUNS_ADHOC", 20),
                benchmark=_int_env("DQLBENCH_RUNS_BENCHMARK", 5),
                baseline=_int_env("DQLBENCH_RUNS_BASELINE", 50),
            ),
        )

        if config.store.backend not in ("file", "engine"):
            raise ConfigurationError(
                "DQLBENCH_STORE", f"unknown backend '{config.store.backend}' (use file or engine)"
            )
        if config.log_level not in LOG_LEVELS:
            raise ConfigurationError(
                "DQLBENCH_LOG_LEVEL", f"unknown level '{config.log_level}'"
            )

        return config


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(name, f"expected an integer, got '{raw}'")
    if value < 1:
        raise ConfigurationError(name, f"must be a positive integer, got {value}")
    return value


# Global configuration instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config


def set_config(config: Config) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
