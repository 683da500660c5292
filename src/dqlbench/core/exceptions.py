"""
Custom exceptions for DQLBench.

Provides a hierarchy of exceptions for the error conditions that reach
the command layer. Per-run query failures never surface here; the runner
turns them into an unsupported digest.
"""


class DqlBenchError(Exception):
    """Base exception for all DQLBench errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


# =============================================================================
# Suite Errors
# =============================================================================

class SuiteError(DqlBenchError):
    """Base exception for benchmark and scenario suite errors."""
    pass


class BenchmarkNotFoundError(SuiteError):
    """Raised when a benchmark name or index does not resolve."""

    def __init__(self, reference: str):
        super().__init__(
            f"Benchmark '{reference}' not found",
            {"benchmark": reference}
        )


class ScenarioNotFoundError(SuiteError):
    """Raised when a scenario name or index does not resolve."""

    def __init__(self, reference: str):
        super().__init__(
            f"Scenario '{reference}' not found",
            {"scenario": reference}
        )


class SuiteParseError(SuiteError):
    """Raised when a suite file cannot be read or parsed."""

    def __init__(self, suite_path: str, error: str):
        super().__init__(
            f"Failed to parse suite at '{suite_path}': {error}",
            {"suite_path": suite_path, "parse_error": error}
        )


class SuiteValidationError(SuiteError):
    """Raised when a suite entry fails validation."""

    def __init__(self, entry_name: str, errors: list[str]):
        super().__init__(
            f"Suite entry '{entry_name}' validation failed: {'; '.join(errors)}",
            {"entry": entry_name, "errors": errors}
        )


# =============================================================================
# Engine Errors
# =============================================================================

class EngineError(DqlBenchError):
    """Base exception for query engine errors."""
    pass


class EngineLoadError(EngineError):
    """Raised when the configured engine cannot be created."""

    def __init__(self, target: str, reason: str):
        super().__init__(
            f"Failed to load query engine '{target}': {reason}",
            {"target": target, "reason": reason}
        )


class QueryExecutionError(EngineError):
    """Raised when a statement is rejected by the engine."""

    def __init__(self, statement: str, reason: str):
        super().__init__(
            f"Query failed: {reason}",
            {"statement": statement, "reason": reason}
        )


# =============================================================================
# Store Errors
# =============================================================================

class StoreError(DqlBenchError):
    """Base exception for baseline store errors."""
    pass


class BaselineImportError(StoreError):
    """Raised when a baseline file cannot be imported at all."""

    def __init__(self, path: str, reason: str):
        super().__init__(
            f"Cannot import baselines from '{path}': {reason}",
            {"path": path, "reason": reason}
        )


# =============================================================================
# Configuration Errors
# =============================================================================

class ConfigurationError(DqlBenchError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, setting: str, reason: str):
        super().__init__(
            f"Configuration error for '{setting}': {reason}",
            {"setting": setting, "reason": reason}
        )


# =============================================================================
# Command Errors
# =============================================================================

class UsageError(DqlBenchError):
    """Raised when a command is invoked with invalid arguments."""

    def __init__(self, usage: str, reason: str):
        super().__init__(
            f"{reason}. Usage: {usage}",
            {"usage": usage, "reason": reason}
        )
