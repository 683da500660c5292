"""
Pydantic models for DQLBench.

Defines the benchmark definitions loaded from suite files, the timing
digest, the persisted baseline record and the scenario step variants,
with validation at every boundary where documents enter the harness.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Marker value meaning "query unsupported on this engine version"
UNSUPPORTED = -1


# =============================================================================
# Enums
# =============================================================================

class Significance(str, Enum):
    """Direction and magnitude of a timing change."""
    NO_CHANGE = "no_change"
    IMPROVEMENT = "improvement"
    SMALL_REGRESSION = "small_regression"
    LARGE_REGRESSION = "large_regression"

    @property
    def is_regression(self) -> bool:
        return self in (Significance.SMALL_REGRESSION, Significance.LARGE_REGRESSION)


class DiffMode(str, Enum):
    """How a timing change is expressed."""
    ABSOLUTE = "absolute"
    PERCENT = "percent"


class ComparisonTag(str, Enum):
    """Why a historical baseline was chosen for comparison."""
    PATCH = "patch"
    MINOR = "minor"


class OverwritePolicy(str, Enum):
    """Conflict policy while creating baselines for a batch."""
    ASK = "ask"
    ALL = "all"
    NONE = "none"


class BaselineStatus(str, Enum):
    """Outcome of one benchmark in a baseline-creation batch."""
    CREATED = "created"
    OVERWRITTEN = "overwritten"
    SKIPPED = "skipped"
    UNSUPPORTED = "unsupported"
    FAILED = "failed"


# =============================================================================
# Timing Models
# =============================================================================

class StatDigest(BaseModel):
    """Statistical digest of one benchmark run (milliseconds)."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    mean: float
    median: float
    min: float
    max: float
    std_dev: float = Field(alias="stdDev")
    p95: float
    p99: float
    result_count: int = Field(alias="resultCount")
    runs: int

    @classmethod
    def unsupported(cls) -> "StatDigest":
        """Sentinel digest for a query the engine rejected."""
        return cls(
            mean=UNSUPPORTED,
            median=UNSUPPORTED,
            min=UNSUPPORTED,
            max=UNSUPPORTED,
            std_dev=UNSUPPORTED,
            p95=UNSUPPORTED,
            p99=UNSUPPORTED,
            result_count=UNSUPPORTED,
            runs=UNSUPPORTED,
        )

    @property
    def is_supported(self) -> bool:
        return self.mean != UNSUPPORTED

    @property
    def queries_per_second(self) -> float:
        return 1000 / self.mean if self.mean > 0 else 0.0


class BaselineMetrics(StatDigest):
    """Digest as persisted with a baseline, stamped with its creation time."""

    timestamp: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat(timespec="milliseconds")
    )


# =============================================================================
# Baseline Models
# =============================================================================

class BaselineId(BaseModel):
    """Composite key of a baseline document."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    query: str = Field(description="Display copy of the query, possibly truncated")
    fingerprint: str = Field(alias="hash", min_length=1)
    version: str = Field(alias="ditto_version", min_length=1)


class BaselineRecord(BaseModel):
    """One stored baseline: a digest for a (fingerprint, engine version) pair."""

    model_config = ConfigDict(populate_by_name=True)

    id: BaselineId = Field(alias="_id")
    metrics: BaselineMetrics

    @property
    def fingerprint(self) -> str:
        return self.id.fingerprint

    @property
    def version(self) -> str:
        return self.id.version

    @property
    def key(self) -> tuple[str, str]:
        return (self.id.fingerprint, self.id.version)

    @property
    def mean(self) -> float:
        return self.metrics.mean

    @classmethod
    def from_digest(
        cls,
        query: str,
        fingerprint: str,
        version: str,
        digest: StatDigest,
        max_query_length: int = 100,
    ) -> "BaselineRecord":
        """
        Build a record from a fresh digest.

        The query text is truncated for display only; the fingerprint was
        computed by the caller from the full text.
        """
        display_query = query
        if len(query) > max_query_length:
            display_query = f"{query[:max_query_length]}..."
        return cls(
            id=BaselineId(query=display_query, fingerprint=fingerprint, version=version),
            metrics=BaselineMetrics(**digest.model_dump()),
        )

    def to_document(self) -> dict:
        """Serialize using the persisted field names."""
        return self.model_dump(mode="json", by_alias=True)


# =============================================================================
# Suite Models
# =============================================================================

class BenchmarkDefinition(BaseModel):
    """A benchmark as defined in the suite file."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    query: str = Field(description="Query under measurement")
    pre_queries: list[str] = Field(
        default_factory=list, alias="preQueries", description="Setup statements, run once untimed"
    )
    post_queries: list[str] = Field(
        default_factory=list, alias="postQueries", description="Cleanup statements, run once untimed"
    )

    @field_validator("query")
    @classmethod
    def validate_query(cls, v: str) -> str:
        """Reject empty queries."""
        if not v.strip():
            raise ValueError("query must not be empty")
        return v


class PlainStep(BaseModel):
    """Scenario step that only executes a query."""

    kind: Literal["plain"] = "plain"
    query: str


class ValidatedStep(BaseModel):
    """Scenario step with expectations on the result."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    kind: Literal["validated"] = "validated"
    query: str
    expected_count: Optional[int] = Field(default=None, alias="expectedCount", ge=0)
    expected_index: Optional[str] = Field(
        default=None, alias="expectedIndex", description="Index name or 'full_scan'"
    )
    max_execution_time: Optional[float] = Field(
        default=None, alias="maxExecutionTime", ge=0, description="Limit in milliseconds"
    )

    @property
    def has_checks(self) -> bool:
        return (
            self.expected_count is not None
            or self.expected_index is not None
            or self.max_execution_time is not None
        )


def parse_step(raw: Union[str, dict]) -> Union[PlainStep, ValidatedStep]:
    """Turn a suite-file step (string or object) into its tagged variant."""
    if isinstance(raw, str):
        return PlainStep(query=raw)
    if isinstance(raw, dict):
        return ValidatedStep.model_validate(raw)
    raise ValueError(f"scenario step must be a string or an object, got {type(raw).__name__}")
