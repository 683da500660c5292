"""
Benchmark workflows: live reports against stored baselines, baseline
creation with interactive conflict handling, and the saved-baseline table.
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional, Protocol

from dqlbench.analysis.comparator import BaselineComparator, ComparisonEntry
from dqlbench.analysis.identity import fingerprint
from dqlbench.analysis.table import ComparisonTable, TableRowInput, build_table
from dqlbench.core.engine import QueryEngine
from dqlbench.core.exceptions import StoreError
from dqlbench.core.models import (
    UNSUPPORTED,
    BaselineRecord,
    BaselineStatus,
    BenchmarkDefinition,
    OverwritePolicy,
    StatDigest,
)
from dqlbench.core.store import BaselineStore
from dqlbench.core.suite_loader import BenchmarkSuite
from dqlbench.runner.runner import BenchmarkRunner, RunResult
from dqlbench.utils.logging import get_logger

logger = get_logger(__name__)

ADHOC_NAME = "ad-hoc"


class Prompter(Protocol):
    """Line-input callback used for interactive decisions."""

    async def ask(self, question: str) -> str:
        ...


# =============================================================================
# Result Types
# =============================================================================

@dataclass
class BenchmarkReport:
    """Outcome of one live benchmark, with its comparisons when requested."""
    name: str
    definition: BenchmarkDefinition
    fingerprint: str
    version: str
    run: RunResult
    compared: bool = False
    current_baseline: Optional[BaselineRecord] = None
    comparisons: list[ComparisonEntry] = field(default_factory=list)

    @property
    def digest(self) -> StatDigest:
        return self.run.digest

    @property
    def supported(self) -> bool:
        return self.run.supported


@dataclass
class SuiteReport:
    version: str
    runs: int
    reports: list[BenchmarkReport]
    table: ComparisonTable

    @property
    def skipped(self) -> int:
        return sum(1 for r in self.reports if not r.supported)


@dataclass
class BaselineOutcome:
    name: str
    fingerprint: str
    status: BaselineStatus
    digest: Optional[StatDigest] = None
    existing: Optional[BaselineRecord] = None
    error: Optional[str] = None


@dataclass
class BaselineSummary:
    version: str
    runs: int
    outcomes: list[BaselineOutcome] = field(default_factory=list)

    def count(self, *statuses: BaselineStatus) -> int:
        return sum(1 for o in self.outcomes if o.status in statuses)

    @property
    def saved(self) -> int:
        return self.count(BaselineStatus.CREATED, BaselineStatus.OVERWRITTEN)

    @property
    def failed(self) -> int:
        return self.count(BaselineStatus.FAILED, BaselineStatus.UNSUPPORTED)


class BatchListener:
    """Hooks for live output while a batch runs. The defaults do nothing."""

    def benchmark_started(self, index: int, total: int, name: str, definition: BenchmarkDefinition) -> None:
        pass

    def benchmark_finished(self, report: BenchmarkReport) -> None:
        pass

    def baseline_conflict(self, name: str, existing: BaselineRecord) -> None:
        pass

    def baseline_finished(self, outcome: BaselineOutcome) -> None:
        pass


# =============================================================================
# Overwrite Policy
# =============================================================================

OVERWRITE_QUESTION = "Overwrite existing baseline? (y/N/a=all/n=none): "


@dataclass(frozen=True)
class OverwriteDecision:
    overwrite: bool
    policy: OverwritePolicy


async def resolve_conflict(
    policy: OverwritePolicy,
    prompter: Optional[Prompter],
) -> OverwriteDecision:
    """
    Decide one baseline conflict and return the policy for the next one.

    ``ALL`` and ``NONE`` are sticky and never prompt. Under ``ASK`` the
    operator answers ``y``/``yes`` (overwrite this one), ``a``/``all``
    (overwrite all remaining), ``n``/``none`` (skip all remaining); any
    other answer, including an empty one, skips only this conflict.
    """
    if policy == OverwritePolicy.ALL:
        return OverwriteDecision(True, OverwritePolicy.ALL)
    if policy == OverwritePolicy.NONE:
        return OverwriteDecision(False, OverwritePolicy.NONE)

    if prompter is None:
        logger.warning("No prompter available, keeping existing baseline")
        return OverwriteDecision(False, OverwritePolicy.ASK)

    answer = (await prompter.ask(OVERWRITE_QUESTION)).strip().lower()
    if answer in ("a", "all"):
        return OverwriteDecision(True, OverwritePolicy.ALL)
    if answer in ("n", "none"):
        return OverwriteDecision(False, OverwritePolicy.NONE)
    return OverwriteDecision(answer in ("y", "yes"), OverwritePolicy.ASK)


# =============================================================================
# Orchestrator
# =============================================================================

class BaselineOrchestrator:
    """
    Runs benchmarks against one engine version and relates them to stored
    baselines.

    Benchmarks of a batch run strictly in sequence: setup statements of one
    benchmark (e.g. index creation) must not be observed by another.
    """

    def __init__(
        self,
        engine: QueryEngine,
        store: BaselineStore,
        version: str,
        prompter: Optional[Prompter] = None,
        runner: Optional[BenchmarkRunner] = None,
        listener: Optional[BatchListener] = None,
        max_query_length: int = 100,
    ):
        self.engine = engine
        self.store = store
        self.version = version
        self.prompter = prompter
        self.runner = runner or BenchmarkRunner(engine)
        self.listener = listener or BatchListener()
        self.max_query_length = max_query_length
        self.comparator = BaselineComparator(version)

    async def bench(self, query: str, runs: int) -> BenchmarkReport:
        """Benchmark an ad-hoc query without baseline comparison."""
        return await self.report(ADHOC_NAME, BenchmarkDefinition(query=query), runs, compare=False)

    async def report(
        self,
        name: str,
        definition: BenchmarkDefinition,
        runs: int,
        compare: bool = True,
    ) -> BenchmarkReport:
        """
        Run one benchmark and, when requested and the query is supported,
        compare it against the selected historical baselines.
        """
        run = await self.runner.run(
            definition.query, runs, definition.pre_queries, definition.post_queries
        )
        report = BenchmarkReport(
            name=name,
            definition=definition,
            fingerprint=fingerprint(definition.pre_queries, definition.query),
            version=self.version,
            run=run,
        )
        if not compare or not run.supported:
            return report

        records = await self.store.get_all(report.fingerprint)
        report.compared = True
        report.current_baseline = next((r for r in records if r.version == self.version), None)
        report.comparisons = self.comparator.compare(run.digest.mean, records)
        return report

    async def report_all(self, suite: BenchmarkSuite, runs: int) -> SuiteReport:
        """Run every benchmark of the suite and build the cross-version table."""
        reports = []
        for index, (name, definition) in enumerate(suite, start=1):
            self.listener.benchmark_started(index, len(suite), name, definition)
            report = await self.report(name, definition, runs)
            self.listener.benchmark_finished(report)
            reports.append(report)

        return SuiteReport(
            version=self.version,
            runs=runs,
            reports=reports,
            table=build_table(self.version, [self._row_for(r) for r in reports]),
        )

    @staticmethod
    def _row_for(report: BenchmarkReport) -> TableRowInput:
        if not report.supported:
            return TableRowInput(name=report.name, current=UNSUPPORTED)
        return TableRowInput(
            name=report.name,
            current=report.digest.mean,
            current_baseline=report.current_baseline.mean if report.current_baseline else None,
            historical={e.version: e.record.mean for e in report.comparisons},
        )

    async def create_baselines(
        self,
        suite: BenchmarkSuite,
        runs: int,
        names: Optional[Iterable[str]] = None,
    ) -> BaselineSummary:
        """
        Measure benchmarks and store them as baselines for the current version.

        When a baseline already exists the overwrite policy decides; it
        starts as ``ASK`` on every call.
        """
        selected = list(names) if names is not None else suite.names
        summary = BaselineSummary(version=self.version, runs=runs)
        policy = OverwritePolicy.ASK

        for index, name in enumerate(selected, start=1):
            definition = suite.get(name)
            self.listener.benchmark_started(index, len(selected), name, definition)
            outcome, policy = await self._create_one(name, definition, runs, policy)
            self.listener.baseline_finished(outcome)
            summary.outcomes.append(outcome)

        return summary

    async def _create_one(
        self,
        name: str,
        definition: BenchmarkDefinition,
        runs: int,
        policy: OverwritePolicy,
    ) -> tuple[BaselineOutcome, OverwritePolicy]:
        hash_ = fingerprint(definition.pre_queries, definition.query)

        existing = await self.store.get(hash_, self.version)
        if existing is not None:
            self.listener.baseline_conflict(name, existing)
            decision = await resolve_conflict(policy, self.prompter)
            policy = decision.policy
            if not decision.overwrite:
                logger.info(f"Kept existing baseline for {name}")
                return BaselineOutcome(name, hash_, BaselineStatus.SKIPPED, existing=existing), policy

        run = await self.runner.run(
            definition.query, runs, definition.pre_queries, definition.post_queries
        )
        if not run.supported:
            return BaselineOutcome(
                name, hash_, BaselineStatus.UNSUPPORTED, digest=run.digest, error=run.error
            ), policy

        record = BaselineRecord.from_digest(
            definition.query, hash_, self.version, run.digest, self.max_query_length
        )
        try:
            await self.store.upsert(record)
        except StoreError as e:
            logger.error(f"Baseline for {name} not saved: {e.message}")
            return BaselineOutcome(
                name, hash_, BaselineStatus.FAILED, digest=run.digest, error=e.message
            ), policy

        status = BaselineStatus.OVERWRITTEN if existing is not None else BaselineStatus.CREATED
        logger.info(f"Baseline {status.value} for {name} ({hash_}@{self.version})")
        return BaselineOutcome(name, hash_, status, digest=run.digest, existing=existing), policy

    async def show(self, suite: BenchmarkSuite) -> ComparisonTable:
        """
        Table of stored baselines: the current version's baseline against
        every other stored version, for benchmarks that have any baseline.
        """
        inputs = []
        for name, definition in suite:
            records = await self.store.get_all(fingerprint(definition.pre_queries, definition.query))
            if not records:
                continue
            current = next((r.mean for r in records if r.version == self.version), None)
            inputs.append(TableRowInput(
                name=name,
                current=current,
                historical={r.version: r.mean for r in records if r.version != self.version},
            ))
        return build_table(self.version, inputs)
