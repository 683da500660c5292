"""
Single query execution with validation, and scenario runs.

A validated step can check the result count, an execution time limit and
the index chosen by the engine; the latter runs ``EXPLAIN <query>`` and
walks the returned ``#operator`` plan tree.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, Optional, Union

from dqlbench.core.engine import QueryEngine, QueryResult, is_plan_query
from dqlbench.core.models import PlainStep, ValidatedStep
from dqlbench.core.suite_loader import Scenario, ScenarioSuite
from dqlbench.utils.logging import get_logger

logger = get_logger(__name__)

FULL_SCAN = "full_scan"

COUNT_CHECK = "count"
TIME_CHECK = "time"
INDEX_CHECK = "index"


def _walk(node: Any) -> Iterator[dict]:
    if not isinstance(node, dict):
        return
    yield node
    for child in node.get("children") or []:
        yield from _walk(child)


def extract_index_info(explain_value: Any) -> Optional[str]:
    """
    Name the access path of an ``EXPLAIN`` result.

    Returns ``full_scan`` if the plan scans a collection, the index name if
    it uses an index scan, and None if the plan shows neither.
    """
    plan = explain_value.get("plan") if isinstance(explain_value, dict) else None
    nodes = list(_walk(plan))
    if any(n.get("#operator") == "scan" for n in nodes):
        return FULL_SCAN
    for n in nodes:
        if n.get("#operator") == "index_scan":
            return (n.get("desc") or {}).get("index")
    return None


def describe_access(index: Optional[str]) -> str:
    if index == FULL_SCAN:
        return "full scan"
    if index:
        return f"index '{index}'"
    return "unknown scan type"


@dataclass
class ValidationCheck:
    kind: str
    passed: bool
    expected: Any
    actual: Any
    plan: Any = None


@dataclass
class ExecutionResult:
    query: str
    elapsed_ms: float
    result: QueryResult
    checks: list[ValidationCheck] = field(default_factory=list)

    @property
    def result_count(self) -> int:
        return len(self.result.items)

    @property
    def is_plan(self) -> bool:
        return is_plan_query(self.query)

    @property
    def has_checks(self) -> bool:
        return bool(self.checks)

    @property
    def passed(self) -> bool:
        return all(c.passed for c in self.checks)


class QueryExecutor:
    """Executes one step and evaluates its expectations."""

    def __init__(self, engine: QueryEngine, clock: Callable[[], float] = time.perf_counter):
        self.engine = engine
        self.clock = clock

    async def execute(self, step: Union[PlainStep, ValidatedStep, str]) -> ExecutionResult:
        if isinstance(step, str):
            step = PlainStep(query=step)

        start = self.clock()
        result = await self.engine.execute(step.query)
        elapsed = (self.clock() - start) * 1000

        execution = ExecutionResult(query=step.query, elapsed_ms=elapsed, result=result)
        if isinstance(step, ValidatedStep):
            execution.checks = await self._validate(step, execution)
        return execution

    async def _validate(self, step: ValidatedStep, execution: ExecutionResult) -> list[ValidationCheck]:
        checks = []
        if step.expected_count is not None:
            checks.append(ValidationCheck(
                kind=COUNT_CHECK,
                passed=execution.result_count == step.expected_count,
                expected=step.expected_count,
                actual=execution.result_count,
            ))

        if step.max_execution_time is not None:
            checks.append(ValidationCheck(
                kind=TIME_CHECK,
                passed=execution.elapsed_ms <= step.max_execution_time,
                expected=step.max_execution_time,
                actual=execution.elapsed_ms,
            ))

        if step.expected_index is not None and not execution.is_plan:
            explain = await self.engine.execute(f"EXPLAIN {step.query}")
            if explain.items and explain.items[0].value:
                plan = explain.items[0].value
                used = extract_index_info(plan)
                checks.append(ValidationCheck(
                    kind=INDEX_CHECK,
                    passed=used == step.expected_index,
                    expected=step.expected_index,
                    actual=used,
                    plan=plan,
                ))
            else:
                logger.warning(f"EXPLAIN returned no plan, index not validated: {step.query}")

        return checks


@dataclass
class ScenarioResult:
    name: str
    steps: list[ExecutionResult] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def total(self) -> int:
        return sum(1 for s in self.steps if s.has_checks)

    @property
    def passed(self) -> int:
        return sum(1 for s in self.steps if s.has_checks and s.passed)

    @property
    def status(self) -> str:
        if self.error is not None:
            return "fail"
        if self.total == 0:
            return "no-tests"
        return "pass" if self.passed == self.total else "fail"


class ScenarioRunner:
    """Runs scenario steps in order; a rejected statement ends the scenario."""

    def __init__(
        self,
        executor: QueryExecutor,
        on_step: Optional[Callable[[int, int, ExecutionResult], None]] = None,
    ):
        self.executor = executor
        self.on_step = on_step

    async def run(self, name: str, steps: Scenario) -> ScenarioResult:
        outcome = ScenarioResult(name=name)
        for position, step in enumerate(steps, start=1):
            try:
                execution = await self.executor.execute(step)
            except Exception as e:
                logger.error(f"Scenario {name} step {position} failed: {e}")
                outcome.error = f"step {position}: {e}"
                break
            outcome.steps.append(execution)
            if self.on_step:
                self.on_step(position, len(steps), execution)
        return outcome

    async def run_all(self, suite: ScenarioSuite) -> list[ScenarioResult]:
        return [await self.run(name, steps) for name, steps in suite]
