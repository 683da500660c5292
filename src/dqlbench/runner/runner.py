"""
Timed execution of benchmark queries.

Repetitions run strictly one after another. A failing repetition aborts the
benchmark with the unsupported digest instead of raising, so a batch keeps
going; cleanup statements always run afterwards.
"""

import time
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence

from dqlbench.analysis.statistics import summarize
from dqlbench.core.engine import QueryEngine
from dqlbench.core.models import StatDigest
from dqlbench.utils.logging import get_logger

logger = get_logger(__name__)

# Called with (completed repetitions, total repetitions)
ProgressCallback = Callable[[int, int], None]


@dataclass
class RunResult:
    """Digest and raw samples of one benchmark run."""
    digest: StatDigest
    samples: list[float] = field(default_factory=list)
    error: Optional[str] = None
    cleanup_errors: list[str] = field(default_factory=list)

    @property
    def supported(self) -> bool:
        return self.digest.is_supported

    @property
    def total_time_ms(self) -> float:
        return sum(self.samples)


def progress_interval(count: int) -> int:
    """Report roughly every 20% of repetitions."""
    return max(1, count // 5)


class BenchmarkRunner:
    """Runs a query ``count`` times against an engine and digests the timings."""

    def __init__(
        self,
        engine: QueryEngine,
        on_progress: Optional[ProgressCallback] = None,
        clock: Callable[[], float] = time.perf_counter,
    ):
        self.engine = engine
        self.on_progress = on_progress
        self.clock = clock

    async def run(
        self,
        query: str,
        count: int,
        pre_queries: Sequence[str] = (),
        post_queries: Sequence[str] = (),
    ) -> RunResult:
        """
        Benchmark a query.

        Args:
            query: Statement to time
            count: Number of timed repetitions, at least 1
            pre_queries: Setup statements executed once before timing
            post_queries: Cleanup statements executed once afterwards, even
                when timing failed

        Returns:
            RunResult whose digest is the unsupported sentinel if any setup
            statement or repetition failed
        """
        if count < 1:
            raise ValueError("Repetition count must be at least 1")

        try:
            result = await self._measure(query, count, pre_queries)
        finally:
            cleanup_errors = await self._cleanup(post_queries)
        result.cleanup_errors = cleanup_errors
        return result

    async def _measure(self, query: str, count: int, pre_queries: Sequence[str]) -> RunResult:
        for statement in pre_queries:
            logger.debug(f"Setup: {statement}")
            try:
                await self.engine.execute(statement)
            except Exception as e:
                logger.warning(f"Setup statement failed, skipping benchmark: {e}")
                return RunResult(digest=StatDigest.unsupported(), error=f"setup failed: {e}")

        samples: list[float] = []
        result_count = 0
        interval = progress_interval(count)

        for i in range(count):
            start = self.clock()
            try:
                result = await self.engine.execute(query)
            except Exception as e:
                logger.warning(f"Query not supported on this engine, skipping benchmark: {e}")
                return RunResult(digest=StatDigest.unsupported(), samples=samples, error=str(e))
            samples.append((self.clock() - start) * 1000)

            if i == 0:
                result_count = len(result.items)

            done = i + 1
            if done % interval == 0 or done == count:
                logger.debug(f"Progress: {round(done / count * 100)}% ({done}/{count})")
                if self.on_progress:
                    self.on_progress(done, count)

        return RunResult(digest=summarize(samples, result_count), samples=samples)

    async def _cleanup(self, post_queries: Sequence[str]) -> list[str]:
        errors = []
        for statement in post_queries:
            logger.debug(f"Cleanup: {statement}")
            try:
                await self.engine.execute(statement)
            except Exception as e:
                logger.warning(f"Cleanup statement failed: {statement}: {e}")
                errors.append(f"{statement}: {e}")
        return errors
