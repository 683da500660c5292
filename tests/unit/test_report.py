"""
Tests for console rendering.
"""

import asyncio
import io

from rich.console import Console

from dqlbench.analysis.comparator import classify
from dqlbench.analysis.identity import fingerprint
from dqlbench.analysis.table import TableCell, TableRowInput, build_table
from dqlbench.core.models import UNSUPPORTED, BaselineStatus, BenchmarkDefinition
from dqlbench.core.suite_loader import BenchmarkSuite
from dqlbench.core.transfer import TransferSummary
from dqlbench.interface.report import NO_DATA, NOT_SUPPORTED, ConsoleListener, ReportRenderer, format_cell
from dqlbench.runner.orchestrator import (
    BaselineOrchestrator,
    BaselineOutcome,
    BaselineSummary,
    BenchmarkReport,
)
from dqlbench.runner.runner import BenchmarkRunner, RunResult
from dqlbench.core.models import StatDigest

from conftest import FakeEngine, StepClock, make_digest, make_record


def make_renderer():
    console = Console(file=io.StringIO(), width=200, color_system=None)
    return ReportRenderer(console)


def output(renderer):
    return renderer.console.file.getvalue()


class TestFormatCell:
    """Test cell text and color."""

    def test_missing(self):
        assert format_cell(TableCell()).plain == NO_DATA

    def test_unsupported(self):
        assert format_cell(TableCell(value=UNSUPPORTED, unsupported=True)).plain == NOT_SUPPORTED

    def test_plain_value(self):
        assert format_cell(TableCell(value=4.25)).plain == "4.2"

    def test_classified_value(self):
        cell = format_cell(TableCell(value=5.0, classification=classify(5.0, 7.0)))
        assert cell.plain == "5.0 (+2.0ms)"
        assert cell.style == "red"

    def test_improvement_is_green(self):
        assert format_cell(TableCell(value=100.0, classification=classify(100.0, 90.0))).style == "green"


class TestReportRenderer:
    """Test rendered reports."""

    def report(self, digest, compared=True, current_baseline=None, comparisons=None):
        return BenchmarkReport(
            name="all_cars",
            definition=BenchmarkDefinition(query="SELECT * FROM cars"),
            fingerprint="abcdef0123456789",
            version="4.12.3",
            run=RunResult(digest=digest, samples=[digest.mean] * max(digest.runs, 0)),
            compared=compared,
            current_baseline=current_baseline,
            comparisons=comparisons or [],
        )

    def test_benchmark_statistics(self):
        renderer = make_renderer()
        renderer.render_benchmark(self.report(make_digest(4.0, runs=5), compared=False))
        text = output(renderer)
        assert "Timing Statistics" in text
        assert "250.00" in text
        assert "Baseline Comparisons" not in text

    def test_benchmark_without_baselines(self):
        renderer = make_renderer()
        renderer.render_benchmark(self.report(make_digest(4.0)))
        assert "No baselines found for comparison" in output(renderer)

    def test_benchmark_with_current_baseline(self):
        renderer = make_renderer()
        renderer.render_benchmark(self.report(make_digest(7.0), current_baseline=make_record("4.12.3", 5.0)))
        text = output(renderer)
        assert "v4.12.3 (current baseline): 5.0ms +2.0ms" in text

    def test_unsupported_current_baseline(self):
        """A stored sentinel for this version shows as N/A instead of a diff."""
        renderer = make_renderer()
        renderer.render_benchmark(self.report(make_digest(7.0), current_baseline=make_record("4.12.3", -1)))
        text = output(renderer)
        assert f"v4.12.3 (current baseline): {NOT_SUPPORTED}" in text

    def test_unsupported_benchmark(self):
        renderer = make_renderer()
        report = self.report(StatDigest.unsupported())
        report.run.error = "no such function"
        renderer.render_benchmark(report)
        text = output(renderer)
        assert "Feature not supported" in text
        assert "no such function" in text

    def test_table_and_legend(self):
        renderer = make_renderer()
        table = build_table("4.12.3", [
            TableRowInput(name="all_cars", current=7.0, historical={"4.12.2": 5.0}),
            TableRowInput(name="broken", current=UNSUPPORTED),
        ])
        renderer.render_table(table, "BENCHMARK SUMMARY")
        text = output(renderer)
        assert "4.12.3 (current)" in text
        assert "5.0 (+2.0ms)" in text
        assert NOT_SUPPORTED in text
        assert NO_DATA in text
        assert "Legend" in text

    def test_table_names_are_not_markup(self):
        renderer = make_renderer()
        table = build_table("4.12.3", [TableRowInput(name="cars[/bold]", current=7.0)])
        renderer.render_table(table, "BENCHMARK SUMMARY")
        assert "cars[/bold]" in output(renderer)

    def test_empty_saved_table(self):
        renderer = make_renderer()
        renderer.render_saved(build_table("4.12.3", []))
        assert "No baseline data found" in output(renderer)

    def test_baseline_summary(self):
        renderer = make_renderer()
        summary = BaselineSummary(version="4.12.3", runs=50, outcomes=[
            BaselineOutcome("a", "f" * 16, BaselineStatus.CREATED),
            BaselineOutcome("b", "e" * 16, BaselineStatus.SKIPPED),
            BaselineOutcome("c", "d" * 16, BaselineStatus.UNSUPPORTED),
        ])
        renderer.render_baseline_summary(summary)
        text = output(renderer)
        assert "Baselines Saved: 1" in text
        assert "Kept existing: 1" in text
        assert "completed with some failures" in text

    def test_transfer_summary(self):
        renderer = make_renderer()
        renderer.render_transfer(TransferSummary(success_count=9, error_count=1))
        text = output(renderer)
        assert "Successfully imported: 9 baselines" in text
        assert "Errors: 1" in text


class TestConsoleListener:
    """Test batch progress printed while a suite runs."""

    def test_sentinel_current_baseline_does_not_stop_batch(self, file_store):
        """Every benchmark is still reported when this version's stored baseline is unsupported."""
        suite = BenchmarkSuite({
            "all_cars": BenchmarkDefinition(query="SELECT * FROM cars"),
            "count_cars": BenchmarkDefinition(query="SELECT count(*) FROM cars"),
        })
        sentinel = make_record("4.12.3", -1, fingerprint=fingerprint([], "SELECT * FROM cars"))
        asyncio.run(file_store.upsert(sentinel))

        renderer = make_renderer()
        engine = FakeEngine(version="4.12.3")
        orchestrator = BaselineOrchestrator(
            engine,
            file_store,
            "4.12.3",
            runner=BenchmarkRunner(engine, clock=StepClock(2.0)),
            listener=ConsoleListener(renderer),
        )

        result = asyncio.run(orchestrator.report_all(suite, 3))

        assert [r.name for r in result.reports] == ["all_cars", "count_cars"]
        assert result.reports[0].current_baseline.version == "4.12.3"
        text = output(renderer)
        assert f"(current baseline): {NOT_SUPPORTED}" in text
        assert "Running benchmark (2/2): count_cars" in text
