"""
Rich console rendering of benchmark reports and comparison tables.

Presentation only: every number and classification shown here was computed
by the analysis layer.
"""

import json
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from dqlbench.analysis.comparator import Classification, classify
from dqlbench.analysis.table import CURRENT, ComparisonTable, TableCell
from dqlbench.core.models import BaselineStatus, Significance
from dqlbench.core.transfer import TransferSummary
from dqlbench.runner.orchestrator import (
    BaselineOutcome,
    BaselineSummary,
    BatchListener,
    BenchmarkReport,
    SuiteReport,
)
from dqlbench.runner.scenarios import (
    COUNT_CHECK,
    INDEX_CHECK,
    TIME_CHECK,
    ExecutionResult,
    ScenarioResult,
    describe_access,
)

NO_DATA = "–"
NOT_SUPPORTED = "N/A"

SIGNIFICANCE_STYLES = {
    Significance.NO_CHANGE: "blue",
    Significance.IMPROVEMENT: "green",
    Significance.SMALL_REGRESSION: "yellow",
    Significance.LARGE_REGRESSION: "red",
}

LEGEND = [
    ("Green", "green", "Improvement (>1ms or >5% faster)"),
    ("Yellow", "yellow", "Small regression (1-2ms or 5-15% slower)"),
    ("Red", "red", "Large regression (>2ms or >15% slower)"),
    ("Blue", "blue", "No significant change (<1ms or <5%)"),
]

RULE = "─" * 50


def format_cell(cell: TableCell) -> Text:
    """Text and color of one table cell."""
    if cell.is_missing:
        return Text(NO_DATA, style="dim")
    if cell.unsupported:
        return Text(NOT_SUPPORTED, style="dim")
    if cell.classification is not None:
        return Text(
            f"{cell.value:.1f} ({cell.classification.formatted})",
            style=SIGNIFICANCE_STYLES[cell.classification.significance],
        )
    return Text(f"{cell.value:.1f}")


def format_diff(classification: Classification) -> Text:
    return Text(classification.formatted, style=SIGNIFICANCE_STYLES[classification.significance])


class ReportRenderer:
    """Writes reports to a rich console."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    # -------------------------------------------------------------------------
    # Single benchmark
    # -------------------------------------------------------------------------

    def render_benchmark(self, report: BenchmarkReport) -> None:
        console = self.console
        console.print("\n[blue]Benchmarking Query[/blue]")
        console.print(f"Query: [green]{escape(report.definition.query)}[/green]", highlight=False)
        console.print(f"Hash: {report.fingerprint}")

        if not report.supported:
            console.print(f"[black on yellow]Feature not supported:[/black on yellow] {escape(report.run.error or '')}")
            console.print("Skipping benchmark for this query")
            self._render_cleanup_errors(report)
            console.print(f"[blue]{RULE}[/blue]")
            return

        digest = report.digest
        stats = Table(title="Timing Statistics (ms)", show_header=False, box=None)
        stats.add_column("Metric", style="cyan")
        stats.add_column("Value", justify="right")
        stats.add_row("Result Count", str(digest.result_count))
        stats.add_row("Total Runs", str(digest.runs))
        stats.add_row("Mean", f"{digest.mean:.2f}")
        stats.add_row("Median", f"{digest.median:.2f}")
        stats.add_row("Min", f"{digest.min:.2f}")
        stats.add_row("Max", f"{digest.max:.2f}")
        stats.add_row("Std Dev", f"{digest.std_dev:.2f}")
        stats.add_row("95th %", f"{digest.p95:.2f}")
        stats.add_row("99th %", f"{digest.p99:.2f}")
        stats.add_row("Queries/sec", f"{digest.queries_per_second:.2f}")
        stats.add_row("Total time", f"{report.run.total_time_ms / 1000:.2f}s")
        console.print(stats)

        if report.compared:
            self._render_comparisons(report)
        self._render_cleanup_errors(report)
        console.print(f"[blue]{RULE}[/blue]")

    def _render_comparisons(self, report: BenchmarkReport) -> None:
        console = self.console
        if not report.comparisons and report.current_baseline is None:
            console.print("\n[black on yellow]No baselines found for comparison[/black on yellow]")
            console.print("Create baselines with 'baseline' first")
            return

        mean = report.digest.mean
        console.print(f"\n[blue]Baseline Comparisons (current: v{report.version})[/blue]")
        if report.current_baseline is not None and not report.current_baseline.metrics.is_supported:
            console.print(f"  v{escape(report.version)} (current baseline): [dim]{NOT_SUPPORTED}[/dim]")
        elif report.current_baseline is not None:
            baseline = report.current_baseline.mean
            line = Text(f"  v{report.version} (current baseline): {baseline:.1f}ms ")
            line.append_text(format_diff(classify(baseline, mean)))
            line.append(f" (→ {mean:.1f}ms)")
            console.print(line)
        for entry in report.comparisons:
            line = Text(f"  v{entry.version} [{entry.tag.value}]: {entry.record.mean:.1f}ms ")
            line.append_text(format_diff(entry.classification))
            line.append(f" (→ {mean:.1f}ms)")
            console.print(line)

    def _render_cleanup_errors(self, report: BenchmarkReport) -> None:
        for error in report.run.cleanup_errors:
            self.console.print(f"[yellow]Cleanup query failed:[/yellow] {escape(error)}", highlight=False)

    # -------------------------------------------------------------------------
    # Tables
    # -------------------------------------------------------------------------

    def render_table(self, table: ComparisonTable, title: str) -> None:
        grid = Table(title=title)
        grid.add_column("Benchmark Name", style="cyan", no_wrap=True)
        for column in table.columns:
            style = "bold" if column.kind == CURRENT else None
            grid.add_column(column.label, justify="right", header_style=style)

        for row in table.rows:
            grid.add_row(escape(row.name), *[format_cell(row.cells[c.key]) for c in table.columns])

        self.console.print(grid)
        self.render_legend()

    def render_legend(self) -> None:
        self.console.print("\n[blue]Legend:[/blue]")
        for name, style, meaning in LEGEND:
            self.console.print(f"  [{style}]{name:<7}[/{style}]= {meaning}")

    def render_suite(self, suite: SuiteReport) -> None:
        console = self.console
        self.render_table(suite.table, "BENCHMARK SUMMARY")

        total = len(suite.reports)
        console.print("\n[blue]Benchmark Execution Summary:[/blue]")
        console.print(f"  Total Benchmarks: {total}")
        console.print(f"  [green]Successful:[/green] {total - suite.skipped}")
        if suite.skipped:
            console.print(f"  [red]Skipped (not supported):[/red] {suite.skipped}")

        tally = suite.table.tally()
        if tally.total > 0:
            console.print("\n[blue]Performance Comparison Summary:[/blue]")
            console.print(f"  Total Comparisons: {tally.total}")
            console.print(f"  [green]Improvements:[/green] {tally.improvements} ({tally.improvements / tally.total:.0%})")
            console.print(f"  [red]Regressions:[/red] {tally.regressions} ({tally.regressions / tally.total:.0%})")
            console.print(f"  [blue]No change:[/blue] {tally.no_change} ({tally.no_change / tally.total:.0%})")
            console.print(f"  [blue]No baseline:[/blue] {tally.no_baseline}")

            if tally.verdict == "regression":
                console.print(f"\n[red]Performance Alert:[/red] {tally.regressions} comparison(s) showing regression")
            elif tally.verdict == "improvement":
                console.print("\n[green]Performance Improvement:[/green] More improvements than regressions detected")
            else:
                console.print("\n[green]Performance Stable:[/green] No significant regressions detected")

        console.print("\n[green]All benchmarks complete![/green]")

    def render_saved(self, table: ComparisonTable) -> None:
        if not table.rows:
            self.console.print("\n[black on yellow]No baseline data found![/black on yellow]")
            self.console.print("Run 'baseline' to create baselines first.")
            return
        self.render_table(table, "SAVED BASELINES")
        versions = {c.version for c in table.columns}
        self.console.print(f"\n[blue]Total benchmarks with baselines:[/blue] {len(table.rows)}")
        self.console.print(f"[blue]Total versions tracked:[/blue] {len(versions)}")

    # -------------------------------------------------------------------------
    # Baselines and transfers
    # -------------------------------------------------------------------------

    def render_baseline_summary(self, summary: BaselineSummary) -> None:
        console = self.console
        console.print(f"\n[blue]BASELINE CREATION SUMMARY[/blue] (engine {summary.version}, {summary.runs} runs)")
        console.print(f"  Total Benchmarks: {len(summary.outcomes)}")
        console.print(f"  [green]Baselines Saved:[/green] {summary.saved}")
        skipped = summary.count(BaselineStatus.SKIPPED)
        if skipped:
            console.print(f"  [blue]Kept existing:[/blue] {skipped}")
        if summary.failed:
            console.print(f"  [red]Not saved (errors/unsupported):[/red] {summary.failed}")

        if summary.failed == 0:
            console.print("\n[green]All requested baselines processed successfully![/green]")
        elif summary.saved > 0:
            console.print("\n[yellow]Baseline creation completed with some failures[/yellow]")
        else:
            console.print("\n[red]No baselines were created due to errors[/red]")

    def render_transfer(self, summary: TransferSummary, what: str = "baselines") -> None:
        self.console.print("\n[green]Import complete![/green]")
        self.console.print(f"Successfully imported: {summary.success_count} {what}")
        self.console.print(f"Errors: {summary.error_count}")

    # -------------------------------------------------------------------------
    # Query execution and scenarios
    # -------------------------------------------------------------------------

    def render_execution(self, execution: ExecutionResult) -> None:
        console = self.console
        console.print(f"execute-time: [black on yellow]{execution.elapsed_ms:.1f}ms[/black on yellow]")
        console.print(f"Result Count: {execution.result_count}")

        for check in execution.checks:
            mark = "[green]✓ PASSED[/green]" if check.passed else "[red]✗ FAILED[/red]"
            if check.kind == COUNT_CHECK:
                detail = f"Expected {check.expected} documents" + ("" if check.passed else f", got {check.actual}")
                console.print(f"Validation: {mark} - {detail}")
            elif check.kind == TIME_CHECK:
                console.print(
                    f"Time Validation: {mark} - Executed in {check.actual:.1f}ms (limit: {check.expected}ms)"
                )
            elif check.kind == INDEX_CHECK:
                if check.passed:
                    console.print(f"Index Validation: {mark} - Using {describe_access(check.expected)}")
                else:
                    console.print(
                        f"Index Validation: {mark} - Expected {describe_access(check.expected)}, "
                        f"but using {describe_access(check.actual)}"
                    )
                    console.print("\nEXPLAIN output for debugging:")
                    console.print_json(json.dumps(check.plan, default=str))

        if execution.is_plan and execution.result.items:
            console.print()
            console.print_json(json.dumps(execution.result.items[0].value, default=str))

    def render_results(self, execution: ExecutionResult) -> None:
        self.console.print("\nResults:")
        for position, item in enumerate(execution.result.items, start=1):
            self.console.print(f"{position}. {json.dumps(item.value, indent=2, default=str)}", highlight=False)

    def render_scenario(self, result: ScenarioResult) -> None:
        if result.error:
            self.console.print(f"[red]Scenario stopped:[/red] {escape(result.error)}")
        if result.total > 0:
            self.console.print(f"\nScenario Summary: {result.passed}/{result.total} tests passed")
            if result.passed == result.total:
                self.console.print("[green]All tests passed! ✓[/green]")
            else:
                self.console.print(f"[red]{result.total - result.passed} tests failed ✗[/red]")

    def render_scenarios_summary(self, results: list[ScenarioResult]) -> None:
        console = self.console
        console.print("\n[blue]SUMMARY[/blue]")
        console.print("Scenario Results:")
        icons = {"pass": ("✓", "green"), "fail": ("✗", "red"), "no-tests": ("-", "blue")}
        for result in results:
            icon, style = icons[result.status]
            info = f" ({result.passed}/{result.total} tests)" if result.total else " (no validation tests)"
            console.print(f"  [{style}]{icon}[/{style}] {escape(result.name)}{info}")

        passed = sum(1 for r in results if r.status == "pass")
        failed = sum(1 for r in results if r.status == "fail")
        no_tests = sum(1 for r in results if r.status == "no-tests")
        console.print(f"\nScenario Summary: {passed} passed, {failed} failed, {no_tests} no tests")

        total_tests = sum(r.total for r in results)
        total_passed = sum(r.passed for r in results)
        if total_tests == 0:
            console.print("\nNo validation tests were run.")
        elif total_passed == total_tests:
            console.print("[green]Overall Result: PASS (100%) ✓[/green]")
        else:
            rate = round(total_passed / total_tests * 100)
            console.print(f"[red]Overall Result: FAIL ({rate}% pass, {100 - rate}% fail) ✗[/red]")


class ConsoleListener(BatchListener):
    """Prints batch progress as benchmarks start and finish."""

    def __init__(self, renderer: ReportRenderer):
        self.renderer = renderer

    def benchmark_started(self, index, total, name, definition) -> None:
        console = self.renderer.console
        console.print(f"\n[blue]Running benchmark ({index}/{total}): {escape(name)}[/blue]")
        for statement in definition.pre_queries:
            console.print(f"  Setup: {escape(statement)}", highlight=False)

    def benchmark_finished(self, report: BenchmarkReport) -> None:
        self.renderer.render_benchmark(report)

    def baseline_conflict(self, name, existing) -> None:
        metrics = existing.metrics
        self.renderer.console.print("[black on yellow]Baseline already exists for this version![/black on yellow]")
        self.renderer.console.print(
            f"  Existing: {metrics.mean:.1f}ms ({metrics.runs} runs, {metrics.timestamp})"
        )

    def baseline_finished(self, outcome: BaselineOutcome) -> None:
        console = self.renderer.console
        if outcome.status == BaselineStatus.SKIPPED:
            console.print(f"[blue]Skipped baseline creation for:[/blue] {escape(outcome.name)}")
        elif outcome.status == BaselineStatus.UNSUPPORTED:
            console.print(f"[yellow]Skipped baseline creation (feature not supported):[/yellow] {escape(outcome.error or '')}")
        elif outcome.status == BaselineStatus.FAILED:
            console.print(f"[red]Baseline creation failed:[/red] {escape(outcome.error or '')}")
        else:
            console.print(
                f"[green]✓ Baseline {outcome.status.value}[/green] {escape(outcome.name)}: "
                f"{outcome.digest.mean:.1f}ms (hash {outcome.fingerprint})"
            )
