"""
Command session shared by the one-shot CLI commands and the interactive shell.

A session owns the engine, the baseline store and the lazily loaded suites
for the lifetime of one command (or one shell), and implements every
command on top of them.
"""

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.markup import escape

from dqlbench.core.config import Config
from dqlbench.core.engine import (
    QueryEngine,
    close_engine,
    load_engine,
    prepare_engine,
    resolve_engine_version,
)
from dqlbench.core.exceptions import UsageError
from dqlbench.core.store import BaselineStore, get_baseline_store
from dqlbench.core.suite_loader import BenchmarkSuite, ScenarioSuite, load_benchmarks, load_scenarios
from dqlbench.core.transfer import export_baselines, export_query, import_baselines, seed_baselines
from dqlbench.interface.report import ConsoleListener, ReportRenderer
from dqlbench.runner.orchestrator import BaselineOrchestrator, Prompter
from dqlbench.runner.runner import BenchmarkRunner
from dqlbench.runner.scenarios import QueryExecutor, ScenarioRunner
from dqlbench.utils.logging import get_logger

logger = get_logger(__name__)

PRINT_RESULTS_QUESTION = "Print results? (y/n, default: n): "


class ConsolePrompter:
    """Asks questions on the console without blocking the event loop."""

    def __init__(self, console: Console):
        self.console = console

    async def ask(self, question: str) -> str:
        return await asyncio.to_thread(self.console.input, question)


def parse_run_count(raw: Optional[str], default: int, usage: str) -> int:
    """Parse an optional run count argument."""
    if raw is None:
        return default
    try:
        runs = int(raw)
    except ValueError:
        raise UsageError(usage, f"Invalid run count '{raw}'")
    if runs < 1:
        raise UsageError(usage, "Run count must be a positive number")
    return runs


BENCH_USAGE = "bench [-n runs] <query>"


def parse_bench_args(args: str, default: int) -> tuple[str, int]:
    """Split an optional leading ``-n N`` (or ``--runs N``) from an ad-hoc query."""
    parts = args.split(None, 2)
    if parts and parts[0] in ("-n", "--runs"):
        if len(parts) < 3:
            raise UsageError(BENCH_USAGE, "Missing query")
        return parts[2], parse_run_count(parts[1], default, BENCH_USAGE)
    return args, default


BASELINE_USAGE = "baseline [name|index] [runs]"


def parse_baseline_args(args: list[str], default: int) -> tuple[Optional[str], int]:
    """
    Split ``baseline`` arguments into an optional benchmark reference and a
    run count. A numeric first argument is the run count for all benchmarks.
    """
    if not args:
        return None, default
    first = args[0]
    if first.lstrip("-").isdigit():
        if len(args) > 1:
            raise UsageError(BASELINE_USAGE, "Too many arguments")
        return None, parse_run_count(first, default, BASELINE_USAGE)
    if len(args) > 2:
        raise UsageError(BASELINE_USAGE, "Too many arguments")
    runs = parse_run_count(args[1] if len(args) > 1 else None, default, BASELINE_USAGE)
    return first, runs


@dataclass
class Session:
    config: Config
    engine: QueryEngine
    store: BaselineStore
    version: str
    renderer: ReportRenderer
    prompter: Optional[Prompter] = None
    features: list[str] = field(default_factory=list)
    _benchmarks: Optional[BenchmarkSuite] = None
    _scenarios: Optional[ScenarioSuite] = None

    @classmethod
    async def open(
        cls,
        config: Config,
        renderer: ReportRenderer,
        prompter: Optional[Prompter] = None,
        engine: Optional[QueryEngine] = None,
    ) -> "Session":
        """
        Load the engine, enable version-gated features and seed an empty
        baseline store from the bundled NDJSON file.
        """
        engine = engine or load_engine(config.engine.target, config.engine.database)
        version = resolve_engine_version(engine, config.engine.version)
        features = await prepare_engine(engine, version)
        store = get_baseline_store(config, engine)

        seeded = await seed_baselines(store, config.baselines_seed_file)
        if seeded is not None:
            renderer.console.print(
                f"[dim]Seeded baseline store with {seeded.success_count} baselines "
                f"({seeded.error_count} errors)[/dim]"
            )

        logger.info(f"Session opened on engine {version}")
        return cls(
            config=config,
            engine=engine,
            store=store,
            version=version,
            renderer=renderer,
            prompter=prompter,
            features=features,
        )

    async def close(self) -> None:
        await close_engine(self.engine)

    @property
    def console(self) -> Console:
        return self.renderer.console

    @property
    def benchmarks(self) -> BenchmarkSuite:
        if self._benchmarks is None:
            self._benchmarks = load_benchmarks(self.config.benchmarks_file)
        return self._benchmarks

    @property
    def scenarios(self) -> ScenarioSuite:
        if self._scenarios is None:
            self._scenarios = load_scenarios(self.config.scenarios_file)
        return self._scenarios

    def _on_progress(self, done: int, total: int) -> None:
        self.console.print(f"  [dim]Progress: {done}/{total}[/dim]")

    def orchestrator(self) -> BaselineOrchestrator:
        return BaselineOrchestrator(
            self.engine,
            self.store,
            self.version,
            prompter=self.prompter,
            runner=BenchmarkRunner(self.engine, on_progress=self._on_progress),
            listener=ConsoleListener(self.renderer),
            max_query_length=self.config.query_id_max_length,
        )

    # -------------------------------------------------------------------------
    # Benchmarks
    # -------------------------------------------------------------------------

    async def bench(self, query: str, runs: Optional[int] = None) -> None:
        query = query.strip().strip("'\"")
        if not query:
            raise UsageError("bench <query>", "Missing query")
        runs = runs or self.config.runs.adhoc
        self.console.print(f"Running query {runs} times...")
        report = await self.orchestrator().bench(query, runs)
        self.renderer.render_benchmark(report)

    def list_benchmarks(self) -> None:
        if not len(self.benchmarks):
            self.console.print("[dim]No benchmarks defined.[/dim]")
            return
        self.console.print("[bold cyan]Available Benchmarks:[/bold cyan]\n")
        for position, (name, definition) in enumerate(self.benchmarks, start=1):
            self.console.print(f"  {position}. [bold]{escape(name)}[/bold]")
            self.console.print(f"     [dim]{escape(definition.query)}[/dim]", highlight=False)

    async def benchmark(self, reference: str, runs: Optional[int] = None) -> None:
        name, definition = self.benchmarks.resolve(reference)
        runs = runs or self.config.runs.benchmark
        self.console.print(f"\n[blue]Running benchmark: {escape(name)}[/blue] ({runs} runs)")
        report = await self.orchestrator().report(name, definition, runs)
        self.renderer.render_benchmark(report)

    async def benchmark_all(self, runs: Optional[int] = None) -> None:
        runs = runs or self.config.runs.benchmark
        self.console.print(f"\n[blue]Running all {len(self.benchmarks)} benchmarks[/blue] ({runs} runs each)")
        suite = await self.orchestrator().report_all(self.benchmarks, runs)
        self.renderer.render_suite(suite)

    async def baseline(self, reference: Optional[str] = None, runs: Optional[int] = None) -> None:
        runs = runs or self.config.runs.baseline
        names = None
        if reference is not None:
            name, _ = self.benchmarks.resolve(reference)
            names = [name]
        self.console.print(f"\n[blue]Creating baselines for engine {self.version}[/blue] ({runs} runs each)")
        summary = await self.orchestrator().create_baselines(self.benchmarks, runs, names)
        self.renderer.render_baseline_summary(summary)

    async def show(self) -> None:
        table = await self.orchestrator().show(self.benchmarks)
        self.renderer.render_saved(table)

    # -------------------------------------------------------------------------
    # Transfer
    # -------------------------------------------------------------------------

    async def import_baselines(self, path: Optional[Path] = None) -> None:
        path = path or self.config.baselines_seed_file
        self.console.print(f"Importing baselines from {path}...")
        summary = await import_baselines(self.store, path)
        self.renderer.render_transfer(summary)

    async def export_baselines(self) -> None:
        path, count = await export_baselines(self.store, self.config.exports_dir)
        self.console.print(f"[green]Exported {count} baselines to[/green] {path}")

    async def export(self, query: str) -> None:
        query = query.strip().strip("'\"")
        if not query:
            raise UsageError("export <query>", "Missing query")
        path, count = await export_query(self.engine, query, self.config.exports_dir)
        if path is None:
            self.console.print("[yellow]No results to export[/yellow]")
            return
        self.console.print(f"[green]Exported {count} documents to[/green] {path}")

    # -------------------------------------------------------------------------
    # Queries and scenarios
    # -------------------------------------------------------------------------

    async def query(self, statement: str, print_results: Optional[bool] = None) -> None:
        """
        Execute one statement. When ``print_results`` is None and the query
        returned rows, the prompter is asked whether to print them.
        """
        execution = await QueryExecutor(self.engine).execute(statement)
        self.renderer.render_execution(execution)

        if execution.is_plan or not execution.result.items:
            return
        if print_results is None and self.prompter is not None:
            answer = await self.prompter.ask(PRINT_RESULTS_QUESTION)
            print_results = answer.strip().lower() in ("y", "yes")
        if print_results:
            self.renderer.render_results(execution)

    def list_scenarios(self) -> None:
        if not len(self.scenarios):
            self.console.print("[dim]No scenarios defined.[/dim]")
            return
        self.console.print("[bold cyan]Available Scenarios:[/bold cyan]\n")
        for position, (name, steps) in enumerate(self.scenarios, start=1):
            self.console.print(f"  {position}. [bold]{escape(name)}[/bold] [dim]({len(steps)} steps)[/dim]")

    def _scenario_runner(self) -> ScenarioRunner:
        def on_step(position, total, execution):
            self.console.print(f"\n[bold]Query {position}/{total}:[/bold] {escape(execution.query)}", highlight=False)
            self.renderer.render_execution(execution)

        return ScenarioRunner(QueryExecutor(self.engine), on_step=on_step)

    async def run_scenario(self, reference: str) -> None:
        name, steps = self.scenarios.resolve(reference)
        self.console.print(f"\n[blue]Running scenario: {escape(name)}[/blue]")
        result = await self._scenario_runner().run(name, steps)
        self.renderer.render_scenario(result)

    async def run_all_scenarios(self) -> None:
        runner = self._scenario_runner()
        results = []
        for name, steps in self.scenarios:
            self.console.print(f"\n[blue]Running scenario: {escape(name)}[/blue]")
            result = await runner.run(name, steps)
            self.renderer.render_scenario(result)
            results.append(result)
        self.renderer.render_scenarios_summary(results)
