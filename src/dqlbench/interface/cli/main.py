"""
DQLBench CLI - Main entry point.

Provides the command-line interface for benchmarking queries against an
embedded query engine and comparing them with baselines recorded for
earlier engine versions.
"""

import asyncio
import sys
from pathlib import Path
from typing import Awaitable, Callable, Optional

import click
from rich.console import Console
from rich.markup import escape

from dqlbench import __version__
from dqlbench.core.config import Config, set_config
from dqlbench.core.exceptions import DqlBenchError
from dqlbench.interface.cli.session import ConsolePrompter, Session, parse_baseline_args
from dqlbench.interface.cli.shell import Shell
from dqlbench.interface.report import ReportRenderer
from dqlbench.utils.logging import setup_logging, get_logger

# Rich console for pretty output
console = Console()
logger = get_logger(__name__)


def handle_error(func):
    """Decorator to handle errors gracefully."""
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except DqlBenchError as e:
            console.print(f"[red]Error:[/red] {escape(e.message)}")
            if e.details:
                for key, value in e.details.items():
                    console.print(f"  [dim]{key}:[/dim] {escape(str(value))}")
            sys.exit(1)
        except Exception as e:
            console.print(f"[red]Unexpected error:[/red] {escape(str(e))}")
            logger.exception("Unexpected error")
            sys.exit(1)
    wrapper.__name__ = func.__name__
    wrapper.__doc__ = func.__doc__
    return wrapper


def run_session(
    ctx: click.Context,
    action: Callable[[Session], Awaitable[None]],
    interactive: bool = False,
) -> None:
    """Open a session on the configured engine, run one action and close it."""
    config: Config = ctx.obj["config"]
    renderer = ReportRenderer(console)
    prompter = ConsolePrompter(console) if interactive else None

    async def _run() -> None:
        session = await Session.open(config, renderer, prompter)
        try:
            await action(session)
        finally:
            await session.close()

    asyncio.run(_run())


@click.group()
@click.version_option(version=__version__, prog_name="dqlbench")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose (DEBUG) logging")
@click.option("-q", "--quiet", is_flag=True, help="Suppress non-essential output")
@click.option("--log-file", type=click.Path(dir_okay=False, path_type=Path), help="Also write logs to this file")
@click.option("--env-file", type=click.Path(dir_okay=False, path_type=Path), help="Load settings from this .env file")
@click.pass_context
@handle_error
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    log_file: Optional[Path],
    env_file: Optional[Path],
) -> None:
    """
    DQLBench - Query benchmarking with cross-version baseline comparison

    Measures query latency on the configured engine, stores baselines per
    engine version and reports regressions against earlier versions.

    \b
    Examples:
        dqlbench bench "SELECT * FROM cars WHERE year > 2020"
        dqlbench benchmark-all
        dqlbench baseline 50
        dqlbench show
        dqlbench shell
    """
    config = Config.from_env(env_file)
    set_config(config)

    if verbose:
        log_level = "DEBUG"
    elif quiet:
        log_level = "ERROR"
    else:
        log_level = config.log_level

    if log_file is not None and not log_file.is_absolute():
        log_file = config.logs_dir / log_file
    setup_logging(level=log_level, log_file=log_file)

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["config"] = config


# =============================================================================
# Benchmark Commands
# =============================================================================

@cli.command("bench")
@click.argument("query")
@click.option("--runs", "-n", type=click.IntRange(min=1), help="Number of runs (default 20)")
@click.pass_context
@handle_error
def bench(ctx: click.Context, query: str, runs: Optional[int]) -> None:
    """Benchmark an ad-hoc QUERY without baseline comparison."""
    run_session(ctx, lambda s: s.bench(query, runs))


@cli.command("benchmarks")
@click.pass_context
@handle_error
def benchmarks(ctx: click.Context) -> None:
    """List predefined benchmarks."""
    async def action(session: Session) -> None:
        session.list_benchmarks()
    run_session(ctx, action)


@cli.command("benchmark")
@click.argument("name")
@click.argument("runs", required=False, type=click.IntRange(min=1))
@click.pass_context
@handle_error
def benchmark(ctx: click.Context, name: str, runs: Optional[int]) -> None:
    """Run benchmark NAME (or 1-based index) and compare with baselines."""
    run_session(ctx, lambda s: s.benchmark(name, runs))


@cli.command("benchmark-all")
@click.argument("runs", required=False, type=click.IntRange(min=1))
@click.pass_context
@handle_error
def benchmark_all(ctx: click.Context, runs: Optional[int]) -> None:
    """Run all benchmarks and print the cross-version comparison table."""
    run_session(ctx, lambda s: s.benchmark_all(runs))


@cli.command("baseline")
@click.argument("args", nargs=-1)
@click.pass_context
@handle_error
def baseline(ctx: click.Context, args: tuple) -> None:
    """
    Create baselines for the current engine version.

    \b
    Arguments: [name|index] [runs]
    A numeric first argument is the run count for all benchmarks.
    """
    config: Config = ctx.obj["config"]
    reference, runs = parse_baseline_args(list(args), config.runs.baseline)
    run_session(ctx, lambda s: s.baseline(reference, runs), interactive=True)


@cli.command("show")
@click.pass_context
@handle_error
def show(ctx: click.Context) -> None:
    """Show saved baselines across engine versions."""
    run_session(ctx, lambda s: s.show())


# =============================================================================
# Baseline Transfer Commands
# =============================================================================

@cli.command("import-baselines")
@click.argument("file", required=False, type=click.Path(dir_okay=False, path_type=Path))
@click.pass_context
@handle_error
def import_baselines_cmd(ctx: click.Context, file: Optional[Path]) -> None:
    """Import baselines from an NDJSON FILE (default: the bundled seed file)."""
    run_session(ctx, lambda s: s.import_baselines(file))


@cli.command("export-baselines")
@click.pass_context
@handle_error
def export_baselines_cmd(ctx: click.Context) -> None:
    """Export all stored baselines to NDJSON."""
    run_session(ctx, lambda s: s.export_baselines())


@cli.command("export")
@click.argument("query")
@click.pass_context
@handle_error
def export(ctx: click.Context, query: str) -> None:
    """Export the results of QUERY to NDJSON."""
    run_session(ctx, lambda s: s.export(query))


# =============================================================================
# Query and Scenario Commands
# =============================================================================

@cli.command("query")
@click.argument("statement")
@click.option("--print/--no-print", "print_results", default=False, help="Print result documents")
@click.pass_context
@handle_error
def query(ctx: click.Context, statement: str, print_results: bool) -> None:
    """Execute one STATEMENT and report its timing."""
    run_session(ctx, lambda s: s.query(statement, print_results))


@cli.command("scenarios")
@click.pass_context
@handle_error
def scenarios(ctx: click.Context) -> None:
    """List predefined scenarios."""
    async def action(session: Session) -> None:
        session.list_scenarios()
    run_session(ctx, action)


@cli.command("run")
@click.argument("name")
@click.pass_context
@handle_error
def run(ctx: click.Context, name: str) -> None:
    """Run scenario NAME (or 1-based index) and validate its expectations."""
    run_session(ctx, lambda s: s.run_scenario(name))


@cli.command("run-all")
@click.pass_context
@handle_error
def run_all(ctx: click.Context) -> None:
    """Run all scenarios and print a pass/fail summary."""
    run_session(ctx, lambda s: s.run_all_scenarios())


@cli.command("shell")
@click.pass_context
@handle_error
def shell(ctx: click.Context) -> None:
    """Start the interactive shell."""
    async def action(session: Session) -> None:
        await Shell(session).loop()
    run_session(ctx, action, interactive=True)


def main() -> None:
    """Main entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
