"""
Interactive shell.

Lines starting with a dot are commands; anything else is executed as a
query. Errors are reported per line and never end the shell.
"""

import asyncio
from pathlib import Path
from typing import Awaitable, Callable, Optional

from rich.markup import escape
from rich.table import Table

from dqlbench.core.exceptions import DqlBenchError, UsageError
from dqlbench.interface.cli.session import (
    Session,
    parse_baseline_args,
    parse_bench_args,
    parse_run_count,
)
from dqlbench.utils.logging import get_logger

logger = get_logger(__name__)

PROMPT = "dql> "

HELP = [
    (".bench [-n runs] <query>", "Benchmark an ad-hoc query (default 20 runs)"),
    (".benchmarks", "List predefined benchmarks"),
    (".benchmark <name|index> [runs]", "Run one benchmark against stored baselines"),
    (".benchmark_all [runs]", "Run all benchmarks and print the comparison table"),
    (".benchmark_baseline [name|index] [runs]", "Create baselines for the current engine version"),
    (".benchmark_show", "Show saved baselines across versions"),
    (".import_baselines [file]", "Import baselines from an NDJSON file"),
    (".export_baselines", "Export stored baselines to NDJSON"),
    (".list", "List scenarios"),
    (".run <name|index>", "Run one scenario"),
    (".all", "Run all scenarios"),
    (".export <query>", "Export query results to NDJSON"),
    (".help", "Show this help"),
    (".exit", "Leave the shell"),
]

Handler = Callable[[str], Awaitable[None]]


class Shell:
    """Dispatches shell lines to session commands."""

    def __init__(self, session: Session):
        self.session = session
        self.commands: dict[str, Handler] = {
            ".bench": self._bench,
            ".benchmarks": self._benchmarks,
            ".benchmark": self._benchmark,
            ".benchmark_all": self._benchmark_all,
            ".benchmark_baseline": self._benchmark_baseline,
            ".benchmark_show": self._benchmark_show,
            ".import_baselines": self._import_baselines,
            ".export_baselines": self._export_baselines,
            ".list": self._list,
            ".run": self._run,
            ".all": self._all,
            ".export": self._export,
            ".help": self._help,
        }

    @property
    def console(self):
        return self.session.console

    async def dispatch(self, line: str) -> bool:
        """
        Handle one line.

        Returns:
            False when the shell should exit
        """
        line = line.strip()
        if not line:
            return True

        command, _, rest = line.partition(" ")
        command = command.lower()
        if command in (".exit", ".quit"):
            return False

        try:
            if command.startswith("."):
                handler = self.commands.get(command)
                if handler is None:
                    self.console.print(f"[red]Unknown command:[/red] {escape(command)} (try .help)")
                    return True
                await handler(rest.strip())
            else:
                await self.session.query(line)
        except DqlBenchError as e:
            self.console.print(f"[red]Error:[/red] {escape(e.message)}")
        except Exception as e:
            self.console.print(f"[red]Error:[/red] {escape(str(e))}")
            logger.exception(f"Command failed: {line}")
        return True

    async def loop(self, read_line: Optional[Callable[[str], str]] = None) -> None:
        """Read and dispatch lines until ``.exit`` or end of input."""
        read_line = read_line or self.console.input
        self.console.print(
            f"[bold cyan]DQLBench shell[/bold cyan] (engine {self.session.version}). Type .help for commands."
        )
        while True:
            try:
                line = await asyncio.to_thread(read_line, PROMPT)
            except (EOFError, KeyboardInterrupt):
                break
            if not await self.dispatch(line):
                break
        self.console.print("Goodbye!")

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    async def _bench(self, args: str) -> None:
        if not args:
            raise UsageError(".bench [-n runs] <query>", "Missing query")
        query, runs = parse_bench_args(args, self.session.config.runs.adhoc)
        await self.session.bench(query, runs)

    async def _benchmarks(self, args: str) -> None:
        self.session.list_benchmarks()

    async def _benchmark(self, args: str) -> None:
        usage = ".benchmark <name|index> [runs]"
        parts = args.split()
        if not parts or len(parts) > 2:
            raise UsageError(usage, "Expected a benchmark name or index")
        runs = parse_run_count(parts[1] if len(parts) > 1 else None, self.session.config.runs.benchmark, usage)
        await self.session.benchmark(parts[0], runs)

    async def _benchmark_all(self, args: str) -> None:
        runs = parse_run_count(args or None, self.session.config.runs.benchmark, ".benchmark_all [runs]")
        await self.session.benchmark_all(runs)

    async def _benchmark_baseline(self, args: str) -> None:
        reference, runs = parse_baseline_args(args.split(), self.session.config.runs.baseline)
        await self.session.baseline(reference, runs)

    async def _benchmark_show(self, args: str) -> None:
        await self.session.show()

    async def _import_baselines(self, args: str) -> None:
        await self.session.import_baselines(Path(args) if args else None)

    async def _export_baselines(self, args: str) -> None:
        await self.session.export_baselines()

    async def _list(self, args: str) -> None:
        self.session.list_scenarios()

    async def _run(self, args: str) -> None:
        if not args:
            raise UsageError(".run <name|index>", "Missing scenario name or index")
        await self.session.run_scenario(args)

    async def _all(self, args: str) -> None:
        await self.session.run_all_scenarios()

    async def _export(self, args: str) -> None:
        if not args:
            raise UsageError(".export <query>", "Missing query")
        await self.session.export(args)

    async def _help(self, args: str) -> None:
        table = Table(title="Commands", show_header=False)
        table.add_column("Command", style="cyan", no_wrap=True)
        table.add_column("Description")
        for command, description in HELP:
            table.add_row(command, description)
        self.console.print(table)
        self.console.print("Any other input is executed as a query.")
