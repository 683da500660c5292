"""Command-line interface for DQLBench."""

from dqlbench.interface.cli.main import cli, main

__all__ = ["cli", "main"]
