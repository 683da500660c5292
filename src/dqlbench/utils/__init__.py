"""
Utility functions and helpers for DQLBench.
"""

from dqlbench.utils.logging import setup_logging, get_logger, logger

__all__ = [
    "setup_logging",
    "get_logger",
    "logger",
]
