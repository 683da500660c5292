"""
Logging configuration for DQLBench.

Uses loguru for console and optional rotating file output. Benchmark
output meant for the operator goes through the rich console instead.
"""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger

LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[name]}</cyan> | "
    "<level>{message}</level>"
)

FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | "
    "{extra[name]}:{function}:{line} | {message}"
)


def setup_logging(
    level: str = "WARNING",
    log_file: Optional[Path] = None,
    rotation: str = "10 MB",
    retention: str = "1 week",
    json_format: bool = False,
) -> None:
    """
    Route log records to stderr and, optionally, a rotating file.

    Args:
        level: One of LOG_LEVELS
        log_file: Optional file path for log output
        rotation: Log rotation size/time
        retention: How long to keep old logs
        json_format: Whether to serialize file logs as JSON lines
    """
    level = level.upper()
    logger.remove()
    logger.configure(extra={"name": "dqlbench"})

    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=level, colorize=True, diagnose=False)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(log_file),
            format=FILE_FORMAT,
            level=level,
            rotation=rotation,
            retention=retention,
            serialize=json_format,
            backtrace=True,
        )


def get_logger(name: str) -> "logger":
    """Logger whose records carry the module name."""
    return logger.bind(name=name)


__all__ = [
    "LOG_LEVELS",
    "setup_logging",
    "get_logger",
    "logger",
]
