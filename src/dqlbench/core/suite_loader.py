"""
Suite Loader for DQLBench.

Handles loading, parsing and validating the benchmark and scenario files.
Both are JSON or YAML mappings from a name to a definition; the file order
is kept because commands accept a 1-based index as well as a name.
"""

from pathlib import Path
from typing import Generic, Iterator, Optional, TypeVar, Union

import yaml
from pydantic import ValidationError

from dqlbench.core.config import get_config
from dqlbench.core.exceptions import (
    BenchmarkNotFoundError,
    ScenarioNotFoundError,
    SuiteParseError,
    SuiteValidationError,
)
from dqlbench.core.models import BenchmarkDefinition, PlainStep, ValidatedStep, parse_step
from dqlbench.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

Scenario = list[Union[PlainStep, ValidatedStep]]


class NamedSuite(Generic[T]):
    """Ordered name -> entry mapping addressable by name or 1-based index."""

    not_found_error = BenchmarkNotFoundError

    def __init__(self, entries: dict[str, T]):
        self._entries = entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[tuple[str, T]]:
        return iter(self._entries.items())

    def __contains__(self, name: str) -> bool:
        return name in self._entries

    @property
    def names(self) -> list[str]:
        return list(self._entries)

    def get(self, name: str) -> T:
        if name not in self._entries:
            raise self.not_found_error(name)
        return self._entries[name]

    def resolve(self, reference: str) -> tuple[str, T]:
        """
        Resolve a name or a 1-based index.

        Raises:
            SuiteError subclass: If neither an index nor a name matches
        """
        reference = reference.strip()
        if reference.isdigit():
            index = int(reference)
            if 1 <= index <= len(self._entries):
                name = self.names[index - 1]
                return name, self._entries[name]
        return reference, self.get(reference)


class BenchmarkSuite(NamedSuite[BenchmarkDefinition]):
    not_found_error = BenchmarkNotFoundError


class ScenarioSuite(NamedSuite[Scenario]):
    not_found_error = ScenarioNotFoundError


def _parse_file(path: Path) -> dict:
    """Parse a JSON or YAML suite file into a mapping."""
    if not path.exists():
        raise SuiteParseError(str(path), "file not found")
    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise SuiteParseError(str(path), str(e))
    except IOError as e:
        raise SuiteParseError(str(path), f"IO error: {e}")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise SuiteParseError(str(path), "top level must be a mapping of names to entries")
    return data


def load_benchmarks(path: Optional[Path] = None) -> BenchmarkSuite:
    """
    Load the benchmark definitions.

    Args:
        path: Suite file. Uses the configured benchmarks file if not specified.

    Returns:
        Suite of validated benchmark definitions

    Raises:
        SuiteParseError: If the file is missing or malformed
        SuiteValidationError: If a definition is invalid
    """
    path = path or get_config().benchmarks_file
    data = _parse_file(path)

    entries: dict[str, BenchmarkDefinition] = {}
    for name, raw in data.items():
        if isinstance(raw, str):
            raw = {"query": raw}
        try:
            entries[str(name)] = BenchmarkDefinition.model_validate(raw)
        except ValidationError as e:
            errors = [f"{err['loc']}: {err['msg']}" for err in e.errors()]
            raise SuiteValidationError(str(name), errors)

    logger.info(f"Loaded {len(entries)} benchmarks from {path}")
    return BenchmarkSuite(entries)


def load_scenarios(path: Optional[Path] = None) -> ScenarioSuite:
    """
    Load the scenario definitions.

    Each scenario is a list of steps; a step is a query string or an object
    with ``query`` and optional ``expectedCount``, ``expectedIndex`` and
    ``maxExecutionTime``.
    """
    path = path or get_config().scenarios_file
    data = _parse_file(path)

    entries: dict[str, Scenario] = {}
    for name, raw_steps in data.items():
        if not isinstance(raw_steps, list):
            raise SuiteValidationError(str(name), ["scenario must be a list of steps"])
        steps: Scenario = []
        for position, raw in enumerate(raw_steps, start=1):
            try:
                steps.append(parse_step(raw))
            except (ValidationError, ValueError) as e:
                raise SuiteValidationError(str(name), [f"step {position}: {e}"])
        entries[str(name)] = steps

    logger.info(f"Loaded {len(entries)} scenarios from {path}")
    return ScenarioSuite(entries)
