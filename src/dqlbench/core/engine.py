"""
Query engine adapter for DQLBench.

The harness talks to the embedded engine through a single awaitable
``execute(statement, params)`` call. Cancellation of an in-flight statement
is not supported: a statement that hangs hangs the harness.
"""

import asyncio
import importlib
import inspect
import re
import sqlite3
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol, runtime_checkable

from dqlbench.analysis.versions import is_version_at_least
from dqlbench.core.exceptions import EngineLoadError, QueryExecutionError
from dqlbench.utils.logging import get_logger

logger = get_logger(__name__)

UNKNOWN_VERSION = "unknown"
PLAN_PREFIXES = ("explain", "profile")


# =============================================================================
# Engine Contract
# =============================================================================

@dataclass
class QueryItem:
    """One document or row returned by the engine."""
    value: Any


@dataclass
class QueryResult:
    """Result set of one statement."""
    items: list[QueryItem] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.items)


@runtime_checkable
class QueryEngine(Protocol):
    """Anything that can execute a statement asynchronously."""

    async def execute(self, statement: str, params: Optional[dict] = None) -> QueryResult:
        ...


def is_plan_query(statement: str) -> bool:
    """Whether the statement asks for an execution plan instead of rows."""
    return statement.strip().lower().startswith(PLAN_PREFIXES)


# =============================================================================
# Built-in SQLite Engine
# =============================================================================

_INDEX_RE = re.compile(r"USING\s+(?:COVERING\s+)?INDEX\s+(\S+)", re.IGNORECASE)
_PRIMARY_KEY_RE = re.compile(r"USING\s+(?:INTEGER\s+)?PRIMARY\s+KEY", re.IGNORECASE)


def sqlite_plan_tree(rows: list[tuple]) -> dict:
    """
    Convert ``EXPLAIN QUERY PLAN`` rows into an ``#operator`` plan tree.

    ``SCAN`` steps become ``scan`` nodes and ``SEARCH ... USING INDEX`` steps
    become ``index_scan`` nodes naming the index; several steps are wrapped
    in a ``sequence``.
    """
    nodes = []
    for row in rows:
        detail = str(row[-1])
        upper = detail.upper()
        if upper.startswith("SCAN"):
            nodes.append({"#operator": "scan", "detail": detail})
        elif upper.startswith("SEARCH") and (match := _INDEX_RE.search(detail)):
            nodes.append({"#operator": "index_scan", "desc": {"index": match.group(1)}, "detail": detail})
        elif upper.startswith("SEARCH") and _PRIMARY_KEY_RE.search(detail):
            nodes.append({"#operator": "index_scan", "desc": {"index": "primary_key"}, "detail": detail})
        else:
            nodes.append({"#operator": "step", "detail": detail})

    if len(nodes) == 1:
        return nodes[0]
    return {"#operator": "sequence", "children": nodes}


class SqliteEngine:
    """
    Engine backed by the sqlite3 module, for benchmarking SQLite releases.

    Statements run on a worker thread so the event loop only suspends at
    the engine boundary. ``EXPLAIN``/``PROFILE`` are answered with a plan tree.
    """

    dialect = "sql"

    def __init__(self, database: str = ":memory:"):
        self.database = database
        self.version = sqlite3.sqlite_version
        self._connection = sqlite3.connect(database, check_same_thread=False)
        self._connection.row_factory = sqlite3.Row
        logger.debug(f"SQLite engine {self.version} opened on {database}")

    async def execute(self, statement: str, params: Optional[dict] = None) -> QueryResult:
        return await asyncio.to_thread(self._execute, statement, params)

    def _execute(self, statement: str, params: Optional[dict]) -> QueryResult:
        text = statement.strip().rstrip(";")
        try:
            if is_plan_query(text):
                parts = text.split(None, 1)
                inner = parts[1] if len(parts) > 1 else ""
                rows = self._connection.execute(f"EXPLAIN QUERY PLAN {inner}", params or {}).fetchall()
                return QueryResult(items=[QueryItem(value={"plan": sqlite_plan_tree(rows)})])

            cursor = self._connection.execute(text, params or {})
            rows = cursor.fetchall()
            self._connection.commit()
        except sqlite3.Error as e:
            raise QueryExecutionError(statement, str(e))

        return QueryResult(items=[QueryItem(value=dict(row)) for row in rows])

    def close(self) -> None:
        self._connection.close()


# =============================================================================
# Loading and Preparation
# =============================================================================

def load_engine(target: str, database: str = ":memory:") -> QueryEngine:
    """
    Create the configured engine.

    Args:
        target: ``sqlite`` or ``package.module:factory``; the factory is
            called with the database argument
        database: Database location handed to the engine

    Raises:
        EngineLoadError: If the target cannot be imported or is not an engine
    """
    if target.lower() == "sqlite":
        try:
            return SqliteEngine(database)
        except sqlite3.Error as e:
            raise EngineLoadError(target, str(e))

    module_name, _, attr = target.partition(":")
    if not module_name or not attr:
        raise EngineLoadError(target, "expected 'sqlite' or 'package.module:factory'")

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise EngineLoadError(target, f"import failed: {e}")

    factory = getattr(module, attr, None)
    if not callable(factory):
        raise EngineLoadError(target, f"'{attr}' is not callable")

    engine = factory(database)
    if not isinstance(engine, QueryEngine):
        raise EngineLoadError(target, "factory did not return an object with execute()")

    logger.info(f"Loaded query engine from {target}")
    return engine


def resolve_engine_version(engine: Any, override: Optional[str] = None) -> str:
    """Version label baselines are stored under."""
    if override:
        return override
    version = getattr(engine, "version", None)
    if isinstance(version, str) and version:
        return version
    logger.warning("Could not determine engine version, baselines will be stored as 'unknown'")
    return UNKNOWN_VERSION


async def close_engine(engine: Any) -> None:
    close = getattr(engine, "close", None)
    if close is None:
        return
    result = close()
    if inspect.isawaitable(result):
        await result


@dataclass(frozen=True)
class EngineFeature:
    """Setup statement only valid from a given engine version on."""
    name: str
    minimum: tuple[int, int, int]
    statement: str
    params: Optional[dict] = None


DQL_FEATURES = [
    EngineFeature(
        name="schemaless documents",
        minimum=(4, 11, 0),
        statement="ALTER SYSTEM SET DQL_STRICT_MODE = false",
    ),
    EngineFeature(
        name="local-only baseline collection",
        minimum=(4, 10, 0),
        statement="ALTER SYSTEM SET USER_COLLECTION_SYNC_SCOPES = :syncScopes",
        params={"syncScopes": {"benchmark_baselines": "LocalPeerOnly"}},
    ),
]


async def prepare_engine(engine: Any, version: str) -> list[str]:
    """
    Enable version-gated features on DQL engines.

    Returns:
        Names of the features that were enabled
    """
    if getattr(engine, "dialect", "dql") != "dql":
        return []

    enabled = []
    for feature in DQL_FEATURES:
        if is_version_at_least(version, *feature.minimum):
            await engine.execute(feature.statement, feature.params)
            enabled.append(feature.name)
        else:
            minimum = ".".join(str(p) for p in feature.minimum)
            logger.warning(f"{feature.name} not enabled because engine {version} is older than {minimum}")
    return enabled
