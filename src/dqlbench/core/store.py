"""
Baseline storage for DQLBench.

A baseline store is a keyed document collection holding one record per
(fingerprint, engine version). Every call goes to the backing store; there
is no in-memory cache. A store that does not exist yet reads as empty.
"""

import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Iterable, Optional

from pydantic import ValidationError

from dqlbench.core.config import Config
from dqlbench.core.engine import QueryEngine
from dqlbench.core.exceptions import ConfigurationError, StoreError
from dqlbench.core.models import BaselineRecord
from dqlbench.utils.logging import get_logger

logger = get_logger(__name__)

COLLECTION = "COLLECTION benchmark_baselines (metrics MAP)"
MISSING_COLLECTION_MARKERS = ("not found", "does not exist", "no such collection", "unknown collection")


class BaselineStore(ABC):
    """Abstract keyed store of baseline records."""

    def __init__(self) -> None:
        # Documents skipped because they failed validation on read
        self.invalid_records = 0

    @abstractmethod
    async def get(self, fingerprint: str, version: str) -> Optional[BaselineRecord]:
        """Return the record for (fingerprint, version), or None if absent."""

    @abstractmethod
    async def get_all(self, fingerprint: str) -> list[BaselineRecord]:
        """Return the records for a fingerprint across all versions."""

    @abstractmethod
    async def upsert(self, record: BaselineRecord) -> None:
        """Insert the record or overwrite the one with the same key."""

    @abstractmethod
    async def list_all(self) -> list[BaselineRecord]:
        """Return every stored record."""

    async def count(self) -> int:
        return len(await self.list_all())

    def _parse(self, documents: Iterable[Any]) -> list[BaselineRecord]:
        records = []
        for document in documents:
            try:
                records.append(BaselineRecord.model_validate(document))
            except ValidationError as e:
                self.invalid_records += 1
                logger.warning(f"Skipping invalid baseline document: {e.error_count()} error(s)")
        return records


def _is_missing_collection(error: Exception) -> bool:
    message = str(error).lower()
    return any(marker in message for marker in MISSING_COLLECTION_MARKERS)


class EngineBaselineStore(BaselineStore):
    """Baselines kept in the query engine's own document collection."""

    GET_ONE = f"SELECT * FROM {COLLECTION} WHERE _id.hash = :hash AND _id.ditto_version = :version"
    GET_BY_HASH = f"SELECT * FROM {COLLECTION} WHERE _id.hash = :hash"
    GET_ALL = f"SELECT * FROM {COLLECTION}"
    UPSERT = f"INSERT INTO {COLLECTION} DOCUMENTS (:baseline) ON ID CONFLICT DO UPDATE"

    def __init__(self, engine: QueryEngine):
        super().__init__()
        self.engine = engine

    async def _select(self, statement: str, params: Optional[dict] = None) -> list[BaselineRecord]:
        try:
            result = await self.engine.execute(statement, params)
        except Exception as e:
            if _is_missing_collection(e):
                # The collection is created by the first upsert
                logger.debug(f"Baseline collection does not exist yet, treating as empty: {e}")
            else:
                logger.warning(f"Failed to read baselines from the engine, treating as empty: {e}")
            return []
        return self._parse(item.value for item in result.items)

    async def get(self, fingerprint: str, version: str) -> Optional[BaselineRecord]:
        records = await self._select(self.GET_ONE, {"hash": fingerprint, "version": version})
        return records[0] if records else None

    async def get_all(self, fingerprint: str) -> list[BaselineRecord]:
        return await self._select(self.GET_BY_HASH, {"hash": fingerprint})

    async def list_all(self) -> list[BaselineRecord]:
        return await self._select(self.GET_ALL)

    async def upsert(self, record: BaselineRecord) -> None:
        try:
            await self.engine.execute(self.UPSERT, {"baseline": record.to_document()})
        except Exception as e:
            raise StoreError(
                f"Failed to save baseline {record.fingerprint}@{record.version}: {e}",
                {"hash": record.fingerprint, "version": record.version},
            )
        logger.debug(f"Saved baseline {record.fingerprint}@{record.version}")


class FileBaselineStore(BaselineStore):
    """
    Baselines kept in a local JSON file.

    The file maps ``<hash>@<version>`` to the baseline document and is
    re-read on every call and rewritten on every upsert.
    """

    def __init__(self, path: Path):
        super().__init__()
        self.path = path

    @staticmethod
    def _key(fingerprint: str, version: str) -> str:
        return f"{fingerprint}@{version}"

    def _load_documents(self, strict: bool = False) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            if strict:
                raise StoreError(f"Baseline file '{self.path}' is unreadable: {e}", {"path": str(self.path)})
            logger.error(f"Failed to load baseline file {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            if strict:
                raise StoreError(f"Baseline file '{self.path}' is not a JSON object", {"path": str(self.path)})
            logger.error(f"Baseline file {self.path} is not a JSON object, ignoring it")
            return {}
        return data

    async def get(self, fingerprint: str, version: str) -> Optional[BaselineRecord]:
        document = self._load_documents().get(self._key(fingerprint, version))
        if document is None:
            return None
        records = self._parse([document])
        return records[0] if records else None

    async def get_all(self, fingerprint: str) -> list[BaselineRecord]:
        return [r for r in self._parse(self._load_documents().values()) if r.fingerprint == fingerprint]

    async def list_all(self) -> list[BaselineRecord]:
        return self._parse(self._load_documents().values())

    async def upsert(self, record: BaselineRecord) -> None:
        documents = self._load_documents(strict=True)
        documents[self._key(*record.key)] = record.to_document()
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w") as f:
                json.dump(documents, f, indent=2)
        except OSError as e:
            raise StoreError(f"Failed to write baseline file '{self.path}': {e}", {"path": str(self.path)})
        logger.debug(f"Saved baseline {record.fingerprint}@{record.version} to {self.path}")


def get_baseline_store(config: Config, engine: QueryEngine) -> BaselineStore:
    """Create the store selected by configuration."""
    if config.store.backend == "engine":
        dialect = getattr(engine, "dialect", "dql")
        if dialect != "dql":
            raise ConfigurationError(
                "DQLBENCH_STORE",
                f"the engine store needs a DQL engine, the configured engine speaks {dialect}",
            )
        return EngineBaselineStore(engine)
    if config.store.backend == "file":
        return FileBaselineStore(config.store.path)
    raise ConfigurationError("store.backend", f"unknown backend '{config.store.backend}'")
