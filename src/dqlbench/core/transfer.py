"""
NDJSON transfer of baselines and query results.

Baseline files hold one ``BaselineRecord`` document per line and are used to
seed or share baselines between machines. Imports upsert, so importing the
same file twice is harmless, and a bad line is counted rather than fatal.
"""

import json
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from dqlbench.core.engine import QueryEngine
from dqlbench.core.exceptions import BaselineImportError, StoreError
from dqlbench.core.models import BaselineRecord
from dqlbench.core.store import BaselineStore
from dqlbench.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class TransferSummary:
    success_count: int = 0
    error_count: int = 0


async def import_baselines(store: BaselineStore, path: Path) -> TransferSummary:
    """
    Import baseline records from an NDJSON file.

    Raises:
        BaselineImportError: If the file itself cannot be read
    """
    if not path.exists():
        raise BaselineImportError(str(path), "file not found")
    try:
        lines = path.read_bytes().splitlines()
    except OSError as e:
        raise BaselineImportError(str(path), str(e))

    summary = TransferSummary()
    for line_number, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        try:
            record = BaselineRecord.model_validate(json.loads(line.decode("utf-8")))
            await store.upsert(record)
        except (UnicodeDecodeError, json.JSONDecodeError, ValidationError, StoreError) as e:
            summary.error_count += 1
            logger.warning(f"{path.name}:{line_number}: failed to import baseline: {e}")
            continue
        summary.success_count += 1
        if summary.success_count % 50 == 0:
            logger.info(f"Imported {summary.success_count} baselines...")

    logger.info(
        f"Baseline import from {path} complete: "
        f"{summary.success_count} imported, {summary.error_count} errors"
    )
    return summary


async def seed_baselines(store: BaselineStore, path: Path) -> TransferSummary | None:
    """Import the seed file when the store is still empty and the file exists."""
    if not path.exists():
        logger.debug(f"No baseline seed file at {path}")
        return None
    if await store.count() > 0:
        return None
    logger.info(f"Seeding empty baseline store from {path}")
    return await import_baselines(store, path)


def _timestamp() -> str:
    return datetime.now().strftime("%Y-%m-%dT%H-%M-%S")


def _write_ndjson(documents: list, directory: Path, prefix: str) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"{prefix}_{_timestamp()}.ndjson"
    with open(path, "w", encoding="utf-8") as f:
        for document in documents:
            f.write(json.dumps(document, default=str))
            f.write("\n")
    return path


async def export_baselines(store: BaselineStore, directory: Path) -> tuple[Path, int]:
    """Write every stored baseline to ``baselines_<timestamp>.ndjson``."""
    records = await store.list_all()
    path = _write_ndjson([r.to_document() for r in records], directory, "baselines")
    logger.info(f"Exported {len(records)} baselines to {path}")
    return path, len(records)


async def export_query(engine: QueryEngine, query: str, directory: Path) -> tuple[Optional[Path], int]:
    """
    Run a query and write its result documents to ``export_<timestamp>.ndjson``.

    Returns:
        The file written and the number of documents, or (None, 0) when the
        query returned nothing
    """
    result = await engine.execute(query)
    if not result.items:
        return None, 0
    path = _write_ndjson([item.value for item in result.items], directory, "export")
    logger.info(f"Exported {len(result.items)} documents to {path}")
    return path, len(result.items)
