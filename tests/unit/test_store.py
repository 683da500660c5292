"""
Tests for the baseline stores.
"""

import asyncio
import json

import pytest

from dqlbench.core.config import Config, StoreConfig
from dqlbench.core.engine import SqliteEngine
from dqlbench.core.exceptions import ConfigurationError, StoreError
from dqlbench.core.models import BaselineRecord
from dqlbench.core.store import (
    EngineBaselineStore,
    FileBaselineStore,
    _is_missing_collection,
    get_baseline_store,
)

from conftest import FakeEngine, make_digest, make_record


class TestBaselineRecord:
    """Test the persisted record shape."""

    def test_document_uses_persisted_names(self):
        """Documents should use _id.hash, _id.ditto_version and camelCase metrics."""
        document = make_record("4.12.3", 5.0).to_document()
        assert document["_id"] == {
            "query": "SELECT * FROM cars",
            "hash": "abcdef0123456789",
            "ditto_version": "4.12.3",
        }
        assert document["metrics"]["stdDev"] == 0.0
        assert document["metrics"]["resultCount"] == 3
        assert "timestamp" in document["metrics"]

    def test_long_query_truncated_for_display(self):
        """Only the display copy of the query is truncated."""
        query = "SELECT * FROM cars WHERE " + "x" * 200
        record = BaselineRecord.from_digest(query, "abcdef0123456789", "4.12.3", make_digest(5.0))
        assert record.id.query == query[:100] + "..."
        assert record.fingerprint == "abcdef0123456789"

    def test_short_query_kept(self):
        """Queries within the limit are stored as-is."""
        record = BaselineRecord.from_digest("SELECT 1", "f" * 16, "4.12.3", make_digest(5.0), max_query_length=8)
        assert record.id.query == "SELECT 1"

    def test_document_round_trip(self):
        """A stored document should validate back into the same key and mean."""
        record = make_record("4.12.3", 5.0)
        restored = BaselineRecord.model_validate(record.to_document())
        assert restored.key == record.key
        assert restored.mean == 5.0


class TestFileBaselineStore:
    """Test the JSON-file store."""

    def test_missing_file_reads_empty(self, file_store):
        """A store that was never written reads as empty."""
        assert asyncio.run(file_store.list_all()) == []
        assert asyncio.run(file_store.get("abcdef0123456789", "4.12.3")) is None
        assert asyncio.run(file_store.count()) == 0

    def test_upsert_and_get(self, file_store):
        """A saved record should be retrievable by fingerprint and version."""
        asyncio.run(file_store.upsert(make_record("4.12.3", 5.0)))
        record = asyncio.run(file_store.get("abcdef0123456789", "4.12.3"))
        assert record is not None
        assert record.mean == 5.0

    def test_upsert_overwrites_same_key(self, file_store):
        """At most one record exists per (fingerprint, version)."""
        asyncio.run(file_store.upsert(make_record("4.12.3", 5.0)))
        asyncio.run(file_store.upsert(make_record("4.12.3", 8.0)))
        assert asyncio.run(file_store.count()) == 1
        assert asyncio.run(file_store.get("abcdef0123456789", "4.12.3")).mean == 8.0

    def test_get_all_filters_by_fingerprint(self, file_store):
        """get_all returns every version of one benchmark only."""
        asyncio.run(file_store.upsert(make_record("4.12.3", 5.0)))
        asyncio.run(file_store.upsert(make_record("4.11.0", 6.0)))
        asyncio.run(file_store.upsert(make_record("4.12.3", 7.0, fingerprint="0" * 16)))

        records = asyncio.run(file_store.get_all("abcdef0123456789"))
        assert sorted(r.version for r in records) == ["4.11.0", "4.12.3"]

    def test_invalid_documents_skipped_and_counted(self, tmp_path):
        """Documents failing validation are skipped, not fatal."""
        path = tmp_path / "baselines.json"
        good = make_record("4.12.3", 5.0).to_document()
        path.write_text(json.dumps({
            "abcdef0123456789@4.12.3": good,
            "broken@4.12.3": {"_id": {"hash": "broken"}},
        }))
        store = FileBaselineStore(path)

        records = asyncio.run(store.list_all())
        assert len(records) == 1
        assert store.invalid_records == 1

    def test_corrupt_file_reads_empty(self, tmp_path):
        """An unreadable file reads as empty."""
        path = tmp_path / "baselines.json"
        path.write_text("{not json")
        assert asyncio.run(FileBaselineStore(path).list_all()) == []

    def test_corrupt_file_not_overwritten(self, tmp_path):
        """Writing into an unreadable file fails instead of discarding it."""
        path = tmp_path / "baselines.json"
        path.write_text("{not json")
        with pytest.raises(StoreError):
            asyncio.run(FileBaselineStore(path).upsert(make_record("4.12.3", 5.0)))
        assert path.read_text() == "{not json"


class TestEngineBaselineStore:
    """Test the store kept inside the engine."""

    def test_reads_documents(self):
        """Query results should be parsed into records."""
        document = make_record("4.12.3", 5.0).to_document()
        engine = FakeEngine(results={EngineBaselineStore.GET_BY_HASH: [document]})
        records = asyncio.run(EngineBaselineStore(engine).get_all("abcdef0123456789"))
        assert [r.version for r in records] == ["4.12.3"]
        assert engine.statements[0][1] == {"hash": "abcdef0123456789"}

    def test_missing_collection_reads_empty(self):
        """A failing read is treated as no records."""
        engine = FakeEngine(failing={"SELECT": "collection not found"})
        store = EngineBaselineStore(engine)
        assert asyncio.run(store.get("abcdef0123456789", "4.12.3")) is None
        assert asyncio.run(store.list_all()) == []

    def test_other_read_failures_read_empty(self):
        """Any other read failure still yields no records instead of raising."""
        engine = FakeEngine(failing={"SELECT": "near \"(\": syntax error"})
        store = EngineBaselineStore(engine)
        assert asyncio.run(store.get_all("abcdef0123456789")) == []

    def test_missing_collection_detection(self):
        """Only missing-collection errors count as an absent collection."""
        assert _is_missing_collection(Exception("Collection benchmark_baselines not found"))
        assert _is_missing_collection(Exception("collection does not exist"))
        assert not _is_missing_collection(Exception("near \"(\": syntax error"))

    def test_upsert_sends_document(self):
        """Upsert should send the persisted document shape."""
        engine = FakeEngine()
        asyncio.run(EngineBaselineStore(engine).upsert(make_record("4.12.3", 5.0)))
        statement, params = engine.statements[0]
        assert statement == EngineBaselineStore.UPSERT
        assert params["baseline"]["_id"]["ditto_version"] == "4.12.3"

    def test_upsert_failure_raises(self):
        """A rejected write surfaces as StoreError."""
        engine = FakeEngine(failing={"INSERT": "read-only"})
        with pytest.raises(StoreError):
            asyncio.run(EngineBaselineStore(engine).upsert(make_record("4.12.3", 5.0)))


class TestStoreFactory:
    """Test store selection from configuration."""

    def test_file_backend(self, temp_config):
        """The default backend is the JSON file."""
        store = get_baseline_store(temp_config, FakeEngine())
        assert isinstance(store, FileBaselineStore)
        assert store.path == temp_config.store.path

    def test_engine_backend(self, tmp_path):
        """The engine backend keeps baselines inside the engine."""
        config = Config(base_dir=tmp_path, store=StoreConfig(backend="engine"))
        assert isinstance(get_baseline_store(config, FakeEngine(dialect="dql")), EngineBaselineStore)

    def test_engine_backend_rejects_sql_engine(self, tmp_path):
        """The engine backend needs an engine that understands DQL."""
        config = Config(base_dir=tmp_path, store=StoreConfig(backend="engine"))
        engine = SqliteEngine()
        try:
            with pytest.raises(ConfigurationError) as exc_info:
                get_baseline_store(config, engine)
        finally:
            engine.close()
        assert exc_info.value.details["setting"] == "DQLBENCH_STORE"

    def test_unknown_backend(self, tmp_path):
        """Unknown backends are a configuration error."""
        config = Config(base_dir=tmp_path, store=StoreConfig(backend="redis"))
        with pytest.raises(ConfigurationError):
            get_baseline_store(config, FakeEngine())
