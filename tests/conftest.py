"""
Pytest configuration and fixtures for DQLBench tests.
"""

import pytest

from dqlbench.core.config import Config
from dqlbench.core.engine import QueryItem, QueryResult
from dqlbench.core.exceptions import QueryExecutionError
from dqlbench.core.models import BaselineRecord, StatDigest
from dqlbench.core.store import FileBaselineStore


class FakeEngine:
    """
    Scripted engine.

    ``results`` maps a statement to the documents it returns; statements
    starting with a key of ``failing`` raise with the mapped message.
    """

    dialect = "sql"

    def __init__(self, version="4.12.3", results=None, failing=None, dialect="sql"):
        self.version = version
        self.dialect = dialect
        self.results = results or {}
        self.failing = failing or {}
        self.statements = []
        self.closed = False

    async def execute(self, statement, params=None):
        self.statements.append((statement, params))
        for prefix, message in self.failing.items():
            if statement.startswith(prefix):
                raise QueryExecutionError(statement, message)
        return QueryResult(items=[QueryItem(value=v) for v in self.results.get(statement, [])])

    def executed(self, statement):
        return sum(1 for s, _ in self.statements if s == statement)

    def close(self):
        self.closed = True


class StepClock:
    """Clock advancing a fixed number of milliseconds per reading."""

    def __init__(self, step_ms=2.0):
        self.step = step_ms / 1000
        self.now = 0.0

    def __call__(self):
        self.now += self.step
        return self.now


class ScriptedPrompter:
    """Answers questions from a list and records what was asked."""

    def __init__(self, answers):
        self.answers = list(answers)
        self.questions = []

    async def ask(self, question):
        self.questions.append(question)
        return self.answers.pop(0)


def make_digest(mean, runs=5, result_count=3):
    return StatDigest(
        mean=mean,
        median=mean,
        min=mean,
        max=mean,
        std_dev=0.0,
        p95=mean,
        p99=mean,
        result_count=result_count,
        runs=runs,
    )


def make_record(version, mean, fingerprint="abcdef0123456789", query="SELECT * FROM cars"):
    digest = StatDigest.unsupported() if mean == -1 else make_digest(mean)
    return BaselineRecord.from_digest(query, fingerprint, version, digest)


@pytest.fixture
def temp_config(tmp_path):
    """Create a temporary configuration for testing."""
    return Config(base_dir=tmp_path)


@pytest.fixture
def fake_engine():
    return FakeEngine()


@pytest.fixture
def file_store(tmp_path):
    return FileBaselineStore(tmp_path / "baselines.json")


@pytest.fixture
def benchmarks_file(tmp_path):
    """Create a benchmark suite file with three benchmarks."""
    path = tmp_path / "benchmarks.json"
    path.write_text("""
{
  "all_cars": {"query": "SELECT * FROM cars"},
  "red_cars": {
    "query": "SELECT * FROM cars WHERE color = 'red'",
    "preQueries": ["CREATE INDEX color_idx ON cars (color)"],
    "postQueries": ["DROP INDEX color_idx"]
  },
  "count_cars": "SELECT count(*) FROM cars"
}
""")
    return path


@pytest.fixture
def scenarios_file(tmp_path):
    """Create a scenario suite file."""
    path = tmp_path / "scenarios.yaml"
    path.write_text("""
setup_and_check:
  - CREATE TABLE cars (id INTEGER PRIMARY KEY, color TEXT)
  - INSERT INTO cars (color) VALUES ('red'), ('blue'), ('red')
  - query: SELECT * FROM cars WHERE color = 'red'
    expectedCount: 2
    expectedIndex: full_scan
plain_only:
  - SELECT 1
""")
    return path
