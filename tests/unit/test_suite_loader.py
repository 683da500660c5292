"""
Tests for loading benchmark and scenario suites.
"""

import pytest

from dqlbench.core.exceptions import (
    BenchmarkNotFoundError,
    ScenarioNotFoundError,
    SuiteParseError,
    SuiteValidationError,
)
from dqlbench.core.models import PlainStep, ValidatedStep
from dqlbench.core.suite_loader import load_benchmarks, load_scenarios


class TestLoadBenchmarks:
    """Test benchmark suite loading."""

    def test_load_keeps_file_order(self, benchmarks_file):
        """Benchmarks should keep their order from the file."""
        suite = load_benchmarks(benchmarks_file)
        assert suite.names == ["all_cars", "red_cars", "count_cars"]
        assert len(suite) == 3

    def test_setup_and_cleanup_statements(self, benchmarks_file):
        """preQueries and postQueries should be read into the definition."""
        definition = load_benchmarks(benchmarks_file).get("red_cars")
        assert definition.pre_queries == ["CREATE INDEX color_idx ON cars (color)"]
        assert definition.post_queries == ["DROP INDEX color_idx"]

    def test_string_shorthand(self, benchmarks_file):
        """A bare string is a benchmark without setup or cleanup."""
        definition = load_benchmarks(benchmarks_file).get("count_cars")
        assert definition.query == "SELECT count(*) FROM cars"
        assert definition.pre_queries == []

    def test_resolve_by_index_and_name(self, benchmarks_file):
        """References can be 1-based indexes or names."""
        suite = load_benchmarks(benchmarks_file)
        assert suite.resolve("2")[0] == "red_cars"
        assert suite.resolve("count_cars")[0] == "count_cars"

    @pytest.mark.parametrize("reference", ["0", "4", "nope"])
    def test_resolve_unknown(self, benchmarks_file, reference):
        """Out-of-range indexes and unknown names raise."""
        with pytest.raises(BenchmarkNotFoundError):
            load_benchmarks(benchmarks_file).resolve(reference)

    def test_missing_file(self, tmp_path):
        """A missing suite file is a parse error."""
        with pytest.raises(SuiteParseError):
            load_benchmarks(tmp_path / "none.json")

    def test_not_a_mapping(self, tmp_path):
        """The top level must map names to definitions."""
        path = tmp_path / "benchmarks.json"
        path.write_text('["SELECT 1"]')
        with pytest.raises(SuiteParseError):
            load_benchmarks(path)

    def test_empty_query_rejected(self, tmp_path):
        """A benchmark with an empty query fails validation."""
        path = tmp_path / "benchmarks.json"
        path.write_text('{"empty": {"query": "  "}}')
        with pytest.raises(SuiteValidationError) as exc_info:
            load_benchmarks(path)
        assert exc_info.value.details["entry"] == "empty"

    def test_empty_file(self, tmp_path):
        """An empty file is an empty suite."""
        path = tmp_path / "benchmarks.yaml"
        path.write_text("")
        assert len(load_benchmarks(path)) == 0


class TestLoadScenarios:
    """Test scenario suite loading."""

    def test_step_variants(self, scenarios_file):
        """Strings become plain steps and objects become validated steps."""
        steps = load_scenarios(scenarios_file).get("setup_and_check")
        assert isinstance(steps[0], PlainStep)
        assert isinstance(steps[2], ValidatedStep)
        assert steps[2].expected_count == 2
        assert steps[2].expected_index == "full_scan"
        assert steps[2].max_execution_time is None

    def test_unknown_scenario(self, scenarios_file):
        """Unknown scenarios raise ScenarioNotFoundError."""
        with pytest.raises(ScenarioNotFoundError):
            load_scenarios(scenarios_file).resolve("missing")

    def test_scenario_must_be_list(self, tmp_path):
        """A scenario that is not a list of steps is invalid."""
        path = tmp_path / "scenarios.json"
        path.write_text('{"bad": "SELECT 1"}')
        with pytest.raises(SuiteValidationError):
            load_scenarios(path)

    def test_invalid_step(self, tmp_path):
        """Negative expectations are rejected."""
        path = tmp_path / "scenarios.json"
        path.write_text('{"bad": [{"query": "SELECT 1", "expectedCount": -1}]}')
        with pytest.raises(SuiteValidationError):
            load_scenarios(path)
