"""
Tests for timing statistics, benchmark fingerprints and version ordering.
"""

import hashlib
import math

import pytest

from dqlbench.analysis.identity import FINGERPRINT_LENGTH, fingerprint
from dqlbench.analysis.statistics import percentile, summarize
from dqlbench.analysis.versions import (
    compare_versions,
    is_version_at_least,
    parse_version,
    sort_versions,
)


class TestSummarize:
    """Test the statistical digest."""

    def test_even_number_of_samples(self):
        """Median of an even count should average the middle pair."""
        digest = summarize([4.0, 1.0, 3.0, 2.0], result_count=7)
        assert digest.mean == 2.5
        assert digest.median == 2.5
        assert digest.min == 1.0
        assert digest.max == 4.0
        assert digest.std_dev == pytest.approx(math.sqrt(1.25))
        assert digest.p95 == 4.0
        assert digest.p99 == 4.0
        assert digest.result_count == 7
        assert digest.runs == 4

    def test_single_sample(self):
        """A single sample should collapse every statistic onto itself."""
        digest = summarize([3.5], result_count=0)
        assert digest.mean == digest.median == digest.min == digest.max == 3.5
        assert digest.p95 == digest.p99 == 3.5
        assert digest.std_dev == 0.0

    def test_percentiles_use_floor_index(self):
        """p95 and p99 should index the sorted samples at floor(n * p)."""
        digest = summarize([float(v) for v in range(100, 0, -1)], result_count=1)
        assert digest.median == 50.5
        assert digest.p95 == 96.0
        assert digest.p99 == 100.0

    def test_mean_stays_within_extremes(self):
        """Floating point error must not push the mean outside [min, max]."""
        digest = summarize([0.1] * 10, result_count=1)
        assert digest.min <= digest.mean <= digest.max

    def test_digest_is_supported(self):
        """A real digest should not be mistaken for the unsupported sentinel."""
        assert summarize([2.0, 2.0], result_count=1).is_supported

    def test_empty_samples_rejected(self):
        """Summarizing nothing should raise."""
        with pytest.raises(ValueError):
            summarize([], result_count=0)

    def test_negative_sample_rejected(self):
        """Timings cannot be negative."""
        with pytest.raises(ValueError):
            summarize([1.0, -0.5], result_count=0)

    def test_percentile_clamps_to_last(self):
        """The percentile index should never run past the last element."""
        assert percentile([1.0, 2.0], 0.99) == 2.0


class TestFingerprint:
    """Test benchmark identity hashing."""

    def test_query_only(self):
        """Without setup statements the hash covers the query alone."""
        expected = hashlib.sha256(b"SELECT * FROM cars").hexdigest()[:16]
        assert fingerprint([], "SELECT * FROM cars") == expected

    def test_setup_statements_are_part_of_identity(self):
        """Setup statements and query should be joined with '|'."""
        pre = ["CREATE INDEX color_idx ON cars (color)"]
        expected = hashlib.sha256(
            b"CREATE INDEX color_idx ON cars (color)|SELECT * FROM cars"
        ).hexdigest()[:16]
        assert fingerprint(pre, "SELECT * FROM cars") == expected
        assert fingerprint(pre, "SELECT * FROM cars") != fingerprint([], "SELECT * FROM cars")

    def test_setup_order_matters(self):
        """Reordering setup statements should change the identity."""
        assert fingerprint(["A", "B"], "Q") != fingerprint(["B", "A"], "Q")

    def test_length_and_alphabet(self):
        """Fingerprints are 16 lowercase hex characters."""
        value = fingerprint([], "SELECT 1")
        assert len(value) == FINGERPRINT_LENGTH == 16
        assert all(c in "0123456789abcdef" for c in value)

    def test_deterministic(self):
        """The same benchmark should always hash the same."""
        assert fingerprint(["X"], "Y") == fingerprint(["X"], "Y")


class TestVersions:
    """Test version parsing and ordering."""

    def test_parse_semver(self):
        """A plain major.minor.patch version should parse."""
        version = parse_version("4.12.3")
        assert version.key == (4, 12, 3)
        assert version.minor_key == (4, 12)
        assert str(version) == "4.12.3"

    def test_parse_keeps_suffix_in_raw(self):
        """Suffixes after the numeric prefix should be ignored for ordering."""
        version = parse_version("4.12.3-rc.1")
        assert version.key == (4, 12, 3)
        assert version.raw == "4.12.3-rc.1"

    def test_unparsable_version_sorts_as_zero(self):
        """Non-numeric versions become 0.0.0 but keep their text."""
        version = parse_version("unknown")
        assert version.key == (0, 0, 0)
        assert str(version) == "unknown"

    def test_sort_most_recent_first(self):
        """Versions should sort descending numerically, not lexically."""
        ordered = sort_versions(["4.9.5", "4.12.0", "unknown", "4.10.0", "4.12.1"])
        assert ordered == ["4.12.1", "4.12.0", "4.10.0", "4.9.5", "unknown"]

    def test_compare_versions(self):
        """The comparator should put the newer version first."""
        assert compare_versions("4.12.0", "4.11.9") < 0
        assert compare_versions("4.11.9", "4.12.0") > 0
        assert compare_versions("4.12.0", "4.12.0-beta") == 0

    @pytest.mark.parametrize("version,expected", [
        ("4.11.0", True),
        ("4.11.2", True),
        ("5.0.0", True),
        ("4.10.9", False),
        ("unknown", False),
    ])
    def test_is_version_at_least(self, version, expected):
        """Feature gates should compare the full version tuple."""
        assert is_version_at_least(version, 4, 11) is expected
