"""
Engine version parsing and ordering.

Version strings are treated as opaque tags: anything without a leading
``major.minor.patch`` sorts as 0.0.0 but keeps its raw text for display.
"""

import re
from dataclasses import dataclass
from functools import cmp_to_key
from typing import Iterable

_VERSION_RE = re.compile(r"^(\d+)\.(\d+)\.(\d+)")


@dataclass(frozen=True)
class Version:
    """Parsed engine version."""
    major: int
    minor: int
    patch: int
    raw: str

    @property
    def key(self) -> tuple[int, int, int]:
        return (self.major, self.minor, self.patch)

    @property
    def minor_key(self) -> tuple[int, int]:
        return (self.major, self.minor)

    def __str__(self) -> str:
        return self.raw


def parse_version(version: str) -> Version:
    match = _VERSION_RE.match(version)
    if not match:
        return Version(0, 0, 0, version)
    return Version(int(match.group(1)), int(match.group(2)), int(match.group(3)), version)


def compare_versions(a: str, b: str) -> int:
    """
    Comparator putting the most recent version first.

    Returns a negative number when ``a`` is more recent than ``b``, positive
    when older, and 0 when both parse to the same tuple.
    """
    va, vb = parse_version(a).key, parse_version(b).key
    if va == vb:
        return 0
    return -1 if va > vb else 1


def sort_versions(versions: Iterable[str]) -> list[str]:
    """Sort version strings most recent first."""
    return sorted(versions, key=cmp_to_key(compare_versions))


def is_version_at_least(version: str, major: int, minor: int, patch: int = 0) -> bool:
    return parse_version(version).key >= (major, minor, patch)
