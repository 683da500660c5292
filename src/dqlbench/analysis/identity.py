"""Stable benchmark fingerprints used to join baselines across engine versions."""

import hashlib
from typing import Sequence

FINGERPRINT_LENGTH = 16


def fingerprint(pre_queries: Sequence[str], query: str) -> str:
    """
    Hash the setup statements and the query, in order.

    Editing either produces an unrelated fingerprint, so an edited benchmark
    starts a fresh baseline history.
    """
    combined = "|".join([*pre_queries, query])
    return hashlib.sha256(combined.encode("utf-8")).hexdigest()[:FINGERPRINT_LENGTH]
