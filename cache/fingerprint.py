"""
cache/fingerprint.py

Deterministic digests used as cache keys and change-detection tokens.
"""

from __future__ import annotations

import hashlib
import json
from typing import Mapping

from analytics.snapshot import DashboardSnapshot

_CONTENT_DIGEST_CHARS = 16
_STATUS_DIGEST_CHARS = 12


def _digest(payload: str, length: int) -> str:
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:length]


def content_fingerprint(snapshot: DashboardSnapshot) -> str:
    """
    Cache key over total, status counts and process kind.

    Counts are serialized with sorted keys so insertion order never changes
    the fingerprint.
    """

    counts = json.dumps(snapshot.status_counts, sort_keys=True, ensure_ascii=False)
    payload = f"{snapshot.total_records}|{counts}|{snapshot.process_kind.value}"
    return _digest(payload, _CONTENT_DIGEST_CHARS)


def status_fingerprint(status_counts: Mapping[str, int]) -> str:
    """
    Digest of ``label:count`` pairs sorted by label.

    Only the status distribution feeds it, so it answers "did the statuses
    change since the last analysis of this subject".
    """

    payload = "|".join(f"{label}:{status_counts[label]}" for label in sorted(status_counts))
    return _digest(payload, _STATUS_DIGEST_CHARS)
