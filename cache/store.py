"""
cache/store.py

Two-tier, process-local analysis cache.

Tier one maps a content fingerprint to the Analysis produced for it.
Tier two remembers, per subject, the status fingerprint seen on the last
analysis. Plain dict assignments only: concurrent writers on one key are
last-write-wins.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable

from llm_synthesis.schema import Analysis

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 15 * 60


@dataclass(frozen=True)
class _CacheEntry:
    analysis: Analysis
    stored_at: float


@dataclass(frozen=True)
class CacheStats:
    entries: int
    subjects: int
    ttl_seconds: float


class AnalysisCache:
    """
    TTL cache owned by one orchestrator instance.

    ``clock`` returns seconds since the epoch and is injectable for tests.
    ``get`` enforces the TTL on every read; ``sweep`` is coarse housekeeping
    that drops entries older than twice the TTL.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._ttl = float(ttl_seconds)
        self._clock = clock
        self._entries: dict[str, _CacheEntry] = {}
        self._last_status: dict[str, str] = {}

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def now(self) -> float:
        return self._clock()

    def get(self, key: str) -> Analysis | None:
        """Return the cached analysis while it is younger than the TTL."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.stored_at >= self._ttl:
            return None
        return entry.analysis

    def contains(self, key: str) -> bool:
        """True when an entry is retained for ``key``, fresh or stale."""
        return key in self._entries

    def put(self, key: str, analysis: Analysis) -> None:
        self._entries[key] = _CacheEntry(analysis=analysis, stored_at=self._clock())

    def last_status(self, subject: str) -> str | None:
        return self._last_status.get(subject)

    def remember_status(self, subject: str, fingerprint: str) -> None:
        self._last_status[subject] = fingerprint

    def sweep(self) -> int:
        """Drop entries older than twice the TTL; return how many went."""
        cutoff = self._clock() - 2 * self._ttl
        expired = [key for key, entry in list(self._entries.items()) if entry.stored_at < cutoff]
        for key in expired:
            self._entries.pop(key, None)
        if expired:
            logger.debug("Swept %d expired analysis cache entries", len(expired))
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()
        self._last_status.clear()

    def stats(self) -> CacheStats:
        return CacheStats(
            entries=len(self._entries),
            subjects=len(self._last_status),
            ttl_seconds=self._ttl,
        )
