"""
analysis/orchestrator.py

Top-level entry point of the insight pipeline.

Decides between the cached, local-heuristic and remote-narrative paths,
assembles the Analysis, writes it to the two-tier cache, and guarantees
that callers always receive a renderable result. Scoring and insight rules
live in ``scoring`` and ``insight_rules``; this module only sequences them.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Mapping

from analytics.profiles import ProcessProfile, get_profile
from analytics.snapshot import DashboardSnapshot
from analytics.status import StatusCategory, StatusMetrics, SynonymTable, derive_metrics
from app.config import AnalysisSettings, LLMSettings, get_analysis_settings, get_llm_settings
from cache.fingerprint import content_fingerprint, status_fingerprint
from cache.store import AnalysisCache, CacheStats
from insight_rules.generator import (
    build_local_summary,
    generate,
    generate_actions,
    generate_benchmark,
)
from llm_synthesis.adapter import BaseLLMAdapter, build_adapter
from llm_synthesis.narrative import generate_narrative
from llm_synthesis.prompt_builder import NarrativePromptBuilder
from llm_synthesis.schema import Analysis, Insight, Performance, Predictions
from scoring.engine import score_snapshot

logger = logging.getLogger(__name__)

# Static fallback risk bands, on the no-response and completion rates
_FALLBACK_HIGH_NO_RESPONSE = 40.0
_FALLBACK_LOW_NO_RESPONSE = 20.0
_FALLBACK_LOW_COMPLETION = 60.0

_FALLBACK_SUMMARY = (
    "Basic analysis: {completed} of {total} items completed ({rate:.1f}%). "
    "Detailed insights are temporarily unavailable."
)


class AnalysisSource(str, Enum):
    CACHE = "cache"
    LOCAL = "local"
    AI = "ai"


@dataclass(frozen=True)
class AnalysisResult:
    """
    Outcome of one ``analyze`` call.

    ``error`` is only set when the static fallback replaced a failed
    pipeline run.
    """

    analysis: Analysis
    source: AnalysisSource
    status_changed: bool = False
    error: str | None = None


# ---------------------------------------------------------------------------
# Loose input helpers for the static fallback
# ---------------------------------------------------------------------------


def _safe_int(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return max(0, value)
    if isinstance(value, float) and math.isfinite(value):
        return max(0, int(value))
    return 0


def _loose_counts(snapshot: Any) -> tuple[dict[str, int], int]:
    """Best-effort counts and total from a snapshot that may be malformed."""
    if isinstance(snapshot, DashboardSnapshot):
        return dict(snapshot.status_counts), snapshot.total_records
    if not isinstance(snapshot, Mapping):
        return {}, 0

    raw_counts = snapshot.get("statusCounts", snapshot.get("status_counts"))
    counts: dict[str, int] = {}
    if isinstance(raw_counts, Mapping):
        counts = {str(label): _safe_int(count) for label, count in raw_counts.items()}
    total = _safe_int(snapshot.get("totalRecords", snapshot.get("total_records")))
    return counts, total


def _minimal_analysis() -> Analysis:
    """Zero-count analysis used when even the static fallback cannot be built."""
    timestamp = int(time.time() * 1000)
    return Analysis(
        summary=_FALLBACK_SUMMARY.format(completed=0, total=0, rate=0.0),
        insights=[
            Insight(
                kind="info",
                title="Basic analysis",
                message="Detailed analysis could not be computed for this snapshot",
                recommendation="Check the tab data and refresh the analysis",
                confidence=50,
                priority="low",
            )
        ],
        predictions=Predictions(
            completion_estimate="cannot estimate",
            risk_level="medium",
            next_actions=["Keep monitoring", "Refresh the analysis"],
        ),
        performance=Performance(score=0, trend="stable", benchmark_text="Basic analysis active"),
        timestamp=timestamp,
        content_hash=f"fallback-{timestamp}",
    )


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


class AnalysisOrchestrator:
    """
    Coordinates cache lookups, local scoring, remote narratives and
    fallbacks for dashboard snapshots.

    The cache is owned by the instance; build one orchestrator per process
    (see ``app.api.dependencies``) to share it across requests.
    """

    def __init__(
        self,
        cache: AnalysisCache | None = None,
        adapter: BaseLLMAdapter | None = None,
        synonyms: SynonymTable | None = None,
        prompt_builder: NarrativePromptBuilder | None = None,
        max_retries: int = 1,
    ) -> None:
        """
        Args:
            cache: Analysis cache; a default 15-minute cache when omitted.
            adapter: Remote narrative adapter; ``None`` disables the remote tier.
            synonyms: Status synonym table; the built-in table when omitted.
            prompt_builder: Narrative prompt builder.
            max_retries: Extra remote attempts on malformed narratives.
        """
        self._cache = cache or AnalysisCache()
        self._adapter = adapter
        self._synonyms = synonyms or SynonymTable.default()
        self._prompt_builder = prompt_builder or NarrativePromptBuilder()
        self._max_retries = max_retries

    @classmethod
    def from_settings(
        cls,
        llm_settings: LLMSettings | None = None,
        analysis_settings: AnalysisSettings | None = None,
        clock: Callable[[], float] = time.time,
    ) -> "AnalysisOrchestrator":
        llm = llm_settings or get_llm_settings()
        analysis = analysis_settings or get_analysis_settings()

        synonyms = (
            SynonymTable.from_json_file(analysis.status_synonyms_path)
            if analysis.status_synonyms_path
            else SynonymTable.default()
        )
        return cls(
            cache=AnalysisCache(ttl_seconds=analysis.cache_ttl_seconds, clock=clock),
            adapter=build_adapter(llm),
            synonyms=synonyms,
            prompt_builder=NarrativePromptBuilder(language=llm.response_language),
            max_retries=llm.max_retries,
        )

    @property
    def remote_enabled(self) -> bool:
        return self._adapter is not None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def analyze(
        self,
        snapshot: DashboardSnapshot | Mapping[str, Any],
        force_refresh: bool = False,
    ) -> AnalysisResult:
        """
        Produce an Analysis for ``snapshot``. Never raises.

        Path selection:
            1. Fresh cache entry and unchanged statuses → cached analysis.
            2. Unchanged statuses with a retained (stale) entry → local recompute.
            3. Otherwise → remote narrative when configured, local on failure.
        ``force_refresh`` skips 1 and 2. Any unexpected failure returns a
        minimal static analysis.
        """
        try:
            return self._run(snapshot, force_refresh)
        except Exception as exc:
            logger.exception("Analysis pipeline failed; returning static fallback")
            error = str(exc) or type(exc).__name__

        try:
            fallback = self._static_fallback(snapshot)
        except Exception:
            logger.exception("Static fallback failed; returning minimal analysis")
            fallback = _minimal_analysis()
        return AnalysisResult(analysis=fallback, source=AnalysisSource.LOCAL, error=error)

    def clear_cache(self) -> None:
        self._cache.clear()
        logger.info("Analysis cache cleared")

    def cache_status(self) -> CacheStats:
        return self._cache.stats()

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def _run(
        self,
        snapshot: DashboardSnapshot | Mapping[str, Any],
        force_refresh: bool,
    ) -> AnalysisResult:
        snap = (
            snapshot
            if isinstance(snapshot, DashboardSnapshot)
            else DashboardSnapshot.model_validate(snapshot)
        )
        content_hash = content_fingerprint(snap)
        status_hash = status_fingerprint(snap.status_counts)
        subject = snap.subject_key
        status_changed = self._cache.last_status(subject) != status_hash

        logger.info(
            "Analysis requested subject=%r kind=%s status_changed=%s force=%s",
            subject,
            snap.process_kind.value,
            status_changed,
            force_refresh,
        )

        if not force_refresh and not status_changed:
            cached = self._cache.get(content_hash)
            if cached is not None:
                logger.info("Serving cached analysis subject=%r hash=%s", subject, content_hash)
                return AnalysisResult(analysis=cached, source=AnalysisSource.CACHE)

            if self._cache.contains(content_hash):
                logger.info("Statuses unchanged; recomputing locally subject=%r", subject)
                analysis = self._local_analysis(snap, content_hash)
                self._store(content_hash, subject, status_hash, analysis)
                return AnalysisResult(analysis=analysis, source=AnalysisSource.LOCAL)

        profile = get_profile(snap.process_kind)
        metrics = derive_metrics(snap.status_counts, snap.total_records, self._synonyms)

        source = AnalysisSource.LOCAL
        summary = None
        if self._adapter is None:
            logger.info("Remote narrative disabled; using local analysis subject=%r", subject)
        else:
            prompt, system = self._prompt_builder.build(metrics, profile)
            result = generate_narrative(
                self._adapter, prompt, system, max_retries=self._max_retries
            )
            if result.ok:
                summary = result.text
                source = AnalysisSource.AI
            else:
                logger.warning(
                    "Falling back to local narrative subject=%r reason=%s",
                    subject,
                    result.error.kind if result.error else "unknown",
                )

        if summary is None:
            summary = build_local_summary(metrics, profile)

        analysis = self._assemble(metrics, profile, summary, content_hash)
        self._store(content_hash, subject, status_hash, analysis)
        return AnalysisResult(analysis=analysis, source=source, status_changed=status_changed)

    def _local_analysis(self, snap: DashboardSnapshot, content_hash: str) -> Analysis:
        profile = get_profile(snap.process_kind)
        metrics = derive_metrics(snap.status_counts, snap.total_records, self._synonyms)
        return self._assemble(metrics, profile, build_local_summary(metrics, profile), content_hash)

    def _assemble(
        self,
        metrics: StatusMetrics,
        profile: ProcessProfile,
        summary: str,
        content_hash: str,
    ) -> Analysis:
        card = score_snapshot(metrics, profile)
        return Analysis(
            summary=summary,
            insights=generate(metrics, profile),
            predictions=Predictions(
                completion_estimate=card.completion_estimate,
                risk_level=card.risk_level,
                next_actions=generate_actions(metrics, profile),
            ),
            performance=Performance(
                score=card.score,
                trend=card.trend,
                benchmark_text=generate_benchmark(card.score, profile),
            ),
            timestamp=self._now_millis(),
            content_hash=content_hash,
        )

    def _store(self, content_hash: str, subject: str, status_hash: str, analysis: Analysis) -> None:
        self._cache.put(content_hash, analysis)
        self._cache.remember_status(subject, status_hash)
        self._cache.sweep()

    def _now_millis(self) -> int:
        return int(self._cache.now() * 1000)

    # ------------------------------------------------------------------
    # Static fallback
    # ------------------------------------------------------------------

    def _static_fallback(self, snapshot: Any) -> Analysis:
        counts, total = _loose_counts(snapshot)

        def _sum(category: StatusCategory) -> int:
            return sum(counts.get(label, 0) for label in self._synonyms.labels_for(category))

        completed = _sum(StatusCategory.COMPLETED)
        no_response = _sum(StatusCategory.NO_RESPONSE)
        completion_rate = completed / total * 100.0 if total > 0 else 0.0
        no_response_rate = no_response / total * 100.0 if total > 0 else 0.0

        if no_response_rate > _FALLBACK_HIGH_NO_RESPONSE:
            risk_level = "high"
        elif (
            no_response_rate < _FALLBACK_LOW_NO_RESPONSE
            and completion_rate > _FALLBACK_LOW_COMPLETION
        ):
            risk_level = "low"
        else:
            risk_level = "medium"

        timestamp = self._now_millis()
        return Analysis(
            summary=_FALLBACK_SUMMARY.format(completed=completed, total=total, rate=completion_rate),
            insights=[
                Insight(
                    kind="info",
                    title="Basic analysis",
                    message="Detailed analysis could not be computed for this snapshot",
                    recommendation="Check the tab data and refresh the analysis",
                    confidence=50,
                    priority="low",
                )
            ],
            predictions=Predictions(
                completion_estimate="cannot estimate",
                risk_level=risk_level,
                next_actions=["Keep monitoring", "Refresh the analysis"],
            ),
            performance=Performance(
                score=max(0, min(100, int(completion_rate + 0.5))),
                trend="stable",
                benchmark_text="Basic analysis active",
            ),
            timestamp=timestamp,
            content_hash=f"fallback-{timestamp}",
        )
