"""
app/api/routers/insights_router.py

Insight analysis endpoints.

POST   /api/ai-insights               analyze a pre-aggregated snapshot
DELETE /api/ai-insights               wipe both cache tiers
GET    /api/ai-insights/cache         cache sizes
POST   /api/tabs/{tab_id}/analysis    aggregate raw rows, then analyze

The analysis endpoints answer HTTP 200 for every well-formed body; pipeline
failures are reported inside the payload, never as a non-2xx status.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status

from analysis.orchestrator import AnalysisOrchestrator, AnalysisResult, AnalysisSource
from analytics.snapshot import DashboardSnapshot
from analytics.status import aggregate, status_percentages
from app.api.dependencies import get_orchestrator
from app.schemas.insights import (
    AnalysisRequest,
    AnalysisResponse,
    CacheClearedResponse,
    CacheStatusResponse,
    TabAnalysisRequest,
    TabAnalysisResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["insights"])


def _provenance(result: AnalysisResult) -> dict:
    return {
        "from_cache": result.source is AnalysisSource.CACHE,
        "from_local": result.source is AnalysisSource.LOCAL,
        "from_ai": result.source is AnalysisSource.AI,
        "status_changed": result.status_changed,
        "error": result.error,
    }


@router.post(
    "/api/ai-insights",
    response_model=AnalysisResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_200_OK,
)
def analyze_snapshot(
    body: AnalysisRequest,
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
) -> AnalysisResponse:
    """
    Analyze one dashboard snapshot, honouring ``forceRefresh``.
    """

    result = orchestrator.analyze(body.data, force_refresh=body.force_refresh)
    return AnalysisResponse(analysis=result.analysis, **_provenance(result))


@router.delete(
    "/api/ai-insights",
    response_model=CacheClearedResponse,
    status_code=status.HTTP_200_OK,
)
def clear_analysis_cache(
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
) -> CacheClearedResponse:
    orchestrator.clear_cache()
    return CacheClearedResponse(message="Analysis cache cleared")


@router.get(
    "/api/ai-insights/cache",
    response_model=CacheStatusResponse,
    status_code=status.HTTP_200_OK,
)
def analysis_cache_status(
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
) -> CacheStatusResponse:
    stats = orchestrator.cache_status()
    return CacheStatusResponse(
        entries=stats.entries,
        subjects=stats.subjects,
        ttl_seconds=stats.ttl_seconds,
        remote_enabled=orchestrator.remote_enabled,
    )


@router.post(
    "/api/tabs/{tab_id}/analysis",
    response_model=TabAnalysisResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_200_OK,
)
def analyze_tab_rows(
    tab_id: str,
    body: TabAnalysisRequest,
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
) -> TabAnalysisResponse:
    """
    Aggregate the raw rows of a tab into a snapshot and analyze it.
    """

    aggregated = aggregate(body.rows)
    snapshot = DashboardSnapshot(
        subject_id=tab_id,
        subject_name=body.tab_name,
        process_kind=body.kind,
        status_counts=aggregated.status_counts,
        total_records=aggregated.total,
    )
    logger.info(
        "Aggregated tab=%r rows=%d labels=%d",
        tab_id,
        aggregated.total,
        len(aggregated.status_counts),
    )

    result = orchestrator.analyze(snapshot, force_refresh=body.force_refresh)
    return TabAnalysisResponse(
        analysis=result.analysis,
        status_counts=aggregated.status_counts,
        total_records=aggregated.total,
        percentages=status_percentages(aggregated.status_counts, aggregated.total),
        **_provenance(result),
    )
