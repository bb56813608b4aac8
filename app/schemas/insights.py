"""
app/schemas/insights.py

Request and response schemas for the insight analysis endpoints.
"""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from analytics.profiles import ProcessKind
from llm_synthesis.schema import Analysis


class AnalysisRequest(BaseModel):
    """
    API request model carrying one pre-aggregated dashboard snapshot.

    ``data`` stays a plain object here; the orchestrator validates it and
    answers malformed snapshots with its static fallback.
    """

    model_config = ConfigDict(populate_by_name=True)

    data: dict[str, Any]
    force_refresh: bool = Field(
        default=False,
        validation_alias=AliasChoices("force_refresh", "forceRefresh"),
    )


class TabAnalysisRequest(BaseModel):
    """
    API request model carrying the raw rows of one tab.
    """

    model_config = ConfigDict(populate_by_name=True)

    tab_name: str | None = Field(
        default=None,
        validation_alias=AliasChoices("tab_name", "tabName"),
    )
    process_kind: str | None = Field(
        default=None,
        validation_alias=AliasChoices("process_kind", "processKind", "dashboardType"),
    )
    rows: list[dict[str, Any]] = Field(default_factory=list)
    force_refresh: bool = Field(
        default=False,
        validation_alias=AliasChoices("force_refresh", "forceRefresh"),
    )

    @property
    def kind(self) -> ProcessKind:
        return ProcessKind.parse(self.process_kind)


class AnalysisResponse(BaseModel):
    """
    API response model for an analysis; exactly one provenance flag is true.
    """

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    analysis: Analysis
    from_cache: bool = Field(default=False, alias="fromCache")
    from_local: bool = Field(default=False, alias="fromLocal")
    from_ai: bool = Field(default=False, alias="fromAI")
    status_changed: bool = Field(default=False, alias="statusChanged")
    error: str | None = None


class TabAnalysisResponse(AnalysisResponse):
    """
    Analysis response enriched with the aggregated distribution of the tab.
    """

    status_counts: dict[str, int] = Field(default_factory=dict, alias="statusCounts")
    total_records: int = Field(default=0, ge=0, alias="totalRecords")
    percentages: dict[str, float] = Field(default_factory=dict)


class CacheClearedResponse(BaseModel):
    success: bool = True
    message: str


class CacheStatusResponse(BaseModel):
    """
    API response model for the analysis cache size.
    """

    model_config = ConfigDict(populate_by_name=True)

    entries: int = Field(..., ge=0)
    subjects: int = Field(..., ge=0)
    ttl_seconds: float = Field(..., alias="ttlSeconds")
    remote_enabled: bool = Field(..., alias="remoteEnabled")
