"""Canonical structured output schema for dashboard analyses."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

InsightKind = Literal["success", "warning", "danger", "info"]
Priority = Literal["high", "medium", "low"]
RiskLevel = Literal["low", "medium", "high"]
Trend = Literal["improving", "declining", "stable"]
MetricTrend = Literal["up", "down", "stable"]


class _Contract(BaseModel):
    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class InsightMetrics(_Contract):
    current: float
    target: float
    trend: MetricTrend


class Insight(_Contract):
    kind: InsightKind
    title: str = Field(min_length=1)
    message: str = Field(min_length=1)
    recommendation: str = Field(min_length=1)
    confidence: int = Field(ge=0, le=100)
    priority: Priority
    metrics: Optional[InsightMetrics] = None


class Predictions(_Contract):
    completion_estimate: str
    risk_level: RiskLevel
    next_actions: List[str] = Field(default_factory=list, max_length=6)


class Performance(_Contract):
    score: int = Field(ge=0, le=100)
    trend: Trend
    benchmark_text: str


class Analysis(_Contract):
    """The only artifact returned to callers and kept in the cache."""

    summary: str
    insights: List[Insight] = Field(default_factory=list)
    predictions: Predictions
    performance: Performance
    timestamp: int
    content_hash: str

    def to_wire(self) -> dict:
        """camelCase JSON-ready payload."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
