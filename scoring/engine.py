"""
scoring/engine.py

Performance score, trend, risk level and completion estimate for a status
snapshot. Every function is pure: weights and thresholds come from the
ProcessProfile, never from branches on the process kind.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from analytics.profiles import ProcessProfile, all_hold, any_holds
from analytics.status import StatusMetrics
from scoring.normalizer import ScoreNormalizer

_normalizer = ScoreNormalizer()

CANNOT_ESTIMATE = "cannot estimate"
COMPLETED = "Completed"
CONTINUOUS_PROCESS = "continuous process"

# Rollout pace assumptions for the completion estimate
_MIN_DAILY_RATE = 2
_COMPLETED_PER_DAILY_UNIT = 10


@dataclass(frozen=True)
class ScoreCard:
    """All scoring outputs for one snapshot."""

    score: int
    trend: str
    risk_level: str
    completion_estimate: str


def compute_score(metrics: StatusMetrics, profile: ProcessProfile) -> int:
    """Weighted 0–100 performance score.

    Completion counts directly; no-response and error rates each remove
    headroom from their own term according to the profile's penalties.
    A snapshot with no records scores 0.

    Args:
        metrics: Derived status metrics with 0–100 rates.
        profile: Process profile supplying the weights.

    Returns:
        An integer in [0, 100].
    """
    if metrics.total <= 0:
        return 0

    w = profile.weights
    n = _normalizer
    raw = (
        w.completion_weight * metrics.completion_rate
        + w.no_response_weight * n.headroom(metrics.no_response_rate, w.no_response_penalty)
        + w.error_weight * n.headroom(metrics.error_rate, w.error_penalty)
    )
    return n.round_half_up(n.clamp(raw, 0.0, 100.0))


def compute_trend(metrics: StatusMetrics, profile: ProcessProfile) -> str:
    if all_hold(profile.improving, metrics):
        return "improving"
    if any_holds(profile.declining, metrics):
        return "declining"
    return "stable"


def compute_risk(metrics: StatusMetrics, profile: ProcessProfile) -> str:
    if any_holds(profile.high_risk, metrics):
        return "high"
    if any_holds(profile.medium_risk, metrics):
        return "medium"
    return "low"


def _plural(value: int, unit: str) -> str:
    return f"{value} {unit}" if value == 1 else f"{value} {unit}s"


def estimate_completion(metrics: StatusMetrics, profile: ProcessProfile) -> str:
    """Human-readable time-to-completion.

    Unbounded processes (continuous testing) have no end date. Bounded
    rollouts assume a daily pace of one tenth of what is already done,
    with a floor of two per day.
    """
    if metrics.total <= 0:
        return CANNOT_ESTIMATE
    if metrics.remaining <= 0:
        return COMPLETED
    if not profile.bounded:
        return CONTINUOUS_PROCESS

    daily_rate = max(_MIN_DAILY_RATE, metrics.completed // _COMPLETED_PER_DAILY_UNIT)
    days = math.ceil(metrics.remaining / daily_rate)
    if days <= 5:
        return _plural(days, "day")
    if days <= 21:
        return _plural(math.ceil(days / 7), "week")
    return _plural(math.ceil(days / 30), "month")


def score_snapshot(metrics: StatusMetrics, profile: ProcessProfile) -> ScoreCard:
    return ScoreCard(
        score=compute_score(metrics, profile),
        trend=compute_trend(metrics, profile),
        risk_level=compute_risk(metrics, profile),
        completion_estimate=estimate_completion(metrics, profile),
    )
