"""
insight_rules/generator.py

Deterministic, rule-based insight engine for status snapshots.

Walks the insight, action and summary rules of a ProcessProfile against the
derived StatusMetrics. No I/O and no scoring math happen here; the score is
taken as an input where a rule needs it.

Rules evaluated
---------------
- Insights: every rule is evaluated independently, in declaration order,
  and each match appends one Insight.
- Actions: the actions of every matching rule are concatenated, first
  occurrence wins, and the list is cut at six entries. When no rule
  matches, the profile's default actions are used.
- Summary: the first matching summary rule provides the narrative.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

from analytics.profiles import ProcessProfile, all_hold
from analytics.status import StatusMetrics
from llm_synthesis.schema import Insight, InsightMetrics

MAX_ACTIONS = 6

_BENCHMARK_BANDS: tuple[tuple[int, str], ...] = (
    (85, "Excellent - top 10% of {noun}"),
    (70, "Good - above average for {noun}"),
    (50, "Adequate - around the median for {noun}"),
    (30, "Below average for {noun} - action required"),
)
_BENCHMARK_CRITICAL = "Critical - urgent intervention needed compared to other {noun}"


def _template_fields(metrics: StatusMetrics) -> dict[str, Any]:
    fields = asdict(metrics)
    fields["remaining"] = metrics.remaining
    return fields


def generate(metrics: StatusMetrics, profile: ProcessProfile) -> list[Insight]:
    """Emit one Insight per matching rule, in rule order."""
    fields = _template_fields(metrics)
    insights: list[Insight] = []

    for rule in profile.insight_rules:
        if not all_hold(rule.conditions, metrics):
            continue

        snapshot = None
        if rule.snapshot is not None:
            snapshot = InsightMetrics(
                current=round(float(getattr(metrics, rule.snapshot.metric)), 1),
                target=rule.snapshot.target,
                trend=rule.snapshot.trend,
            )

        insights.append(
            Insight(
                kind=rule.kind,
                title=rule.title,
                message=rule.message.format(**fields),
                recommendation=rule.recommendation.format(**fields),
                confidence=rule.confidence,
                priority=rule.priority,
                metrics=snapshot,
            )
        )

    return insights


def generate_actions(metrics: StatusMetrics, profile: ProcessProfile) -> list[str]:
    actions: list[str] = []
    for rule in profile.action_rules:
        if all_hold(rule.conditions, metrics):
            actions.extend(rule.actions)

    if not actions:
        actions.extend(profile.default_actions)

    # dict keeps insertion order: first occurrence wins
    return list(dict.fromkeys(actions))[:MAX_ACTIONS]


def generate_benchmark(score: int, profile: ProcessProfile) -> str:
    for threshold, template in _BENCHMARK_BANDS:
        if score >= threshold:
            return template.format(noun=profile.benchmark_noun)
    return _BENCHMARK_CRITICAL.format(noun=profile.benchmark_noun)


def build_local_summary(metrics: StatusMetrics, profile: ProcessProfile) -> str:
    """Locally synthesized narrative used whenever the remote model is not."""
    fields = _template_fields(metrics)
    for rule in profile.summary_rules:
        if all_hold(rule.conditions, metrics):
            return rule.template.format(**fields)
    return profile.default_summary.format(**fields)
