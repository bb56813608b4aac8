"""
analytics/profiles.py

Process profiles: one record per process kind carrying its scoring weights,
trend/risk thresholds, insight and action rules, local summary rules and
prompt templates. Scoring and insight generation read everything they need
from the profile instead of branching on the process kind.
"""

from __future__ import annotations

import operator
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from analytics.status import StatusMetrics


class ProcessKind(str, Enum):
    ROLLOUT = "rollout"
    TESTING = "testing"

    @classmethod
    def parse(cls, value: Any) -> "ProcessKind":
        """Absent or unknown kinds default to rollout."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.ROLLOUT


_OPERATORS: dict[str, Callable[[float, float], bool]] = {
    ">": operator.gt,
    ">=": operator.ge,
    "<": operator.lt,
    "<=": operator.le,
    "==": operator.eq,
}


# ---------------------------------------------------------------------------
# Rule building blocks
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Condition:
    """A single threshold test against a StatusMetrics attribute."""

    metric: str
    op: str
    value: float

    def holds(self, metrics: StatusMetrics) -> bool:
        return _OPERATORS[self.op](float(getattr(metrics, self.metric)), self.value)


def all_hold(conditions: tuple[Condition, ...], metrics: StatusMetrics) -> bool:
    return all(c.holds(metrics) for c in conditions)


def any_holds(conditions: tuple[Condition, ...], metrics: StatusMetrics) -> bool:
    return any(c.holds(metrics) for c in conditions)


@dataclass(frozen=True)
class ScoreWeights:
    """
    score = completion_weight × completion
          + no_response_weight × max(0, 100 − no_response_penalty × no_response)
          + error_weight × max(0, 100 − error_penalty × error)
    """

    completion_weight: float
    no_response_weight: float
    no_response_penalty: float
    error_weight: float
    error_penalty: float


@dataclass(frozen=True)
class MetricSnapshotSpec:
    metric: str
    target: float
    trend: str


@dataclass(frozen=True)
class InsightRule:
    """Emits one insight when every condition holds."""

    conditions: tuple[Condition, ...]
    kind: str
    title: str
    message: str
    recommendation: str
    confidence: int
    priority: str
    snapshot: MetricSnapshotSpec | None = None


@dataclass(frozen=True)
class ActionRule:
    """Contributes its actions when every condition holds."""

    conditions: tuple[Condition, ...]
    actions: tuple[str, ...]


@dataclass(frozen=True)
class SummaryRule:
    """First matching rule provides the local narrative."""

    conditions: tuple[Condition, ...]
    template: str


@dataclass(frozen=True)
class ProcessProfile:
    kind: ProcessKind
    weights: ScoreWeights
    improving: tuple[Condition, ...]
    declining: tuple[Condition, ...]
    high_risk: tuple[Condition, ...]
    medium_risk: tuple[Condition, ...]
    bounded: bool
    benchmark_noun: str
    insight_rules: tuple[InsightRule, ...]
    action_rules: tuple[ActionRule, ...]
    default_actions: tuple[str, ...]
    summary_rules: tuple[SummaryRule, ...]
    default_summary: str
    prompt_template: str
    system_context: str
    subject_noun: str = "items"


def _c(metric: str, op: str, value: float) -> Condition:
    return Condition(metric=metric, op=op, value=value)


# ---------------------------------------------------------------------------
# Rollout
# ---------------------------------------------------------------------------

_ROLLOUT_PROMPT = """\
EXECUTIVE ANALYSIS - STORE MIGRATION ROLLOUT

SITUATION:
- {total} stores in the rollout
- {completed} migrated ({completion_rate:.1f}%)
- {no_response} without confirmation ({no_response_rate:.1f}%)
- {errors} with errors ({error_rate:.1f}%)

EXECUTIVE GOALS:
- Target: 100% of stores migrated
- Schedule at risk: more than 30% without confirmation
- High risk: less than 60% completed

PROVIDE AN EXECUTIVE ANALYSIS IN 3 POINTS:
1. CURRENT STATUS (one direct sentence)
2. MAIN RISK (one sentence plus the impact on the schedule)
3. EXECUTIVE ACTION (one specific decision)
"""

ROLLOUT_PROFILE = ProcessProfile(
    kind=ProcessKind.ROLLOUT,
    weights=ScoreWeights(
        completion_weight=0.50,
        no_response_weight=0.30,
        no_response_penalty=1.5,
        error_weight=0.20,
        error_penalty=3.0,
    ),
    improving=(_c("completion_rate", ">", 80), _c("no_response_rate", "<", 20)),
    declining=(_c("completion_rate", "<", 40), _c("no_response_rate", ">", 40)),
    high_risk=(_c("no_response_rate", ">", 40), _c("completion_rate", "<", 30)),
    medium_risk=(_c("no_response_rate", ">", 20), _c("completion_rate", "<", 60)),
    bounded=True,
    benchmark_noun="corporate rollouts",
    subject_noun="stores",
    insight_rules=(
        InsightRule(
            conditions=(_c("no_response_rate", ">", 30),),
            kind="danger",
            title="Migration schedule at risk",
            message="{no_response_rate:.0f}% of stores have not confirmed the migration",
            recommendation="Set a 48h confirmation deadline and escalate to regional management",
            confidence=95,
            priority="high",
            snapshot=MetricSnapshotSpec(metric="no_response_rate", target=15, trend="up"),
        ),
        InsightRule(
            conditions=(_c("completion_rate", ">=", 80),),
            kind="success",
            title="Migration nearly complete",
            message="{completed} of {total} stores migrated",
            recommendation="Schedule the legacy system shutdown within 2 weeks",
            confidence=90,
            priority="medium",
            snapshot=MetricSnapshotSpec(metric="completion_rate", target=100, trend="up"),
        ),
        InsightRule(
            conditions=(_c("completion_rate", "<", 50),),
            kind="warning",
            title="Slow migration",
            message="Only {completion_rate:.0f}% of stores migrated so far",
            recommendation="Reinforce the support team and intensify store communication",
            confidence=85,
            priority="high",
            snapshot=MetricSnapshotSpec(metric="completion_rate", target=50, trend="down"),
        ),
    ),
    action_rules=(
        ActionRule(
            conditions=(_c("no_response_rate", ">", 30),),
            actions=(
                "URGENCY: set a 48h confirmation deadline for unresponsive stores",
                "URGENCY: escalate critical stores to regional management",
                "Provide on-site support for stores struggling with the migration",
            ),
        ),
        ActionRule(
            conditions=(_c("completion_rate", ">=", 80),),
            actions=(
                "Schedule the legacy system shutdown",
                "Prepare the official rollout closing announcement",
                "Document lessons learned from the rollout",
            ),
        ),
        ActionRule(
            conditions=(_c("completion_rate", "<", 50),),
            actions=(
                "URGENCY: reinforce the migration support team",
                "Intensify follow-up with pending stores",
                "Review the schedule and required resources",
            ),
        ),
        ActionRule(
            conditions=(_c("errors", ">", 0),),
            actions=("Investigate stores reporting migration errors",),
        ),
    ),
    default_actions=(
        "Intensify follow-up with pending stores",
        "Review the schedule and required resources",
    ),
    summary_rules=(
        SummaryRule(
            conditions=(_c("no_response_rate", ">", 30),),
            template=(
                "CRITICAL: {no_response_rate:.0f}% of stores have not confirmed the migration, "
                "putting the schedule at risk. DECISION: set a 48h deadline and escalate to "
                "regional management. IMPACT: delayed shutdown of the legacy system."
            ),
        ),
        SummaryRule(
            conditions=(_c("completion_rate", ">=", 80),),
            template=(
                "ROLLOUT ADVANCED: {completion_rate:.0f}% complete, {remaining} stores left. "
                "DECISION: accelerate the last migrations and schedule the legacy system "
                "shutdown. DEADLINE: 2 weeks."
            ),
        ),
        SummaryRule(
            conditions=(_c("completion_rate", "<", 50),),
            template=(
                "SLOW ROLLOUT: only {completion_rate:.0f}% migrated. DECISION: reinforce the "
                "support team and intensify communication. RISK: missing the schedule."
            ),
        ),
    ),
    default_summary=(
        "ROLLOUT IN PROGRESS: {completion_rate:.0f}% migrated at an adequate pace. "
        "DECISION: keep the current schedule and focus on stores with difficulties. "
        "NEXT: review in 1 week."
    ),
    prompt_template=_ROLLOUT_PROMPT,
    system_context=(
        "Executive consultant specialised in retail system rollouts. "
        "Direct answers for decision making."
    ),
)


# ---------------------------------------------------------------------------
# Testing
# ---------------------------------------------------------------------------

_TESTING_PROMPT = """\
EXECUTIVE ANALYSIS - INTEGRATION TESTS

SITUATION:
- {total} VS-PDV integration tests
- {completed} completed ({completion_rate:.1f}%)
- {errors} technical failures ({error_rate:.1f}%)
- {no_response} without reply ({no_response_rate:.1f}%)

EXECUTIVE GOALS:
- Quality target: less than 5% technical errors
- Communication target: less than 20% without reply
- Critical: more than 10% errors means STOP TESTING

PROVIDE AN EXECUTIVE ANALYSIS IN 3 POINTS:
1. TECHNICAL QUALITY (one sentence about errors)
2. OPERATIONAL RISK (one sentence plus impact)
3. EXECUTIVE DECISION (one specific action)
"""

TESTING_PROFILE = ProcessProfile(
    kind=ProcessKind.TESTING,
    weights=ScoreWeights(
        completion_weight=0.35,
        no_response_weight=0.25,
        no_response_penalty=1.2,
        error_weight=0.40,
        error_penalty=4.0,
    ),
    improving=(
        _c("completion_rate", ">", 70),
        _c("error_rate", "<", 5),
        _c("no_response_rate", "<", 20),
    ),
    declining=(_c("error_rate", ">", 15), _c("no_response_rate", ">", 50)),
    high_risk=(_c("error_rate", ">", 15), _c("no_response_rate", ">", 50)),
    medium_risk=(_c("error_rate", ">", 8), _c("no_response_rate", ">", 30)),
    bounded=False,
    benchmark_noun="integration projects",
    subject_noun="tests",
    insight_rules=(
        InsightRule(
            conditions=(_c("error_rate", ">", 10),),
            kind="danger",
            title="Critical integration failures",
            message="{error_rate:.0f}% of integration tests ended in technical failure",
            recommendation="PAUSE testing and fix the VS-PDV integration problems",
            confidence=98,
            priority="high",
            snapshot=MetricSnapshotSpec(metric="error_rate", target=5, trend="up"),
        ),
        InsightRule(
            conditions=(_c("error_rate", "==", 0),),
            kind="success",
            title="Stable integration",
            message="No technical errors detected",
            recommendation="Keep the current standard and expand test coverage",
            confidence=90,
            priority="low",
            snapshot=MetricSnapshotSpec(metric="error_rate", target=5, trend="stable"),
        ),
        InsightRule(
            conditions=(_c("no_response_rate", ">", 40),),
            kind="warning",
            title="Restaurant communication issues",
            message="{no_response_rate:.0f}% of restaurants have not replied",
            recommendation="Set up automatic follow-up and a direct channel with restaurants",
            confidence=85,
            priority="medium",
            snapshot=MetricSnapshotSpec(metric="no_response_rate", target=20, trend="up"),
        ),
        InsightRule(
            conditions=(_c("completion_rate", ">", 70), _c("error_rate", "<", 5)),
            kind="success",
            title="Efficient testing process",
            message="{completion_rate:.0f}% of tests completed with {error_rate:.1f}% errors",
            recommendation="Document the current practices and reuse them in new waves",
            confidence=88,
            priority="low",
            snapshot=MetricSnapshotSpec(metric="completion_rate", target=100, trend="up"),
        ),
    ),
    action_rules=(
        ActionRule(
            conditions=(_c("error_rate", ">", 10),),
            actions=(
                "URGENCY: pause new tests immediately",
                "URGENCY: convene the technical team for an urgent fix",
                "Review the VS-PDV integration settings",
            ),
        ),
        ActionRule(
            conditions=(_c("no_response_rate", ">", 40),),
            actions=(
                "Set up automatic daily follow-up",
                "Create a direct channel with restaurants",
            ),
        ),
        ActionRule(
            conditions=(_c("completion_rate", ">", 70), _c("error_rate", "<", 5)),
            actions=(
                "Document the current testing practices",
                "Expand test coverage to new restaurants",
            ),
        ),
    ),
    default_actions=(
        "Keep the current testing pace",
        "Work through pending test cases",
    ),
    summary_rules=(
        SummaryRule(
            conditions=(_c("error_rate", ">", 10),),
            template=(
                "CRITICAL QUALITY: {error_rate:.0f}% technical failures. DECISION: pause new "
                "tests immediately and fix the VS-PDV integration. IMPACT: risk of production "
                "instability."
            ),
        ),
        SummaryRule(
            conditions=(_c("error_rate", "==", 0), _c("completion_rate", ">", 70)),
            template=(
                "EXCELLENT QUALITY: no technical errors, {completion_rate:.0f}% complete. "
                "DECISION: keep the current standard and document best practices. "
                "NEXT: expand testing."
            ),
        ),
        SummaryRule(
            conditions=(_c("no_response_rate", ">", 40),),
            template=(
                "POOR COMMUNICATION: {no_response_rate:.0f}% of restaurants have not replied. "
                "DECISION: set up automatic follow-up and a direct channel. RISK: delayed "
                "validation."
            ),
        ),
    ),
    default_summary=(
        "STABLE TESTING: {completion_rate:.0f}% complete, {error_rate:.0f}% errors. "
        "DECISION: keep the current pace and work through pending cases. "
        "QUALITY: within expectations."
    ),
    prompt_template=_TESTING_PROMPT,
    system_context=(
        "Executive consultant specialised in software quality. "
        "Focus on critical technical decisions."
    ),
)


_PROFILES: dict[ProcessKind, ProcessProfile] = {
    ProcessKind.ROLLOUT: ROLLOUT_PROFILE,
    ProcessKind.TESTING: TESTING_PROFILE,
}


def get_profile(kind: ProcessKind | str | None) -> ProcessProfile:
    return _PROFILES[ProcessKind.parse(kind)]
