"""
tests/test_insight_generator.py

Pytest unit tests for the rule-based insight engine.
"""

from __future__ import annotations

from dataclasses import replace

import pytest

from analytics.profiles import (
    ROLLOUT_PROFILE,
    TESTING_PROFILE,
    ActionRule,
    Condition,
    ProcessKind,
    get_profile,
)
from analytics.status import derive_metrics
from insight_rules.generator import (
    MAX_ACTIONS,
    build_local_summary,
    generate,
    generate_actions,
    generate_benchmark,
)


@pytest.fixture
def rollout_complete():
    return derive_metrics({"Concluído": 85, "Pendente": 15}, 100)


@pytest.fixture
def rollout_stalled():
    return derive_metrics({"Sem retorno": 20, "Pendente": 30}, 50)


@pytest.fixture
def testing_failing():
    return derive_metrics({"Erro": 6, "Concluído": 30, "Pendente": 4}, 40)


# ---------------------------------------------------------------------------
# Insights
# ---------------------------------------------------------------------------


class TestGenerateInsights:
    def test_rollout_nearly_complete(self, rollout_complete) -> None:
        insights = generate(rollout_complete, ROLLOUT_PROFILE)
        assert [i.title for i in insights] == ["Migration nearly complete"]
        insight = insights[0]
        assert insight.kind == "success"
        assert insight.message == "85 of 100 stores migrated"
        assert insight.metrics is not None
        assert insight.metrics.current == pytest.approx(85.0)
        assert insight.metrics.target == 100

    def test_rollout_stalled_emits_in_rule_order(self, rollout_stalled) -> None:
        insights = generate(rollout_stalled, ROLLOUT_PROFILE)
        assert [i.title for i in insights] == ["Migration schedule at risk", "Slow migration"]
        assert insights[0].kind == "danger"
        assert insights[0].priority == "high"
        assert insights[0].message.startswith("40%")
        assert insights[1].metrics.trend == "down"

    def test_testing_critical_failures(self, testing_failing) -> None:
        insights = generate(testing_failing, TESTING_PROFILE)
        assert [i.title for i in insights] == ["Critical integration failures"]
        assert insights[0].confidence == 98
        assert insights[0].metrics.current == pytest.approx(15.0)

    def test_testing_clean_run(self) -> None:
        metrics = derive_metrics({"Concluído": 80, "Pendente": 20}, 100)
        titles = [i.title for i in generate(metrics, TESTING_PROFILE)]
        assert titles == ["Stable integration", "Efficient testing process"]

    def test_no_rule_matches(self) -> None:
        metrics = derive_metrics({"Concluído": 60, "Pendente": 40}, 100)
        assert generate(metrics, ROLLOUT_PROFILE) == []

    def test_current_is_rounded_to_one_decimal(self) -> None:
        metrics = derive_metrics({"Sem retorno": 1, "Pendente": 2}, 3)
        insight = generate(metrics, ROLLOUT_PROFILE)[0]
        assert insight.metrics.current == pytest.approx(33.3)

    def test_empty_snapshot(self) -> None:
        metrics = derive_metrics({}, 0)
        # Every rate is zero: only the "below half" style rules can match.
        assert [i.title for i in generate(metrics, ROLLOUT_PROFILE)] == ["Slow migration"]


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------


class TestGenerateActions:
    def test_actions_are_capped(self) -> None:
        metrics = derive_metrics({"Sem retorno": 20, "Erro": 5, "Pendente": 25}, 50)
        actions = generate_actions(metrics, ROLLOUT_PROFILE)
        assert len(actions) == MAX_ACTIONS
        assert actions[0].startswith("URGENCY:")
        assert "Investigate stores reporting migration errors" not in actions

    def test_default_actions_when_nothing_matches(self) -> None:
        metrics = derive_metrics({"Concluído": 60, "Pendente": 40}, 100)
        assert generate_actions(metrics, ROLLOUT_PROFILE) == list(ROLLOUT_PROFILE.default_actions)

    def test_testing_defaults(self) -> None:
        metrics = derive_metrics({"Concluído": 50, "Erro": 5, "Sem retorno": 10, "Pendente": 35}, 100)
        assert generate_actions(metrics, TESTING_PROFILE) == [
            "Keep the current testing pace",
            "Work through pending test cases",
        ]

    def test_duplicates_keep_first_occurrence(self) -> None:
        extra = ActionRule(
            conditions=(Condition("total", ">", 0),),
            actions=("Review the schedule and required resources", "Call the steering committee"),
        )
        profile = replace(ROLLOUT_PROFILE, action_rules=ROLLOUT_PROFILE.action_rules + (extra,))
        metrics = derive_metrics({"Pendente": 10}, 10)
        actions = generate_actions(metrics, profile)
        assert actions.count("Review the schedule and required resources") == 1
        assert actions == [
            "URGENCY: reinforce the migration support team",
            "Intensify follow-up with pending stores",
            "Review the schedule and required resources",
            "Call the steering committee",
        ]

    def test_errors_add_investigation(self) -> None:
        metrics = derive_metrics({"Concluído": 60, "Erro": 1, "Pendente": 39}, 100)
        assert generate_actions(metrics, ROLLOUT_PROFILE) == [
            "Investigate stores reporting migration errors"
        ]


# ---------------------------------------------------------------------------
# Benchmark
# ---------------------------------------------------------------------------


class TestBenchmark:
    @pytest.mark.parametrize(
        "score, prefix",
        [
            (100, "Excellent"),
            (85, "Excellent"),
            (84, "Good"),
            (70, "Good"),
            (69, "Adequate"),
            (50, "Adequate"),
            (49, "Below average"),
            (30, "Below average"),
            (29, "Critical"),
            (0, "Critical"),
        ],
    )
    def test_bands(self, score: int, prefix: str) -> None:
        assert generate_benchmark(score, ROLLOUT_PROFILE).startswith(prefix)

    def test_profile_noun(self) -> None:
        assert "corporate rollouts" in generate_benchmark(90, ROLLOUT_PROFILE)
        assert "integration projects" in generate_benchmark(90, TESTING_PROFILE)


# ---------------------------------------------------------------------------
# Local summary
# ---------------------------------------------------------------------------


class TestLocalSummary:
    def test_rollout_advanced(self, rollout_complete) -> None:
        summary = build_local_summary(rollout_complete, ROLLOUT_PROFILE)
        assert summary.startswith("ROLLOUT ADVANCED: 85% complete, 15 stores left.")

    def test_rollout_critical_wins_over_slow(self, rollout_stalled) -> None:
        summary = build_local_summary(rollout_stalled, ROLLOUT_PROFILE)
        assert summary.startswith("CRITICAL: 40% of stores")

    def test_rollout_default(self) -> None:
        metrics = derive_metrics({"Concluído": 60, "Pendente": 40}, 100)
        assert build_local_summary(metrics, ROLLOUT_PROFILE).startswith(
            "ROLLOUT IN PROGRESS: 60% migrated"
        )

    def test_testing_critical(self, testing_failing) -> None:
        summary = build_local_summary(testing_failing, TESTING_PROFILE)
        assert summary.startswith("CRITICAL QUALITY: 15% technical failures.")

    def test_testing_excellent(self) -> None:
        metrics = derive_metrics({"Concluído": 80, "Pendente": 20}, 100)
        assert build_local_summary(metrics, TESTING_PROFILE).startswith("EXCELLENT QUALITY")

    def test_testing_default(self) -> None:
        metrics = derive_metrics({"Concluído": 50, "Erro": 5, "Pendente": 45}, 100)
        assert build_local_summary(metrics, TESTING_PROFILE).startswith(
            "STABLE TESTING: 50% complete, 5% errors."
        )

    def test_summary_is_never_empty(self) -> None:
        for kind in ProcessKind:
            assert build_local_summary(derive_metrics({}, 0), get_profile(kind))
