"""Tests for the weighted score calculator."""

from __future__ import annotations

import itertools

import pytest

from app.services.common import round_half_up
from app.services.performance.metrics import MemberRecord, UserMetrics
from app.services.performance.scoring import (
    DEFAULT_WEIGHTS,
    MemberScore,
    ScoreBreakdown,
    ScoringWeights,
    rank_members,
    score_calculator,
)


def _metrics(**overrides) -> UserMetrics:
    values = {
        "user_id": "u-1",
        "tasks_assigned": 10,
        "tasks_completed": 8,
        "on_time_count": 6,
        "late_count": 2,
        "quality_checklist_score": 90.0,
        "checklist_task_count": 4,
        "kras_covered_count": 2,
        "kras_total_count": 4,
    }
    values.update(overrides)
    return UserMetrics(**values)


# ---------------------------------------------------------------------------
# compute()
# ---------------------------------------------------------------------------


def test_compute_reference_example():
    result = score_calculator.compute(_metrics(), DEFAULT_WEIGHTS)

    assert result.completion_score == 80
    assert result.timeliness_score == 75
    assert result.quality_score == 90
    assert result.kra_alignment_score == 50
    # (3200 + 2250 + 1800 + 500) / 100 = 77.5, halves round up
    assert result.overall_score == 78


def test_zero_completions_count_as_fully_on_time():
    metrics = UserMetrics(user_id="u-1")
    result = score_calculator.compute(metrics, DEFAULT_WEIGHTS)

    assert result.completion_score == 0
    assert result.timeliness_score == 100
    assert result.quality_score == 0
    assert result.kra_alignment_score == 0
    assert result.overall_score == 30


def test_no_assigned_kras_scores_zero_alignment():
    result = score_calculator.compute(_metrics(kras_covered_count=0, kras_total_count=0), DEFAULT_WEIGHTS)
    assert result.kra_alignment_score == 0


def test_sub_scores_are_clamped():
    metrics = _metrics(tasks_assigned=2, tasks_completed=5, on_time_count=9, quality_checklist_score=140.0)
    result = score_calculator.compute(metrics, DEFAULT_WEIGHTS)

    assert result.completion_score == 100
    assert result.timeliness_score == 100
    assert result.quality_score == 100
    assert 0 <= result.overall_score <= 100


def test_sub_scores_round_to_two_decimals():
    result = score_calculator.compute(_metrics(tasks_assigned=3, tasks_completed=1, on_time_count=1), DEFAULT_WEIGHTS)
    assert result.completion_score == 33.33


@pytest.mark.parametrize(
    "weights",
    [
        ScoringWeights(100, 0, 0, 0),
        ScoringWeights(0, 100, 0, 0),
        ScoringWeights(0, 0, 100, 0),
        ScoringWeights(0, 0, 0, 100),
        ScoringWeights(25, 25, 25, 25),
        DEFAULT_WEIGHTS,
    ],
)
def test_overall_score_stays_in_bounds(weights):
    grid = itertools.product([0, 1, 7], [0, 1, 7], [0, 3], [0.0, 55.5, 100.0], [0, 2], [0, 3])
    for assigned, completed, on_time, quality, covered, total in grid:
        metrics = UserMetrics(
            user_id="u-1",
            tasks_assigned=assigned,
            tasks_completed=completed,
            on_time_count=on_time,
            quality_checklist_score=quality,
            kras_covered_count=covered,
            kras_total_count=total,
        )
        result = score_calculator.compute(metrics, weights)
        assert 0 <= result.overall_score <= 100
        assert isinstance(result.overall_score, int)


def test_compute_is_deterministic():
    metrics = _metrics()
    first = score_calculator.compute(metrics, DEFAULT_WEIGHTS)
    second = score_calculator.compute(metrics, DEFAULT_WEIGHTS)

    assert first == second
    assert first.as_dict() == second.as_dict()


def test_weights_change_the_overall_score():
    quality_heavy = ScoringWeights(completion_weight=10, timeliness_weight=10, quality_weight=70, kra_alignment_weight=10)
    result = score_calculator.compute(_metrics(), quality_heavy)
    # 80*10 + 75*10 + 90*70 + 50*10 = 8350
    assert result.overall_score == 84


# ---------------------------------------------------------------------------
# Rounding helper
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("value", "expected"),
    [(77.5, 78), (77.49, 77), (0.5, 1), (99.5, 100), (-2.5, -2), (30.000000000001, 30)],
)
def test_round_half_up(value, expected):
    assert round_half_up(value) == expected


# ---------------------------------------------------------------------------
# Ranking and averaging
# ---------------------------------------------------------------------------


def _score(person_id: str, overall: int, completed: int) -> MemberScore:
    return MemberScore(
        member=MemberRecord(person_id=person_id, display_name=f"Agent {person_id}"),
        metrics=UserMetrics(user_id=person_id, tasks_assigned=completed, tasks_completed=completed),
        breakdown=ScoreBreakdown(0.0, 0.0, 0.0, 0.0, overall),
    )


def test_rank_members_orders_by_score_then_completions_then_id():
    scores = [_score("c", 70, 3), _score("b", 90, 1), _score("a", 70, 3), _score("d", 70, 5)]
    ranked = [score.member.person_id for score in rank_members(scores)]
    assert ranked == ["b", "d", "a", "c"]


def test_average_breakdown():
    first = ScoreBreakdown(80.0, 100.0, 60.0, 50.0, 77)
    second = ScoreBreakdown(60.0, 50.0, 40.0, 0.0, 50)
    result = score_calculator.average([first, second])

    assert result.completion_score == 70
    assert result.timeliness_score == 75
    assert result.quality_score == 50
    assert result.kra_alignment_score == 25
    assert result.overall_score == 64  # 63.5 rounds up


def test_average_of_nothing_is_zero():
    assert score_calculator.average([]).overall_score == 0
