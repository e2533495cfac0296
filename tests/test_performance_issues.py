"""Tests for the weekly report issue rules."""

from __future__ import annotations

import dataclasses

import pytest

from app.services.performance import issues
from app.services.performance.issues import detect_issues
from app.services.performance.metrics import MemberRecord, UserMetrics
from app.services.performance.scoring import MemberScore, ScoreBreakdown

LOW = 50
OVERDUE = 0.2


def _score(person_id: str = "m1", overall: int = 80, **metrics) -> MemberScore:
    values = {"tasks_assigned": 10, "tasks_completed": 8, "overdue_count": 0, "kras_covered_count": 1}
    values.update(metrics)
    return MemberScore(
        member=MemberRecord(person_id=person_id, display_name=f"Agent {person_id}"),
        metrics=UserMetrics(user_id=person_id, **values),
        breakdown=ScoreBreakdown(80.0, 100.0, 50.0, 100.0, overall),
    )


def _detect(scores, average=80.0, total=None, failed=0, **thresholds):
    thresholds.setdefault("low_score_threshold", LOW)
    thresholds.setdefault("overdue_ratio_threshold", OVERDUE)
    return detect_issues(scores, average, len(scores) + failed if total is None else total, failed, **thresholds)


def test_clean_week_has_no_issues():
    assert _detect([_score("m1"), _score("m2", overdue_count=2)]) == []


# ---------------------------------------------------------------------------
# Individual rules
# ---------------------------------------------------------------------------


def test_partial_collection_reports_counts():
    assert _detect([_score("m1"), _score("m2")], failed=1) == [
        "Scores unavailable for 1 of 3 members; metrics could not be collected"
    ]


@pytest.mark.parametrize(("average", "expected"), [(49.5, ["Average score 49.5 is below 50"]), (50.0, []), (72.0, [])])
def test_low_average_fires_only_below_threshold(average, expected):
    assert _detect([_score()], average=average) == expected


@pytest.mark.parametrize(
    ("overdue", "expected"),
    [
        (3, ["30% of tasks are overdue (3 of 10), above the 20% limit"]),
        (2, []),
        (0, []),
    ],
)
def test_overdue_ratio_fires_only_above_threshold(overdue, expected):
    assert _detect([_score(overdue_count=overdue)]) == expected


def test_overdue_ratio_pools_tasks_across_members():
    scores = [_score("m1", tasks_assigned=4, overdue_count=2), _score("m2", tasks_assigned=6, overdue_count=1)]
    assert _detect(scores) == ["30% of tasks are overdue (3 of 10), above the 20% limit"]


def test_missing_kra_coverage_singular_and_plural():
    one = [_score("m1", kras_covered_count=0), _score("m2")]
    two = [_score("m1", kras_covered_count=0), _score("m2", kras_covered_count=0)]

    assert _detect(one) == ["No KRA coverage for 1 member"]
    assert _detect(two) == ["No KRA coverage for 2 members"]


def test_no_assigned_tasks_skips_overdue_ratio():
    scores = [_score("m1", tasks_assigned=0, tasks_completed=0), _score("m2", tasks_assigned=0, tasks_completed=0)]
    assert _detect(scores) == ["No tasks assigned this week for 2 members"]


# ---------------------------------------------------------------------------
# Ordering and thresholds
# ---------------------------------------------------------------------------


def test_rules_append_in_fixed_order_when_all_match():
    scores = [
        _score("m1", overall=40, tasks_assigned=10, overdue_count=5, kras_covered_count=0),
        _score("m2", overall=0, tasks_assigned=0, tasks_completed=0, kras_covered_count=0),
    ]

    assert _detect(scores, average=20.0, failed=1) == [
        "Scores unavailable for 1 of 3 members; metrics could not be collected",
        "Average score 20 is below 50",
        "50% of tasks are overdue (5 of 10), above the 20% limit",
        "No KRA coverage for 2 members",
        "No tasks assigned this week for 1 member",
    ]


def test_same_inputs_give_same_findings():
    scores = [_score("m1", overdue_count=4, kras_covered_count=0)]
    assert _detect(scores, average=30.0) == _detect(scores, average=30.0)


def test_explicit_thresholds_override_settings():
    scores = [_score(overdue_count=3)]

    assert _detect(scores, average=60.0, low_score_threshold=70, overdue_ratio_threshold=0.5) == [
        "Average score 60 is below 70"
    ]


def test_thresholds_default_to_settings(monkeypatch):
    tuned = dataclasses.replace(
        issues.settings, performance_low_score_threshold=65.0, performance_overdue_ratio_threshold=0.4
    )
    monkeypatch.setattr(issues, "settings", tuned)

    findings = detect_issues([_score(overdue_count=3)], 60.0, 1, 0)

    assert findings == ["Average score 60 is below 65"]
