"""Deterministic issue rules for weekly reports.

Rules run in a fixed order and each appends at most one finding, so two
runs over the same scores always produce the same list.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from app.config import settings
from app.services.performance.scoring import MemberScore


@dataclass(frozen=True)
class IssueContext:
    scores: list[MemberScore]
    average_score: float
    total_members: int
    failed_count: int
    low_score_threshold: float
    overdue_ratio_threshold: float


def _plural(count: int, word: str = "member") -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


def _partial_collection(ctx: IssueContext) -> str | None:
    if not ctx.failed_count:
        return None
    return f"Scores unavailable for {ctx.failed_count} of {ctx.total_members} members; metrics could not be collected"


def _low_average(ctx: IssueContext) -> str | None:
    if ctx.average_score >= ctx.low_score_threshold:
        return None
    return f"Average score {ctx.average_score:g} is below {ctx.low_score_threshold:g}"


def _overdue_ratio(ctx: IssueContext) -> str | None:
    assigned = sum(score.metrics.tasks_assigned for score in ctx.scores)
    overdue = sum(score.metrics.overdue_count for score in ctx.scores)
    if not assigned:
        return None
    ratio = overdue / assigned
    if ratio <= ctx.overdue_ratio_threshold:
        return None
    return (
        f"{round(ratio * 100)}% of tasks are overdue ({overdue} of {assigned}), "
        f"above the {round(ctx.overdue_ratio_threshold * 100)}% limit"
    )


def _missing_kra_coverage(ctx: IssueContext) -> str | None:
    uncovered = sum(1 for score in ctx.scores if score.metrics.kras_covered_count == 0)
    if not uncovered:
        return None
    return f"No KRA coverage for {_plural(uncovered)}"


def _no_assigned_tasks(ctx: IssueContext) -> str | None:
    idle = sum(1 for score in ctx.scores if score.metrics.tasks_assigned == 0)
    if not idle:
        return None
    return f"No tasks assigned this week for {_plural(idle)}"


ISSUE_RULES: tuple[Callable[[IssueContext], str | None], ...] = (
    _partial_collection,
    _low_average,
    _overdue_ratio,
    _missing_kra_coverage,
    _no_assigned_tasks,
)


def detect_issues(
    scores: list[MemberScore],
    average_score: float,
    total_members: int,
    failed_count: int,
    low_score_threshold: float | None = None,
    overdue_ratio_threshold: float | None = None,
) -> list[str]:
    ctx = IssueContext(
        scores=scores,
        average_score=average_score,
        total_members=total_members,
        failed_count=failed_count,
        low_score_threshold=(
            settings.performance_low_score_threshold if low_score_threshold is None else low_score_threshold
        ),
        overdue_ratio_threshold=(
            settings.performance_overdue_ratio_threshold
            if overdue_ratio_threshold is None
            else overdue_ratio_threshold
        ),
    )
    issues: list[str] = []
    for rule in ISSUE_RULES:
        finding = rule(ctx)
        if finding:
            issues.append(finding)
    return issues
