"""Per-member weekly metric collection.

The collector never touches SQLAlchemy directly. It reads plain frozen
records through a :class:`PerformanceDataSource`, which lets the report
generator fan out across threads (each source call owns its session) and
lets tests swap in an in-memory source.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Protocol

from app.models.performance import ReportScopeType
from app.services.performance.weeks import ReportWeek

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReportScope:
    scope_type: ReportScopeType
    scope_id: str

    @property
    def label(self) -> str:
        return f"{self.scope_type.value}:{self.scope_id}"


@dataclass(frozen=True)
class MemberRecord:
    person_id: str
    display_name: str


@dataclass(frozen=True)
class TaskRecord:
    task_id: str
    is_completed: bool
    due_at: datetime | None = None
    completed_at: datetime | None = None
    goal_id: str | None = None
    checklist_total: int = 0
    checklist_done: int = 0


@dataclass(frozen=True)
class GoalRecord:
    goal_id: str
    is_completed: bool = False


class PerformanceDataSource(Protocol):
    def scope_name(self, scope: ReportScope) -> str | None: ...

    def members_for_scope(self, scope: ReportScope) -> list[MemberRecord]: ...

    def tasks_for_person(self, person_id: str, week: ReportWeek) -> list[TaskRecord]: ...

    def goals_for_person(self, person_id: str, week: ReportWeek) -> list[GoalRecord]: ...


@dataclass(frozen=True)
class UserMetrics:
    user_id: str
    tasks_assigned: int = 0
    tasks_completed: int = 0
    on_time_count: int = 0
    late_count: int = 0
    overdue_count: int = 0
    quality_checklist_score: float = 0.0
    checklist_task_count: int = 0
    kras_covered_count: int = 0
    kras_total_count: int = 0
    kras_completed_count: int = 0


@dataclass(frozen=True)
class MemberOutcome:
    member: MemberRecord
    metrics: UserMetrics | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.metrics is not None


def _is_on_time(task: TaskRecord) -> bool:
    if not task.due_at or not task.completed_at:
        return True
    return task.completed_at <= task.due_at


def _checklist_percent(task: TaskRecord) -> float:
    return min(task.checklist_done, task.checklist_total) / task.checklist_total * 100


class MetricCollector:
    def __init__(self, source: PerformanceDataSource):
        self.source = source

    def collect(self, user_id: str, week_start: date, week_end: date) -> UserMetrics:
        week = ReportWeek(week_start=week_start, week_end=week_end)
        tasks = self.source.tasks_for_person(user_id, week)
        goals = self.source.goals_for_person(user_id, week)

        done_tasks = [task for task in tasks if task.is_completed]
        open_tasks = [task for task in tasks if not task.is_completed]
        on_time = sum(1 for task in done_tasks if _is_on_time(task))
        overdue = sum(1 for task in open_tasks if task.due_at and task.due_at < week.end_at)

        checklist_scores = [_checklist_percent(task) for task in done_tasks if task.checklist_total > 0]
        if checklist_scores:
            quality = sum(checklist_scores) / len(checklist_scores)
        else:
            # Nothing to grade: quality follows the completion rate.
            quality = len(done_tasks) / max(len(tasks), 1) * 100

        assigned_goal_ids = {goal.goal_id for goal in goals}
        touched_goal_ids = {task.goal_id for task in tasks if task.goal_id}

        return UserMetrics(
            user_id=user_id,
            tasks_assigned=len(tasks),
            tasks_completed=len(done_tasks),
            on_time_count=on_time,
            late_count=len(done_tasks) - on_time,
            overdue_count=overdue,
            quality_checklist_score=round(quality, 2),
            checklist_task_count=len(checklist_scores),
            kras_covered_count=len(touched_goal_ids & assigned_goal_ids),
            kras_total_count=len(assigned_goal_ids),
            kras_completed_count=sum(1 for goal in goals if goal.is_completed),
        )

    def collect_safely(self, member: MemberRecord, week_start: date, week_end: date) -> MemberOutcome:
        """Collect one member's metrics, returning the failure instead of raising."""
        try:
            metrics = self.collect(member.person_id, week_start, week_end)
        except Exception as exc:
            logger.warning(
                "member_metrics_failed person_id=%s week_start=%s error=%s",
                member.person_id,
                week_start.isoformat(),
                exc,
            )
            return MemberOutcome(member=member, error=str(exc) or exc.__class__.__name__)
        return MemberOutcome(member=member, metrics=metrics)
