"""Query builders and the SQL data source for performance reporting."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import UTC, date, datetime

from sqlalchemy import or_, select
from sqlalchemy.orm import Session, selectinload

from app.models.goals import Goal, GoalAssignment, GoalStatus
from app.models.performance import KPIArchive, KPIRecord, ReportScopeType, WeeklyReport
from app.models.person import Person
from app.models.tasks import Task, TaskAssignee, TaskStatus
from app.models.team import Team, TeamMember
from app.queries.base import BaseQuery
from app.services.common import coerce_uuid
from app.services.performance.metrics import GoalRecord, MemberRecord, ReportScope, TaskRecord
from app.services.performance.weeks import ReportWeek


class WeeklyReportQuery(BaseQuery[WeeklyReport]):
    model_class = WeeklyReport
    ordering_fields = {
        "week_start": WeeklyReport.week_start,
        "generated_at": WeeklyReport.generated_at,
        "average_score": WeeklyReport.average_score,
    }

    def by_scope(self, scope_type: ReportScopeType, scope_id: str) -> WeeklyReportQuery:
        return self._filter(WeeklyReport.scope_type == scope_type, WeeklyReport.scope_id == str(scope_id))

    def for_week(self, week_start: date) -> WeeklyReportQuery:
        return self._filter(WeeklyReport.week_start == week_start)


class KPIQuery(BaseQuery[KPIRecord]):
    model_class = KPIRecord
    ordering_fields = {
        "name": KPIRecord.name,
        "created_at": KPIRecord.created_at,
        "week_start": KPIRecord.week_start,
    }

    def for_person(self, person_id: str | None) -> KPIQuery:
        if not person_id:
            return self
        return self._filter(KPIRecord.person_id == coerce_uuid(person_id))

    def for_goal(self, goal_id: str | None) -> KPIQuery:
        if not goal_id:
            return self
        return self._filter(KPIRecord.goal_id == coerce_uuid(goal_id))

    def started_before(self, week_start: date) -> KPIQuery:
        """KPIs whose tracked week is older than ``week_start``."""
        return self._filter(KPIRecord.week_start.isnot(None), KPIRecord.week_start < week_start)


class KPIArchiveQuery(BaseQuery[KPIArchive]):
    model_class = KPIArchive
    ordering_fields = {"archived_at": KPIArchive.archived_at, "label": KPIArchive.label}

    def by_label(self, label: str | None) -> KPIArchiveQuery:
        if not label:
            return self
        return self._filter(KPIArchive.label == label)


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class SqlPerformanceSource:
    """Reads collaborator records for the metric collector.

    Every call opens and closes its own session so worker threads never
    share one.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    @contextmanager
    def _session(self) -> Iterator[Session]:
        session = self.session_factory()
        try:
            yield session
        finally:
            session.close()

    def scope_name(self, scope: ReportScope) -> str | None:
        with self._session() as db:
            try:
                scope_uuid = coerce_uuid(scope.scope_id)
            except ValueError:
                return None
            if scope.scope_type == ReportScopeType.team:
                team = db.get(Team, scope_uuid)
                return team.name if team else None
            person = db.get(Person, scope_uuid)
            return person.full_name if person else None

    def members_for_scope(self, scope: ReportScope) -> list[MemberRecord]:
        try:
            scope_uuid = coerce_uuid(scope.scope_id)
        except ValueError:
            return []
        with self._session() as db:
            if scope.scope_type == ReportScopeType.user:
                person = db.get(Person, scope_uuid)
                if not person or not person.is_active:
                    return []
                return [MemberRecord(person_id=str(person.id), display_name=person.full_name)]

            people = (
                db.query(Person)
                .join(TeamMember, TeamMember.person_id == Person.id)
                .join(Team, Team.id == TeamMember.team_id)
                .filter(TeamMember.team_id == scope_uuid)
                .filter(TeamMember.is_active.is_(True))
                .filter(Team.is_active.is_(True))
                .filter(Person.is_active.is_(True))
                .all()
            )
            members = [MemberRecord(person_id=str(person.id), display_name=person.full_name) for person in people]
            return sorted(members, key=lambda member: member.person_id)

    def tasks_for_person(self, person_id: str, week: ReportWeek) -> list[TaskRecord]:
        pid = coerce_uuid(person_id)
        co_assigned = select(TaskAssignee.task_id).where(TaskAssignee.person_id == pid)
        with self._session() as db:
            tasks = (
                db.query(Task)
                .options(selectinload(Task.checklist))
                .filter(or_(Task.assigned_to_person_id == pid, Task.id.in_(co_assigned)))
                .filter(Task.created_at >= week.start_at, Task.created_at < week.end_at)
                .filter(Task.is_active.is_(True))
                .filter(Task.status != TaskStatus.canceled)
                .order_by(Task.created_at.asc())
                .all()
            )
            return [
                TaskRecord(
                    task_id=str(task.id),
                    is_completed=task.status == TaskStatus.completed,
                    due_at=_as_utc(task.due_at),
                    completed_at=_as_utc(task.completed_at),
                    goal_id=str(task.goal_id) if task.goal_id else None,
                    checklist_total=len(task.checklist),
                    checklist_done=sum(1 for item in task.checklist if item.is_completed),
                )
                for task in tasks
            ]

    def goals_for_person(self, person_id: str, week: ReportWeek) -> list[GoalRecord]:
        pid = coerce_uuid(person_id)
        with self._session() as db:
            goals = (
                db.query(Goal)
                .join(GoalAssignment, GoalAssignment.goal_id == Goal.id)
                .filter(GoalAssignment.person_id == pid)
                .filter(Goal.start_date <= week.week_end, Goal.end_date >= week.week_start)
                .filter(Goal.status != GoalStatus.canceled)
                .distinct()
                .all()
            )
            return [GoalRecord(goal_id=str(goal.id), is_completed=goal.status == GoalStatus.completed) for goal in goals]
