import os
import sqlite3
import threading
import time
import uuid
from datetime import UTC, date, datetime

import pytest
from dotenv import load_dotenv
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

load_dotenv(os.path.join(os.getcwd(), ".env"))

# Register UUID adapter for SQLite - store as string
sqlite3.register_adapter(uuid.UUID, lambda u: str(u))


# Monkey-patch SQLAlchemy's UUID type for SQLite compatibility
# This must happen before any models are imported
from sqlalchemy.sql import sqltypes  # noqa: E402

_original_uuid_bind_processor = sqltypes.Uuid.bind_processor
_original_uuid_result_processor = sqltypes.Uuid.result_processor


def _sqlite_uuid_bind_processor(self, dialect):
    if dialect.name == "sqlite":
        def process(value):
            if value is not None:
                if isinstance(value, uuid.UUID):
                    return str(value)
                return str(uuid.UUID(value)) if value else None
            return None
        return process
    return _original_uuid_bind_processor(self, dialect)


def _sqlite_uuid_result_processor(self, dialect, coltype):
    if dialect.name == "sqlite":
        def process(value):
            if value is not None:
                if isinstance(value, uuid.UUID):
                    return value
                return uuid.UUID(value) if value else None
            return None
        return process
    return _original_uuid_result_processor(self, dialect, coltype)


sqltypes.Uuid.bind_processor = _sqlite_uuid_bind_processor
sqltypes.Uuid.result_processor = _sqlite_uuid_result_processor


import app.models  # noqa: E402,F401
from app.db import Base  # noqa: E402
from app.models.goals import Goal, GoalAssignment, GoalStatus  # noqa: E402
from app.models.person import Person  # noqa: E402
from app.models.tasks import Task, TaskChecklistItem, TaskStatus  # noqa: E402
from app.models.team import Team, TeamMember  # noqa: E402
from app.services.performance.metrics import GoalRecord, MemberRecord, TaskRecord  # noqa: E402


def _enable_foreign_keys(engine):
    @event.listens_for(engine, "connect")
    def _set_pragma(dbapi_connection, _connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


@pytest.fixture(scope="session")
def engine():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    _enable_foreign_keys(engine)
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture()
def db_session(engine):
    connection = engine.connect()
    transaction = connection.begin()
    SessionLocal = sessionmaker(bind=connection, autoflush=False, autocommit=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        transaction.rollback()
        connection.close()


@pytest.fixture()
def session_factory(tmp_path):
    """Sessions on a file database that commit for real.

    Used where several threads read through their own sessions, which the
    shared in-memory connection behind ``db_session`` cannot support.
    """
    file_engine = create_engine(
        f"sqlite+pysqlite:///{tmp_path / 'performance.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    _enable_foreign_keys(file_engine)
    Base.metadata.create_all(file_engine)
    try:
        yield sessionmaker(bind=file_engine, autoflush=False, autocommit=False)
    finally:
        file_engine.dispose()


def _unique_email() -> str:
    return f"test-{uuid.uuid4().hex}@example.com"


@pytest.fixture()
def person(db_session):
    person = Person(
        first_name="Test",
        last_name="User",
        email=_unique_email(),
    )
    db_session.add(person)
    db_session.commit()
    db_session.refresh(person)
    return person


# ---------------------------------------------------------------------------
# Collaborator record builders
# ---------------------------------------------------------------------------


def make_person(session, display_name: str, is_active: bool = True) -> Person:
    person = Person(display_name=display_name, email=_unique_email(), is_active=is_active)
    session.add(person)
    session.commit()
    session.refresh(person)
    return person


def make_team(session, name: str, members: list[Person], inactive_members: list[Person] | None = None) -> Team:
    team = Team(name=name)
    session.add(team)
    session.flush()
    for member in members:
        session.add(TeamMember(team_id=team.id, person_id=member.id))
    for member in inactive_members or []:
        session.add(TeamMember(team_id=team.id, person_id=member.id, is_active=False))
    session.commit()
    session.refresh(team)
    return team


def make_goal(session, assignees: list[Person], status: GoalStatus = GoalStatus.in_progress, **kwargs) -> Goal:
    goal = Goal(
        title=kwargs.pop("title", "Grow fibre coverage"),
        status=status,
        start_date=kwargs.pop("start_date", date(2026, 1, 1)),
        end_date=kwargs.pop("end_date", date(2026, 12, 31)),
        **kwargs,
    )
    session.add(goal)
    session.flush()
    for assignee in assignees:
        session.add(GoalAssignment(goal_id=goal.id, person_id=assignee.id))
    session.commit()
    session.refresh(goal)
    return goal


def make_task(
    session,
    assignee: Person,
    *,
    status: TaskStatus = TaskStatus.todo,
    created_at: datetime | None = None,
    due_at: datetime | None = None,
    completed_at: datetime | None = None,
    goal: Goal | None = None,
    checklist: list[bool] | None = None,
) -> Task:
    task = Task(
        title="Splice segment A",
        status=status,
        assigned_to_person_id=assignee.id,
        goal_id=goal.id if goal else None,
        created_at=created_at or datetime(2026, 3, 3, 9, 0, tzinfo=UTC),
        due_at=due_at,
        completed_at=completed_at,
    )
    session.add(task)
    session.flush()
    for position, done in enumerate(checklist or []):
        session.add(TaskChecklistItem(task_id=task.id, text=f"Step {position + 1}", position=position, is_completed=done))
    session.commit()
    session.refresh(task)
    return task


@pytest.fixture()
def builders():
    """Expose the record builders to test modules as one namespace."""

    class _Builders:
        person = staticmethod(make_person)
        team = staticmethod(make_team)
        goal = staticmethod(make_goal)
        task = staticmethod(make_task)

    return _Builders


# ---------------------------------------------------------------------------
# In-memory data source
# ---------------------------------------------------------------------------


class FakePerformanceSource:
    """Data source backed by dicts, with optional per-member failures and delay."""

    def __init__(
        self,
        members: list[MemberRecord] | None = None,
        tasks: dict[str, list[TaskRecord]] | None = None,
        goals: dict[str, list[GoalRecord]] | None = None,
        failing: set[str] | None = None,
        delay: float = 0.0,
        name: str | None = "Field Ops",
    ):
        self.members = list(members or [])
        self.tasks = dict(tasks or {})
        self.goals = dict(goals or {})
        self.failing = set(failing or ())
        self.delay = delay
        self.name = name
        self.calls: list[str] = []
        self._lock = threading.Lock()

    def scope_name(self, scope):
        return self.name

    def members_for_scope(self, scope):
        return list(self.members)

    def tasks_for_person(self, person_id, week):
        with self._lock:
            self.calls.append(person_id)
        if self.delay:
            time.sleep(self.delay)
        if person_id in self.failing:
            raise ConnectionError(f"task store unavailable for {person_id}")
        return list(self.tasks.get(person_id, []))

    def goals_for_person(self, person_id, week):
        return list(self.goals.get(person_id, []))


@pytest.fixture()
def fake_source():
    return FakePerformanceSource
