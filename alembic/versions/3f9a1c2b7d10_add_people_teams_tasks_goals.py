"""Add people, teams, tasks and goals tables.

Revision ID: 3f9a1c2b7d10
Revises:
Create Date: 2026-10-12
"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "3f9a1c2b7d10"
down_revision = None
branch_labels = None
depends_on = None


def _uuid():
    return sa.dialects.postgresql.UUID(as_uuid=True)


def upgrade() -> None:
    op.create_table(
        "people",
        sa.Column("id", _uuid(), primary_key=True),
        sa.Column("first_name", sa.String(length=80), nullable=True),
        sa.Column("last_name", sa.String(length=80), nullable=True),
        sa.Column("display_name", sa.String(length=160), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=False, unique=True),
        sa.Column("is_active", sa.Boolean(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        "teams",
        sa.Column("id", _uuid(), primary_key=True),
        sa.Column("name", sa.String(length=160), nullable=False),
        sa.Column("manager_person_id", _uuid(), sa.ForeignKey("people.id"), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )

    teammemberrole = sa.Enum("member", "lead", "manager", name="teammemberrole")
    op.create_table(
        "team_members",
        sa.Column("id", _uuid(), primary_key=True),
        sa.Column("team_id", _uuid(), sa.ForeignKey("teams.id"), nullable=False),
        sa.Column("person_id", _uuid(), sa.ForeignKey("people.id"), nullable=False),
        sa.Column("role", teammemberrole, nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("team_id", "person_id", name="uq_team_member"),
    )
    op.create_index("ix_team_members_person_id", "team_members", ["person_id"])

    goalstatus = sa.Enum("not_started", "in_progress", "completed", "canceled", name="goalstatus")
    op.create_table(
        "goals",
        sa.Column("id", _uuid(), primary_key=True),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("target", sa.String(length=200), nullable=True),
        sa.Column("status", goalstatus, nullable=True),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("created_by_person_id", _uuid(), sa.ForeignKey("people.id"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_goals_period", "goals", ["start_date", "end_date"])

    op.create_table(
        "goal_assignments",
        sa.Column("id", _uuid(), primary_key=True),
        sa.Column("goal_id", _uuid(), sa.ForeignKey("goals.id"), nullable=False),
        sa.Column("person_id", _uuid(), sa.ForeignKey("people.id"), nullable=False),
        sa.UniqueConstraint("goal_id", "person_id", name="uq_goal_assignment"),
    )
    op.create_index("ix_goal_assignments_person_id", "goal_assignments", ["person_id"])

    taskstatus = sa.Enum("todo", "in_progress", "blocked", "completed", "canceled", name="taskstatus")
    op.create_table(
        "tasks",
        sa.Column("id", _uuid(), primary_key=True),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", taskstatus, nullable=True),
        sa.Column("assigned_to_person_id", _uuid(), sa.ForeignKey("people.id"), nullable=True),
        sa.Column("assigned_by_person_id", _uuid(), sa.ForeignKey("people.id"), nullable=True),
        sa.Column("team_id", _uuid(), sa.ForeignKey("teams.id"), nullable=True),
        sa.Column("goal_id", _uuid(), sa.ForeignKey("goals.id"), nullable=True),
        sa.Column("due_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_tasks_assignee_created", "tasks", ["assigned_to_person_id", "created_at"])
    op.create_index("ix_tasks_goal", "tasks", ["goal_id"])

    op.create_table(
        "task_assignees",
        sa.Column("id", _uuid(), primary_key=True),
        sa.Column("task_id", _uuid(), sa.ForeignKey("tasks.id"), nullable=False),
        sa.Column("person_id", _uuid(), sa.ForeignKey("people.id"), nullable=False),
        sa.UniqueConstraint("task_id", "person_id", name="uq_task_assignee"),
    )
    op.create_index("ix_task_assignees_person_id", "task_assignees", ["person_id"])

    op.create_table(
        "task_checklist_items",
        sa.Column("id", _uuid(), primary_key=True),
        sa.Column("task_id", _uuid(), sa.ForeignKey("tasks.id"), nullable=False),
        sa.Column("text", sa.String(length=300), nullable=False),
        sa.Column("position", sa.Integer(), nullable=True),
        sa.Column("is_completed", sa.Boolean(), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
    )


def downgrade() -> None:
    op.drop_table("task_checklist_items")
    op.drop_index("ix_task_assignees_person_id", table_name="task_assignees")
    op.drop_table("task_assignees")
    op.drop_index("ix_tasks_goal", table_name="tasks")
    op.drop_index("ix_tasks_assignee_created", table_name="tasks")
    op.drop_table("tasks")
    op.drop_index("ix_goal_assignments_person_id", table_name="goal_assignments")
    op.drop_table("goal_assignments")
    op.drop_index("ix_goals_period", table_name="goals")
    op.drop_table("goals")
    op.drop_index("ix_team_members_person_id", table_name="team_members")
    op.drop_table("team_members")
    op.drop_table("teams")
    op.drop_table("people")

    bind = op.get_bind()
    for name in ("taskstatus", "goalstatus", "teammemberrole"):
        sa.Enum(name=name).drop(bind, checkfirst=True)
