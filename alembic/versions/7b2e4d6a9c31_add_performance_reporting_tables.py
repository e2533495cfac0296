"""Add scoring config, weekly report and KPI tables.

Revision ID: 7b2e4d6a9c31
Revises: 3f9a1c2b7d10
Create Date: 2026-10-12
"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "7b2e4d6a9c31"
down_revision = "3f9a1c2b7d10"
branch_labels = None
depends_on = None


def _uuid():
    return sa.dialects.postgresql.UUID(as_uuid=True)


def upgrade() -> None:
    op.create_table(
        "performance_scoring_config",
        sa.Column("key", sa.String(length=40), primary_key=True),
        sa.Column("completion_weight", sa.Integer(), nullable=False),
        sa.Column("timeliness_weight", sa.Integer(), nullable=False),
        sa.Column("quality_weight", sa.Integer(), nullable=False),
        sa.Column("kra_alignment_weight", sa.Integer(), nullable=False),
        sa.Column("updated_by", sa.String(length=120), nullable=False, server_default="system"),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "completion_weight + timeliness_weight + quality_weight + kra_alignment_weight = 100",
            name="ck_scoring_config_weights_total",
        ),
        sa.CheckConstraint("completion_weight BETWEEN 0 AND 100", name="ck_scoring_config_completion_range"),
        sa.CheckConstraint("timeliness_weight BETWEEN 0 AND 100", name="ck_scoring_config_timeliness_range"),
        sa.CheckConstraint("quality_weight BETWEEN 0 AND 100", name="ck_scoring_config_quality_range"),
        sa.CheckConstraint("kra_alignment_weight BETWEEN 0 AND 100", name="ck_scoring_config_kra_alignment_range"),
    )

    reportscopetype = sa.Enum("user", "team", name="reportscopetype")
    op.create_table(
        "performance_weekly_reports",
        sa.Column("id", _uuid(), primary_key=True),
        sa.Column("scope_type", reportscopetype, nullable=False),
        sa.Column("scope_id", sa.String(length=64), nullable=False),
        sa.Column("scope_name", sa.String(length=200), nullable=True),
        sa.Column("week_start", sa.Date(), nullable=False),
        sa.Column("week_end", sa.Date(), nullable=False),
        sa.Column("tasks_assigned", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("tasks_completed", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_kras", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("completed_kras", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("team_members", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("members_scored", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("average_score", sa.Numeric(5, 2), nullable=False),
        sa.Column("breakdown_json", sa.JSON(), nullable=False),
        sa.Column("weights_json", sa.JSON(), nullable=False),
        sa.Column("top_performers_json", sa.JSON(), nullable=False),
        sa.Column("issues_json", sa.JSON(), nullable=False),
        sa.Column("member_scores_json", sa.JSON(), nullable=False),
        sa.Column("failed_members_json", sa.JSON(), nullable=False),
        sa.Column("generated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("scope_type", "scope_id", "week_start", name="uq_weekly_report_scope_week"),
    )
    op.create_index("ix_weekly_report_scope", "performance_weekly_reports", ["scope_type", "scope_id"])
    op.create_index("ix_weekly_report_week", "performance_weekly_reports", ["week_start"])

    op.create_table(
        "performance_kpis",
        sa.Column("id", _uuid(), primary_key=True),
        sa.Column("person_id", _uuid(), sa.ForeignKey("people.id"), nullable=False),
        sa.Column("goal_id", _uuid(), sa.ForeignKey("goals.id"), nullable=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("benchmark", sa.Numeric(12, 2), nullable=False, server_default="100"),
        sa.Column("last_week_actual", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("current_week_planned", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("current_week_actual", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("next_week_target", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("week_start", sa.Date(), nullable=True),
        sa.Column("weeks_tracked", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("previous_week_commitment", sa.Text(), nullable=True),
        sa.Column("updated_by", sa.String(length=120), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_perf_kpi_person", "performance_kpis", ["person_id"])
    op.create_index("ix_perf_kpi_week", "performance_kpis", ["week_start"])

    op.create_table(
        "performance_kpi_archives",
        sa.Column("id", _uuid(), primary_key=True),
        sa.Column("label", sa.String(length=80), nullable=False),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("archived_by", sa.String(length=120), nullable=True),
        sa.Column("archived_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("kpi_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("data_json", sa.JSON(), nullable=False),
    )
    op.create_index("ix_perf_kpi_archive_label", "performance_kpi_archives", ["label"])


def downgrade() -> None:
    op.drop_index("ix_perf_kpi_archive_label", table_name="performance_kpi_archives")
    op.drop_table("performance_kpi_archives")
    op.drop_index("ix_perf_kpi_week", table_name="performance_kpis")
    op.drop_index("ix_perf_kpi_person", table_name="performance_kpis")
    op.drop_table("performance_kpis")
    op.drop_index("ix_weekly_report_week", table_name="performance_weekly_reports")
    op.drop_index("ix_weekly_report_scope", table_name="performance_weekly_reports")
    op.drop_table("performance_weekly_reports")
    op.drop_table("performance_scoring_config")
    sa.Enum(name="reportscopetype").drop(op.get_bind(), checkfirst=True)
