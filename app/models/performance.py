import enum
import uuid
from datetime import UTC, date, datetime

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db import Base
from app.services.common import percent_variance

SCORING_CONFIG_KEY = "scoring"


class ReportScopeType(enum.Enum):
    user = "user"
    team = "team"


class KPIStatus(enum.Enum):
    not_started = "not_started"
    tracked = "tracked"


class ScoringConfig(Base):
    __tablename__ = "performance_scoring_config"
    __table_args__ = (
        CheckConstraint(
            "completion_weight + timeliness_weight + quality_weight + kra_alignment_weight = 100",
            name="ck_scoring_config_weights_total",
        ),
        CheckConstraint("completion_weight BETWEEN 0 AND 100", name="ck_scoring_config_completion_range"),
        CheckConstraint("timeliness_weight BETWEEN 0 AND 100", name="ck_scoring_config_timeliness_range"),
        CheckConstraint("quality_weight BETWEEN 0 AND 100", name="ck_scoring_config_quality_range"),
        CheckConstraint("kra_alignment_weight BETWEEN 0 AND 100", name="ck_scoring_config_kra_alignment_range"),
    )

    key: Mapped[str] = mapped_column(String(40), primary_key=True, default=SCORING_CONFIG_KEY)
    completion_weight: Mapped[int] = mapped_column(Integer, nullable=False)
    timeliness_weight: Mapped[int] = mapped_column(Integer, nullable=False)
    quality_weight: Mapped[int] = mapped_column(Integer, nullable=False)
    kra_alignment_weight: Mapped[int] = mapped_column(Integer, nullable=False)
    updated_by: Mapped[str] = mapped_column(String(120), nullable=False, default="system")
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(UTC))


class WeeklyReport(Base):
    __tablename__ = "performance_weekly_reports"
    __table_args__ = (
        UniqueConstraint("scope_type", "scope_id", "week_start", name="uq_weekly_report_scope_week"),
        Index("ix_weekly_report_scope", "scope_type", "scope_id"),
        Index("ix_weekly_report_week", "week_start"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    scope_type: Mapped[ReportScopeType] = mapped_column(Enum(ReportScopeType), nullable=False)
    scope_id: Mapped[str] = mapped_column(String(64), nullable=False)
    scope_name: Mapped[str | None] = mapped_column(String(200))
    week_start: Mapped[date] = mapped_column(Date, nullable=False)
    week_end: Mapped[date] = mapped_column(Date, nullable=False)

    tasks_assigned: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    tasks_completed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_kras: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    completed_kras: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    team_members: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    members_scored: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    average_score: Mapped[float] = mapped_column(Numeric(5, 2), nullable=False)

    breakdown_json: Mapped[dict] = mapped_column(JSON, nullable=False)
    weights_json: Mapped[dict] = mapped_column(JSON, nullable=False)
    top_performers_json: Mapped[list] = mapped_column(JSON, nullable=False)
    issues_json: Mapped[list] = mapped_column(JSON, nullable=False)
    member_scores_json: Mapped[list] = mapped_column(JSON, nullable=False)
    failed_members_json: Mapped[list] = mapped_column(JSON, nullable=False)

    generated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    @property
    def is_partial(self) -> bool:
        return bool(self.failed_members_json)


class KPIRecord(Base):
    __tablename__ = "performance_kpis"
    __table_args__ = (
        Index("ix_perf_kpi_person", "person_id"),
        Index("ix_perf_kpi_week", "week_start"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    person_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("people.id"), nullable=False)
    goal_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), ForeignKey("goals.id"))
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    benchmark: Mapped[float] = mapped_column(Numeric(12, 2), nullable=False, default=100)
    last_week_actual: Mapped[float] = mapped_column(Numeric(12, 2), nullable=False, default=0)
    current_week_planned: Mapped[float] = mapped_column(Numeric(12, 2), nullable=False, default=0)
    current_week_actual: Mapped[float] = mapped_column(Numeric(12, 2), nullable=False, default=0)
    next_week_target: Mapped[float] = mapped_column(Numeric(12, 2), nullable=False, default=0)
    week_start: Mapped[date | None] = mapped_column(Date)
    weeks_tracked: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    previous_week_commitment: Mapped[str | None] = mapped_column(Text)
    updated_by: Mapped[str | None] = mapped_column(String(120))

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(UTC))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), onupdate=lambda: datetime.now(UTC)
    )

    person = relationship("Person")
    goal = relationship("Goal")

    @property
    def variance(self) -> int:
        return percent_variance(self.current_week_planned, self.current_week_actual)

    @property
    def status(self) -> KPIStatus:
        if self.week_start is None or not self.weeks_tracked:
            return KPIStatus.not_started
        return KPIStatus.tracked


class KPIArchive(Base):
    __tablename__ = "performance_kpi_archives"
    __table_args__ = (Index("ix_perf_kpi_archive_label", "label"),)

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    label: Mapped[str] = mapped_column(String(80), nullable=False)
    note: Mapped[str | None] = mapped_column(Text)
    archived_by: Mapped[str | None] = mapped_column(String(120))
    archived_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(UTC))
    kpi_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    data_json: Mapped[list] = mapped_column(JSON, nullable=False)
