from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.models.performance import KPIStatus, ReportScopeType


class ScoringConfigBase(BaseModel):
    completion_weight: int = Field(ge=0, le=100)
    timeliness_weight: int = Field(ge=0, le=100)
    quality_weight: int = Field(ge=0, le=100)
    kra_alignment_weight: int = Field(ge=0, le=100)


class ScoringConfigUpdate(ScoringConfigBase):
    updated_by: str | None = Field(default=None, max_length=120)


class ScoringConfigRead(ScoringConfigBase):
    model_config = ConfigDict(from_attributes=True)

    updated_by: str
    updated_at: datetime


class ScoringConfigValidation(BaseModel):
    valid: bool
    total: int


class ScoreBreakdownRead(BaseModel):
    completion_score: float
    timeliness_score: float
    quality_score: float
    kra_alignment_score: float
    overall_score: int


class MemberScoreRead(ScoreBreakdownRead):
    person_id: str
    display_name: str
    tasks_assigned: int
    tasks_completed: int
    on_time_count: int
    late_count: int
    overdue_count: int
    kras_covered_count: int
    kras_total_count: int


class WeeklyReportRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    scope_type: ReportScopeType
    scope_id: str
    scope_name: str | None = None
    week_start: date
    week_end: date
    tasks_assigned: int
    tasks_completed: int
    total_kras: int
    completed_kras: int
    team_members: int
    members_scored: int
    average_score: float
    breakdown: ScoreBreakdownRead = Field(validation_alias="breakdown_json")
    weights: ScoringConfigBase = Field(validation_alias="weights_json")
    top_performers: list[str] = Field(validation_alias="top_performers_json")
    issues: list[str] = Field(validation_alias="issues_json")
    member_scores: list[MemberScoreRead] = Field(validation_alias="member_scores_json")
    failed_members: list[str] = Field(validation_alias="failed_members_json")
    partial: bool = Field(validation_alias="is_partial")
    generated_at: datetime


class GenerateReportRequest(BaseModel):
    scope_type: ReportScopeType
    scope_id: str = Field(min_length=1, max_length=64)
    week_start: date | None = None
    timeout_seconds: float | None = Field(default=None, gt=0, le=600)


class ReportOutcomeRead(BaseModel):
    report: WeeklyReportRead
    partial: bool
    members_scored: int
    failed_members: list[str]
    detail: str | None = None


class KPIRecordBase(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    benchmark: float = Field(default=100, ge=0)
    goal_id: UUID | None = None


class KPIRecordCreate(KPIRecordBase):
    person_id: UUID
    last_week_actual: float = 0
    current_week_planned: float = 0
    current_week_actual: float = 0
    next_week_target: float = 0
    updated_by: str | None = Field(default=None, max_length=120)


_KPI_NON_NULLABLE = (
    "name",
    "benchmark",
    "last_week_actual",
    "current_week_planned",
    "current_week_actual",
    "next_week_target",
)


class KPIRecordUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    benchmark: float | None = Field(default=None, ge=0)
    last_week_actual: float | None = None
    current_week_planned: float | None = None
    current_week_actual: float | None = None
    next_week_target: float | None = None
    previous_week_commitment: str | None = None
    updated_by: str | None = Field(default=None, max_length=120)

    @model_validator(mode="after")
    def _reject_null_for_required_columns(self) -> "KPIRecordUpdate":
        nulled = [name for name in _KPI_NON_NULLABLE if name in self.model_fields_set and getattr(self, name) is None]
        if nulled:
            raise ValueError(f"{', '.join(nulled)} cannot be null")
        return self


class KPIRecordRead(KPIRecordBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    person_id: UUID
    last_week_actual: float
    current_week_planned: float
    current_week_actual: float
    next_week_target: float
    week_start: date | None = None
    weeks_tracked: int
    previous_week_commitment: str | None = None
    updated_by: str | None = None
    variance: int
    status: KPIStatus
    created_at: datetime
    updated_at: datetime


class KPIRolloverRequest(BaseModel):
    person_id: UUID | None = None
    as_of: date | None = None


class KPIRolloverResult(BaseModel):
    rolled_over: int
    week_start: date


class KPIArchiveCreate(BaseModel):
    label: str | None = Field(default=None, min_length=1, max_length=80)
    note: str | None = None
    archived_by: str | None = Field(default=None, max_length=120)
    person_id: UUID | None = None


class KPIArchiveRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    label: str
    note: str | None = None
    archived_by: str | None = None
    archived_at: datetime
    kpi_count: int
    data: list[dict] = Field(validation_alias="data_json")
