from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.models.performance import ReportScopeType
from app.schemas.performance import (
    GenerateReportRequest,
    KPIArchiveCreate,
    KPIArchiveRead,
    KPIRecordCreate,
    KPIRecordRead,
    KPIRecordUpdate,
    KPIRolloverRequest,
    KPIRolloverResult,
    ReportOutcomeRead,
    ScoringConfigRead,
    ScoringConfigUpdate,
    ScoringConfigValidation,
    WeeklyReportRead,
)
from app.services.performance import kpi_tracker, scoring_config_store, weekly_reports
from app.services.performance.metrics import ReportScope
from app.services.performance.scoring import ScoringWeights
from app.services.performance.weeks import current_week, last_completed_week, week_floor

router = APIRouter(prefix="/performance", tags=["performance"])


def _weights(payload: ScoringConfigUpdate) -> ScoringWeights:
    return ScoringWeights(
        completion_weight=payload.completion_weight,
        timeliness_weight=payload.timeliness_weight,
        quality_weight=payload.quality_weight,
        kra_alignment_weight=payload.kra_alignment_weight,
    )


# -------------------------------------------------------------------------
# Scoring configuration
# -------------------------------------------------------------------------


@router.get("/scoring-config", response_model=ScoringConfigRead)
def get_scoring_config(db: Session = Depends(get_db)):
    return scoring_config_store.get_active_config(db)


@router.put("/scoring-config", response_model=ScoringConfigRead)
def update_scoring_config(payload: ScoringConfigUpdate, db: Session = Depends(get_db)):
    return scoring_config_store.set_config(db, _weights(payload), updated_by=payload.updated_by)


@router.post("/scoring-config/validate", response_model=ScoringConfigValidation)
def validate_scoring_config(payload: ScoringConfigUpdate):
    result = scoring_config_store.validate(_weights(payload))
    return ScoringConfigValidation(valid=result.valid, total=result.total)


@router.post("/scoring-config/defaults", response_model=ScoringConfigRead)
def initialize_scoring_config(db: Session = Depends(get_db)):
    return scoring_config_store.initialize_defaults(db)


# -------------------------------------------------------------------------
# Weekly reports
# -------------------------------------------------------------------------


@router.post("/reports/generate", response_model=ReportOutcomeRead)
def generate_report(payload: GenerateReportRequest, db: Session = Depends(get_db)):
    scope = ReportScope(scope_type=payload.scope_type, scope_id=payload.scope_id)
    week_start = payload.week_start or last_completed_week().week_start
    outcome = weekly_reports.generate(db, scope, week_start, timeout=payload.timeout_seconds)
    return ReportOutcomeRead(
        report=WeeklyReportRead.model_validate(outcome.report),
        partial=outcome.is_partial,
        members_scored=outcome.report.members_scored,
        failed_members=outcome.partial.failed_ids if outcome.partial else [],
        detail=outcome.partial.detail if outcome.partial else None,
    )


@router.get("/reports/{scope_type}/{scope_id}/{week_start}", response_model=WeeklyReportRead)
def get_report(scope_type: ReportScopeType, scope_id: str, week_start: date, db: Session = Depends(get_db)):
    return weekly_reports.get_report(db, ReportScope(scope_type=scope_type, scope_id=scope_id), week_start)


@router.get("/reports/{scope_type}/{scope_id}", response_model=list[WeeklyReportRead])
def list_reports(
    scope_type: ReportScopeType,
    scope_id: str,
    limit: int = Query(12, ge=1, le=104),
    db: Session = Depends(get_db),
):
    return weekly_reports.list_reports(db, ReportScope(scope_type=scope_type, scope_id=scope_id), limit=limit)


# -------------------------------------------------------------------------
# KPIs
# -------------------------------------------------------------------------


@router.get("/kpis", response_model=list[KPIRecordRead])
def list_kpis(
    person_id: str | None = Query(None),
    goal_id: str | None = Query(None),
    db: Session = Depends(get_db),
):
    try:
        return kpi_tracker.list_for_person(db, person_id=person_id, goal_id=goal_id)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.post("/kpis", response_model=KPIRecordRead, status_code=201)
def create_kpi(payload: KPIRecordCreate, db: Session = Depends(get_db)):
    return kpi_tracker.create(db, payload)


@router.post("/kpis/rollover", response_model=KPIRolloverResult)
def rollover_kpis(payload: KPIRolloverRequest, db: Session = Depends(get_db)):
    week_start = week_floor(payload.as_of) if payload.as_of else current_week().week_start
    count = kpi_tracker.rollover(
        db,
        person_id=str(payload.person_id) if payload.person_id else None,
        as_of=week_start,
    )
    return KPIRolloverResult(rolled_over=count, week_start=week_start)


@router.get("/kpis/archives", response_model=list[KPIArchiveRead])
def list_kpi_archives(label: str | None = Query(None), db: Session = Depends(get_db)):
    return kpi_tracker.list_archives(db, label=label)


@router.post("/kpis/archives", response_model=KPIArchiveRead, status_code=201)
def archive_kpis(payload: KPIArchiveCreate, db: Session = Depends(get_db)):
    return kpi_tracker.archive(
        db,
        label=payload.label,
        note=payload.note,
        archived_by=payload.archived_by,
        person_id=str(payload.person_id) if payload.person_id else None,
    )


@router.get("/kpis/{kpi_id}", response_model=KPIRecordRead)
def get_kpi(kpi_id: str, db: Session = Depends(get_db)):
    try:
        return kpi_tracker.get(db, kpi_id)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail="KPI not found") from exc


@router.patch("/kpis/{kpi_id}", response_model=KPIRecordRead)
def record_kpi_week(kpi_id: str, payload: KPIRecordUpdate, db: Session = Depends(get_db)):
    try:
        return kpi_tracker.record_week(db, kpi_id, payload)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail="KPI not found") from exc
