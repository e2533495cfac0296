from __future__ import annotations

import logging
from datetime import UTC, date, datetime

from app.celery_app import celery_app
from app.db import SessionLocal
from app.models.performance import ReportScopeType
from app.models.team import Team
from app.services.performance import kpi_tracker, weekly_reports
from app.services.performance.errors import PerformanceError
from app.services.performance.metrics import ReportScope
from app.services.performance.weeks import last_completed_week, week_floor

logger = logging.getLogger(__name__)


def _parse_iso_date(value: object | None) -> date | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value))
    except (TypeError, ValueError):
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(UTC)
    return parsed.date()


def _active_team_scopes(session) -> list[ReportScope]:
    rows = session.query(Team.id).filter(Team.is_active.is_(True)).order_by(Team.name.asc()).all()
    return [ReportScope(scope_type=ReportScopeType.team, scope_id=str(row[0])) for row in rows]


@celery_app.task(name="app.tasks.performance.generate_weekly_reports")
def generate_weekly_reports(week_start_iso: str | None = None) -> dict:
    session = SessionLocal()
    try:
        if week_start_iso:
            requested = _parse_iso_date(week_start_iso)
            if not requested:
                raise ValueError("Invalid week_start")
            week_start = week_floor(requested)
        else:
            week_start = last_completed_week().week_start

        generated: list[dict] = []
        failed: list[dict] = []
        for scope in _active_team_scopes(session):
            try:
                outcome = weekly_reports.generate(session, scope, week_start)
            except PerformanceError as exc:
                # One team's failure must not stop the others.
                logger.warning("weekly_report_skipped scope=%s code=%s detail=%s", scope.label, exc.code, exc.detail)
                failed.append({"scope": scope.label, "code": exc.code, "detail": exc.detail})
                continue
            generated.append(weekly_reports.summary(outcome.report))

        return {"week_start": week_start.isoformat(), "generated": generated, "failed": failed}
    except Exception:
        session.rollback()
        logger.exception("Failed to generate weekly performance reports")
        raise
    finally:
        session.close()


@celery_app.task(name="app.tasks.performance.rollover_kpis")
def rollover_kpis() -> dict:
    session = SessionLocal()
    try:
        rolled_over = kpi_tracker.rollover(session)
        return {"rolled_over": rolled_over}
    except Exception:
        session.rollback()
        logger.exception("Failed to roll over performance KPIs")
        raise
    finally:
        session.close()
