from __future__ import annotations

import logging
from datetime import UTC, date, datetime
from typing import Any

from sqlalchemy.orm import Session

from app.models.performance import KPIArchive, KPIRecord
from app.schemas.performance import KPIRecordCreate, KPIRecordUpdate
from app.services.common import coerce_uuid, to_float
from app.services.performance.errors import NotFoundError
from app.services.performance.observability import KPI_ROLLOVERS
from app.services.performance.weeks import current_week, week_floor

logger = logging.getLogger(__name__)


def _kpi_snapshot(record: KPIRecord) -> dict[str, Any]:
    return {
        "id": str(record.id),
        "person_id": str(record.person_id),
        "goal_id": str(record.goal_id) if record.goal_id else None,
        "name": record.name,
        "benchmark": to_float(record.benchmark),
        "last_week_actual": to_float(record.last_week_actual),
        "current_week_planned": to_float(record.current_week_planned),
        "current_week_actual": to_float(record.current_week_actual),
        "next_week_target": to_float(record.next_week_target),
        "variance": record.variance,
        "status": record.status.value,
        "week_start": record.week_start.isoformat() if record.week_start else None,
        "weeks_tracked": record.weeks_tracked,
        "previous_week_commitment": record.previous_week_commitment,
    }


class KPIVarianceTracker:
    def list_for_person(self, db: Session, person_id: str | None = None, goal_id: str | None = None) -> list[KPIRecord]:
        from app.queries.performance import KPIQuery

        return KPIQuery(db).for_person(person_id).for_goal(goal_id).order_by("name").all()

    def get(self, db: Session, kpi_id: str) -> KPIRecord:
        record = db.get(KPIRecord, coerce_uuid(kpi_id))
        if not record:
            raise NotFoundError("KPI not found")
        return record

    def create(self, db: Session, payload: KPIRecordCreate) -> KPIRecord:
        record = KPIRecord(
            person_id=coerce_uuid(payload.person_id),
            goal_id=coerce_uuid(payload.goal_id) if payload.goal_id else None,
            name=payload.name,
            benchmark=payload.benchmark,
            last_week_actual=payload.last_week_actual,
            current_week_planned=payload.current_week_planned,
            current_week_actual=payload.current_week_actual,
            next_week_target=payload.next_week_target,
            weeks_tracked=0,
            updated_by=payload.updated_by,
        )
        db.add(record)
        db.commit()
        db.refresh(record)
        return record

    def record_week(
        self,
        db: Session,
        kpi_id: str,
        updates: KPIRecordUpdate,
        updated_by: str | None = None,
        as_of: date | None = None,
    ) -> KPIRecord:
        """Apply this week's figures; only fields present in ``updates`` change."""
        record = self.get(db, kpi_id)
        data = updates.model_dump(exclude_unset=True)
        try:
            for key, value in data.items():
                setattr(record, key, value)
            if updated_by:
                record.updated_by = updated_by
            if record.week_start is None or not record.weeks_tracked:
                record.week_start = week_floor(as_of) if as_of else current_week().week_start
                record.weeks_tracked = 1
            record.updated_at = datetime.now(UTC)
            db.commit()
        except Exception:
            db.rollback()
            logger.exception("kpi_record_week_failed kpi_id=%s fields=%s", kpi_id, ",".join(sorted(data)))
            raise
        db.refresh(record)
        return record

    def rollover(self, db: Session, person_id: str | None = None, as_of: date | datetime | None = None) -> int:
        """Carry tracked KPIs from an earlier week into the current one."""
        from app.queries.performance import KPIQuery

        target_week = week_floor(as_of) if as_of else current_week().week_start
        records = KPIQuery(db).for_person(person_id).started_before(target_week).all()
        for record in records:
            previous_week = record.week_start
            record.last_week_actual = record.current_week_actual
            record.current_week_planned = record.next_week_target
            record.current_week_actual = 0
            record.week_start = target_week
            record.weeks_tracked = (record.weeks_tracked or 0) + 1
            record.previous_week_commitment = f"Carried over from week of {previous_week.isoformat()}"
            record.updated_by = "system"
            record.updated_at = datetime.now(UTC)
        db.commit()
        if records:
            KPI_ROLLOVERS.inc(len(records))
        logger.info("kpi_rollover week_start=%s person_id=%s count=%s", target_week.isoformat(), person_id, len(records))
        return len(records)

    def archive(
        self,
        db: Session,
        label: str | None = None,
        note: str | None = None,
        archived_by: str | None = None,
        person_id: str | None = None,
    ) -> KPIArchive:
        records = self.list_for_person(db, person_id=person_id)
        now = datetime.now(UTC)
        archive = KPIArchive(
            label=label or now.strftime("%Y-%m"),
            note=note,
            archived_by=archived_by,
            archived_at=now,
            kpi_count=len(records),
            data_json=[_kpi_snapshot(record) for record in records],
        )
        db.add(archive)
        db.commit()
        db.refresh(archive)
        logger.info("kpi_archive_created label=%s count=%s", archive.label, archive.kpi_count)
        return archive

    def list_archives(self, db: Session, label: str | None = None) -> list[KPIArchive]:
        from app.queries.performance import KPIArchiveQuery

        return KPIArchiveQuery(db).by_label(label).order_by("archived_at", "desc").all()


kpi_tracker = KPIVarianceTracker()
