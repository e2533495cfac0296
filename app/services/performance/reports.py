from __future__ import annotations

import logging
import time
import uuid
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from dataclasses import dataclass
from datetime import UTC, date, datetime
from typing import Any

from sqlalchemy.orm import Session

from app.config import settings
from app.models.performance import WeeklyReport
from app.services.performance.config_store import ScoringConfigStore, scoring_config_store
from app.services.performance.errors import (
    EmptyScopeError,
    NotFoundError,
    PartialCollectionError,
    ReportTimeoutError,
    ScopeCollectionError,
)
from app.services.performance.issues import detect_issues
from app.services.performance.metrics import (
    MemberOutcome,
    MemberRecord,
    MetricCollector,
    PerformanceDataSource,
    ReportScope,
)
from app.services.performance.observability import (
    MEMBER_COLLECTION_FAILURES,
    REPORT_GENERATION_TIME,
    REPORTS_GENERATED,
)
from app.services.performance.scoring import (
    MemberScore,
    ScoreCalculator,
    ScoringWeights,
    rank_members,
    score_calculator,
)
from app.services.performance.weeks import ReportWeek, report_week
from app.telemetry import get_tracer

logger = logging.getLogger(__name__)

_REPORT_NAMESPACE = uuid.UUID("6f1c3f5e-2b7a-4d0e-9a51-8f0f6a4c2d11")


def report_id(scope: ReportScope, week_start: date) -> uuid.UUID:
    """Stable identifier for a scope/week, so a regenerated report keeps its id."""
    return uuid.uuid5(_REPORT_NAMESPACE, f"{scope.label}:{week_start.isoformat()}")


@dataclass(frozen=True)
class ReportOutcome:
    report: WeeklyReport
    partial: PartialCollectionError | None = None

    @property
    def is_partial(self) -> bool:
        return self.partial is not None


class WeeklyReportService:
    def __init__(
        self,
        source: PerformanceDataSource | None = None,
        calculator: ScoreCalculator | None = None,
        config_store: ScoringConfigStore | None = None,
        max_workers: int | None = None,
        top_performers: int | None = None,
    ):
        self._source = source
        self.calculator = calculator or score_calculator
        self.config_store = config_store or scoring_config_store
        self.max_workers = max_workers or settings.performance_max_workers
        self.top_performers = top_performers or settings.performance_top_performers

    @property
    def source(self) -> PerformanceDataSource:
        if self._source is None:
            from app.db import SessionLocal
            from app.queries.performance import SqlPerformanceSource

            self._source = SqlPerformanceSource(SessionLocal)
        return self._source

    def generate(
        self,
        db: Session,
        scope: ReportScope,
        week_start: date | datetime,
        *,
        timeout: float | None = None,
    ) -> ReportOutcome:
        """Score every member of ``scope`` for one week and store the report.

        Any earlier report for the same scope and week is replaced. Raises
        EmptyScopeError when nobody is in scope, ScopeCollectionError when no
        member could be scored and ReportTimeoutError when the fan-out does
        not finish in time; nothing is written in those cases.
        """
        week = report_week(week_start)
        tracer = get_tracer(__name__)
        started = time.monotonic()
        with tracer.start_as_current_span(
            "performance.generate_report",
            attributes={
                "performance.scope_type": scope.scope_type.value,
                "performance.scope_id": scope.scope_id,
                "performance.week_start": week.week_start.isoformat(),
            },
        ) as span:
            try:
                outcome = self._generate(db, scope, week, timeout=timeout, span=span)
            except EmptyScopeError:
                REPORTS_GENERATED.labels(scope_type=scope.scope_type.value, outcome="empty").inc()
                raise
            except ReportTimeoutError:
                REPORTS_GENERATED.labels(scope_type=scope.scope_type.value, outcome="timeout").inc()
                raise
            except Exception:
                REPORTS_GENERATED.labels(scope_type=scope.scope_type.value, outcome="failed").inc()
                raise
            finally:
                REPORT_GENERATION_TIME.labels(scope_type=scope.scope_type.value).observe(time.monotonic() - started)
        REPORTS_GENERATED.labels(
            scope_type=scope.scope_type.value,
            outcome="partial" if outcome.is_partial else "complete",
        ).inc()
        return outcome

    def _generate(
        self,
        db: Session,
        scope: ReportScope,
        week: ReportWeek,
        *,
        timeout: float | None,
        span,
    ) -> ReportOutcome:
        weights = self.config_store.snapshot(db)

        try:
            members = self.source.members_for_scope(scope)
        except Exception as exc:
            logger.exception("report_members_failed scope=%s", scope.label)
            raise ScopeCollectionError({scope.label: str(exc) or exc.__class__.__name__}) from exc
        if not members:
            raise EmptyScopeError(f"No active members found for {scope.label}")
        span.set_attribute("performance.members", len(members))

        outcomes = self._fan_out(members, week, weights, timeout=timeout)

        failures = {
            outcome.member.person_id: outcome.error or "unknown error" for outcome, _ in outcomes if not outcome.ok
        }
        scores = [score for _, score in outcomes if score is not None]
        if failures:
            MEMBER_COLLECTION_FAILURES.labels(scope_type=scope.scope_type.value).inc(len(failures))
        if not scores:
            logger.error("weekly_report_failed scope=%s members=%s", scope.label, len(members))
            raise ScopeCollectionError(failures)

        partial = PartialCollectionError(failures, total_members=len(members)) if failures else None
        report = self._build_report(scope, week, weights, members, scores, failures)
        report.scope_name = self.source.scope_name(scope)

        from app.queries.performance import WeeklyReportQuery

        try:
            previous = WeeklyReportQuery(db).by_scope(scope.scope_type, scope.scope_id).for_week(week.week_start).all()
            for existing in previous:
                db.delete(existing)
            db.flush()
            db.add(report)
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(report)

        span.set_attribute("performance.members_scored", len(scores))
        span.set_attribute("performance.members_failed", len(failures))
        logger.info(
            "weekly_report_generated scope=%s week_start=%s members=%s failed=%s average=%s",
            scope.label,
            week.week_start.isoformat(),
            len(members),
            len(failures),
            report.average_score,
        )
        return ReportOutcome(report=report, partial=partial)

    def _score_member(
        self, member: MemberRecord, week: ReportWeek, weights: ScoringWeights
    ) -> tuple[MemberOutcome, MemberScore | None]:
        collector = MetricCollector(self.source)
        outcome = collector.collect_safely(member, week.week_start, week.week_end)
        if not outcome.ok:
            return outcome, None
        breakdown = self.calculator.compute(outcome.metrics, weights)
        return outcome, MemberScore(member=member, metrics=outcome.metrics, breakdown=breakdown)

    def _fan_out(
        self,
        members: list[MemberRecord],
        week: ReportWeek,
        weights: ScoringWeights,
        *,
        timeout: float | None,
    ) -> list[tuple[MemberOutcome, MemberScore | None]]:
        limit = settings.performance_report_timeout_seconds if timeout is None else timeout
        executor = ThreadPoolExecutor(
            max_workers=max(1, min(self.max_workers, len(members))),
            thread_name_prefix="perf-report",
        )
        try:
            futures = [executor.submit(self._score_member, member, week, weights) for member in members]
            done, not_done = wait(futures, timeout=limit, return_when=FIRST_EXCEPTION)
            for future in done:
                error = future.exception()
                if error is not None:
                    raise error
            if not_done:
                logger.warning(
                    "weekly_report_timeout members=%s pending=%s timeout=%s", len(members), len(not_done), limit
                )
                raise ReportTimeoutError(f"Report generation exceeded {limit:g}s with {len(not_done)} members pending")
            return [future.result() for future in futures]
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

    def _build_report(
        self,
        scope: ReportScope,
        week: ReportWeek,
        weights: ScoringWeights,
        members: list[MemberRecord],
        scores: list[MemberScore],
        failures: dict[str, str],
    ) -> WeeklyReport:
        ranked = rank_members(scores)
        breakdown = self.calculator.average([score.breakdown for score in ranked])
        average_score = round(sum(score.breakdown.overall_score for score in ranked) / len(ranked), 2)
        issues = detect_issues(
            ranked,
            average_score=average_score,
            total_members=len(members),
            failed_count=len(failures),
        )
        return WeeklyReport(
            id=report_id(scope, week.week_start),
            scope_type=scope.scope_type,
            scope_id=str(scope.scope_id),
            week_start=week.week_start,
            week_end=week.week_end,
            tasks_assigned=sum(score.metrics.tasks_assigned for score in ranked),
            tasks_completed=sum(score.metrics.tasks_completed for score in ranked),
            total_kras=sum(score.metrics.kras_total_count for score in ranked),
            completed_kras=sum(score.metrics.kras_completed_count for score in ranked),
            team_members=len(members),
            members_scored=len(ranked),
            average_score=average_score,
            breakdown_json=breakdown.as_dict(),
            weights_json=weights.as_dict(),
            top_performers_json=[score.member.display_name for score in ranked[: self.top_performers]],
            issues_json=issues,
            member_scores_json=[score.as_dict() for score in ranked],
            failed_members_json=sorted(failures),
            generated_at=datetime.now(UTC),
        )

    def get_report(self, db: Session, scope: ReportScope, week_start: date | datetime) -> WeeklyReport:
        from app.queries.performance import WeeklyReportQuery

        week = report_week(week_start)
        report = WeeklyReportQuery(db).by_scope(scope.scope_type, scope.scope_id).for_week(week.week_start).first()
        if not report:
            raise NotFoundError(f"No report for {scope.label} week of {week.week_start.isoformat()}")
        return report

    def list_reports(self, db: Session, scope: ReportScope, limit: int = 12) -> list[WeeklyReport]:
        from app.queries.performance import WeeklyReportQuery

        return (
            WeeklyReportQuery(db)
            .by_scope(scope.scope_type, scope.scope_id)
            .order_by("week_start", "desc")
            .paginate(limit=max(1, min(limit, 104)))
            .all()
        )

    def summary(self, report: WeeklyReport) -> dict[str, Any]:
        return {
            "scope": f"{report.scope_type.value}:{report.scope_id}",
            "week_start": report.week_start.isoformat(),
            "members_scored": report.members_scored,
            "team_members": report.team_members,
            "average_score": float(report.average_score),
            "partial": report.is_partial,
        }


weekly_reports = WeeklyReportService()
