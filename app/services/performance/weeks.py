from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta

from app.config import settings


@dataclass(frozen=True)
class ReportWeek:
    week_start: date
    week_end: date

    @property
    def start_at(self) -> datetime:
        return datetime.combine(self.week_start, time.min, tzinfo=UTC)

    @property
    def end_at(self) -> datetime:
        """Exclusive upper bound: midnight after the last calendar day."""
        return datetime.combine(self.week_end + timedelta(days=1), time.min, tzinfo=UTC)


def week_floor(value: date | datetime, week_start_day: int | None = None) -> date:
    """Snap a date to the first day of its week (Monday unless configured)."""
    start_day = settings.performance_week_start_day if week_start_day is None else week_start_day
    day = value.date() if isinstance(value, datetime) else value
    return day - timedelta(days=(day.weekday() - start_day) % 7)


def report_week(value: date | datetime, week_start_day: int | None = None) -> ReportWeek:
    start = week_floor(value, week_start_day)
    return ReportWeek(week_start=start, week_end=start + timedelta(days=6))


def current_week(now: datetime | None = None) -> ReportWeek:
    return report_week(now or datetime.now(UTC))


def last_completed_week(now: datetime | None = None) -> ReportWeek:
    return report_week(current_week(now).week_start - timedelta(days=7))
