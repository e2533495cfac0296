"""Query builders for database operations.

Usage:
    from app.queries import WeeklyReportQuery

    history = (
        WeeklyReportQuery(db)
        .by_scope(ReportScopeType.team, team_id)
        .order_by("week_start", "desc")
        .paginate(limit=12)
        .all()
    )
"""

from app.queries.base import BaseQuery
from app.queries.performance import KPIArchiveQuery, KPIQuery, SqlPerformanceSource, WeeklyReportQuery

__all__ = [
    "BaseQuery",
    "KPIArchiveQuery",
    "KPIQuery",
    "SqlPerformanceSource",
    "WeeklyReportQuery",
]
