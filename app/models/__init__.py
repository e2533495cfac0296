from app.models.goals import Goal, GoalAssignment, GoalStatus  # noqa: F401
from app.models.performance import (  # noqa: F401
    KPIArchive,
    KPIRecord,
    KPIStatus,
    ReportScopeType,
    ScoringConfig,
    WeeklyReport,
)
from app.models.person import Person  # noqa: F401
from app.models.tasks import Task, TaskAssignee, TaskChecklistItem, TaskStatus  # noqa: F401
from app.models.team import Team, TeamMember, TeamMemberRole  # noqa: F401
