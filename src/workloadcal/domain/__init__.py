"""Domain models and business rules for the capacity calendar."""

from workloadcal.domain.config import CalendarConfig
from workloadcal.domain.models import (
    CalendarViewState,
    DayCapacity,
    DropTarget,
    HalfDay,
    HalfDayCapacity,
    HalfDayPosition,
    HalfDaySlot,
    Holiday,
    LeaveStatus,
    LoadBucket,
    MemberWorkload,
    PlanningMetrics,
    TaskProgress,
    TaskRef,
    TeamMember,
    UserLeave,
    ViewLevel,
    backlog_tasks,
)
from workloadcal.domain.policies import (
    DefaultHeatmapPolicy,
    HalfDayLeavePolicy,
    HeatmapPolicy,
    LeavePolicy,
    WholeDayLeavePolicy,
)
from workloadcal.domain.public_holidays import load_public_holidays

__all__ = [
    # Models
    "CalendarViewState",
    "DayCapacity",
    "DropTarget",
    "HalfDay",
    "HalfDayCapacity",
    "HalfDayPosition",
    "HalfDaySlot",
    "Holiday",
    "LeaveStatus",
    "LoadBucket",
    "MemberWorkload",
    "PlanningMetrics",
    "TaskProgress",
    "TaskRef",
    "TeamMember",
    "UserLeave",
    "ViewLevel",
    "backlog_tasks",
    # Configuration
    "CalendarConfig",
    # Policies
    "DefaultHeatmapPolicy",
    "HalfDayLeavePolicy",
    "HeatmapPolicy",
    "LeavePolicy",
    "WholeDayLeavePolicy",
    # Holidays
    "load_public_holidays",
]
