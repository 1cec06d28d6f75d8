"""Domain models for the workload capacity calendar.

This module contains the core data structures shared by the calendar engine:
half-day slots, holidays, leaves, task projections and the derived capacity
rows (DayCapacity / MemberWorkload) that every view renders.
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import Iterable, Iterator, Optional


class HalfDay(Enum):
    """The two schedulable halves of a working day."""

    MORNING = "morning"
    AFTERNOON = "afternoon"

    @property
    def index(self) -> int:
        """Position within the day (0 = morning, 1 = afternoon)."""
        return 0 if self is HalfDay.MORNING else 1

    @property
    def label(self) -> str:
        return "AM" if self is HalfDay.MORNING else "PM"


class LeaveStatus(Enum):
    """Lifecycle state of a leave request."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    DECLARED = "declared"  # Self-declared, no approval step
    CANCELLED = "cancelled"


class ViewLevel(Enum):
    """Calendar resolutions, declared coarse to fine."""

    YEAR = "year"
    QUARTER = "quarter"
    MONTH = "month"
    WEEK = "week"


class LoadBucket(Enum):
    """Discrete load categories used for heatmap color-coding."""

    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    OVER = "over"


# Statuses of tasks that no longer need capacity
CLOSED_TASK_STATUSES = frozenset({"done", "validated"})


@dataclass(frozen=True)
class HalfDayPosition:
    """A (date, half-day) point on the calendar, independent of any user.

    Attributes:
        day: Calendar date.
        half_day: Morning or afternoon.
    """

    day: date
    half_day: HalfDay

    @property
    def sort_key(self) -> tuple[date, int]:
        return (self.day, self.half_day.index)

    def next(self) -> "HalfDayPosition":
        """The half-day immediately after this one in calendar order."""
        if self.half_day is HalfDay.MORNING:
            return HalfDayPosition(self.day, HalfDay.AFTERNOON)
        return HalfDayPosition(self.day + timedelta(days=1), HalfDay.MORNING)

    def __repr__(self) -> str:
        return f"HalfDayPosition({self.day.isoformat()} {self.half_day.label})"


def iter_half_days(start: HalfDayPosition) -> Iterator[HalfDayPosition]:
    """Yield consecutive half-days forever, starting at ``start``."""
    position = start
    while True:
        yield position
        position = position.next()


def iter_dates(start: date, end: date) -> Iterator[date]:
    """Yield every date from start to end inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def is_weekend(day: date) -> bool:
    """Saturday or Sunday."""
    return day.weekday() >= 5


@dataclass(frozen=True)
class HalfDaySlot:
    """One unit of planned work for a collaborator.

    At most one slot may exist per (user_id, date, half_day).

    Attributes:
        id: Unique identifier of the slot.
        task_id: Task the slot is planned for.
        user_id: Collaborator holding the slot.
        date: Calendar date of the slot.
        half_day: Morning or afternoon.
    """

    id: str
    task_id: str
    user_id: str
    date: date
    half_day: HalfDay

    @property
    def position(self) -> HalfDayPosition:
        return HalfDayPosition(self.date, self.half_day)

    @property
    def occupancy_key(self) -> tuple[str, date, HalfDay]:
        """Key that must be unique across all slots."""
        return (self.user_id, self.date, self.half_day)


@dataclass(frozen=True)
class Holiday:
    """A public holiday, blocking both half-days for everyone."""

    date: date
    name: str


@dataclass
class UserLeave:
    """A leave period for one collaborator.

    Attributes:
        id: Unique identifier of the leave.
        user_id: Collaborator on leave.
        start_date: First date of the leave (inclusive).
        end_date: Last date of the leave (inclusive).
        status: Lifecycle state; cancelled leaves block nothing.
        leave_type: Free-form category (paid leave, sick leave, ...).
        start_half_day: Half-day the leave starts on the first date.
        end_half_day: Half-day the leave ends on the last date.
    """

    id: str
    user_id: str
    start_date: date
    end_date: date
    status: LeaveStatus = LeaveStatus.CONFIRMED
    leave_type: str = "leave"
    start_half_day: HalfDay = HalfDay.MORNING
    end_half_day: HalfDay = HalfDay.AFTERNOON

    @property
    def is_active(self) -> bool:
        return self.status is not LeaveStatus.CANCELLED

    def covers(self, day: date) -> bool:
        """Check if a date falls within the inclusive leave range."""
        return self.start_date <= day <= self.end_date


@dataclass(frozen=True)
class TaskProgress:
    """Checklist progress of a task."""

    completed: int
    total: int

    @property
    def percent(self) -> int:
        if self.total <= 0:
            return 0
        return round(self.completed / self.total * 100)


@dataclass
class TaskRef:
    """Read-only projection of a task used for drag sourcing and display.

    Attributes:
        id: Task identifier.
        title: Display title.
        priority: urgent, high, medium or low.
        due_date: Optional due date.
        status: Workflow status of the task.
        duration_half_days: Half-day units the task requires, if known.
        progress: Optional checklist progress.
    """

    id: str
    title: str
    priority: str = "medium"
    due_date: Optional[date] = None
    status: str = "todo"
    duration_half_days: Optional[int] = None
    progress: Optional[TaskProgress] = None

    @property
    def duration_days(self) -> Optional[float]:
        if self.duration_half_days is None:
            return None
        return self.duration_half_days / 2

    @property
    def is_closed(self) -> bool:
        return self.status in CLOSED_TASK_STATUSES


@dataclass
class TeamMember:
    """A collaborator in the roster."""

    id: str
    name: str
    avatar_url: Optional[str] = None
    job_title: Optional[str] = None
    department: Optional[str] = None

    @property
    def initials(self) -> str:
        return "".join(part[0] for part in self.name.split() if part).upper()[:2]


@dataclass
class HalfDayCapacity:
    """State of one half-day for one collaborator."""

    slot: Optional[HalfDaySlot] = None
    is_leave: bool = False
    leave_type: Optional[str] = None
    is_holiday: bool = False
    holiday_name: Optional[str] = None
    is_weekend: bool = False

    @property
    def is_blocked(self) -> bool:
        """Non-working half-day (weekend or holiday)."""
        return self.is_weekend or self.is_holiday

    @property
    def is_occupied(self) -> bool:
        return self.slot is not None

    @property
    def is_assignable(self) -> bool:
        """Free of weekend, holiday and leave (occupancy not considered)."""
        return not self.is_blocked and not self.is_leave


@dataclass
class DayCapacity:
    """Both half-days of one date for one collaborator."""

    date: date
    morning: HalfDayCapacity = field(default_factory=HalfDayCapacity)
    afternoon: HalfDayCapacity = field(default_factory=HalfDayCapacity)

    def half(self, half_day: HalfDay) -> HalfDayCapacity:
        return self.morning if half_day is HalfDay.MORNING else self.afternoon

    def halves(self) -> list[tuple[HalfDay, HalfDayCapacity]]:
        return [(HalfDay.MORNING, self.morning), (HalfDay.AFTERNOON, self.afternoon)]

    @property
    def used_count(self) -> int:
        return sum(1 for _, h in self.halves() if h.is_occupied)

    @property
    def leave_count(self) -> int:
        """Leave half-days on a working day."""
        return sum(1 for _, h in self.halves() if h.is_leave and not h.is_blocked)

    @property
    def available_count(self) -> int:
        return sum(1 for _, h in self.halves() if h.is_assignable)


@dataclass
class MemberWorkload:
    """Capacity summary of one collaborator over the active date range.

    Attributes:
        member_id: Collaborator identifier.
        member_name: Display name.
        avatar_url: Optional avatar.
        job_title: Optional job title.
        department: Optional department.
        days: One DayCapacity per date in range.
        total_slots: 2 x number of days in range.
        used_slots: Slots planned in range.
        leave_slots: Leave half-days falling on working days.
        holiday_slots: Non-working half-days (weekends and holidays).
    """

    member_id: str
    member_name: str
    avatar_url: Optional[str] = None
    job_title: Optional[str] = None
    department: Optional[str] = None
    days: list[DayCapacity] = field(default_factory=list)
    total_slots: int = 0
    used_slots: int = 0
    leave_slots: int = 0
    holiday_slots: int = 0

    def __post_init__(self):
        self._days_by_date = {d.date: d for d in self.days}

    @property
    def available_slots(self) -> int:
        return self.total_slots - self.leave_slots - self.holiday_slots

    @property
    def capacity_percent(self) -> int:
        """Used share of available capacity, rounded (0 if none available)."""
        available = self.available_slots
        if available <= 0:
            return 0
        return round(self.used_slots / available * 100)

    @property
    def is_overloaded(self) -> bool:
        return self.used_slots > self.available_slots

    def day(self, day: date) -> Optional[DayCapacity]:
        """Get the capacity of a specific date, if it is in range."""
        return self._days_by_date.get(day)


@dataclass(frozen=True)
class DropTarget:
    """The cell a drag gesture currently hovers."""

    user_id: str
    date: date
    half_day: HalfDay

    @property
    def position(self) -> HalfDayPosition:
        return HalfDayPosition(self.date, self.half_day)


@dataclass
class CalendarViewState:
    """Process-local UI state of the calendar.

    Reset whenever the hosting view is reopened.
    """

    view_level: ViewLevel = ViewLevel.MONTH
    anchor_date: date = field(default_factory=date.today)
    selected_user_id: Optional[str] = None


@dataclass
class PlanningMetrics:
    """Headline KPIs of the planning board.

    Attributes:
        planned_count: Tasks having at least one slot.
        pending_count: Open tasks still waiting in the backlog.
        capacity_percent: Team-wide used / available, rounded.
        overloaded_members: Members with more used than available slots.
        total_days: Planned work expressed in days.
        conflict_count: Slots conflicting with leave.
    """

    planned_count: int = 0
    pending_count: int = 0
    capacity_percent: int = 0
    overloaded_members: int = 0
    total_days: float = 0.0
    conflict_count: int = 0

    @classmethod
    def calculate(
        cls,
        workloads: Iterable[MemberWorkload],
        tasks: Iterable[TaskRef],
        planned_task_ids: Iterable[str],
        conflict_count: int = 0,
    ) -> "PlanningMetrics":
        """Calculate KPIs from workload rows and the task list."""
        planned = set(planned_task_ids)
        pending = len(backlog_tasks(tasks, planned))

        total_available = 0
        total_used = 0
        overloaded = 0
        for workload in workloads:
            total_available += workload.available_slots
            total_used += workload.used_slots
            if workload.is_overloaded:
                overloaded += 1

        capacity = round(total_used / total_available * 100) if total_available > 0 else 0

        return cls(
            planned_count=len(planned),
            pending_count=pending,
            capacity_percent=capacity,
            overloaded_members=overloaded,
            total_days=total_used / 2,
            conflict_count=conflict_count,
        )


def backlog_tasks(
    tasks: Iterable[TaskRef],
    planned_task_ids: Iterable[str],
) -> list[TaskRef]:
    """Open tasks that have not been placed on the calendar yet."""
    planned = set(planned_task_ids)
    return [t for t in tasks if not t.is_closed and t.id not in planned]
