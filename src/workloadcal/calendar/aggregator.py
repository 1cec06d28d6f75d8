"""Capacity aggregation at each calendar resolution.

This module turns raw slot, holiday and leave records into MemberWorkload
rows, then into the cell grids each view level renders:

- Week and month: one cell per half-day per collaborator.
- Quarter: one cell per ISO week per collaborator, summing occupied and
  leave half-days over the week's seven days.
- Year: the same weekly aggregation, shown as a load bucket only, with no
  drop interaction.

Workload rows are pure projections. They are rebuilt from the source
records on every refresh and never patched in place.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from functools import singledispatchmethod
from typing import Iterable, Optional, Union

from workloadcal.calendar.heatmap import HeatmapCalculator
from workloadcal.calendar.periods import (
    MonthPeriod,
    Period,
    QuarterPeriod,
    WeekPeriod,
    WeekSpan,
    YearPeriod,
)
from workloadcal.domain.models import (
    DayCapacity,
    HalfDay,
    HalfDayCapacity,
    HalfDaySlot,
    Holiday,
    LoadBucket,
    MemberWorkload,
    TeamMember,
    UserLeave,
    iter_dates,
    is_weekend,
)
from workloadcal.domain.config import CalendarConfig
from workloadcal.domain.policies import LeavePolicy, WholeDayLeavePolicy


def build_member_workloads(
    members: Iterable[TeamMember],
    slots: Iterable[HalfDaySlot],
    holidays: Iterable[Holiday],
    leaves: Iterable[UserLeave],
    start: date,
    end: date,
    leave_policy: Optional[LeavePolicy] = None,
) -> list[MemberWorkload]:
    """Project raw records into one MemberWorkload per collaborator.

    Args:
        members: Roster, in display order.
        slots: Planned half-day slots (any range; filtered here).
        holidays: Public holidays.
        leaves: Leave records; cancelled ones block nothing.
        start: First date of the range (inclusive).
        end: Last date of the range (inclusive).
        leave_policy: Decides which half-days a leave blocks.

    Returns:
        Workload rows in roster order.
    """
    leave_policy = leave_policy or WholeDayLeavePolicy()
    holidays_by_date = {h.date: h for h in holidays}

    slots_by_key: dict[tuple[str, date, HalfDay], HalfDaySlot] = {}
    for slot in slots:
        if start <= slot.date <= end:
            slots_by_key.setdefault(slot.occupancy_key, slot)

    leaves_by_user: dict[str, list[UserLeave]] = defaultdict(list)
    for leave in leaves:
        if leave.is_active:
            leaves_by_user[leave.user_id].append(leave)

    dates = list(iter_dates(start, end))
    workloads = []

    for member in members:
        member_leaves = leaves_by_user.get(member.id, [])
        days = []
        used = leave_count = blocked = 0

        for day in dates:
            holiday = holidays_by_date.get(day)
            weekend = is_weekend(day)
            capacity = DayCapacity(date=day)

            for half_day in HalfDay:
                leave = next(
                    (lv for lv in member_leaves if leave_policy.blocks(lv, day, half_day)),
                    None,
                )
                half = HalfDayCapacity(
                    slot=slots_by_key.get((member.id, day, half_day)),
                    is_leave=leave is not None,
                    leave_type=leave.leave_type if leave else None,
                    is_holiday=holiday is not None,
                    holiday_name=holiday.name if holiday else None,
                    is_weekend=weekend,
                )
                if half_day is HalfDay.MORNING:
                    capacity.morning = half
                else:
                    capacity.afternoon = half

                if half.is_occupied:
                    used += 1
                if half.is_blocked:
                    blocked += 1
                elif half.is_leave:
                    leave_count += 1

            days.append(capacity)

        workloads.append(
            MemberWorkload(
                member_id=member.id,
                member_name=member.name,
                avatar_url=member.avatar_url,
                job_title=member.job_title,
                department=member.department,
                days=days,
                total_slots=2 * len(dates),
                used_slots=used,
                leave_slots=leave_count,
                holiday_slots=blocked,
            )
        )

    return workloads


@dataclass
class HalfDayCell:
    """One half-day cell of the week and month views."""

    user_id: str
    date: date
    half_day: HalfDay
    capacity: HalfDayCapacity

    @property
    def is_blocked(self) -> bool:
        return self.capacity.is_blocked

    @property
    def droppable(self) -> bool:
        """Whether a drop target is registered on this cell."""
        return self.capacity.is_assignable and not self.capacity.is_occupied


@dataclass
class HalfDayRow:
    workload: MemberWorkload
    cells: list[HalfDayCell] = field(default_factory=list)
    bucket: LoadBucket = LoadBucket.NONE

    def cell(self, day: date, half_day: HalfDay) -> Optional[HalfDayCell]:
        for cell in self.cells:
            if cell.date == day and cell.half_day is half_day:
                return cell
        return None


@dataclass
class HalfDayGrid:
    """Half-day resolution grid (week and month views)."""

    period: Union[WeekPeriod, MonthPeriod]
    dates: list[date] = field(default_factory=list)
    rows: list[HalfDayRow] = field(default_factory=list)
    drop_enabled: bool = True


@dataclass
class WeekBucketCell:
    """One ISO-week cell of the quarter and year views.

    Attributes:
        user_id: Collaborator of the row.
        week: The ISO week aggregated.
        used: Occupied half-days over the week's seven days.
        leave: Leave half-days on working days of the week.
        available: Half-days neither blocked nor on leave.
        bucket: Load bucket of used against available.
        drop_enabled: Whether drops are accepted on this cell.
    """

    user_id: str
    week: WeekSpan
    used: int = 0
    leave: int = 0
    available: int = 0
    bucket: LoadBucket = LoadBucket.NONE
    drop_enabled: bool = True


@dataclass
class WeekBucketRow:
    workload: MemberWorkload
    cells: list[WeekBucketCell] = field(default_factory=list)
    bucket: LoadBucket = LoadBucket.NONE


@dataclass
class WeekBucketGrid:
    """Weekly resolution grid (quarter and year views)."""

    period: Union[QuarterPeriod, YearPeriod]
    weeks: list[WeekSpan] = field(default_factory=list)
    rows: list[WeekBucketRow] = field(default_factory=list)
    drop_enabled: bool = True


CalendarGrid = Union[HalfDayGrid, WeekBucketGrid]


class CapacityAggregator:
    """Builds the grid a view level renders from workload rows.

    Dispatches on the period variant; each resolution has its own
    aggregation function.

    Example:
        >>> aggregator = CapacityAggregator()
        >>> grid = aggregator.aggregate(QuarterPeriod(date(2025, 5, 14)), workloads)
        >>> grid.rows[0].cells[0].bucket
    """

    def __init__(
        self,
        heatmap: Optional[HeatmapCalculator] = None,
        leave_policy: Optional[LeavePolicy] = None,
        config: Optional[CalendarConfig] = None,
    ):
        """Initialize aggregator.

        Args:
            heatmap: Bucket calculator. Defaults to one using the config's
                heatmap policy.
            leave_policy: Leave blocking rule. Defaults to the config's.
            config: Engine configuration.
        """
        self.config = config or CalendarConfig()
        self.heatmap = heatmap or HeatmapCalculator(self.config.heatmap_policy)
        self.leave_policy = leave_policy or self.config.leave_policy

    def aggregate_records(
        self,
        period: Period,
        members: Iterable[TeamMember],
        slots: Iterable[HalfDaySlot],
        holidays: Iterable[Holiday],
        leaves: Iterable[UserLeave],
    ) -> CalendarGrid:
        """Project raw records over the period's display range, then aggregate."""
        start, end = period.display_range
        workloads = build_member_workloads(
            members, slots, holidays, leaves, start, end, self.leave_policy
        )
        return self.aggregate(period, workloads)

    @singledispatchmethod
    def aggregate(self, period, workloads: Iterable[MemberWorkload]) -> CalendarGrid:
        raise TypeError(f"Unsupported period type: {type(period).__name__}")

    @aggregate.register(WeekPeriod)
    @aggregate.register(MonthPeriod)
    def _aggregate_half_days(self, period, workloads: Iterable[MemberWorkload]) -> HalfDayGrid:
        start, end = period.display_range
        dates = list(iter_dates(start, end))
        grid = HalfDayGrid(period=period, dates=dates)

        for workload in workloads:
            row = HalfDayRow(
                workload=workload,
                bucket=self.heatmap.bucket_for_member(workload),
            )
            for day in dates:
                capacity = workload.day(day) or DayCapacity(date=day)
                for half_day, half in capacity.halves():
                    row.cells.append(
                        HalfDayCell(
                            user_id=workload.member_id,
                            date=day,
                            half_day=half_day,
                            capacity=half,
                        )
                    )
            grid.rows.append(row)

        return grid

    @aggregate.register
    def _aggregate_quarter(
        self, period: QuarterPeriod, workloads: Iterable[MemberWorkload]
    ) -> WeekBucketGrid:
        return self._aggregate_weeks(period, workloads, drop_enabled=True)

    @aggregate.register
    def _aggregate_year(
        self, period: YearPeriod, workloads: Iterable[MemberWorkload]
    ) -> WeekBucketGrid:
        # Visualization only
        return self._aggregate_weeks(period, workloads, drop_enabled=False)

    def week_cell(
        self,
        workload: MemberWorkload,
        week: WeekSpan,
        drop_enabled: bool = True,
    ) -> WeekBucketCell:
        """Sum one collaborator's capacity over an ISO week."""
        cell = WeekBucketCell(
            user_id=workload.member_id,
            week=week,
            drop_enabled=drop_enabled,
        )
        for day in week.days:
            capacity = workload.day(day)
            if capacity is None:
                continue
            cell.used += capacity.used_count
            cell.leave += capacity.leave_count
            cell.available += capacity.available_count

        cell.bucket = self.heatmap.bucket(cell.used, cell.available)
        return cell

    def _aggregate_weeks(
        self,
        period: Union[QuarterPeriod, YearPeriod],
        workloads: Iterable[MemberWorkload],
        drop_enabled: bool,
    ) -> WeekBucketGrid:
        weeks = period.weeks
        grid = WeekBucketGrid(period=period, weeks=weeks, drop_enabled=drop_enabled)

        for workload in workloads:
            grid.rows.append(
                WeekBucketRow(
                    workload=workload,
                    cells=[self.week_cell(workload, week, drop_enabled) for week in weeks],
                    bucket=self.heatmap.bucket_for_member(workload),
                )
            )

        return grid
