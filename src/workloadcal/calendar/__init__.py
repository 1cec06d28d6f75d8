"""Multi-resolution calendar views: periods, aggregation and heatmaps."""

from workloadcal.calendar.aggregator import (
    CapacityAggregator,
    HalfDayGrid,
    WeekBucketGrid,
    build_member_workloads,
)
from workloadcal.calendar.controller import CalendarViewController, NavigationDirection
from workloadcal.calendar.heatmap import HeatmapCalculator
from workloadcal.calendar.palette import MemberColorArena
from workloadcal.calendar.periods import (
    MonthPeriod,
    QuarterPeriod,
    WeekPeriod,
    YearPeriod,
    period_for,
)

__all__ = [
    "CalendarViewController",
    "CapacityAggregator",
    "HalfDayGrid",
    "HeatmapCalculator",
    "MemberColorArena",
    "MonthPeriod",
    "NavigationDirection",
    "QuarterPeriod",
    "WeekBucketGrid",
    "WeekPeriod",
    "YearPeriod",
    "build_member_workloads",
    "period_for",
]
