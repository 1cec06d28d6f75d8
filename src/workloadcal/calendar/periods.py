"""Calendar periods displayed at each view level.

Each view level has its own period variant carrying the anchor date and the
span it covers. Aggregation and rendering dispatch on the variant type, so
resolution-specific behavior lives beside the type rather than in
conditional chains over ViewLevel.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import ClassVar, Union

from dateutil.relativedelta import relativedelta

from workloadcal.domain.models import ViewLevel, iter_dates

# Zoom order, coarse to fine
ZOOM_ORDER = [ViewLevel.YEAR, ViewLevel.QUARTER, ViewLevel.MONTH, ViewLevel.WEEK]

# One navigation step per level
NAVIGATION_STEPS = {
    ViewLevel.YEAR: relativedelta(years=1),
    ViewLevel.QUARTER: relativedelta(months=3),
    ViewLevel.MONTH: relativedelta(months=1),
    ViewLevel.WEEK: relativedelta(weeks=1),
}


def week_start(day: date) -> date:
    """Monday of the ISO week containing ``day``."""
    return day - timedelta(days=day.weekday())


def shift_anchor(anchor: date, level: ViewLevel, steps: int) -> date:
    """Move an anchor by ``steps`` units of a view level (negative goes back).

    Month arithmetic clamps to the last day of shorter months
    (Jan 31 + 1 month is Feb 28/29).
    """
    return anchor + NAVIGATION_STEPS[level] * steps


@dataclass(frozen=True)
class WeekSpan:
    """One ISO week, as shown in a quarter or year column."""

    start: date

    @property
    def end(self) -> date:
        return self.start + timedelta(days=6)

    @property
    def iso_week(self) -> int:
        return self.start.isocalendar()[1]

    @property
    def days(self) -> list[date]:
        return list(iter_dates(self.start, self.end))

    @property
    def label(self) -> str:
        return f"W{self.iso_week:02d}"


def iso_weeks_between(start: date, end: date) -> list[WeekSpan]:
    """Every ISO week overlapping [start, end], in order."""
    weeks = []
    current = week_start(start)
    while current <= end:
        weeks.append(WeekSpan(current))
        current += timedelta(days=7)
    return weeks


@dataclass(frozen=True)
class WeekPeriod:
    anchor: date
    kind: ClassVar[ViewLevel] = ViewLevel.WEEK

    @property
    def start(self) -> date:
        return week_start(self.anchor)

    @property
    def end(self) -> date:
        return self.start + timedelta(days=6)

    @property
    def display_range(self) -> tuple[date, date]:
        return self.start, self.end

    @property
    def label(self) -> str:
        iso_week = self.start.isocalendar()[1]
        return f"Week {iso_week} • {self.start.strftime('%b %Y')}"


@dataclass(frozen=True)
class MonthPeriod:
    anchor: date
    kind: ClassVar[ViewLevel] = ViewLevel.MONTH

    @property
    def start(self) -> date:
        return self.anchor.replace(day=1)

    @property
    def end(self) -> date:
        return self.start + relativedelta(months=1, days=-1)

    @property
    def display_range(self) -> tuple[date, date]:
        return self.start, self.end

    @property
    def label(self) -> str:
        return self.start.strftime("%B %Y")


@dataclass(frozen=True)
class QuarterPeriod:
    anchor: date
    kind: ClassVar[ViewLevel] = ViewLevel.QUARTER

    @property
    def quarter(self) -> int:
        return (self.anchor.month - 1) // 3 + 1

    @property
    def start(self) -> date:
        return date(self.anchor.year, 3 * (self.quarter - 1) + 1, 1)

    @property
    def end(self) -> date:
        return self.start + relativedelta(months=3, days=-1)

    @property
    def weeks(self) -> list[WeekSpan]:
        return iso_weeks_between(self.start, self.end)

    @property
    def display_range(self) -> tuple[date, date]:
        """Full ISO weeks overlapping the quarter."""
        weeks = self.weeks
        return weeks[0].start, weeks[-1].end

    @property
    def label(self) -> str:
        return f"Q{self.quarter} {self.anchor.year}"


@dataclass(frozen=True)
class YearPeriod:
    anchor: date
    kind: ClassVar[ViewLevel] = ViewLevel.YEAR

    @property
    def start(self) -> date:
        return date(self.anchor.year, 1, 1)

    @property
    def end(self) -> date:
        return date(self.anchor.year, 12, 31)

    @property
    def weeks(self) -> list[WeekSpan]:
        return iso_weeks_between(self.start, self.end)

    @property
    def display_range(self) -> tuple[date, date]:
        weeks = self.weeks
        return weeks[0].start, weeks[-1].end

    @property
    def label(self) -> str:
        return str(self.anchor.year)


Period = Union[WeekPeriod, MonthPeriod, QuarterPeriod, YearPeriod]

_PERIOD_TYPES = {
    ViewLevel.WEEK: WeekPeriod,
    ViewLevel.MONTH: MonthPeriod,
    ViewLevel.QUARTER: QuarterPeriod,
    ViewLevel.YEAR: YearPeriod,
}


def period_for(level: ViewLevel, anchor: date) -> Period:
    """Build the period variant displayed at ``level`` around ``anchor``."""
    return _PERIOD_TYPES[level](anchor)
