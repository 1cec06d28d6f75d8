"""Zoom, navigation and click-to-drill over the four calendar resolutions."""

import logging
from datetime import date
from enum import Enum
from typing import Iterable, Optional

from workloadcal.calendar.aggregator import CalendarGrid, CapacityAggregator
from workloadcal.calendar.periods import (
    ZOOM_ORDER,
    Period,
    period_for,
    shift_anchor,
)
from workloadcal.domain.config import CalendarConfig
from workloadcal.domain.models import (
    CalendarViewState,
    HalfDaySlot,
    Holiday,
    MemberWorkload,
    TeamMember,
    UserLeave,
    ViewLevel,
)

logger = logging.getLogger(__name__)


class NavigationDirection(Enum):
    PREV = "prev"
    NEXT = "next"

    @property
    def step(self) -> int:
        return -1 if self is NavigationDirection.PREV else 1


class CalendarViewController:
    """Owns the zoom level and anchor date of the calendar.

    Zoom levels are ordered coarse to fine: year, quarter, month, week.

    Example:
        >>> controller = CalendarViewController(ViewLevel.YEAR, date(2025, 6, 4))
        >>> controller.click_cell(date(2025, 4, 1))
        >>> controller.view_level
        <ViewLevel.QUARTER: 'quarter'>
    """

    def __init__(
        self,
        view_level: ViewLevel = ViewLevel.MONTH,
        anchor_date: Optional[date] = None,
        aggregator: Optional[CapacityAggregator] = None,
        today: Optional[date] = None,
        config: Optional[CalendarConfig] = None,
    ):
        """Initialize controller.

        Args:
            view_level: Starting resolution.
            anchor_date: Starting anchor; defaults to today.
            aggregator: Aggregator building the rendered grids. Defaults to
                one built from ``config``.
            today: Fixed "today" for the today action; defaults to date.today().
            config: Engine configuration.
        """
        self._initial_level = view_level
        self._today = today
        self.config = config or CalendarConfig()
        self.aggregator = aggregator or CapacityAggregator(config=self.config)
        self.state = CalendarViewState(
            view_level=view_level,
            anchor_date=anchor_date or self.today,
        )

    @property
    def today(self) -> date:
        return self._today or date.today()

    @property
    def view_level(self) -> ViewLevel:
        return self.state.view_level

    @property
    def anchor_date(self) -> date:
        return self.state.anchor_date

    @property
    def selected_user_id(self) -> Optional[str]:
        return self.state.selected_user_id

    # Zoom

    def can_zoom_in(self) -> bool:
        return ZOOM_ORDER.index(self.view_level) < len(ZOOM_ORDER) - 1

    def can_zoom_out(self) -> bool:
        return ZOOM_ORDER.index(self.view_level) > 0

    def zoom_in(self, day: Optional[date] = None) -> None:
        """Move one level finer, anchoring at ``day`` if given. No-op at week."""
        if not self.can_zoom_in():
            return
        self.state.view_level = ZOOM_ORDER[ZOOM_ORDER.index(self.view_level) + 1]
        if day is not None:
            self.state.anchor_date = day
        logger.debug("Zoomed in to %s at %s", self.view_level.value, self.anchor_date)

    def zoom_out(self) -> None:
        """Move one level coarser. No-op at year."""
        if not self.can_zoom_out():
            return
        self.state.view_level = ZOOM_ORDER[ZOOM_ORDER.index(self.view_level) - 1]
        logger.debug("Zoomed out to %s at %s", self.view_level.value, self.anchor_date)

    def click_cell(self, cell_start: date) -> None:
        """Drill into a cell; week cells are interactive and do not zoom."""
        if self.view_level is not ViewLevel.WEEK:
            self.zoom_in(cell_start)

    def set_view_level(self, level: ViewLevel) -> None:
        self.state.view_level = level

    # Navigation

    def navigate(self, direction: NavigationDirection) -> None:
        """Shift the anchor by one unit of the current level."""
        self.state.anchor_date = shift_anchor(
            self.anchor_date, self.view_level, direction.step
        )

    def go_today(self) -> None:
        """Reset the anchor to today, keeping the zoom level."""
        self.state.anchor_date = self.today

    def select_user(self, user_id: Optional[str]) -> None:
        """Restrict rendering to one collaborator (None shows everyone)."""
        self.state.selected_user_id = user_id

    def reset(self) -> None:
        """Back to the initial level, today's anchor and no user filter."""
        self.state = CalendarViewState(
            view_level=self._initial_level,
            anchor_date=self.today,
        )

    # Views

    @property
    def period(self) -> Period:
        return period_for(self.view_level, self.anchor_date)

    @property
    def date_range(self) -> tuple[date, date]:
        """Dates displayed at the current level."""
        return self.period.display_range

    @property
    def period_label(self) -> str:
        return self.period.label

    def render(self, workloads: Iterable[MemberWorkload]) -> CalendarGrid:
        """Aggregate pre-built workload rows for the current period."""
        return self.aggregator.aggregate(self.period, self._filter(workloads))

    def render_records(
        self,
        members: Iterable[TeamMember],
        slots: Iterable[HalfDaySlot],
        holidays: Iterable[Holiday],
        leaves: Iterable[UserLeave],
    ) -> CalendarGrid:
        """Project raw records over the displayed range and aggregate them."""
        members = [
            m for m in members
            if self.selected_user_id is None or m.id == self.selected_user_id
        ]
        return self.aggregator.aggregate_records(
            self.period, members, slots, holidays, leaves
        )

    def _filter(self, workloads: Iterable[MemberWorkload]) -> list[MemberWorkload]:
        if self.selected_user_id is None:
            return list(workloads)
        return [w for w in workloads if w.member_id == self.selected_user_id]
