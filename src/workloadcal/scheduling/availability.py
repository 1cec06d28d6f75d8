"""Availability resolution for half-day capacity units.

A half-day is assignable when it is a weekday, not a holiday and not covered
by a non-cancelled leave of the collaborator. An optional override supplied
by the slot service can restrict availability further (e.g. the half-day is
already occupied); its answer is ANDed with the local checks.
"""

from collections import defaultdict
from datetime import date
from enum import Enum
from typing import Callable, Iterable, Optional

from workloadcal.domain.models import (
    HalfDay,
    HalfDayPosition,
    Holiday,
    UserLeave,
    is_weekend,
)
from workloadcal.domain.policies import LeavePolicy, WholeDayLeavePolicy

HalfDayPredicate = Callable[[str, date, HalfDay], bool]


class BlockReason(Enum):
    """Why a half-day cannot receive an assignment."""

    WEEKEND = "weekend"
    HOLIDAY = "holiday"
    LEAVE = "leave"
    UNAVAILABLE = "unavailable"  # Rejected by the override


class AvailabilityResolver:
    """Pure predicate over (collaborator, date, half-day).

    The resolver holds no mutable state and is safe to call at arbitrarily
    high frequency (hover checks).

    Example:
        >>> resolver = AvailabilityResolver(holidays=holidays, leaves=leaves)
        >>> resolver.is_available("U001", date(2025, 6, 2), HalfDay.MORNING)
        True
    """

    def __init__(
        self,
        holidays: Iterable[Holiday] = (),
        leaves: Iterable[UserLeave] = (),
        override: Optional[HalfDayPredicate] = None,
        leave_policy: Optional[LeavePolicy] = None,
    ):
        """Initialize resolver with calendar data.

        Args:
            holidays: Holidays blocking every collaborator.
            leaves: Leave records; cancelled ones are ignored.
            override: Optional external predicate ANDed with local checks.
            leave_policy: Policy deciding which half-days a leave blocks.
        """
        self._holidays = {h.date: h for h in holidays}
        self._leaves: dict[str, list[UserLeave]] = defaultdict(list)
        for leave in leaves:
            if leave.is_active:
                self._leaves[leave.user_id].append(leave)
        self.override = override
        self.leave_policy = leave_policy or WholeDayLeavePolicy()

    def with_override(self, override: Optional[HalfDayPredicate]) -> "AvailabilityResolver":
        """Copy of this resolver using a different override."""
        leaves = [leave for user_leaves in self._leaves.values() for leave in user_leaves]
        return AvailabilityResolver(
            holidays=self._holidays.values(),
            leaves=leaves,
            override=override,
            leave_policy=self.leave_policy,
        )

    def holiday_on(self, day: date) -> Optional[Holiday]:
        return self._holidays.get(day)

    def leave_on(self, user_id: str, day: date, half_day: HalfDay) -> Optional[UserLeave]:
        """The first active leave blocking the half-day, if any."""
        for leave in self._leaves.get(user_id, ()):
            if self.leave_policy.blocks(leave, day, half_day):
                return leave
        return None

    def calendar_block(self, user_id: str, day: date, half_day: HalfDay) -> Optional[BlockReason]:
        """Weekend/holiday/leave check, in that order, ignoring the override."""
        if is_weekend(day):
            return BlockReason.WEEKEND
        if day in self._holidays:
            return BlockReason.HOLIDAY
        if self.leave_on(user_id, day, half_day) is not None:
            return BlockReason.LEAVE
        return None

    def block_reason(self, user_id: str, day: date, half_day: HalfDay) -> Optional[BlockReason]:
        """Why the half-day is unavailable, or None if it is assignable."""
        reason = self.calendar_block(user_id, day, half_day)
        if reason is not None:
            return reason
        if self.override is not None and not self.override(user_id, day, half_day):
            return BlockReason.UNAVAILABLE
        return None

    def is_available(self, user_id: str, day: date, half_day: HalfDay) -> bool:
        """Check if a half-day may receive an assignment."""
        return self.block_reason(user_id, day, half_day) is None

    def is_position_available(self, user_id: str, position: HalfDayPosition) -> bool:
        return self.is_available(user_id, position.day, position.half_day)
