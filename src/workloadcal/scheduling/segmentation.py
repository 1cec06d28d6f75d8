"""Segmentation planning for multi-half-day tasks.

A task requiring D half-days can be split into n equal segments for every
divisor n of D. The placement walk scans forward from an anchor half-day,
consuming assignable half-days and skipping unavailable ones, until D units
have been consumed across n segments of D / n units each.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Iterable, Optional

from workloadcal.domain.config import CalendarConfig
from workloadcal.domain.models import HalfDay, HalfDayPosition, iter_half_days
from workloadcal.scheduling.availability import AvailabilityResolver

logger = logging.getLogger(__name__)


class InvalidDurationError(ValueError):
    """Raised when a task duration is not a positive number of half-days."""


class PlacementError(ValueError):
    """Raised when a placement walk cannot be completed."""


def valid_segment_counts(duration_half_days: int) -> list[int]:
    """All divisors of a duration, ascending.

    Args:
        duration_half_days: Total half-day units the task requires.

    Returns:
        Every n in [1, D] with D mod n == 0 (always starts with 1, ends with D).
    """
    if duration_half_days < 1:
        raise InvalidDurationError(
            f"Duration must be at least one half-day, got {duration_half_days}"
        )
    return [n for n in range(1, duration_half_days + 1) if duration_half_days % n == 0]


@dataclass
class PlacementPlan:
    """Result of a placement walk.

    Attributes:
        user_id: Collaborator the plan is for.
        duration: Total half-day units consumed.
        segments: Consumed half-days grouped per segment, in calendar order.
        skipped: Unavailable half-days passed over during the walk.
    """

    user_id: str
    duration: int
    segments: list[list[HalfDayPosition]] = field(default_factory=list)
    skipped: list[HalfDayPosition] = field(default_factory=list)

    @property
    def segment_count(self) -> int:
        return len(self.segments)

    @property
    def segment_length(self) -> int:
        return self.duration // self.segment_count if self.segments else 0

    @property
    def positions(self) -> list[HalfDayPosition]:
        """All consumed half-days in calendar order."""
        return [p for segment in self.segments for p in segment]

    @property
    def start(self) -> HalfDayPosition:
        return self.segments[0][0]

    @property
    def end(self) -> HalfDayPosition:
        return self.segments[-1][-1]


class SegmentationPlanner:
    """Computes valid splits and placement walks for tasks.

    Example:
        >>> planner = SegmentationPlanner(resolver)
        >>> plan = planner.plan("U001", date(2025, 6, 2), HalfDay.MORNING, 4)
        >>> [p.day for p in plan.positions]
    """

    def __init__(
        self,
        resolver: AvailabilityResolver,
        config: Optional[CalendarConfig] = None,
    ):
        self.resolver = resolver
        self.config = config or CalendarConfig()

    def valid_segment_counts(self, duration_half_days: int) -> list[int]:
        return valid_segment_counts(duration_half_days)

    def plan(
        self,
        user_id: str,
        anchor_date: date,
        anchor_half_day: HalfDay,
        duration: int,
        segments: int = 1,
        released: Iterable[HalfDayPosition] = (),
    ) -> PlacementPlan:
        """Run the placement walk from an anchor half-day.

        Args:
            user_id: Collaborator to place for.
            anchor_date: Date the walk starts on.
            anchor_half_day: Half-day the walk starts on.
            duration: Total half-day units to consume.
            segments: Number of equal segments; must divide ``duration``.
            released: Half-days being vacated by this operation. Only the
                calendar checks apply to them, not the occupancy override.

        Returns:
            The completed PlacementPlan.

        Raises:
            InvalidDurationError: If duration < 1.
            PlacementError: If segments does not divide duration, or the walk
                exhausts ``max_scan_days`` before consuming every unit.
        """
        if segments not in valid_segment_counts(duration):
            raise PlacementError(
                f"{segments} segments do not evenly divide {duration} half-days"
            )

        released_set = set(released)
        segment_length = duration // segments
        scan_limit = anchor_date + timedelta(days=self.config.max_scan_days)

        plan = PlacementPlan(user_id=user_id, duration=duration)
        current: list[HalfDayPosition] = []
        consumed = 0

        for position in iter_half_days(HalfDayPosition(anchor_date, anchor_half_day)):
            if consumed == duration:
                break
            if position.day > scan_limit:
                logger.warning(
                    "Placement walk for %s from %s found %d/%d half-days within %d days",
                    user_id, anchor_date, consumed, duration, self.config.max_scan_days,
                )
                raise PlacementError(
                    f"Only {consumed} of {duration} half-days available within "
                    f"{self.config.max_scan_days} days of {anchor_date}"
                )

            if self._is_free(user_id, position, released_set):
                current.append(position)
                consumed += 1
                if len(current) == segment_length:
                    plan.segments.append(current)
                    current = []
            else:
                plan.skipped.append(position)

        return plan

    def replan(
        self,
        user_id: str,
        existing: Iterable[HalfDayPosition],
        duration: int,
        segments: int,
    ) -> PlacementPlan:
        """Re-segment an existing placement.

        The existing half-days are discarded and the walk reruns from the
        earliest of them.

        Args:
            user_id: Collaborator holding the placement.
            existing: Half-days currently occupied by the task.
            duration: Total half-day units of the task.
            segments: New number of segments.

        Returns:
            The fresh PlacementPlan.
        """
        existing = list(existing)
        if not existing:
            raise PlacementError("Nothing to re-segment: the task has no slots")

        anchor = min(existing, key=lambda p: p.sort_key)
        return self.plan(
            user_id,
            anchor.day,
            anchor.half_day,
            duration,
            segments=segments,
            released=existing,
        )

    def first_available(
        self,
        user_id: str,
        start: date,
        end: date,
    ) -> Optional[HalfDayPosition]:
        """First assignable half-day between two dates (inclusive), in calendar order."""
        for position in iter_half_days(HalfDayPosition(start, HalfDay.MORNING)):
            if position.day > end:
                return None
            if self.resolver.is_position_available(user_id, position):
                return position
        return None

    def _is_free(
        self,
        user_id: str,
        position: HalfDayPosition,
        released: set[HalfDayPosition],
    ) -> bool:
        if position in released:
            return self.resolver.calendar_block(user_id, position.day, position.half_day) is None
        return self.resolver.is_position_available(user_id, position)
