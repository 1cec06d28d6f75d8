"""Policy definitions for calendar rules.

This module contains configurable policies for how leave blocks capacity and
how load ratios map to heatmap buckets. Policies are kept separate from the
calendar engine to allow independent testing and easy modification.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date

from workloadcal.domain.models import HalfDay, LoadBucket, UserLeave

# Heatmap boundaries; a ratio equal to a boundary belongs to the higher bucket
MEDIUM_LOAD_RATIO = 0.5
HIGH_LOAD_RATIO = 0.8
OVER_LOAD_RATIO = 1.0


class LeavePolicy(ABC):
    """Abstract base class for leave blocking rules."""

    @abstractmethod
    def blocks(self, leave: UserLeave, day: date, half_day: HalfDay) -> bool:
        """Check if a leave blocks a given half-day.

        Args:
            leave: The leave record (any status).
            day: Calendar date being checked.
            half_day: Half of the day being checked.

        Returns:
            True if the half-day is unavailable because of this leave.
        """
        pass


class HeatmapPolicy(ABC):
    """Abstract base class for load bucketing rules."""

    @abstractmethod
    def classify(self, ratio: float) -> LoadBucket:
        """Map a used/available ratio to a load bucket.

        Args:
            ratio: Used capacity divided by available capacity (> 0).

        Returns:
            The load bucket for the ratio.
        """
        pass


@dataclass
class WholeDayLeavePolicy(LeavePolicy):
    """Default leave policy.

    A non-cancelled leave blocks both half-days of every date in its
    inclusive range. Recorded start/end half-days are ignored.
    """

    def blocks(self, leave: UserLeave, day: date, half_day: HalfDay) -> bool:
        return leave.is_active and leave.covers(day)


@dataclass
class HalfDayLeavePolicy(LeavePolicy):
    """Leave policy honouring the recorded start and end half-days.

    - First date: the morning is blocked only if the leave starts in the
      morning; the afternoon is always blocked.
    - Last date: the morning is always blocked; the afternoon only if the
      leave ends in the afternoon.
    - Dates in between: both half-days are blocked.
    """

    def blocks(self, leave: UserLeave, day: date, half_day: HalfDay) -> bool:
        if not leave.is_active or not leave.covers(day):
            return False

        if day == leave.start_date and half_day is HalfDay.MORNING:
            if leave.start_half_day is not HalfDay.MORNING:
                return False
        if day == leave.end_date and half_day is HalfDay.AFTERNOON:
            if leave.end_half_day is not HalfDay.AFTERNOON:
                return False
        return True


@dataclass
class DefaultHeatmapPolicy(HeatmapPolicy):
    """Default heatmap thresholds.

    - ratio < 0.5: low
    - 0.5 <= ratio < 0.8: medium
    - 0.8 <= ratio < 1.0: high
    - ratio >= 1.0: over
    """

    medium_ratio: float = MEDIUM_LOAD_RATIO
    high_ratio: float = HIGH_LOAD_RATIO
    over_ratio: float = OVER_LOAD_RATIO

    def classify(self, ratio: float) -> LoadBucket:
        if ratio <= 0:
            return LoadBucket.NONE
        elif ratio < self.medium_ratio:
            return LoadBucket.LOW
        elif ratio < self.high_ratio:
            return LoadBucket.MEDIUM
        elif ratio < self.over_ratio:
            return LoadBucket.HIGH
        else:
            return LoadBucket.OVER
