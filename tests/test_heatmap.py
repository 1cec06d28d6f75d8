"""Tests for load heatmap bucketing."""

from datetime import date

import pytest

from workloadcal.calendar.heatmap import HeatmapCalculator
from workloadcal.domain.models import (
    DayCapacity,
    HalfDay,
    HalfDayCapacity,
    HalfDaySlot,
    LoadBucket,
    MemberWorkload,
)
from workloadcal.domain.policies import DefaultHeatmapPolicy


@pytest.fixture
def heatmap():
    return HeatmapCalculator()


class TestBucket:
    """Tests for HeatmapCalculator.bucket."""

    def test_half_is_medium(self, heatmap):
        """A ratio of exactly 0.5 is the medium lower bound, not low."""
        assert heatmap.bucket(5, 10) is LoadBucket.MEDIUM

    def test_zero_used_is_none(self, heatmap):
        assert heatmap.bucket(0, 10) is LoadBucket.NONE

    def test_overload_is_over(self, heatmap):
        assert heatmap.bucket(12, 10) is LoadBucket.OVER

    def test_zero_total_is_none(self, heatmap):
        assert heatmap.bucket(0, 0) is LoadBucket.NONE
        assert heatmap.bucket(3, 0) is LoadBucket.NONE

    @pytest.mark.parametrize(
        "used,expected",
        [
            (1, LoadBucket.LOW),
            (49, LoadBucket.LOW),
            (50, LoadBucket.MEDIUM),
            (79, LoadBucket.MEDIUM),
            (80, LoadBucket.HIGH),
            (99, LoadBucket.HIGH),
            (100, LoadBucket.OVER),
            (150, LoadBucket.OVER),
        ],
    )
    def test_boundaries_belong_to_higher_bucket(self, heatmap, used, expected):
        assert heatmap.bucket(used, 100) is expected

    def test_custom_thresholds(self):
        heatmap = HeatmapCalculator(DefaultHeatmapPolicy(medium_ratio=0.3))
        assert heatmap.bucket(3, 10) is LoadBucket.MEDIUM


class TestMemberBucket:
    """Member load is measured against available capacity."""

    def _workload(self, used: int) -> MemberWorkload:
        return MemberWorkload(
            member_id="U001",
            member_name="Alice Martin",
            total_slots=20,
            used_slots=used,
            leave_slots=4,
            holiday_slots=2,
        )

    def test_available_slots(self):
        workload = self._workload(10)
        assert workload.available_slots == 14
        assert workload.capacity_percent == 71

    def test_bucket_uses_available_not_total(self, heatmap):
        workload = self._workload(10)
        assert heatmap.bucket_for_member(workload) is heatmap.bucket(10, 14)

    def test_bucket_differs_from_total_based(self, heatmap):
        """12 of 14 available is high; 12 of 20 total would only be medium."""
        workload = self._workload(12)
        assert heatmap.bucket_for_member(workload) is LoadBucket.HIGH
        assert heatmap.bucket(12, workload.total_slots) is LoadBucket.MEDIUM

    def test_overloaded_member(self, heatmap):
        workload = self._workload(15)
        assert workload.is_overloaded
        assert heatmap.bucket_for_member(workload) is LoadBucket.OVER


class TestDayBucket:
    def test_day_half_on_leave(self, heatmap):
        slot = HalfDaySlot("S1", "T1", "U001", date(2025, 6, 2), HalfDay.MORNING)
        day = DayCapacity(
            date=date(2025, 6, 2),
            morning=HalfDayCapacity(slot=slot),
            afternoon=HalfDayCapacity(is_leave=True),
        )
        assert day.available_count == 1
        assert heatmap.bucket_for_day(day) is LoadBucket.OVER
