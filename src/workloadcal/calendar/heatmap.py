"""Load heatmap bucketing, reusable at any resolution."""

from typing import Optional

from workloadcal.domain.models import DayCapacity, LoadBucket, MemberWorkload
from workloadcal.domain.policies import DefaultHeatmapPolicy, HeatmapPolicy

# Fill colors per bucket (RGB tuples, 0-1 scale)
BUCKET_COLORS = {
    LoadBucket.NONE: (0.95, 0.95, 0.95),  # Light gray
    LoadBucket.LOW: (0.72, 0.88, 0.72),  # Green
    LoadBucket.MEDIUM: (0.98, 0.86, 0.45),  # Yellow
    LoadBucket.HIGH: (0.98, 0.65, 0.35),  # Orange
    LoadBucket.OVER: (0.90, 0.35, 0.35),  # Red
}


class HeatmapCalculator:
    """Maps a (used, available) pair to a discrete load bucket.

    Example:
        >>> HeatmapCalculator().bucket(5, 10)
        <LoadBucket.MEDIUM: 'medium'>
    """

    def __init__(self, policy: Optional[HeatmapPolicy] = None):
        self.policy = policy or DefaultHeatmapPolicy()

    def bucket(self, used: int, total: int) -> LoadBucket:
        """Bucket a used/total pair; an empty capacity is always NONE."""
        if total <= 0:
            return LoadBucket.NONE
        return self.policy.classify(used / total)

    def bucket_for_member(self, workload: MemberWorkload) -> LoadBucket:
        """Member load measured against available, not total, slots."""
        return self.bucket(workload.used_slots, workload.available_slots)

    def bucket_for_day(self, day: DayCapacity) -> LoadBucket:
        return self.bucket(day.used_count, day.available_count)

    def color_of(self, bucket: LoadBucket) -> tuple[float, float, float]:
        return BUCKET_COLORS[bucket]
