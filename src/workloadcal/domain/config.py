"""Engine-wide configuration."""

from dataclasses import dataclass, field

from workloadcal.domain.policies import (
    DefaultHeatmapPolicy,
    HeatmapPolicy,
    LeavePolicy,
    WholeDayLeavePolicy,
)


@dataclass
class CalendarConfig:
    """Configuration for the calendar engine.

    Attributes:
        max_scan_days: How far the placement walk may scan past its anchor
            before giving up.
        palette_size: Number of distinct member colors.
        full_block_confirm: Compatibility mode. When True, a confirmed
            placement always applies one contiguous block whatever divisor
            was selected in the dialog.
        leave_policy: How leave records block half-days.
        heatmap_policy: How load ratios map to buckets.
    """

    max_scan_days: int = 366
    palette_size: int = 10
    full_block_confirm: bool = False
    leave_policy: LeavePolicy = field(default_factory=WholeDayLeavePolicy)
    heatmap_policy: HeatmapPolicy = field(default_factory=DefaultHeatmapPolicy)
