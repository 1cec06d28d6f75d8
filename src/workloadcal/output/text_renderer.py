"""Plain-text rendering of calendar grids.

Half-day grids print one character per half-day:

    #  occupied        L  leave
    H  holiday         -  weekend
    .  free

Week grids print one column per ISO week with the used half-day count and
a load bucket marker.
"""

from functools import singledispatchmethod
from pathlib import Path
from typing import Union

from workloadcal.calendar.aggregator import (
    CalendarGrid,
    HalfDayCell,
    HalfDayGrid,
    WeekBucketGrid,
)
from workloadcal.domain.models import LoadBucket

BUCKET_MARKERS = {
    LoadBucket.NONE: " ",
    LoadBucket.LOW: "+",
    LoadBucket.MEDIUM: "*",
    LoadBucket.HIGH: "!",
    LoadBucket.OVER: "X",
}

NAME_WIDTH = 18


def cell_symbol(cell: HalfDayCell) -> str:
    capacity = cell.capacity
    if capacity.is_occupied:
        return "#"
    if capacity.is_weekend:
        return "-"
    if capacity.is_holiday:
        return "H"
    if capacity.is_leave:
        return "L"
    return "."


class TextCalendarRenderer:
    """Renders a calendar grid as text for terminals and debugging.

    Example:
        >>> print(TextCalendarRenderer().render(controller.render(workloads)))
    """

    def generate(self, grid: CalendarGrid, output_path: Union[str, Path]) -> str:
        """Render the grid, save it to a file and return the text."""
        content = self.render(grid)
        Path(output_path).write_text(content)
        return content

    @singledispatchmethod
    def render(self, grid) -> str:
        raise TypeError(f"Unsupported grid type: {type(grid).__name__}")

    @render.register
    def _render_half_days(self, grid: HalfDayGrid) -> str:
        lines = [grid.period.label, ""]

        header = " " * NAME_WIDTH
        for day in grid.dates:
            header += f" {day.day:>2}"
        lines.append(header)

        weekdays = " " * NAME_WIDTH
        for day in grid.dates:
            weekdays += f" {day.strftime('%a')[:2]}"
        lines.append(weekdays)

        for row in grid.rows:
            line = f"{row.workload.member_name[:NAME_WIDTH - 1]:<{NAME_WIDTH}}"
            # Cells come in (morning, afternoon) pairs
            for i in range(0, len(row.cells), 2):
                pair = row.cells[i:i + 2]
                line += " " + "".join(cell_symbol(c) for c in pair)
            line += f"  {row.workload.capacity_percent:>3}% {BUCKET_MARKERS[row.bucket]}"
            lines.append(line)

        lines.append("")
        lines.append("# occupied  L leave  H holiday  - weekend  . free")
        return "\n".join(lines) + "\n"

    @render.register
    def _render_weeks(self, grid: WeekBucketGrid) -> str:
        lines = [grid.period.label, ""]

        header = " " * NAME_WIDTH
        for week in grid.weeks:
            header += f" {week.label:>4}"
        lines.append(header)

        for row in grid.rows:
            line = f"{row.workload.member_name[:NAME_WIDTH - 1]:<{NAME_WIDTH}}"
            for cell in row.cells:
                line += f" {cell.used:>3}{BUCKET_MARKERS[cell.bucket]}"
            line += f"  {row.workload.capacity_percent:>3}%"
            lines.append(line)

        lines.append("")
        lines.append("Used half-days per week;  + low  * medium  ! high  X over")
        if not grid.drop_enabled:
            lines.append("(view only)")
        return "\n".join(lines) + "\n"
