"""PDF generation for calendar output.

This module creates printable PDF calendars showing:
- Per-collaborator occupancy rows at half-day resolution (week, month)
- Weekly load heatmaps (quarter, year)
- A summary page with the planning KPIs
"""

from io import BytesIO
from pathlib import Path
from typing import Optional, Union

from workloadcal.calendar.aggregator import (
    CalendarGrid,
    HalfDayCell,
    HalfDayGrid,
    WeekBucketGrid,
)
from workloadcal.calendar.heatmap import BUCKET_COLORS
from workloadcal.calendar.palette import MemberColorArena
from workloadcal.domain.models import LoadBucket, PlanningMetrics

# Cell colors (RGB tuples, 0-1 scale)
COLORS = {
    "free": (1.0, 1.0, 1.0),  # White
    "weekend": (0.85, 0.85, 0.85),  # Gray
    "holiday": (0.80, 0.75, 0.90),  # Lavender
    "leave": (0.95, 0.80, 0.55),  # Sand
}


class CalendarPDFGenerator:
    """Generates printable PDF calendars from aggregated grids.

    Example:
        >>> generator = CalendarPDFGenerator()
        >>> generator.generate(controller.render(workloads), "calendar.pdf")
    """

    def __init__(
        self,
        page_width: float = 792,  # Letter landscape width (11")
        page_height: float = 612,  # Letter landscape height (8.5")
        margin: float = 36,  # 0.5 inch margins
        colors: Optional[MemberColorArena] = None,
    ):
        self.page_width = page_width
        self.page_height = page_height
        self.margin = margin
        self.colors = colors or MemberColorArena()

    def generate(
        self,
        grid: CalendarGrid,
        output_path: Union[str, Path],
        metrics: Optional[PlanningMetrics] = None,
    ) -> None:
        """Generate PDF calendar and save to file.

        Args:
            grid: The aggregated grid to render.
            output_path: Path to save the PDF.
            metrics: Optional KPIs; adds a summary page when given.
        """
        canvas_module = self._canvas_module()
        from reportlab.lib.pagesizes import landscape, letter

        c = canvas_module.Canvas(str(output_path), pagesize=landscape(letter))
        self._draw(c, grid, metrics)
        c.save()

    def generate_to_buffer(
        self,
        grid: CalendarGrid,
        metrics: Optional[PlanningMetrics] = None,
    ) -> BytesIO:
        """Generate PDF and return as bytes buffer."""
        canvas_module = self._canvas_module()
        from reportlab.lib.pagesizes import landscape, letter

        buffer = BytesIO()
        c = canvas_module.Canvas(buffer, pagesize=landscape(letter))
        self._draw(c, grid, metrics)
        c.save()
        buffer.seek(0)
        return buffer

    @staticmethod
    def _canvas_module():
        try:
            from reportlab.pdfgen import canvas
        except ImportError:
            raise ImportError(
                "reportlab is required for PDF generation. "
                "Install with: pip install reportlab"
            )
        return canvas

    def _draw(self, c, grid: CalendarGrid, metrics: Optional[PlanningMetrics]) -> None:
        self.colors.register(row.workload.member_id for row in grid.rows)

        if isinstance(grid, HalfDayGrid):
            self._draw_half_day_pages(c, grid)
        elif isinstance(grid, WeekBucketGrid):
            self._draw_week_pages(c, grid)
        else:
            raise TypeError(f"Unsupported grid type: {type(grid).__name__}")

        if metrics is not None:
            self._draw_summary_page(c, grid, metrics)

    def _paginate(self, rows: list, row_height: float) -> list[list]:
        header_height = 60
        footer_height = 40
        usable_height = self.page_height - 2 * self.margin - header_height - footer_height
        rows_per_page = max(1, int(usable_height / row_height))
        pages = [rows[i:i + rows_per_page] for i in range(0, len(rows), rows_per_page)]
        return pages or [[]]

    def _draw_half_day_pages(self, c, grid: HalfDayGrid) -> None:
        """Draw occupancy rows, one column pair per date."""
        row_height = 22
        grid_left = self.margin + 120  # Space for names
        grid_width = self.page_width - self.margin - 20 - grid_left
        cell_width = grid_width / (2 * max(1, len(grid.dates)))

        pages = self._paginate(grid.rows, row_height)
        for page_num, page_rows in enumerate(pages, 1):
            self._draw_header(c, grid.period.label, f"{len(grid.rows)} collaborators")

            # Date axis
            axis_y = self.page_height - self.margin - 75
            c.setFont("Helvetica", 7)
            c.setFillColorRGB(0, 0, 0)
            for i, day in enumerate(grid.dates):
                x = grid_left + (2 * i + 1) * cell_width
                c.drawCentredString(x, axis_y + 8, day.strftime("%a")[:2])
                c.drawCentredString(x, axis_y, str(day.day))

            y = axis_y - 10
            for row in page_rows:
                y -= row_height
                self._draw_member_label(c, row.workload.member_id, row.workload.member_name, y, row_height)
                for i, cell in enumerate(row.cells):
                    x = grid_left + i * cell_width
                    self._draw_half_day_cell(c, cell, x, y, cell_width, row_height - 4)
                c.setFont("Helvetica", 7)
                c.setFillColorRGB(0, 0, 0)
                c.drawString(
                    grid_left + grid_width + 3,
                    y + row_height / 2 - 4,
                    f"{row.workload.capacity_percent}%",
                )

            self._draw_cell_legend(c, self.margin, self.margin + 10)
            self._draw_page_number(c, page_num, len(pages))
            c.showPage()

    def _draw_half_day_cell(
        self,
        c,
        cell: HalfDayCell,
        x: float,
        y: float,
        width: float,
        height: float,
    ) -> None:
        capacity = cell.capacity
        if capacity.is_occupied:
            color = self.colors.color_of(cell.user_id)
        elif capacity.is_weekend:
            color = COLORS["weekend"]
        elif capacity.is_holiday:
            color = COLORS["holiday"]
        elif capacity.is_leave:
            color = COLORS["leave"]
        else:
            color = COLORS["free"]

        c.setFillColorRGB(*color)
        c.setStrokeColorRGB(0.8, 0.8, 0.8)
        c.setLineWidth(0.3)
        c.rect(x, y, width, height, fill=1, stroke=1)

    def _draw_week_pages(self, c, grid: WeekBucketGrid) -> None:
        """Draw the weekly heatmap, one column per ISO week."""
        row_height = 18
        grid_left = self.margin + 120
        grid_width = self.page_width - self.margin - 20 - grid_left
        cell_width = grid_width / max(1, len(grid.weeks))

        subtitle = f"{len(grid.rows)} collaborators, {len(grid.weeks)} weeks"
        if not grid.drop_enabled:
            subtitle += " (view only)"

        pages = self._paginate(grid.rows, row_height)
        for page_num, page_rows in enumerate(pages, 1):
            self._draw_header(c, grid.period.label, subtitle)

            axis_y = self.page_height - self.margin - 75
            c.setFont("Helvetica", 6)
            c.setFillColorRGB(0, 0, 0)
            for i, week in enumerate(grid.weeks):
                c.drawCentredString(grid_left + (i + 0.5) * cell_width, axis_y, week.label)

            y = axis_y - 10
            for row in page_rows:
                y -= row_height
                self._draw_member_label(c, row.workload.member_id, row.workload.member_name, y, row_height)
                for i, cell in enumerate(row.cells):
                    x = grid_left + i * cell_width
                    c.setFillColorRGB(*BUCKET_COLORS[cell.bucket])
                    c.setStrokeColorRGB(1, 1, 1)
                    c.rect(x, y, cell_width, row_height - 3, fill=1, stroke=1)
                    if cell.used and cell_width > 14:
                        c.setFillColorRGB(0, 0, 0)
                        c.setFont("Helvetica", 6)
                        c.drawCentredString(x + cell_width / 2, y + row_height / 2 - 4, str(cell.used))

            self._draw_bucket_legend(c, self.margin, self.margin + 10)
            self._draw_page_number(c, page_num, len(pages))
            c.showPage()

    def _draw_header(self, c, title: str, subtitle: str) -> None:
        """Draw page header with period and title."""
        c.setFillColorRGB(0, 0, 0)
        c.setFont("Helvetica-Bold", 16)
        c.drawString(
            self.margin,
            self.page_height - self.margin - 20,
            f"Workload Calendar - {title}",
        )

        c.setFont("Helvetica", 10)
        c.drawString(self.margin, self.page_height - self.margin - 35, subtitle)

    def _draw_member_label(self, c, member_id: str, name: str, y: float, row_height: float) -> None:
        c.setFillColorRGB(*self.colors.color_of(member_id))
        c.circle(self.margin + 4, y + row_height / 2 - 1, 3, fill=1, stroke=0)
        c.setFillColorRGB(0, 0, 0)
        c.setFont("Helvetica", 9)
        c.drawString(self.margin + 12, y + row_height / 2 - 4, name[:18])

    def _draw_page_number(self, c, page_num: int, total_pages: int) -> None:
        c.setFillColorRGB(0, 0, 0)
        c.setFont("Helvetica", 9)
        c.drawCentredString(
            self.page_width / 2,
            self.margin - 10,
            f"Page {page_num} of {total_pages}",
        )

    def _draw_cell_legend(self, c, x: float, y: float) -> None:
        items = [
            ("weekend", "Weekend"),
            ("holiday", "Holiday"),
            ("leave", "Leave"),
            ("free", "Free"),
        ]
        self._draw_legend(c, x, y, [(COLORS[key], label) for key, label in items])

    def _draw_bucket_legend(self, c, x: float, y: float) -> None:
        items = [
            (LoadBucket.NONE, "None"),
            (LoadBucket.LOW, "< 50%"),
            (LoadBucket.MEDIUM, "50-80%"),
            (LoadBucket.HIGH, "80-100%"),
            (LoadBucket.OVER, ">= 100%"),
        ]
        self._draw_legend(c, x, y, [(BUCKET_COLORS[key], label) for key, label in items])

    def _draw_legend(self, c, x: float, y: float, items: list) -> None:
        """Draw legend for colors."""
        c.setFillColorRGB(0, 0, 0)
        c.setFont("Helvetica-Bold", 8)
        c.drawString(x, y, "Legend:")

        c.setFont("Helvetica", 7)
        current_x = x + 45
        for color, label in items:
            c.setFillColorRGB(*color)
            c.setStrokeColorRGB(0, 0, 0)
            c.rect(current_x, y - 2, 12, 10, fill=1, stroke=1)
            c.setFillColorRGB(0, 0, 0)
            c.drawString(current_x + 15, y, label)
            current_x += 70

    def _draw_summary_page(self, c, grid: CalendarGrid, metrics: PlanningMetrics) -> None:
        """Draw summary page with planning KPIs and per-member load."""
        c.setFillColorRGB(0, 0, 0)
        c.setFont("Helvetica-Bold", 16)
        c.drawString(
            self.margin,
            self.page_height - self.margin - 20,
            f"Planning Summary - {grid.period.label}",
        )

        y = self.page_height - self.margin - 60
        c.setFont("Helvetica-Bold", 12)
        c.drawString(self.margin, y, "Overview")
        y -= 20

        c.setFont("Helvetica", 10)
        stats = [
            f"Planned tasks: {metrics.planned_count}",
            f"Backlog tasks: {metrics.pending_count}",
            f"Team capacity used: {metrics.capacity_percent}%",
            f"Overloaded collaborators: {metrics.overloaded_members}",
            f"Planned days: {metrics.total_days:g}",
            f"Leave conflicts: {metrics.conflict_count}",
        ]
        for stat in stats:
            c.drawString(self.margin + 20, y, stat)
            y -= 15

        y -= 20
        c.setFont("Helvetica-Bold", 12)
        c.drawString(self.margin, y, "Load by Collaborator")
        y -= 18

        bar_left = self.margin + 150
        bar_width = 300
        c.setFont("Helvetica", 9)
        for row in grid.rows:
            if y < self.margin + 20:
                break
            workload = row.workload
            c.setFillColorRGB(0, 0, 0)
            c.drawString(self.margin + 20, y, workload.member_name[:22])

            c.setFillColorRGB(*COLORS["weekend"])
            c.rect(bar_left, y - 2, bar_width, 10, fill=1, stroke=0)
            filled = min(workload.capacity_percent, 100) / 100 * bar_width
            c.setFillColorRGB(*BUCKET_COLORS[row.bucket])
            c.rect(bar_left, y - 2, filled, 10, fill=1, stroke=0)

            c.setFillColorRGB(0, 0, 0)
            c.drawString(
                bar_left + bar_width + 10,
                y,
                f"{workload.used_slots}/{workload.available_slots} half-days "
                f"({workload.capacity_percent}%)",
            )
            y -= 15

        c.showPage()
