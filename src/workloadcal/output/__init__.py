"""Output generation for calendars (PDF, text)."""

from workloadcal.output.pdf_generator import CalendarPDFGenerator
from workloadcal.output.text_renderer import TextCalendarRenderer

__all__ = [
    "CalendarPDFGenerator",
    "TextCalendarRenderer",
]
