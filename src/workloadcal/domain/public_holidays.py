"""Public holiday seeding backed by the ``holidays`` package."""

from typing import Iterable, Optional

import holidays

from workloadcal.domain.models import Holiday


def load_public_holidays(
    country: str,
    years: Iterable[int],
    subdiv: Optional[str] = None,
) -> list[Holiday]:
    """Build Holiday records for a country's public holidays.

    Args:
        country: ISO 3166-1 alpha-2 country code (e.g. "FR").
        years: Calendar years to include.
        subdiv: Optional subdivision code (e.g. a region or state).

    Returns:
        Holiday records sorted by date.
    """
    calendar = holidays.country_holidays(country, subdiv=subdiv, years=list(years))
    return sorted(
        (Holiday(date=day, name=name) for day, name in calendar.items()),
        key=lambda h: h.date,
    )
