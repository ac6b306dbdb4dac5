"""Non-working days and nominal working time.

Public holidays come from the ``holidays`` package; weekends are labelled
with their German day names.
"""

import logging
from datetime import date, timedelta
from typing import Any, Iterable, Optional

import holidays

logger = logging.getLogger(__name__)

WEEKEND_LABELS = {5: "Samstag", 6: "Sonntag"}

_HOUR_MS = 3_600_000


class WorkCalendar:
    """Answers "is this a working day?" for one country/subdivision.

    Instances are read-only after construction; the holiday table for
    *years* is loaded eagerly.
    """

    def __init__(
        self,
        country: str = "DE",
        subdivision: Optional[str] = None,
        weekly_hours: float = 40,
        years: Optional[Iterable[int]] = None,
    ) -> None:
        self.weekly_hours = weekly_hours
        self._holidays = holidays.country_holidays(
            country,
            subdiv=subdivision,
            years=list(years) if years is not None else None,
        )

    @classmethod
    def from_config(
        cls, config: dict[str, Any], start: Optional[date], end: date
    ) -> "WorkCalendar":
        """Build a calendar covering the years between *start* and *end*."""
        first_year = start.year if start else end.year
        return cls(
            country=config.get("holiday_country") or "DE",
            subdivision=config.get("holiday_subdivision") or None,
            weekly_hours=float(config.get("weekly_hours", 40)),
            years=range(min(first_year, end.year), max(first_year, end.year) + 1),
        )

    def lookup(self, day: date) -> Optional[str]:
        """Return the holiday or weekend label for *day*, or ``None``."""
        name = self._holidays.get(day)
        if name:
            return name
        return WEEKEND_LABELS.get(day.weekday())

    def is_working_day(self, day: date) -> bool:
        return day.weekday() < 5 and day not in self._holidays

    def expected_millis(self, start: date, end: date) -> int:
        """Nominal working time over the inclusive range, in milliseconds."""
        daily_ms = int(self.weekly_hours * _HOUR_MS / 5)
        working_days = 0
        day = start
        while day <= end:
            if self.is_working_day(day):
                working_days += 1
            day += timedelta(days=1)
        logger.debug("%d working days between %s and %s", working_days, start, end)
        return working_days * daily_ms
