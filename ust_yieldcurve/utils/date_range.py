"""Date parsing helpers used by the data source and the CLI."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime


@dataclass(frozen=True)
class DateRange:
    """Container representing a closed date range."""

    start: date
    end: date

    def years(self) -> range:
        """Calendar years touched by the range, oldest first."""
        return range(self.start.year, self.end.year + 1)


def parse_date(value: str | date) -> date:
    """Parse a date string in ISO format to :class:`date`."""

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.strptime(value, "%Y-%m-%d").date()


def date_range(start: str | date, end: str | date) -> DateRange:
    """Build a validated :class:`DateRange`."""

    start_date = parse_date(start)
    end_date = parse_date(end)
    if start_date > end_date:
        raise ValueError("start date must not be after end date")
    return DateRange(start=start_date, end=end_date)

