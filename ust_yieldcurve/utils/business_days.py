"""Naive business-day arithmetic for historical comparison curves.

Only weekends and the fixed-date holidays in
:data:`ust_yieldcurve.utils.treasury.FIXED_HOLIDAYS` are recognised. This is
not a market calendar: Thanksgiving, Labor Day and other floating holidays,
as well as weekend-observed shifts, are treated as ordinary trading days.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import AbstractSet

from ust_yieldcurve.utils.treasury import FIXED_HOLIDAYS


def is_holiday(day: date, holidays: AbstractSet[tuple[int, int]] = FIXED_HOLIDAYS) -> bool:
    return (day.month, day.day) in holidays


def is_business_day(day: date, holidays: AbstractSet[tuple[int, int]] = FIXED_HOLIDAYS) -> bool:
    """Return True for weekdays that are not recognised holidays."""

    return day.weekday() < 5 and not is_holiday(day, holidays)


def previous_business_day(
    day: date, holidays: AbstractSet[tuple[int, int]] = FIXED_HOLIDAYS
) -> date:
    """Return ``day`` itself if it is a business day, else the nearest earlier one."""

    current = day
    while not is_business_day(current, holidays):
        current -= timedelta(days=1)
    return current


def backdated_business_day(
    anchor: date,
    offset_days: int,
    holidays: AbstractSet[tuple[int, int]] = FIXED_HOLIDAYS,
) -> date:
    """Step ``offset_days`` back from ``anchor`` and settle on a business day."""

    if offset_days < 0:
        raise ValueError("offset_days must not be negative")
    return previous_business_day(anchor - timedelta(days=offset_days), holidays)


__all__ = [
    "backdated_business_day",
    "is_business_day",
    "is_holiday",
    "previous_business_day",
]
