"""Treasury feed constants shared across the package."""

from __future__ import annotations

from typing import Final, NamedTuple

TREASURY_FEED_URL_TEMPLATE: Final[str] = (
    "https://home.treasury.gov/resource-center/data-chart-center/interest-rates/pages/xml"
    "?data=daily_treasury_yield_curve&field_tdr_date_value={year}"
)

NOT_APPLICABLE_MARKER: Final[str] = "N/A"
DATE_FIELD: Final[str] = "NEW_DATE"
DEFAULT_USER_AGENT: Final[str] = "ust-yieldcurve/1.0"


class Maturity(NamedTuple):
    label: str
    field: str
    months: int


# Ordered by ascending maturity; curves keep this order for whichever subset is present.
MATURITIES: Final[tuple[Maturity, ...]] = (
    Maturity("1M", "BC_1MONTH", 1),
    Maturity("2M", "BC_2MONTH", 2),
    Maturity("3M", "BC_3MONTH", 3),
    Maturity("4M", "BC_4MONTH", 4),
    Maturity("6M", "BC_6MONTH", 6),
    Maturity("1Y", "BC_1YEAR", 12),
    Maturity("2Y", "BC_2YEAR", 24),
    Maturity("3Y", "BC_3YEAR", 36),
    Maturity("5Y", "BC_5YEAR", 60),
    Maturity("7Y", "BC_7YEAR", 84),
    Maturity("10Y", "BC_10YEAR", 120),
    Maturity("20Y", "BC_20YEAR", 240),
    Maturity("30Y", "BC_30YEAR", 360),
)

# (month, day) pairs. Floating holidays and weekend-observed shifts are not covered.
FIXED_HOLIDAYS: Final[frozenset[tuple[int, int]]] = frozenset({(1, 1), (7, 4), (12, 25)})


def feed_url(year: int, template: str = TREASURY_FEED_URL_TEMPLATE) -> str:
    """Return the yearly feed URL for ``year``."""

    return template.format(year=year)


__all__ = [
    "DATE_FIELD",
    "DEFAULT_USER_AGENT",
    "FIXED_HOLIDAYS",
    "MATURITIES",
    "Maturity",
    "NOT_APPLICABLE_MARKER",
    "TREASURY_FEED_URL_TEMPLATE",
    "feed_url",
]
