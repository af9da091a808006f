"""Warm the curve cache for a date window from the yearly Treasury feeds."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Iterable

from ust_yieldcurve.cache import DEFAULT_CACHE_DIR
from ust_yieldcurve.cache.file_cache import CurveCache
from ust_yieldcurve.exceptions import CacheWriteError, FeedFormatError, NetworkError
from ust_yieldcurve.ingestion.models import YieldCurve
from ust_yieldcurve.ingestion.strategy import FeedFetcher
from ust_yieldcurve.ingestion.treasury_xml import TreasuryFeedClient, parse_all_entries
from ust_yieldcurve.utils.date_range import date_range
from ust_yieldcurve.utils.logger import get_logger

LOGGER = get_logger(__name__)

__all__ = ["SeedResult", "seed_curve_cache"]


@dataclass(slots=True)
class SeedResult:
    """How many cache files a seeding run wrote or left alone.

    ``failed_years`` lists the calendar years whose feed could not be fetched
    or held no entries; the other years are still seeded.
    """

    written: int = 0
    skipped: int = 0
    failed: int = 0
    dates: list[date] = field(default_factory=list)
    failed_years: list[int] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.written + self.skipped + self.failed


def _filter_curves(
    curves: Iterable[YieldCurve], *, start: date | None = None, end: date | None = None
) -> list[YieldCurve]:
    filtered: list[YieldCurve] = []
    for curve in curves:
        if start and curve.date < start:
            continue
        if end and curve.date > end:
            continue
        filtered.append(curve)
    return filtered


def _collect_years(
    fetcher: FeedFetcher, years: Iterable[int], result: SeedResult
) -> list[YieldCurve]:
    curves: list[YieldCurve] = []
    for year in years:
        try:
            curves.extend(parse_all_entries(fetcher.fetch(year)))
        except (NetworkError, FeedFormatError) as exc:
            LOGGER.warning("Skipping Treasury feed for %s: %s", year, exc)
            result.failed_years.append(year)
    return curves


def seed_curve_cache(
    start: str | date,
    end: str | date,
    *,
    cache_dir: str | Path = DEFAULT_CACHE_DIR,
    xml: str | None = None,
    fetcher: FeedFetcher | None = None,
    overwrite: bool = False,
    dry_run: bool = False,
) -> SeedResult:
    """Write one cache file per published date between ``start`` and ``end``.

    Each calendar year in the window is downloaded once. ``xml`` bypasses the
    network and parses the supplied feed text instead. A year whose feed is
    unreachable or empty is logged, recorded in ``failed_years`` and skipped.
    """

    window = date_range(start, end)
    if dry_run:
        LOGGER.info("Dry-run enabled; skipping cache seeding for %s → %s", window.start, window.end)
        return SeedResult()

    result = SeedResult()
    curves: list[YieldCurve] = []
    if xml is not None:
        curves.extend(parse_all_entries(xml))
    elif fetcher is not None:
        curves.extend(_collect_years(fetcher, window.years(), result))
    else:
        with TreasuryFeedClient() as client:
            curves.extend(_collect_years(client, window.years(), result))

    cache = CurveCache(cache_dir)
    for curve in _filter_curves(curves, start=window.start, end=window.end):
        if not overwrite and cache.exists(curve.date):
            result.skipped += 1
            continue
        try:
            cache.write(curve)
        except CacheWriteError as exc:
            LOGGER.warning("Failed to seed %s: %s", curve.date, exc)
            result.failed += 1
            continue
        result.written += 1
        result.dates.append(curve.date)
    LOGGER.info(
        "Seeded curve cache (written=%s, skipped=%s, failed=%s, failed_years=%s)",
        result.written,
        result.skipped,
        result.failed,
        result.failed_years,
    )
    return result

