"""Public interface for the ust_yieldcurve package."""

from __future__ import annotations

from datetime import date, datetime, timezone
from importlib import metadata as importlib_metadata
from typing import Any, Callable, Iterable

from ust_yieldcurve.cache.file_cache import CacheInfo, CurveCache
from ust_yieldcurve.config import DataSourceConfig
from ust_yieldcurve.exceptions import (
    CacheReadError,
    CacheWriteError,
    FeedFormatError,
    NetworkError,
    NoDataForDate,
    YieldCurveError,
)
from ust_yieldcurve.ingestion.models import CurveRequest, Provenance, YieldCurve, YieldPoint
from ust_yieldcurve.ingestion.strategy import FeedFetcher, FieldExtractor
from ust_yieldcurve.ingestion.treasury_xml import DEFAULT_EXTRACTOR, TreasuryFeedClient, parse_feed
from ust_yieldcurve.utils.business_days import backdated_business_day
from ust_yieldcurve.utils.date_range import parse_date
from ust_yieldcurve.utils.logger import get_logger

LOGGER = get_logger(__name__)

__all__ = [
    "__version__",
    "CacheInfo",
    "CacheReadError",
    "CacheWriteError",
    "CurveCache",
    "CurveRequest",
    "DataSourceConfig",
    "FeedFormatError",
    "NetworkError",
    "NoDataForDate",
    "Provenance",
    "YieldCurve",
    "YieldCurveDataSource",
    "YieldCurveError",
    "YieldPoint",
    "seed_curve_cache",
]

try:
    __version__ = importlib_metadata.version("ust-yieldcurve")
except importlib_metadata.PackageNotFoundError:  # pragma: no cover - fallback for local runs
    __version__ = "0.1.0"

CURRENT_LABEL = "current"
_FETCH_FAILURES = (NetworkError, FeedFormatError, NoDataForDate)


def seed_curve_cache(*args, **kwargs):
    from ust_yieldcurve.seeds.populate_curve_cache import seed_curve_cache as _seed_curve_cache

    return _seed_curve_cache(*args, **kwargs)


class YieldCurveDataSource:
    """Resolve Treasury yield curves through the local cache and the remote feed.

    Lookups for a specific date are served from the cache whenever an entry
    exists; entries never expire. A "current" request always asks the feed
    which date is the latest published one. Fetch or parse failures fall back
    to whatever is cached for the requested date and otherwise yield None.
    """

    __slots__ = ("config", "cache", "fetcher", "extractor", "_clock", "_owns_fetcher")

    __version__ = __version__

    def __init__(
        self,
        config: DataSourceConfig | None = None,
        *,
        fetcher: FeedFetcher | None = None,
        cache: CurveCache | None = None,
        extractor: FieldExtractor = DEFAULT_EXTRACTOR,
        clock: Callable[[], date] = date.today,
    ) -> None:
        self.config = config or DataSourceConfig()
        self.cache = cache or CurveCache(self.config.cache_dir)
        self._owns_fetcher = fetcher is None
        self.fetcher: FeedFetcher = fetcher or TreasuryFeedClient(
            url_template=self.config.feed_url_template,
            timeout=self.config.timeout,
            user_agent=self.config.user_agent,
            max_attempts=self.config.max_attempts,
            backoff_seconds=self.config.backoff_seconds,
        )
        self.extractor = extractor
        self._clock = clock

    def today(self) -> date:
        return self._clock()

    def resolve(self, request: CurveRequest | str | date | None = None) -> YieldCurve | None:
        """Return the curve for ``request`` or None when no data is available.

        ``request`` may be a :class:`CurveRequest`, a date, an ISO date string
        or None for the most recent curve.
        """

        curve_request = CurveRequest.coerce(request)
        if curve_request.is_current:
            return self._resolve_current()
        return self._resolve_as_of(curve_request.as_of)

    def _resolve_current(self) -> YieldCurve | None:
        try:
            curve = self._fetch_curve(None)
        except _FETCH_FAILURES as exc:
            LOGGER.warning("Unable to fetch the current yield curve: %s", exc)
            if self.config.fallback_to_latest_cache:
                latest = self.cache.latest()
                if latest is not None:
                    LOGGER.warning("Using cached curve for %s as fallback", latest.date)
                return latest
            return None
        cached = self._read_cache(curve.date)
        if cached is not None:
            return cached
        self._persist(curve)
        return curve

    def _resolve_as_of(self, day: date) -> YieldCurve | None:
        cached = self._read_cache(day)
        if cached is not None:
            return cached
        try:
            curve = self._fetch_curve(day)
        except _FETCH_FAILURES as exc:
            LOGGER.warning("Unable to fetch yield curve for %s: %s", day, exc)
            fallback = self._read_cache(day)
            if fallback is not None:
                LOGGER.warning("Using cached curve for %s as fallback", day)
            return fallback
        self._persist(curve)
        # Past dates are final, so an older record can stand in for a non-trading day.
        if curve.date != day and day < self.today():
            self._persist(curve, key=day)
        return curve

    def _fetch_curve(self, target: date | None) -> YieldCurve:
        year = (target or self.today()).year
        try:
            curve = self._parse_year(year, target)
        except NoDataForDate as exc:
            LOGGER.info("%s; consulting the %s feed", exc, year - 1)
            curve = self._parse_year(year - 1, target)
        except FeedFormatError:
            # Nothing is published during the first days of January.
            if (target or self.today()).month != 1:
                raise
            LOGGER.info("The %s feed is empty; consulting the %s feed", year, year - 1)
            curve = self._parse_year(year - 1, target)
        if curve.is_empty:
            raise FeedFormatError(f"Treasury record for {curve.date} carries no usable yields")
        return YieldCurve(
            date=curve.date,
            points=curve.points,
            provenance=Provenance.FRESH,
            retrieved_at=datetime.now(timezone.utc),
        )

    def _parse_year(self, year: int, target: date | None) -> YieldCurve:
        raw_text = self.fetcher.fetch(year)
        return parse_feed(raw_text, target, extractor=self.extractor)

    def _read_cache(self, day: date) -> YieldCurve | None:
        try:
            curve = self.cache.read(day)
        except CacheReadError as exc:
            LOGGER.warning("Ignoring cache entry for %s: %s", day, exc)
            return None
        if curve is None or curve.is_empty:
            return None
        LOGGER.debug("Using cached yield curve for %s", day)
        return curve

    def _persist(self, curve: YieldCurve, *, key: date | None = None) -> None:
        try:
            self.cache.write(curve, key=key)
        except CacheWriteError as exc:
            LOGGER.warning("Failed to cache yield curve for %s: %s", key or curve.date, exc)

    def resolve_with_history(
        self,
        base_request: CurveRequest | str | date | None = None,
        offsets: Iterable[int] | None = None,
    ) -> dict[str, YieldCurve]:
        """Resolve a base curve plus comparison curves ``offset`` days earlier.

        The base curve is labelled ``"current"`` (or by its ISO date for a
        dated request) and each comparison curve ``"<offset>d"``. Offsets are
        counted back from today, or from the requested date, then moved back
        to the nearest business day. Curves that cannot be resolved are left
        out of the result.
        """

        curve_request = CurveRequest.coerce(base_request)
        resolved_offsets = self.config.history_offsets if offsets is None else tuple(offsets)
        if any(offset <= 0 for offset in resolved_offsets):
            raise ValueError("offsets must be positive day counts")

        results: dict[str, YieldCurve] = {}
        base_label = (
            CURRENT_LABEL if curve_request.is_current else curve_request.as_of.isoformat()
        )
        base_curve = self.resolve(curve_request)
        if base_curve is not None:
            results[base_label] = base_curve
        else:
            LOGGER.warning("No data available for %s", base_label)

        anchor = curve_request.as_of or self.today()
        for offset in resolved_offsets:
            target = backdated_business_day(anchor, offset, self.config.holidays)
            curve = self.resolve(CurveRequest.for_date(target))
            if curve is None:
                LOGGER.warning("No data available %s days back (%s)", offset, target)
                continue
            results[f"{offset}d"] = curve
        return results

    def clear_cache(self, day: str | date | None = None) -> bool:
        """Remove the cache entry for ``day`` (default today)."""

        target = parse_date(day) if day is not None else self.today()
        try:
            return self.cache.clear(target)
        except CacheWriteError as exc:
            LOGGER.error("Error clearing cache: %s", exc)
            return False

    def cache_info(self, day: str | date | None = None) -> CacheInfo:
        """Describe the cache entry for ``day`` (default today)."""

        target = parse_date(day) if day is not None else self.today()
        return self.cache.info(target)

    def close(self) -> None:
        close = getattr(self.fetcher, "close", None)
        if self._owns_fetcher and callable(close):
            close()

    def __enter__(self) -> "YieldCurveDataSource":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def __getattr__(name: str) -> Any:
    """Lazily expose the cache seeder to keep CLI imports out of the package import."""

    if name == "SeedResult":
        from ust_yieldcurve.seeds.populate_curve_cache import SeedResult as _result

        return _result
    raise AttributeError(f"module 'ust_yieldcurve' has no attribute {name}")
