"""Error kinds raised by the ingestion and cache layers.

The :class:`~ust_yieldcurve.YieldCurveDataSource` facade catches all of these
while resolving a single date and turns them into "no data for this key".
"""

from __future__ import annotations


class YieldCurveError(Exception):
    """Base class for every package-specific failure."""


class NetworkError(YieldCurveError, RuntimeError):
    """The Treasury feed could not be retrieved."""


class FeedFormatError(YieldCurveError, ValueError):
    """The feed contained no parsable record blocks."""


class NoDataForDate(YieldCurveError, LookupError):
    """The requested date predates every record in the feed."""

    def __init__(self, target_date, earliest=None) -> None:
        self.target_date = target_date
        self.earliest = earliest
        message = f"No yield curve data on or before {target_date}"
        if earliest is not None:
            message += f" (earliest record is {earliest})"
        super().__init__(message)


class CacheReadError(YieldCurveError, OSError):
    """A cache entry exists but could not be read or decoded."""


class CacheWriteError(YieldCurveError, OSError):
    """A cache entry could not be persisted."""


__all__ = [
    "CacheReadError",
    "CacheWriteError",
    "FeedFormatError",
    "NetworkError",
    "NoDataForDate",
    "YieldCurveError",
]
