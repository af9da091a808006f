"""Per-date JSON file cache for resolved yield curves."""

from __future__ import annotations

import json
import os
import tempfile
from dataclasses import dataclass
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Iterator

from ust_yieldcurve.cache import CACHE_FILE_PREFIX, CACHE_FORMAT_VERSION, DEFAULT_CACHE_DIR
from ust_yieldcurve.exceptions import CacheReadError, CacheWriteError
from ust_yieldcurve.ingestion.models import Provenance, YieldCurve
from ust_yieldcurve.utils.logger import get_logger

LOGGER = get_logger(__name__)


@dataclass(slots=True)
class CacheInfo:
    """Snapshot of a single cache entry as reported by :meth:`CurveCache.info`."""

    exists: bool
    path: Path
    data_date: date | None = None
    retrieved_at: datetime | None = None
    age_hours: float | None = None
    version: int | None = None
    error: str | None = None


class CurveCache:
    """Store one :class:`YieldCurve` per calendar date as JSON.

    Entries never expire. Writes go to a temporary file in the cache
    directory which is then renamed over the target, so readers see either
    the old entry or the new one and never a partial file.
    """

    def __init__(self, cache_dir: str | Path = DEFAULT_CACHE_DIR) -> None:
        self.cache_dir = Path(cache_dir)

    def path_for(self, day: date) -> Path:
        return self.cache_dir / f"{CACHE_FILE_PREFIX}{day.strftime('%Y%m%d')}.json"

    def exists(self, day: date) -> bool:
        return self.path_for(day).is_file()

    def _read_document(self, path: Path) -> dict[str, Any]:
        try:
            with open(path, "r", encoding="utf-8") as handle:
                document = json.load(handle)
        except (OSError, ValueError) as exc:
            raise CacheReadError(f"Unable to read cache entry {path}: {exc}") from exc
        if not isinstance(document, dict):
            raise CacheReadError(f"Cache entry {path} is not a JSON object")
        version = document.get("version")
        if version != CACHE_FORMAT_VERSION:
            raise CacheReadError(f"Cache entry {path} has unsupported version {version!r}")
        return document

    @staticmethod
    def _parse_timestamp(value: Any) -> datetime | None:
        if not value:
            return None
        try:
            return datetime.fromisoformat(str(value))
        except ValueError:
            return None

    def read(self, day: date) -> YieldCurve | None:
        """Return the cached curve for ``day`` or None when no entry exists.

        Raises :class:`CacheReadError` for unreadable, corrupt or foreign-version entries.
        """

        path = self.path_for(day)
        if not path.is_file():
            return None
        document = self._read_document(path)
        try:
            return YieldCurve.from_dict(
                document["data"],
                provenance=Provenance.CACHED,
                retrieved_at=self._parse_timestamp(document.get("retrieved_at")),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise CacheReadError(f"Cache entry {path} is malformed: {exc}") from exc

    def write(self, curve: YieldCurve, *, key: date | None = None) -> Path:
        """Persist ``curve`` under ``key`` (defaults to the curve's own date)."""

        target = self.path_for(key or curve.date)
        retrieved_at = curve.retrieved_at or datetime.now(timezone.utc)
        document = {
            "version": CACHE_FORMAT_VERSION,
            "retrieved_at": retrieved_at.isoformat(),
            "data": curve.to_dict(),
        }
        tmp_name: str | None = None
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{target.stem}.", suffix=".tmp", dir=self.cache_dir
            )
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(document, handle)
            os.replace(tmp_name, target)
        except OSError as exc:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise CacheWriteError(f"Unable to write cache entry {target}: {exc}") from exc
        LOGGER.info("Cached yield curve for %s → %s", curve.date, target)
        return target

    def clear(self, day: date) -> bool:
        """Delete the entry for ``day``; return False when there was none."""

        path = self.path_for(day)
        if not path.exists():
            LOGGER.info("No cache file to clear for %s", day)
            return False
        try:
            path.unlink()
        except OSError as exc:
            raise CacheWriteError(f"Unable to remove cache entry {path}: {exc}") from exc
        LOGGER.info("Cache cleared for %s", day)
        return True

    def info(self, day: date, *, now: datetime | None = None) -> CacheInfo:
        """Describe the entry for ``day`` without raising on corrupt files."""

        path = self.path_for(day)
        if not path.is_file():
            return CacheInfo(exists=False, path=path)
        try:
            document = self._read_document(path)
            data_date = date.fromisoformat(document["data"]["date"])
        except (CacheReadError, KeyError, TypeError, ValueError) as exc:
            return CacheInfo(exists=True, path=path, error=str(exc))
        retrieved_at = self._parse_timestamp(document.get("retrieved_at"))
        age_hours: float | None = None
        if retrieved_at is not None:
            reference = now or datetime.now(timezone.utc)
            if retrieved_at.tzinfo is None:
                retrieved_at = retrieved_at.replace(tzinfo=timezone.utc)
            age_hours = (reference - retrieved_at).total_seconds() / 3600
        return CacheInfo(
            exists=True,
            path=path,
            data_date=data_date,
            retrieved_at=retrieved_at,
            age_hours=age_hours,
            version=document.get("version"),
        )

    def iter_dates(self) -> Iterator[date]:
        """Yield the keys of every cache file on disk, oldest first."""

        if not self.cache_dir.is_dir():
            return
        keys: list[date] = []
        for path in self.cache_dir.glob(f"{CACHE_FILE_PREFIX}*.json"):
            stem = path.stem[len(CACHE_FILE_PREFIX):]
            try:
                keys.append(datetime.strptime(stem, "%Y%m%d").date())
            except ValueError:
                continue
        yield from sorted(keys)

    def latest(self) -> YieldCurve | None:
        """Return the newest readable entry, skipping corrupt files."""

        for day in sorted(self.iter_dates(), reverse=True):
            try:
                curve = self.read(day)
            except CacheReadError as exc:
                LOGGER.warning("Skipping unreadable cache entry: %s", exc)
                continue
            if curve is not None and not curve.is_empty:
                return curve
        return None


__all__ = ["CacheInfo", "CurveCache"]
