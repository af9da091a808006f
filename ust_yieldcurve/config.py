"""Runtime configuration for :class:`ust_yieldcurve.YieldCurveDataSource`."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Mapping

from ust_yieldcurve.cache import DEFAULT_CACHE_DIR
from ust_yieldcurve.utils.treasury import (
    DEFAULT_USER_AGENT,
    FIXED_HOLIDAYS,
    TREASURY_FEED_URL_TEMPLATE,
)

CACHE_DIR_ENV = "UST_YIELDCURVE_CACHE_DIR"
TIMEOUT_ENV = "UST_YIELDCURVE_TIMEOUT"


@dataclass(frozen=True, slots=True)
class DataSourceConfig:
    """Everything the data source would otherwise read from module constants.

    ``history_offsets`` are calendar-day offsets used by
    :meth:`~ust_yieldcurve.YieldCurveDataSource.resolve_with_history` when the
    caller does not pass its own. ``fallback_to_latest_cache`` lets a failed
    "current" request fall back to the newest cache file on disk.
    """

    cache_dir: Path = DEFAULT_CACHE_DIR
    feed_url_template: str = TREASURY_FEED_URL_TEMPLATE
    timeout: float = 30.0
    max_attempts: int = 3
    backoff_seconds: float = 1.0
    history_offsets: tuple[int, ...] = (7, 14)
    holidays: frozenset[tuple[int, int]] = FIXED_HOLIDAYS
    fallback_to_latest_cache: bool = False
    user_agent: str = DEFAULT_USER_AGENT

    def __post_init__(self) -> None:
        object.__setattr__(self, "cache_dir", Path(self.cache_dir).expanduser())
        object.__setattr__(self, "history_offsets", tuple(int(o) for o in self.history_offsets))
        if any(offset <= 0 for offset in self.history_offsets):
            raise ValueError("history_offsets must be positive day counts")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides) -> "DataSourceConfig":
        """Build a config, letting environment variables override the defaults."""

        env = os.environ if environ is None else environ
        config = cls(**overrides)
        if CACHE_DIR_ENV in env and "cache_dir" not in overrides:
            config = replace(config, cache_dir=Path(env[CACHE_DIR_ENV]).expanduser())
        if TIMEOUT_ENV in env and "timeout" not in overrides:
            try:
                config = replace(config, timeout=float(env[TIMEOUT_ENV]))
            except ValueError as exc:
                raise ValueError(f"{TIMEOUT_ENV} must be a number of seconds") from exc
        return config


__all__ = ["CACHE_DIR_ENV", "DataSourceConfig", "TIMEOUT_ENV"]
