"""Helpers for locating the on-disk curve cache."""

from __future__ import annotations

from pathlib import Path
from typing import Final

__all__ = ["CACHE_FILE_PREFIX", "CACHE_FORMAT_VERSION", "DEFAULT_CACHE_DIR"]

# One JSON file per curve date lives under this directory unless a
# DataSourceConfig points elsewhere.
DEFAULT_CACHE_DIR: Final[Path] = Path.home() / ".ust_yieldcurve" / "cache"
CACHE_FILE_PREFIX: Final[str] = "treasury_yield_cache_"
CACHE_FORMAT_VERSION: Final[int] = 1
