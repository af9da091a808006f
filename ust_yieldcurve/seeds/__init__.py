"""Cache seeding utilities for :mod:`ust_yieldcurve`."""

from __future__ import annotations

from typing import Any

__all__ = ["seed_curve_cache", "SeedResult"]


def __getattr__(name: str) -> Any:
    """Lazily expose seed helpers to avoid import-time side effects."""

    if name in {"seed_curve_cache", "SeedResult"}:
        from ust_yieldcurve.seeds.populate_curve_cache import SeedResult as _SeedResult
        from ust_yieldcurve.seeds.populate_curve_cache import seed_curve_cache as _seed

        return {"seed_curve_cache": _seed, "SeedResult": _SeedResult}[name]
    raise AttributeError(f"module 'ust_yieldcurve.seeds' has no attribute {name}")
