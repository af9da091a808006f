"""Data models shared across ingestion and cache modules."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Iterable

from ust_yieldcurve.utils.date_range import parse_date

if TYPE_CHECKING:  # pragma: no cover - imported only for type checking
    import pandas as pd


class Provenance(str, Enum):
    """Where a returned curve came from."""

    FRESH = "fresh"
    CACHED = "cached"


@dataclass(frozen=True, slots=True)
class YieldPoint:
    """A single (maturity, yield) observation on a curve."""

    label: str
    months: int
    yield_pct: float

    def to_dict(self) -> dict[str, Any]:
        return {"label": self.label, "months": self.months, "yield": self.yield_pct}

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "YieldPoint":
        return cls(
            label=str(payload["label"]),
            months=int(payload["months"]),
            yield_pct=float(payload["yield"]),
        )


@dataclass(frozen=True, slots=True)
class YieldCurve:
    """Treasury par yield curve for one calendar date.

    ``points`` are ordered by ascending maturity and may hold any subset of
    the thirteen published maturities. Instances are never mutated; use
    :meth:`with_provenance` to obtain a relabelled copy.
    """

    date: date
    points: tuple[YieldPoint, ...]
    provenance: Provenance = Provenance.FRESH
    retrieved_at: datetime | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "points", tuple(self.points))
        months = [point.months for point in self.points]
        if any(later <= earlier for earlier, later in zip(months, months[1:])):
            raise ValueError("curve points must be strictly increasing in maturity")
        if any(not math.isfinite(point.yield_pct) for point in self.points):
            raise ValueError("curve yields must be finite numbers")

    @property
    def is_empty(self) -> bool:
        return not self.points

    @property
    def labels(self) -> list[str]:
        return [point.label for point in self.points]

    def point(self, label: str) -> YieldPoint | None:
        """Return the point for ``label`` (e.g. ``"10Y"``) when present."""

        for candidate in self.points:
            if candidate.label == label:
                return candidate
        return None

    def with_provenance(self, provenance: Provenance) -> "YieldCurve":
        return replace(self, provenance=provenance)

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "points": [point.to_dict() for point in self.points],
        }

    @classmethod
    def from_dict(
        cls,
        payload: dict[str, Any],
        *,
        provenance: Provenance = Provenance.CACHED,
        retrieved_at: datetime | None = None,
    ) -> "YieldCurve":
        return cls(
            date=parse_date(payload["date"]),
            points=tuple(YieldPoint.from_dict(item) for item in payload["points"]),
            provenance=provenance,
            retrieved_at=retrieved_at,
        )

    def to_frame(self) -> "pd.DataFrame":
        """Return the curve as a DataFrame with ``label``, ``months`` and ``yield`` columns."""

        import pandas as pd

        return pd.DataFrame(
            [point.to_dict() for point in self.points],
            columns=["label", "months", "yield"],
        )


def curves_to_frame(curves: dict[str, YieldCurve]) -> "pd.DataFrame":
    """Pivot several curves into one table: one row per maturity, one column per curve."""

    import pandas as pd

    columns: dict[str, pd.Series] = {}
    months_by_label: dict[str, int] = {}
    for name, curve in curves.items():
        columns[name] = pd.Series({point.label: point.yield_pct for point in curve.points})
        for point in curve.points:
            months_by_label[point.label] = point.months
    frame = pd.DataFrame(columns)
    order = sorted(months_by_label, key=months_by_label.__getitem__)
    return frame.reindex(order)


@dataclass(frozen=True, slots=True)
class CurveRequest:
    """Either the most recent curve (``as_of`` is None) or the curve as of a date."""

    as_of: date | None = None

    @classmethod
    def current(cls) -> "CurveRequest":
        return cls()

    @classmethod
    def for_date(cls, value: str | date) -> "CurveRequest":
        return cls(as_of=parse_date(value))

    @classmethod
    def coerce(cls, value: "CurveRequest | str | date | None") -> "CurveRequest":
        if isinstance(value, CurveRequest):
            return value
        if value is None:
            return cls.current()
        return cls.for_date(value)

    @property
    def is_current(self) -> bool:
        return self.as_of is None


def build_points(values: Iterable[tuple[str, int, float]]) -> tuple[YieldPoint, ...]:
    return tuple(YieldPoint(label=label, months=months, yield_pct=value) for label, months, value in values)


__all__ = [
    "CurveRequest",
    "Provenance",
    "YieldCurve",
    "YieldPoint",
    "build_points",
    "curves_to_frame",
]
