"""Abstractions for pluggable feed retrieval and field extraction."""

from __future__ import annotations

from typing import Any, Mapping, Protocol, Sequence


class FeedFetcher(Protocol):
    """Contract for retrieving the raw Treasury feed for one calendar year.

    Implementations raise :class:`~ust_yieldcurve.exceptions.NetworkError`
    when the feed cannot be retrieved.
    """

    def fetch(self, year: int) -> str:
        ...  # pragma: no cover - protocol definition


class FieldExtractor(Protocol):
    """Pull named text fields out of a single feed record block.

    Returns the raw text for each requested field that is present; absent
    fields are left out of the mapping. Numeric validation is the caller's job.
    """

    def extract(self, block: str, fields: Sequence[str]) -> dict[str, str]:
        ...  # pragma: no cover - protocol definition


class Renderer(Protocol):
    """Consumer of resolved curves (chart drawing lives outside this package)."""

    def render(self, curves: Mapping[str, Any]) -> Any:
        ...  # pragma: no cover - protocol definition


__all__ = ["FeedFetcher", "FieldExtractor", "Renderer"]
