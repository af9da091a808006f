"""Ingestion helpers for the US Treasury daily par yield curve XML feed."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import date
from typing import Sequence

import requests
from bs4 import BeautifulSoup
from tenacity import RetryError, Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from ust_yieldcurve.exceptions import FeedFormatError, NetworkError, NoDataForDate
from ust_yieldcurve.ingestion.models import Provenance, YieldCurve, YieldPoint
from ust_yieldcurve.ingestion.strategy import FieldExtractor
from ust_yieldcurve.utils.logger import get_logger
from ust_yieldcurve.utils.treasury import (
    DATE_FIELD,
    DEFAULT_USER_AGENT,
    MATURITIES,
    NOT_APPLICABLE_MARKER,
    TREASURY_FEED_URL_TEMPLATE,
    feed_url,
)

LOGGER = get_logger(__name__)

ENTRY_PATTERN = re.compile(r"<entry[^>]*>[\s\S]*?</entry>")
RETRYABLE_ERRORS = (requests.ConnectionError, requests.Timeout)


@dataclass(slots=True)
class FeedRecord:
    """One ``<entry>`` block of the feed together with its parsed date."""

    record_date: date | None
    block: str


class RegexFieldExtractor:
    """Extract ``<d:FIELD ...>value</d:FIELD>`` elements with regular expressions."""

    def extract(self, block: str, fields: Sequence[str]) -> dict[str, str]:
        values: dict[str, str] = {}
        for name in fields:
            tag = re.escape(name)
            # Exact tag name only: BC_30YEAR must not match BC_30YEARDISPLAY. Self-closing nulls never match.
            pattern = rf"<d:{tag}(?:\s[^>]*)?(?<!/)>(.*?)</d:{tag}>"
            match = re.search(pattern, block, re.IGNORECASE)
            if match:
                values[name] = match.group(1)
        return values


class SoupFieldExtractor:
    """Extract fields with BeautifulSoup instead of regular expressions.

    ``html.parser`` keeps the ``d:`` namespace prefix in tag names and lower
    cases them, so lookups are done on ``d:<field>`` in lower case.
    """

    def extract(self, block: str, fields: Sequence[str]) -> dict[str, str]:
        soup = BeautifulSoup(block, "html.parser")
        values: dict[str, str] = {}
        for name in fields:
            element = soup.find(f"d:{name.lower()}")
            if element is not None:
                values[name] = element.get_text()
        return values


DEFAULT_EXTRACTOR: FieldExtractor = RegexFieldExtractor()


def _parse_yield(value: str | None) -> float | None:
    if value is None:
        return None
    cleaned = value.strip()
    if not cleaned or cleaned.upper() == NOT_APPLICABLE_MARKER:
        return None
    try:
        parsed = float(cleaned)
    except ValueError:
        return None
    if not math.isfinite(parsed):
        return None
    return parsed


def _coerce_record_date(value: str | None) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


def split_records(raw_text: str, extractor: FieldExtractor = DEFAULT_EXTRACTOR) -> list[FeedRecord]:
    """Split ``raw_text`` into record blocks in feed order.

    Raises :class:`FeedFormatError` when no ``<entry>`` block is found.
    """

    blocks = ENTRY_PATTERN.findall(raw_text or "")
    if not blocks:
        raise FeedFormatError("No data entries found in Treasury feed")
    records: list[FeedRecord] = []
    for block in blocks:
        raw_date = extractor.extract(block, [DATE_FIELD]).get(DATE_FIELD)
        records.append(FeedRecord(record_date=_coerce_record_date(raw_date), block=block))
    return records


def extract_points(block: str, extractor: FieldExtractor = DEFAULT_EXTRACTOR) -> tuple[YieldPoint, ...]:
    """Return the valid maturities of one record block, in maturity order."""

    raw_values = extractor.extract(block, [maturity.field for maturity in MATURITIES])
    points: list[YieldPoint] = []
    for maturity in MATURITIES:
        value = _parse_yield(raw_values.get(maturity.field))
        if value is None:
            continue
        points.append(YieldPoint(label=maturity.label, months=maturity.months, yield_pct=value))
    return tuple(points)


def select_record(records: Sequence[FeedRecord], target_date: date | None) -> FeedRecord:
    """Pick the record for ``target_date``.

    Without a target the last record wins. With a target an exact date match
    wins, otherwise the latest record dated on or before the target.
    """

    if target_date is None:
        return records[-1]
    dated = [record for record in records if record.record_date is not None]
    for record in dated:
        if record.record_date == target_date:
            return record
    prior = [record for record in dated if record.record_date < target_date]
    if not prior:
        earliest = min((record.record_date for record in dated), default=None)
        raise NoDataForDate(target_date, earliest)
    return max(prior, key=lambda record: record.record_date)


def parse_feed(
    raw_text: str,
    target_date: date | None = None,
    *,
    extractor: FieldExtractor = DEFAULT_EXTRACTOR,
) -> YieldCurve:
    """Parse the yearly feed into the curve for ``target_date`` (or the latest).

    The returned curve may carry fewer than thirteen points and may be empty;
    callers decide whether an empty curve is usable.
    """

    records = split_records(raw_text, extractor)
    record = select_record(records, target_date)
    if record.record_date is None:
        raise FeedFormatError("Selected Treasury record carries no readable date")
    return YieldCurve(
        date=record.record_date,
        points=extract_points(record.block, extractor),
        provenance=Provenance.FRESH,
    )


def parse_all_entries(
    raw_text: str, *, extractor: FieldExtractor = DEFAULT_EXTRACTOR
) -> list[YieldCurve]:
    """Return one curve per dated record block, skipping blocks without points."""

    curves: list[YieldCurve] = []
    for record in split_records(raw_text, extractor):
        if record.record_date is None:
            continue
        points = extract_points(record.block, extractor)
        if not points:
            continue
        curves.append(YieldCurve(date=record.record_date, points=points))
    return curves


class TreasuryFeedClient:
    """Download the yearly Treasury yield curve feed with :mod:`requests`.

    Connection errors and timeouts are retried with exponential backoff;
    HTTP error statuses fail immediately.
    """

    def __init__(
        self,
        *,
        url_template: str = TREASURY_FEED_URL_TEMPLATE,
        timeout: float = 30,
        session: requests.Session | None = None,
        user_agent: str = DEFAULT_USER_AGENT,
        max_attempts: int = 3,
        backoff_seconds: float = 1.0,
    ) -> None:
        self.url_template = url_template
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds
        self.session = session or requests.Session()
        self.session.headers["User-Agent"] = user_agent

    def fetch(self, year: int) -> str:
        url = feed_url(year, self.url_template)
        LOGGER.info("Fetching Treasury yield curve feed for %s", year)
        try:
            response = self._get_with_retries(url)
            response.raise_for_status()
        except RetryError as exc:
            last_error = exc.last_attempt.exception()
            LOGGER.error("Exhausted retries while downloading %s: %s", url, last_error)
            raise NetworkError(
                f"Treasury feed unreachable after {self.max_attempts} attempts: {last_error}"
            ) from last_error
        except requests.RequestException as exc:
            raise NetworkError(f"Treasury feed request failed for {url}: {exc}") from exc
        return response.text

    def _get_with_retries(self, url: str) -> requests.Response:
        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.backoff_seconds, min=self.backoff_seconds, max=30),
            retry=retry_if_exception_type(RETRYABLE_ERRORS),
        )
        return retrying(self.session.get, url, timeout=self.timeout)

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "TreasuryFeedClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


__all__ = [
    "DEFAULT_EXTRACTOR",
    "FeedRecord",
    "RegexFieldExtractor",
    "SoupFieldExtractor",
    "TreasuryFeedClient",
    "extract_points",
    "parse_all_entries",
    "parse_feed",
    "select_record",
    "split_records",
]
