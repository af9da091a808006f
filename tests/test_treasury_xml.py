from __future__ import annotations

from datetime import date

import pytest
import requests

from feeds import JULY_2024_FEED, make_entry, make_feed
from ust_yieldcurve.exceptions import FeedFormatError, NetworkError, NoDataForDate
from ust_yieldcurve.ingestion.models import Provenance
from ust_yieldcurve.ingestion.treasury_xml import (
    RegexFieldExtractor,
    SoupFieldExtractor,
    TreasuryFeedClient,
    _parse_yield,
    extract_points,
    parse_all_entries,
    parse_feed,
    split_records,
)
from ust_yieldcurve.utils.treasury import MATURITIES


def test_parse_feed_without_target_selects_last_block() -> None:
    curve = parse_feed(JULY_2024_FEED)

    assert curve.date == date(2024, 7, 25)
    assert curve.provenance is Provenance.FRESH
    assert curve.point("10Y").yield_pct == 4.19


def test_parse_feed_returns_all_thirteen_maturities_in_order() -> None:
    curve = parse_feed(JULY_2024_FEED)

    assert [point.months for point in curve.points] == [m.months for m in MATURITIES]
    assert curve.labels == [m.label for m in MATURITIES]


def test_parse_feed_prefers_exact_match_over_earlier_records() -> None:
    curve = parse_feed(JULY_2024_FEED, date(2024, 7, 24))

    assert curve.date == date(2024, 7, 24)
    assert curve.point("10Y").yield_pct == 4.22


def test_parse_feed_falls_back_to_closest_prior_record() -> None:
    curve = parse_feed(JULY_2024_FEED, date(2024, 7, 26))

    assert curve.date == date(2024, 7, 25)
    assert curve.point("10Y").yield_pct == 4.19


def test_parse_feed_prior_fallback_does_not_depend_on_feed_order() -> None:
    feed = make_feed(
        make_entry("2024-07-25", BC_10YEAR="4.19"),
        make_entry("2024-07-23", BC_10YEAR="4.20"),
    )

    assert parse_feed(feed, date(2024, 7, 24)).date == date(2024, 7, 23)


def test_parse_feed_raises_when_target_predates_all_records() -> None:
    with pytest.raises(NoDataForDate) as excinfo:
        parse_feed(JULY_2024_FEED, date(2024, 7, 22))

    assert excinfo.value.earliest == date(2024, 7, 23)


@pytest.mark.parametrize("text", ["", "<feed></feed>", "not xml at all"])
def test_parse_feed_requires_record_blocks(text: str) -> None:
    with pytest.raises(FeedFormatError):
        parse_feed(text)


def test_invalid_fields_are_omitted_and_order_is_kept() -> None:
    feed = make_feed(
        make_entry(
            "2024-07-25",
            BC_1MONTH="",
            BC_2MONTH="N/A",
            BC_4MONTH=None,
            BC_7YEAR="   ",
            BC_20YEAR="abc",
            BC_30YEAR="nan",
        )
    )

    curve = parse_feed(feed)

    assert curve.labels == ["3M", "6M", "1Y", "2Y", "3Y", "5Y", "10Y"]
    months = [point.months for point in curve.points]
    assert months == sorted(months)


def test_thirty_year_value_ignores_display_field() -> None:
    feed = make_feed(make_entry("2024-07-25", BC_30YEAR=None))

    curve = parse_feed(feed)

    assert "BC_30YEARDISPLAY" in feed
    assert curve.point("30Y") is None
    assert curve.labels[-1] == "20Y"


def test_blocks_without_readable_date_are_skipped_for_targeted_lookup() -> None:
    feed = make_feed(
        make_entry("2024-07-23"),
        make_entry("garbage"),
    )

    records = split_records(feed)

    assert [record.record_date for record in records] == [date(2024, 7, 23), None]
    assert parse_feed(feed, date(2024, 7, 30)).date == date(2024, 7, 23)
    with pytest.raises(FeedFormatError):
        parse_feed(feed)


def test_soup_extractor_matches_regex_extractor() -> None:
    block = make_entry("2024-07-25", BC_2MONTH="N/A", BC_4MONTH=None)

    regex_points = extract_points(block, RegexFieldExtractor())
    soup_points = extract_points(block, SoupFieldExtractor())

    assert soup_points == regex_points
    assert "2M" not in [point.label for point in soup_points]


def test_parse_feed_accepts_soup_extractor() -> None:
    curve = parse_feed(JULY_2024_FEED, date(2024, 7, 24), extractor=SoupFieldExtractor())

    assert curve.date == date(2024, 7, 24)
    assert curve.point("10Y").yield_pct == 4.22


def test_parse_all_entries_skips_empty_records() -> None:
    empty = {maturity.field: None for maturity in MATURITIES}
    feed = make_feed(
        make_entry("2024-07-23"),
        make_entry("2024-07-24", **empty),
        make_entry("2024-07-25"),
    )

    curves = parse_all_entries(feed)

    assert [curve.date for curve in curves] == [date(2024, 7, 23), date(2024, 7, 25)]


def test_parse_yield_helper_rejects_sentinels() -> None:
    assert _parse_yield(None) is None
    assert _parse_yield(" N/A ") is None
    assert _parse_yield("inf") is None
    assert _parse_yield(" 4.19 ") == 4.19
    assert _parse_yield("-0.05") == -0.05


class _FakeResponse:
    def __init__(self, text: str = "", status_code: int = 200) -> None:
        self.text = text
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")


class _FakeSession:
    def __init__(self, response: _FakeResponse | None = None, error: Exception | None = None) -> None:
        self.headers: dict[str, str] = {}
        self.response = response
        self.error = error
        self.requested: list[tuple[str, float]] = []
        self.closed = False

    def get(self, url: str, timeout: float):
        self.requested.append((url, timeout))
        if self.error is not None:
            raise self.error
        return self.response

    def close(self) -> None:
        self.closed = True


def test_client_fetches_year_url() -> None:
    session = _FakeSession(_FakeResponse(JULY_2024_FEED))
    with TreasuryFeedClient(session=session, timeout=5) as client:
        text = client.fetch(2024)

    assert text == JULY_2024_FEED
    url, timeout = session.requested[0]
    assert url.endswith("data=daily_treasury_yield_curve&field_tdr_date_value=2024")
    assert timeout == 5
    assert session.headers["User-Agent"].startswith("ust-yieldcurve")
    assert session.closed


def test_client_wraps_http_errors() -> None:
    client = TreasuryFeedClient(session=_FakeSession(_FakeResponse(status_code=503)))

    with pytest.raises(NetworkError):
        client.fetch(2024)


def test_client_retries_connection_errors_then_gives_up() -> None:
    session = _FakeSession(error=requests.ConnectionError("offline"))
    client = TreasuryFeedClient(session=session, max_attempts=2, backoff_seconds=0)

    with pytest.raises(NetworkError) as excinfo:
        client.fetch(2024)

    assert len(session.requested) == 2
    assert isinstance(excinfo.value.__cause__, requests.ConnectionError)


def test_client_recovers_after_transient_timeout() -> None:
    class _FlakySession(_FakeSession):
        def get(self, url: str, timeout: float):
            self.requested.append((url, timeout))
            if len(self.requested) == 1:
                raise requests.Timeout("slow")
            return self.response

    session = _FlakySession(_FakeResponse(JULY_2024_FEED))
    client = TreasuryFeedClient(session=session, backoff_seconds=0)

    assert client.fetch(2024) == JULY_2024_FEED
    assert len(session.requested) == 2


def test_client_does_not_retry_http_errors() -> None:
    session = _FakeSession(_FakeResponse(status_code=404))
    client = TreasuryFeedClient(session=session, backoff_seconds=0)

    with pytest.raises(NetworkError):
        client.fetch(2024)

    assert len(session.requested) == 1
