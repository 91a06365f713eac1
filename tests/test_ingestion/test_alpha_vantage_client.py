"""
Tests for stock_signals.ingestion.alpha_vantage_client.

Covers:
  - parse_daily_series(): sorting, malformed/invalid rows, error payloads
  - parse_news_feed(): limit, missing fields, timestamp parsing
  - AlphaVantageClient: query params, throttling, rate-limit retries,
    HTTP errors, fixture mode

Network calls go through ``httpx.MockTransport``; the clock and sleep are
replaced by a fake so throttle and back-off waits are recorded, not slept.
"""

from __future__ import annotations

from datetime import date, datetime

import httpx
import pytest

from stock_signals.config import ApiConfig
from stock_signals.ingestion.alpha_vantage_client import (
    AlphaVantageClient,
    EmptySeriesError,
    MarketDataError,
    RateLimitError,
    SymbolNotFoundError,
    parse_daily_series,
    parse_news_feed,
    raise_for_api_error,
)

# ── Fixtures ───────────────────────────────────────────────────────────────────

_DAILY = {
    "Meta Data": {"1. Information": "Daily Prices", "2. Symbol": "IBM"},
    "Time Series (Daily)": {
        "2025-01-03": {"4. close": "102.50", "5. volume": "3000"},
        "2025-01-02": {"4. close": "101.00", "5. volume": "2000"},
        "2025-01-06": {"4. close": "103.25", "5. volume": "4000"},
    },
}

_NEWS = {
    "feed": [
        {"title": "One", "url": "https://n/1", "source": "Wire", "time_published": "20250131T140000"},
        {"title": "", "url": "https://n/skip"},
        {"title": "Two", "url": "https://n/2", "source": "Wire", "time_published": "bad"},
        {"title": "Three", "url": "https://n/3"},
    ]
}

_RATE_NOTE = {"Note": "Thank you for using Alpha Vantage! Our standard API call frequency is 5 calls per minute."}


class FakeClock:
    """Monotonic clock whose ``sleep`` advances time and records the wait."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def _client(handler, clock: FakeClock, **kwargs) -> AlphaVantageClient:
    return AlphaVantageClient(
        api_key="demo",
        http_client=httpx.Client(transport=httpx.MockTransport(handler)),
        sleep=clock.sleep,
        clock=clock,
        **kwargs,
    )


# ── raise_for_api_error ────────────────────────────────────────────────────────

class TestRaiseForApiError:
    def test_error_message_is_symbol_not_found(self):
        with pytest.raises(SymbolNotFoundError, match="ZZZZ"):
            raise_for_api_error({"Error Message": "Invalid API call."}, "ZZZZ")

    def test_note_is_rate_limit(self):
        with pytest.raises(RateLimitError):
            raise_for_api_error(_RATE_NOTE, "IBM")

    def test_information_rate_limit_wording(self):
        with pytest.raises(RateLimitError):
            raise_for_api_error({"Information": "You have hit the rate limit for today."}, "IBM")

    def test_other_information_is_generic_error(self):
        with pytest.raises(MarketDataError) as exc_info:
            raise_for_api_error({"Information": "This is a premium endpoint."}, "IBM")
        assert not isinstance(exc_info.value, RateLimitError)

    def test_clean_payload_passes(self):
        raise_for_api_error(_DAILY, "IBM")


# ── parse_daily_series ─────────────────────────────────────────────────────────

class TestParseDailySeries:
    def test_sorted_ascending(self):
        series = parse_daily_series(_DAILY, "IBM")
        assert series.dates == [date(2025, 1, 2), date(2025, 1, 3), date(2025, 1, 6)]
        assert series.closes == [101.0, 102.5, 103.25]
        assert series.points[-1].volume == 4000

    def test_company_name_from_meta(self):
        assert parse_daily_series(_DAILY, "IBM").company_name == "IBM"

    def test_invalid_rows_skipped(self):
        payload = {
            "Time Series (Daily)": {
                "2025-01-02": {"4. close": "101.00"},
                "2025-01-03": {"4. close": "n/a"},
                "2025-01-06": {"4. close": "0"},
                "not-a-date": {"4. close": "5"},
                "2025-01-07": {"1. open": "1"},
                "2025-01-08": {"4. close": "104.00", "5. volume": "oops"},
            }
        }
        series = parse_daily_series(payload, "IBM")
        assert series.closes == [101.0, 104.0]
        assert series.points[-1].volume is None

    def test_missing_series_raises(self):
        with pytest.raises(EmptySeriesError):
            parse_daily_series({"Meta Data": {}}, "IBM")

    def test_all_rows_invalid_raises(self):
        with pytest.raises(EmptySeriesError):
            parse_daily_series({"Time Series (Daily)": {"2025-01-02": {"4. close": "-1"}}}, "IBM")

    def test_error_payload_raises(self):
        with pytest.raises(SymbolNotFoundError):
            parse_daily_series({"Error Message": "Invalid API call."}, "ZZZZ")


# ── parse_news_feed ────────────────────────────────────────────────────────────

class TestParseNewsFeed:
    def test_drops_incomplete_items(self):
        titles = [a.title for a in parse_news_feed(_NEWS, "IBM", 10)]
        assert titles == ["One", "Two", "Three"]

    def test_respects_limit(self):
        assert len(parse_news_feed(_NEWS, "IBM", 2)) == 2

    def test_timestamp_parsing(self):
        articles = parse_news_feed(_NEWS, "IBM", 10)
        assert articles[0].published_at == datetime(2025, 1, 31, 14, 0, 0)
        assert articles[1].published_at is None

    def test_empty_feed(self):
        assert parse_news_feed({}, "IBM", 5) == []

    def test_zero_limit_returns_nothing(self):
        assert parse_news_feed(_NEWS, "IBM", 0) == []


# ── AlphaVantageClient ─────────────────────────────────────────────────────────

class TestClientRequests:
    def test_daily_query_params(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=_DAILY)

        client = _client(handler, FakeClock(), output_size="full")
        series = client.fetch_daily_series(" ibm ")

        assert series.ticker == "IBM"
        params = seen[0].url.params
        assert params["function"] == "TIME_SERIES_DAILY"
        assert params["symbol"] == "IBM"
        assert params["outputsize"] == "full"
        assert params["apikey"] == "demo"

    def test_news_query_params(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=_NEWS)

        articles = _client(handler, FakeClock()).fetch_news("IBM", limit=2)

        assert len(articles) == 2
        params = seen[0].url.params
        assert params["function"] == "NEWS_SENTIMENT"
        assert params["tickers"] == "IBM"
        assert params["limit"] == "2"

    def test_http_error_propagates(self):
        client = _client(lambda request: httpx.Response(500), FakeClock())
        with pytest.raises(httpx.HTTPStatusError):
            client.fetch_daily_series("IBM")

    def test_unknown_symbol_raises(self):
        client = _client(
            lambda request: httpx.Response(200, json={"Error Message": "Invalid API call."}),
            FakeClock(),
        )
        with pytest.raises(SymbolNotFoundError):
            client.fetch_daily_series("ZZZZ")

    def test_non_json_body_is_market_data_error(self):
        client = _client(
            lambda request: httpx.Response(200, text="<html>Service Unavailable</html>"),
            FakeClock(),
        )
        with pytest.raises(MarketDataError, match="not valid JSON"):
            client.fetch_daily_series("IBM")

    def test_non_object_json_is_market_data_error(self):
        client = _client(lambda request: httpx.Response(200, json=["unexpected"]), FakeClock())
        with pytest.raises(MarketDataError, match="JSON object"):
            client.fetch_news("IBM")


class TestClientRateLimiting:
    def test_consecutive_requests_are_spaced(self):
        clock = FakeClock()
        client = _client(lambda request: httpx.Response(200, json=_DAILY), clock)
        client.fetch_daily_series("IBM")
        client.fetch_daily_series("IBM")
        assert clock.sleeps == [12.0]

    def test_no_wait_when_interval_already_elapsed(self):
        clock = FakeClock()
        client = _client(lambda request: httpx.Response(200, json=_DAILY), clock)
        client.fetch_daily_series("IBM")
        clock.now += 30.0
        client.fetch_daily_series("IBM")
        assert clock.sleeps == []

    def test_rate_limit_note_is_retried(self):
        responses = iter([_RATE_NOTE, _DAILY])
        clock = FakeClock()
        client = _client(lambda request: httpx.Response(200, json=next(responses)), clock)

        series = client.fetch_daily_series("IBM")

        assert len(series) == 3
        # back-off of 15 s already covers the 12 s request spacing
        assert clock.sleeps == [15.0]

    def test_backoff_grows_linearly_then_gives_up(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, json=_RATE_NOTE)

        clock = FakeClock()
        client = _client(handler, clock, max_retries=2)

        with pytest.raises(RateLimitError):
            client.fetch_daily_series("IBM")
        assert len(calls) == 3
        assert clock.sleeps == [15.0, 30.0]


class TestFixtureMode:
    def test_no_key_means_fixture_mode(self):
        assert AlphaVantageClient().fixture_mode
        assert AlphaVantageClient(api_key="k", use_fixture=True).fixture_mode
        assert not AlphaVantageClient(api_key="k").fixture_mode

    def test_fixture_series_shape(self):
        series = AlphaVantageClient().fetch_daily_series("aapl")
        assert series.ticker == "AAPL"
        assert len(series) == AlphaVantageClient.FIXTURE_SESSIONS
        assert series.dates[-1] == date(2025, 1, 31)
        assert all(d.weekday() < 5 for d in series.dates)
        assert all(c > 0 for c in series.closes)

    def test_fixture_series_is_deterministic(self):
        a = AlphaVantageClient().fetch_daily_series("MSFT")
        b = AlphaVantageClient().fetch_daily_series("MSFT")
        assert a.closes == b.closes

    def test_tickers_differ(self):
        client = AlphaVantageClient()
        assert client.fetch_daily_series("MSFT").closes != client.fetch_daily_series("TSLA").closes

    def test_fixture_makes_no_http_calls(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("fixture mode must not hit the network")

        client = AlphaVantageClient(
            use_fixture=True,
            api_key="k",
            http_client=httpx.Client(transport=httpx.MockTransport(handler)),
        )
        client.fetch_daily_series("IBM")
        client.fetch_news("IBM")

    def test_fixture_news(self):
        articles = AlphaVantageClient().fetch_news("ibm", limit=2)
        assert len(articles) == 2
        assert "IBM" in articles[0].title
        assert articles[0].url == "https://example.com/news/ibm/1"

    def test_from_config(self):
        client = AlphaVantageClient.from_config(
            ApiConfig(api_key="k", output_size="full", min_request_interval_s=1.0)
        )
        assert client.api_key == "k"
        assert client.output_size == "full"
        assert client.min_request_interval_s == 1.0
        assert not client.fixture_mode
