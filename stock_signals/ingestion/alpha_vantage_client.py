"""
Alpha Vantage market-data client — daily closes and news headlines.

API:   https://www.alphavantage.co/query
Docs:  https://www.alphavantage.co/documentation/

Credential setup (.env, gitignored):
  ALPHA_VANTAGE_API_KEY=your_key_here

Endpoints used:
  Daily series:
    GET /query?function=TIME_SERIES_DAILY&symbol={ticker}&outputsize=compact
    → {"Meta Data": {"2. Symbol": "AAPL", ...},
       "Time Series (Daily)": {"2024-01-02": {"4. close": "185.64",
                                              "5. volume": "82488674", ...}}}
  News:
    GET /query?function=NEWS_SENTIMENT&tickers={ticker}&limit=5&sort=LATEST
    → {"feed": [{"title": ..., "url": ..., "source": ...,
                 "time_published": "20240102T143000"}, ...]}

Error payloads (HTTP 200 with a JSON body):
  {"Error Message": "..."}   invalid symbol or malformed request
  {"Note": "..."}            call-frequency limit hit
  {"Information": "..."}     rate-limit or premium-endpoint notice

Rate limiting:
  The free tier allows 5 requests per minute.  Requests are strictly
  sequential and spaced by ``min_request_interval_s``; a rate-limit notice
  triggers up to ``max_retries`` retries with a linearly growing back-off.

Fixture mode:
  With no API key (or ``use_fixture=True``) the client serves a deterministic
  synthetic series and canned headlines so the CLI and dashboard run offline.
"""

from __future__ import annotations

import logging
import math
import time
from datetime import date, datetime, timedelta
from typing import Any, Callable, ClassVar, Optional

import httpx

from stock_signals.config import ApiConfig
from stock_signals.models.market import NewsArticle, PricePoint, PriceSeries

logger = logging.getLogger(__name__)


# ── Errors ─────────────────────────────────────────────────────────────────────

class MarketDataError(RuntimeError):
    """The market-data API returned no usable data."""


class SymbolNotFoundError(MarketDataError):
    """The API rejected the symbol or the request (``"Error Message"``)."""


class RateLimitError(MarketDataError):
    """The API answered with a call-frequency notice instead of data."""


class EmptySeriesError(MarketDataError):
    """The response held no parseable daily closes."""


# ── Response parsers ───────────────────────────────────────────────────────────

_SERIES_KEY = "Time Series (Daily)"
_RATE_LIMIT_MARKERS = ("rate limit", "call frequency", "calls per")


def raise_for_api_error(payload: dict[str, Any], ticker: str) -> None:
    """Map Alpha Vantage's in-band error payloads onto exceptions.

    Raises:
        SymbolNotFoundError: ``"Error Message"`` present.
        RateLimitError:      ``"Note"`` present, or ``"Information"`` mentions
                             the call-frequency limit.
        MarketDataError:     Any other ``"Information"`` notice.
    """
    if msg := payload.get("Error Message"):
        raise SymbolNotFoundError(f"{ticker}: {msg}")
    if note := payload.get("Note"):
        raise RateLimitError(f"{ticker}: {note}")
    if info := payload.get("Information"):
        if any(marker in info.lower() for marker in _RATE_LIMIT_MARKERS):
            raise RateLimitError(f"{ticker}: {info}")
        raise MarketDataError(f"{ticker}: {info}")


def parse_daily_series(payload: dict[str, Any], ticker: str) -> PriceSeries:
    """Parse a TIME_SERIES_DAILY response into an ascending ``PriceSeries``.

    Rows with an unparseable date, or a close that is not a positive finite
    number, are skipped with a warning.

    Raises:
        SymbolNotFoundError / RateLimitError / MarketDataError: error payloads.
        EmptySeriesError: No daily series, or no valid rows in it.
    """
    raise_for_api_error(payload, ticker)

    raw_series = payload.get(_SERIES_KEY)
    if not raw_series:
        raise EmptySeriesError(f"{ticker}: response contains no daily time series.")

    points: list[PricePoint] = []
    for date_str in sorted(raw_series):
        row = raw_series[date_str]
        try:
            session = date.fromisoformat(date_str)
            close = float(row["4. close"])
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("%s: skipping malformed row %s (%s)", ticker, date_str, exc)
            continue
        if not math.isfinite(close) or close <= 0:
            logger.warning("%s: skipping row %s with invalid close %r", ticker, date_str, close)
            continue
        points.append(PricePoint(date=session, close=close, volume=_parse_volume(row)))

    if not points:
        raise EmptySeriesError(f"{ticker}: daily time series has no valid closes.")

    company_name = payload.get("Meta Data", {}).get("2. Symbol", ticker)
    return PriceSeries(ticker=ticker, company_name=company_name, points=tuple(points))


def parse_news_feed(payload: dict[str, Any], ticker: str, limit: int) -> list[NewsArticle]:
    """Parse a NEWS_SENTIMENT response into at most ``limit`` articles.

    Feed entries missing a title or URL are dropped.
    """
    raise_for_api_error(payload, ticker)

    articles: list[NewsArticle] = []
    for item in payload.get("feed", []):
        if len(articles) >= limit:
            break
        title = item.get("title")
        url = item.get("url")
        if not title or not url:
            continue
        articles.append(
            NewsArticle(
                title=title,
                url=url,
                source=item.get("source", ""),
                published_at=_parse_published(item.get("time_published")),
            )
        )
    return articles


def _parse_volume(row: dict[str, Any]) -> Optional[int]:
    raw = row.get("5. volume")
    if raw is None:
        return None
    try:
        volume = int(float(raw))
    except (TypeError, ValueError):
        return None
    return volume if volume >= 0 else None


def _parse_published(raw: Optional[str]) -> Optional[datetime]:
    """Parse ``YYYYMMDDTHHMMSS`` (seconds optional)."""
    if not raw:
        return None
    for fmt in ("%Y%m%dT%H%M%S", "%Y%m%dT%H%M"):
        try:
            return datetime.strptime(raw, fmt)
        except ValueError:
            continue
    return None


# ── Client ─────────────────────────────────────────────────────────────────────

class AlphaVantageClient:
    """Sequential, rate-limited client for the Alpha Vantage query API.

    Usage (fixture mode — no API key required)::

        client = AlphaVantageClient()
        series = client.fetch_daily_series("AAPL")   # synthetic, deterministic

    Usage (real API)::

        client = AlphaVantageClient.from_config(app_config.api)
        with client:
            series = client.fetch_daily_series("AAPL")
            news = client.fetch_news("AAPL", limit=5)

    ``sleep`` and ``clock`` are injectable so tests can run the throttle and
    retry logic without waiting.
    """

    FIXTURE_END_DATE: ClassVar[date] = date(2025, 1, 31)
    FIXTURE_SESSIONS: ClassVar[int] = 120

    FIXTURE_NEWS: ClassVar[list[dict]] = [
        {
            "title": "{ticker} shares edge higher ahead of quarterly earnings",
            "source": "Fixture Wire",
            "time_published": "20250131T140000",
        },
        {
            "title": "Analysts revisit price targets for {ticker}",
            "source": "Fixture Markets",
            "time_published": "20250130T093000",
        },
        {
            "title": "What options traders expect from {ticker} this week",
            "source": "Fixture Daily",
            "time_published": "20250129T161500",
        },
    ]

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = "https://www.alphavantage.co/query",
        timeout_s: float = 30.0,
        output_size: str = "compact",
        min_request_interval_s: float = 12.0,
        max_retries: int = 2,
        retry_backoff_s: float = 15.0,
        use_fixture: bool = False,
        http_client: Optional[httpx.Client] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialise the client.

        Args:
            api_key: Alpha Vantage key. ``None`` → fixture mode.
            base_url: Query endpoint.
            timeout_s: Per-request timeout.
            output_size: ``"compact"`` (last 100 sessions) or ``"full"``.
            min_request_interval_s: Minimum spacing between requests.
            max_retries: Retries after a rate-limit notice.
            retry_backoff_s: Back-off unit; attempt ``k`` waits ``k * retry_backoff_s``.
            use_fixture: Force fixture mode even with a key.
            http_client: Pre-built ``httpx.Client`` (tests pass one with a
                ``MockTransport``). Created lazily when omitted.
            sleep: Sleep function.
            clock: Monotonic clock.
        """
        self.api_key = api_key
        self.base_url = base_url
        self.timeout_s = timeout_s
        self.output_size = output_size
        self.min_request_interval_s = min_request_interval_s
        self.max_retries = max_retries
        self.retry_backoff_s = retry_backoff_s
        self.use_fixture = use_fixture
        self._http = http_client
        self._owns_http = http_client is None
        self._sleep = sleep
        self._clock = clock
        self._last_request_at: Optional[float] = None

    @classmethod
    def from_config(cls, config: ApiConfig, **kwargs: Any) -> "AlphaVantageClient":
        """Build a client from the ``[api]`` config section."""
        return cls(
            api_key=config.api_key,
            base_url=config.base_url,
            timeout_s=config.timeout_s,
            output_size=config.output_size,
            min_request_interval_s=config.min_request_interval_s,
            max_retries=config.max_retries,
            retry_backoff_s=config.retry_backoff_s,
            use_fixture=config.use_fixture,
            **kwargs,
        )

    @property
    def fixture_mode(self) -> bool:
        return self.use_fixture or not self.api_key

    # ── Public API ─────────────────────────────────────────────────────────────

    def fetch_daily_series(self, ticker: str) -> PriceSeries:
        """Fetch the daily closing series for ``ticker``, oldest first.

        Raises:
            MarketDataError: (or subclass) on an error payload or empty series.
            httpx.HTTPError: On transport failure or non-2xx status.
        """
        ticker = ticker.strip().upper()
        if self.fixture_mode:
            logger.warning("No Alpha Vantage API key in use; serving fixture series for %s", ticker)
            return self.get_fixture_series(ticker)

        payload = self._get(
            {"function": "TIME_SERIES_DAILY", "symbol": ticker, "outputsize": self.output_size},
            ticker,
        )
        series = parse_daily_series(payload, ticker)
        logger.info(
            "Fetched %d daily closes for %s (%s → %s)",
            len(series), ticker, series.points[0].date, series.points[-1].date,
        )
        return series

    def fetch_news(self, ticker: str, limit: int = 5) -> list[NewsArticle]:
        """Fetch up to ``limit`` of the latest headlines mentioning ``ticker``.

        Raises:
            MarketDataError: (or subclass) on an error payload.
            httpx.HTTPError: On transport failure or non-2xx status.
        """
        ticker = ticker.strip().upper()
        if self.fixture_mode:
            return self.get_fixture_news(ticker, limit)

        payload = self._get(
            {"function": "NEWS_SENTIMENT", "tickers": ticker, "limit": limit, "sort": "LATEST"},
            ticker,
        )
        articles = parse_news_feed(payload, ticker, limit)
        logger.info("Fetched %d news articles for %s", len(articles), ticker)
        return articles

    def close(self) -> None:
        if self._http is not None and self._owns_http:
            self._http.close()
            self._http = None

    def __enter__(self) -> "AlphaVantageClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ── Transport ──────────────────────────────────────────────────────────────

    def _get(self, params: dict[str, Any], ticker: str) -> dict[str, Any]:
        """Issue one throttled GET, retrying on rate-limit notices."""
        query = {**params, "apikey": self.api_key}
        attempt = 0
        while True:
            self._throttle()
            resp = self._client().get(self.base_url, params=query)
            resp.raise_for_status()
            try:
                payload = resp.json()
            except ValueError as exc:
                raise MarketDataError(f"{ticker}: response is not valid JSON") from exc
            if not isinstance(payload, dict):
                raise MarketDataError(
                    f"{ticker}: expected a JSON object, got {type(payload).__name__}"
                )
            try:
                raise_for_api_error(payload, ticker)
            except RateLimitError:
                if attempt >= self.max_retries:
                    raise
                attempt += 1
                wait = self.retry_backoff_s * attempt
                logger.warning(
                    "Alpha Vantage rate limit hit for %s; retry %d/%d in %.1fs",
                    ticker, attempt, self.max_retries, wait,
                )
                self._sleep(wait)
                continue
            return payload

    def _throttle(self) -> None:
        """Block until ``min_request_interval_s`` has passed since the last request."""
        now = self._clock()
        if self._last_request_at is not None:
            remaining = self.min_request_interval_s - (now - self._last_request_at)
            if remaining > 0:
                logger.debug("Throttling %.2fs before next Alpha Vantage request", remaining)
                self._sleep(remaining)
                now = self._clock()
        self._last_request_at = now

    def _client(self) -> httpx.Client:
        if self._http is None:
            self._http = httpx.Client(timeout=self.timeout_s)
        return self._http

    # ── Fixture mode ───────────────────────────────────────────────────────────

    def get_fixture_series(self, ticker: str, sessions: Optional[int] = None) -> PriceSeries:
        """Return a deterministic synthetic weekday series for ``ticker``.

        The curve is a gentle uptrend with two overlaid waves; the ticker's
        characters pick the price level and phase so different tickers look
        different while staying reproducible.
        """
        ticker = ticker.strip().upper()
        sessions = sessions or self.FIXTURE_SESSIONS
        seed = sum(ord(c) for c in ticker)
        base = 40.0 + seed % 200
        phase = (seed % 17) / 3.0

        dates = _weekdays_ending(self.FIXTURE_END_DATE, sessions)
        points = []
        for i, session in enumerate(dates):
            close = (
                base
                + 0.12 * i
                + 0.06 * base * math.sin(i / 6.0 + phase)
                + 0.015 * base * math.sin(i / 1.7)
            )
            points.append(
                PricePoint(
                    date=session,
                    close=round(close, 2),
                    volume=20_000_000 + (i * 7_919 + seed * 104_729) % 30_000_000,
                )
            )
        logger.debug("Built %d fixture closes for %s", len(points), ticker)
        return PriceSeries(ticker=ticker, company_name=ticker, points=tuple(points))

    def get_fixture_news(self, ticker: str, limit: int = 5) -> list[NewsArticle]:
        """Return canned headlines for ``ticker``."""
        articles = [
            NewsArticle(
                title=item["title"].format(ticker=ticker),
                url=f"https://example.com/news/{ticker.lower()}/{n}",
                source=item["source"],
                published_at=_parse_published(item["time_published"]),
            )
            for n, item in enumerate(self.FIXTURE_NEWS, start=1)
        ]
        return articles[:limit]


def _weekdays_ending(end: date, count: int) -> list[date]:
    """Return ``count`` Monday–Friday dates ending on or before ``end``, ascending."""
    days: list[date] = []
    current = end
    while len(days) < count:
        if current.weekday() < 5:
            days.append(current)
        current -= timedelta(days=1)
    days.reverse()
    return days
