"""
Analysis pipeline: price series → indicator snapshot → recommendation → report.

Two entry points:

``analyze_series(series, config)``
    Pure.  Builds the ``StockReport`` for an already-fetched series.

``analyze_ticker(client, ticker, config)`` / ``analyze_tickers(...)``
    Fetch through an ``AlphaVantageClient`` and then ``analyze_series``.
    Tickers are processed strictly one after another — the client owns the
    request spacing.  A fetch failure (``MarketDataError`` or
    ``httpx.HTTPError``) becomes a ``load_failed`` report for that ticker so
    one bad symbol never aborts a multi-ticker run.  Anything else (e.g. a
    validation error in the core) propagates.

``load_news(client, ticker, limit)``
    Headlines are decoration: failures are logged and yield an empty list.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

import httpx

from stock_signals.config import AppConfig
from stock_signals.indicators.snapshot import build_snapshot
from stock_signals.ingestion.alpha_vantage_client import AlphaVantageClient, MarketDataError
from stock_signals.models.market import NewsArticle, PriceSeries
from stock_signals.models.recommendation import RecommendationLabel, StockReport
from stock_signals.recommendations.classifier import (
    ClassifierThresholds,
    classify_snapshot,
    macd_status,
    rsi_status,
)
from stock_signals.utils.time_utils import utcnow

logger = logging.getLogger(__name__)


def analyze_series(series: PriceSeries, config: AppConfig) -> StockReport:
    """Compute indicators and a recommendation for one validated series.

    Args:
        series: Daily closes, ascending by date.
        config: Application config (indicator periods and thresholds).

    Returns:
        A frozen ``StockReport``.  An empty series yields an
        ``insufficient_data`` report with no price fields.
    """
    closes = series.closes
    thresholds = ClassifierThresholds.from_config(config.indicators)
    snapshot = build_snapshot(closes, config.indicators)

    latest_price = closes[-1] if closes else None
    previous_close = closes[-2] if len(closes) >= 2 else None
    price_change, price_change_pct = _daily_change(latest_price, previous_close)

    rec = classify_snapshot(latest_price, snapshot, thresholds)
    logger.info(
        "%s → %s (%d closes) | %s",
        series.ticker, rec.label.value, len(closes), rec.rationale,
    )

    latest = series.points[-1] if series.points else None
    return StockReport(
        ticker=series.ticker,
        company_name=series.display_name,
        as_of=latest.date if latest else None,
        latest_price=latest_price,
        previous_close=previous_close,
        price_change=price_change,
        price_change_pct=price_change_pct,
        latest_volume=latest.volume if latest else None,
        sma20=snapshot.sma,
        rsi14=snapshot.rsi,
        macd_line=snapshot.macd_line,
        signal_line=snapshot.signal_line,
        histogram=snapshot.histogram,
        rsi_status=rsi_status(snapshot.rsi, thresholds),
        macd_status=macd_status(snapshot.macd_line, snapshot.signal_line),
        recommendation_label=rec.label,
        rationale=rec.rationale,
        generated_at=utcnow(),
    )


def analyze_ticker(
    client: AlphaVantageClient,
    ticker: str,
    config: AppConfig,
) -> tuple[StockReport, Optional[PriceSeries]]:
    """Fetch and analyse one ticker.

    Returns:
        ``(report, series)`` — ``series`` is ``None`` when the fetch failed,
        in which case ``report`` carries the ``load_failed`` label.
    """
    ticker = ticker.strip().upper()
    try:
        series = client.fetch_daily_series(ticker)
    except (MarketDataError, httpx.HTTPError) as exc:
        logger.error("Failed to load daily series for %s: %s", ticker, exc)
        return load_failed_report(ticker, str(exc)), None
    return analyze_series(series, config), series


def analyze_tickers(
    client: AlphaVantageClient,
    tickers: Iterable[str],
    config: AppConfig,
) -> list[StockReport]:
    """Analyse each ticker in order; duplicates are analysed once."""
    seen: set[str] = set()
    reports: list[StockReport] = []
    for raw in tickers:
        ticker = raw.strip().upper()
        if not ticker or ticker in seen:
            continue
        seen.add(ticker)
        report, _ = analyze_ticker(client, ticker, config)
        reports.append(report)
    return reports


def load_news(client: AlphaVantageClient, ticker: str, limit: int) -> list[NewsArticle]:
    """Fetch headlines for ``ticker``; returns ``[]`` on any fetch failure."""
    try:
        return client.fetch_news(ticker, limit=limit)
    except (MarketDataError, httpx.HTTPError) as exc:
        logger.error("Failed to load news for %s: %s", ticker, exc)
        return []


def load_failed_report(ticker: str, reason: str) -> StockReport:
    """Report for a ticker whose price series could not be loaded."""
    return StockReport(
        ticker=ticker,
        company_name=ticker,
        recommendation_label=RecommendationLabel.LOAD_FAILED,
        rationale=f"Could not load price data for {ticker}: {reason}",
        generated_at=utcnow(),
    )


def _daily_change(
    latest: Optional[float],
    previous: Optional[float],
) -> tuple[Optional[float], Optional[float]]:
    if latest is None or previous is None:
        return None, None
    change = latest - previous
    # PriceSeries guarantees previous > 0
    return change, change / previous * 100.0
