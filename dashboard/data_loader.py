"""
Dashboard data loader.

Fetch helpers wrapped in Streamlit caches so widget interactions do not
re-hit the rate-limited API:

  - ``get_client``   — one shared ``AlphaVantageClient`` per process
                       (``st.cache_resource``), so its request spacing
                       applies across every ticker the dashboard loads.
  - ``load_report``  — report + series for one ticker (``st.cache_data``,
                       1 hour TTL; daily closes change once a day).
  - ``load_news``    — headlines for one ticker (15 minute TTL).

Arguments prefixed with ``_`` are excluded from Streamlit's cache key.
"""

from __future__ import annotations

from typing import Optional

import pandas as pd
import streamlit as st

from stock_signals.config import AppConfig
from stock_signals.ingestion.alpha_vantage_client import AlphaVantageClient
from stock_signals.models.market import NewsArticle, PriceSeries
from stock_signals.models.recommendation import StockReport
from stock_signals.pipeline.analyze import analyze_ticker
from stock_signals.pipeline.analyze import load_news as _load_news


@st.cache_resource
def get_client(_config: AppConfig) -> AlphaVantageClient:
    """Return the process-wide API client."""
    return AlphaVantageClient.from_config(_config.api)


@st.cache_data(ttl=3600, show_spinner="Loading price data…")
def load_report(ticker: str, _config: AppConfig) -> tuple[StockReport, Optional[PriceSeries]]:
    """Fetch and analyse ``ticker``; see ``pipeline.analyze.analyze_ticker``."""
    return analyze_ticker(get_client(_config), ticker, _config)


@st.cache_data(ttl=900, show_spinner="Loading news…")
def load_news(ticker: str, limit: int, _config: AppConfig) -> list[NewsArticle]:
    """Fetch up to ``limit`` headlines for ``ticker`` (empty list on failure)."""
    return _load_news(get_client(_config), ticker, limit)


def chart_frame(series: PriceSeries, days: int) -> pd.DataFrame:
    """Closing prices for the last ``days`` sessions, indexed by date."""
    window = series.tail(days)
    return pd.DataFrame(
        {"Close": window.closes},
        index=pd.DatetimeIndex(window.dates, name="Date"),
    )
