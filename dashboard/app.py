"""
Stock Signals — Streamlit Dashboard
===================================

Browser view of the same analysis the ``stock-signals analyze`` command
prints: one card per ticker with price, daily change, volume, indicator
values and the recommendation, plus a closing-price chart and related news.

State
-----
The only state kept between reruns is one ``DashboardState`` value in
``st.session_state["dashboard_state"]``.  It is frozen; every update builds
a new value and stores it back.

Usage
-----
    pip install -e ".[dashboard]"
    streamlit run dashboard/app.py

    # Alternate config file:
    streamlit run dashboard/app.py -- --config config/local.toml
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

# ── Ensure project root is importable ────────────────────────────────────────
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import streamlit as st

# ── Must be the first Streamlit call ─────────────────────────────────────────
st.set_page_config(
    page_title="Stock Signals",
    layout="wide",
    initial_sidebar_state="expanded",
)

import pandas as pd

from dashboard.data_loader import chart_frame, load_news, load_report
from stock_signals.config import AppConfig, load_config
from stock_signals.models.dashboard import DashboardState
from stock_signals.models.recommendation import RecommendationLabel
from stock_signals.reporting.formatters import (
    format_change,
    format_number,
    format_price,
    format_volume,
)
from stock_signals.utils.logging import configure_logging
from stock_signals.utils.time_utils import age_hours

_STATE_KEY = "dashboard_state"

_BULLISH = {RecommendationLabel.STRONG_BUY, RecommendationLabel.BUY, RecommendationLabel.HOLD_UPTREND}
_BEARISH = {RecommendationLabel.STRONG_SELL, RecommendationLabel.SELL, RecommendationLabel.HOLD_DOWNTREND}


@st.cache_resource
def _init_config(config_path: str | None) -> AppConfig:
    """Load config and configure logging once per process."""
    config = load_config(Path(config_path) if config_path else None)
    configure_logging(config.logging)
    return config


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(add_help=False)
    parser.add_argument("--config", default=None)
    args, _ = parser.parse_known_args()
    return args


config = _init_config(_parse_args().config)

state: DashboardState = st.session_state.get(_STATE_KEY) or DashboardState()


# ── Sidebar ───────────────────────────────────────────────────────────────────

with st.sidebar:
    st.title("Stock Signals")
    st.caption("Daily SMA / RSI / MACD signals")
    if not config.api.api_key or config.api.use_fixture:
        st.warning("No API key in use — showing synthetic fixture data.")
    st.divider()

    preset = st.selectbox(
        "Ticker",
        options=config.dashboard.default_tickers,
        index=0,
    )
    custom = st.text_input("Or enter a symbol", value="", max_chars=10)
    ticker = (custom or preset or "").strip().upper()

    if st.button("Clear cache", help="Force a fresh fetch for every ticker."):
        st.cache_data.clear()
        st.session_state[_STATE_KEY] = DashboardState()
        st.rerun()

    st.divider()
    st.caption("Same analysis from the terminal:")
    st.code(f"stock-signals analyze {ticker or 'AAPL'}")

if not ticker:
    st.info("Choose or enter a ticker symbol.")
    st.stop()

report, series = load_report(ticker, config)
state = state.with_report(report, series).select(ticker)
st.session_state[_STATE_KEY] = state


# ── Card ──────────────────────────────────────────────────────────────────────

report = state.selected_report
st.header(f"{report.company_name or report.ticker} ({report.ticker})")

if report.recommendation_label == RecommendationLabel.LOAD_FAILED:
    st.error(report.rationale)
    st.stop()

computed = age_hours(report.generated_at)
st.caption(
    f"As of {report.as_of.isoformat() if report.as_of else 'N/A'}"
    + (f" · computed {computed:.1f}h ago" if computed is not None else "")
)

col_price, col_volume, col_rec = st.columns(3)
col_price.metric(
    "Price",
    format_price(report.latest_price),
    delta=format_change(report.price_change, report.price_change_pct)
    if report.price_change is not None else None,
)
col_volume.metric("Volume", format_volume(report.latest_volume))
col_rec.metric("Recommendation", report.recommendation_label.display)

if report.recommendation_label in _BULLISH:
    st.success(report.rationale)
elif report.recommendation_label in _BEARISH:
    st.error(report.rationale)
else:
    st.info(report.rationale)

col_sma, col_rsi, col_macd, col_sig = st.columns(4)
col_sma.metric("SMA(20)", format_number(report.sma20))
col_rsi.metric("RSI(14)", format_number(report.rsi14))
col_rsi.caption(report.rsi_status)
col_macd.metric("MACD", format_number(report.macd_line))
col_macd.caption(report.macd_status)
col_sig.metric("Signal", format_number(report.signal_line))
col_sig.caption(f"histogram {format_number(report.histogram)}")


# ── Tabs ──────────────────────────────────────────────────────────────────────

tab_chart, tab_news, tab_compare = st.tabs(["Chart", "News", "Compare"])

with tab_chart:
    days = config.dashboard.chart_days
    st.subheader(f"Closing price — last {days} sessions")
    chart_series = state.selected_series
    if chart_series is None or len(chart_series) == 0:
        st.info("No price data available for the chart.")
    else:
        st.line_chart(chart_frame(chart_series, days), y="Close")

with tab_news:
    articles = load_news(ticker, config.dashboard.news_limit, config)
    if not articles:
        st.info("No related news found.")
    for article in articles:
        meta = article.source or "unknown source"
        if article.published_at is not None:
            meta = f"{meta} · {article.published_at.date().isoformat()}"
        st.markdown(f"**[{article.title}]({article.url})**  \n{meta}")

with tab_compare:
    st.caption("Tickers viewed in this session")
    rows = [
        {
            "Ticker":         r.ticker,
            "Price":          format_price(r.latest_price),
            "Change":         format_change(r.price_change, r.price_change_pct),
            "RSI(14)":        format_number(r.rsi14),
            "MACD":           format_number(r.macd_line),
            "Recommendation": r.recommendation_label.display,
        }
        for r in state.reports.values()
    ]
    st.dataframe(pd.DataFrame(rows), hide_index=True, use_container_width=True)
