"""
Shared pytest fixtures for the Stock Signals test suite.

Provides:
  - ``make_series``: factory building a weekday ``PriceSeries`` from closes.
  - ``app_config``: default ``AppConfig`` with request spacing disabled.
  - Sample series with known shape (accelerating up / down, short).
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Callable, Optional

import pytest

from stock_signals.config import ApiConfig, AppConfig
from stock_signals.models.market import PricePoint, PriceSeries


def build_series(
    closes: list[float],
    ticker: str = "TEST",
    start: date = date(2024, 1, 1),
    volumes: Optional[list[int]] = None,
) -> PriceSeries:
    """Build a series on consecutive weekdays starting at ``start``."""
    points = []
    current = start
    for i, close in enumerate(closes):
        while current.weekday() >= 5:
            current += timedelta(days=1)
        volume = volumes[i] if volumes is not None else 1_000_000 + i
        points.append(PricePoint(date=current, close=close, volume=volume))
        current += timedelta(days=1)
    return PriceSeries(ticker=ticker, company_name=f"{ticker} Corp", points=tuple(points))


@pytest.fixture
def make_series() -> Callable[..., PriceSeries]:
    return build_series


@pytest.fixture
def app_config() -> AppConfig:
    """Default config; fixture mode on and no request spacing."""
    return AppConfig(api=ApiConfig(use_fixture=True, min_request_interval_s=0.0))


@pytest.fixture
def rising_series() -> PriceSeries:
    """60 accelerating closes: MACD stays above its signal line, price above SMA."""
    return build_series([100.0 + 0.05 * i * i for i in range(60)], ticker="UP")


@pytest.fixture
def falling_series() -> PriceSeries:
    """60 accelerating declines: MACD stays below its signal line, price below SMA."""
    return build_series([200.0 - 0.05 * i * i for i in range(60)], ticker="DOWN")


@pytest.fixture
def short_series() -> PriceSeries:
    """10 closes — too short for every indicator."""
    return build_series([10.0 + i for i in range(10)], ticker="SHORT")
