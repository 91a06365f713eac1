"""
Indicator snapshot builder.

Runs the indicator library over one series of closes with the configured
periods and keeps only what the classifier needs: the latest value of each
indicator and the MACD/signal pair one session earlier.

History requirement
-------------------
With default periods (SMA 20, RSI 14, MACD 12/26/9) every snapshot field is
available once the series holds ``max(20, 14 + 1, 26 + 9) = 35`` closes:

  - the slow EMA first exists at close 26;
  - the signal line needs 9 MACD values, so it first exists at close 34;
  - the *previous* signal value therefore first exists at close 35.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from stock_signals.config import IndicatorConfig
from stock_signals.indicators.technical import (
    calculate_macd,
    calculate_rsi,
    calculate_sma,
)
from stock_signals.models.recommendation import IndicatorSnapshot

logger = logging.getLogger(__name__)


def required_history(config: IndicatorConfig) -> int:
    """Number of closes needed for every snapshot field to be available."""
    return max(
        config.sma_period,
        config.rsi_period + 1,
        config.macd_slow + config.macd_signal,
    )


def build_snapshot(closes: Sequence[float], config: IndicatorConfig) -> IndicatorSnapshot:
    """Compute the latest indicator values for ``closes`` (oldest first).

    Args:
        closes: Validated closing prices, ascending by date.
        config: Indicator periods.

    Returns:
        ``IndicatorSnapshot`` with ``None`` for every value whose look-back
        window is not yet filled.
    """
    sma  = calculate_sma(closes, config.sma_period)
    rsi  = calculate_rsi(closes, config.rsi_period)
    macd = calculate_macd(closes, config.macd_fast, config.macd_slow, config.macd_signal)

    snapshot = IndicatorSnapshot(
        sma=_last(sma),
        rsi=_last(rsi),
        macd_line=_last(macd.macd_line),
        signal_line=_last(macd.signal_line),
        histogram=_last(macd.histogram),
        prev_macd_line=_last(macd.macd_line, offset=2),
        prev_signal_line=_last(macd.signal_line, offset=2),
        data_points=len(closes),
        required_points=required_history(config),
    )
    if snapshot.shortfall:
        logger.debug(
            "Snapshot built from %d closes; %d more needed for full history",
            snapshot.data_points, snapshot.shortfall,
        )
    return snapshot


def _last(values: Sequence[float], offset: int = 1) -> Optional[float]:
    """Return ``values[-offset]`` or ``None`` if the sequence is too short."""
    return values[-offset] if len(values) >= offset else None
