"""
Rule-based recommendation classifier.

Turns the latest indicator values into one ``RecommendationLabel`` plus a
rationale string.  Pure functions — identical inputs always produce an
identical ``(label, rationale)``.

Decision order (first match wins)
----------------------------------
    1. INSUFFICIENT_DATA : price, SMA, RSI, MACD or signal missing / non-finite
    2. STRONG_BUY        : RSI < oversold   AND  MACD golden cross
    3. STRONG_SELL       : RSI > overbought AND  MACD dead cross
    4. BUY               : MACD golden cross
    5. SELL              : MACD dead cross
    6. HOLD_UPTREND      : price > SMA
    7. HOLD_DOWNTREND    : price < SMA
    8. NEUTRAL           : price == SMA

Crossovers
----------
    golden cross : macd > signal  AND  prev_macd <= prev_signal
    dead cross   : macd < signal  AND  prev_macd >= prev_signal

Without a finite previous MACD/signal pair no crossover can be detected, so
both flags are ``False`` and the price/SMA trend rules decide.

Every value is checked with ``math.isfinite`` before any comparison, so a NaN
can never slip through a ``<`` or ``>`` that silently evaluates to ``False``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from stock_signals.config import IndicatorConfig
from stock_signals.models.recommendation import (
    IndicatorSnapshot,
    Recommendation,
    RecommendationLabel,
)


@dataclass(frozen=True)
class ClassifierThresholds:
    """RSI bands used by the strong-buy / strong-sell rules."""

    rsi_oversold:   float = 30.0
    rsi_overbought: float = 70.0

    @classmethod
    def from_config(cls, config: IndicatorConfig) -> "ClassifierThresholds":
        return cls(rsi_oversold=config.rsi_oversold, rsi_overbought=config.rsi_overbought)


DEFAULT_THRESHOLDS = ClassifierThresholds()


def classify(
    latest_price:     Optional[float],
    sma20:            Optional[float],
    rsi14:            Optional[float],
    macd_line:        Optional[float],
    signal_line:      Optional[float],
    prev_macd_line:   Optional[float],
    prev_signal_line: Optional[float],
    *,
    shortfall:  Optional[int] = None,
    thresholds: ClassifierThresholds = DEFAULT_THRESHOLDS,
) -> Recommendation:
    """Classify the latest indicator values into a recommendation.

    Args:
        latest_price:     Most recent close.
        sma20:            Latest SMA.
        rsi14:            Latest RSI.
        macd_line:        Latest MACD line value.
        signal_line:      Latest signal line value.
        prev_macd_line:   MACD line one session earlier.
        prev_signal_line: Signal line one session earlier.
        shortfall:        Data points missing for full history, if known;
                          quoted in the insufficient-data rationale.  When
                          omitted the rationale names only the missing
                          values; ``classify_snapshot`` always passes it.
        thresholds:       RSI oversold / overbought bands.

    Returns:
        A new ``Recommendation``.
    """
    required = {
        "price": latest_price,
        "SMA":   sma20,
        "RSI":   rsi14,
        "MACD":  macd_line,
        "signal": signal_line,
    }
    missing = [name for name, value in required.items() if not _is_finite(value)]
    if missing:
        return Recommendation(
            label=RecommendationLabel.INSUFFICIENT_DATA,
            rationale=_insufficient_rationale(missing, shortfall),
        )

    crossed_up, crossed_down = detect_crossover(
        macd_line, signal_line, prev_macd_line, prev_signal_line
    )
    macd_txt = f"MACD {macd_line:.2f} vs signal {signal_line:.2f}"

    if crossed_up and rsi14 < thresholds.rsi_oversold:
        return Recommendation(
            label=RecommendationLabel.STRONG_BUY,
            rationale=(
                f"RSI(14) {rsi14:.2f} is oversold and the MACD line crossed above "
                f"its signal line ({macd_txt})."
            ),
        )
    if crossed_down and rsi14 > thresholds.rsi_overbought:
        return Recommendation(
            label=RecommendationLabel.STRONG_SELL,
            rationale=(
                f"RSI(14) {rsi14:.2f} is overbought and the MACD line crossed below "
                f"its signal line ({macd_txt})."
            ),
        )
    if crossed_up:
        return Recommendation(
            label=RecommendationLabel.BUY,
            rationale=f"MACD golden cross: the MACD line crossed above its signal line ({macd_txt}).",
        )
    if crossed_down:
        return Recommendation(
            label=RecommendationLabel.SELL,
            rationale=f"MACD dead cross: the MACD line crossed below its signal line ({macd_txt}).",
        )

    price_txt = f"${latest_price:.2f}"
    sma_txt = f"${sma20:.2f}"
    if latest_price > sma20:
        return Recommendation(
            label=RecommendationLabel.HOLD_UPTREND,
            rationale=f"Current price ({price_txt}) is above SMA(20) ({sma_txt}).",
        )
    if latest_price < sma20:
        return Recommendation(
            label=RecommendationLabel.HOLD_DOWNTREND,
            rationale=f"Current price ({price_txt}) is below SMA(20) ({sma_txt}).",
        )
    return Recommendation(
        label=RecommendationLabel.NEUTRAL,
        rationale=f"No signal: current price ({price_txt}) is at SMA(20) ({sma_txt}).",
    )


def classify_snapshot(
    latest_price: Optional[float],
    snapshot:     IndicatorSnapshot,
    thresholds:   ClassifierThresholds = DEFAULT_THRESHOLDS,
) -> Recommendation:
    """Classify an ``IndicatorSnapshot`` (see ``classify``)."""
    return classify(
        latest_price,
        snapshot.sma,
        snapshot.rsi,
        snapshot.macd_line,
        snapshot.signal_line,
        snapshot.prev_macd_line,
        snapshot.prev_signal_line,
        shortfall=snapshot.shortfall,
        thresholds=thresholds,
    )


def detect_crossover(
    macd_line:        float,
    signal_line:      float,
    prev_macd_line:   Optional[float],
    prev_signal_line: Optional[float],
) -> tuple[bool, bool]:
    """Return ``(crossed_up, crossed_down)`` between two consecutive sessions."""
    if not (_is_finite(prev_macd_line) and _is_finite(prev_signal_line)):
        return False, False
    crossed_up   = macd_line > signal_line and prev_macd_line <= prev_signal_line
    crossed_down = macd_line < signal_line and prev_macd_line >= prev_signal_line
    return crossed_up, crossed_down


def rsi_status(
    rsi: Optional[float],
    thresholds: ClassifierThresholds = DEFAULT_THRESHOLDS,
) -> str:
    """Badge text for the RSI card: oversold, overbought, neutral or unavailable."""
    if not _is_finite(rsi):
        return "unavailable"
    if rsi < thresholds.rsi_oversold:
        return "oversold"
    if rsi > thresholds.rsi_overbought:
        return "overbought"
    return "neutral"


def macd_status(macd_line: Optional[float], signal_line: Optional[float]) -> str:
    """Badge text for the MACD card: bullish, bearish, flat or unavailable."""
    if not (_is_finite(macd_line) and _is_finite(signal_line)):
        return "unavailable"
    if macd_line > signal_line:
        return "bullish"
    if macd_line < signal_line:
        return "bearish"
    return "flat"


# ── Helpers ───────────────────────────────────────────────────────────────────

def _is_finite(value: Optional[float]) -> bool:
    return value is not None and math.isfinite(value)


def _insufficient_rationale(missing: list[str], shortfall: Optional[int]) -> str:
    names = ", ".join(missing)
    if shortfall:
        noun = "data point" if shortfall == 1 else "data points"
        return f"Not enough price history for {names}: {shortfall} more {noun} needed."
    return f"Not enough price history for {names}."
