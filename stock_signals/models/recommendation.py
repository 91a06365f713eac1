"""
Indicator snapshot, recommendation, and per-ticker report models.

``IndicatorSnapshot`` holds the latest value of each indicator plus the
preceding MACD/signal pair used for crossover detection.  ``None`` is the
"unavailable" marker for a value whose look-back window is not yet filled;
NaN and infinities are rejected outright.

``Recommendation`` is the classifier's output: one label from a closed set
and a rationale string.

``StockReport`` is the record handed to the presentation layer (CLI and
dashboard) — everything needed to render one ticker card.

All models are frozen: a recommendation is produced fresh per evaluation and
never mutated afterwards.
"""

from __future__ import annotations

import math
from datetime import date, datetime
from enum import StrEnum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RecommendationLabel(StrEnum):
    """Closed set of recommendation outcomes."""

    STRONG_BUY = "strong_buy"
    """RSI oversold and the MACD line just crossed above its signal line."""

    BUY = "buy"
    """MACD golden cross without an oversold RSI."""

    HOLD_UPTREND = "hold_uptrend"
    """No crossover; price above its SMA."""

    HOLD_DOWNTREND = "hold_downtrend"
    """No crossover; price below its SMA."""

    NEUTRAL = "neutral"
    """No crossover; price exactly at its SMA."""

    SELL = "sell"
    """MACD dead cross without an overbought RSI."""

    STRONG_SELL = "strong_sell"
    """RSI overbought and the MACD line just crossed below its signal line."""

    INSUFFICIENT_DATA = "insufficient_data"
    """Series too short for one or more indicators."""

    LOAD_FAILED = "load_failed"
    """The price series could not be fetched."""

    @property
    def display(self) -> str:
        """Human-readable tag, e.g. ``"Strong Buy"``."""
        return _LABEL_DISPLAY[self]


_LABEL_DISPLAY: dict[RecommendationLabel, str] = {
    RecommendationLabel.STRONG_BUY:        "Strong Buy",
    RecommendationLabel.BUY:               "Buy",
    RecommendationLabel.HOLD_UPTREND:      "Hold (uptrend)",
    RecommendationLabel.HOLD_DOWNTREND:    "Hold (downtrend)",
    RecommendationLabel.NEUTRAL:           "Neutral",
    RecommendationLabel.SELL:              "Sell",
    RecommendationLabel.STRONG_SELL:       "Strong Sell",
    RecommendationLabel.INSUFFICIENT_DATA: "Insufficient data",
    RecommendationLabel.LOAD_FAILED:       "Load failed",
}


def _reject_non_finite(v: Optional[float]) -> Optional[float]:
    if v is not None and not math.isfinite(v):
        raise ValueError(f"Indicator values must be finite or None, got {v}.")
    return v


class IndicatorSnapshot(BaseModel):
    """Latest-available indicator values for one price series.

    Attributes:
        sma: Latest simple moving average.
        rsi: Latest relative strength index in [0, 100].
        macd_line: Latest MACD line value (fast EMA − slow EMA).
        signal_line: Latest signal line value.
        histogram: Latest MACD − signal residual.
        prev_macd_line: MACD line one session earlier.
        prev_signal_line: Signal line one session earlier.
        data_points: Number of closes the snapshot was computed from.
        required_points: Closes needed for every field to be available.
    """

    model_config = ConfigDict(frozen=True)

    sma: Optional[float] = None
    rsi: Optional[float] = None
    macd_line: Optional[float] = None
    signal_line: Optional[float] = None
    histogram: Optional[float] = None
    prev_macd_line: Optional[float] = None
    prev_signal_line: Optional[float] = None
    data_points: int = 0
    required_points: int = 0

    @field_validator(
        "sma", "rsi", "macd_line", "signal_line", "histogram",
        "prev_macd_line", "prev_signal_line",
    )
    @classmethod
    def validate_finite(cls, v: Optional[float]) -> Optional[float]:
        return _reject_non_finite(v)

    @property
    def shortfall(self) -> int:
        """How many more closes are needed before every field is available."""
        return max(0, self.required_points - self.data_points)


class Recommendation(BaseModel):
    """A recommendation label with its human-readable rationale."""

    model_config = ConfigDict(frozen=True)

    label: RecommendationLabel
    rationale: str

    @field_validator("rationale")
    @classmethod
    def validate_rationale_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("rationale must not be empty.")
        return v


class StockReport(BaseModel):
    """Everything the presentation layer needs to render one ticker.

    Numeric fields are finite floats or ``None`` — never NaN or infinity —
    so ``model_dump(mode="json")`` is always valid JSON.

    Attributes:
        ticker: Upper-case ticker symbol.
        company_name: Display name from the data source.
        as_of: Date of the latest close, or ``None`` when loading failed.
        latest_price: Latest close.
        previous_close: Close one session earlier.
        price_change: ``latest_price − previous_close``.
        price_change_pct: Change as a percentage of ``previous_close``.
        latest_volume: Shares traded in the latest session.
        sma20: Latest SMA (period from config, 20 by default).
        rsi14: Latest RSI (period from config, 14 by default).
        macd_line: Latest MACD line.
        signal_line: Latest signal line.
        histogram: Latest histogram value.
        rsi_status: ``oversold`` / ``overbought`` / ``neutral`` / ``unavailable``.
        macd_status: ``bullish`` / ``bearish`` / ``flat`` / ``unavailable``.
        recommendation_label: Classifier label.
        rationale: Classifier rationale text.
        generated_at: UTC time the report was produced.
    """

    model_config = ConfigDict(frozen=True)

    ticker: str
    company_name: str = ""
    as_of: Optional[date] = None
    latest_price: Optional[float] = None
    previous_close: Optional[float] = None
    price_change: Optional[float] = None
    price_change_pct: Optional[float] = None
    latest_volume: Optional[int] = None
    sma20: Optional[float] = None
    rsi14: Optional[float] = None
    macd_line: Optional[float] = None
    signal_line: Optional[float] = None
    histogram: Optional[float] = None
    rsi_status: str = "unavailable"
    macd_status: str = "unavailable"
    recommendation_label: RecommendationLabel
    rationale: str
    generated_at: Optional[datetime] = Field(default=None)

    @field_validator(
        "latest_price", "previous_close", "price_change", "price_change_pct",
        "sma20", "rsi14", "macd_line", "signal_line", "histogram",
    )
    @classmethod
    def validate_finite(cls, v: Optional[float]) -> Optional[float]:
        return _reject_non_finite(v)

    @property
    def recommendation(self) -> Recommendation:
        return Recommendation(label=self.recommendation_label, rationale=self.rationale)
