"""
Technical indicators: SMA, EMA, RSI, and MACD.

Pure functions — no I/O, no side effects, no rounding.  Every function takes
a sequence of closing prices (oldest first) and returns a list whose entries
line up with the *trailing* end of the input: the last output value always
belongs to the last input price.

Short input is a defined degenerate case, not an error
--------------------------------------------------------
When a series is shorter than an indicator's look-back window the result is
an empty list.  Callers treat "empty" as "unavailable"; nothing here raises
for short input.  A non-positive period is a programming error and raises
``ValueError``.

Output lengths (N = len(prices))
--------------------------------
    calculate_sma(prices, n)   →  max(0, N − n + 1)
    calculate_ema(prices, n)   →  max(0, N − n + 1)
    calculate_rsi(prices, n)   →  max(0, N − n)        (needs N ≥ n + 1)
    calculate_macd(...)        →  macd_line:  len(EMA slow)
                                  signal_line: max(0, len(macd_line) − signal + 1)
                                  histogram:  len(signal_line)

RSI seeding
-----------
Wilder's incremental form: the first average gain / loss is the simple mean of
the first ``period`` price changes; each later change updates the averages as
``avg = (avg * (period − 1) + x) / period`` and emits one RSI value.  When the
average loss is exactly zero the RSI is pinned to 100.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence


@dataclass(frozen=True)
class MacdResult:
    """MACD line, signal line, and histogram, each trailing-aligned to the input.

    Attributes:
        macd_line:   fast EMA − slow EMA over their overlapping suffix.
        signal_line: EMA of ``macd_line``.
        histogram:   macd_line − signal_line over their overlapping suffix.
    """

    macd_line:   list[float] = field(default_factory=list)
    signal_line: list[float] = field(default_factory=list)
    histogram:   list[float] = field(default_factory=list)


def calculate_sma(prices: Sequence[float], period: int) -> list[float]:
    """Simple moving average over every window of ``period`` consecutive prices.

    Example::

        calculate_sma([1, 2, 3, 4, 5], 3)  ->  [2.0, 3.0, 4.0]
    """
    _check_period(period)
    n = len(prices)
    if n < period:
        return []

    return [sum(prices[i:i + period]) / period for i in range(n - period + 1)]


def calculate_ema(prices: Sequence[float], period: int) -> list[float]:
    """Exponential moving average with smoothing factor ``2 / (period + 1)``.

    The first value is the simple mean of the first ``period`` prices (the
    seed); it corresponds to input index ``period − 1``.
    """
    _check_period(period)
    n = len(prices)
    if n < period:
        return []

    multiplier = 2.0 / (period + 1)
    ema = [sum(prices[:period]) / period]
    for i in range(period, n):
        prev = ema[-1]
        ema.append((prices[i] - prev) * multiplier + prev)
    return ema


def calculate_rsi(prices: Sequence[float], period: int) -> list[float]:
    """Relative Strength Index (Wilder), values in [0, 100].

    Requires at least ``period + 1`` prices; returns an empty list otherwise.
    """
    _check_period(period)
    n = len(prices)
    if n < period + 1:
        return []

    changes = [prices[i] - prices[i - 1] for i in range(1, n)]
    gains  = [c if c > 0 else 0.0 for c in changes]
    losses = [-c if c < 0 else 0.0 for c in changes]

    avg_gain = sum(gains[:period]) / period
    avg_loss = sum(losses[:period]) / period
    rsi = [_rsi_value(avg_gain, avg_loss)]

    for i in range(period, len(changes)):
        avg_gain = (avg_gain * (period - 1) + gains[i]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i]) / period
        rsi.append(_rsi_value(avg_gain, avg_loss))
    return rsi


def calculate_macd(
    prices: Sequence[float],
    fast_period: int = 12,
    slow_period: int = 26,
    signal_period: int = 9,
) -> MacdResult:
    """Moving Average Convergence Divergence.

    The fast and slow EMAs start at different input offsets, so they are
    aligned by their most recent values before subtracting.  The signal line
    is the EMA of the MACD line and the histogram is MACD − signal on the
    trailing overlap of those two.

    Returns an all-empty ``MacdResult`` (never raises) when the series is too
    short for the slow EMA; ``signal_line`` and ``histogram`` stay empty until
    the MACD line itself is at least ``signal_period`` long.
    """
    _check_period(signal_period)
    fast_ema = calculate_ema(prices, fast_period)
    slow_ema = calculate_ema(prices, slow_period)

    fast_tail, slow_tail = align_trailing(fast_ema, slow_ema)
    macd_line = [f - s for f, s in zip(fast_tail, slow_tail)]

    signal_line = calculate_ema(macd_line, signal_period)

    macd_tail, signal_tail = align_trailing(macd_line, signal_line)
    histogram = [m - s for m, s in zip(macd_tail, signal_tail)]

    return MacdResult(macd_line=macd_line, signal_line=signal_line, histogram=histogram)


def align_trailing(
    a: Sequence[float],
    b: Sequence[float],
) -> tuple[list[float], list[float]]:
    """Trim the head of the longer sequence so both end on the same index.

    Both inputs must already be aligned to the trailing end of one common
    source series.  The offset into the longer one is
    ``len(longer) − len(shorter)``.
    """
    if len(a) >= len(b):
        offset = len(a) - len(b)
        return list(a[offset:]), list(b)
    offset = len(b) - len(a)
    return list(a), list(b[offset:])


# ── Helpers ───────────────────────────────────────────────────────────────────

def _rsi_value(avg_gain: float, avg_loss: float) -> float:
    if avg_loss == 0.0:
        return 100.0
    rs = avg_gain / avg_loss
    return 100.0 - 100.0 / (1.0 + rs)


def _check_period(period: int) -> None:
    if period < 1:
        raise ValueError(f"period must be >= 1, got {period}.")
