"""Tests for the indicator snapshot builder."""

from __future__ import annotations

import math

import pytest

from stock_signals.config import IndicatorConfig
from stock_signals.indicators.snapshot import build_snapshot, required_history
from stock_signals.indicators.technical import calculate_macd, calculate_rsi, calculate_sma
from stock_signals.models.recommendation import RecommendationLabel
from stock_signals.recommendations.classifier import classify_snapshot

_CFG = IndicatorConfig()
_WAVE = [50.0 + 5.0 * math.sin(i / 4.0) + 0.2 * i for i in range(60)]


class TestRequiredHistory:
    def test_default_periods(self):
        # slow EMA 26 + signal 9 → previous signal value first exists at close 35
        assert required_history(_CFG) == 35

    def test_sma_can_dominate(self):
        cfg = IndicatorConfig(sma_period=50)
        assert required_history(cfg) == 50


class TestBuildSnapshot:
    def test_full_history_populates_every_field(self):
        snap = build_snapshot(_WAVE, _CFG)
        macd = calculate_macd(_WAVE, 12, 26, 9)
        assert snap.sma == pytest.approx(calculate_sma(_WAVE, 20)[-1])
        assert snap.rsi == pytest.approx(calculate_rsi(_WAVE, 14)[-1])
        assert snap.macd_line == pytest.approx(macd.macd_line[-1])
        assert snap.signal_line == pytest.approx(macd.signal_line[-1])
        assert snap.histogram == pytest.approx(macd.histogram[-1])
        assert snap.prev_macd_line == pytest.approx(macd.macd_line[-2])
        assert snap.prev_signal_line == pytest.approx(macd.signal_line[-2])
        assert snap.shortfall == 0

    def test_one_short_has_no_previous_signal(self):
        snap = build_snapshot(_WAVE[:34], _CFG)
        assert snap.signal_line is not None
        assert snap.prev_macd_line is not None
        assert snap.prev_signal_line is None
        assert snap.shortfall == 1

    def test_short_series_is_all_unavailable(self):
        snap = build_snapshot(_WAVE[:10], _CFG)
        assert snap.sma is None
        assert snap.rsi is None
        assert snap.macd_line is None
        assert snap.signal_line is None
        assert snap.histogram is None
        assert snap.data_points == 10
        assert snap.shortfall == 25

    def test_empty_series(self):
        snap = build_snapshot([], _CFG)
        assert snap.sma is None
        assert snap.shortfall == 35


# 40 sessions of accelerating decline, then a steady 25-session rally (and
# the mirror image).  The curved leg keeps MACD clear of its signal line.
_V_SHAPE = [150.0 - 0.03 * i * i for i in range(40)]
_V_SHAPE += [_V_SHAPE[-1] + 2.0 * i for i in range(1, 26)]
_PEAK = [50.0 + 0.03 * i * i for i in range(40)]
_PEAK += [_PEAK[-1] - 2.0 * i for i in range(1, 26)]


def _first_cross_session(closes: list[float], direction: str) -> int:
    """Smallest prefix length whose last session shows a MACD cross."""
    for n in range(required_history(_CFG), len(closes) + 1):
        snap = build_snapshot(closes[:n], _CFG)
        now, prev = snap.macd_line - snap.signal_line, snap.prev_macd_line - snap.prev_signal_line
        if direction == "up" and now > 0 >= prev:
            return n
        if direction == "down" and now < 0 <= prev:
            return n
    raise AssertionError(f"no {direction} cross found")


class TestSnapshotCrossovers:
    """Real series through build_snapshot → classify_snapshot."""

    def test_rally_after_decline_is_golden_cross(self):
        n = _first_cross_session(_V_SHAPE, "up")
        assert n > 40
        rec = classify_snapshot(_V_SHAPE[n - 1], build_snapshot(_V_SHAPE[:n], _CFG))
        assert rec.label in (RecommendationLabel.BUY, RecommendationLabel.STRONG_BUY)
        assert "crossed above" in rec.rationale

    def test_session_before_cross_is_not_a_buy(self):
        n = _first_cross_session(_V_SHAPE, "up")
        rec = classify_snapshot(_V_SHAPE[n - 2], build_snapshot(_V_SHAPE[: n - 1], _CFG))
        assert rec.label not in (RecommendationLabel.BUY, RecommendationLabel.STRONG_BUY)

    def test_decline_after_rally_is_dead_cross(self):
        n = _first_cross_session(_PEAK, "down")
        assert n > 40
        rec = classify_snapshot(_PEAK[n - 1], build_snapshot(_PEAK[:n], _CFG))
        assert rec.label in (RecommendationLabel.SELL, RecommendationLabel.STRONG_SELL)
        assert "crossed below" in rec.rationale
