"""Unit tests for strategies.entry."""

import numpy as np
import pytest

from ema_trend_bot.core.types import Direction, SignalSide
from ema_trend_bot.strategies.entry import detect_entry, _zone_extreme


def test_insufficient_data(make_candles):
    signal = detect_entry(make_candles([100.0 + i for i in range(60)]), Direction.UP)
    assert signal.triggered is False
    assert signal.side is None
    assert "insufficient" in signal.rationale.lower()


def test_long_on_golden_cross_after_death_zone(golden_cross_candles):
    signal = detect_entry(golden_cross_candles, Direction.UP)
    assert signal.triggered is True
    assert signal.side == SignalSide.LONG
    # lowest low across the death zone and the crossing candle
    assert signal.protective_stop_price == pytest.approx(89.0)
    assert "Golden-cross zone" in signal.zone_description


def test_short_on_death_cross_after_gold_zone(death_cross_candles):
    signal = detect_entry(death_cross_candles, Direction.DOWN)
    assert signal.triggered is True
    assert signal.side == SignalSide.SHORT
    assert signal.protective_stop_price == pytest.approx(311.0)
    assert "Death-cross zone" in signal.zone_description


def test_cross_against_trend_is_ignored(golden_cross_candles, death_cross_candles):
    assert detect_entry(golden_cross_candles, Direction.DOWN).triggered is False
    assert detect_entry(death_cross_candles, Direction.UP).triggered is False


def test_neutral_trend_never_enters(golden_cross_candles):
    signal = detect_entry(golden_cross_candles, Direction.NEUTRAL)
    assert signal.triggered is False
    assert "unclear" in signal.rationale.lower()


def test_no_signal_once_already_in_golden_zone(make_candles, golden_cross_closes):
    # One more candle after the cross: still golden, but not a fresh cross
    candles = make_candles(golden_cross_closes + [300.0])
    signal = detect_entry(candles, Direction.UP)
    assert signal.triggered is False
    assert signal.protective_stop_price == 0.0
    assert "Golden-cross zone" in signal.zone_description


def test_no_signal_without_cross(uptrend_candles):
    signal = detect_entry(uptrend_candles, Direction.UP)
    assert signal.triggered is False
    assert "waiting" in signal.rationale.lower()


def test_zone_scan_skips_gap_and_stops_after_zone():
    # index: 0     1     2     3     4     5(i)
    in_zone = np.array([True, False, True, True, False, False])
    lows = np.array([50.0, 80.0, 95.0, 90.0, 97.0, 99.0])
    # 4 is skipped (zone not started), 3-2 form the zone, 1 ends it, 0 is never reached
    assert _zone_extreme(in_zone, lows, 5, use_min=True) == 90.0


def test_zone_scan_without_zone():
    in_zone = np.zeros(5, dtype=bool)
    assert _zone_extreme(in_zone, np.ones(5), 4, use_min=True) is None
