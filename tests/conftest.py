"""Shared candle builders for strategy, risk and composer tests."""

import pytest

from ema_trend_bot.core.types import Candle

START_TS = 1_700_000_000_000
STEP_MS = 180_000  # 3m


def build_candles(closes, start_ts=START_TS, step_ms=STEP_MS):
    """Each candle opens at the previous close; high/low sit 1.0 beyond the body."""
    candles = []
    prev = closes[0]
    for i, close in enumerate(closes):
        open_ = prev
        candles.append(Candle(
            timestamp=start_ts + i * step_ms,
            open=open_,
            high=max(open_, close) + 1.0,
            low=min(open_, close) - 1.0,
            close=close,
            volume=10.0,
        ))
        prev = close
    return candles


def golden_cross_series():
    """
    120 closes: ramp up (0-79), flat at 90 (80-118, EMA15 < EMA60 from 82),
    then a jump to 300 on the last candle that crosses EMA15 back above EMA60.
    Lowest low in the death zone is 89.
    """
    ramp = [100.0 + 0.5 * i for i in range(80)]
    return ramp + [90.0] * 39 + [300.0]


def death_cross_series():
    """Mirror of golden_cross_series (400 - close). Highest high in the gold zone is 311."""
    return [400.0 - c for c in golden_cross_series()]


@pytest.fixture
def make_candles():
    return build_candles


@pytest.fixture
def golden_cross_candles():
    return build_candles(golden_cross_series())


@pytest.fixture
def death_cross_candles():
    return build_candles(death_cross_series())


@pytest.fixture
def uptrend_candles():
    return build_candles([100.0 + i for i in range(120)])


@pytest.fixture
def downtrend_candles():
    return build_candles([300.0 - i for i in range(120)])


@pytest.fixture
def golden_cross_closes():
    return golden_cross_series()
