"""
Lower-timeframe entry: a fresh EMA cross in the trend's direction that follows
a zone of the opposite relationship.

Long:  trend UP, golden cross on the last closed candle, preceded by a death zone.
       Protective stop = lowest low of the death zone and the crossing candle.
Short: trend DOWN, death cross on the last closed candle, preceded by a gold zone.
       Protective stop = highest high of the gold zone and the crossing candle.
"""

from __future__ import annotations
import logging
from typing import Optional

import numpy as np

from ema_trend_bot.core.types import Direction, EntrySignal, SignalSide
from ema_trend_bot.strategies.indicators import compute_ema_series
from ema_trend_bot.utils.candles import CandleInput, to_frame

logger = logging.getLogger("ema_trend_bot.strategies.entry")

MIN_ENTRY_CANDLES = 100


def _zone_extreme(in_zone: np.ndarray, prices: np.ndarray, i: int, use_min: bool) -> Optional[float]:
    """
    Scan back from i-1 for a contiguous run where in_zone is True.
    Candles before the run starts are skipped; the first candle after it ends the scan.
    Returns the extreme of prices over the run and candle i, or None if no run exists.
    """
    found = False
    extreme = float(prices[i])
    for x in range(i - 1, -1, -1):
        if in_zone[x]:
            found = True
            extreme = min(extreme, float(prices[x])) if use_min else max(extreme, float(prices[x]))
        elif found:
            break
    return extreme if found else None


def _no_signal(rationale: str, zone: str) -> EntrySignal:
    return EntrySignal(triggered=False, side=None, protective_stop_price=0.0, rationale=rationale, zone_description=zone)


def detect_entry(
    candles: CandleInput,
    trend: Direction,
    fast: int = 15,
    slow: int = 60,
    min_candles: int = MIN_ENTRY_CANDLES,
) -> EntrySignal:
    """Evaluate the last closed candle for a cross-sequence entry aligned with trend."""
    df = to_frame(candles)
    if len(df) < max(min_candles, 2):
        return _no_signal("Insufficient data", "unknown")

    ema_f = np.asarray(compute_ema_series(df["close"], fast))
    ema_s = np.asarray(compute_ema_series(df["close"], slow))
    highs = df["high"].to_numpy(dtype=float)
    lows = df["low"].to_numpy(dtype=float)
    i = len(df) - 1

    gold_now = ema_f[i] > ema_s[i]
    zone = (
        f"Golden-cross zone (EMA{fast} above EMA{slow})" if gold_now
        else f"Death-cross zone (EMA{fast} below EMA{slow})"
    )

    if trend == Direction.UP:
        just_crossed_up = gold_now and ema_f[i - 1] <= ema_s[i - 1]
        if just_crossed_up:
            stop = _zone_extreme(ema_f < ema_s, lows, i, use_min=True)
            if stop is not None:
                logger.info("Long entry: golden cross after death zone, stop=%.4f", stop)
                return EntrySignal(
                    triggered=True,
                    side=SignalSide.LONG,
                    protective_stop_price=stop,
                    rationale="Higher-timeframe uptrend + golden cross after death-cross zone",
                    zone_description=zone,
                )
        return _no_signal("Uptrend in force, waiting for a pullback cross sequence", zone)

    if trend == Direction.DOWN:
        just_crossed_down = ema_f[i] < ema_s[i] and ema_f[i - 1] >= ema_s[i - 1]
        if just_crossed_down:
            stop = _zone_extreme(ema_f > ema_s, highs, i, use_min=False)
            if stop is not None:
                logger.info("Short entry: death cross after gold zone, stop=%.4f", stop)
                return EntrySignal(
                    triggered=True,
                    side=SignalSide.SHORT,
                    protective_stop_price=stop,
                    rationale="Higher-timeframe downtrend + death cross after golden-cross zone",
                    zone_description=zone,
                )
        return _no_signal("Downtrend in force, waiting for a bounce cross sequence", zone)

    return _no_signal("Trend unclear, no entry", zone)
