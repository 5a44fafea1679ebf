"""
Higher-timeframe trend: EMA fast vs EMA slow on the latest closed candle.
Candle colour only qualifies the strength text; it never changes the direction.
"""

from __future__ import annotations
import logging

from ema_trend_bot.core.types import Direction, TrendVerdict
from ema_trend_bot.strategies.indicators import add_ema_columns
from ema_trend_bot.utils.candles import CandleInput, to_frame

logger = logging.getLogger("ema_trend_bot.strategies.trend")

MIN_TREND_CANDLES = 100


def classify_trend(
    candles: CandleInput,
    fast: int = 15,
    slow: int = 60,
    min_candles: int = MIN_TREND_CANDLES,
) -> TrendVerdict:
    """Classify the trend from an oldest-first candle series. Short input gives NEUTRAL."""
    df = to_frame(candles)
    if len(df) < min_candles:
        logger.debug("Trend: %d candles < %d required", len(df), min_candles)
        return TrendVerdict(Direction.NEUTRAL, 0, "Insufficient data")

    df = add_ema_columns(df, fast, slow)
    last = df.iloc[-1]
    ema_f = float(last["ema_fast"])
    ema_s = float(last["ema_slow"])
    ts = int(last["time"])
    close, open_ = float(last["close"]), float(last["open"])

    if ema_f > ema_s:
        strength = "strong" if close > open_ else "pulling back"
        return TrendVerdict(Direction.UP, ts, f"Uptrend ({strength} / EMA{fast} above EMA{slow})")
    if ema_f < ema_s:
        strength = "strong" if close < open_ else "bouncing"
        return TrendVerdict(Direction.DOWN, ts, f"Downtrend ({strength} / EMA{fast} below EMA{slow})")
    return TrendVerdict(Direction.NEUTRAL, ts, f"EMA{fast}/EMA{slow} converged, ranging")
