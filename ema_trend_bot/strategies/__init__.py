"""Strategies: EMA indicator, trend classifier, entry detector."""

from ema_trend_bot.strategies.indicators import compute_ema_series, add_ema_columns
from ema_trend_bot.strategies.trend import classify_trend
from ema_trend_bot.strategies.entry import detect_entry

__all__ = ["compute_ema_series", "add_ema_columns", "classify_trend", "detect_entry"]
