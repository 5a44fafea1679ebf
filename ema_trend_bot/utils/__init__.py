"""Utils: candle normalisation, instrument precision."""

from ema_trend_bot.utils.candles import to_frame, load_candles_csv
from ema_trend_bot.utils.exchange_filters import parse_instrument_filters, round_to_step

__all__ = ["to_frame", "load_candles_csv", "parse_instrument_filters", "round_to_step"]
