"""
EMA indicator. Index i of every output depends only on inputs [0..i].
"""

from __future__ import annotations
from typing import List, Sequence

import numpy as np
import pandas as pd


def compute_ema_series(prices: Sequence[float], period: int) -> List[float]:
    """
    EMA with k = 2 / (period + 1), seeded with the first price:
    out[0] = prices[0], out[i] = prices[i] * k + out[i-1] * (1 - k).

    The first-price seed (rather than an SMA warm-up) biases early values.
    It is kept for parity with the live strategy's numbers; review before changing.
    period only sets k, there is no minimum length.
    """
    if period < 1:
        raise ValueError(f"EMA period must be >= 1, got {period}")
    values = pd.Series(np.asarray(prices, dtype=float))
    if values.empty:
        return []
    # adjust=False is exactly the seeded recurrence above
    return values.ewm(span=period, adjust=False).mean().tolist()


def add_ema_columns(df: pd.DataFrame, fast: int, slow: int) -> pd.DataFrame:
    """Return a copy of df with ema_fast / ema_slow over close."""
    df = df.copy()
    df["ema_fast"] = compute_ema_series(df["close"], fast)
    df["ema_slow"] = compute_ema_series(df["close"], slow)
    return df
