"""Candle input normalisation: Candle sequences, DataFrames and CSV files."""

from __future__ import annotations
from pathlib import Path
from typing import Sequence, Union

import pandas as pd

from ema_trend_bot.core.types import Candle

CandleInput = Union[pd.DataFrame, Sequence[Candle]]

COLUMNS = ["time", "open", "high", "low", "close", "volume"]

# OKX candle field names
_OKX_COLUMNS = {"ts": "time", "o": "open", "h": "high", "l": "low", "c": "close", "vol": "volume"}


def _to_epoch_ms(col: pd.Series) -> pd.Series:
    if pd.api.types.is_datetime64_any_dtype(col):
        return col.map(lambda t: int(pd.Timestamp(t).timestamp() * 1000))
    return pd.to_numeric(col).astype("int64")


def to_frame(candles: CandleInput) -> pd.DataFrame:
    """
    Return a new DataFrame with columns time (epoch ms), open, high, low, close, volume.
    Accepts a sequence of Candle or a DataFrame using time/timestamp or OKX column names.
    """
    if isinstance(candles, pd.DataFrame):
        df = candles.rename(columns=_OKX_COLUMNS).rename(columns={"timestamp": "time"})
        if "volume" not in df.columns:
            df = df.assign(volume=0.0)
        missing = [c for c in COLUMNS if c not in df.columns]
        if missing:
            raise ValueError(f"Candle frame missing columns: {missing}")
        df = df[COLUMNS].copy()
        df["time"] = _to_epoch_ms(df["time"])
        df[["open", "high", "low", "close", "volume"]] = df[["open", "high", "low", "close", "volume"]].astype(float)
        return df.reset_index(drop=True)
    rows = [(c.timestamp, c.open, c.high, c.low, c.close, c.volume) for c in candles]
    df = pd.DataFrame(rows, columns=COLUMNS)
    df["time"] = df["time"].astype("int64")
    df[["open", "high", "low", "close", "volume"]] = df[["open", "high", "low", "close", "volume"]].astype(float)
    return df


def load_candles_csv(path: Path) -> pd.DataFrame:
    """Read an oldest-first candle CSV (canonical or OKX column names)."""
    df = pd.read_csv(path)
    df = to_frame(df)
    return df.sort_values("time").reset_index(drop=True)
