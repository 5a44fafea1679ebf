"""
Load configuration from config.yaml and .env. API keys only from env.
"""

from __future__ import annotations
import os
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv


def _env_path(project_root: Optional[Path] = None) -> Path:
    root = project_root or Path(__file__).resolve().parents[2]
    return root / ".env"


def load_dotenv_if_exists(project_root: Optional[Path] = None) -> None:
    """Load .env from project root if present."""
    path = _env_path(project_root)
    if path.exists():
        load_dotenv(path)


def load_config(config_path: Optional[Path] = None, project_root: Optional[Path] = None) -> "Config":
    """Load config.yaml and overlay with env. Returns Config."""
    load_dotenv_if_exists(project_root)
    root = project_root or Path(__file__).resolve().parents[2]
    path = config_path or root / "config.yaml"
    data: dict[str, Any] = {}
    if path.exists():
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

    def env(key: str, default: str = "") -> str:
        return os.getenv(key, default).strip()

    def env_bool(key: str, default: bool = False) -> bool:
        return os.getenv(key, str(default)).lower() in ("true", "1", "yes")

    def env_int(key: str, default: int = 0) -> int:
        try:
            return int(os.getenv(key, str(default)))
        except ValueError:
            return default

    def env_float(key: str, default: float = 0.0) -> float:
        try:
            return float(os.getenv(key, str(default)))
        except ValueError:
            return default

    instrument = data.get("instrument", {})
    strategy = data.get("strategy", {})
    risk = data.get("risk", {})
    annotator = data.get("annotator", {})
    logging_cfg = data.get("logging", {})

    return Config(
        # Instrument
        instrument_id=env("INSTRUMENT_ID", instrument.get("id", "ETH-USDT-SWAP")).upper(),
        contract_value=env_float("CONTRACT_VALUE", instrument.get("contract_value", 0.1)),
        lot_step=float(instrument.get("lot_step", 0.01)),
        min_size=float(instrument.get("min_size", 0.01)),
        price_tick=float(instrument.get("price_tick", 0.01)),
        leverage=env_int("LEVERAGE", instrument.get("leverage", 5)),
        taker_fee_rate=env_float("TAKER_FEE_RATE", instrument.get("taker_fee_rate", 0.0005)),
        slippage_rate=env_float("SLIPPAGE_RATE", instrument.get("slippage_rate", 0.0002)),
        # Strategy
        ema_fast=env_int("EMA_FAST", strategy.get("ema_fast", 15)),
        ema_slow=env_int("EMA_SLOW", strategy.get("ema_slow", 60)),
        min_candles=env_int("MIN_CANDLES", strategy.get("min_candles", 100)),
        higher_timeframe=strategy.get("higher_timeframe", "1H"),
        lower_timeframe=strategy.get("lower_timeframe", "3m"),
        # Risk
        entry_fraction=env_float("ENTRY_FRACTION", risk.get("entry_fraction", 0.05)),
        pyramid_profit_pct=env_float("PYRAMID_PROFIT_PCT", risk.get("pyramid_profit_pct", 0.05)),
        add_fraction=env_float("ADD_FRACTION", risk.get("add_fraction", 0.05)),
        trail_lookback=env_int("TRAIL_LOOKBACK", risk.get("trail_lookback", 5)),
        trail_offset_pct=env_float("TRAIL_OFFSET_PCT", risk.get("trail_offset_pct", 0.0005)),
        # Annotator (key from env only)
        deepseek_api_key=env("DEEPSEEK_API_KEY"),
        annotator_enabled=env_bool("ANNOTATOR_ENABLED", annotator.get("enabled", True)),
        annotator_model=annotator.get("model", "deepseek-chat"),
        annotator_url=annotator.get("url", "https://api.deepseek.com/chat/completions"),
        annotator_timeout_s=env_float("ANNOTATOR_TIMEOUT_S", annotator.get("timeout_s", 20.0)),
        news_enabled=env_bool("NEWS_ENABLED", annotator.get("news_enabled", True)),
        news_url=annotator.get(
            "news_url", "https://min-api.cryptocompare.com/data/v2/news/?lang=EN&sortOrder=latest&limit=5"
        ),
        news_limit=int(annotator.get("news_limit", 5)),
        # Logging
        log_level=logging_cfg.get("level", "INFO"),
        log_dir=Path(logging_cfg.get("log_dir", "logs")),
        log_file=logging_cfg.get("log_file", "ema_trend_bot.log"),
    )


class Config:
    """Unified configuration. Immutable after load."""

    __slots__ = (
        "instrument_id", "contract_value", "lot_step", "min_size", "price_tick", "leverage",
        "taker_fee_rate", "slippage_rate",
        "ema_fast", "ema_slow", "min_candles", "higher_timeframe", "lower_timeframe",
        "entry_fraction", "pyramid_profit_pct", "add_fraction", "trail_lookback", "trail_offset_pct",
        "deepseek_api_key", "annotator_enabled", "annotator_model", "annotator_url", "annotator_timeout_s",
        "news_enabled", "news_url", "news_limit",
        "log_level", "log_dir", "log_file",
    )

    def __init__(
        self,
        instrument_id: str = "ETH-USDT-SWAP",
        contract_value: float = 0.1,
        lot_step: float = 0.01,
        min_size: float = 0.01,
        price_tick: float = 0.01,
        leverage: int = 5,
        taker_fee_rate: float = 0.0005,
        slippage_rate: float = 0.0002,
        ema_fast: int = 15,
        ema_slow: int = 60,
        min_candles: int = 100,
        higher_timeframe: str = "1H",
        lower_timeframe: str = "3m",
        entry_fraction: float = 0.05,
        pyramid_profit_pct: float = 0.05,
        add_fraction: float = 0.05,
        trail_lookback: int = 5,
        trail_offset_pct: float = 0.0005,
        deepseek_api_key: str = "",
        annotator_enabled: bool = True,
        annotator_model: str = "deepseek-chat",
        annotator_url: str = "https://api.deepseek.com/chat/completions",
        annotator_timeout_s: float = 20.0,
        news_enabled: bool = True,
        news_url: str = "https://min-api.cryptocompare.com/data/v2/news/?lang=EN&sortOrder=latest&limit=5",
        news_limit: int = 5,
        log_level: str = "INFO",
        log_dir: Path = None,
        log_file: str = "ema_trend_bot.log",
    ):
        self.instrument_id = instrument_id
        self.contract_value = contract_value
        self.lot_step = lot_step
        self.min_size = min_size
        self.price_tick = price_tick
        self.leverage = leverage
        self.taker_fee_rate = taker_fee_rate
        self.slippage_rate = slippage_rate
        self.ema_fast = ema_fast
        self.ema_slow = ema_slow
        self.min_candles = min_candles
        self.higher_timeframe = higher_timeframe
        self.lower_timeframe = lower_timeframe
        self.entry_fraction = entry_fraction
        self.pyramid_profit_pct = pyramid_profit_pct
        self.add_fraction = add_fraction
        self.trail_lookback = trail_lookback
        self.trail_offset_pct = trail_offset_pct
        self.deepseek_api_key = deepseek_api_key
        self.annotator_enabled = annotator_enabled
        self.annotator_model = annotator_model
        self.annotator_url = annotator_url
        self.annotator_timeout_s = annotator_timeout_s
        self.news_enabled = news_enabled
        self.news_url = news_url
        self.news_limit = news_limit
        self.log_level = log_level
        self.log_dir = Path(log_dir) if log_dir else Path("logs")
        self.log_file = log_file

    @property
    def round_trip_cost_pct(self) -> float:
        """Entry + exit taker fees plus slippage, as a fraction of price."""
        return 2 * self.taker_fee_rate + self.slippage_rate
