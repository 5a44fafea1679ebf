"""Core: config, types, errors, logging."""

from ema_trend_bot.core.config import load_config, Config
from ema_trend_bot.core.errors import EngineError, AnnotatorUnavailable, ConfigurationError
from ema_trend_bot.core.types import (
    AccountState,
    Candle,
    Decision,
    DecisionAction,
    Direction,
    EntrySignal,
    Narrative,
    Position,
    RiskAction,
    RiskActionType,
    SignalSide,
    TrendVerdict,
)
from ema_trend_bot.core.logger import setup_logging

__all__ = [
    "load_config",
    "Config",
    "EngineError",
    "AnnotatorUnavailable",
    "ConfigurationError",
    "AccountState",
    "Candle",
    "Decision",
    "DecisionAction",
    "Direction",
    "EntrySignal",
    "Narrative",
    "Position",
    "RiskAction",
    "RiskActionType",
    "SignalSide",
    "TrendVerdict",
    "setup_logging",
]
