"""
Core data types: candles, trend/entry verdicts, positions, risk actions, decisions.
"""

from __future__ import annotations
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


class Direction(str, Enum):
    UP = "UP"
    DOWN = "DOWN"
    NEUTRAL = "NEUTRAL"


class SignalSide(str, Enum):
    LONG = "BUY"
    SHORT = "SELL"


class RiskActionType(str, Enum):
    HOLD = "HOLD"
    CLOSE = "CLOSE"
    ADD = "ADD"
    UPDATE_STOP = "UPDATE_STOP"


class DecisionAction(str, Enum):
    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"
    CLOSE = "CLOSE"
    UPDATE_TPSL = "UPDATE_TPSL"


@dataclass(frozen=True)
class Candle:
    """OHLCV candle. timestamp is epoch milliseconds."""
    timestamp: int
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0


@dataclass(frozen=True)
class TrendVerdict:
    """Higher-timeframe trend as of the latest closed candle."""
    direction: Direction
    timestamp: int
    description: str


@dataclass(frozen=True)
class EntrySignal:
    """Lower-timeframe entry verdict. side is None unless triggered."""
    triggered: bool
    side: Optional[SignalSide]
    protective_stop_price: float
    rationale: str
    zone_description: str


@dataclass
class Position:
    """Open position snapshot as reported by the exchange account."""
    symbol: str
    side: SignalSide
    size_contracts: float
    average_entry_price: float
    unrealized_pnl: float = 0.0
    current_stop_price: float = 0.0  # 0 = no stop set
    leverage: int = 1

    @property
    def is_long(self) -> bool:
        return self.side == SignalSide.LONG


@dataclass
class AccountState:
    total_equity: float
    available_equity: float = 0.0


@dataclass(frozen=True)
class RiskAction:
    """Output of the position risk manager."""
    action: RiskActionType
    proposed_stop_price: float = 0.0
    size_fraction: float = 0.0
    stop_updated: bool = False
    reason: str = ""


@dataclass(frozen=True)
class Narrative:
    """Explanatory text attached to a decision. Never affects the trade itself."""
    stage_analysis: str = "EMA trend tracking"
    market_assessment: str = ""
    hot_events_overview: str = "No headline analysis available"
    asset_analysis: str = ""
    reasoning: str = ""
    invalidation_condition: str = "Trend reversal"

    def merged(self, other: "Narrative") -> "Narrative":
        """Overlay non-empty fields of other on top of self."""
        values = {k: v for k, v in asdict(other).items() if v}
        return Narrative(**{**asdict(self), **values})


@dataclass(frozen=True)
class Decision:
    """Final per-cycle artifact handed to the execution layer."""
    action: DecisionAction
    size_contracts: float
    leverage: int
    stop_price: float
    narrative: Narrative = field(default_factory=Narrative)
    instrument: str = ""
    trend: Optional[TrendVerdict] = None
    entry: Optional[EntrySignal] = None
    risk: Optional[RiskAction] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def safe_hold(cls, reason: str, instrument: str = "") -> "Decision":
        """HOLD with zero size and leverage, used when a cycle fails."""
        return cls(
            action=DecisionAction.HOLD,
            size_contracts=0.0,
            leverage=0,
            stop_price=0.0,
            narrative=Narrative(
                stage_analysis="Strategy execution error",
                market_assessment="Unable to assess",
                hot_events_overview="Data unavailable",
                asset_analysis="N/A",
                reasoning=f"System error: {reason}",
                invalidation_condition="",
            ),
            instrument=instrument,
        )

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready dict (enums as values, datetime as ISO string)."""
        def convert(value: Any) -> Any:
            if isinstance(value, Enum):
                return value.value
            if isinstance(value, datetime):
                return value.isoformat()
            if isinstance(value, dict):
                return {k: convert(v) for k, v in value.items()}
            return value

        return convert(asdict(self))
