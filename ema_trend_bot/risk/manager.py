"""
Position risk manager: reversal exit, pyramiding, ratcheting stop.
Rules are applied in priority order; the first of CLOSE / ADD wins,
and the stop ratchet runs on top of HOLD or ADD.
"""

from __future__ import annotations
import logging
from decimal import ROUND_CEILING, ROUND_FLOOR, ROUND_HALF_UP
from typing import Optional

from ema_trend_bot.core.types import (
    AccountState,
    Direction,
    Position,
    RiskAction,
    RiskActionType,
    SignalSide,
)
from ema_trend_bot.utils.candles import CandleInput, to_frame
from ema_trend_bot.utils.exchange_filters import round_to_step

logger = logging.getLogger("ema_trend_bot.risk")


class RiskManager:
    """
    Evaluates an open position. Reads position state, never mutates it;
    the returned stop is a proposal for the execution layer.
    """

    def __init__(
        self,
        pyramid_profit_pct: float = 0.05,
        add_fraction: float = 0.05,
        trail_lookback: int = 5,
        trail_offset_pct: float = 0.0005,
        round_trip_cost_pct: float = 0.0012,
        price_tick: Optional[float] = None,
    ):
        self.pyramid_profit_pct = pyramid_profit_pct
        self.add_fraction = add_fraction
        self.trail_lookback = trail_lookback
        self.trail_offset_pct = trail_offset_pct
        self.round_trip_cost_pct = round_trip_cost_pct
        self.price_tick = price_tick

    @staticmethod
    def is_reversal(position: Position, trend: Direction) -> bool:
        """Trend points against the open position."""
        if trend == Direction.UP and position.side == SignalSide.SHORT:
            return True
        return trend == Direction.DOWN and position.side == SignalSide.LONG

    def breakeven_price(self, position: Position) -> float:
        """Entry price adjusted for round-trip fees and slippage."""
        entry = position.average_entry_price
        if position.is_long:
            return entry * (1 + self.round_trip_cost_pct)
        return entry * (1 - self.round_trip_cost_pct)

    def trail_candidate(self, position: Position, recent_candles: CandleInput, current_price: float) -> Optional[float]:
        """
        Stop candidate from the last trail_lookback candles, before the monotonic guard.
        None when no candles are available.
        """
        df = to_frame(recent_candles).tail(self.trail_lookback)
        if df.empty:
            return None
        breakeven = self.breakeven_price(position)
        if position.is_long:
            target = self._to_tick(float(df["low"].min()) * (1 - self.trail_offset_pct))
            # Tick-rounded breakeven never sits below the fee-adjusted price
            breakeven = self._to_tick(breakeven, ROUND_CEILING)
            if current_price > breakeven:
                target = max(target, breakeven)
        else:
            target = self._to_tick(float(df["high"].max()) * (1 + self.trail_offset_pct))
            breakeven = self._to_tick(breakeven, ROUND_FLOOR)
            if current_price < breakeven:
                target = min(target, breakeven)
        return target

    def _to_tick(self, price: float, rounding: str = ROUND_HALF_UP) -> float:
        if not self.price_tick:
            return price
        return round_to_step(price, self.price_tick, rounding)

    @staticmethod
    def accepts_stop(position: Position, target: float, current_price: float) -> bool:
        """Only tighten the stop, and never place it through the current price."""
        existing = position.current_stop_price
        if target <= 0:
            return False
        if position.is_long:
            return target > existing and target < current_price
        return (existing == 0 or target < existing) and target > current_price

    def evaluate(
        self,
        position: Position,
        account: AccountState,
        current_price: float,
        recent_candles: CandleInput,
        trend: Direction,
    ) -> RiskAction:
        """Return the risk action for an open position."""
        if self.is_reversal(position, trend):
            logger.info("Trend %s against %s position: close", trend.value, position.side.name)
            return RiskAction(
                action=RiskActionType.CLOSE,
                reason=f"Trend reversed to {trend.value} against {position.side.name} position",
            )

        action = RiskActionType.HOLD
        size_fraction = 0.0
        reason = "Holding, no rule triggered"
        profit_threshold = account.total_equity * self.pyramid_profit_pct
        if position.unrealized_pnl >= profit_threshold:
            action = RiskActionType.ADD
            size_fraction = self.add_fraction
            reason = (
                f"Rolling: unrealized PnL {position.unrealized_pnl:.2f} >= "
                f"{self.pyramid_profit_pct:.0%} of equity ({profit_threshold:.2f})"
            )

        stop = position.current_stop_price
        stop_updated = False
        target = self.trail_candidate(position, recent_candles, current_price)
        if target is not None and self.accepts_stop(position, target, current_price):
            logger.info("Stop ratchet %s: %.4f -> %.4f", position.side.name, stop, target)
            stop = target
            stop_updated = True
            if action == RiskActionType.HOLD:
                action = RiskActionType.UPDATE_STOP
                reason = f"Trailing stop moved to {target:.2f}"
            else:
                reason += f"; trailing stop moved to {target:.2f}"

        return RiskAction(
            action=action,
            proposed_stop_price=stop,
            size_fraction=size_fraction,
            stop_updated=stop_updated,
            reason=reason,
        )


def evaluate_risk(
    position: Position,
    account: AccountState,
    current_price: float,
    recent_candles: CandleInput,
    trend: Direction,
) -> RiskAction:
    """Evaluate with the default money-management rules."""
    return RiskManager().evaluate(position, account, current_price, recent_candles, trend)
