"""
Decision composer: trend + entry (no position) or risk (open position) -> one Decision.
Narrative text is optional decoration; annotator failures never alter action, size or stop.
"""

from __future__ import annotations
import functools
import logging
from dataclasses import replace
from typing import Callable, Optional

from ema_trend_bot.annotator.base import Annotator
from ema_trend_bot.annotator.deepseek import DeepSeekAnnotator
from ema_trend_bot.annotator.news import fetch_headlines
from ema_trend_bot.annotator.prompt import build_prompts
from ema_trend_bot.core.config import Config
from ema_trend_bot.core.errors import AnnotatorUnavailable, ConfigurationError
from ema_trend_bot.core.types import (
    AccountState,
    Decision,
    DecisionAction,
    EntrySignal,
    Narrative,
    Position,
    RiskAction,
    RiskActionType,
    TrendVerdict,
)
from ema_trend_bot.risk.manager import RiskManager
from ema_trend_bot.strategies.entry import detect_entry
from ema_trend_bot.strategies.trend import classify_trend
from ema_trend_bot.utils.candles import CandleInput
from ema_trend_bot.utils.exchange_filters import parse_instrument_filters, round_to_step

logger = logging.getLogger("ema_trend_bot.decision")


def compute_contract_size(
    equity_fraction: float,
    total_equity: float,
    leverage: float,
    contract_value: float,
    price: float,
    min_size: float = 0.01,
    lot_step: float = 0.01,
) -> float:
    """Contracts = fraction * equity * leverage / (contract_value * price), at least min_size."""
    if price <= 0 or contract_value <= 0:
        raise ValueError(f"price and contract_value must be positive (price={price}, contract_value={contract_value})")
    contracts = equity_fraction * total_equity * leverage / (contract_value * price)
    return round_to_step(max(contracts, min_size), lot_step)


class DecisionComposer:
    """Runs one evaluation cycle. Holds configuration only, no state between calls."""

    def __init__(
        self,
        risk_manager: Optional[RiskManager] = None,
        instrument_id: str = "ETH-USDT-SWAP",
        leverage: int = 5,
        contract_value: float = 0.1,
        entry_fraction: float = 0.05,
        min_size: float = 0.01,
        lot_step: float = 0.01,
        price_tick: float = 0.01,
        ema_fast: int = 15,
        ema_slow: int = 60,
        min_candles: int = 100,
        higher_timeframe: str = "1H",
        lower_timeframe: str = "3m",
        annotator: Optional[Annotator] = None,
        headline_source: Optional[Callable[[], str]] = None,
    ):
        self.risk_manager = risk_manager or RiskManager(price_tick=price_tick)
        self.instrument_id = instrument_id
        self.leverage = leverage
        self.contract_value = contract_value
        self.entry_fraction = entry_fraction
        self.min_size = min_size
        self.lot_step = lot_step
        self.price_tick = price_tick
        self.ema_fast = ema_fast
        self.ema_slow = ema_slow
        self.min_candles = min_candles
        self.higher_timeframe = higher_timeframe
        self.lower_timeframe = lower_timeframe
        self.annotator = annotator
        self.headline_source = headline_source

    @classmethod
    def from_config(
        cls,
        config: Config,
        use_annotator: bool = True,
        instrument_info: Optional[dict] = None,
    ) -> "DecisionComposer":
        """Build from Config. instrument_info (OKX minSz/lotSz/tickSz) overrides configured precision."""
        risk_manager = RiskManager(
            pyramid_profit_pct=config.pyramid_profit_pct,
            add_fraction=config.add_fraction,
            trail_lookback=config.trail_lookback,
            trail_offset_pct=config.trail_offset_pct,
            round_trip_cost_pct=config.round_trip_cost_pct,
            price_tick=config.price_tick,
        )
        annotator = None
        headline_source = None
        if use_annotator and config.annotator_enabled and not config.deepseek_api_key:
            logger.warning("DEEPSEEK_API_KEY not set, narrative annotation disabled")
        elif use_annotator and config.annotator_enabled:
            annotator = DeepSeekAnnotator(
                config.deepseek_api_key,
                model=config.annotator_model,
                timeout=config.annotator_timeout_s,
                url=config.annotator_url,
            )
            if config.news_enabled:
                headline_source = functools.partial(fetch_headlines, config.news_url, config.news_limit)
        composer = cls(
            risk_manager=risk_manager,
            instrument_id=config.instrument_id,
            leverage=config.leverage,
            contract_value=config.contract_value,
            entry_fraction=config.entry_fraction,
            min_size=config.min_size,
            lot_step=config.lot_step,
            price_tick=config.price_tick,
            ema_fast=config.ema_fast,
            ema_slow=config.ema_slow,
            min_candles=config.min_candles,
            higher_timeframe=config.higher_timeframe,
            lower_timeframe=config.lower_timeframe,
            annotator=annotator,
            headline_source=headline_source,
        )
        if instrument_info:
            composer.update_instrument_info(instrument_info)
        return composer

    def update_instrument_info(self, instrument_info: Optional[dict]) -> None:
        """Refresh size and price precision from an OKX instrument record."""
        self.min_size, self.lot_step, self.price_tick = parse_instrument_filters(instrument_info)
        self.risk_manager.price_tick = self.price_tick

    def size_for(self, equity_fraction: float, total_equity: float, price: float) -> float:
        return compute_contract_size(
            equity_fraction, total_equity, self.leverage, self.contract_value, price,
            min_size=self.min_size, lot_step=self.lot_step,
        )

    def compose(
        self,
        higher_candles: CandleInput,
        lower_candles: CandleInput,
        account: AccountState,
        current_price: float,
        position: Optional[Position] = None,
    ) -> Decision:
        """
        Evaluate one cycle. Never raises: any failure while computing yields
        a HOLD with zero size and leverage.
        """
        try:
            decision = self._compute(higher_candles, lower_candles, account, current_price, position)
        except Exception as e:
            logger.exception("Decision cycle failed, returning safe HOLD: %s", e)
            return Decision.safe_hold(str(e), self.instrument_id)
        logger.info(
            "Decision %s size=%.2f stop=%.4f (trend=%s)",
            decision.action.value, decision.size_contracts, decision.stop_price,
            decision.trend.direction.value if decision.trend else "n/a",
        )
        return self._annotate(decision, position, account)

    def _compute(
        self,
        higher_candles: CandleInput,
        lower_candles: CandleInput,
        account: AccountState,
        current_price: float,
        position: Optional[Position],
    ) -> Decision:
        if current_price <= 0:
            raise ValueError(f"Invalid current price: {current_price}")
        trend = classify_trend(higher_candles, self.ema_fast, self.ema_slow, self.min_candles)
        has_position = position is not None and position.size_contracts > 0

        risk: Optional[RiskAction] = None
        if not has_position:
            entry = detect_entry(lower_candles, trend.direction, self.ema_fast, self.ema_slow, self.min_candles)
            if entry.triggered:
                action = DecisionAction(entry.side.value)
                size = self.size_for(self.entry_fraction, account.total_equity, current_price)
                stop = round_to_step(entry.protective_stop_price, self.price_tick)
            else:
                action, size, stop = DecisionAction.HOLD, 0.0, 0.0
        else:
            entry = EntrySignal(
                triggered=False,
                side=None,
                protective_stop_price=0.0,
                rationale="Position open, entry scan skipped",
                zone_description="n/a",
            )
            risk = self.risk_manager.evaluate(position, account, current_price, lower_candles, trend.direction)
            if risk.action == RiskActionType.CLOSE:
                action, size, stop = DecisionAction.CLOSE, position.size_contracts, 0.0
            elif risk.action == RiskActionType.ADD:
                action = DecisionAction(position.side.value)
                size = self.size_for(risk.size_fraction, account.total_equity, current_price)
                stop = risk.proposed_stop_price
            elif risk.action == RiskActionType.UPDATE_STOP:
                action, size, stop = DecisionAction.UPDATE_TPSL, 0.0, risk.proposed_stop_price
            else:
                action, size, stop = DecisionAction.HOLD, 0.0, risk.proposed_stop_price

        return Decision(
            action=action,
            size_contracts=size,
            leverage=self.leverage,
            stop_price=stop,
            narrative=self._default_narrative(trend, entry, risk),
            instrument=self.instrument_id,
            trend=trend,
            entry=entry,
            risk=risk,
        )

    def _default_narrative(self, trend: TrendVerdict, entry: EntrySignal, risk: Optional[RiskAction]) -> Narrative:
        entry_text = f"{entry.zone_description} - {'entry conditions met' if entry.triggered else entry.rationale}"
        assessment = f"[{self.higher_timeframe} trend] {trend.description}\n[{self.lower_timeframe} entry] {entry_text}"
        reasoning = (
            f"Rule-based EMA{self.ema_fast}/EMA{self.ema_slow} strategy. "
            f"{self.higher_timeframe} trend: {trend.description}. {self.lower_timeframe} signal: {entry_text}."
        )
        if risk is not None:
            reasoning += f" Position: {risk.reason}."
        return Narrative(
            market_assessment=assessment,
            asset_analysis=f"EMA{self.ema_fast}/EMA{self.ema_slow} state. Trend: {trend.description}",
            reasoning=reasoning,
        )

    def _annotate(self, decision: Decision, position: Optional[Position], account: AccountState) -> Decision:
        """Overlay annotator text on the default narrative; keep defaults on any failure."""
        if self.annotator is None:
            return decision
        try:
            headlines = self.headline_source() if self.headline_source else "No headline feed configured"
            system_prompt, user_prompt = build_prompts(
                decision.trend, decision.entry, position, decision.risk,
                decision.action.value, self.leverage, account.total_equity, headlines,
                fast=self.ema_fast, slow=self.ema_slow,
                higher_timeframe=self.higher_timeframe, lower_timeframe=self.lower_timeframe,
            )
            narrative = decision.narrative.merged(self.annotator.annotate(system_prompt, user_prompt))
        except (AnnotatorUnavailable, ConfigurationError) as e:
            logger.warning("Annotator unavailable, keeping default narrative: %s", e)
            return decision
        except Exception as e:
            logger.exception("Annotator error, keeping default narrative: %s", e)
            return decision
        return replace(decision, narrative=narrative)
