"""Prompts for the narrative annotator, built from already-computed results."""

from __future__ import annotations
from datetime import datetime, timezone
from typing import Optional, Tuple

from ema_trend_bot.core.types import EntrySignal, Position, RiskAction, TrendVerdict


def _ts(ms: int) -> str:
    if not ms:
        return "n/a"
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).strftime("%Y-%m-%d %H:%M UTC")


def describe_position(position: Optional[Position]) -> str:
    if position is None or position.size_contracts <= 0:
        return "No position"
    return (
        f"{position.side.name} {position.size_contracts} contracts @ {position.average_entry_price}, "
        f"unrealized PnL {position.unrealized_pnl} USDT, stop {position.current_stop_price or 'unset'}"
    )


def build_prompts(
    trend: TrendVerdict,
    entry: EntrySignal,
    position: Optional[Position],
    risk: Optional[RiskAction],
    action: str,
    leverage: int,
    total_equity: float,
    headlines: str,
    fast: int = 15,
    slow: int = 60,
    higher_timeframe: str = "1H",
    lower_timeframe: str = "3m",
) -> Tuple[str, str]:
    """Return (system_prompt, user_prompt). The decision is final; the model only explains it."""
    risk_line = risk.reason if risk is not None else "n/a"
    system_prompt = f"""
You explain the decisions of a strict EMA{fast}/EMA{slow} trend-tracking bot.
Do not use any other indicator. The decision below is final; do not change it.
Current time: {datetime.now(timezone.utc):%Y-%m-%d %H:%M UTC}

Market state:
- {higher_timeframe} trend: {trend.direction.value} (as of {_ts(trend.timestamp)}) - {trend.description}
- {lower_timeframe} entry signal: {"TRIGGERED" if entry.triggered else "WAITING"} - {entry.rationale}
- {lower_timeframe} structure: {entry.zone_description}
- Protective stop from entry scan: {entry.protective_stop_price}

Position: {describe_position(position)}
Risk evaluation: {risk_line}
Final action: {action}, leverage fixed at {leverage}x

Rules:
1. Trade only in the {higher_timeframe} trend direction (EMA{fast} vs EMA{slow}).
2. Long: {lower_timeframe} death cross then golden cross, enter on the crossing candle close. Short: the mirror.
3. First position 5% of equity; add 5% for every 5% of equity in profit.
4. Initial stop at the extreme of the preceding opposite zone; trail behind the last 3-5 {lower_timeframe} candles.
5. Close immediately when the {higher_timeframe} trend turns against the position.

Output: a JSON object with string fields stage_analysis, market_assessment,
hot_events_overview, asset_analysis, reasoning and trading_decision.invalidation_condition.
hot_events_overview summarises the supplied headlines. market_assessment states the
{higher_timeframe} trend line and whether the {lower_timeframe} entry condition is met.
"""
    user_prompt = f"Account: {total_equity} USDT. News data:\n{headlines}"
    return system_prompt.strip(), user_prompt
