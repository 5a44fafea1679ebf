"""Unit tests for decision.composer."""

import json

import pytest

from ema_trend_bot.annotator.base import Annotator
from ema_trend_bot.annotator.deepseek import DeepSeekAnnotator
from ema_trend_bot.core.config import Config
from ema_trend_bot.core.errors import AnnotatorUnavailable
from ema_trend_bot.core.types import (
    AccountState,
    Candle,
    DecisionAction,
    Narrative,
    Position,
    RiskActionType,
    SignalSide,
)
from ema_trend_bot.decision.composer import DecisionComposer, compute_contract_size

ACCOUNT = AccountState(total_equity=1000.0, available_equity=1000.0)
LONG_LOWS = [2990.0, 2995.0, 3005.0, 3010.0, 3012.0]
SHORT_HIGHS = [3010.0, 3005.0, 2995.0, 2990.0, 2985.0]


class StaticAnnotator(Annotator):
    def __init__(self, narrative):
        self.narrative = narrative
        self.prompts = []

    def annotate(self, system_prompt, user_prompt):
        self.prompts.append((system_prompt, user_prompt))
        return self.narrative


class FailingAnnotator(Annotator):
    def __init__(self, exc):
        self.exc = exc

    def annotate(self, system_prompt, user_prompt):
        raise self.exc


def recent_lows(lows):
    return [Candle(timestamp=i, open=low + 5, high=low + 20, low=low, close=low + 10) for i, low in enumerate(lows)]


def recent_highs(highs):
    return [Candle(timestamp=i, open=high - 5, high=high, low=high - 20, close=high - 10) for i, high in enumerate(highs)]


def long_position(upl=10.0, stop=0.0):
    return Position("ETH-USDT-SWAP", SignalSide.LONG, 2.0, 3000.0, unrealized_pnl=upl, current_stop_price=stop)


def core_fields(decision):
    return decision.action, decision.size_contracts, decision.leverage, decision.stop_price


def test_contract_size():
    # 0.05 * 1000 * 5 / (0.1 * 3050) = 0.8197 -> 0.82
    assert compute_contract_size(0.05, 1000.0, 5, 0.1, 3050.0) == pytest.approx(0.82)
    assert compute_contract_size(0.05, 1000.0, 5, 0.1, 3050.0) == compute_contract_size(0.05, 1000.0, 5, 0.1, 3050.0)


def test_contract_size_floor():
    assert compute_contract_size(0.05, 1.0, 5, 0.1, 3050.0) == pytest.approx(0.01)


def test_contract_size_half_rounds_up():
    # 0.05 * 1000 * 5 / (0.1 * 20000) = 0.125
    assert compute_contract_size(0.05, 1000.0, 5, 0.1, 20000.0) == pytest.approx(0.13)


def test_contract_size_invalid_price():
    with pytest.raises(ValueError):
        compute_contract_size(0.05, 1000.0, 5, 0.1, 0.0)


def test_long_entry(uptrend_candles, golden_cross_candles):
    d = DecisionComposer().compose(uptrend_candles, golden_cross_candles, ACCOUNT, 300.0)
    assert d.action == DecisionAction.BUY
    # 0.05 * 1000 * 5 / (0.1 * 300) = 8.333
    assert d.size_contracts == pytest.approx(8.33)
    assert d.leverage == 5
    assert d.stop_price == pytest.approx(89.0)
    assert d.risk is None
    assert d.entry.triggered is True


def test_short_entry(downtrend_candles, death_cross_candles):
    d = DecisionComposer().compose(downtrend_candles, death_cross_candles, ACCOUNT, 100.0)
    assert d.action == DecisionAction.SELL
    assert d.size_contracts == pytest.approx(25.0)
    assert d.stop_price == pytest.approx(311.0)


def test_no_signal_holds(uptrend_candles):
    d = DecisionComposer().compose(uptrend_candles, uptrend_candles, ACCOUNT, 219.0)
    assert core_fields(d) == (DecisionAction.HOLD, 0.0, 5, 0.0)


def test_open_position_skips_entry(uptrend_candles, golden_cross_candles):
    d = DecisionComposer().compose(uptrend_candles, golden_cross_candles, ACCOUNT, 300.0, long_position())
    # Fresh golden cross is ignored; the last five lows (89) only trail the stop
    assert d.action == DecisionAction.UPDATE_TPSL
    # 89 * 0.9995 = 88.9555, half rounds up
    assert d.stop_price == pytest.approx(88.96)
    assert d.entry.triggered is False
    assert d.risk is not None


def test_reversal_closes_position(downtrend_candles):
    d = DecisionComposer().compose(downtrend_candles, recent_lows(LONG_LOWS), ACCOUNT, 3050.0, long_position(upl=500.0))
    assert d.action == DecisionAction.CLOSE
    assert d.size_contracts == 2.0
    assert d.stop_price == 0.0


def test_pyramiding_adds_on_position_side(uptrend_candles):
    d = DecisionComposer().compose(uptrend_candles, recent_lows(LONG_LOWS), ACCOUNT, 3050.0, long_position(upl=60.0))
    assert d.action == DecisionAction.BUY
    assert d.size_contracts == pytest.approx(0.82)
    assert d.stop_price == pytest.approx(3003.6)


def test_short_pyramiding_sells(downtrend_candles):
    position = Position("ETH-USDT-SWAP", SignalSide.SHORT, 2.0, 3000.0, unrealized_pnl=60.0)
    d = DecisionComposer().compose(downtrend_candles, recent_highs(SHORT_HIGHS), ACCOUNT, 2950.0, position)
    assert d.action == DecisionAction.SELL
    # 0.05 * 1000 * 5 / (0.1 * 2950) = 0.847
    assert d.size_contracts == pytest.approx(0.85)
    assert d.stop_price == pytest.approx(2996.4)
    assert d.risk.action == RiskActionType.ADD


def test_trailing_stop_update(uptrend_candles):
    d = DecisionComposer().compose(uptrend_candles, recent_lows(LONG_LOWS), ACCOUNT, 3050.0, long_position())
    assert d.action == DecisionAction.UPDATE_TPSL
    assert d.size_contracts == 0.0
    assert d.stop_price == pytest.approx(3003.6)


def test_hold_keeps_committed_stop(uptrend_candles):
    d = DecisionComposer().compose(uptrend_candles, recent_lows(LONG_LOWS), ACCOUNT, 3050.0, long_position(stop=3010.0))
    assert core_fields(d) == (DecisionAction.HOLD, 0.0, 5, 3010.0)


def test_annotator_text_is_merged(uptrend_candles, golden_cross_candles):
    baseline = DecisionComposer().compose(uptrend_candles, golden_cross_candles, ACCOUNT, 300.0)
    annotator = StaticAnnotator(Narrative(reasoning="Model explanation", hot_events_overview=""))
    d = DecisionComposer(annotator=annotator, headline_source=lambda: "- [12:00:00] ETH ETF inflows").compose(
        uptrend_candles, golden_cross_candles, ACCOUNT, 300.0
    )
    assert core_fields(d) == core_fields(baseline)
    assert d.narrative.reasoning == "Model explanation"
    assert d.narrative.market_assessment == baseline.narrative.market_assessment
    assert "ETH ETF inflows" in annotator.prompts[0][1]
    assert "BUY" in annotator.prompts[0][0]


@pytest.mark.parametrize("annotator", [
    FailingAnnotator(AnnotatorUnavailable("timeout")),
    FailingAnnotator(RuntimeError("boom")),
    DeepSeekAnnotator(api_key=""),
])
def test_annotator_failure_keeps_decision(uptrend_candles, golden_cross_candles, annotator):
    baseline = DecisionComposer().compose(uptrend_candles, golden_cross_candles, ACCOUNT, 300.0)
    d = DecisionComposer(annotator=annotator).compose(uptrend_candles, golden_cross_candles, ACCOUNT, 300.0)
    assert core_fields(d) == core_fields(baseline)
    assert d.narrative == baseline.narrative


def test_unexpected_error_returns_safe_hold(uptrend_candles, golden_cross_candles):
    d = DecisionComposer().compose(uptrend_candles, golden_cross_candles, ACCOUNT, 0.0)
    assert core_fields(d) == (DecisionAction.HOLD, 0.0, 0, 0.0)
    assert "error" in d.narrative.reasoning.lower()


def test_decision_to_dict_is_json(uptrend_candles, golden_cross_candles):
    d = DecisionComposer().compose(uptrend_candles, golden_cross_candles, ACCOUNT, 300.0)
    data = json.loads(json.dumps(d.to_dict()))
    assert data["action"] == "BUY"
    assert data["entry"]["side"] == "BUY"
    assert data["trend"]["direction"] == "UP"


def test_from_config_without_key_skips_annotation():
    composer = DecisionComposer.from_config(Config(deepseek_api_key=""))
    assert composer.annotator is None
    assert composer.headline_source is None


def test_from_config_with_key_builds_annotator():
    composer = DecisionComposer.from_config(Config(deepseek_api_key="sk-test"))
    assert isinstance(composer.annotator, DeepSeekAnnotator)
    assert composer.headline_source is not None


def test_from_config_applies_instrument_info(uptrend_candles, golden_cross_candles):
    info = {"instId": "ETH-USDT-SWAP", "minSz": "1", "lotSz": "1", "tickSz": "0.1"}
    composer = DecisionComposer.from_config(Config(deepseek_api_key=""), instrument_info=info)
    assert (composer.min_size, composer.lot_step, composer.price_tick) == (1.0, 1.0, 0.1)
    assert composer.risk_manager.price_tick == 0.1
    d = composer.compose(uptrend_candles, golden_cross_candles, ACCOUNT, 300.0)
    assert d.action == DecisionAction.BUY
    # 8.33 contracts on a whole-contract lot step
    assert d.size_contracts == 8.0
