#!/usr/bin/env python3
"""
EMA Trend Bot CLI: decide | check
Usage:
  python main.py decide --htf candles_1h.csv --ltf candles_3m.csv --equity 1000 --price 3050 [--config config.yaml]
  python main.py decide ... --position-side long --position-size 1.5 --entry-price 3000 --upl 12.5 --stop 2980
  python main.py decide ... --instrument-info eth_swap.json
  python main.py check [--config config.yaml]
"""

from __future__ import annotations
import argparse
import json
import logging
import sys
from pathlib import Path

# Project root
ROOT = Path(__file__).resolve().parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from ema_trend_bot.annotator.deepseek import DeepSeekAnnotator
from ema_trend_bot.core.config import load_config
from ema_trend_bot.core.errors import AnnotatorUnavailable, ConfigurationError
from ema_trend_bot.core.logger import setup_logging
from ema_trend_bot.core.types import AccountState, Position, SignalSide
from ema_trend_bot.decision.composer import DecisionComposer
from ema_trend_bot.utils.candles import load_candles_csv


def run_decide(args: argparse.Namespace) -> int:
    """Evaluate one cycle from CSV candles and print the Decision as JSON."""
    config = load_config(args.config, ROOT)
    setup_logging(config.log_level, config.log_dir, config.log_file)
    logger = logging.getLogger("ema_trend_bot")
    try:
        higher = load_candles_csv(args.htf)
        lower = load_candles_csv(args.ltf)
    except (OSError, ValueError) as e:
        logger.error("Could not load candles: %s", e)
        return 1
    instrument_info = None
    if args.instrument_info:
        try:
            instrument_info = json.loads(args.instrument_info.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.error("Could not load instrument info: %s", e)
            return 1
    position = None
    if args.position_side:
        position = Position(
            symbol=config.instrument_id,
            side=SignalSide.LONG if args.position_side == "long" else SignalSide.SHORT,
            size_contracts=args.position_size,
            average_entry_price=args.entry_price,
            unrealized_pnl=args.upl,
            current_stop_price=args.stop,
            leverage=config.leverage,
        )
    account = AccountState(total_equity=args.equity, available_equity=args.available or args.equity)
    composer = DecisionComposer.from_config(
        config, use_annotator=not args.no_annotator, instrument_info=instrument_info
    )
    decision = composer.compose(higher, lower, account, args.price, position)
    print(json.dumps(decision.to_dict(), indent=2, ensure_ascii=False))
    return 0


def run_check(args: argparse.Namespace) -> int:
    """Report annotator credentials (without printing them) and run the connection preflight."""
    config = load_config(args.config, ROOT)
    setup_logging(config.log_level, config.log_dir, config.log_file)
    print("Project root:", ROOT)
    print(".env exists:", (ROOT / ".env").exists())
    print("DEEPSEEK_API_KEY:", "SET" if config.deepseek_api_key else "NOT SET")
    annotator = DeepSeekAnnotator(
        config.deepseek_api_key,
        model=config.annotator_model,
        timeout=config.annotator_timeout_s,
        url=config.annotator_url,
    )
    try:
        print("Annotator response:", annotator.test_connection())
    except ConfigurationError as e:
        print("Configuration error:", e)
        return 1
    except AnnotatorUnavailable as e:
        print("Annotator unavailable:", e)
        return 2
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="EMA Trend Bot CLI")
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", type=Path, default=None, help="Path to config.yaml")
    sub = parser.add_subparsers(dest="mode", required=True)

    decide = sub.add_parser("decide", parents=[common], help="Evaluate one decision cycle from CSV candles")
    decide.add_argument("--htf", type=Path, required=True, help="Higher-timeframe (1H) candle CSV")
    decide.add_argument("--ltf", type=Path, required=True, help="Lower-timeframe (3m) candle CSV")
    decide.add_argument("--equity", type=float, required=True, help="Total account equity (USDT)")
    decide.add_argument("--available", type=float, default=0.0, help="Available equity (USDT)")
    decide.add_argument("--price", type=float, required=True, help="Current mark/last price")
    decide.add_argument("--position-side", choices=["long", "short"], default=None)
    decide.add_argument("--position-size", type=float, default=0.0, help="Open position size in contracts")
    decide.add_argument("--entry-price", type=float, default=0.0, help="Average entry price")
    decide.add_argument("--upl", type=float, default=0.0, help="Unrealized PnL (USDT)")
    decide.add_argument("--stop", type=float, default=0.0, help="Current stop price (0 = unset)")
    decide.add_argument("--instrument-info", type=Path, default=None, help="OKX instrument JSON (minSz, lotSz, tickSz)")
    decide.add_argument("--no-annotator", action="store_true", help="Skip narrative annotation")

    sub.add_parser("check", parents=[common], help="Check annotator credentials and connectivity")

    args = parser.parse_args()
    if args.mode == "decide":
        return run_decide(args)
    return run_check(args)


if __name__ == "__main__":
    exit(main())
