"""Narrative annotator boundary: LLM client, headline feed, prompts."""

from ema_trend_bot.annotator.base import Annotator, parse_narrative
from ema_trend_bot.annotator.deepseek import DeepSeekAnnotator
from ema_trend_bot.annotator.news import fetch_headlines
from ema_trend_bot.annotator.prompt import build_prompts

__all__ = ["Annotator", "parse_narrative", "DeepSeekAnnotator", "fetch_headlines", "build_prompts"]
