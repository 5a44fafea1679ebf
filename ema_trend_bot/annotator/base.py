"""Abstract narrative annotator and parsing of its JSON output."""

from __future__ import annotations
import json
from abc import ABC, abstractmethod
from typing import Any

from ema_trend_bot.core.errors import AnnotatorUnavailable
from ema_trend_bot.core.types import Narrative

NARRATIVE_KEYS = (
    "stage_analysis",
    "market_assessment",
    "hot_events_overview",
    "asset_analysis",
    "reasoning",
)


class Annotator(ABC):
    """Turns a summary of the computed state into narrative text. Never decides trades."""

    @abstractmethod
    def annotate(self, system_prompt: str, user_prompt: str) -> Narrative:
        """
        Return narrative fields; empty fields mean "keep the default".
        Raise AnnotatorUnavailable / ConfigurationError on failure.
        """
        pass


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def parse_narrative(text: str) -> Narrative:
    """
    Parse annotator output into a Narrative. Only string values are kept.
    Accepts eth_analysis as an alias of asset_analysis.
    """
    clean = (text or "").replace("```json", "").replace("```", "").strip()
    try:
        data = json.loads(clean)
    except ValueError as e:
        raise AnnotatorUnavailable(f"Unparsable annotator output: {e}") from e
    if not isinstance(data, dict):
        raise AnnotatorUnavailable(f"Annotator output is not a JSON object: {type(data).__name__}")

    fields = {key: _text(data.get(key)) for key in NARRATIVE_KEYS}
    if not fields["asset_analysis"]:
        fields["asset_analysis"] = _text(data.get("eth_analysis"))
    trading = data.get("trading_decision")
    if isinstance(trading, dict):
        fields["invalidation_condition"] = _text(trading.get("invalidation_condition"))
    else:
        fields["invalidation_condition"] = ""
    return Narrative(**fields)
