"""
DeepSeek chat-completions client used as the narrative annotator.
One bounded request per call, no retries.
"""

from __future__ import annotations
import logging
from typing import Any, Dict, List

import requests

from ema_trend_bot.annotator.base import Annotator, parse_narrative
from ema_trend_bot.core.errors import AnnotatorUnavailable, ConfigurationError
from ema_trend_bot.core.types import Narrative

logger = logging.getLogger("ema_trend_bot.annotator.deepseek")

DEEPSEEK_API_URL = "https://api.deepseek.com/chat/completions"


class DeepSeekAnnotator(Annotator):
    """Narrative annotator backed by the DeepSeek chat API. Never log the key."""

    def __init__(
        self,
        api_key: str,
        model: str = "deepseek-chat",
        timeout: float = 20.0,
        url: str = DEEPSEEK_API_URL,
        temperature: float = 0.1,
        max_tokens: int = 4096,
    ):
        self._api_key = (api_key or "").strip()
        self.model = model
        self.timeout = timeout
        self.url = url
        self.temperature = temperature
        self.max_tokens = max_tokens

    def _validated_key(self) -> str:
        if not self._api_key:
            raise ConfigurationError("DeepSeek API key is empty")
        if not self._api_key.isascii():
            raise ConfigurationError("DeepSeek API key contains non-ASCII characters")
        return self._api_key

    def _chat(self, messages: List[Dict[str, str]]) -> str:
        """POST messages, return the first choice's content."""
        key = self._validated_key()
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "stream": False,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "response_format": {"type": "json_object"},
        }
        headers = {"Content-Type": "application/json", "Authorization": f"Bearer {key}"}
        try:
            r = requests.post(self.url, json=payload, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise AnnotatorUnavailable(f"DeepSeek request failed: {e}") from e
        if r.status_code != 200:
            raise AnnotatorUnavailable(f"DeepSeek API error: {r.status_code} {r.text[:200]}")
        try:
            return r.json()["choices"][0]["message"]["content"] or ""
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise AnnotatorUnavailable(f"Unexpected DeepSeek response shape: {e}") from e

    def test_connection(self) -> str:
        """Preflight: fails fast with ConfigurationError if no key is configured."""
        content = self._chat([
            {"role": "user", "content": "Please respond with a JSON object containing the message 'OK'."}
        ])
        return content or "No response content"

    def annotate(self, system_prompt: str, user_prompt: str) -> Narrative:
        text = self._chat([
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ])
        logger.debug("DeepSeek response length=%d", len(text))
        return parse_narrative(text)
