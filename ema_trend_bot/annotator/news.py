"""Latest crypto headlines (CryptoCompare public API) for the annotator prompt."""

from __future__ import annotations
import logging
from datetime import datetime, timezone

import requests

logger = logging.getLogger("ema_trend_bot.annotator.news")

NEWS_URL = "https://min-api.cryptocompare.com/data/v2/news/?lang=EN&sortOrder=latest&limit=5"


def fetch_headlines(url: str = NEWS_URL, limit: int = 5, timeout: float = 10.0) -> str:
    """Return one '- [HH:MM:SS] title' line per headline. Never raises; returns a fallback sentence."""
    try:
        r = requests.get(url, timeout=timeout)
        if r.status_code != 200:
            logger.warning("News fetch failed: %s", r.status_code)
            return "News source unreachable"
        payload = r.json()
    except (requests.RequestException, ValueError) as e:
        logger.warning("News fetch error: %s", e)
        return "Headline search temporarily unavailable"
    items = payload.get("Data") if isinstance(payload, dict) else None
    if not isinstance(items, list) or not items:
        return "No breaking headlines found"
    lines = []
    for item in items[:limit]:
        if not isinstance(item, dict) or not item.get("title"):
            continue
        try:
            published = datetime.fromtimestamp(int(item.get("published_on", 0)), tz=timezone.utc)
        except (TypeError, ValueError, OverflowError):
            lines.append(f"- {item['title']}")
            continue
        lines.append(f"- [{published:%H:%M:%S}] {item['title']}")
    return "\n".join(lines) or "No breaking headlines found"
