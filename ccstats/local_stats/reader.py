"""Summarize the CLI's own stats cache (~/.claude/stats-cache.json).

The cache is written by Claude Code itself; this module only reads it and
rolls it up into today / last-7-days numbers plus the most used model.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Any

from ccstats.config import settings
from ccstats.storage import read_json

logger = logging.getLogger(__name__)


class LocalStatsError(Exception):
    """Raised when the stats cache is missing or malformed."""


@dataclass
class LocalUsage:
    """Rolled-up local activity."""

    today_messages: int
    today_tokens: int
    week_messages: int
    week_tokens: int
    total_sessions: int
    total_messages: int
    primary_model: str
    last_updated: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        return {
            "today_messages": self.today_messages,
            "today_tokens": self.today_tokens,
            "week_messages": self.week_messages,
            "week_tokens": self.week_tokens,
            "total_sessions": self.total_sessions,
            "total_messages": self.total_messages,
            "primary_model": self.primary_model,
            "last_updated": self.last_updated.isoformat(),
        }


def model_family(model: str) -> str:
    """Collapse a model id like ``claude-opus-4-1`` to its family name."""
    for family in ("opus", "sonnet", "haiku"):
        if family in model:
            return family.title()
    return model


class LocalStatsReader:
    def __init__(self, path: Path | str | None = None) -> None:
        self._path = Path(path) if path else settings.claude_stats_file

    def read(self, today: date | None = None) -> LocalUsage:
        try:
            raw = read_json(self._path)
        except FileNotFoundError as e:
            raise LocalStatsError("Stats file not found. Use Claude Code first.") from e
        except (OSError, ValueError) as e:
            raise LocalStatsError("Failed to parse stats file.") from e
        if not isinstance(raw, dict):
            raise LocalStatsError("Failed to parse stats file.")
        try:
            return summarize(raw, today or date.today())
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.debug("Stats cache shape mismatch: %s", e)
            raise LocalStatsError("Failed to parse stats file.") from e


def summarize(stats: dict[str, Any], today: date) -> LocalUsage:
    """Roll a parsed stats cache up relative to ``today``."""
    today_key = today.isoformat()
    week_start = (today - timedelta(days=7)).isoformat()

    activity = stats.get("dailyActivity", [])
    tokens = stats.get("dailyModelTokens", [])

    today_messages = sum(int(a["messageCount"]) for a in activity if a["date"] == today_key)
    week_messages = sum(int(a["messageCount"]) for a in activity if a["date"] >= week_start)
    today_tokens = sum(
        sum(d["tokensByModel"].values()) for d in tokens if d["date"] == today_key
    )
    week_tokens = sum(
        sum(d["tokensByModel"].values()) for d in tokens if d["date"] >= week_start
    )

    model_usage: dict[str, dict[str, Any]] = stats.get("modelUsage", {})
    primary = "Unknown"
    if model_usage:
        top = max(model_usage.items(), key=lambda kv: kv[1].get("outputTokens", 0))
        primary = model_family(top[0])

    return LocalUsage(
        today_messages=today_messages,
        today_tokens=today_tokens,
        week_messages=week_messages,
        week_tokens=week_tokens,
        total_sessions=int(stats.get("totalSessions", 0)),
        total_messages=int(stats.get("totalMessages", 0)),
        primary_model=primary,
    )
