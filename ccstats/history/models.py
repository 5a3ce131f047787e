"""Usage snapshot (persisted) and session summary (derived)."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, field_serializer, field_validator
from pydantic.alias_generators import to_camel

from ccstats.web_session.models import UsageData


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class UsageSnapshot(BaseModel):
    """One point-in-time observation, appended to the history log.

    Stored on disk with camelCase keys and second-precision ISO-8601 times.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    timestamp: datetime
    session_usage: float
    weekly_usage: float
    sonnet_usage: float | None = None
    session_resets_at: datetime | None = None
    weekly_resets_at: datetime | None = None

    @field_validator("timestamp", "session_resets_at", "weekly_resets_at")
    @classmethod
    def _normalize_tz(cls, value: datetime | None) -> datetime | None:
        return _as_utc(value) if value is not None else None

    @field_serializer("timestamp", "session_resets_at", "weekly_resets_at")
    def _iso_seconds(self, value: datetime | None) -> str | None:
        if value is None:
            return None
        return value.isoformat(timespec="seconds").replace("+00:00", "Z")

    @classmethod
    def from_usage(cls, usage: UsageData, timestamp: datetime | None = None) -> "UsageSnapshot":
        ts = timestamp or datetime.now(timezone.utc)
        return cls(
            timestamp=ts.replace(microsecond=0),
            session_usage=usage.session_usage,
            weekly_usage=usage.weekly_usage,
            sonnet_usage=usage.sonnet_usage,
            session_resets_at=usage.session_resets_at,
            weekly_resets_at=usage.weekly_resets_at,
        )

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


@dataclass(frozen=True)
class SessionSummary:
    """All snapshots believed to belong to one usage-limit window."""

    session_resets_at: datetime
    peak_usage: float
    first_seen: datetime
    last_seen: datetime

    def to_dict(self) -> dict:
        return {
            "session_resets_at": self.session_resets_at.isoformat(),
            "peak_usage": self.peak_usage,
            "first_seen": self.first_seen.isoformat(),
            "last_seen": self.last_seen.isoformat(),
        }
