"""Pydantic models for the claude.ai web API and the parsed usage result."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field

# ── Wire responses ───────────────────────────────────────────────────────────


class Organization(BaseModel):
    uuid: str
    name: str = ""


class UsageWindow(BaseModel):
    utilization: float
    resets_at: str | None = None


class UsageResponse(BaseModel):
    five_hour: UsageWindow | None = None
    seven_day: UsageWindow | None = None
    seven_day_opus: UsageWindow | None = None
    seven_day_sonnet: UsageWindow | None = None


# ── Parsed result ────────────────────────────────────────────────────────────


class UsageData(BaseModel):
    """One successful usage fetch, with reset times already parsed."""

    session_usage: float
    session_resets_at: datetime
    weekly_usage: float
    weekly_resets_at: datetime
    sonnet_usage: float | None = None
    sonnet_resets_at: datetime | None = None
    opus_usage: float | None = None
    opus_resets_at: datetime | None = None
    last_updated: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
