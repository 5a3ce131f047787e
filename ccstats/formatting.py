"""Display strings shared by the CLI and the JSON API."""

from __future__ import annotations

from datetime import datetime, timezone


def clamp_utilization(value: float) -> float:
    """Pin a utilization percentage into [0, 100] for display."""
    return max(0.0, min(100.0, value))


def usage_level(value: float) -> str:
    """Severity bucket: low (< 50), medium (< 75), high."""
    if value < 50:
        return "low"
    if value < 75:
        return "medium"
    return "high"


def reset_time_text(resets_at: datetime, now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    seconds = int((resets_at - now).total_seconds())
    if seconds <= 0:
        return "Resetting..."

    hours, minutes = seconds // 3600, (seconds % 3600) // 60
    if hours > 24:
        local = resets_at.astimezone()
        return f"Resets {local:%a} {local.hour % 12 or 12}:{local:%M %p}"
    if hours > 0:
        return f"Resets in {hours}h {minutes}m"
    return f"Resets in {minutes}m"


def last_updated_text(last_updated: datetime | None, now: datetime | None = None) -> str:
    if last_updated is None:
        return "Not yet updated"
    now = now or datetime.now(timezone.utc)
    elapsed = (now - last_updated).total_seconds()
    if elapsed < 60:
        return "Updated just now"
    if elapsed < 3600:
        return f"Updated {int(elapsed // 60)}m ago"
    return f"Updated at {last_updated.astimezone():%H:%M}"


def format_count(n: int) -> str:
    """Compact token/message count: 1.2M, 45K, 3.4K, 999."""
    if n >= 1_000_000:
        return f"{n / 1_000_000:.1f}M"
    if n >= 10_000:
        return f"{n // 1_000}K"
    if n >= 1_000:
        return f"{n / 1_000:.1f}K"
    return f"{n:,}"
