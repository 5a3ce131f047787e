"""Session reconstruction — group snapshots into usage-limit windows.

The API's reported reset time for the current session drifts by a few
seconds between polls. Snapshots are bucketed by their reset time rounded
to the nearest ``granularity`` seconds so one logical session doesn't
fragment into many.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from datetime import datetime, timezone

from ccstats.history.models import SessionSummary, UsageSnapshot

DEFAULT_GRANULARITY = 60


def bucket_key(resets_at: datetime, granularity: int = DEFAULT_GRANULARITY) -> datetime:
    """Round ``resets_at`` to the nearest multiple of ``granularity`` (half rounds up)."""
    epoch = resets_at.timestamp()
    rounded = math.floor(epoch / granularity + 0.5) * granularity
    return datetime.fromtimestamp(rounded, tz=timezone.utc)


def reconstruct_sessions(
    snapshots: Iterable[UsageSnapshot],
    granularity: int = DEFAULT_GRANULARITY,
) -> list[SessionSummary]:
    """Build one SessionSummary per reset-time bucket, ascending by reset time."""
    buckets: dict[datetime, list[UsageSnapshot]] = {}
    for snap in snapshots:
        if snap.session_resets_at is None:
            continue
        key = bucket_key(snap.session_resets_at, granularity)
        buckets.setdefault(key, []).append(snap)

    summaries = [
        SessionSummary(
            session_resets_at=key,
            peak_usage=max(s.session_usage for s in snaps),
            first_seen=min(s.timestamp for s in snaps),
            last_seen=max(s.timestamp for s in snaps),
        )
        for key, snaps in buckets.items()
    ]
    summaries.sort(key=lambda s: s.session_resets_at)
    return summaries
