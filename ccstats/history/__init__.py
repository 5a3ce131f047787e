"""Usage snapshot log and session reconstruction."""

from .models import SessionSummary, UsageSnapshot
from .sessions import bucket_key, reconstruct_sessions
from .store import HistoryStore

__all__ = [
    "HistoryStore",
    "SessionSummary",
    "UsageSnapshot",
    "bucket_key",
    "reconstruct_sessions",
]
