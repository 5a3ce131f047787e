"""Usage history — append-only JSON log of snapshots.

The whole log lives in memory and is rewritten to disk after every append
(temp file + rename). The in-memory list is the source of truth for the
process lifetime; a failed write is logged and the append stands.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from ccstats.config import settings
from ccstats.history.models import SessionSummary, UsageSnapshot
from ccstats.history.sessions import reconstruct_sessions
from ccstats.storage import read_json, write_json_atomic
from ccstats.web_session.models import UsageData

logger = logging.getLogger(__name__)

_SNAPSHOTS = TypeAdapter(list[UsageSnapshot])


class HistoryStore:
    """Snapshot log with single-entry dedup and session reconstruction."""

    def __init__(
        self,
        path: Path | str | None = None,
        clock: Callable[[], datetime] | None = None,
        dedup_seconds: int | None = None,
        session_granularity: int | None = None,
    ) -> None:
        self._path = Path(path) if path else settings.history_path
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._dedup = timedelta(
            seconds=settings.history_dedup_seconds if dedup_seconds is None else dedup_seconds
        )
        self._granularity = session_granularity or settings.session_bucket_seconds
        self._snapshots: list[UsageSnapshot] = self._load_from_disk()

    @property
    def path(self) -> Path:
        return self._path

    def __len__(self) -> int:
        return len(self._snapshots)

    # ── Persistence ──────────────────────────────────────────────────────

    def _load_from_disk(self) -> list[UsageSnapshot]:
        try:
            raw = read_json(self._path)
        except FileNotFoundError:
            return []
        except (OSError, ValueError):
            logger.warning("History file %s is unreadable — starting empty", self._path)
            return []
        try:
            snapshots = _SNAPSHOTS.validate_python(raw)
        except ValidationError:
            logger.warning("History file %s has an unexpected shape — starting empty", self._path)
            return []
        logger.debug("Loaded %d snapshots from %s", len(snapshots), self._path)
        return snapshots

    def _write_to_disk(self) -> None:
        write_json_atomic(self._path, [s.to_json_dict() for s in self._snapshots])

    # ── Writes ───────────────────────────────────────────────────────────

    def record(self, snapshot: UsageSnapshot) -> bool:
        """Append ``snapshot`` unless the latest entry is under a minute old.

        Returns True when the snapshot was appended.
        """
        if self._snapshots:
            last = self._snapshots[-1]
            if self._clock() - last.timestamp < self._dedup:
                return False

        self._snapshots.append(snapshot)
        try:
            self._write_to_disk()
        except OSError:
            logger.exception("Failed to write usage history to %s", self._path)
        return True

    def record_usage(self, usage: UsageData) -> bool:
        """Snapshot ``usage`` at the current time and record it."""
        return self.record(UsageSnapshot.from_usage(usage, timestamp=self._clock()))

    # ── Reads ────────────────────────────────────────────────────────────

    def load_history(self) -> list[UsageSnapshot]:
        return list(self._snapshots)

    def latest(self) -> UsageSnapshot | None:
        return self._snapshots[-1] if self._snapshots else None

    def load_session_summaries(self) -> list[SessionSummary]:
        return reconstruct_sessions(self._snapshots, self._granularity)
