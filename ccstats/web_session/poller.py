"""Usage poller — one fetch cycle feeding the history log.

- ``refresh()`` fetches usage, records a snapshot, then refreshes status
- ``refresh_if_needed()`` skips the fetch while the last result is fresh
- Status failures are swallowed; the last known status is kept
- Usage failures are terminal for the cycle and surfaced as ``state.error``
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from ccstats.config import settings
from ccstats.formatting import last_updated_text
from ccstats.history.store import HistoryStore
from ccstats.outcome import Outcome
from ccstats.scheduler import RepeatingTask
from ccstats.status.service import ServiceStatus, StatusClient
from ccstats.web_session.client import WebSessionClient, WebSessionError
from ccstats.web_session.models import UsageData

logger = logging.getLogger(__name__)


class UsageState:
    """Last known usage, status and error for the frontend."""

    def __init__(self) -> None:
        self.usage: UsageData | None = None
        self.error: str | None = None
        self.is_loading: bool = False
        self.status: ServiceStatus | None = None
        self.status_error: str | None = None
        self.is_status_loading: bool = False

    @property
    def last_updated(self) -> datetime | None:
        return self.usage.last_updated if self.usage else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "usage": self.usage.model_dump(mode="json") if self.usage else None,
            "error": self.error,
            "is_loading": self.is_loading,
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
            "last_updated_text": last_updated_text(self.last_updated),
            "status": {
                "indicator": self.status.indicator,
                "description": self.status.description,
                "text": self.status.display_text,
            } if self.status else None,
        }


class UsagePoller:
    """Drives the usage fetch → history record cycle."""

    def __init__(
        self,
        client: WebSessionClient,
        history: HistoryStore,
        status_client: StatusClient | None = None,
        interval: float | None = None,
        stale_after: float | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.client = client
        self.history = history
        self.status_client = status_client
        self.interval = interval or settings.usage_poll_interval
        self.stale_after = settings.usage_stale_after if stale_after is None else stale_after
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self.state = UsageState()
        self._task = RepeatingTask("Usage poller", self.refresh, self.interval)

    def start(self) -> None:
        """Start background refresh."""
        self._task.start()

    async def stop(self) -> None:
        await self._task.stop()

    async def refresh(self) -> None:
        """Fetch usage once, record it, then refresh the status indicator.

        A call made while another fetch is in flight returns immediately.
        """
        if self.state.is_loading:
            logger.debug("Usage fetch already in flight, skipping")
            return
        self.state.is_loading = True
        self.state.error = None
        loop = asyncio.get_running_loop()
        try:
            usage = await loop.run_in_executor(None, self.client.fetch_usage)
        except WebSessionError as e:
            self.state.error = e.message
            logger.warning("Usage fetch failed: %s", e)
        else:
            self.state.usage = usage
            if await loop.run_in_executor(None, self.history.record_usage, usage):
                logger.debug("Recorded snapshot (session=%.0f%%)", usage.session_usage)
        finally:
            self.state.is_loading = False

        await self.refresh_status()

    async def refresh_if_needed(self) -> bool:
        """Refresh only when there's no usage yet or it's older than ``stale_after``.

        Returns True when a usage fetch was issued.
        """
        last = self.state.last_updated
        if last is not None and (self._clock() - last).total_seconds() < self.stale_after:
            if self.state.status is None:
                await self.refresh_status()
            return False
        await self.refresh()
        return True

    async def refresh_status(self) -> None:
        if self.status_client is None or self.state.is_status_loading:
            return
        self.state.is_status_loading = True
        try:
            loop = asyncio.get_running_loop()
            outcome = await loop.run_in_executor(
                None, Outcome.capture, self.status_client.fetch_status
            )
        finally:
            self.state.is_status_loading = False

        if outcome.ok:
            self.state.status = outcome.value
            self.state.status_error = None
        else:
            self.state.status_error = str(outcome.error)
            logger.debug("Status refresh failed: %s", outcome.error)
