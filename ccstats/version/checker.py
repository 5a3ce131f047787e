"""Update checker — installed CLI vs. latest release, self-throttled.

Version checking is non-critical: a failed probe or feed fetch is logged at
debug and the previously known value is kept. Nothing is surfaced to the
user for these failures.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from ccstats.config import settings
from ccstats.credentials.store import CredentialStore
from ccstats.outcome import Outcome
from ccstats.scheduler import RepeatingTask
from ccstats.version.service import VersionService

logger = logging.getLogger(__name__)

CHANGELOG_URL = "https://github.com/anthropics/claude-code/releases/tag/v{version}"

_LEADING_DIGITS = re.compile(r"\d+")


def _components(version: str) -> list[int]:
    parts = []
    for piece in version.strip().split("."):
        match = _LEADING_DIGITS.match(piece)
        parts.append(int(match.group()) if match else 0)
    return parts


def is_version_newer(a: str, b: str) -> bool:
    """True when dotted version ``a`` is strictly newer than ``b``.

    Component-wise integer comparison; missing or non-numeric components
    count as 0, so "1.0" equals "1.0.0".
    """
    parts_a = _components(a)
    parts_b = _components(b)
    for i in range(max(len(parts_a), len(parts_b))):
        va = parts_a[i] if i < len(parts_a) else 0
        vb = parts_b[i] if i < len(parts_b) else 0
        if va > vb:
            return True
        if va < vb:
            return False
    return False


class UpdateChecker:
    """Tracks installed/latest versions and the user's dismissal."""

    def __init__(
        self,
        service: VersionService,
        preferences: CredentialStore,
        throttle_seconds: float | None = None,
        interval: float | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.service = service
        self.preferences = preferences
        self.throttle_seconds = (
            settings.version_check_throttle if throttle_seconds is None else throttle_seconds
        )
        self.interval = interval or settings.version_check_interval
        self._clock = clock or (lambda: datetime.now(timezone.utc))

        self.installed_version: str | None = None
        self.latest_version: str | None = None
        self.last_check_date: datetime | None = None
        self.last_errors: list[Exception] = []
        self._in_flight = False
        self._task = RepeatingTask("Version checker", self.check_for_update, self.interval)

    # ── Derived state ────────────────────────────────────────────────────

    @property
    def dismissed_version(self) -> str:
        return self.preferences.dismissed_version

    @property
    def has_checked(self) -> bool:
        return self.installed_version is not None and self.latest_version is not None

    @property
    def has_update(self) -> bool:
        installed, latest = self.installed_version, self.latest_version
        if installed is None or latest is None or latest == self.dismissed_version:
            return False
        return is_version_newer(latest, installed)

    @property
    def is_up_to_date(self) -> bool:
        installed, latest = self.installed_version, self.latest_version
        if installed is None or latest is None:
            return False
        return not is_version_newer(latest, installed)

    @property
    def update_text(self) -> str:
        if self.installed_version is None or self.latest_version is None:
            return ""
        return f"Claude Code v{self.installed_version} → v{self.latest_version} available"

    @property
    def up_to_date_text(self) -> str:
        if self.installed_version is None:
            return ""
        return f"Claude Code v{self.installed_version} — up to date"

    @property
    def changelog_url(self) -> str | None:
        version = self.latest_version or self.installed_version
        return CHANGELOG_URL.format(version=version) if version else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "installed_version": self.installed_version,
            "latest_version": self.latest_version,
            "dismissed_version": self.dismissed_version or None,
            "has_update": self.has_update,
            "is_up_to_date": self.is_up_to_date,
            "update_text": self.update_text,
            "up_to_date_text": self.up_to_date_text,
            "changelog_url": self.changelog_url,
            "last_check": self.last_check_date.isoformat() if self.last_check_date else None,
        }

    # ── Actions ──────────────────────────────────────────────────────────

    async def check_for_update(self) -> bool:
        """Refresh both versions unless throttled or already running.

        Returns True when a check actually ran.
        """
        if self._in_flight:
            return False
        if self.last_check_date is not None:
            elapsed = (self._clock() - self.last_check_date).total_seconds()
            if elapsed < self.throttle_seconds:
                return False

        self._in_flight = True
        try:
            loop = asyncio.get_running_loop()
            installed, latest = await asyncio.gather(
                loop.run_in_executor(None, Outcome.capture, self.service.fetch_installed_version),
                loop.run_in_executor(None, Outcome.capture, self.service.fetch_latest_version),
            )
            self.last_errors = []
            for label, outcome in (("installed", installed), ("latest", latest)):
                if not outcome.ok:
                    logger.debug("Version check (%s) failed: %s", label, outcome.error)
                    self.last_errors.append(outcome.error)
            if installed.ok:
                self.installed_version = installed.value
            if latest.ok:
                self.latest_version = latest.value
            self.last_check_date = self._clock()
        finally:
            self._in_flight = False

        if self.has_update:
            logger.info("Update available: %s", self.update_text)
        return True

    def dismiss(self) -> None:
        """Hide the banner for the current latest version."""
        if self.latest_version:
            self.preferences.dismissed_version = self.latest_version

    def start(self) -> None:
        self._task.start()

    async def stop(self) -> None:
        await self._task.stop()
