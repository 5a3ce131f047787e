"""Credential slots — session key, cookie blob, org override, client ids.

A flat JSON document in the data directory, rewritten atomically on every
change. Each slot is a plain string or absent; nothing here validates the
values, the web session client decides what they mean.
"""

from __future__ import annotations

import logging
import os
import uuid
from pathlib import Path

from ccstats.config import settings
from ccstats.storage import read_json, write_json_atomic

logger = logging.getLogger(__name__)

SESSION_KEY = "session_key"
FULL_COOKIES = "full_cookies"
ORGANIZATION_ID = "organization_id"
DEVICE_ID = "device_id"
ANONYMOUS_ID = "anonymous_id"
DISMISSED_VERSION = "dismissed_update_version"

ANONYMOUS_ID_PREFIX = "claudeai.v1."


class CredentialStore:
    """JSON-file backed key-value slots for credentials and client identity."""

    def __init__(self, path: Path | str | None = None) -> None:
        self._path = Path(path) if path else settings.credentials_path
        self._values: dict[str, str] = self._load()

    def _load(self) -> dict[str, str]:
        try:
            raw = read_json(self._path)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError):
            logger.warning("Credential file %s is unreadable — starting empty", self._path)
            return {}
        if not isinstance(raw, dict):
            return {}
        return {k: v for k, v in raw.items() if isinstance(v, str)}

    def _save(self) -> None:
        write_json_atomic(self._path, self._values)
        try:
            os.chmod(self._path, 0o600)
        except OSError:
            logger.debug("Could not restrict permissions on %s", self._path)

    # ── Generic slots ────────────────────────────────────────────────────

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str | None) -> None:
        """Set a slot; ``None`` or an empty string clears it."""
        if value:
            self._values[key] = value
        else:
            self._values.pop(key, None)
        self._save()

    # ── Named slots ──────────────────────────────────────────────────────

    @property
    def session_key(self) -> str | None:
        return self.get(SESSION_KEY)

    @session_key.setter
    def session_key(self, value: str | None) -> None:
        self.set(SESSION_KEY, value)

    @property
    def full_cookies(self) -> str | None:
        """Full browser cookie string (carries cf_clearance for the firewall)."""
        return self.get(FULL_COOKIES)

    @full_cookies.setter
    def full_cookies(self, value: str | None) -> None:
        self.set(FULL_COOKIES, value)

    @property
    def organization_id(self) -> str | None:
        return self.get(ORGANIZATION_ID)

    @organization_id.setter
    def organization_id(self, value: str | None) -> None:
        self.set(ORGANIZATION_ID, value)

    @property
    def dismissed_version(self) -> str:
        return self.get(DISMISSED_VERSION) or ""

    @dismissed_version.setter
    def dismissed_version(self, value: str | None) -> None:
        self.set(DISMISSED_VERSION, value)

    @property
    def device_id(self) -> str:
        """Lower-case UUID, generated on first use and reused afterwards."""
        existing = self.get(DEVICE_ID)
        if existing:
            return existing
        new_id = str(uuid.uuid4()).lower()
        self.set(DEVICE_ID, new_id)
        return new_id

    @property
    def anonymous_id(self) -> str:
        existing = self.get(ANONYMOUS_ID)
        if existing:
            return existing
        new_id = f"{ANONYMOUS_ID_PREFIX}{str(uuid.uuid4()).lower()}"
        self.set(ANONYMOUS_ID, new_id)
        return new_id

    @property
    def has_session_key(self) -> bool:
        return bool(self.session_key)

    def clear_session(self) -> None:
        """Log out: drop the session key, cookie blob and org override."""
        for key in (SESSION_KEY, FULL_COOKIES, ORGANIZATION_ID):
            self._values.pop(key, None)
        self._save()
        logger.info("Session credentials cleared")
