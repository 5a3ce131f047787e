"""Public status page client (status.claude.com)."""

from __future__ import annotations

import logging
from enum import Enum

import httpx
from pydantic import BaseModel, ValidationError

from ccstats.config import settings

logger = logging.getLogger(__name__)


class StatusError(Exception):
    """Raised when the status page can't be fetched or parsed."""


class StatusIndicator(str, Enum):
    OPERATIONAL = "none"
    MINOR = "minor"
    MAJOR = "major"
    CRITICAL = "critical"
    UNKNOWN = "unknown"

    @classmethod
    def from_raw(cls, value: str) -> "StatusIndicator":
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN

    @property
    def display_text(self) -> str:
        return _DISPLAY_TEXT[self]


_DISPLAY_TEXT = {
    StatusIndicator.OPERATIONAL: "Operational",
    StatusIndicator.MINOR: "Minor Issue",
    StatusIndicator.MAJOR: "Major Outage",
    StatusIndicator.CRITICAL: "Critical",
    StatusIndicator.UNKNOWN: "Unknown",
}


class ServiceStatus(BaseModel):
    indicator: str  # "none", "minor", "major", "critical"
    description: str

    @property
    def level(self) -> StatusIndicator:
        return StatusIndicator.from_raw(self.indicator)

    @property
    def display_text(self) -> str:
        return self.level.display_text


class _StatusResponse(BaseModel):
    status: ServiceStatus


class StatusClient:
    """Fetches the overall service indicator from the status page."""

    def __init__(
        self,
        url: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._url = url or settings.status_url
        self._timeout = timeout or settings.status_timeout
        self._transport = transport

    def fetch_status(self) -> ServiceStatus:
        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                resp = client.get(self._url)
        except httpx.RequestError as e:
            raise StatusError(f"Status page unreachable: {e}") from e
        if not resp.is_success:
            raise StatusError(f"Status page returned {resp.status_code}")
        try:
            return _StatusResponse.model_validate_json(resp.content).status
        except ValidationError as e:
            raise StatusError("Malformed status response") from e
