"""httpx-based client for the claude.ai usage endpoints.

Cookie-authenticated, mimicking the web app's own requests. ``fetch_usage``
returns a parsed UsageData or raises one of the WebSessionError subclasses;
each failure is terminal for the call, nothing is retried here.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from datetime import datetime, timezone

import httpx
from pydantic import TypeAdapter, ValidationError

from ccstats.config import settings
from ccstats.credentials.store import CredentialStore
from ccstats.web_session.models import Organization, UsageData, UsageResponse

logger = logging.getLogger(__name__)

CHALLENGE_MARKERS = ("Just a moment", "cf_clearance")

_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/143.0.0.0 Safari/537.36"
)
_ORGANIZATIONS = TypeAdapter(list[Organization])
_FRACTION_RE = re.compile(r"(\.\d{6})\d+")


# ── Errors ───────────────────────────────────────────────────────────────────


class WebSessionError(Exception):
    """Base for usage-fetch failures. ``message`` is shown to the user."""

    message = "Usage fetch failed."

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class NoCredentialError(WebSessionError):
    message = "No session key. Add one in settings."


class NetworkError(WebSessionError):
    def __init__(self, cause: Exception) -> None:
        self.cause = cause
        super().__init__(f"Network error: {cause}")


class InvalidResponseError(WebSessionError):
    message = "Invalid response from claude.ai"

    def __init__(self, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__()


class UnauthorizedError(WebSessionError):
    message = "Session expired. Update your cookie."


class NoOrganizationError(WebSessionError):
    message = "Could not find organization."


class DecodingError(WebSessionError):
    def __init__(self, cause: Exception) -> None:
        self.cause = cause
        super().__init__("Failed to parse usage data.")


class ChallengeBlockedError(WebSessionError):
    message = "Blocked by Cloudflare. Visit claude.ai in browser, then refresh."


# ── Helpers ──────────────────────────────────────────────────────────────────


def build_cookie_header(session_key: str | None, full_cookies: str | None) -> str | None:
    """Combine the session key and the optional browser cookie blob."""
    if full_cookies:
        if "sessionKey=" in full_cookies:
            return full_cookies
        if session_key:
            return f"sessionKey={session_key}; {full_cookies}"
        return full_cookies
    if session_key:
        return f"sessionKey={session_key}"
    return None


def is_challenge_page(body: str) -> bool:
    """True when the body looks like a bot-challenge interstitial, not JSON."""
    if any(marker in body for marker in CHALLENGE_MARKERS):
        return True
    head = body.lstrip()[:64].lower()
    return head.startswith("<!doctype html") or head.startswith("<html")


def parse_reset_time(value: str | None, now: datetime | None = None) -> datetime:
    """Parse an ISO-8601 reset timestamp, falling back to ``now``.

    Tries the fractional-seconds form first, then whole seconds.
    """
    now = now or datetime.now(timezone.utc)
    if not value:
        return now
    text = _FRACTION_RE.sub(r"\1", value.strip())
    for fmt in ("%Y-%m-%dT%H:%M:%S.%f%z", "%Y-%m-%dT%H:%M:%S%z"):
        try:
            parsed = datetime.strptime(text, fmt)
        except ValueError:
            continue
        return parsed.astimezone(timezone.utc)
    logger.debug("Unparseable reset time %r — using now", value)
    return now


# ── Client ───────────────────────────────────────────────────────────────────


class WebSessionClient:
    """Synchronous httpx client for the claude.ai organization/usage API."""

    def __init__(
        self,
        credentials: CredentialStore,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.credentials = credentials
        self._base_url = (base_url or settings.usage_base_url).rstrip("/")
        self._timeout = timeout or settings.usage_timeout
        self._transport = transport
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._organization_id: str | None = None

    # ── Organization scope cache ─────────────────────────────────────────

    @property
    def organization_id(self) -> str | None:
        """Cached org id, seeded from the persisted override when present."""
        if self._organization_id is None:
            self._organization_id = self.credentials.organization_id
        return self._organization_id

    def clear_organization(self) -> None:
        self._organization_id = None
        if self.credentials.organization_id:
            self.credentials.organization_id = None

    # ── Request plumbing ─────────────────────────────────────────────────

    def _headers(self, cookies: str) -> dict[str, str]:
        return {
            "Accept": "*/*",
            "Content-Type": "application/json",
            "Cookie": cookies,
            "User-Agent": _USER_AGENT,
            "sec-ch-ua": '"Google Chrome";v="143", "Chromium";v="143", "Not A(Brand";v="24"',
            "sec-ch-ua-mobile": "?0",
            "sec-ch-ua-platform": '"macOS"',
            "sec-fetch-dest": "empty",
            "sec-fetch-mode": "cors",
            "sec-fetch-site": "same-origin",
            "anthropic-client-platform": "web_claude_ai",
            "anthropic-client-version": settings.client_version,
            "anthropic-device-id": self.credentials.device_id,
            "anthropic-anonymous-id": self.credentials.anonymous_id,
            "Referer": "https://claude.ai/settings/usage",
            "Origin": "https://claude.ai",
            "Accept-Language": "en-US,en;q=0.9",
        }

    def _get(self, path: str, cookies: str) -> httpx.Response:
        """GET ``path`` and classify the outcome. Returns only 2xx, non-challenge responses."""
        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                resp = client.get(f"{self._base_url}{path}", headers=self._headers(cookies))
        except httpx.RequestError as e:
            raise NetworkError(e) from e

        if resp.status_code in (401, 403):
            self.clear_organization()
            raise UnauthorizedError()
        if not resp.is_success:
            raise InvalidResponseError(resp.status_code)
        if is_challenge_page(resp.text):
            raise ChallengeBlockedError()
        return resp

    # ── High-level methods ───────────────────────────────────────────────

    def fetch_usage(self) -> UsageData:
        """Discover the org if needed, then fetch and parse its usage windows."""
        cookies = build_cookie_header(
            self.credentials.session_key, self.credentials.full_cookies
        )
        if not cookies:
            raise NoCredentialError()

        org_id = self.organization_id
        if not org_id:
            org_id = self.fetch_organization_id(cookies)
            self._organization_id = org_id
            logger.info("Discovered organization %s", org_id)

        resp = self._get(f"/organizations/{org_id}/usage", cookies)
        try:
            usage = UsageResponse.model_validate_json(resp.content)
        except ValidationError as e:
            logger.debug("Usage response: %s", resp.text[:200])
            raise DecodingError(e) from e
        return self.parse_response(usage)

    def fetch_organization_id(self, cookies: str) -> str:
        """GET /organizations — the first organization wins."""
        resp = self._get("/organizations", cookies)
        try:
            organizations = _ORGANIZATIONS.validate_json(resp.content)
        except ValidationError as e:
            raise DecodingError(e) from e
        if not organizations:
            raise NoOrganizationError()
        return organizations[0].uuid

    def parse_response(self, response: UsageResponse) -> UsageData:
        now = self._clock()
        session = response.five_hour
        weekly = response.seven_day
        sonnet = response.seven_day_sonnet
        opus = response.seven_day_opus
        return UsageData(
            session_usage=session.utilization if session else 0.0,
            session_resets_at=parse_reset_time(session.resets_at if session else None, now),
            weekly_usage=weekly.utilization if weekly else 0.0,
            weekly_resets_at=parse_reset_time(weekly.resets_at if weekly else None, now),
            sonnet_usage=sonnet.utilization if sonnet else None,
            sonnet_resets_at=parse_reset_time(sonnet.resets_at, now) if sonnet else None,
            opus_usage=opus.utilization if opus else None,
            opus_resets_at=parse_reset_time(opus.resets_at, now) if opus else None,
            last_updated=now,
        )
