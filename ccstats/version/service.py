"""Version sources — the installed CLI and the latest GitHub release."""

from __future__ import annotations

import logging
import re
import subprocess

import httpx

from ccstats.config import settings

logger = logging.getLogger(__name__)

_VERSION_RE = re.compile(r"(\d+\.\d+\.\d+)")


class VersionError(Exception):
    """Raised when a version can't be determined."""


class VersionService:
    """Reads the installed CLI version and the latest published release."""

    def __init__(
        self,
        cli_path: str | None = None,
        release_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._cli_path = cli_path or settings.claude_cli_path
        self._release_url = release_url or settings.release_feed_url
        self._timeout = timeout or settings.release_timeout
        self._transport = transport

    def fetch_installed_version(self) -> str:
        """Run ``claude --version`` and pull the first x.y.z out of its output."""
        try:
            result = subprocess.run(
                [self._cli_path, "--version"],
                capture_output=True,
                text=True,
                timeout=self._timeout,
            )
        except FileNotFoundError as e:
            raise VersionError(f"CLI not found at '{self._cli_path}'") from e
        except subprocess.TimeoutExpired as e:
            raise VersionError("CLI version probe timed out") from e

        if result.returncode != 0:
            raise VersionError(f"CLI exited with {result.returncode}")
        return parse_version_output(result.stdout)

    def fetch_latest_version(self) -> str:
        """GET the release feed and return its tag without a leading ``v``."""
        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": "ccstats/0.1",
        }
        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                resp = client.get(self._release_url, headers=headers)
        except httpx.RequestError as e:
            raise VersionError(f"Release feed unreachable: {e}") from e
        if not resp.is_success:
            raise VersionError(f"Release feed returned {resp.status_code}")

        try:
            tag = resp.json()["tag_name"]
        except (ValueError, KeyError, TypeError) as e:
            raise VersionError("Release feed has no tag_name") from e
        if not isinstance(tag, str) or not tag:
            raise VersionError("Release feed has no tag_name")
        return strip_tag_prefix(tag)


def parse_version_output(output: str) -> str:
    """Extract ``1.0.30`` from ``1.0.30 (Claude Code)`` or similar."""
    text = output.strip()
    match = _VERSION_RE.search(text)
    if not text or not match:
        raise VersionError(f"Unrecognized version output: {text[:80]!r}")
    return match.group(1)


def strip_tag_prefix(tag: str) -> str:
    return tag[1:] if tag.startswith("v") else tag
