"""Shared test fixtures."""

from __future__ import annotations

import json
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

import httpx
import pytest

from ccstats.credentials.store import CredentialStore
from ccstats.history.store import HistoryStore


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 2, 19, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


def _usage_payload(session: float = 42.0, weekly: float = 17.5, **extra: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "five_hour": {"utilization": session, "resets_at": "2026-02-19T15:00:00.123456+00:00"},
        "seven_day": {"utilization": weekly, "resets_at": "2026-02-24T09:00:00+00:00"},
    }
    payload.update(extra)
    return payload


class RecordingTransport(httpx.MockTransport):
    """MockTransport that also keeps every request it served."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.requests: list[httpx.Request] = []

        def _handler(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(_handler)


def _claude_api(
    usage: Any = None,
    usage_status: int = 200,
    usage_body: str | None = None,
    organizations: Any = None,
) -> RecordingTransport:
    """Fake claude.ai serving /organizations and /organizations/{id}/usage."""
    orgs = [{"uuid": "org-123", "name": "Personal"}] if organizations is None else organizations

    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.endswith("/usage"):
            if usage_body is not None:
                return httpx.Response(usage_status, text=usage_body)
            return httpx.Response(usage_status, json=usage if usage is not None else _usage_payload())
        if path.endswith("/organizations"):
            return httpx.Response(200, json=orgs)
        return httpx.Response(404, json={"detail": "not found"})

    return RecordingTransport(handler)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def credentials(tmp_path) -> CredentialStore:
    """Credential slots backed by a temp file, with a session key set."""
    store = CredentialStore(path=tmp_path / "credentials.json")
    store.session_key = "sk-ant-test"
    return store


@pytest.fixture
def empty_credentials(tmp_path) -> CredentialStore:
    return CredentialStore(path=tmp_path / "empty-credentials.json")


@pytest.fixture
def history(tmp_path, clock) -> HistoryStore:
    return HistoryStore(path=tmp_path / "usage_history.json", clock=clock)


@pytest.fixture
def write_json(tmp_path) -> Callable[[str, Any], Any]:
    def _write(name: str, data: Any):
        path = tmp_path / name
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def usage_payload() -> Callable[..., dict[str, Any]]:
    return _usage_payload


@pytest.fixture
def claude_api() -> Callable[..., RecordingTransport]:
    return _claude_api
