"""Tests for the usage poller — fetch → record cycle and status refresh."""

from __future__ import annotations

import asyncio
import threading
import time
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import httpx
import pytest

from ccstats.status.service import ServiceStatus, StatusError
from ccstats.web_session.client import UnauthorizedError, WebSessionClient
from ccstats.web_session.models import UsageData
from ccstats.web_session.poller import UsagePoller


@pytest.fixture
def status_client() -> MagicMock:
    client = MagicMock()
    client.fetch_status.return_value = ServiceStatus(indicator="none", description="All good")
    return client


@pytest.fixture
def poller(credentials, claude_api, history, status_client, clock) -> UsagePoller:
    transport = claude_api()
    client = WebSessionClient(
        credentials, base_url="https://claude.test/api", transport=transport, clock=clock
    )
    return UsagePoller(client=client, history=history, status_client=status_client, clock=clock)


class TestRefresh:
    def test_success_records_snapshot(self, poller, history) -> None:
        asyncio.run(poller.refresh())
        assert poller.state.error is None
        assert poller.state.usage is not None
        assert poller.state.usage.session_usage == 42.0
        assert len(history.load_history()) == 1
        assert poller.state.is_loading is False

    def test_failure_sets_error_and_keeps_history(self, poller, history) -> None:
        poller.client = MagicMock()
        poller.client.fetch_usage.side_effect = UnauthorizedError()
        asyncio.run(poller.refresh())
        assert poller.state.error == UnauthorizedError.message
        assert history.load_history() == []

    def test_error_cleared_on_next_success(self, poller) -> None:
        good_client = poller.client
        poller.client = MagicMock()
        poller.client.fetch_usage.side_effect = UnauthorizedError()
        asyncio.run(poller.refresh())
        assert poller.state.error

        poller.client = good_client
        asyncio.run(poller.refresh())
        assert poller.state.error is None

    def test_refresh_also_fetches_status(self, poller, status_client) -> None:
        asyncio.run(poller.refresh())
        assert status_client.fetch_status.call_count == 1
        assert poller.state.status.display_text == "Operational"

    def test_overlapping_refreshes_fetch_once(self, credentials, history, clock, usage_payload) -> None:
        paths: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            paths.append(request.url.path)
            time.sleep(0.05)
            if request.url.path.endswith("/usage"):
                return httpx.Response(200, json=usage_payload())
            return httpx.Response(200, json=[{"uuid": "org-1"}])

        client = WebSessionClient(
            credentials, base_url="https://claude.test/api",
            transport=httpx.MockTransport(handler), clock=clock,
        )
        poller = UsagePoller(client=client, history=history, clock=clock)

        async def scenario() -> None:
            await asyncio.gather(poller.refresh(), poller.refresh())

        asyncio.run(scenario())
        assert paths == ["/api/organizations", "/api/organizations/org-1/usage"]
        assert poller.state.is_loading is False
        assert len(history) == 1

    def test_in_flight_refresh_is_noop(self, poller, status_client) -> None:
        poller.client = MagicMock()
        poller.state.is_loading = True
        asyncio.run(poller.refresh())
        poller.client.fetch_usage.assert_not_called()
        status_client.fetch_status.assert_not_called()

    def test_history_write_runs_off_the_event_loop(self, poller, history) -> None:
        threads: list[int] = []
        record = history.record_usage

        def tracking_record(usage):
            threads.append(threading.get_ident())
            return record(usage)

        with patch.object(history, "record_usage", side_effect=tracking_record):
            asyncio.run(poller.refresh())
        assert len(threads) == 1
        assert threads[0] != threading.get_ident()
        assert len(history) == 1

    def test_second_refresh_within_minute_not_recorded(self, poller, history, clock) -> None:
        asyncio.run(poller.refresh())
        clock.advance(20)
        asyncio.run(poller.refresh())
        assert len(history.load_history()) == 1


class TestRefreshIfNeeded:
    def test_first_call_fetches(self, poller) -> None:
        assert asyncio.run(poller.refresh_if_needed()) is True

    def test_fresh_usage_skips_fetch(self, poller, clock) -> None:
        asyncio.run(poller.refresh())
        clock.advance(30)
        poller.client = MagicMock()
        assert asyncio.run(poller.refresh_if_needed()) is False
        poller.client.fetch_usage.assert_not_called()

    def test_stale_usage_refetches(self, poller, clock) -> None:
        asyncio.run(poller.refresh())
        clock.advance(61)
        assert asyncio.run(poller.refresh_if_needed()) is True

    def test_fresh_usage_still_fetches_missing_status(self, poller, status_client, clock) -> None:
        poller.state.usage = UsageData(
            session_usage=1.0,
            session_resets_at=clock.now,
            weekly_usage=1.0,
            weekly_resets_at=clock.now,
            last_updated=clock.now,
        )
        asyncio.run(poller.refresh_if_needed())
        assert status_client.fetch_status.call_count == 1


class TestRefreshStatus:
    def test_failure_keeps_last_known(self, poller, status_client) -> None:
        asyncio.run(poller.refresh_status())
        status_client.fetch_status.side_effect = StatusError("down")
        asyncio.run(poller.refresh_status())
        assert poller.state.status.indicator == "none"
        assert poller.state.status_error == "down"

    def test_in_flight_is_noop(self, poller, status_client) -> None:
        poller.state.is_status_loading = True
        asyncio.run(poller.refresh_status())
        status_client.fetch_status.assert_not_called()

    def test_without_status_client(self, poller) -> None:
        poller.status_client = None
        asyncio.run(poller.refresh_status())
        assert poller.state.status is None


class TestState:
    def test_to_dict(self, poller) -> None:
        asyncio.run(poller.refresh())
        d = poller.state.to_dict()
        assert d["usage"]["session_usage"] == 42.0
        assert d["status"]["text"] == "Operational"
        assert d["error"] is None
        assert d["last_updated"] is not None

    def test_empty_to_dict(self, poller) -> None:
        d = poller.state.to_dict()
        assert d["usage"] is None
        assert d["last_updated_text"] == "Not yet updated"


class TestBackgroundLoop:
    def test_start_runs_first_refresh_and_stops(self, poller, history) -> None:
        async def scenario() -> None:
            poller.start()
            for _ in range(100):
                if history.load_history():
                    break
                await asyncio.sleep(0.01)
            await poller.stop()

        asyncio.run(scenario())
        assert len(history.load_history()) == 1
