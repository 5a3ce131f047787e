"""Tests for the status page client."""

from __future__ import annotations

import httpx
import pytest

from ccstats.status.service import StatusClient, StatusError, StatusIndicator


def make_client(handler) -> StatusClient:
    return StatusClient(url="https://status.test/api/v2/status.json", transport=httpx.MockTransport(handler))


class TestStatusIndicator:
    @pytest.mark.parametrize(
        ("raw", "text"),
        [
            ("none", "Operational"),
            ("minor", "Minor Issue"),
            ("major", "Major Outage"),
            ("critical", "Critical"),
            ("maintenance", "Unknown"),
        ],
    )
    def test_display_text(self, raw: str, text: str) -> None:
        assert StatusIndicator.from_raw(raw).display_text == text


class TestStatusClient:
    def test_fetch(self) -> None:
        client = make_client(
            lambda r: httpx.Response(
                200,
                json={"page": {"id": "x"}, "status": {"indicator": "minor", "description": "Degraded"}},
            )
        )
        status = client.fetch_status()
        assert status.level is StatusIndicator.MINOR
        assert status.description == "Degraded"
        assert status.display_text == "Minor Issue"

    def test_http_error(self) -> None:
        with pytest.raises(StatusError):
            make_client(lambda r: httpx.Response(503, text="unavailable")).fetch_status()

    def test_malformed_body(self) -> None:
        with pytest.raises(StatusError):
            make_client(lambda r: httpx.Response(200, json={"nope": True})).fetch_status()

    def test_unreachable(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("slow", request=request)

        with pytest.raises(StatusError, match="unreachable"):
            make_client(handler).fetch_status()

    def test_undecodable_body(self) -> None:
        client = make_client(
            lambda r: httpx.Response(200, headers={"Content-Encoding": "gzip"}, content=b"not gzip")
        )
        with pytest.raises(StatusError, match="unreachable"):
            client.fetch_status()
