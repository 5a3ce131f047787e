"""Tests for the local stats-cache reader."""

from __future__ import annotations

from datetime import date

import pytest

from ccstats.local_stats.reader import LocalStatsError, LocalStatsReader, model_family, summarize

TODAY = date(2026, 2, 19)


@pytest.fixture
def stats_cache() -> dict:
    return {
        "version": 1,
        "lastComputedDate": "2026-02-19",
        "dailyActivity": [
            {"date": "2026-02-19", "messageCount": 40, "sessionCount": 2, "toolCallCount": 12},
            {"date": "2026-02-15", "messageCount": 100, "sessionCount": 3, "toolCallCount": 30},
            {"date": "2026-01-02", "messageCount": 999, "sessionCount": 9, "toolCallCount": 90},
        ],
        "dailyModelTokens": [
            {"date": "2026-02-19", "tokensByModel": {"claude-sonnet-4-6": 1000, "claude-opus-4-1": 500}},
            {"date": "2026-02-13", "tokensByModel": {"claude-sonnet-4-6": 2000}},
            {"date": "2026-01-02", "tokensByModel": {"claude-sonnet-4-6": 99999}},
        ],
        "modelUsage": {
            "claude-sonnet-4-6": {"inputTokens": 10, "outputTokens": 5000},
            "claude-opus-4-1": {"inputTokens": 10, "outputTokens": 200},
        },
        "totalSessions": 14,
        "totalMessages": 1139,
        "firstSessionDate": "2025-12-01",
    }


class TestSummarize:
    def test_today_and_week(self, stats_cache) -> None:
        local = summarize(stats_cache, TODAY)
        assert local.today_messages == 40
        assert local.today_tokens == 1500
        assert local.week_messages == 140
        assert local.week_tokens == 3500
        assert local.total_sessions == 14
        assert local.total_messages == 1139

    def test_primary_model(self, stats_cache) -> None:
        assert summarize(stats_cache, TODAY).primary_model == "Sonnet"

    def test_empty_cache(self) -> None:
        local = summarize({}, TODAY)
        assert local.today_messages == 0
        assert local.primary_model == "Unknown"

    def test_model_family(self) -> None:
        assert model_family("claude-opus-4-1") == "Opus"
        assert model_family("claude-3-5-haiku") == "Haiku"
        assert model_family("gpt-4o") == "gpt-4o"


class TestReader:
    def test_read(self, write_json, stats_cache) -> None:
        path = write_json("stats-cache.json", stats_cache)
        local = LocalStatsReader(path).read(today=TODAY)
        assert local.week_messages == 140
        assert local.to_dict()["primary_model"] == "Sonnet"

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(LocalStatsError, match="not found"):
            LocalStatsReader(tmp_path / "missing.json").read()

    def test_malformed_json(self, tmp_path) -> None:
        path = tmp_path / "stats-cache.json"
        path.write_text("{", encoding="utf-8")
        with pytest.raises(LocalStatsError, match="parse"):
            LocalStatsReader(path).read()

    def test_wrong_shape(self, write_json) -> None:
        path = write_json("stats-cache.json", {"dailyActivity": [{"day": "2026-02-19"}]})
        with pytest.raises(LocalStatsError, match="parse"):
            LocalStatsReader(path).read(today=TODAY)
