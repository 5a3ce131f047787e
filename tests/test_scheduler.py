"""Tests for the repeating task."""

from __future__ import annotations

import asyncio

from ccstats.scheduler import RepeatingTask


class TestRepeatingTask:
    def test_runs_repeatedly_until_stopped(self) -> None:
        calls: list[int] = []

        async def tick() -> None:
            calls.append(1)

        async def scenario() -> None:
            task = RepeatingTask("test", tick, interval=0.01)
            task.start()
            await asyncio.sleep(0.1)
            await task.stop()
            assert not task.running

        asyncio.run(scenario())
        assert len(calls) >= 2

    def test_failing_callback_keeps_looping(self) -> None:
        calls: list[int] = []

        async def tick() -> None:
            calls.append(1)
            raise RuntimeError("boom")

        async def scenario() -> None:
            task = RepeatingTask("failing", tick, interval=0.01)
            task.start()
            await asyncio.sleep(0.1)
            await task.stop()

        asyncio.run(scenario())
        assert len(calls) >= 2

    def test_start_is_idempotent(self) -> None:
        calls: list[int] = []

        async def tick() -> None:
            calls.append(1)

        async def scenario() -> None:
            task = RepeatingTask("once", tick, interval=60)
            task.start()
            task.start()
            await asyncio.sleep(0.05)
            await task.stop()

        asyncio.run(scenario())
        assert calls == [1]

    def test_delayed_start(self) -> None:
        calls: list[int] = []

        async def tick() -> None:
            calls.append(1)

        async def scenario() -> None:
            task = RepeatingTask("delayed", tick, interval=60, run_immediately=False)
            task.start()
            await asyncio.sleep(0.05)
            await task.stop()

        asyncio.run(scenario())
        assert calls == []
