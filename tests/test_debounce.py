"""Tests for the single-slot asyncio debouncer."""

from __future__ import annotations

import asyncio

from worldpincode.services.debounce import Debouncer


class TestDebouncer:
    async def test_burst_runs_only_last_callback(self) -> None:
        debouncer = Debouncer(0.02)
        calls: list[int] = []

        def make(n: int):
            async def callback() -> None:
                calls.append(n)

            return callback

        for n in range(5):
            debouncer.schedule(make(n))
            await asyncio.sleep(0.001)

        await asyncio.sleep(0.08)
        assert calls == [4], "only the most recent callback should run"
        assert debouncer.pending is False

    async def test_cancel_prevents_callback(self) -> None:
        debouncer = Debouncer(0.02)
        calls: list[str] = []

        async def callback() -> None:
            calls.append("ran")

        debouncer.schedule(callback)
        assert debouncer.pending is True
        assert debouncer.cancel() is True
        await asyncio.sleep(0.05)
        assert calls == []
        assert debouncer.cancel() is False, "nothing left to cancel"

    async def test_callback_error_is_contained(self) -> None:
        debouncer = Debouncer(0.0)

        async def callback() -> None:
            raise RuntimeError("boom")

        debouncer.schedule(callback)
        await asyncio.sleep(0.02)
        assert debouncer.pending is False

    async def test_can_schedule_after_completion(self) -> None:
        debouncer = Debouncer(0.0)
        calls: list[int] = []

        async def callback() -> None:
            calls.append(1)

        debouncer.schedule(callback)
        await asyncio.sleep(0.02)
        debouncer.schedule(callback)
        await asyncio.sleep(0.02)
        assert calls == [1, 1]
