"""Tests for the broadcast debouncer."""

from __future__ import annotations

import asyncio

import pytest

from quotelink.messages.debounce import Debouncer


class TestDebouncer:
    """Bursts of triggers collapse into one call."""

    @pytest.mark.asyncio
    async def test_burst_fires_once_with_latest_args(self):
        calls = []
        debouncer = Debouncer(calls.append, delay=0.01)

        for value in (1, 2, 3):
            debouncer.trigger(value)
        await asyncio.sleep(0.05)

        assert calls == [3]
        assert debouncer.fired == 1
        assert not debouncer.pending

    @pytest.mark.asyncio
    async def test_coroutine_callback(self):
        calls = []

        async def publish(value):
            calls.append(value)

        debouncer = Debouncer(publish, delay=0.01)
        debouncer.trigger("groups")
        await asyncio.sleep(0.05)
        await debouncer.wait()

        assert calls == ["groups"]

    @pytest.mark.asyncio
    async def test_cancel(self):
        calls = []
        debouncer = Debouncer(calls.append, delay=0.01)

        debouncer.trigger(1)
        debouncer.cancel()
        await asyncio.sleep(0.05)

        assert calls == []
        assert debouncer.fired == 0

    @pytest.mark.asyncio
    async def test_flush_runs_immediately(self):
        calls = []

        async def publish():
            calls.append("sent")

        debouncer = Debouncer(publish, delay=10)
        debouncer.trigger()
        await debouncer.flush()

        assert calls == ["sent"]
        assert not debouncer.pending

    @pytest.mark.asyncio
    async def test_flush_without_pending(self):
        calls = []
        debouncer = Debouncer(calls.append, delay=0.01)

        await debouncer.flush()

        assert calls == []

    @pytest.mark.asyncio
    async def test_separate_bursts(self):
        calls = []
        debouncer = Debouncer(calls.append, delay=0.01)

        debouncer.trigger("a")
        await asyncio.sleep(0.05)
        debouncer.trigger("b")
        await asyncio.sleep(0.05)

        assert calls == ["a", "b"]

    def test_trigger_needs_running_loop(self):
        debouncer = Debouncer(lambda: None)
        with pytest.raises(RuntimeError):
            debouncer.trigger()
