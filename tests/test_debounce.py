"""Tests for the debounce timer."""

import asyncio
import logging

import pytest

from slotconfig.drafts.debounce import Debouncer

DELAY = 0.05


class Counter:
    def __init__(self, pause: float = 0.0, fail: bool = False):
        self.calls = 0
        self.pause = pause
        self.fail = fail

    async def __call__(self):
        self.calls += 1
        if self.pause:
            await asyncio.sleep(self.pause)
        if self.fail:
            raise RuntimeError("callback failed")


class TestDebouncer:

    @pytest.mark.asyncio
    async def test_burst_runs_once(self):
        counter = Counter()
        debouncer = Debouncer(DELAY, counter)
        for _ in range(5):
            debouncer.schedule()
            await asyncio.sleep(DELAY / 5)
        await asyncio.sleep(DELAY * 4)
        assert counter.calls == 1

    @pytest.mark.asyncio
    async def test_pending_until_fired(self):
        debouncer = Debouncer(DELAY, Counter())
        assert not debouncer.pending
        debouncer.schedule()
        assert debouncer.pending
        await asyncio.sleep(DELAY * 3)
        assert not debouncer.pending

    @pytest.mark.asyncio
    async def test_cancel(self):
        counter = Counter()
        debouncer = Debouncer(DELAY, counter)
        debouncer.schedule()
        assert debouncer.cancel() is True
        assert debouncer.cancel() is False
        await asyncio.sleep(DELAY * 3)
        assert counter.calls == 0

    @pytest.mark.asyncio
    async def test_cancel_does_not_stop_running_callback(self):
        counter = Counter(pause=DELAY * 2)
        debouncer = Debouncer(0, counter)
        debouncer.schedule()
        await asyncio.sleep(DELAY / 2)
        assert debouncer.in_flight == 1
        debouncer.cancel()
        await debouncer.wait_idle()
        assert counter.calls == 1
        assert debouncer.in_flight == 0

    @pytest.mark.asyncio
    async def test_failing_callback_is_logged(self, caplog):
        debouncer = Debouncer(0, Counter(fail=True))
        with caplog.at_level(logging.ERROR, logger="slotconfig.drafts.debounce"):
            debouncer.schedule()
            await asyncio.sleep(DELAY)
            await debouncer.wait_idle()
        assert "callback failed" in caplog.text
