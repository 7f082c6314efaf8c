"""Unit tests — cooperative cancellation helpers."""

from __future__ import annotations

import asyncio
import time

import pytest

from groundstation.cancellation import cancellable_sleep, raise_if_cancelled, run_cancellable
from groundstation.exceptions import CancellationError


async def _value(result: int) -> int:
    return result


@pytest.mark.unit
class TestRaiseIfCancelled:
    def test_no_event(self) -> None:
        raise_if_cancelled(None, "op")

    def test_unset_event(self) -> None:
        raise_if_cancelled(asyncio.Event(), "op")

    def test_set_event_raises(self) -> None:
        cancel = asyncio.Event()
        cancel.set()
        with pytest.raises(CancellationError) as exc_info:
            raise_if_cancelled(cancel, "smtp.connect")
        assert exc_info.value.operation == "smtp.connect"


@pytest.mark.unit
class TestRunCancellable:
    async def test_returns_result_without_event(self) -> None:
        assert await run_cancellable(_value(7), None, "op") == 7

    async def test_returns_result_with_unset_event(self) -> None:
        assert await run_cancellable(_value(7), asyncio.Event(), "op") == 7

    async def test_already_cancelled_never_starts_step(self) -> None:
        cancel = asyncio.Event()
        cancel.set()
        started = False

        async def step() -> None:
            nonlocal started
            started = True

        with pytest.raises(CancellationError):
            await run_cancellable(step(), cancel, "op")
        assert started is False

    async def test_cancel_during_step(self) -> None:
        cancel = asyncio.Event()
        asyncio.get_running_loop().call_later(0.05, cancel.set)

        with pytest.raises(CancellationError):
            await run_cancellable(asyncio.sleep(10), cancel, "op")

    async def test_step_exception_propagates(self) -> None:
        async def boom() -> None:
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            await run_cancellable(boom(), asyncio.Event(), "op")

    async def test_thread_step(self) -> None:
        result = await run_cancellable(asyncio.to_thread(lambda: 3), asyncio.Event(), "op")
        assert result == 3

    async def test_cancel_settles_step_and_hands_back_result(self) -> None:
        cancel = asyncio.Event()
        abandoned: list[str] = []

        async def step() -> str:
            await asyncio.sleep(0.1)
            return "session"

        asyncio.get_running_loop().call_later(0.02, cancel.set)
        with pytest.raises(CancellationError):
            await run_cancellable(step(), cancel, "op", on_abandon=abandoned.append)
        assert abandoned == ["session"]

    async def test_failed_abandoned_step_still_cancels(self) -> None:
        cancel = asyncio.Event()
        abandoned: list[object] = []

        async def step() -> None:
            await asyncio.sleep(0.1)
            raise OSError("refused")

        asyncio.get_running_loop().call_later(0.02, cancel.set)
        with pytest.raises(CancellationError):
            await run_cancellable(step(), cancel, "op", on_abandon=abandoned.append)
        assert abandoned == []


@pytest.mark.unit
class TestCancellableSleep:
    async def test_sleeps_full_interval(self) -> None:
        start = time.monotonic()
        await cancellable_sleep(0.05, asyncio.Event(), "op")
        assert time.monotonic() - start >= 0.04

    async def test_wakes_early_on_cancel(self) -> None:
        cancel = asyncio.Event()
        asyncio.get_running_loop().call_later(0.05, cancel.set)
        start = time.monotonic()
        with pytest.raises(CancellationError):
            await cancellable_sleep(10, cancel, "poll")
        assert time.monotonic() - start < 5

    async def test_already_cancelled(self) -> None:
        cancel = asyncio.Event()
        cancel.set()
        with pytest.raises(CancellationError):
            await cancellable_sleep(10, cancel, "poll")
