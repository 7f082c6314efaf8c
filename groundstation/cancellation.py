"""Cooperative cancellation helpers.

The host passes one ``asyncio.Event`` (``cancel``) down the whole call chain
of an ``execute()``.  Setting it aborts the current step with
:class:`~groundstation.exceptions.CancellationError`.  Native task
cancellation (``asyncio.CancelledError``) is never swallowed and keeps
propagating as usual.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, TypeVar

from groundstation.exceptions import CancellationError
from groundstation.logging import get_logger

log = get_logger(__name__)

T = TypeVar("T")


def raise_if_cancelled(cancel: asyncio.Event | None, operation: str) -> None:
    if cancel is not None and cancel.is_set():
        raise CancellationError(operation)


async def run_cancellable(
    awaitable: Awaitable[T],
    cancel: asyncio.Event | None,
    operation: str,
    on_abandon: Callable[[T], None] | None = None,
) -> T:
    """Await *awaitable* unless *cancel* is set first.

    The cancel event is checked before the step starts and raced against it
    while it runs.  When the event wins:

      - without *on_abandon* the step task is cancelled;
      - with *on_abandon* the step is left to finish (a worker thread cannot
        be interrupted), and whatever it returns is handed to *on_abandon*
        before ``CancellationError`` is raised.
    """
    if cancel is not None and cancel.is_set():
        if asyncio.iscoroutine(awaitable):
            awaitable.close()
        raise CancellationError(operation)
    if cancel is None:
        return await awaitable

    step = asyncio.ensure_future(awaitable)
    waiter = asyncio.ensure_future(cancel.wait())
    try:
        await asyncio.wait({step, waiter}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        _abandon(step, on_abandon)
        raise
    finally:
        waiter.cancel()

    if step.done():
        return step.result()
    if on_abandon is None:
        step.cancel()
        raise CancellationError(operation)

    try:
        result = await asyncio.shield(step)
    except asyncio.CancelledError:
        _abandon(step, on_abandon)
        raise
    except Exception as exc:
        log.debug("abandoned_step_failed", operation=operation, error=str(exc))
    else:
        on_abandon(result)
    raise CancellationError(operation)


def _abandon(step: asyncio.Future, on_abandon: Callable[[Any], None] | None) -> None:
    """Release *step*'s result whenever it completes, without waiting for it."""
    if on_abandon is None:
        step.cancel()
        return

    def _release(done: asyncio.Future) -> None:
        if not done.cancelled() and done.exception() is None:
            on_abandon(done.result())

    step.add_done_callback(_release)


async def cancellable_sleep(seconds: float, cancel: asyncio.Event | None, operation: str) -> None:
    """Sleep for *seconds*, waking early with ``CancellationError`` on cancel."""
    raise_if_cancelled(cancel, operation)
    if cancel is None:
        await asyncio.sleep(seconds)
        return
    try:
        await asyncio.wait_for(cancel.wait(), timeout=seconds)
    except asyncio.TimeoutError:
        return
    raise CancellationError(operation)
