"""Channel layer — BaseChannel interface.

A channel owns one notification transport.  ``send()`` runs the full
connect → authenticate → send → disconnect sequence for a single payload and
either completes it or raises a
:class:`~groundstation.exceptions.TransportError` subclass.

Design principles:
  - One client per ``send()`` call, released in ``finally`` on every path.
  - Blocking client calls run in a worker thread; each step is raced
    against the caller's ``cancel`` event.
  - Failures are logged with host/port context once, here, and re-raised.
  - No retry.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Callable, Generic, TypeVar

from groundstation.cancellation import run_cancellable
from groundstation.logging import get_logger

log = get_logger(__name__)

P = TypeVar("P")
R = TypeVar("R")


class BaseChannel(ABC, Generic[P]):
    """Abstract base for all notification channels."""

    CHANNEL_ID: str = ""

    @abstractmethod
    async def send(self, payload: P, cancel: asyncio.Event | None = None) -> None:
        """Deliver *payload*.  Raises ``TransportError`` on any failure."""

    async def _step(
        self,
        operation: str,
        func: Callable[..., R],
        *args: Any,
        cancel: asyncio.Event | None = None,
        on_abandon: Callable[[R], None] | None = None,
    ) -> R:
        """Run one blocking client call in a thread, honouring *cancel*.

        A cancelled step still runs to completion in its thread before
        ``CancellationError`` surfaces, so the caller's cleanup never races
        the client.  *on_abandon* receives the value a cancelled step
        produced (e.g. a connection that must be closed).
        """
        log.debug("channel_step", channel=self.CHANNEL_ID, step=operation)
        return await run_cancellable(
            asyncio.to_thread(func, *args),
            cancel,
            f"{self.CHANNEL_ID}.{operation}",
            on_abandon=on_abandon or _ignore,
        )


def _ignore(_result: Any) -> None:
    pass
