"""Latest-wins request debouncing.

Bursts of requests (one per keystroke in a search box) coalesce into a
single call carrying the most recent request. A request that is superseded
before its delay elapses is dropped, never queued.

Example:
    debouncer = Debouncer(0.2, run_search)
    debouncer.submit("f")
    debouncer.submit("fo")
    debouncer.submit("foo")   # only run_search("foo") executes
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Debouncer(Generic[T]):
    """Single-slot debouncer bound to the running event loop."""

    def __init__(
        self,
        delay: float,
        handler: Callable[[T], Awaitable[None] | None],
    ) -> None:
        """Initialize the debouncer.

        Args:
            delay: Quiet period in seconds before the latest request fires.
            handler: Called with the surviving request. May be sync or async.
        """
        if delay < 0:
            raise ValueError(f"delay must be >= 0, got {delay}")
        self._delay = delay
        self._handler = handler
        self._pending: asyncio.Task[None] | None = None
        self._dropped = 0

    @property
    def pending(self) -> bool:
        """True while a request is waiting or its handler is running."""
        return self._pending is not None and not self._pending.done()

    @property
    def dropped(self) -> int:
        """Number of requests discarded because a newer one arrived."""
        return self._dropped

    def submit(self, request: T) -> None:
        """Schedule request, discarding any request still waiting.

        Must be called from within the event loop.
        """
        if self.pending:
            assert self._pending is not None
            self._pending.cancel()
            self._dropped += 1
        self._pending = asyncio.get_running_loop().create_task(self._fire(request))

    def cancel(self) -> None:
        """Drop the waiting request, if any."""
        if self.pending:
            assert self._pending is not None
            self._pending.cancel()
        self._pending = None

    async def wait(self) -> None:
        """Wait until no request is waiting or running.

        Follows supersession: if a newer request replaces the awaited one,
        waits for the newer one instead.
        """
        while self.pending:
            assert self._pending is not None
            await asyncio.wait({self._pending})

    async def _fire(self, request: T) -> None:
        await asyncio.sleep(self._delay)
        try:
            result = self._handler(request)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("Debounced handler failed for request %r", request)
