"""
Per-request deadlines.

A ``RequestDeadline`` is created for every incoming request and handed
to each store call.  The store checks it before touching the database
and passes the remaining time to the driver so a slow statement is
aborted once the request budget is spent.  Cancelling the deadline
(the client went away) also abandons a statement that is already
running.
"""

from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Optional, TypeVar

from .exceptions import DeadlineExceeded

T = TypeVar("T")


class RequestDeadline:
    """A point in monotonic time after which work for a request stops."""

    def __init__(self, timeout: float, clock=time.monotonic) -> None:
        self._clock = clock
        self._expires_at = clock() + timeout
        self._cancelled = False
        self._cancel_event: Optional[asyncio.Event] = None

    def cancel(self) -> None:
        """Mark the request as abandoned; later checks fail immediately."""
        self._cancelled = True
        if self._cancel_event is not None:
            self._cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def expired(self) -> bool:
        return self._cancelled or self._clock() >= self._expires_at

    def remaining(self) -> float:
        """Seconds left before the deadline, never negative."""
        if self._cancelled:
            return 0.0
        return max(0.0, self._expires_at - self._clock())

    def check(self) -> None:
        """Raise ``DeadlineExceeded`` if the request may no longer proceed."""
        if self._cancelled:
            raise DeadlineExceeded("request cancelled")
        if self.expired:
            raise DeadlineExceeded("request deadline exceeded")

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable``, abandoning it if the request is cancelled first.

        The pending work is cancelled and ``DeadlineExceeded`` raised in its
        place.  Errors raised by the work itself propagate unchanged.
        """
        if self._cancel_event is None:
            self._cancel_event = asyncio.Event()
            if self._cancelled:
                self._cancel_event.set()
        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._cancel_event.wait())
        try:
            await asyncio.wait((task, waiter), return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
            if not task.done():
                task.cancel()
                await asyncio.gather(task, return_exceptions=True)
        if task.cancelled():
            raise DeadlineExceeded("request cancelled")
        return task.result()


def remaining_or_none(deadline: Optional[RequestDeadline]) -> Optional[float]:
    """Timeout to pass to the driver; ``None`` means no per-call limit."""
    if deadline is None:
        return None
    return deadline.remaining()
