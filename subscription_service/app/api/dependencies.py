"""
FastAPI dependencies shared by the endpoints.

The store is built from the connection pool that the application
lifespan places on ``app.state``; tests replace these dependencies via
``app.dependency_overrides``.
"""

import asyncio
import logging
from typing import AsyncIterator

from fastapi import Request

from ..core.deadline import RequestDeadline
from ..services.subscription_service import SubscriptionService

logger = logging.getLogger(__name__)

# Seconds between checks for a client that has gone away.
DISCONNECT_POLL_INTERVAL = 0.25


def get_subscription_service(request: Request) -> SubscriptionService:
    return SubscriptionService(request.app.state.pool)


async def watch_disconnect(request: Request, deadline: RequestDeadline, interval: float) -> None:
    """Cancel ``deadline`` as soon as the client disconnects."""
    while not await request.is_disconnected():
        await asyncio.sleep(interval)
    logger.info("client disconnected, cancelling %s %s", request.method, request.url.path)
    deadline.cancel()


async def get_deadline(request: Request) -> AsyncIterator[RequestDeadline]:
    """Deadline for the current request, bounded by ``REQUEST_TIMEOUT``.

    The deadline is also cancelled when the client disconnects before the
    response is ready.
    """
    deadline = RequestDeadline(request.app.state.settings.request_timeout)
    watcher = asyncio.ensure_future(watch_disconnect(request, deadline, DISCONNECT_POLL_INTERVAL))
    try:
        yield deadline
    finally:
        watcher.cancel()
