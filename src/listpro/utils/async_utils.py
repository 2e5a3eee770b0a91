"""Async utilities for running coroutines in sync contexts and bounding retries."""

import asyncio
from collections.abc import Awaitable, Callable, Coroutine
from typing import Any, TypeVar

from listpro.logging import get_logger

T = TypeVar("T")

logger = get_logger(__name__)


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """Run an async coroutine in a sync context.

    Reuses the current event loop if available, otherwise creates a new one.
    The loop is NOT closed after use because httpx clients may still be bound
    to it between sequential calls within the same Celery task.

    Args:
        coro: The coroutine to execute.

    Returns:
        The result of the coroutine.
    """
    try:
        loop = asyncio.get_event_loop()
        if loop.is_closed():
            loop = asyncio.new_event_loop()
            asyncio.set_event_loop(loop)
    except RuntimeError:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
    return loop.run_until_complete(coro)


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    *,
    attempts: int,
    backoff_seconds: float,
    retry_on: tuple[type[Exception], ...],
    operation_name: str,
) -> T:
    """Await ``operation`` up to ``attempts`` times with exponential backoff.

    Only exceptions in ``retry_on`` are retried; the last one is re-raised.
    Cancellation is never retried.
    """
    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except retry_on as e:
            if attempt >= attempts:
                raise
            delay = backoff_seconds * (2 ** (attempt - 1))
            logger.warning(
                "operation_retrying",
                operation=operation_name,
                attempt=attempt,
                max_attempts=attempts,
                delay_seconds=delay,
                error=str(e),
            )
            await asyncio.sleep(delay)
    raise RuntimeError(f"{operation_name}: attempts must be >= 1")
