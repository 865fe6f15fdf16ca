"""Async utilities for driving blocking remote-store calls from the event loop."""

import asyncio
import logging
from typing import Any, Callable, TypeVar

T = TypeVar("T")
logger = logging.getLogger(__name__)


async def run_sync(
    func: Callable[..., T], *args: Any, **kwargs: Any
) -> T:
    """Run a synchronous function in a thread pool without blocking the event loop.

    Args:
        func: Synchronous function to call
        *args: Positional arguments for func
        **kwargs: Keyword arguments for func

    Returns:
        Result of func(*args, **kwargs)

    Example:
        # In MCP tool handler:
        user = await run_sync(app.remote.authenticate)
    """
    return await asyncio.to_thread(func, *args, **kwargs)


async def run_sync_timeout(
    timeout: float | None,
    func: Callable[..., T],
    *args: Any,
    **kwargs: Any,
) -> T:
    """Run a synchronous function in a thread pool, bounded by *timeout*.

    The worker thread cannot be interrupted; on timeout the caller stops
    waiting and the thread finishes in the background.

    Args:
        timeout: Seconds to wait, or ``None`` to wait indefinitely.
        func: Synchronous function to call
        *args: Positional arguments for func
        **kwargs: Keyword arguments for func

    Returns:
        Result of func(*args, **kwargs)

    Raises:
        TimeoutError: If the call did not finish within *timeout*.
    """
    try:
        return await asyncio.wait_for(
            asyncio.to_thread(func, *args, **kwargs), timeout
        )
    except asyncio.TimeoutError as exc:
        name = getattr(func, "__name__", repr(func))
        logger.debug("%s timed out after %ss", name, timeout)
        raise TimeoutError(
            f"{name} timed out after {timeout}s"
        ) from exc
