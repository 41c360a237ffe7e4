"""Run blocking orchestrator calls from async MCP handlers."""

import asyncio
import functools
import logging
import time
from typing import Any, Callable, TypeVar

T = TypeVar("T")
logger = logging.getLogger(__name__)

# Calls slower than this are logged at WARNING
SLOW_CALL_SECONDS = 10.0


async def run_sync(func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Await ``func(*args, **kwargs)`` on the loop's default thread pool.

    Orchestrator operations block on HTTP calls and file I/O and must
    never run on the event loop thread.

    Example:
        result = await run_sync(orchestrator.pull, request, Variant.LIVE)
    """
    loop = asyncio.get_running_loop()
    started = time.monotonic()
    try:
        return await loop.run_in_executor(
            None, functools.partial(func, *args, **kwargs)
        )
    finally:
        elapsed = time.monotonic() - started
        if elapsed > SLOW_CALL_SECONDS:
            logger.warning(
                "Blocking call %s took %.1fs",
                getattr(func, "__qualname__", repr(func)),
                elapsed,
            )
