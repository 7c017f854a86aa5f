"""
Bounded oracle calls.

Every oracle invocation goes through call_with_timeout so a slow or failing
upstream surfaces as one of the UpstreamError subclasses instead of an
arbitrary provider exception.
"""

import asyncio
import logging
from typing import Awaitable, TypeVar

from memory_graph.exceptions import MemoryGraphError, UpstreamError, UpstreamTimeout

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def call_with_timeout(call: Awaitable[T], timeout: float, source: str) -> T:
    """
    Await an oracle call under a time budget.

    Args:
        call: The pending oracle coroutine
        timeout: Budget in seconds
        source: Oracle name used in errors and logs

    Returns:
        Whatever the oracle returned

    Raises:
        UpstreamTimeout: If the budget is exhausted
        UpstreamError: If the oracle raised anything that is not already a MemoryGraphError
    """
    try:
        return await asyncio.wait_for(call, timeout=timeout)
    except asyncio.TimeoutError as e:
        logger.warning(f"{source} timed out after {timeout}s")
        raise UpstreamTimeout(f"{source} timed out after {timeout}s", source=source) from e
    except MemoryGraphError:
        raise
    except Exception as e:
        raise UpstreamError(f"{source} failed: {type(e).__name__}: {e}", source=source) from e


def truncate(text: str, limit: int = 100) -> str:
    """Shorten text for log lines."""
    return text if len(text) <= limit else text[:limit] + "..."
