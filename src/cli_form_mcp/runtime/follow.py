"""Async helpers for watching a ChildProcess from an event loop.

The engine itself is thread based and never blocks on poll(); these
helpers only add a cooperative polling schedule on top of it.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator

import anyio

from .child_process import ChildProcess

__all__ = ["follow", "wait_finished"]

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 0.1


async def follow(child: ChildProcess, interval: float = DEFAULT_INTERVAL) -> AsyncIterator[str]:
    """Yield newly appended output until the child stops running.

    Args:
        child: Launched process
        interval: Seconds to sleep between polls

    Yields:
        Text appended to the output buffer since the previous poll
    """
    seen = len(child.output)
    while True:
        output = child.read()
        if len(output) > seen:
            yield output[seen:]
            seen = len(output)
        if not child.is_running:
            break
        await anyio.sleep(interval)
    logger.debug(f"Stopped following pid={child.pid}")


async def wait_finished(child: ChildProcess, interval: float = DEFAULT_INTERVAL) -> str:
    """Poll until the child stops running and return the whole output."""
    async for _ in follow(child, interval):
        pass
    return child.output
