# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Race awaitables against a shutdown event.

Every suspension point of the watch pipeline (store query, backoff sleep,
queue handoff) goes through these helpers so close() interrupts it instead
of waiting for the next loop iteration.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

T = TypeVar("T")


class ShutdownRequested(Exception):
    """The shutdown event fired before the raced awaitable completed."""


async def until_shutdown(awaitable: Awaitable[T], shutdown_event: asyncio.Event) -> T:
    """Await ``awaitable`` unless ``shutdown_event`` is set first.

    The loser of the race is cancelled. When both finish in the same loop
    iteration, shutdown wins and the result is discarded.

    Raises:
        ShutdownRequested: If the event was set before the awaitable finished.
        Exception: Whatever the awaitable raised.
    """
    work = asyncio.ensure_future(awaitable)
    if shutdown_event.is_set():
        work.cancel()
        await asyncio.gather(work, return_exceptions=True)
        raise ShutdownRequested

    waiter = asyncio.ensure_future(shutdown_event.wait())
    try:
        await asyncio.wait({work, waiter}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for pending in (work, waiter):
            if not pending.done():
                pending.cancel()
        await asyncio.gather(work, waiter, return_exceptions=True)

    if shutdown_event.is_set():
        raise ShutdownRequested
    return work.result()


async def sleep_until_shutdown(delay: float, shutdown_event: asyncio.Event) -> bool:
    """Sleep for ``delay`` seconds. Returns True if shutdown interrupted it."""
    try:
        await asyncio.wait_for(shutdown_event.wait(), timeout=delay)
        return True
    except TimeoutError:
        return False


__all__: list[str] = [
    "ShutdownRequested",
    "sleep_until_shutdown",
    "until_shutdown",
]
