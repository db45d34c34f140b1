"""Process-wide coalescing of concurrent refreshes.

Two refreshes with the same refresh token race on the provider side: the
first rotates the token and the second is rejected. :func:`run_once` keeps
at most one in-flight task per key (the resolved credentials path) and hands
every concurrent caller the same result or the same exception.

Callers await the shared task through :func:`asyncio.shield`, so cancelling
one waiter never cancels the refresh the others are waiting on. The registry
entry is dropped as soon as the task finishes.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from typing import Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

_in_flight: dict[str, asyncio.Task] = {}


def _forget(key: str, task: asyncio.Task) -> None:
    if _in_flight.get(key) is task:
        del _in_flight[key]
    # Mark the exception retrieved; waiters re-raise it themselves.
    if not task.cancelled():
        task.exception()


async def run_once(key: str, factory: Callable[[], Awaitable[T]]) -> T:
    """Run ``factory()`` unless a call for *key* is already in flight.

    Args:
        key: Coalescing key. Calls with equal keys share one execution.
        factory: Zero-argument callable returning the awaitable to run.
            Only invoked when no task for *key* is running.

    Returns:
        The result of the shared execution.

    Raises:
        Exception: Whatever the shared execution raised, for every waiter.
    """
    task = _in_flight.get(key)
    if task is not None and task.get_loop() is not asyncio.get_running_loop():
        task = None
    if task is None:
        task = asyncio.ensure_future(factory())
        _in_flight[key] = task
        task.add_done_callback(functools.partial(_forget, key))
    else:
        logger.debug("Joining in-flight operation for %s", key)
    return await asyncio.shield(task)


def is_in_flight(key: str) -> bool:
    """Return ``True`` while an operation for *key* is running."""
    task = _in_flight.get(key)
    return task is not None and not task.done()
