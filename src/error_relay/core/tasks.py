"""Registry for fire-and-forget background tasks.

asyncio only keeps weak references to running tasks, so a task created and
immediately dropped may be garbage collected mid-flight. spawn_background()
holds a strong reference until the task finishes; drain_background_tasks()
lets shutdown code and tests wait for in-flight work.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

_background_tasks: set[asyncio.Task[Any]] = set()


def spawn_background(coro: Coroutine[Any, Any, T], name: str | None = None) -> asyncio.Task[T]:
    """Schedule coroutine on the running loop without awaiting it.

    Args:
        coro: Coroutine to run.
        name: Optional task name (shows up in asyncio debug output).

    Returns:
        The created task. Callers may await it but are not required to.

    Raises:
        RuntimeError: If called without a running event loop.

    """
    task = asyncio.get_running_loop().create_task(coro, name=name)
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)
    return task


def pending_background_tasks() -> int:
    """Return number of background tasks still in flight."""
    return sum(1 for task in _background_tasks if not task.done())


async def drain_background_tasks(timeout: float | None = None) -> bool:
    """Wait for in-flight background tasks to finish.

    Tasks belonging to a different event loop are ignored. Outcomes are
    discarded; fire-and-forget work reports its own failures.

    Args:
        timeout: Maximum seconds to wait, or None to wait indefinitely.

    Returns:
        True if every task finished, False if the timeout expired first.

    """
    loop = asyncio.get_running_loop()
    current = asyncio.current_task()
    tasks = [
        task
        for task in _background_tasks
        if task is not current and not task.done() and task.get_loop() is loop
    ]
    if not tasks:
        return True

    done, pending = await asyncio.wait(tasks, timeout=timeout)
    if pending:
        logger.warning("%d background tasks still running after %.1fs", len(pending), timeout)
        return False
    return True
