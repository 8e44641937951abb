from __future__ import annotations

"""Utility helpers for scheduling fire-and-forget asyncio coroutines."""

import asyncio
import logging
from typing import Any, Callable, Coroutine, Set, Union

CoroutineFactory = Callable[[], Coroutine[Any, Any, Any]]

logger = logging.getLogger(__name__)


class BackgroundTasks:
    """Keeps strong references to detached tasks until they finish."""

    def __init__(self) -> None:
        self._tasks: Set[asyncio.Task[Any]] = set()

    def spawn(self, coro_or_factory: Union[Coroutine[Any, Any, Any], CoroutineFactory], *, name: str | None = None) -> asyncio.Task[Any]:
        """Schedule a coroutine on the running loop and track it."""
        coro = _resolve_coroutine(coro_or_factory)
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Background task %s failed: %s", task.get_name(), exc)

    async def drain(self) -> None:
        """Wait for every tracked task to finish."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def cancel_all(self) -> None:
        for task in list(self._tasks):
            task.cancel()

    def __len__(self) -> int:
        return len(self._tasks)


def _resolve_coroutine(
    coro_or_factory: Union[Coroutine[Any, Any, Any], CoroutineFactory],
) -> Coroutine[Any, Any, Any]:
    """Turn the input into a coroutine object for scheduling."""
    if asyncio.iscoroutine(coro_or_factory):
        return coro_or_factory

    if callable(coro_or_factory):
        result = coro_or_factory()
        if not asyncio.iscoroutine(result):
            raise TypeError("Callable passed to BackgroundTasks.spawn must return a coroutine")
        return result

    raise TypeError("BackgroundTasks.spawn expects a coroutine or a callable returning one")


__all__ = ["BackgroundTasks"]
