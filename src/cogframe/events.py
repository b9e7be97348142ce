"""
In-process listener registry used for lifecycle notifications.

Handlers and the client expose the same small surface as
``discord.ext.commands.Bot``: :meth:`EventEmitter.add_listener`,
:meth:`EventEmitter.remove_listener`, plus :meth:`EventEmitter.emit` and
:meth:`EventEmitter.listener_count`. Listeners may be plain callables or
coroutine functions; coroutine results are scheduled on the running loop and
their failures are logged rather than lost.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

Listener = Callable[..., Any]


def _log_listener_task(task: asyncio.Future[Any]) -> None:
    if task.cancelled():
        return
    try:
        task.result()
    except Exception:
        logger.exception("Event listener task failed")


class EventEmitter:
    """Name-keyed listener lists with synchronous fan-out."""

    def __init__(self) -> None:
        self._listeners: Dict[str, List[Listener]] = {}

    def add_listener(self, func: Listener, name: str | None = None) -> None:
        event = str(name or func.__name__)
        self._listeners.setdefault(event, []).append(func)

    def remove_listener(self, func: Listener, name: str | None = None) -> None:
        event = str(name or func.__name__)
        listeners = self._listeners.get(event)
        if not listeners:
            return
        try:
            listeners.remove(func)
        except ValueError:
            return
        if not listeners:
            del self._listeners[event]

    def listen(self, name: str | None = None) -> Callable[[Listener], Listener]:
        """Decorator form of :meth:`add_listener`."""

        def decorator(func: Listener) -> Listener:
            self.add_listener(func, name)
            return func

        return decorator

    def listener_count(self, name: str) -> int:
        return len(self._listeners.get(str(name), ()))

    def emit(self, name: str, *args: Any) -> bool:
        """
        Call every listener registered for ``name`` with ``args``.

        Awaitables returned by listeners are scheduled on the running loop.
        Without a running loop they are dropped with a warning.

        :returns: ``True`` when at least one listener was called.
        """
        listeners = list(self._listeners.get(str(name), ()))
        for func in listeners:
            result = func(*args)
            if inspect.isawaitable(result):
                self._schedule(name, result)
        return bool(listeners)

    @staticmethod
    def _schedule(name: str, awaitable: Any) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            logger.warning("No running event loop; dropped async listener for '%s'", name)
            return

        task = asyncio.ensure_future(awaitable, loop=loop)
        task.add_done_callback(_log_listener_task)


__all__ = ["EventEmitter", "Listener"]
