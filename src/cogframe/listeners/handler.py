from __future__ import annotations

import inspect
import logging
from typing import Any, Callable, Dict, Mapping

from discord.utils import maybe_coroutine

from ..errors import InvalidTypeError, UnknownModuleError
from ..modules.handler import ModuleHandler
from .listener import Listener

logger = logging.getLogger(__name__)


def is_emitter(value: Any) -> bool:
    """Anything exposing ``add_listener`` / ``remove_listener`` (handlers, ``commands.Bot``)."""

    return callable(getattr(value, "add_listener", None)) and callable(getattr(value, "remove_listener", None))


class ListenerHandler(ModuleHandler):
    """Loads listeners and keeps them attached to their emitters."""

    base_class = Listener

    def __init__(self, client: Any, **options: Any) -> None:
        super().__init__(client, **options)

        self.emitters: Dict[str, Any] = {}
        self._callbacks: Dict[str, Callable[..., Any]] = {}

        client_bus = getattr(client, "events", None)
        if is_emitter(client_bus):
            self.emitters["client"] = client_bus
        elif is_emitter(client):
            self.emitters["client"] = client

    def set_emitters(self, emitters: Mapping[str, Any]) -> "ListenerHandler":
        for key, value in emitters.items():
            if not is_emitter(value):
                raise InvalidTypeError(key, "EventEmitter")
            self.emitters[key] = value
        return self

    def register(self, listener: Listener, source=None) -> None:
        super().register(listener, source)
        try:
            self.add_to_emitter(listener.id)
        except Exception:
            super().deregister(listener)
            raise

    def deregister(self, listener: Listener) -> None:
        if listener.id in self._callbacks:
            self.remove_from_emitter(listener.id)
        super().deregister(listener)

    def _emitter_for(self, listener: Listener) -> Any:
        emitter = listener.emitter if is_emitter(listener.emitter) else self.emitters.get(listener.emitter)
        if not is_emitter(emitter):
            raise InvalidTypeError("emitter", "EventEmitter")
        return emitter

    def _get(self, listener_id: str) -> Listener:
        listener = self.modules.get(str(listener_id))
        if listener is None:
            raise UnknownModuleError(self.kind, str(listener_id))
        return listener

    def add_to_emitter(self, listener_id: str) -> Listener:
        listener = self._get(listener_id)
        emitter = self._emitter_for(listener)

        callback: Callable[..., Any] = listener.exec
        if listener.once:
            callback = self._once(listener, emitter)

        emitter.add_listener(callback, listener.event)
        self._callbacks[listener.id] = callback
        logger.debug("Attached listener '%s' to event '%s'", listener.id, listener.event)
        return listener

    def remove_from_emitter(self, listener_id: str) -> Listener:
        listener = self._get(listener_id)
        emitter = self._emitter_for(listener)

        callback = self._callbacks.pop(listener.id, None)
        if callback is not None:
            emitter.remove_listener(callback, listener.event)
        return listener

    def _once(self, listener: Listener, emitter: Any) -> Callable[..., Any]:
        def detach(callback: Callable[..., Any]) -> None:
            emitter.remove_listener(callback, listener.event)
            if self._callbacks.get(listener.id) is callback:
                del self._callbacks[listener.id]

        # commands.Bot only accepts coroutine listeners, so keep the exec's flavour.
        if inspect.iscoroutinefunction(listener.exec):
            fired = False

            # Emits queued before the first run still schedule this coroutine.
            async def run_once_async(*args: Any) -> Any:
                nonlocal fired
                if fired:
                    return None
                fired = True
                detach(run_once_async)
                return await maybe_coroutine(listener.exec, *args)

            return run_once_async

        def run_once(*args: Any) -> Any:
            detach(run_once)
            return listener.exec(*args)

        return run_once


__all__ = ["ListenerHandler", "is_emitter"]
