from __future__ import annotations

from typing import Any

from ..constants import DEFAULT_CATEGORY
from ..modules.module import Module


class Listener(Module):
    """
    Callback attached to an event emitter while the module is registered.

    ``emitter`` is either a key of :attr:`ListenerHandler.emitters` (``"client"``
    by default) or an emitter object. ``once`` listeners detach after their
    first call.
    """

    def __init__(
        self,
        module_id: str,
        *,
        emitter: Any,
        event: str,
        category: str = DEFAULT_CATEGORY,
        once: bool = False,
    ) -> None:
        super().__init__(module_id, category=category)
        self.emitter = emitter
        self.event = str(event)
        self.once = bool(once)

    def exec(self, *args: Any) -> Any:
        raise NotImplementedError(f"{type(self).__name__}.exec has not been implemented")
