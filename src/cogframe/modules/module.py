from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

from ..constants import DEFAULT_CATEGORY

if TYPE_CHECKING:
    from .category import Category
    from .handler import ModuleHandler


class Module:
    """
    Base class for every unit a :class:`~cogframe.modules.handler.ModuleHandler`
    can load.

    ``client``, ``handler``, ``category`` and ``source`` stay ``None`` until the
    owning handler calls :meth:`bind` during registration.
    """

    def __init__(self, module_id: str, *, category: str = DEFAULT_CATEGORY) -> None:
        self.id = module_id
        self.category_id = category
        self.category: Category | None = None
        self.source: Path | None = None
        self.client: Any = None
        self.handler: ModuleHandler | None = None

    def bind(
        self,
        *,
        client: Any,
        handler: ModuleHandler,
        category: Category,
        source: Path | None,
    ) -> None:
        """Attach the registration back-references."""

        self.client = client
        self.handler = handler
        self.category = category
        self.category_id = category.id
        self.source = source

    async def reload(self) -> Module | None:
        return await self.handler.reload(self.id)

    def remove(self) -> Module:
        return self.handler.remove(self.id)

    def __str__(self) -> str:
        return self.id

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self.id!r} category={self.category_id!r}>"
