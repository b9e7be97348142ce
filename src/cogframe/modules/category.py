from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Iterable, Tuple

if TYPE_CHECKING:
    from .module import Module


class Category(dict):
    """Insertion-ordered mapping of module id to module sharing one category id."""

    def __init__(self, category_id: str, entries: Iterable[Tuple[str, "Module"]] = ()) -> None:
        super().__init__(entries)
        self.id = category_id

    async def reload_all(self) -> "Category":
        """Reload every member that was loaded from a file."""

        await asyncio.gather(*(m.reload() for m in list(self.values()) if m.source))
        return self

    def remove_all(self) -> "Category":
        """Remove every member that was loaded from a file."""

        for m in list(self.values()):
            if m.source:
                m.remove()
        return self

    def __str__(self) -> str:
        return self.id

    def __repr__(self) -> str:
        return f"<Category id={self.id!r} modules={list(self.keys())!r}>"
