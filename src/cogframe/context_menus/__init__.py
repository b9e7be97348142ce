from __future__ import annotations

from .command import ContextMenuCommand
from .handler import ContextMenuCommandHandler

__all__ = ["ContextMenuCommand", "ContextMenuCommandHandler"]
