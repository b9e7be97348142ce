from __future__ import annotations

from .category import Category
from .handler import LoadPredicate, ModuleHandler
from .loader import export
from .module import Module

__all__ = ["Category", "LoadPredicate", "Module", "ModuleHandler", "export"]
