"""
Generic module registry.

A :class:`ModuleHandler` owns the modules of one kind (commands, inhibitors,
listeners), groups them into :class:`~cogframe.modules.category.Category`
objects and supports loading from files, hot reload and removal. Lifecycle
changes are announced on the handler itself (``load`` / ``remove``).
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Type

from ..constants import DEFAULT_CATEGORY, HandlerEvents
from ..errors import (
    AlreadyLoadedError,
    InvalidClassToHandleError,
    NotReloadableError,
    UnknownModuleError,
)
from ..events import EventEmitter
from . import loader
from .category import Category
from .module import Module

logger = logging.getLogger(__name__)

LoadPredicate = Callable[[Path], bool]


def _accept_all(path: Path) -> bool:
    return True


class ModuleHandler(EventEmitter):
    """Loads, registers and removes modules of ``class_to_handle``."""

    base_class: Type[Module] = Module

    def __init__(
        self,
        client: Any,
        *,
        directory: str | Path | None = None,
        class_to_handle: Type[Module] | None = None,
        extensions: Iterable[str] = (".py",),
        automate_categories: bool = False,
        load_filter: LoadPredicate | None = None,
    ) -> None:
        super().__init__()

        class_to_handle = class_to_handle or self.base_class
        if not (isinstance(class_to_handle, type) and issubclass(class_to_handle, self.base_class)):
            raise InvalidClassToHandleError(
                getattr(class_to_handle, "__name__", repr(class_to_handle)),
                self.base_class.__name__,
            )

        self.client = client
        self.directory = Path(directory) if directory is not None else None
        self.class_to_handle = class_to_handle
        self.extensions = {ext.lower() for ext in extensions}
        self.automate_categories = bool(automate_categories)
        self.load_filter: LoadPredicate = load_filter or _accept_all
        self.modules: Dict[str, Module] = {}
        self.categories: Dict[str, Category] = {}

    @property
    def kind(self) -> str:
        return self.class_to_handle.__name__

    # ------------------------------------------------------------------ #
    # Loading
    # ------------------------------------------------------------------ #

    async def load(self, thing: Module | Type[Module] | str | Path, is_reload: bool = False) -> Module | None:
        """
        Load a module instance, a module class, or a module file.

        :param thing: Ready-made instance, class to instantiate, or path to a
            source file exporting a class with :func:`~cogframe.modules.loader.export`.
        :param is_reload: Forwarded to ``load`` listeners.
        :returns: The registered module, or ``None`` when ``thing`` does not
            resolve to a module this handler accepts.
        :raises AlreadyLoadedError: The resolved id is already registered.
        """

        source: Path | None = None

        if isinstance(thing, Module):
            if not isinstance(thing, self.class_to_handle):
                logger.debug("Skipping %r: not a %s", thing, self.kind)
                return None
            module = thing
        elif isinstance(thing, type):
            if not issubclass(thing, self.class_to_handle):
                logger.debug("Skipping %s: not a %s subclass", thing.__name__, self.kind)
                return None
            module = thing()
        else:
            path = Path(thing).resolve()
            if path.suffix.lower() not in self.extensions:
                return None

            namespace = loader.import_source(path)
            module_cls = loader.find_export(namespace, self.class_to_handle)
            if module_cls is None:
                loader.evict(path)
                logger.debug("No exported %s in %s; skipping", self.kind, path)
                return None
            module = module_cls()
            source = path

        if module.id in self.modules:
            raise AlreadyLoadedError(self.kind, module.id)

        self.register(module, source)
        logger.info("%s %s '%s'", "Reloaded" if is_reload else "Loaded", self.kind, module.id)
        self.emit(HandlerEvents.LOAD, module, is_reload)
        return module

    async def load_all(
        self,
        directory: str | Path | None = None,
        load_filter: LoadPredicate | None = None,
    ) -> "ModuleHandler":
        """
        Load every file below ``directory`` concurrently.

        Defaults to the handler's configured directory and filter. The first
        failing file fails the whole batch.
        """

        target = Path(directory) if directory is not None else self.directory
        if target is None:
            raise ValueError(f"No directory configured for {self.kind} handler")

        accept = load_filter or self.load_filter
        paths = [path.resolve() for path in self.read_dir_recursive(target)]
        await asyncio.gather(*(self.load(path) for path in paths if accept(path)))
        return self

    # ------------------------------------------------------------------ #
    # Registration
    # ------------------------------------------------------------------ #

    def register(self, module: Module, source: str | Path | None = None) -> None:
        """Index ``module`` and file it under its category."""

        source_path = Path(source) if source is not None else None

        category_id = module.category_id
        if category_id == DEFAULT_CATEGORY and self.automate_categories and source_path is not None:
            category_id = source_path.parent.name

        category = self.categories.get(category_id)
        if category is None:
            category = self.categories[category_id] = Category(category_id)

        module.bind(client=self.client, handler=self, category=category, source=source_path)
        self.modules[module.id] = module
        category[module.id] = module

    def deregister(self, module: Module) -> None:
        """Forget ``module`` and evict its cached source."""

        if module.source is not None:
            loader.evict(module.source)
        self.modules.pop(module.id, None)
        if module.category is not None:
            module.category.pop(module.id, None)

    # ------------------------------------------------------------------ #
    # Reload / removal
    # ------------------------------------------------------------------ #

    async def reload(self, module_id: str) -> Module | None:
        module = self.modules.get(str(module_id))
        if module is None:
            raise UnknownModuleError(self.kind, str(module_id))
        if module.source is None:
            raise NotReloadableError(self.kind, module.id)

        self.deregister(module)
        return await self.load(module.source, is_reload=True)

    async def reload_all(self) -> "ModuleHandler":
        await asyncio.gather(*(self.reload(m.id) for m in list(self.modules.values()) if m.source))
        return self

    def remove(self, module_id: str) -> Module:
        module = self.modules.get(str(module_id))
        if module is None:
            raise UnknownModuleError(self.kind, str(module_id))

        self.deregister(module)
        logger.info("Removed %s '%s'", self.kind, module.id)
        self.emit(HandlerEvents.REMOVE, module)
        return module

    def remove_all(self) -> "ModuleHandler":
        for m in list(self.modules.values()):
            if m.source:
                self.remove(m.id)
        return self

    # ------------------------------------------------------------------ #
    # Lookup helpers
    # ------------------------------------------------------------------ #

    def find_category(self, name: str) -> Category | None:
        wanted = name.lower()
        for category in self.categories.values():
            if category.id.lower() == wanted:
                return category
        return None

    @staticmethod
    def read_dir_recursive(directory: str | Path) -> List[Path]:
        """Return every file below ``directory`` in a stable order."""

        return sorted(path for path in Path(directory).rglob("*") if path.is_file())


__all__ = ["ModuleHandler", "LoadPredicate"]
