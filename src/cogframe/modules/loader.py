"""
Source loading for module handlers.

A module file opts in by decorating its class with :func:`export`::

    from cogframe import SlashCommand, export

    @export
    class Ping(SlashCommand): ...

Files without an exported class (shared helpers, constants) are skipped by
the handler instead of failing the whole directory load.
"""

from __future__ import annotations

import hashlib
import importlib.util
import logging
import sys
from pathlib import Path
from types import ModuleType
from typing import Optional, Type

from .module import Module

logger = logging.getLogger(__name__)

_EXPORT_ATTR = "__cogframe_export__"


def export(cls: Optional[Type[Module]] = None):
    """Decorator marking a :class:`Module` subclass as the loadable unit of its file."""

    def _register(module_cls: Type[Module]):
        if not (isinstance(module_cls, type) and issubclass(module_cls, Module)):
            raise TypeError("export expects a cogframe Module subclass")

        setattr(module_cls, _EXPORT_ATTR, True)
        return module_cls

    if cls is None:
        return _register
    return _register(cls)


def is_exported(cls: type) -> bool:
    # Checked on the class itself so subclasses of an exported class stay opt-in.
    return bool(vars(cls).get(_EXPORT_ATTR, False))


def module_name_for(path: Path) -> str:
    """Stable ``sys.modules`` key for the source at ``path``."""

    digest = hashlib.sha1(str(path).encode("utf-8")).hexdigest()[:12]
    return f"_cogframe_src_{path.stem}_{digest}"


def import_source(path: Path) -> ModuleType:
    """Import ``path``, reusing the cached module until it is evicted."""

    name = module_name_for(path)
    cached = sys.modules.get(name)
    if cached is not None:
        return cached

    spec = importlib.util.spec_from_file_location(name, path)
    if spec is None or spec.loader is None:
        raise ImportError(f"Cannot import module source {path}")

    namespace = importlib.util.module_from_spec(spec)
    sys.modules[name] = namespace
    try:
        spec.loader.exec_module(namespace)
    except BaseException:
        sys.modules.pop(name, None)
        raise
    return namespace


def evict(path: Path) -> None:
    """Drop the cached import of ``path`` so the next load re-reads the file."""

    if sys.modules.pop(module_name_for(path), None) is not None:
        logger.debug("Evicted cached source for %s", path)


def find_export(namespace: ModuleType, base: Type[Module]) -> Type[Module] | None:
    """Return the first exported subclass of ``base`` defined in ``namespace``."""

    for value in vars(namespace).values():
        if not isinstance(value, type) or value is base:
            continue
        if value.__module__ != namespace.__name__:
            continue
        if issubclass(value, base) and is_exported(value):
            return value
    return None


__all__ = ["export", "is_exported", "import_source", "evict", "find_export", "module_name_for"]
