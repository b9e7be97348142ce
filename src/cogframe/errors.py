"""Structured errors raised by module handlers."""

from __future__ import annotations


class CogframeError(Exception):
    """Base error carrying a stable ``code`` alongside the message."""

    code: str = "COGFRAME_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class UnknownModuleError(CogframeError, LookupError):
    code = "MODULE_NOT_FOUND"

    def __init__(self, kind: str, module_id: str) -> None:
        super().__init__(f"{kind} '{module_id}' does not exist")
        self.module_id = module_id


class AlreadyLoadedError(CogframeError):
    code = "ALREADY_LOADED"

    def __init__(self, kind: str, module_id: str) -> None:
        super().__init__(f"{kind} '{module_id}' is already loaded")
        self.module_id = module_id


class NotReloadableError(CogframeError):
    code = "NOT_RELOADABLE"

    def __init__(self, kind: str, module_id: str) -> None:
        super().__init__(f"{kind} '{module_id}' is not reloadable")
        self.module_id = module_id


class InvalidClassToHandleError(CogframeError, TypeError):
    code = "INVALID_CLASS_TO_HANDLE"

    def __init__(self, given: str, expected: str) -> None:
        super().__init__(f"Class to handle {given} is not a subclass of {expected}")


class AliasConflictError(CogframeError):
    code = "ALIAS_CONFLICT"

    def __init__(self, name: str, module_id: str, conflict: str) -> None:
        super().__init__(f"Name '{name}' of '{module_id}' already exists on '{conflict}'")
        self.name = name
        self.conflict = conflict


class InvalidTypeError(CogframeError, TypeError):
    code = "INVALID_TYPE"

    def __init__(self, name: str, expected: str) -> None:
        article = "an" if expected[:1].lower() in "aeiou" else "a"
        super().__init__(f"Value of '{name}' was not {article} {expected}")


__all__ = [
    "CogframeError",
    "UnknownModuleError",
    "AlreadyLoadedError",
    "NotReloadableError",
    "InvalidClassToHandleError",
    "AliasConflictError",
    "InvalidTypeError",
]
