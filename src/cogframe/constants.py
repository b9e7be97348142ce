"""Event names, inhibitor phases and built-in block reasons."""

from __future__ import annotations

from enum import StrEnum


class Phase(StrEnum):
    """When an inhibitor runs relative to the built-in checks."""

    ALL = "all"
    PRE = "pre"
    POST = "post"


class HandlerEvents(StrEnum):
    LOAD = "load"
    REMOVE = "remove"


class CommandHandlerEvents(StrEnum):
    COMMAND_NOT_FOUND = "command_not_found"
    MESSAGE_BLOCKED = "message_blocked"
    COMMAND_BLOCKED = "command_blocked"
    COMMAND_LOCKED = "command_locked"
    COMMAND_STARTED = "command_started"
    COMMAND_FINISHED = "command_finished"
    MISSING_PERMISSIONS = "missing_permissions"
    ERROR = "error"


class BuiltInReasons(StrEnum):
    CLIENT = "client"
    BOT = "bot"
    OWNER = "owner"
    GUILD = "guild"
    DM = "dm"
    AUTHOR_NOT_FOUND = "author_not_found"


DEFAULT_CATEGORY = "default"

__all__ = [
    "Phase",
    "HandlerEvents",
    "CommandHandlerEvents",
    "BuiltInReasons",
    "DEFAULT_CATEGORY",
]
