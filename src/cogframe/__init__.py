"""
cogframe: module loading and slash-command dispatch for discord.py.

Commands, inhibitors and listeners are plain classes exported from module
files::

    from cogframe import SlashCommand, export

    @export
    class Ping(SlashCommand):
        def __init__(self):
            super().__init__("ping", name="ping", description="Pong!")

        async def exec(self, context, options):
            await context.reply("Pong!")
"""

from __future__ import annotations

from .commands import CommandOption, InvocationContext, SlashCommand, SlashCommandHandler
from .context_menus import ContextMenuCommand, ContextMenuCommandHandler
from .constants import BuiltInReasons, CommandHandlerEvents, HandlerEvents, Phase
from .errors import (
    AliasConflictError,
    AlreadyLoadedError,
    CogframeError,
    InvalidClassToHandleError,
    InvalidTypeError,
    NotReloadableError,
    UnknownModuleError,
)
from .events import EventEmitter
from .inhibitors import Inhibitor, InhibitorHandler
from .listeners import Listener, ListenerHandler
from .modules import Category, Module, ModuleHandler, export

__all__ = [
    "AliasConflictError",
    "AlreadyLoadedError",
    "BuiltInReasons",
    "Category",
    "CogframeError",
    "CommandHandlerEvents",
    "CommandOption",
    "ContextMenuCommand",
    "ContextMenuCommandHandler",
    "EventEmitter",
    "HandlerEvents",
    "Inhibitor",
    "InhibitorHandler",
    "InvalidClassToHandleError",
    "InvalidTypeError",
    "InvocationContext",
    "Listener",
    "ListenerHandler",
    "Module",
    "ModuleHandler",
    "NotReloadableError",
    "Phase",
    "SlashCommand",
    "SlashCommandHandler",
    "UnknownModuleError",
    "export",
]
