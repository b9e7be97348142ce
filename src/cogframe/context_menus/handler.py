"""
Context-menu dispatch.

User and message commands go through the same gatekeeping stages as slash
commands (inhibitors, owner and channel checks, permissions) and then run
with the interaction's resolved target instead of options. There are no
locks or options for context menus.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Tuple, Type

import discord
from discord.utils import maybe_coroutine

from ..commands.context import InvocationContext
from ..commands.guards import GuardedHandler
from ..commands.options import resolve_target
from ..constants import CommandHandlerEvents
from ..errors import AliasConflictError
from .command import ContextMenuCommand

logger = logging.getLogger(__name__)

MenuKey = Tuple[int, str]


class ContextMenuCommandHandler(GuardedHandler):
    """Loads context-menu commands and dispatches user / message interactions to them."""

    base_class = ContextMenuCommand

    def __init__(self, client: Any, *, class_to_handle: Type[ContextMenuCommand] | None = None, **options: Any) -> None:
        super().__init__(client, class_to_handle=class_to_handle, **options)

        self.names: Dict[MenuKey, str] = {}
        self.setup()

    def setup(self) -> None:
        attach = getattr(self.client, "attach_context_menu_handler", None)
        if callable(attach):
            attach(self)

    @staticmethod
    def _key(name: str, menu_type: discord.AppCommandType | int) -> MenuKey:
        return int(getattr(menu_type, "value", menu_type)), name.lower()

    def register(self, command: ContextMenuCommand, source: str | Path | None = None) -> None:
        super().register(command, source)

        key = self._key(command.name, command.type)
        conflict = self.names.get(key)
        if conflict is not None:
            super().deregister(command)
            raise AliasConflictError(command.name, command.id, conflict)

        self.names[key] = command.id

    def deregister(self, command: ContextMenuCommand) -> None:
        key = self._key(command.name, command.type)
        if self.names.get(key) == command.id:
            del self.names[key]
        super().deregister(command)

    def find_command(
        self, name: str, menu_type: discord.AppCommandType | int, guild_id: int | None = None
    ) -> ContextMenuCommand | None:
        """Case-insensitive lookup; guild-scoped menus only match their guilds."""

        module_id = self.names.get(self._key(name, menu_type))
        command = self.modules.get(module_id) if module_id is not None else None
        if command is not None and command.guilds and guild_id not in command.guilds:
            return None
        return command

    async def handle(self, interaction: Any) -> bool | None:
        """
        Dispatch one user or message command interaction.

        :returns: ``True`` when the command ran, ``False`` when it was not
            found, blocked, or raised, ``None`` when dispatch itself failed.
        """

        context = InvocationContext(self.client, interaction)
        data = getattr(interaction, "data", None) or {}
        command = self.find_command(context.command_name, data.get("type", 0), context.guild_id)

        if command is None:
            logger.debug("No context menu registered for '%s'", context.command_name)
            self.emit(CommandHandlerEvents.COMMAND_NOT_FOUND, interaction)
            return False

        try:
            if await self.run_guards(context, command):
                return False

            target = resolve_target(interaction)
        except Exception as exc:
            self.emit_error(exc, context, command)
            return None

        self.emit(CommandHandlerEvents.COMMAND_STARTED, context, command, target)
        try:
            result = await maybe_coroutine(command.exec, context, target)
        except Exception as exc:
            self.emit_error(exc, context, command)
            return False

        self.emit(CommandHandlerEvents.COMMAND_FINISHED, context, command, target, result)
        return True


__all__ = ["ContextMenuCommandHandler"]
