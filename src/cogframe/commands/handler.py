"""
Slash-command dispatch.

:meth:`SlashCommandHandler.handle` takes one application-command interaction
through the full pipeline::

    lookup -> all inhibitors -> pre inhibitors -> post checks
           -> option resolution -> lock -> exec -> lock release

Every outcome is announced on the handler (see
:class:`~cogframe.constants.CommandHandlerEvents`). Errors raised while
dispatching go to ``error`` listeners, or are re-raised when nobody listens.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, Type

from discord.utils import maybe_coroutine

from ..config import dispatch as dispatch_cfg
from ..constants import CommandHandlerEvents
from ..errors import AliasConflictError
from .command import SlashCommand
from .context import InvocationContext
from .guards import GuardedHandler
from .options import canonical_name, hoist_options, normalize_options

logger = logging.getLogger(__name__)


class SlashCommandHandler(GuardedHandler):
    """Loads slash commands and dispatches interactions to them."""

    base_class = SlashCommand

    def __init__(
        self,
        client: Any,
        *,
        class_to_handle: Type[SlashCommand] | None = None,
        execution_timeout: float | None = None,
        **options: Any,
    ) -> None:
        """
        ``execution_timeout`` bounds how long :meth:`SlashCommand.exec` may hold
        its lock key; ``0`` disables the configured limit. Remaining options
        are those of :class:`~cogframe.commands.guards.GuardedHandler`.
        """

        super().__init__(client, class_to_handle=class_to_handle, **options)

        self.names: Dict[str, str] = {}
        timeout = dispatch_cfg.EXECUTION_TIMEOUT if execution_timeout is None else execution_timeout
        self.execution_timeout: float | None = timeout or None

        self.setup()

    def setup(self) -> None:
        """Route the client's slash-command interactions to this handler."""

        attach = getattr(self.client, "attach_command_handler", None)
        if callable(attach):
            attach(self)

    # ------------------------------------------------------------------ #
    # Registry
    # ------------------------------------------------------------------ #

    def register(self, command: SlashCommand, source: str | Path | None = None) -> None:
        super().register(command, source)

        name = command.name.lower()
        conflict = self.names.get(name)
        if conflict is not None:
            super().deregister(command)
            raise AliasConflictError(command.name, command.id, conflict)

        self.names[name] = command.id

    def deregister(self, command: SlashCommand) -> None:
        name = command.name.lower()
        if self.names.get(name) == command.id:
            del self.names[name]
        super().deregister(command)

    def find_command(self, name: str) -> SlashCommand | None:
        module_id = self.names.get(name.lower())
        if module_id is None:
            return None
        return self.modules.get(module_id)

    # ------------------------------------------------------------------ #
    # Dispatch
    # ------------------------------------------------------------------ #

    async def handle(self, interaction: Any) -> bool | None:
        """
        Dispatch one application-command interaction.

        :returns: ``True`` when the command ran (or was declined because its
            lock key was busy), ``False`` when it was not found, blocked, or
            raised, ``None`` when dispatch itself failed.
        """

        context = InvocationContext(self.client, interaction)
        command = self.find_command(context.command_name)

        if command is None:
            logger.debug("No command registered for '%s'", context.command_name)
            self.emit(CommandHandlerEvents.COMMAND_NOT_FOUND, interaction)
            return False

        try:
            if await self.run_guards(context, command):
                return False

            options = normalize_options(context.raw_options, command.options, interaction)
            return await self.run_command(context, command, options)
        except Exception as exc:
            self.emit_error(exc, context, command)
            return None
    async def run_command(
        self, context: InvocationContext, command: SlashCommand, options: Dict[str, Any]
    ) -> bool:
        """Acquire the command's lock key (if any), execute, and release."""

        key = None
        try:
            if command.lock is not None:
                try:
                    key = await maybe_coroutine(command.lock, context, options)
                except Exception as exc:
                    self.emit_error(exc, context, command)
                    return False

                if key:
                    if key in command.locker:
                        # Held by another invocation; nothing to release here.
                        key = None
                        self.emit(CommandHandlerEvents.COMMAND_LOCKED, context, command)
                        return True
                    command.locker.add(key)

            self.emit(CommandHandlerEvents.COMMAND_STARTED, context, command, options)
            try:
                result = await self._execute(context, command, options)
            except Exception as exc:
                self.emit_error(exc, context, command)
                return False

            self.emit(CommandHandlerEvents.COMMAND_FINISHED, context, command, options, result)
            return True
        finally:
            if key:
                command.locker.discard(key)

    async def _execute(self, context: InvocationContext, command: SlashCommand, options: Dict[str, Any]) -> Any:
        call = maybe_coroutine(command.exec, context, options)
        if self.execution_timeout:
            return await asyncio.wait_for(call, timeout=self.execution_timeout)
        return await call

    async def handle_autocomplete(self, interaction: Any) -> None:
        data = getattr(interaction, "data", None) or {}
        group, subcommand, _ = hoist_options(data.get("options"))
        name = canonical_name(str(data.get("name", "")), group, subcommand)

        command = self.find_command(name)
        if command is None:
            self.emit(CommandHandlerEvents.COMMAND_NOT_FOUND, interaction)
            return

        logger.debug("Autocomplete started for %s", name)
        await maybe_coroutine(command.autocomplete, interaction)


__all__ = ["SlashCommandHandler"]
