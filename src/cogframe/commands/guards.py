"""
Gatekeeping stages shared by the slash-command and context-menu handlers.

A :class:`GuardedHandler` runs, in order: ``all`` inhibitors plus the
author checks, ``pre`` inhibitors, then the built-in post checks (owner,
channel, permissions) and ``post`` inhibitors. Each stage returns ``True``
once it has announced a block.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable, Type

from discord.utils import maybe_coroutine

from ..config import dispatch as dispatch_cfg
from ..constants import BuiltInReasons, CommandHandlerEvents, Phase
from ..inhibitors.handler import InhibitorHandler
from ..modules.handler import LoadPredicate, ModuleHandler
from .command import GuardedCommand, IgnoreCheckPredicate
from .context import InvocationContext
from .permissions import ignore_ids, missing_permissions

logger = logging.getLogger(__name__)


class GuardedHandler(ModuleHandler):
    """Module handler that screens interactions before running a command."""

    base_class: Type[GuardedCommand] = GuardedCommand

    def __init__(
        self,
        client: Any,
        *,
        directory: str | Path | None = None,
        class_to_handle: Type[GuardedCommand] | None = None,
        extensions: Iterable[str] = (".py",),
        automate_categories: bool = False,
        load_filter: LoadPredicate | None = None,
        block_client: bool | None = None,
        block_bots: bool | None = None,
        ignore_permissions: int | str | Iterable[int | str] | IgnoreCheckPredicate | None = None,
        skip_builtin_post_inhibitors: bool | None = None,
    ) -> None:
        """Unset guard options fall back to :mod:`cogframe.config`."""

        super().__init__(
            client,
            directory=directory,
            class_to_handle=class_to_handle,
            extensions=extensions,
            automate_categories=automate_categories,
            load_filter=load_filter,
        )

        self.block_client = dispatch_cfg.BLOCK_CLIENT if block_client is None else bool(block_client)
        self.block_bots = dispatch_cfg.BLOCK_BOTS if block_bots is None else bool(block_bots)
        if ignore_permissions is None:
            ignore_permissions = dispatch_cfg.IGNORE_PERMISSION_IDS
        self.ignore_permissions = ignore_ids(ignore_permissions)
        self.skip_builtin_post_inhibitors = (
            dispatch_cfg.SKIP_BUILTIN_POST_INHIBITORS
            if skip_builtin_post_inhibitors is None
            else bool(skip_builtin_post_inhibitors)
        )
        self.inhibitor_handler: InhibitorHandler | None = None

    def use_inhibitor_handler(self, inhibitor_handler: InhibitorHandler) -> "GuardedHandler":
        self.inhibitor_handler = inhibitor_handler
        return self

    async def run_guards(self, context: InvocationContext, command: GuardedCommand) -> bool:
        """Run every gatekeeping stage; ``True`` means the command must not run."""

        if await self.run_all_type_inhibitors(context):
            return True
        if await self.run_pre_type_inhibitors(context):
            return True
        return await self.run_post_type_inhibitors(context, command)

    # ------------------------------------------------------------------ #
    # Inhibition stages
    # ------------------------------------------------------------------ #

    async def _test_inhibitors(
        self, phase: Phase, context: InvocationContext, command: GuardedCommand | None = None
    ) -> str | None:
        if self.inhibitor_handler is None:
            return None
        return await self.inhibitor_handler.test(phase, context, command)

    async def run_all_type_inhibitors(self, context: InvocationContext) -> bool:
        reason = await self._test_inhibitors(Phase.ALL, context)

        if reason is None:
            author = context.author
            client_user = getattr(self.client, "user", None)
            if author is None:
                reason = BuiltInReasons.AUTHOR_NOT_FOUND
            elif self.block_client and client_user is not None and author.id == client_user.id:
                reason = BuiltInReasons.CLIENT
            elif self.block_bots and getattr(author, "bot", False):
                reason = BuiltInReasons.BOT

        if reason is None:
            return False

        self.emit(CommandHandlerEvents.MESSAGE_BLOCKED, context, reason)
        return True

    async def run_pre_type_inhibitors(self, context: InvocationContext) -> bool:
        reason = await self._test_inhibitors(Phase.PRE, context)
        if reason is None:
            return False

        self.emit(CommandHandlerEvents.MESSAGE_BLOCKED, context, reason)
        return True

    async def run_post_type_inhibitors(self, context: InvocationContext, command: GuardedCommand) -> bool:
        event = CommandHandlerEvents.COMMAND_BLOCKED

        if not self.skip_builtin_post_inhibitors:
            reason = await self._builtin_post_reason(context, command)
            if reason is not None:
                self.emit(event, context, command, reason)
                return True

            if await self.run_permission_checks(context, command):
                return True

        reason = await self._test_inhibitors(Phase.POST, context, command)

        if self.skip_builtin_post_inhibitors and reason is None:
            if await self.run_permission_checks(context, command):
                return True

        if reason is not None:
            self.emit(event, context, command, reason)
            return True

        return False

    async def _builtin_post_reason(self, context: InvocationContext, command: GuardedCommand) -> str | None:
        if command.owner_only:
            is_owner = getattr(self.client, "is_owner", None)
            owner = bool(await maybe_coroutine(is_owner, context.author)) if callable(is_owner) else False
            if not owner:
                return BuiltInReasons.OWNER

        if command.channel == "guild" and context.guild is None:
            return BuiltInReasons.GUILD

        if command.channel == "dm" and context.guild is not None:
            return BuiltInReasons.DM

        return None

    # ------------------------------------------------------------------ #
    # Permissions
    # ------------------------------------------------------------------ #

    async def run_permission_checks(self, context: InvocationContext, command: GuardedCommand) -> bool:
        """Emit ``missing_permissions`` and return ``True`` if the command must not run."""

        event = CommandHandlerEvents.MISSING_PERMISSIONS

        if command.client_permissions:
            me = getattr(context.guild, "me", None)
            missing = await self._missing(context, command.client_permissions, me)
            if missing is not None:
                self.emit(event, context, command, "client", missing)
                return True

        if command.user_permissions and not self.is_ignored(context, command):
            missing = await self._missing(context, command.user_permissions, context.author)
            if missing is not None:
                self.emit(event, context, command, "user", missing)
                return True

        return False

    async def _missing(self, context: InvocationContext, requirement: Any, actor: Any) -> Any:
        if callable(requirement):
            return await maybe_coroutine(requirement, context)

        # Channel permission overwrites only exist inside guilds.
        if context.guild is None or context.is_dm():
            return None

        if actor is None:
            logger.debug(
                "Member not cached in guild %s; skipping permission check for %s",
                context.guild_id,
                context.command_name,
            )
            return None

        missing = missing_permissions(context.channel, actor, requirement)
        return missing or None

    def is_ignored(self, context: InvocationContext, command: GuardedCommand) -> bool:
        ignorer = command.ignore_permissions if command.ignore_permissions is not None else self.ignore_permissions
        author_id = getattr(context.author, "id", None)

        if callable(ignorer):
            return bool(ignorer(context, command))
        if isinstance(ignorer, frozenset):
            return author_id in ignorer
        return ignorer is not None and author_id == ignorer

    # ------------------------------------------------------------------ #
    # Errors
    # ------------------------------------------------------------------ #

    def emit_error(self, exc: Exception, context: InvocationContext, command: GuardedCommand | None = None) -> None:
        """Hand ``exc`` to ``error`` listeners, or re-raise it if there are none."""

        if self.listener_count(CommandHandlerEvents.ERROR):
            self.emit(CommandHandlerEvents.ERROR, exc, context, command)
            return

        raise exc


__all__ = ["GuardedHandler"]
