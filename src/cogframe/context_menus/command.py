from __future__ import annotations

from typing import TYPE_CHECKING, Any, Awaitable, Literal, Sequence

import discord

from ..commands.command import GuardedCommand

if TYPE_CHECKING:
    from ..commands.context import InvocationContext

MENU_TYPES = {
    "user": discord.AppCommandType.user,
    "message": discord.AppCommandType.message,
}


class ContextMenuCommand(GuardedCommand):
    """
    A user or message context-menu command.

    ``name`` is the label shown in the client's context menu and is matched
    case-insensitively among menus of the same ``type``. ``exec`` receives the
    resolved target: a :class:`discord.User` / :class:`discord.Member` for
    ``"user"`` menus, a :class:`discord.Message` for ``"message"`` menus.
    """

    def __init__(
        self,
        module_id: str,
        *,
        name: str,
        type: Literal["user", "message"] | discord.AppCommandType,
        guilds: Sequence[int] = (),
        **guards: Any,
    ) -> None:
        super().__init__(module_id, name=name, **guards)

        if isinstance(type, str):
            try:
                type = MENU_TYPES[type.lower()]
            except KeyError:
                raise ValueError(f"Unknown context menu type '{type}'") from None
        if type not in MENU_TYPES.values():
            raise ValueError(f"Unknown context menu type '{type}'")

        self.type: discord.AppCommandType = type
        self.guilds = [int(guild_id) for guild_id in guilds]

    def exec(self, context: InvocationContext, target: Any) -> Any | Awaitable[Any]:
        """Run the command. The return value is passed to ``command_finished``."""

        raise NotImplementedError(f"{type(self).__name__}.exec has not been implemented")
