from __future__ import annotations

from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, Iterable, Literal, Sequence, Set

from ..constants import DEFAULT_CATEGORY
from ..modules.module import Module
from .options import CommandOption
from .permissions import ignore_ids, requirement_names

if TYPE_CHECKING:
    from .context import InvocationContext

KeySupplier = Callable[["InvocationContext", Dict[str, Any]], Any]
MissingPermissionSupplier = Callable[["InvocationContext"], Any]
IgnoreCheckPredicate = Callable[["InvocationContext", "GuardedCommand"], bool]


def _guild_key(context: InvocationContext, options: Dict[str, Any]) -> Any:
    return context.guild_id


def _channel_key(context: InvocationContext, options: Dict[str, Any]) -> Any:
    return context.channel_id


def _user_key(context: InvocationContext, options: Dict[str, Any]) -> Any:
    return getattr(context.author, "id", None)


BUILTIN_LOCKS: Dict[str, KeySupplier] = {
    "guild": _guild_key,
    "channel": _channel_key,
    "user": _user_key,
}


class GuardedCommand(Module):
    """
    Owner, channel and permission guards shared by every command kind.

    ``ignore_permissions`` accepts a user id, a collection of ids (``int`` or
    ``str``) or a predicate ``(context, command) -> bool``.
    """

    def __init__(
        self,
        module_id: str,
        *,
        name: str,
        category: str = DEFAULT_CATEGORY,
        owner_only: bool = False,
        channel: Literal["guild", "dm"] | None = None,
        client_permissions: str | Iterable[str] | MissingPermissionSupplier | None = None,
        user_permissions: str | Iterable[str] | MissingPermissionSupplier | None = None,
        ignore_permissions: int | str | Iterable[int | str] | IgnoreCheckPredicate | None = None,
    ) -> None:
        super().__init__(module_id, category=category)

        if channel not in (None, "guild", "dm"):
            raise ValueError(f"Unknown channel restriction '{channel}'")

        self.name = name
        self.owner_only = bool(owner_only)
        self.channel = channel
        self.client_permissions = requirement_names(client_permissions)
        self.user_permissions = requirement_names(user_permissions)
        self.ignore_permissions = ignore_ids(ignore_permissions)


class SlashCommand(GuardedCommand):
    """
    A slash command handled by :class:`~cogframe.commands.handler.SlashCommandHandler`.

    ``name`` is what users type (including group / subcommand words, e.g.
    ``"config set"``) and is matched case-insensitively. Subclasses implement
    :meth:`exec`.
    """

    def __init__(
        self,
        module_id: str,
        *,
        name: str,
        description: str = "",
        options: Sequence[CommandOption] = (),
        lock: Literal["guild", "channel", "user"] | KeySupplier | None = None,
        hidden: bool = False,
        **guards: Any,
    ) -> None:
        super().__init__(module_id, name=name, **guards)

        if isinstance(lock, str):
            try:
                lock = BUILTIN_LOCKS[lock]
            except KeyError:
                raise ValueError(f"Unknown lock strategy '{lock}'") from None

        self.description = description
        self.options = list(options)
        self.lock: KeySupplier | None = lock
        self.locker: Set[Any] | None = set() if lock else None
        self.hidden = bool(hidden)

    def exec(self, context: InvocationContext, options: Dict[str, Any]) -> Any | Awaitable[Any]:
        """Run the command. The return value is passed to ``command_finished``."""

        raise NotImplementedError(f"{type(self).__name__}.exec has not been implemented")

    def autocomplete(self, interaction: Any) -> Any:
        """Answer an autocomplete interaction; does nothing by default."""

        return None
