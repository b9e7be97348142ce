from __future__ import annotations

from typing import TYPE_CHECKING, Awaitable

from ..constants import DEFAULT_CATEGORY, Phase
from ..modules.module import Module

if TYPE_CHECKING:
    from ..commands.command import GuardedCommand
    from ..commands.context import InvocationContext


class Inhibitor(Module):
    """
    Guard predicate consulted by the command handler before a command runs.

    ``phase`` decides the dispatch stage that evaluates it: ``all`` runs for
    every interaction, ``pre`` after the built-in author checks, ``post``
    once the target command is known. When several inhibitors of a phase
    block, the highest ``priority`` supplies the reported ``reason``.
    """

    def __init__(
        self,
        module_id: str,
        *,
        category: str = DEFAULT_CATEGORY,
        reason: str = "",
        phase: Phase | str = Phase.POST,
        priority: int = 0,
    ) -> None:
        super().__init__(module_id, category=category)
        self.reason = reason
        self.phase = Phase(phase)
        self.priority = int(priority)

    def exec(
        self, context: InvocationContext, command: GuardedCommand | None = None
    ) -> bool | Awaitable[bool]:
        """Return (or resolve to) ``True`` to block the interaction."""

        raise NotImplementedError(f"{type(self).__name__}.exec has not been implemented")
