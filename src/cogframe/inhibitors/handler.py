from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, List

from discord.utils import maybe_coroutine

from ..constants import Phase
from ..modules.handler import ModuleHandler
from .inhibitor import Inhibitor

if TYPE_CHECKING:
    from ..commands.command import GuardedCommand
    from ..commands.context import InvocationContext

logger = logging.getLogger(__name__)


class InhibitorHandler(ModuleHandler):
    """Loads inhibitors and tests interactions against them."""

    base_class = Inhibitor

    async def test(
        self,
        phase: Phase | str,
        context: InvocationContext,
        command: GuardedCommand | None = None,
    ) -> str | None:
        """
        Evaluate every inhibitor of ``phase`` concurrently.

        :returns: The reason of the highest-priority blocking inhibitor, or
            ``None`` when nothing blocks. Ties go to the inhibitor registered
            first. Exceptions raised by an inhibitor propagate.
        """

        if not self.modules:
            return None

        phase = Phase(phase)
        inhibitors: List[Inhibitor] = [i for i in self.modules.values() if i.phase is phase]
        if not inhibitors:
            return None

        results: List[Any] = await asyncio.gather(
            *(maybe_coroutine(inhibitor.exec, context, command) for inhibitor in inhibitors)
        )

        blocking = [inhibitor for inhibitor, blocked in zip(inhibitors, results) if blocked]
        if not blocking:
            return None

        # sorted() is stable, so equal priorities keep registration order.
        winner = sorted(blocking, key=lambda i: i.priority, reverse=True)[0]
        logger.debug(
            "Phase %s blocked by %d inhibitor(s); reporting '%s' from %s",
            phase,
            len(blocking),
            winner.reason,
            winner.id,
        )
        return winner.reason
