from __future__ import annotations

from .command import BUILTIN_LOCKS, GuardedCommand, SlashCommand
from .context import InvocationContext
from .guards import GuardedHandler
from .handler import SlashCommandHandler
from .options import CommandOption, normalize_options

__all__ = [
    "BUILTIN_LOCKS",
    "CommandOption",
    "GuardedCommand",
    "GuardedHandler",
    "InvocationContext",
    "SlashCommand",
    "SlashCommandHandler",
    "normalize_options",
]
