from __future__ import annotations

from typing import Any, FrozenSet, Iterable, List

import discord


def requirement_names(value: Any) -> Any:
    """
    Normalize a permission requirement.

    Callables are returned untouched; a flag name, a :class:`discord.Permissions`
    or an iterable of flag names becomes a list of flag names.
    """

    if value is None or callable(value):
        return value
    if isinstance(value, str):
        return [value]
    if isinstance(value, discord.Permissions):
        return [name for name, enabled in value if enabled]
    return list(value)


def ignore_ids(value: Any) -> int | FrozenSet[int] | Any:
    """
    Normalize an ``ignore_permissions`` setting.

    Snowflakes may be given as ``int`` or ``str``; both compare equal to
    ``author.id`` afterwards. Predicates are returned untouched.
    """

    if value is None or callable(value):
        return value
    if isinstance(value, (int, str)):
        return int(value)
    return frozenset(int(uid) for uid in value)


def missing_permissions(channel: Any, actor: Any, required: Iterable[str]) -> List[str]:
    """Flag names from ``required`` that ``actor`` lacks in ``channel``."""

    if channel is None or actor is None:
        return []

    permissions = channel.permissions_for(actor)
    if permissions is None:
        return []
    return [name for name in required if not getattr(permissions, name, False)]


__all__ = ["ignore_ids", "missing_permissions", "requirement_names"]
