"""Per-interaction state shared by every dispatch stage."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping

import discord

from .options import canonical_name, hoist_options


class InvocationContext:
    """
    An application-command interaction plus the fields the dispatch pipeline derives
    from it. One instance is built per interaction and never shared.
    """

    def __init__(self, client: Any, interaction: Any) -> None:
        self.client = client
        self.interaction = interaction

        self.id = getattr(interaction, "id", None)
        self.author = getattr(interaction, "user", None)
        self.member = self.author if isinstance(self.author, discord.Member) else None
        self.guild = getattr(interaction, "guild", None)
        self.channel = getattr(interaction, "channel", None)
        self.guild_id = getattr(interaction, "guild_id", None) or getattr(self.guild, "id", None)
        self.channel_id = getattr(interaction, "channel_id", None) or getattr(self.channel, "id", None)
        self.created_at = getattr(interaction, "created_at", None)

        data: Mapping[str, Any] = getattr(interaction, "data", None) or {}
        self.raw_options: List[Mapping[str, Any]] = list(data.get("options") or [])
        self.subcommand_group, self.subcommand, leaves = hoist_options(self.raw_options)
        self.command_name = canonical_name(str(data.get("name", "")), self.subcommand_group, self.subcommand)
        self.content = self._render(leaves)
        self.target_id = data.get("target_id")

    def _render(self, leaves: List[Mapping[str, Any]]) -> str:
        parts = [f"/{self.command_name}"]
        parts.extend(f"{option.get('name')}: {option.get('value')}" for option in leaves)
        return " ".join(parts)

    def in_guild(self) -> bool:
        return self.guild is not None

    def is_dm(self) -> bool:
        return getattr(self.channel, "type", None) == discord.ChannelType.private

    async def reply(self, content: str | None = None, **kwargs: Any) -> Any:
        """Send the initial response, or edit it if one was already sent."""

        response = self.interaction.response
        if not response.is_done():
            return await response.send_message(content, **kwargs)
        return await self.interaction.edit_original_response(content=content, **kwargs)

    async def delete(self) -> None:
        await self.interaction.delete_original_response()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "command": self.command_name,
            "author_id": getattr(self.author, "id", None),
            "guild_id": self.guild_id,
            "channel_id": self.channel_id,
        }

    def __repr__(self) -> str:
        return f"<InvocationContext {self.content!r} author={getattr(self.author, 'id', None)}>"
