"""
Option schema and normalization for slash commands.

Discord delivers options as a nested list: a subcommand group wraps a
subcommand, which wraps the leaf options. Handlers receive a flat mapping
instead, with the group and subcommand hoisted into dedicated keys and every
declared-but-omitted option present (``False`` for booleans, ``None``
otherwise). Snowflake options (users, roles, channels...) arrive as the
objects Discord resolved for the interaction.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Sequence, Tuple

from discord import AppCommandOptionType, Object
from discord.app_commands.namespace import Namespace, ResolveKey

logger = logging.getLogger(__name__)

SUBCOMMAND_GROUP_KEY = "subcommand_group"
SUBCOMMAND_KEY = "subcommand"

_NESTING_TYPES = {
    AppCommandOptionType.subcommand.value,
    AppCommandOptionType.subcommand_group.value,
}

_SNOWFLAKE_TYPES = {
    AppCommandOptionType.user.value,
    AppCommandOptionType.channel.value,
    AppCommandOptionType.role.value,
    AppCommandOptionType.mentionable.value,
    AppCommandOptionType.attachment.value,
}


@dataclass(slots=True)
class CommandOption:
    """Declared option of a command (or a subcommand / group and its children)."""

    name: str
    type: AppCommandOptionType
    description: str = ""
    required: bool = False
    options: List["CommandOption"] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not isinstance(self.type, AppCommandOptionType):
            self.type = AppCommandOptionType(self.type)

    @property
    def is_nesting(self) -> bool:
        return self.type.value in _NESTING_TYPES

    def default(self) -> Any:
        return False if self.type is AppCommandOptionType.boolean else None


def hoist_options(
    raw_options: Sequence[Mapping[str, Any]] | None,
) -> Tuple[str | None, str | None, List[Mapping[str, Any]]]:
    """Split raw options into ``(group, subcommand, leaf_options)``."""

    group = subcommand = None
    options = list(raw_options or [])

    if options and options[0].get("type") == AppCommandOptionType.subcommand_group.value:
        group = options[0]["name"]
        options = list(options[0].get("options") or [])

    if options and options[0].get("type") == AppCommandOptionType.subcommand.value:
        subcommand = options[0]["name"]
        options = list(options[0].get("options") or [])

    return group, subcommand, options


def canonical_name(command_name: str, group: str | None = None, subcommand: str | None = None) -> str:
    """Join a command name with its qualifiers, e.g. ``"config set"``."""

    return " ".join(part for part in (command_name, group, subcommand) if part)


def _declared_for(
    schema: Sequence[CommandOption], group: str | None, subcommand: str | None
) -> Sequence[CommandOption] | None:
    if group is None and subcommand is None:
        return [option for option in schema if not option.is_nesting]

    container: Sequence[CommandOption] = schema
    if group is not None:
        group_option = next(
            (o for o in container if o.name == group and o.type is AppCommandOptionType.subcommand_group),
            None,
        )
        if group_option is None:
            logger.debug("Unable to find subcommand group '%s'", group)
            return None
        container = group_option.options

    sub_option = next(
        (o for o in container if o.name == subcommand and o.type is AppCommandOptionType.subcommand),
        None,
    )
    if sub_option is None:
        logger.debug("Unable to find subcommand '%s'", subcommand)
        return None
    return sub_option.options


def _resolved_data(interaction: Any) -> Mapping[str, Any]:
    data = getattr(interaction, "data", None) or {}
    return data.get("resolved") or {}


def resolve_values(interaction: Any, leaves: Sequence[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Map leaf options to their values, turning snowflakes into objects.

    Users, members, roles, channels, mentionables and attachments are looked
    up in ``interaction.data["resolved"]`` through discord.py's
    :class:`~discord.app_commands.Namespace`; ids missing from the resolved
    payload become :class:`discord.Object`.
    """

    leaves = [option for option in leaves if option.get("type") not in _NESTING_TYPES]
    if interaction is None or not any(option.get("type") in _SNOWFLAKE_TYPES for option in leaves):
        return {option["name"]: option.get("value") for option in leaves}

    return dict(Namespace(interaction, _resolved_data(interaction), leaves))


def resolve_target(interaction: Any) -> Any:
    """The user or message a context-menu interaction was invoked on."""

    data = getattr(interaction, "data", None) or {}
    target_id = data.get("target_id")
    if target_id is None:
        return None

    resolved = Namespace._get_resolved_items(interaction, _resolved_data(interaction))
    target = resolved.get(ResolveKey.any_with(str(target_id)))
    if target is None:
        logger.debug("Target %s missing from resolved data", target_id)
        return Object(id=int(target_id))
    return target


def normalize_options(
    raw_options: Sequence[Mapping[str, Any]] | None,
    schema: Sequence[CommandOption] = (),
    interaction: Any = None,
) -> Dict[str, Any]:
    """
    Flatten ``raw_options`` and fill in omitted declared options.

    :param raw_options: ``interaction.data["options"]`` as sent by Discord.
    :param schema: The command's declared options.
    :param interaction: Source of the resolved objects for snowflake options.
        Without it those options keep their raw id strings.
    :returns: Mapping of option name to value.
    """

    group, subcommand, leaves = hoist_options(raw_options)

    converted: Dict[str, Any] = {}
    if group is not None:
        converted[SUBCOMMAND_GROUP_KEY] = group
    if subcommand is not None:
        converted[SUBCOMMAND_KEY] = subcommand

    converted.update(resolve_values(interaction, leaves))

    declared = _declared_for(schema, group, subcommand)
    if declared is None:
        return converted

    for option in declared:
        if option.name not in converted:
            converted[option.name] = option.default()

    return converted


__all__ = [
    "CommandOption",
    "SUBCOMMAND_GROUP_KEY",
    "SUBCOMMAND_KEY",
    "canonical_name",
    "hoist_options",
    "normalize_options",
    "resolve_target",
    "resolve_values",
]
