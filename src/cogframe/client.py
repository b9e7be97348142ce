"""Discord client bootstrap utilities."""

from __future__ import annotations

import logging
from typing import Any, Iterable, List

import discord

from cogframe.commands.handler import SlashCommandHandler
from cogframe.config import core
from cogframe.context_menus.handler import ContextMenuCommandHandler
from cogframe.events import EventEmitter
from cogframe.inhibitors.handler import InhibitorHandler
from cogframe.listeners.handler import ListenerHandler
from cogframe.modules.handler import ModuleHandler

logger = logging.getLogger(__name__)


class CogframeClient(discord.Client):
    """
    Discord client that feeds interactions to the attached command handlers.

    Every gateway event dispatched by discord.py is mirrored on :attr:`events`
    so listener modules can subscribe to it by name (``"ready"``,
    ``"message"``, ``"interaction"``...). :meth:`setup_hook` loads
    :attr:`module_handlers` in list order.
    """

    def __init__(
        self,
        *,
        owner_ids: Iterable[int] | None = None,
        intents: discord.Intents | None = None,
        **options: Any,
    ) -> None:
        super().__init__(intents=intents or discord.Intents.default(), **options)
        self.owner_ids = set(owner_ids if owner_ids is not None else core.OWNER_IDS)
        self.events = EventEmitter()
        self.command_handler: SlashCommandHandler | None = None
        self.context_menu_handler: ContextMenuCommandHandler | None = None
        self.module_handlers: List[ModuleHandler] = []

    def is_owner(self, user: Any) -> bool:
        user_id = getattr(user, "id", user)
        return user_id in self.owner_ids

    def add_module_handler(self, handler: ModuleHandler) -> None:
        if handler not in self.module_handlers:
            self.module_handlers.append(handler)

    def attach_command_handler(self, handler: SlashCommandHandler) -> None:
        self.command_handler = handler
        self.add_module_handler(handler)

    def attach_context_menu_handler(self, handler: ContextMenuCommandHandler) -> None:
        self.context_menu_handler = handler
        self.add_module_handler(handler)

    def dispatch(self, event: str, /, *args: Any, **kwargs: Any) -> None:
        super().dispatch(event, *args, **kwargs)
        self.events.emit(event, *args)

    async def setup_hook(self) -> None:
        """Load every attached handler from its configured directory."""

        for handler in self.module_handlers:
            if handler.directory is None:
                continue
            if not handler.directory.is_dir():
                logger.warning("%s directory %s does not exist; skipping", handler.kind, handler.directory)
                continue
            await handler.load_all()
            logger.info("Loaded %d %s module(s) from %s", len(handler.modules), handler.kind, handler.directory)

    async def on_interaction(self, interaction: discord.Interaction) -> None:
        if interaction.type is discord.InteractionType.autocomplete:
            if self.command_handler is not None:
                await self.command_handler.handle_autocomplete(interaction)
            return

        if interaction.type is not discord.InteractionType.application_command:
            return

        data = interaction.data or {}
        command_type = data.get("type", discord.AppCommandType.chat_input.value)
        if command_type == discord.AppCommandType.chat_input.value:
            handler = self.command_handler
        else:
            handler = self.context_menu_handler

        if handler is None:
            logger.debug("No handler attached for application command type %s", command_type)
            return
        await handler.handle(interaction)


def build_client(**options: Any) -> CogframeClient:
    """Create a client with every handler wired from config."""

    client = CogframeClient(**options)
    shared = {"automate_categories": core.AUTOMATE_CATEGORIES}

    listeners = ListenerHandler(client, directory=core.LISTENER_DIR, **shared)
    inhibitors = InhibitorHandler(client, directory=core.INHIBITOR_DIR, **shared)
    commands = SlashCommandHandler(client, directory=core.COMMAND_DIR, **shared)
    context_menus = ContextMenuCommandHandler(client, directory=core.CONTEXT_MENU_DIR, **shared)

    commands.use_inhibitor_handler(inhibitors)
    context_menus.use_inhibitor_handler(inhibitors)
    listeners.set_emitters(
        {
            "commands": commands,
            "context_menus": context_menus,
            "inhibitors": inhibitors,
            "listeners": listeners,
        }
    )

    # Listeners load first so they observe the other handlers' load events.
    client.module_handlers = [listeners, inhibitors, commands, context_menus]
    return client


def run() -> None:
    """Start the Discord client using configuration from the environment."""

    if not core.DISCORD_API_TOKEN:
        logger.error("No DISCORD_API_TOKEN configured. Cannot run client.")
        return

    client = build_client()
    try:
        client.run(core.DISCORD_API_TOKEN, log_handler=None)
    except discord.LoginFailure as exc:
        logger.error("Login failed: %s", exc)
