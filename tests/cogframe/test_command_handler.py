import asyncio
import logging
from types import SimpleNamespace

import discord
import pytest

from cogframe import (
    AliasConflictError,
    CommandOption,
    Inhibitor,
    InhibitorHandler,
    SlashCommand,
    SlashCommandHandler,
)

OWNER_ID = 1
CLIENT_ID = 999
USER_ID = 10

ALL_EVENTS = (
    "command_not_found",
    "message_blocked",
    "command_blocked",
    "command_locked",
    "command_started",
    "command_finished",
    "missing_permissions",
)


# ----------------------------- Fakes ----------------------------- #


def _client():
    return SimpleNamespace(
        user=SimpleNamespace(id=CLIENT_ID, bot=True),
        is_owner=lambda user: getattr(user, "id", None) == OWNER_ID,
    )


def _user(user_id=USER_ID, bot=False):
    return SimpleNamespace(id=user_id, bot=bot)


def _channel(channel_id=700, *, permissions=None, kind=discord.ChannelType.text):
    granted = permissions or {}
    return SimpleNamespace(
        id=channel_id,
        type=kind,
        permissions_for=lambda actor: SimpleNamespace(**granted.get(actor.id, {})),
    )


def _guild(guild_id=500):
    return SimpleNamespace(id=guild_id, me=SimpleNamespace(id=CLIENT_ID))


def _state():
    return SimpleNamespace(create_user=lambda data: SimpleNamespace(id=int(data["id"]), name=data["username"]))


_DEFAULT = object()


def _interaction(name="ping", *, user=_DEFAULT, guild=_DEFAULT, channel=_DEFAULT, options=None, resolved=None):
    user = _user() if user is _DEFAULT else user
    guild = _guild() if guild is _DEFAULT else guild
    channel = _channel() if channel is _DEFAULT else channel
    return SimpleNamespace(
        id=12345,
        user=user,
        guild=guild,
        channel=channel,
        guild_id=getattr(guild, "id", None),
        channel_id=getattr(channel, "id", None),
        data={"name": name, "type": 1, "options": options or [], "resolved": resolved or {}},
        _state=_state(),
    )


def _dm_interaction(name="ping", **kwargs):
    return _interaction(name, guild=None, channel=_channel(800, kind=discord.ChannelType.private), **kwargs)


class Ping(SlashCommand):
    def __init__(self, module_id="ping", **options):
        options.setdefault("name", "ping")
        super().__init__(module_id, **options)
        self.calls = []

    async def exec(self, context, options):
        self.calls.append(options)
        return "pong"


class Gate(SlashCommand):
    """Command that holds its lock until ``release`` is set."""

    def __init__(self, **options):
        super().__init__("gate", name="gate", **options)
        self.release = asyncio.Event()
        self.started = []

    async def exec(self, context, options):
        self.started.append(context.author.id)
        await self.release.wait()
        return len(self.started)


class Broken(SlashCommand):
    def __init__(self, **options):
        super().__init__("broken", name="broken", **options)

    async def exec(self, context, options):
        raise RuntimeError("handler failed")


class Verdict(Inhibitor):
    def __init__(self, module_id, *, phase, reason, block=True, priority=0):
        super().__init__(module_id, phase=phase, reason=reason, priority=priority)
        self.block = block
        self.calls = 0

    def exec(self, context, command=None):
        self.calls += 1
        return self.block


def _handler(*commands, inhibitors=(), **options):
    options.setdefault("block_client", True)
    options.setdefault("block_bots", True)
    options.setdefault("ignore_permissions", [])
    options.setdefault("skip_builtin_post_inhibitors", False)
    options.setdefault("execution_timeout", 0)
    client = _client()
    handler = SlashCommandHandler(client, **options)
    for command in commands:
        asyncio.run(handler.load(command))
    if inhibitors:
        inhibitor_handler = InhibitorHandler(client)
        for inhibitor in inhibitors:
            asyncio.run(inhibitor_handler.load(inhibitor))
        handler.use_inhibitor_handler(inhibitor_handler)
    return handler


def _record(handler, *events):
    seen = []
    for event in events or ALL_EVENTS:
        handler.add_listener(lambda *args, _event=event: seen.append((_event, args)), event)
    return seen


def _names(seen):
    return [event for event, _ in seen]


# ----------------------------- End-to-end ----------------------------- #


def test_dispatch_runs_command_and_reports_lifecycle():
    command = Ping()
    handler = _handler(command)
    seen = _record(handler)

    assert asyncio.run(handler.handle(_interaction("ping"))) is True

    assert _names(seen) == ["command_started", "command_finished"]
    context, finished_command, options, result = seen[1][1]
    assert finished_command is command
    assert context.command_name == "ping"
    assert options == {}
    assert result == "pong"
    assert command.calls == [{}]


def test_owner_only_blocks_non_owner():
    command = Ping(owner_only=True)
    handler = _handler(command)
    seen = _record(handler)

    assert asyncio.run(handler.handle(_interaction("ping"))) is False

    assert _names(seen) == ["command_blocked"]
    _, blocked_command, reason = seen[0][1]
    assert blocked_command is command
    assert reason == "owner"
    assert command.calls == []


def test_owner_only_allows_owner():
    handler = _handler(Ping(owner_only=True))

    assert asyncio.run(handler.handle(_interaction("ping", user=_user(OWNER_ID)))) is True


def test_async_is_owner_is_awaited():
    handler = _handler(Ping(owner_only=True))

    async def is_owner(user):
        return user.id == USER_ID

    handler.client.is_owner = is_owner

    assert asyncio.run(handler.handle(_interaction("ping"))) is True


def test_unknown_command_skips_inhibitors():
    guard = Verdict("guard", phase="all", reason="guard", block=False)
    handler = _handler(Ping(), inhibitors=[guard])
    seen = _record(handler)
    interaction = _interaction("pong")

    assert asyncio.run(handler.handle(interaction)) is False

    assert seen == [("command_not_found", (interaction,))]
    assert guard.calls == 0


def test_missing_user_permissions_block():
    command = Ping(user_permissions=["X"])
    channel = _channel(permissions={USER_ID: {"X": False}})
    handler = _handler(command)
    seen = _record(handler)

    assert asyncio.run(handler.handle(_interaction("ping", channel=channel))) is False

    assert _names(seen) == ["missing_permissions"]
    _, blocked_command, kind, missing = seen[0][1]
    assert blocked_command is command
    assert kind == "user"
    assert missing == ["X"]


# ----------------------------- Built-in checks ----------------------------- #


@pytest.mark.parametrize(
    "user, options, reason",
    [
        (None, {}, "author_not_found"),
        (_user(CLIENT_ID, bot=True), {"block_bots": False}, "client"),
        (_user(42, bot=True), {}, "bot"),
    ],
)
def test_all_phase_builtins_block_messages(user, options, reason):
    command = Ping()
    handler = _handler(command, **options)
    seen = _record(handler)

    assert asyncio.run(handler.handle(_interaction("ping", user=user))) is False

    assert _names(seen) == ["message_blocked"]
    assert seen[0][1][1] == reason
    assert command.calls == []


def test_bots_run_commands_when_not_blocked():
    handler = _handler(Ping(), block_bots=False)

    assert asyncio.run(handler.handle(_interaction("ping", user=_user(42, bot=True)))) is True


def test_guild_only_command_rejects_dm():
    handler = _handler(Ping(channel="guild"))
    seen = _record(handler)

    assert asyncio.run(handler.handle(_dm_interaction("ping"))) is False
    assert seen[0][0] == "command_blocked"
    assert seen[0][1][2] == "guild"


def test_dm_only_command_rejects_guild():
    handler = _handler(Ping(channel="dm"))
    seen = _record(handler)

    assert asyncio.run(handler.handle(_interaction("ping"))) is False
    assert seen[0][1][2] == "dm"
    assert asyncio.run(handler.handle(_dm_interaction("ping"))) is True


def test_unknown_channel_restriction_is_rejected():
    with pytest.raises(ValueError):
        Ping(channel="voice")


# ----------------------------- Custom inhibitors ----------------------------- #


def test_all_and_pre_inhibitors_emit_message_blocked():
    for phase in ("all", "pre"):
        command = Ping()
        handler = _handler(command, inhibitors=[Verdict("guard", phase=phase, reason="blacklist")])
        seen = _record(handler)

        assert asyncio.run(handler.handle(_interaction("ping"))) is False
        assert seen == [("message_blocked", (seen[0][1][0], "blacklist"))]
        assert command.calls == []


def test_custom_all_inhibitor_runs_before_builtin_checks():
    handler = _handler(Ping(), inhibitors=[Verdict("guard", phase="all", reason="maintenance")])
    seen = _record(handler)

    asyncio.run(handler.handle(_interaction("ping", user=_user(42, bot=True))))

    assert seen[0][1][1] == "maintenance"


def test_post_inhibitor_emits_command_blocked_with_command():
    command = Ping()
    handler = _handler(
        command,
        inhibitors=[
            Verdict("low", phase="post", reason="low", priority=1),
            Verdict("high", phase="post", reason="high", priority=9),
        ],
    )
    seen = _record(handler)

    assert asyncio.run(handler.handle(_interaction("ping"))) is False
    assert seen == [("command_blocked", (seen[0][1][0], command, "high"))]


def test_builtin_post_checks_run_before_post_inhibitors():
    guard = Verdict("guard", phase="post", reason="custom")
    handler = _handler(Ping(owner_only=True), inhibitors=[guard])
    seen = _record(handler)

    asyncio.run(handler.handle(_interaction("ping")))

    assert seen[0][1][2] == "owner"
    assert guard.calls == 0


def test_skip_builtin_post_inhibitors_skips_owner_and_channel_checks():
    handler = _handler(Ping(owner_only=True, channel="dm"), skip_builtin_post_inhibitors=True)

    assert asyncio.run(handler.handle(_interaction("ping"))) is True


def test_skip_builtin_post_inhibitors_defers_permission_checks():
    channel = _channel(permissions={USER_ID: {"X": False}})
    command = Ping(user_permissions=["X"])

    blocked = _handler(
        command,
        inhibitors=[Verdict("guard", phase="post", reason="custom")],
        skip_builtin_post_inhibitors=True,
    )
    seen = _record(blocked)
    assert asyncio.run(blocked.handle(_interaction("ping", channel=channel))) is False
    assert _names(seen) == ["command_blocked"]
    assert seen[0][1][2] == "custom"

    passing = _handler(
        Ping(user_permissions=["X"]),
        inhibitors=[Verdict("guard", phase="post", reason="custom", block=False)],
        skip_builtin_post_inhibitors=True,
    )
    seen = _record(passing)
    assert asyncio.run(passing.handle(_interaction("ping", channel=channel))) is False
    assert _names(seen) == ["missing_permissions"]


# ----------------------------- Permissions ----------------------------- #


def test_missing_client_permissions_block():
    command = Ping(client_permissions="send_messages")
    channel = _channel(permissions={CLIENT_ID: {"send_messages": False}, USER_ID: {}})
    handler = _handler(command)
    seen = _record(handler)

    assert asyncio.run(handler.handle(_interaction("ping", channel=channel))) is False
    assert seen[0][1][2:] == ("client", ["send_messages"])


def test_granted_permissions_pass():
    command = Ping(
        client_permissions=discord.Permissions(send_messages=True),
        user_permissions=["manage_messages"],
    )
    channel = _channel(
        permissions={
            CLIENT_ID: {"send_messages": True},
            USER_ID: {"manage_messages": True},
        }
    )
    handler = _handler(command)

    assert command.client_permissions == ["send_messages"]
    assert asyncio.run(handler.handle(_interaction("ping", channel=channel))) is True


def test_static_permissions_are_not_checked_in_dms():
    handler = _handler(Ping(user_permissions=["X"], client_permissions=["Y"]))

    assert asyncio.run(handler.handle(_dm_interaction("ping"))) is True


def test_uncached_client_member_skips_static_check(caplog):
    guild = SimpleNamespace(id=500, me=None)
    handler = _handler(Ping(client_permissions=["send_messages"]))

    with caplog.at_level(logging.DEBUG, logger="cogframe.commands.guards"):
        assert asyncio.run(handler.handle(_interaction("ping", guild=guild))) is True

    assert "Member not cached in guild 500" in caplog.text


def test_permission_functions_report_missing_values():
    async def needs_vip(context):
        return None if context.author.id == OWNER_ID else ["vip"]

    handler = _handler(Ping(user_permissions=needs_vip))
    seen = _record(handler)

    assert asyncio.run(handler.handle(_interaction("ping"))) is False
    assert seen[0][1][2:] == ("user", ["vip"])
    assert asyncio.run(handler.handle(_interaction("ping", user=_user(OWNER_ID)))) is True


def test_permission_functions_apply_in_dms():
    handler = _handler(Ping(client_permissions=lambda context: ["embed_links"]))

    assert asyncio.run(handler.handle(_dm_interaction("ping"))) is False


@pytest.mark.parametrize(
    "command_ignore, handler_ignore",
    [
        (USER_ID, []),
        ([USER_ID, 77], []),
        (lambda context, command: context.author.id == USER_ID, []),
        (None, [USER_ID]),
        (None, lambda context, command: True),
        (str(USER_ID), []),
        ([str(USER_ID)], []),
        (None, str(USER_ID)),
    ],
)
def test_ignored_users_bypass_user_permissions(command_ignore, handler_ignore):
    channel = _channel(permissions={USER_ID: {"X": False}})
    handler = _handler(
        Ping(user_permissions=["X"], ignore_permissions=command_ignore),
        ignore_permissions=handler_ignore,
    )

    assert asyncio.run(handler.handle(_interaction("ping", channel=channel))) is True


# ----------------------------- Locks ----------------------------- #


def test_same_user_lock_admits_one_execution():
    command = Gate(lock="user")
    handler = _handler(command)
    seen = _record(handler, "command_locked", "command_started")

    async def scenario():
        first = asyncio.create_task(handler.handle(_interaction("gate")))
        while not command.started:
            await asyncio.sleep(0)
        second = await handler.handle(_interaction("gate"))
        command.release.set()
        return await first, second

    first, second = asyncio.run(scenario())

    assert (first, second) == (True, True)
    assert command.started == [USER_ID]
    assert _names(seen) == ["command_started", "command_locked"]
    assert command.locker == set()


def test_different_users_run_concurrently_under_user_lock():
    command = Gate(lock="user")
    handler = _handler(command)
    seen = _record(handler, "command_locked")

    async def scenario():
        tasks = [
            asyncio.create_task(handler.handle(_interaction("gate", user=_user(uid))))
            for uid in (21, 22)
        ]
        while len(command.started) < 2:
            await asyncio.sleep(0)
        assert command.locker == {21, 22}
        command.release.set()
        return await asyncio.gather(*tasks)

    assert asyncio.run(scenario()) == [True, True]
    assert sorted(command.started) == [21, 22]
    assert seen == []
    assert command.locker == set()


def test_lock_is_released_after_handler_error():
    command = Broken(lock="channel")
    handler = _handler(command)
    errors = []
    handler.add_listener(lambda exc, context, cmd: errors.append((exc, cmd)), "error")

    assert asyncio.run(handler.handle(_interaction("broken"))) is False

    assert command.locker == set()
    assert isinstance(errors[0][0], RuntimeError)
    assert errors[0][1] is command


def test_lock_is_released_when_error_is_reraised():
    command = Broken(lock="guild")
    handler = _handler(command)

    with pytest.raises(RuntimeError, match="handler failed"):
        asyncio.run(handler.handle(_interaction("broken")))

    assert command.locker == set()


def test_custom_lock_key_uses_options():
    seen_keys = []

    async def by_target(context, options):
        seen_keys.append(options["target"])
        return f"target:{options['target']}"

    command = Ping(lock=by_target, options=[CommandOption("target", discord.AppCommandOptionType.string)])
    handler = _handler(command)
    options = [{"name": "target", "type": 3, "value": "alice"}]

    assert asyncio.run(handler.handle(_interaction("ping", options=options))) is True
    assert seen_keys == ["alice"]
    assert command.locker == set()


def test_falsy_lock_key_runs_without_locking():
    command = Ping(lock="guild")
    handler = _handler(command)

    assert asyncio.run(handler.handle(_dm_interaction("ping"))) is True
    assert command.locker == set()


def test_lock_key_errors_are_reported_and_command_skipped():
    def broken_key(context, options):
        raise KeyError("no key")

    command = Ping(lock=broken_key)
    handler = _handler(command)
    errors = []
    handler.add_listener(lambda exc, context, cmd: errors.append(exc), "error")

    assert asyncio.run(handler.handle(_interaction("ping"))) is False
    assert isinstance(errors[0], KeyError)
    assert command.calls == []


def test_unknown_lock_strategy_is_rejected():
    with pytest.raises(ValueError):
        Ping(lock="role")


def test_execution_timeout_releases_lock():
    class Slow(SlashCommand):
        def __init__(self):
            super().__init__("slow", name="slow", lock="user")

        async def exec(self, context, options):
            await asyncio.sleep(5)

    command = Slow()
    handler = _handler(command, execution_timeout=0.01)
    errors = []
    handler.add_listener(lambda exc, context, cmd: errors.append(exc), "error")

    assert asyncio.run(handler.handle(_interaction("slow"))) is False
    assert isinstance(errors[0], TimeoutError)
    assert command.locker == set()


# ----------------------------- Errors ----------------------------- #


def test_handler_errors_reraise_without_listeners():
    with pytest.raises(RuntimeError, match="handler failed"):
        asyncio.run(_handler(Broken()).handle(_interaction("broken")))


def test_inhibitor_errors_are_routed_to_error_listeners():
    class Exploding(Inhibitor):
        def __init__(self):
            super().__init__("exploding", phase="pre")

        def exec(self, context, command=None):
            raise ValueError("inhibitor failed")

    handler = _handler(Ping(), inhibitors=[Exploding()])
    errors = []
    handler.add_listener(lambda exc, context, cmd: errors.append((exc, cmd)), "error")

    assert asyncio.run(handler.handle(_interaction("ping"))) is None
    assert isinstance(errors[0][0], ValueError)
    assert errors[0][1] is handler.modules["ping"]


def test_sync_exec_is_supported():
    class Echo(SlashCommand):
        def __init__(self):
            super().__init__("echo", name="echo", options=[CommandOption("text", 3)])

        def exec(self, context, options):
            return options["text"]

    handler = _handler(Echo())
    seen = _record(handler, "command_finished")
    options = [{"name": "text", "type": 3, "value": "hi"}]

    assert asyncio.run(handler.handle(_interaction("echo", options=options))) is True
    assert seen[0][1][3] == "hi"


# ----------------------------- Registry ----------------------------- #


def test_command_names_must_be_unique():
    handler = _handler(Ping("ping"))

    with pytest.raises(AliasConflictError) as excinfo:
        asyncio.run(handler.load(Ping("ping_again", name="PING")))

    assert excinfo.value.code == "ALIAS_CONFLICT"
    assert set(handler.modules) == {"ping"}
    assert "ping_again" not in handler.categories["default"]
    assert handler.find_command("ping").id == "ping"


def test_find_command_is_case_insensitive_and_removal_frees_name():
    handler = _handler(Ping("ping", name="Ping"))

    assert handler.find_command("PING") is handler.modules["ping"]

    handler.remove("ping")
    assert handler.find_command("ping") is None
    asyncio.run(handler.load(Ping("ping2", name="ping")))
    assert handler.find_command("ping").id == "ping2"


def test_subcommands_are_routed_and_options_normalized():
    class ConfigSet(SlashCommand):
        def __init__(self):
            super().__init__(
                "config_set",
                name="config set",
                options=[
                    CommandOption(
                        "set",
                        discord.AppCommandOptionType.subcommand,
                        options=[
                            CommandOption("key", discord.AppCommandOptionType.string, required=True),
                            CommandOption("value", discord.AppCommandOptionType.string),
                            CommandOption("force", discord.AppCommandOptionType.boolean),
                        ],
                    )
                ],
            )

        async def exec(self, context, options):
            return options

    handler = _handler(ConfigSet())
    seen = _record(handler, "command_finished")
    raw = [{"name": "set", "type": 1, "options": [{"name": "key", "type": 3, "value": "prefix"}]}]

    assert asyncio.run(handler.handle(_interaction("config", options=raw))) is True
    assert seen[0][1][3] == {"subcommand": "set", "key": "prefix", "value": None, "force": False}
    assert seen[0][1][0].command_name == "config set"


def test_user_options_arrive_resolved():
    class Who(SlashCommand):
        def __init__(self):
            super().__init__(
                "who",
                name="who",
                options=[
                    CommandOption("target", discord.AppCommandOptionType.user, required=True),
                    CommandOption("note", discord.AppCommandOptionType.string),
                ],
            )

        async def exec(self, context, options):
            return options

    handler = _handler(Who())
    seen = _record(handler, "command_finished")
    raw = [{"name": "target", "type": 6, "value": "42"}]
    resolved = {"users": {"42": {"id": "42", "username": "someone"}}}

    assert asyncio.run(handler.handle(_interaction("who", options=raw, resolved=resolved))) is True
    options = seen[0][1][3]
    assert (options["target"].id, options["target"].name) == (42, "someone")
    assert options["note"] is None


def test_autocomplete_is_routed_to_command():
    calls = []

    class Search(SlashCommand):
        def __init__(self):
            super().__init__("search", name="search")

        async def autocomplete(self, interaction):
            calls.append(interaction)

    handler = _handler(Search())
    seen = _record(handler, "command_not_found")
    interaction = _interaction("search")
    missing = _interaction("nothing")

    asyncio.run(handler.handle_autocomplete(interaction))
    asyncio.run(handler.handle_autocomplete(missing))

    assert calls == [interaction]
    assert seen == [("command_not_found", (missing,))]


def test_setup_attaches_handler_to_client():
    attached = []
    client = SimpleNamespace(user=None, attach_command_handler=attached.append)

    handler = SlashCommandHandler(client)

    assert attached == [handler]
