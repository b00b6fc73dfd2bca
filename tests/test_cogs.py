import asyncio
import contextlib
from types import SimpleNamespace

import discord
import pytest
from discord import app_commands

from bot_cogs.changelog_cog import ChangelogCog
from bot_cogs.package_cog import PackageCog
from bot_cogs.structure_cog import StructureCog
from bot_modules.package_mode import PackageMode, PackageSubcommand
from bot_modules.tree import ErutcurtsTree
from erutcurts.errors import (
    LevelVersionsUnavailableError,
    StructureFormatError,
    UnsupportedLocaleError,
)
from erutcurts.localization import text
from erutcurts.structure import TargetType
from erutcurts.translator import Translator

from test_data_request import FakeAttachment
from test_package_mode import BOT_ID, FakeChannel, message as history_message

GUILD_ID = 5
CHANGELOGS_CHANNEL_ID = 300


class FakeSettings:
    def __init__(self, enabled=True):
        self.enabled = enabled
        self.calls = []

    async def is_pack_auto_generation_enabled(self, guild_id):
        self.calls.append(("pack", guild_id))
        return self.enabled

    async def is_changelog_auto_translation_enabled(self, guild_id):
        self.calls.append(("changelog", guild_id))
        return self.enabled


class FakeNotifications:
    def __init__(self):
        self.logs = []
        self.stack_traces = []

    async def send_log(self, message, guild, user, attachments=()):
        self.logs.append(message)

    async def reply_stack_trace(self, target, error):
        self.stack_traces.append(error)


class FakePackageMode:
    def __init__(self, enabled=False):
        self.enabled = enabled
        self.checked = []

    async def is_enabled(self, channel, exclude_interaction_id=None):
        self.checked.append(channel.id)
        return self.enabled


class FakeTranslator(Translator):
    def __init__(self, error=None):
        super().__init__()
        self.error = error
        self.calls = []

    async def translate(self, text, source_locale, target_locale):
        self.calls.append(target_locale)
        if self.error is not None:
            raise self.error
        return f"翻訳: {text}"


class FakeTextChannel:
    def __init__(self, channel_id=100):
        self.id = channel_id
        self.sent = []

    async def send(self, content=None, embeds=()):
        self.sent.append((content, list(embeds)))

    @contextlib.asynccontextmanager
    async def typing(self):
        yield


class FakeMessage:
    def __init__(
        self,
        author_id=2,
        author_name="steve",
        attachments=(),
        content="",
        crossposted=False,
        channel=None,
        guild=True,
    ):
        self.author = SimpleNamespace(id=author_id, name=author_name)
        self.attachments = list(attachments)
        self.content = content
        self.flags = SimpleNamespace(is_crossposted=crossposted)
        self.channel = channel or FakeTextChannel()
        self.guild = (
            SimpleNamespace(
                id=GUILD_ID, name="guild", preferred_locale=discord.Locale.japanese
            )
            if guild
            else None
        )
        self.thread = None
        self.embeds = []
        self.jump_url = "https://discord.com/channels/5/100/1"
        self.replies = []
        self.threads = []

    async def reply(self, files=None, embed=None, mention_author=True):
        self.replies.append((files, embed, mention_author))

    async def create_thread(self, name):
        self.threads.append(name)


def fake_bot(**overrides):
    bot = SimpleNamespace(
        settings=FakeSettings(),
        notifications=FakeNotifications(),
        package_mode=FakePackageMode(),
        level_versions=None,
        translator=FakeTranslator(),
        is_self_message=lambda m: m.author.id == BOT_ID,
    )
    for key, value in overrides.items():
        setattr(bot, key, value)
    return bot


# --- 자동 변환 --- #
@pytest.fixture
def fake_conversion(monkeypatch):
    converted = []

    @contextlib.asynccontextmanager
    async def converted_files(target_type, attachments, level_versions):
        converted.append((target_type, [a.filename for a in attachments]))
        yield ["pack"]

    monkeypatch.setattr("bot_cogs.structure_cog.converted_files", converted_files)
    return converted


def test_auto_generation_replies_with_pack(fake_conversion):
    bot = fake_bot()
    message = FakeMessage(
        attachments=[FakeAttachment("house.mcstructure"), FakeAttachment("notes.txt")]
    )

    asyncio.run(StructureCog(bot).on_message(message))

    assert fake_conversion == [(TargetType.BEHAVIOR, ["house.mcstructure"])]
    assert message.replies == [(["pack"], None, False)]
    assert bot.notifications.logs == ["Auto-generated pack."]


@pytest.mark.parametrize(
    "message_kwargs",
    [
        {"author_id": BOT_ID, "attachments": [FakeAttachment("house.mcstructure")]},
        {"attachments": [FakeAttachment("house.mcpack")]},
    ],
)
def test_auto_generation_ignores_before_reading_settings(fake_conversion, message_kwargs):
    bot = fake_bot()
    asyncio.run(StructureCog(bot).on_message(FakeMessage(**message_kwargs)))

    assert bot.settings.calls == []
    assert bot.package_mode.checked == []
    assert fake_conversion == []


def test_auto_generation_disabled_skips_package_mode_check(fake_conversion):
    bot = fake_bot(settings=FakeSettings(enabled=False))
    message = FakeMessage(attachments=[FakeAttachment("house.mcstructure")])

    asyncio.run(StructureCog(bot).on_message(message))

    assert bot.settings.calls == [("pack", str(GUILD_ID))]
    assert bot.package_mode.checked == []
    assert message.replies == []


def test_auto_generation_is_paused_in_package_mode(fake_conversion):
    bot = fake_bot(package_mode=FakePackageMode(enabled=True))
    message = FakeMessage(attachments=[FakeAttachment("house.mcstructure")])

    asyncio.run(StructureCog(bot).on_message(message))

    assert bot.package_mode.checked == [message.channel.id]
    assert fake_conversion == []
    assert message.replies == []


def test_auto_generation_reports_invalid_structure(monkeypatch):
    @contextlib.asynccontextmanager
    async def converted_files(target_type, attachments, level_versions):
        raise StructureFormatError("NBT 를 읽을 수 없습니다")
        yield

    monkeypatch.setattr("bot_cogs.structure_cog.converted_files", converted_files)
    bot = fake_bot()
    message = FakeMessage(attachments=[FakeAttachment("house.mcstructure")])

    asyncio.run(StructureCog(bot).on_message(message))

    [(files, embed, mention_author)] = message.replies
    assert files is None and not mention_author
    assert embed.description == text(
        "error.invalid_structure", "ja", error="NBT 를 읽을 수 없습니다"
    )
    assert bot.notifications.stack_traces == []


# --- /package --- #
class FakeResponse:
    def __init__(self, done=False):
        self.done = done
        self.sent = []

    async def defer(self, ephemeral=False):
        self.done = True

    def is_done(self):
        return self.done

    async def send_message(self, embed=None, ephemeral=False):
        self.done = True
        self.sent.append((embed, ephemeral))


class FakeFollowup:
    def __init__(self):
        self.sent = []

    async def send(self, embed=None, files=None):
        self.sent.append(embed if embed is not None else files)


def fake_interaction(channel=None, interaction_id=20, done=False, command_name="package convert"):
    return SimpleNamespace(
        id=interaction_id,
        locale=discord.Locale.american_english,
        channel=channel,
        guild=None,
        user="steve",
        command=SimpleNamespace(qualified_name=command_name),
        response=FakeResponse(done),
        followup=FakeFollowup(),
    )


def package_cog_with(messages):
    channel = FakeChannel(messages)
    package_mode = PackageMode(lambda m: m.author.id == BOT_ID)
    cog = PackageCog(fake_bot(package_mode=package_mode))
    return cog, channel, package_mode


def test_package_convert_collects_attachments_and_ends_mode(monkeypatch):
    sent = []

    async def send_converted(interaction, target_type, attachments):
        sent.append((target_type, [a.filename for a in attachments]))

    monkeypatch.setattr("bot_cogs.package_cog.send_converted", send_converted)
    start = history_message(BOT_ID, "package start", 10)
    cog, channel, package_mode = package_cog_with(
        [
            history_message(2, filenames=["b.mcstructure"]),
            history_message(3, filenames=["a.mcstructure", "notes.txt"]),
            start,
        ]
    )
    interaction = fake_interaction(channel)

    asyncio.run(cog._execute(interaction, PackageSubcommand.CONVERT, TargetType.WORLD))

    assert sent == [(TargetType.WORLD, ["a.mcstructure", "b.mcstructure"])]
    assert not asyncio.run(package_mode.is_enabled(channel))


def test_package_convert_without_start_replies_not_started(monkeypatch):
    async def send_converted(interaction, target_type, attachments):
        raise AssertionError("변환하면 안 됨")

    monkeypatch.setattr("bot_cogs.package_cog.send_converted", send_converted)
    cog, channel, _ = package_cog_with([history_message(BOT_ID, "package cancel", 10)])
    interaction = fake_interaction(channel)

    asyncio.run(cog._execute(interaction, PackageSubcommand.CONVERT, TargetType.BEHAVIOR))

    [embed] = interaction.followup.sent
    assert embed.description == text("package.convert_not_started", "en-US")


def test_package_start_enables_mode():
    cog, channel, package_mode = package_cog_with([])
    interaction = fake_interaction(channel, command_name="package start")

    asyncio.run(cog._execute(interaction, PackageSubcommand.START))

    [embed] = interaction.followup.sent
    assert embed.description == text("package.started", "en-US")
    assert asyncio.run(package_mode.is_enabled(channel))


# --- 체인지로그 --- #
@pytest.fixture
def changelog_env(monkeypatch):
    monkeypatch.setenv("CHANGELOGS_CHANNEL_ID", str(CHANGELOGS_CHANNEL_ID))


def changelog_message(channel_id=100, **kwargs):
    defaults = {
        "author_name": "MINECRAFT #bedrock-changelogs",
        "content": "**Minecraft Bedrock 1.20.40**\nFixed a crash",
        "crossposted": True,
        "channel": FakeTextChannel(channel_id),
    }
    defaults.update(kwargs)
    return FakeMessage(**defaults)


def test_changelog_is_translated_into_guild_locale(changelog_env):
    bot = fake_bot()
    message = changelog_message(CHANGELOGS_CHANNEL_ID)

    asyncio.run(ChangelogCog(bot).on_message(message))

    assert bot.translator.calls == ["ja"]
    assert message.threads == ["Minecraft Bedrock 1.20.40"]
    [(content, embeds)] = message.channel.sent
    assert content.startswith("翻訳: ")
    assert "**" in content


def test_changelog_thread_only_in_changelogs_channel(changelog_env):
    bot = fake_bot()
    message = changelog_message(100)

    asyncio.run(ChangelogCog(bot).on_message(message))

    assert message.threads == []
    assert len(message.channel.sent) == 1


@pytest.mark.parametrize(
    "message_kwargs",
    [
        {"crossposted": False},
        {"guild": False},
        {"author_name": "MINECRAFT #announcements"},
        {"content": "   "},
    ],
)
def test_changelog_gates(changelog_env, message_kwargs):
    bot = fake_bot()
    message = changelog_message(**message_kwargs)

    asyncio.run(ChangelogCog(bot).on_message(message))

    assert bot.settings.calls == []
    assert bot.translator.calls == []
    assert message.channel.sent == []


def test_changelog_without_translator(changelog_env):
    bot = fake_bot(translator=None)
    message = changelog_message()

    asyncio.run(ChangelogCog(bot).on_message(message))

    assert bot.settings.calls == []
    assert message.channel.sent == []


def test_changelog_disabled_by_guild_setting(changelog_env):
    bot = fake_bot(settings=FakeSettings(enabled=False))
    message = changelog_message()

    asyncio.run(ChangelogCog(bot).on_message(message))

    assert bot.settings.calls == [("changelog", str(GUILD_ID))]
    assert bot.translator.calls == []
    assert message.channel.sent == []


def test_changelog_unsupported_locale_is_skipped(changelog_env):
    bot = fake_bot(translator=FakeTranslator(error=UnsupportedLocaleError("ja")))
    message = changelog_message()

    asyncio.run(ChangelogCog(bot).on_message(message))

    assert message.channel.sent == []
    assert bot.notifications.stack_traces == []


def test_changelog_failure_is_reported(changelog_env):
    error = RuntimeError("API down")
    bot = fake_bot(translator=FakeTranslator(error=error))

    asyncio.run(ChangelogCog(bot).on_message(changelog_message()))

    assert bot.notifications.stack_traces == [error]


# --- 명령어 트리 --- #
def fake_tree(bot):
    tree = ErutcurtsTree.__new__(ErutcurtsTree)
    tree.client = bot
    return tree


def invoke_error(error):
    return app_commands.CommandInvokeError(SimpleNamespace(name="convert"), error)


@pytest.mark.parametrize("done", [False, True])
def test_level_versions_unavailable_is_explained(done):
    bot = fake_bot()
    interaction = fake_interaction(done=done, command_name="convert")

    asyncio.run(
        fake_tree(bot).on_error(interaction, invoke_error(LevelVersionsUnavailableError()))
    )

    expected = text("error.level_versions_unavailable", "en-US")
    if done:
        [embed] = interaction.followup.sent
        assert interaction.response.sent == []
    else:
        [(embed, ephemeral)] = interaction.response.sent
        assert ephemeral
    assert embed.description == expected
    assert bot.notifications.stack_traces == []


def test_invalid_structure_is_explained():
    bot = fake_bot()
    interaction = fake_interaction(done=True, command_name="convert")

    asyncio.run(
        fake_tree(bot).on_error(interaction, invoke_error(StructureFormatError("broken")))
    )

    [embed] = interaction.followup.sent
    assert embed.description == text("error.invalid_structure", "en-US", error="broken")


def test_unexpected_error_sends_stack_trace():
    bot = fake_bot()
    error = RuntimeError("boom")

    asyncio.run(fake_tree(bot).on_error(fake_interaction(), invoke_error(error)))

    assert bot.notifications.stack_traces == [error]


def test_interaction_check_logs_command():
    bot = fake_bot()
    interaction = fake_interaction(command_name="settings list")

    assert asyncio.run(fake_tree(bot).interaction_check(interaction))
    assert bot.notifications.logs == ["Executed interaction: settings list"]
