import asyncio
import os

import discord
import pytest

from bot_modules.attachments import download, download_all, structure_attachments
from bot_modules.command_translator import BundleTranslator, command_text
from bot_modules.conversion import chunked, converted_files
from bot_modules.notifications import (
    Notifications,
    create_log_embed,
    create_stack_trace_embed,
)
from conftest import structure_nbt
from erutcurts.errors import LevelVersionsUnavailableError
from erutcurts.structure import LevelVersions, TargetType, write_nbt

from test_data_request import FakeAttachment
from test_level import FakeDB


class FakeChannel:
    def __init__(self, fail=False):
        self.fail = fail
        self.sent = []

    async def send(self, embed=None):
        if self.fail:
            raise discord.DiscordException("missing access")
        self.sent.append(embed)


class FakeClient:
    def __init__(self, channel):
        self.channel = channel

    def get_channel(self, channel_id):
        return self.channel


def test_chunked():
    assert chunked(list(range(23))) == [list(range(10)), list(range(10, 20)), [20, 21, 22]]
    assert chunked([]) == []


def test_log_embed_fields():
    embed = create_log_embed(
        "Executed interaction: convert",
        None,
        "steve",
        [FakeAttachment("house.mcstructure"), FakeAttachment("tower.mcstructure")],
    )
    assert embed.title == "Log"
    assert [(f.name, f.value) for f in embed.fields] == [
        ("Guild", "DM"),
        ("User", "steve"),
        ("Files", "house.mcstructure, tower.mcstructure"),
    ]


def test_stack_trace_embed_is_truncated():
    try:
        raise RuntimeError("x" * 5000)
    except RuntimeError as e:
        embed = create_stack_trace_embed(e)
    assert embed.title == "Error"
    assert len(embed.description) == 4096


def test_notification_failures_are_logged_not_raised():
    channel = FakeChannel(fail=True)
    notifications = Notifications(FakeClient(channel), 1)
    asyncio.run(notifications.send_notification("Erutcurts is Now Ready!"))
    assert channel.sent == []

    channel = FakeChannel()
    asyncio.run(Notifications(FakeClient(channel), 1).send_notification("hello"))
    assert channel.sent[0].description == "hello"


def test_command_descriptions_are_localized():
    translator = BundleTranslator()
    string = command_text("Shows the help", "commands.help")

    japanese = asyncio.run(translator.translate(string, discord.Locale.japanese, None))
    english = asyncio.run(translator.translate(string, discord.Locale.american_english, None))
    korean = asyncio.run(translator.translate(string, discord.Locale.korean, None))
    plain = asyncio.run(
        translator.translate(discord.app_commands.locale_str("x"), discord.Locale.japanese, None)
    )

    assert japanese and japanese != english
    assert korean is None
    assert plain is None


def test_download_assigns_unique_names(tmp_path):
    attachments = [FakeAttachment("house.mcstructure", b"a"), FakeAttachment("house.mcstructure", b"b")]
    files = asyncio.run(download_all(attachments, str(tmp_path)))

    assert [os.path.basename(path) for _, path in files] == [
        "house.mcstructure",
        "house_1.mcstructure",
    ]
    with pytest.raises(FileExistsError):
        asyncio.run(download(attachments[0], str(tmp_path), assign_unique_name=False))


def test_structure_attachments_filter():
    attachments = [FakeAttachment("a.mcstructure"), FakeAttachment("b.mcpack")]
    assert [a.filename for a in structure_attachments(attachments)] == ["a.mcstructure"]


def test_converted_files_are_cleaned_up(temp_root):
    data = write_nbt(structure_nbt())
    attachments = [FakeAttachment("house.mcstructure", data), FakeAttachment("tower.mcstructure", data)]

    async def run():
        async with converted_files(
            TargetType.SINGLE_BEHAVIOR, attachments, LevelVersions(FakeDB())
        ) as uploads:
            names = sorted(upload.filename for upload in uploads)
            paths = [upload.fp.name for upload in uploads]
            assert all(os.path.exists(path) for path in paths)
        return names, paths

    names, paths = asyncio.run(run())
    assert names == ["house.mcpack", "tower.mcpack"]
    assert not any(os.path.exists(path) for path in paths)
    assert os.listdir(temp_root) == []


def test_world_conversion_without_level_versions(temp_root):
    requested = []

    async def on_missing():
        requested.append(True)

    async def run():
        async with converted_files(
            TargetType.WORLD, [FakeAttachment("house.mcstructure")], LevelVersions(FakeDB(), on_missing)
        ):
            pass

    with pytest.raises(LevelVersionsUnavailableError):
        asyncio.run(run())
    assert requested == [True]
