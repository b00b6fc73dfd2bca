import asyncio

import pytest

from erutcurts.changelog import (
    FollowingChannel,
    find_version,
    is_changelog_author,
    protect_formats,
    restore_formats,
    split_message,
    thread_name,
    translate_changelog,
)
from erutcurts.translator import Translator


class RecordingTranslator(Translator):
    def __init__(self):
        super().__init__()
        self.calls = []

    async def translate(self, text, source_locale, target_locale):
        self.calls.append((text, source_locale, target_locale))
        return f"번역: {text}"


def test_following_channel_from_author_name():
    channel = FollowingChannel.from_author_name("MINECRAFT #java-changelogs")
    assert channel == FollowingChannel(server_name="MINECRAFT", channel_name="java-changelogs")
    assert str(channel) == "MINECRAFT #java-changelogs"

    # 서버 이름에 # 이 있어도 마지막 # 기준
    channel = FollowingChannel.from_author_name("Server #1 #news")
    assert channel.server_name == "Server #1"
    assert channel.channel_name == "news"

    assert FollowingChannel.from_author_name("MINECRAFT") is None


def test_is_changelog_author():
    assert is_changelog_author("MINECRAFT #java-changelogs")
    assert is_changelog_author("MINECRAFT #bedrock-changelogs")
    assert not is_changelog_author("MINECRAFT #announcements")
    assert not is_changelog_author("Erutcurts")


@pytest.mark.parametrize(
    "text, expected",
    [
        ("Minecraft Beta & Preview - 1.20.50.20", "1.20.50.20"),
        ("Minecraft - 1.20.40 (Bedrock)", "1.20.40"),
        ("Minecraft Snapshot 23w07a", "23w07a"),
        ("No version here", None),
    ],
)
def test_find_version(text, expected):
    assert find_version(text) == expected


def test_thread_name():
    assert thread_name("## **Minecraft - 1.20.40 (Bedrock)**\nbody") == "Minecraft - 1.20.40 (Bedrock)"
    assert thread_name("***\nFixes for 1.20.41") == "Changelog 1.20.41"
    assert thread_name("***") == "Changelog"
    assert len(thread_name("a" * 150)) == 100


def test_protect_formats():
    text = "**New** `code` <@123> see https://minecraft.net/article <:emoji:42> <t:1700000000:R>"
    replaced, placeholder_map = protect_formats(text)

    assert replaced == "[P1]New[P2] [P3] [P4] see [P5] [P6] [P7]"
    assert placeholder_map["[P3]"] == "`code`"
    assert placeholder_map["[P5]"] == "https://minecraft.net/article"
    assert restore_formats(replaced, placeholder_map) == text


def test_fenced_code_is_protected_as_one_block():
    text = "Run\n```\n/structure load house ~ ~ ~\n```\ndone"
    replaced, placeholder_map = protect_formats(text)
    assert replaced == "Run\n[P1]\ndone"
    assert placeholder_map["[P1]"].startswith("```")


def test_restore_formats_handles_two_digit_tokens():
    text = " ".join(f"<@{i}>" for i in range(12))
    replaced, placeholder_map = protect_formats(text)
    assert "[P12]" in replaced
    assert restore_formats(replaced, placeholder_map) == text


def test_split_message():
    assert split_message("a\nb", limit=3) == ["a\nb"]
    assert split_message("aaaa\nbb", limit=3) == ["aaa", "a", "bb"]
    assert split_message("a\n\n\n", limit=1) == ["a"]
    assert split_message("") == []
    with pytest.raises(ValueError):
        split_message("a", limit=0)


def test_split_message_respects_limit():
    text = "\n".join(f"line {i} " + "x" * 40 for i in range(100))
    chunks = split_message(text, limit=2000)
    assert all(len(chunk) <= 2000 for chunk in chunks)
    assert "\n".join(chunks) == text


def test_translate_changelog_keeps_formats():
    translator = RecordingTranslator()
    content = "**Fixes**\nSee https://bugs.mojang.com/browse/MCPE-1"

    chunks = asyncio.run(translate_changelog(translator, content, "ko"))

    [(sent, source, target)] = translator.calls
    assert "https://" not in sent
    assert (source, target) == ("en-US", "ko")
    assert chunks == ["번역: **Fixes**\nSee https://bugs.mojang.com/browse/MCPE-1"]
