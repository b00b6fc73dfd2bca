import logging

import discord
from discord.ext import commands

from erutcurts.changelog import (
    FollowingChannel,
    is_changelog_author,
    thread_name,
    translate_changelog,
)
from erutcurts.config import get_optional_int_env
from erutcurts.errors import UnsupportedLocaleError

logger = logging.getLogger(__name__)


class ChangelogCog(commands.Cog):
    """팔로우 중인 마인크래프트 체인지로그를 서버 언어로 번역합니다."""

    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self.changelogs_channel_id = get_optional_int_env("CHANGELOGS_CHANNEL_ID")

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message):
        # 채널 팔로우로 전달된 메시지만 처리
        if not message.flags.is_crossposted or message.guild is None:
            return
        if not is_changelog_author(message.author.name) or not message.content.strip():
            return
        if self.bot.translator is None:
            return
        if not await self.bot.settings.is_changelog_auto_translation_enabled(
            str(message.guild.id)
        ):
            return

        following = FollowingChannel.from_author_name(message.author.name)
        target_locale = str(message.guild.preferred_locale)
        logger.info(f"체인지로그 수신: {following} -> {message.guild.name} ({target_locale})")

        try:
            if message.channel.id == self.changelogs_channel_id and message.thread is None:
                await message.create_thread(name=thread_name(message.content))

            chunks = await translate_changelog(
                self.bot.translator, message.content, target_locale
            )
            for i, chunk in enumerate(chunks):
                # 원래 임베드는 마지막 메시지에 붙임
                embeds = message.embeds if i == len(chunks) - 1 else []
                await message.channel.send(chunk, embeds=embeds)
        except UnsupportedLocaleError as e:
            logger.warning(f"체인지로그 번역 건너뜀: {e}")
        except Exception as e:
            logger.error(f"체인지로그 번역 실패: {message.jump_url} ({e})", exc_info=True)
            await self.bot.notifications.reply_stack_trace(message, e)
