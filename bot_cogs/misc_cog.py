import logging

import discord
from discord.ext import commands

from bot_modules.data_request import DataRequest, process
from erutcurts.config import BOT_NAME

logger = logging.getLogger(__name__)


class MiscCog(commands.Cog):
    """준비 완료, 서버 참가/퇴장 알림과 데이터 요청 답장 처리"""

    def __init__(self, bot: commands.Bot):
        self.bot = bot

    @commands.Cog.listener()
    async def on_ready(self):
        guild_names = [guild.name for guild in self.bot.guilds]
        await self.bot.notifications.send_notification(
            f"{BOT_NAME} is Now Ready!\nJoining Guilds: {guild_names}"
        )

    @commands.Cog.listener()
    async def on_guild_join(self, guild: discord.Guild):
        # 멤버 수는 권한이 필요한 GUILD_MEMBERS 인텐트가 필요하므로 표시하지 않음
        owner = guild.owner or await self.bot.fetch_user(guild.owner_id)
        await self.bot.notifications.send_notification(
            f"Joined Guild: {guild.name}, Owner: {owner.name}"
        )

    @commands.Cog.listener()
    async def on_guild_remove(self, guild: discord.Guild):
        await self.bot.notifications.send_notification(f"Left Guild: {guild.name}")

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message):
        reference = message.reference
        if reference is None or reference.message_id is None:
            return

        referenced = reference.resolved
        if not isinstance(referenced, discord.Message):
            try:
                referenced = await message.channel.fetch_message(reference.message_id)
            except discord.NotFound:
                return
        if not self.bot.is_self_message(referenced) or len(referenced.embeds) != 1:
            return

        request = DataRequest.from_embed(referenced.embeds[0])
        if request is None:
            return

        try:
            await process(request, message.attachments, self.bot.level_versions)
            await message.add_reaction("✅")
        except Exception as e:
            logger.error(f"데이터 요청 처리 실패: {request.name} ({e})", exc_info=True)
            await self.bot.notifications.reply_stack_trace(message, e)
