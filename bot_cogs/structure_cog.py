import logging
from typing import List, Optional

import discord
from discord import app_commands
from discord.ext import commands

from bot_modules.attachments import structure_attachments
from bot_modules.command_translator import command_text
from bot_modules.conversion import TARGET_TYPE_CHOICES, chunked, converted_files
from bot_modules.notifications import create_default_embed
from erutcurts.config import DEFAULT_LOCALE
from erutcurts.errors import StructureFormatError
from erutcurts.localization import text
from erutcurts.structure import TargetType

logger = logging.getLogger(__name__)


async def send_converted(
    interaction: discord.Interaction,
    target_type: TargetType,
    attachments: List[discord.Attachment],
) -> None:
    """지연 응답한 상호작용에 변환 결과를 보냅니다."""
    bot = interaction.client
    if not attachments:
        await interaction.followup.send(
            embed=create_default_embed(
                text("error.title", interaction.locale),
                text("convert.no_structures", interaction.locale),
                discord.Color.red(),
            )
        )
        return

    async with converted_files(target_type, attachments, bot.level_versions) as files:
        for chunk in chunked(files):
            await interaction.followup.send(files=chunk)


class StructureCog(commands.Cog):
    """.mcstructure 파일의 자동 변환과 /convert 명령어"""

    def __init__(self, bot: commands.Bot):
        self.bot = bot

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message):
        if self.bot.is_self_message(message):
            return

        attachments = structure_attachments(message.attachments)
        if not attachments:
            return

        if message.guild is not None and not await self.bot.settings.is_pack_auto_generation_enabled(
            str(message.guild.id)
        ):
            return

        # 채널 기록을 읽어야 하므로 마지막에 확인
        if await self.bot.package_mode.is_enabled(message.channel):
            return

        try:
            async with message.channel.typing():
                await self.bot.notifications.send_log(
                    "Auto-generated pack.", message.guild, message.author, attachments
                )
                async with converted_files(
                    TargetType.BEHAVIOR, attachments, self.bot.level_versions
                ) as files:
                    await message.reply(files=files, mention_author=False)
        except StructureFormatError as e:
            logger.warning(f"자동 변환 실패: {message.jump_url} ({e})")
            locale = (
                str(message.guild.preferred_locale) if message.guild is not None else DEFAULT_LOCALE
            )
            await message.reply(
                embed=create_default_embed(
                    text("error.title", locale),
                    text("error.invalid_structure", locale, error=e),
                    discord.Color.red(),
                ),
                mention_author=False,
            )
        except Exception as e:
            logger.error(f"자동 변환 실패: {message.jump_url} ({e})", exc_info=True)
            await self.bot.notifications.reply_stack_trace(message, e)

    @app_commands.command(
        name="convert",
        description=command_text("Converts structure files", "commands.convert"),
    )
    @app_commands.rename(target_type="type")
    @app_commands.describe(
        target_type=command_text("Conversion target", "commands.convert.type"),
        file1=command_text(".mcstructure file to convert", "commands.convert.file"),
        file2=command_text(".mcstructure file to convert", "commands.convert.file"),
        file3=command_text(".mcstructure file to convert", "commands.convert.file"),
        file4=command_text(".mcstructure file to convert", "commands.convert.file"),
        file5=command_text(".mcstructure file to convert", "commands.convert.file"),
        file6=command_text(".mcstructure file to convert", "commands.convert.file"),
        file7=command_text(".mcstructure file to convert", "commands.convert.file"),
        file8=command_text(".mcstructure file to convert", "commands.convert.file"),
        file9=command_text(".mcstructure file to convert", "commands.convert.file"),
        file10=command_text(".mcstructure file to convert", "commands.convert.file"),
    )
    @app_commands.choices(target_type=TARGET_TYPE_CHOICES)
    async def convert(
        self,
        interaction: discord.Interaction,
        target_type: app_commands.Choice[str],
        file1: discord.Attachment,
        file2: Optional[discord.Attachment] = None,
        file3: Optional[discord.Attachment] = None,
        file4: Optional[discord.Attachment] = None,
        file5: Optional[discord.Attachment] = None,
        file6: Optional[discord.Attachment] = None,
        file7: Optional[discord.Attachment] = None,
        file8: Optional[discord.Attachment] = None,
        file9: Optional[discord.Attachment] = None,
        file10: Optional[discord.Attachment] = None,
    ):
        await interaction.response.defer()
        files = [
            f
            for f in (file1, file2, file3, file4, file5, file6, file7, file8, file9, file10)
            if f is not None
        ]
        await send_converted(
            interaction,
            TargetType.from_value(target_type.value),
            structure_attachments(files),
        )
