import logging
from typing import Optional

import discord
from discord import app_commands
from discord.ext import commands

from bot_modules.command_translator import command_text
from bot_modules.conversion import TARGET_TYPE_CHOICES
from bot_modules.notifications import create_default_embed
from bot_modules.package_mode import PackageSubcommand, reply_key
from erutcurts.localization import text
from erutcurts.structure import TargetType

from .structure_cog import send_converted

logger = logging.getLogger(__name__)


class PackageCog(commands.Cog):
    """/package 명령어"""

    package = app_commands.Group(
        name="package", description=command_text("Uses a package", "commands.package")
    )

    def __init__(self, bot: commands.Bot):
        self.bot = bot

    async def _execute(
        self,
        interaction: discord.Interaction,
        subcommand: PackageSubcommand,
        target_type: Optional[TargetType] = None,
    ) -> None:
        await interaction.response.defer()

        package_mode = self.bot.package_mode
        channel = interaction.channel
        enabled = await package_mode.is_enabled(channel, interaction.id)

        if enabled and subcommand == PackageSubcommand.CONVERT:
            start_message = await package_mode.find_start_message(channel, interaction.id)
            package_mode.set_enabled(channel.id, False)
            if start_message is not None:
                attachments = await package_mode.collect_attachments(channel, start_message)
                await send_converted(interaction, target_type, attachments)
                return
            # 캐시와 채널 기록이 다르면 기록을 따름
            enabled = False

        mode_after = subcommand.mode_after
        if mode_after is not None and mode_after != enabled:
            package_mode.set_enabled(channel.id, mode_after)

        await interaction.followup.send(
            embed=create_default_embed(
                text("package.title", interaction.locale),
                text(reply_key(subcommand, enabled), interaction.locale),
            )
        )

    @package.command(
        name="start", description=command_text("Starts a package", "commands.package.start")
    )
    async def start(self, interaction: discord.Interaction):
        await self._execute(interaction, PackageSubcommand.START)

    @package.command(
        name="cancel",
        description=command_text("Cancels the package", "commands.package.cancel"),
    )
    async def cancel(self, interaction: discord.Interaction):
        await self._execute(interaction, PackageSubcommand.CANCEL)

    @package.command(
        name="convert",
        description=command_text(
            "Converts all files in the package at once", "commands.package.convert"
        ),
    )
    @app_commands.rename(target_type="type")
    @app_commands.describe(
        target_type=command_text("Conversion target", "commands.convert.type")
    )
    @app_commands.choices(target_type=TARGET_TYPE_CHOICES)
    async def convert(
        self, interaction: discord.Interaction, target_type: app_commands.Choice[str]
    ):
        await self._execute(
            interaction, PackageSubcommand.CONVERT, TargetType.from_value(target_type.value)
        )

    @package.command(
        name="status",
        description=command_text("Shows the package status", "commands.package.status"),
    )
    async def status(self, interaction: discord.Interaction):
        await self._execute(interaction, PackageSubcommand.STATUS)
