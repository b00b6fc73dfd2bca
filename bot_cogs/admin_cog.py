import logging

import discord
from discord import app_commands
from discord.ext import commands

from bot_modules.command_translator import command_text
from bot_modules.data_request import DataRequest

logger = logging.getLogger(__name__)


class AdminCog(commands.Cog):
    """관리자 서버에만 등록되는 명령어"""

    def __init__(self, bot: commands.Bot):
        self.bot = bot

    @app_commands.command(
        name="datarequest",
        description=command_text("Sends a data request", "commands.datarequest"),
    )
    async def datarequest(self, interaction: discord.Interaction):
        await self.bot.notifications.send_embed(DataRequest.EXPORTED_FLAT_WORLD.create_embed())
        await interaction.response.send_message(
            f"Sent: {DataRequest.EXPORTED_FLAT_WORLD.name}", ephemeral=True
        )
