import logging

import discord
from discord import app_commands
from discord.ext import commands

from bot_modules.command_translator import command_text
from bot_modules.notifications import create_default_embed
from erutcurts.localization import text
from erutcurts.settings import SettingsData

logger = logging.getLogger(__name__)


def create_settings_embed(data: SettingsData, locale: str) -> discord.Embed:
    def state(value: bool) -> str:
        return text("settings.enabled" if value else "settings.disabled", locale)

    embed = create_default_embed(text("settings.title", locale))
    embed.add_field(
        name=text("settings.pack_auto_generation", locale),
        value=state(data.pack_auto_generation),
        inline=False,
    )
    embed.add_field(
        name=text("settings.changelog_auto_translation", locale),
        value=state(data.changelog_auto_translation),
        inline=False,
    )
    return embed


class SettingsCog(commands.Cog):
    """/settings 명령어 (서버 전용)"""

    settings = app_commands.Group(
        name="settings",
        description=command_text("Manages the settings", "commands.settings"),
        guild_only=True,
    )
    set_group = app_commands.Group(
        name="set",
        description=command_text("Changes the settings", "commands.settings.set"),
        parent=settings,
    )

    def __init__(self, bot: commands.Bot):
        self.bot = bot

    async def _send_list(self, interaction: discord.Interaction) -> None:
        data = await self.bot.settings.get(str(interaction.guild_id))
        await interaction.followup.send(
            embed=create_settings_embed(data, str(interaction.locale))
        )

    async def _update(self, interaction: discord.Interaction, **changes) -> None:
        await interaction.response.defer()
        await self.bot.settings.update(str(interaction.guild_id), **changes)
        await self._send_list(interaction)

    @settings.command(
        name="list", description=command_text("Shows the settings", "commands.settings.list")
    )
    async def list_settings(self, interaction: discord.Interaction):
        await interaction.response.defer(ephemeral=True)
        await self._send_list(interaction)

    @set_group.command(
        name="autogenerate",
        description=command_text(
            "Changes structure auto-conversion", "commands.settings.set.autogenerate"
        ),
    )
    @app_commands.describe(
        value=command_text("Whether to enable it", "commands.settings.value")
    )
    async def set_autogenerate(self, interaction: discord.Interaction, value: bool):
        await self._update(interaction, pack_auto_generation=value)

    @set_group.command(
        name="auto-translate",
        description=command_text(
            "Changes changelog auto-translation", "commands.settings.set.auto-translate"
        ),
    )
    @app_commands.describe(
        value=command_text("Whether to enable it", "commands.settings.value")
    )
    async def set_auto_translate(self, interaction: discord.Interaction, value: bool):
        await self._update(interaction, changelog_auto_translation=value)
