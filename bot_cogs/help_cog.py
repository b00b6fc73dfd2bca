import logging
from datetime import datetime, timezone

import discord
from discord import app_commands
from discord.ext import commands

from bot_modules.command_translator import command_text
from bot_modules.notifications import create_default_embed
from erutcurts.config import GITHUB_URL, HELP_LAST_EDIT, get_int_env
from erutcurts.localization import text, text_variables

logger = logging.getLogger(__name__)

# (메시지 키, 변수 이름)
INFO_FIELDS = [
    ("info.name", "NAME"),
    ("info.version", "VERSION"),
    ("info.developer", "DEVELOPER"),
    ("info.supported_languages", "SUPPORTED_LANGUAGES"),
    ("info.python_version", "PYTHON_VERSION"),
    ("info.python_implementation", "PYTHON_IMPLEMENTATION"),
    ("info.server_os", "SERVER_OS"),
    ("info.discord_py_version", "DISCORD_PY_VERSION"),
    ("info.bedrock_samples_version", "BEDROCK_SAMPLES_VERSION"),
    ("info.start_time", "START_TIME"),
]


def ping_ms(created_at: datetime) -> int:
    return int((datetime.now(timezone.utc) - created_at).total_seconds() * 1000)


def create_info_embed(locale: str, ping: int) -> discord.Embed:
    embed = create_default_embed(text("info.title", locale))
    variables = text_variables()
    for key, variable in INFO_FIELDS:
        embed.add_field(name=text(key, locale), value=variables[variable], inline=True)
    embed.add_field(name=text("info.ping", locale), value=f"{ping} ms", inline=True)
    return embed


class HelpCog(commands.Cog):
    """/help 명령어"""

    def __init__(self, bot: commands.Bot):
        self.bot = bot

    async def admin_name(self) -> str:
        user_id = get_int_env("ADMIN_USER_ID")
        user = self.bot.get_user(user_id) or await self.bot.fetch_user(user_id)
        return user.name

    @app_commands.command(
        name="help", description=command_text("Shows the help", "commands.help")
    )
    @app_commands.describe(
        info=command_text("Whether to show detailed information", "commands.help.info")
    )
    async def help(self, interaction: discord.Interaction, info: bool = False):
        locale = str(interaction.locale)
        help_embed = create_default_embed(
            text("help.title", locale),
            text("help.description", locale, admin=await self.admin_name()),
        )
        help_embed.timestamp = HELP_LAST_EDIT
        embeds = [help_embed]
        if info:
            embeds.append(create_info_embed(locale, ping_ms(interaction.created_at)))

        view = discord.ui.View()
        view.add_item(discord.ui.Button(label=text("help.github", locale), url=GITHUB_URL))
        await interaction.response.send_message(embeds=embeds, view=view, ephemeral=True)
