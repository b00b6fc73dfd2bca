import logging
from typing import Optional

import discord
from discord import app_commands

from erutcurts.errors import LevelVersionsUnavailableError, StructureFormatError
from erutcurts.localization import text

from .notifications import create_default_embed

logger = logging.getLogger(__name__)


def user_error_message(error: BaseException, locale: str) -> Optional[str]:
    """
    스택 트레이스 대신 사용자에게 안내할 오류 메시지를 만듭니다.

    Returns:
        안내 메시지, 예상하지 못한 오류이면 None
    """
    if isinstance(error, LevelVersionsUnavailableError):
        # 데이터 요청은 이미 보냈으므로 안내만 함
        return text("error.level_versions_unavailable", locale)
    if isinstance(error, StructureFormatError):
        return text("error.invalid_structure", locale, error=error)
    return None


class ErutcurtsTree(app_commands.CommandTree):
    """실행된 명령어를 알림 채널에 기록하고, 오류를 사용자와 알림 채널에 보고합니다."""

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        command = interaction.command
        if command is not None:
            logger.info(
                f"Executed interaction: {command.qualified_name} "
                f"({interaction.guild or 'DM'}, {interaction.user})"
            )
            await self.client.notifications.send_log(
                f"Executed interaction: {command.qualified_name}",
                interaction.guild,
                interaction.user,
            )
        return True

    async def on_error(
        self, interaction: discord.Interaction, error: app_commands.AppCommandError
    ) -> None:
        original = getattr(error, "original", error)
        command_name = interaction.command.qualified_name if interaction.command else "?"

        message = user_error_message(original, str(interaction.locale))
        if message is not None:
            logger.warning(f"{command_name}: {original}")
            embed = create_default_embed(
                text("error.title", interaction.locale), message, discord.Color.red()
            )
            if interaction.response.is_done():
                await interaction.followup.send(embed=embed)
            else:
                await interaction.response.send_message(embed=embed, ephemeral=True)
            return

        logger.exception(f"명령어 실행 중 오류 발생: {command_name}", exc_info=original)
        await self.client.notifications.reply_stack_trace(interaction, original)
