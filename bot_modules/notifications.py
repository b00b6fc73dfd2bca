import logging
import traceback
from typing import Iterable, Optional, Union

import discord

from erutcurts.config import EMBED_DESCRIPTION_MAX_LENGTH, THEME_COLOR

logger = logging.getLogger(__name__)


# --- 임베드 --- #
def create_default_embed(
    title: str,
    description: Optional[str] = None,
    color: Optional[discord.Color] = None,
) -> discord.Embed:
    """테마 색상을 사용하는 기본 임베드"""
    return discord.Embed(
        title=title,
        description=description,
        color=color if color is not None else discord.Color.from_rgb(*THEME_COLOR),
    )


def truncate(text: str, limit: int = EMBED_DESCRIPTION_MAX_LENGTH) -> str:
    return text if len(text) <= limit else text[:limit]


def create_stack_trace_embed(error: BaseException) -> discord.Embed:
    stack_trace = "".join(
        traceback.format_exception(type(error), error, error.__traceback__)
    )
    return create_default_embed("Error", truncate(stack_trace), discord.Color.red())


def create_log_embed(
    message: str,
    guild: Optional[discord.Guild],
    user: Union[discord.User, discord.Member],
    attachments: Iterable[discord.Attachment] = (),
) -> discord.Embed:
    embed = create_default_embed("Log", message, discord.Color.green())
    embed.add_field(name="Guild", value="DM" if guild is None else guild.name, inline=False)
    embed.add_field(name="User", value=str(user), inline=False)
    filenames = [attachment.filename for attachment in attachments]
    if filenames:
        embed.add_field(name="Files", value=truncate(", ".join(filenames), 1024), inline=False)
    return embed


class Notifications:
    """
    관리용 알림 채널로 알림, 로그, 오류를 보냅니다.

    Args:
        client: 디스코드 클라이언트
        channel_id: 알림 채널 ID
    """

    def __init__(self, client: discord.Client, channel_id: int):
        self.client = client
        self.channel_id = channel_id

    async def _channel(self) -> discord.abc.Messageable:
        channel = self.client.get_channel(self.channel_id)
        if channel is None:
            channel = await self.client.fetch_channel(self.channel_id)
        return channel

    async def _send(self, embed: discord.Embed) -> Optional[discord.Message]:
        # 알림 실패로 원래 작업이 중단되지 않도록 로그만 남김
        try:
            channel = await self._channel()
            return await channel.send(embed=embed)
        except discord.DiscordException as e:
            logger.error(f"알림 전송 실패: {embed.title} ({e})")
            return None

    async def send_notification(self, message: str) -> None:
        logger.info(f"알림: {message}")
        await self._send(create_default_embed("Notification", message))

    async def send_embed(self, embed: discord.Embed) -> None:
        await self._send(embed)

    async def send_log(
        self,
        message: str,
        guild: Optional[discord.Guild],
        user: Union[discord.User, discord.Member],
        attachments: Iterable[discord.Attachment] = (),
    ) -> None:
        await self._send(create_log_embed(message, guild, user, attachments))

    async def reply_stack_trace(
        self,
        target: Union[discord.Interaction, discord.Message],
        error: BaseException,
    ) -> None:
        """
        오류의 스택 트레이스를 원래 상호작용이나 메시지에 답장하고 알림 채널에도 보냅니다.

        Args:
            target: 오류가 발생한 상호작용 또는 메시지
            error: 발생한 예외
        """
        embed = create_stack_trace_embed(error)
        try:
            if isinstance(target, discord.Interaction):
                if target.response.is_done():
                    await target.followup.send(embed=embed)
                else:
                    await target.response.send_message(embed=embed, ephemeral=True)
            else:
                await target.reply(embed=embed, mention_author=False)
        except discord.DiscordException as e:
            logger.error(f"오류 답장 실패: {e}")
        await self._send(embed)
