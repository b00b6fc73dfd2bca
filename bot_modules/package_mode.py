"""
패키지 모드

채널에서 /package start 를 실행하면 자동 변환을 멈추고, 이후 보낸 파일을
/package convert 로 한 번에 변환합니다. 상태는 따로 저장하지 않고 채널의
최근 기록에서 마지막으로 응답한 /package 명령어로 판단합니다.
"""

import logging
import time
from enum import Enum
from typing import Callable, List, Optional

import discord

from erutcurts.config import PACKAGE_CACHE_EXPIRE_AFTER, PACKAGE_HISTORY_LIMIT
from erutcurts.storage import ExpiringCache

from .attachments import structure_attachments

logger = logging.getLogger(__name__)

COMMAND_NAME = "package"


class PackageSubcommand(str, Enum):
    START = "start"
    CANCEL = "cancel"
    CONVERT = "convert"
    STATUS = "status"

    @property
    def mode_after(self) -> Optional[bool]:
        """실행 후의 패키지 모드 상태, 상태를 바꾸지 않으면 None"""
        if self == PackageSubcommand.START:
            return True
        if self == PackageSubcommand.STATUS:
            return None
        return False

    @classmethod
    def from_interaction_name(cls, name: Optional[str]) -> Optional["PackageSubcommand"]:
        """
        상호작용 이름 (예: "package start")에서 하위 명령어를 찾습니다.

        Returns:
            /package 명령어가 아니면 None
        """
        if not name:
            return None
        parts = name.split(" ")
        if len(parts) < 2 or parts[0].lower() != COMMAND_NAME:
            return None
        for subcommand in cls:
            if subcommand.value == parts[1].lower():
                return subcommand
        return None


def reply_key(subcommand: PackageSubcommand, enabled: bool) -> str:
    """
    변환하지 않는 경우의 응답 메시지 키를 정합니다.

    Args:
        subcommand: 실행한 하위 명령어
        enabled: 실행 전 패키지 모드 상태
    """
    if subcommand == PackageSubcommand.CONVERT:
        return "package.convert_not_started"
    if subcommand == PackageSubcommand.STATUS:
        return "package.status_started" if enabled else "package.status_not_started"
    if subcommand.mode_after == enabled:
        return "package.already_started" if enabled else "package.not_started"
    if subcommand == PackageSubcommand.START:
        return "package.started"
    return "package.cancelled"


def interaction_name(
    message: discord.Message, exclude_interaction_id: Optional[int] = None
) -> Optional[str]:
    interaction = message.interaction
    if interaction is None or interaction.id == exclude_interaction_id:
        return None
    return interaction.name


class PackageMode:
    """
    채널별 패키지 모드 상태

    Args:
        is_self: 메시지가 봇 자신의 메시지인지 판단하는 함수
        expire_after: 상태 캐시 만료 시간 (초)
        history_limit: 확인할 채널 기록 수
        clock: 현재 시각 함수
    """

    def __init__(
        self,
        is_self: Callable[[discord.Message], bool],
        expire_after: float = PACKAGE_CACHE_EXPIRE_AFTER,
        history_limit: int = PACKAGE_HISTORY_LIMIT,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.is_self = is_self
        self.history_limit = history_limit
        self.cache: ExpiringCache[int, bool] = ExpiringCache(expire_after, clock)

    async def find_start_message(
        self,
        channel: discord.abc.Messageable,
        exclude_interaction_id: Optional[int] = None,
    ) -> Optional[discord.Message]:
        """
        마지막으로 응답한 /package 명령어가 start 이면 그 메시지를 반환합니다.

        Args:
            channel: 확인할 채널
            exclude_interaction_id: 무시할 상호작용 ID (실행 중인 명령어의 지연 응답)
        """
        async for message in channel.history(limit=self.history_limit):
            if not self.is_self(message):
                continue
            subcommand = PackageSubcommand.from_interaction_name(
                interaction_name(message, exclude_interaction_id)
            )
            # status 는 상태를 바꾸지 않으므로 건너뜀
            if subcommand is None or subcommand.mode_after is None:
                continue
            return message if subcommand == PackageSubcommand.START else None
        return None

    async def is_enabled(
        self,
        channel: discord.abc.Messageable,
        exclude_interaction_id: Optional[int] = None,
    ) -> bool:
        cached = self.cache.get(channel.id)
        if cached is not None:
            return cached
        enabled = await self.find_start_message(channel, exclude_interaction_id) is not None
        self.cache.put(channel.id, enabled)
        return enabled

    def set_enabled(self, channel_id: int, enabled: bool) -> None:
        self.cache.put(channel_id, enabled)
        logger.info(f"패키지 모드 {'시작' if enabled else '종료'}: 채널 {channel_id}")

    async def collect_attachments(
        self, channel: discord.abc.Messageable, start_message: discord.Message
    ) -> List[discord.Attachment]:
        """시작 메시지 이후 사용자가 보낸 .mcstructure 첨부 파일"""
        attachments: List[discord.Attachment] = []
        async for message in channel.history(
            limit=self.history_limit, after=start_message, oldest_first=True
        ):
            if self.is_self(message):
                continue
            attachments.extend(structure_attachments(message.attachments))
        return attachments
