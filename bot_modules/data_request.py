"""
관리자에게 봇이 만들 수 없는 데이터를 요청합니다.

요청은 알림 채널의 "Data Request" 임베드로 보내지며, 관리자가 그 메시지에
파일을 첨부하여 답장하면 요청 종류에 맞게 처리됩니다.
"""

import asyncio
import logging
from enum import Enum
from typing import List, Optional

import discord
from nbtlib.tag import Compound

from erutcurts.archive import extract_member, is_extension, temporary_directory
from erutcurts.structure import LevelVersions, MCExtension, read_nbt_file
from erutcurts.structure.world import LEVEL_FILENAME

from .attachments import download
from .notifications import create_default_embed

logger = logging.getLogger(__name__)

DATA_REQUEST_TITLE = "Data Request"


def extract_level(world_path: str, directory: str) -> Compound:
    """
    .mcworld 에서 level.dat 을 꺼내 읽습니다.

    Args:
        world_path: .mcworld 파일 경로
        directory: level.dat 을 추출할 디렉토리

    Returns:
        헤더를 제외한 level.dat 의 루트 Compound
    """
    level_path = extract_member(world_path, LEVEL_FILENAME, directory)
    return read_nbt_file(level_path, has_header=True)


class DataRequest(Enum):
    EXPORTED_FLAT_WORLD = (
        "LevelVersions data could not be found.\n"
        "Please create and export a new flat world and reply to this message.\n"
        'Leave the flat world settings as default except for the "Flat World" toggle.'
    )

    @property
    def description(self) -> str:
        return self.value

    @classmethod
    def from_embed(cls, embed: discord.Embed) -> Optional["DataRequest"]:
        if embed.title != DATA_REQUEST_TITLE:
            return None
        for request in cls:
            if request.description == embed.description:
                return request
        return None

    def create_embed(self) -> discord.Embed:
        return create_default_embed(
            DATA_REQUEST_TITLE, self.description, discord.Color.orange()
        )


async def process_exported_flat_world(
    attachments: List[discord.Attachment], level_versions: LevelVersions
) -> None:
    """
    내보낸 평지 월드에서 LevelVersions 를 갱신합니다.

    Raises:
        ValueError: .mcworld 첨부 파일이 정확히 하나가 아닐 때
    """
    if len(attachments) != 1 or not is_extension(
        attachments[0].filename, MCExtension.MCWORLD.value
    ):
        raise ValueError("Exactly one .mcworld attachment is required.")

    with temporary_directory() as temp_dir:
        world_path = await download(attachments[0], temp_dir, assign_unique_name=False)
        level = await asyncio.to_thread(
            extract_level, world_path, temp_dir
        )
        await level_versions.update_from_level(level)


async def process(
    request: DataRequest,
    attachments: List[discord.Attachment],
    level_versions: LevelVersions,
) -> None:
    logger.info(f"데이터 요청 처리: {request.name} (첨부 파일 {len(attachments)}개)")
    if request == DataRequest.EXPORTED_FLAT_WORLD:
        await process_exported_flat_world(attachments, level_versions)
