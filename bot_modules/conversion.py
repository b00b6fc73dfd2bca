import asyncio
import contextlib
import logging
import os
from typing import AsyncIterator, Iterable, List, Sequence, TypeVar

import discord
from discord import app_commands

from erutcurts.archive import delete_quietly, temporary_directory
from erutcurts.structure import LevelVersions, TargetType, structures_from_files

from .attachments import download_all
from .command_translator import command_text

logger = logging.getLogger(__name__)

T = TypeVar("T")

# 메시지 하나에 첨부할 수 있는 최대 파일 수
MAX_FILES_PER_MESSAGE = 10

TARGET_TYPE_CHOICES = [
    app_commands.Choice(
        name=command_text(target_type.value, f"choices.type.{target_type.value}"),
        value=target_type.value,
    )
    for target_type in TargetType
]


def chunked(items: Sequence[T], size: int = MAX_FILES_PER_MESSAGE) -> List[List[T]]:
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


@contextlib.asynccontextmanager
async def converted_files(
    target_type: TargetType,
    attachments: Iterable[discord.Attachment],
    level_versions: LevelVersions,
) -> AsyncIterator[List[discord.File]]:
    """
    첨부 파일을 변환하여 업로드할 파일 목록을 제공합니다.

    블록이 끝나면 다운로드한 파일과 생성된 파일을 모두 삭제합니다.

    Args:
        target_type: 변환 대상
        attachments: .mcstructure 첨부 파일
        level_versions: 월드 변환에 사용할 LevelVersions

    Raises:
        LevelVersionsUnavailableError: 월드 변환에 필요한 데이터가 없을 때
    """
    versions = await level_versions.get() if target_type.needs_level_versions else None

    with temporary_directory() as download_dir:
        files = await download_all(attachments, download_dir)
        structures = structures_from_files(files)
        outputs = await asyncio.to_thread(target_type.convert, structures, versions)

    uploads = [discord.File(path) for path in outputs]
    try:
        yield uploads
    finally:
        for upload in uploads:
            upload.close()
        for path in outputs:
            delete_quietly(os.path.dirname(path))
        logger.debug(f"변환 결과 정리 완료: {len(outputs)}개")
