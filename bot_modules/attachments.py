import logging
import os
from typing import Iterable, List, Tuple

import aiofiles
import discord

from erutcurts.archive import generate_unique_path, is_extension, safe_filename
from erutcurts.structure import MCExtension

logger = logging.getLogger(__name__)


def attachments_with_extension(
    attachments: Iterable[discord.Attachment], extension: str
) -> List[discord.Attachment]:
    return [a for a in attachments if is_extension(a.filename, extension)]


def structure_attachments(attachments: Iterable[discord.Attachment]) -> List[discord.Attachment]:
    return attachments_with_extension(attachments, MCExtension.MCSTRUCTURE.value)


async def download(
    attachment: discord.Attachment, directory: str, assign_unique_name: bool = True
) -> str:
    """
    첨부 파일을 디렉토리에 저장합니다.

    Args:
        attachment: 디스코드 첨부 파일
        directory: 저장할 디렉토리
        assign_unique_name: 같은 이름의 파일이 있으면 name_1.ext 형식의 이름을 사용

    Returns:
        저장된 파일 경로
    """
    path = os.path.join(directory, safe_filename(attachment.filename))
    if assign_unique_name:
        path = generate_unique_path(path)
    elif os.path.exists(path):
        raise FileExistsError(f"파일이 이미 존재합니다: {path}")

    data = await attachment.read()
    async with aiofiles.open(path, mode="wb") as f:
        await f.write(data)
    logger.debug(f"첨부 파일 다운로드: {attachment.filename} -> {path}")
    return path


async def download_all(
    attachments: Iterable[discord.Attachment], directory: str
) -> List[Tuple[str, str]]:
    """(원래 파일 이름, 저장된 경로) 목록을 반환합니다."""
    return [
        (attachment.filename, await download(attachment, directory))
        for attachment in attachments
    ]
