import io
import json
import logging
from typing import Optional

import discord

from erutcurts.config import DATABASE_HISTORY_LIMIT
from erutcurts.storage import StorageBackend

logger = logging.getLogger(__name__)

# 포럼 포스트를 만들 때 필요한 첫 메시지 (생성 직후 삭제)
DUMMY_MESSAGE = "\u200b"


def database_filename(name: str) -> str:
    return f"{name}.json"


class ForumBackend(StorageBackend):
    """
    포럼 채널의 포스트 하나를 데이터베이스 하나로 사용합니다.

    Args:
        client: 디스코드 클라이언트
        channel_id: 데이터베이스 포럼 채널 ID
        history_limit: 값을 찾을 최근 봇 메시지 수
    """

    def __init__(
        self,
        client: discord.Client,
        channel_id: int,
        history_limit: int = DATABASE_HISTORY_LIMIT,
    ):
        self.client = client
        self.channel_id = channel_id
        self.history_limit = history_limit

    async def _forum(self) -> discord.ForumChannel:
        channel = self.client.get_channel(self.channel_id)
        if channel is None:
            channel = await self.client.fetch_channel(self.channel_id)
        if not isinstance(channel, discord.ForumChannel):
            raise TypeError(f"데이터베이스 채널이 포럼이 아닙니다: {self.channel_id}")
        return channel

    async def find_post(self, name: str) -> Optional[discord.Thread]:
        forum = await self._forum()
        for thread in forum.threads:
            if thread.name == name:
                return thread
        async for thread in forum.archived_threads(limit=None):
            if thread.name == name:
                return thread
        return None

    async def get_or_create_post(self, name: str) -> discord.Thread:
        post = await self.find_post(name)
        if post is not None:
            return post

        forum = await self._forum()
        created = await forum.create_thread(name=name, content=DUMMY_MESSAGE)
        await created.message.delete()
        logger.info(f"데이터베이스 포스트 생성: {name}")
        return created.thread

    def _is_self_message(self, message: discord.Message) -> bool:
        return self.client.user is not None and message.author.id == self.client.user.id

    async def read(self, name: str) -> Optional[bytes]:
        post = await self.get_or_create_post(name)

        filename = database_filename(name)
        checked = 0
        # 다른 사용자가 덮어쓰지 못하도록 봇의 메시지만 확인
        async for message in post.history(limit=None):
            if not self._is_self_message(message):
                continue
            checked += 1
            if len(message.attachments) == 1 and message.attachments[0].filename == filename:
                data = await message.attachments[0].read()
                try:
                    json.loads(data)
                    return data
                except ValueError as e:
                    logger.warning(f"데이터베이스 {name} 의 JSON 을 읽을 수 없어 이전 값을 확인합니다: {e}")
            if checked >= self.history_limit:
                break
        return None

    async def write(self, name: str, data: bytes) -> None:
        post = await self.get_or_create_post(name)
        await post.send(file=discord.File(io.BytesIO(data), filename=database_filename(name)))
