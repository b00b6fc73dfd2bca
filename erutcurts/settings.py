import logging
from typing import Callable, Iterable, List, Optional

from pydantic import BaseModel

from .storage import DiscordDB

logger = logging.getLogger(__name__)

DATABASE_NAME = "Settings"


class SettingsData(BaseModel):
    """
    서버별 설정

    이전에 저장된 JSON 도 읽을 수 있도록 새 필드에는 반드시 기본값이 있어야 합니다.
    """

    guild_id: str
    pack_auto_generation: bool = True
    changelog_auto_translation: bool = True

    def is_default(self) -> bool:
        return self == SettingsData(guild_id=self.guild_id)


class GuildSettings:
    """
    기본값과 다른 서버 설정만 데이터베이스에 보관합니다.

    Args:
        db: DiscordDB 인스턴스
        guild_ids: 봇이 참가 중인 서버 ID 목록을 반환하는 함수
    """

    def __init__(self, db: DiscordDB, guild_ids: Callable[[], Iterable[str]]):
        self.db = db
        self.guild_ids = guild_ids

    def _format(self, settings: List[SettingsData]) -> List[SettingsData]:
        # 기본값과 같은 설정과 봇이 나간 서버의 설정은 제거
        joined = set(self.guild_ids())
        formatted = [s for s in settings if not s.is_default() and s.guild_id in joined]
        return sorted(formatted, key=lambda s: s.guild_id)

    async def _settings(self) -> List[SettingsData]:
        return await self.db.get(
            DATABASE_NAME, List[SettingsData], fallback=list, formatter=self._format
        )

    async def find(self, guild_id: str) -> Optional[SettingsData]:
        for data in await self._settings():
            if data.guild_id == guild_id:
                return data
        return None

    async def get(self, guild_id: str) -> SettingsData:
        data = await self.find(guild_id)
        return data if data is not None else SettingsData(guild_id=guild_id)

    async def is_pack_auto_generation_enabled(self, guild_id: str) -> bool:
        return (await self.get(guild_id)).pack_auto_generation

    async def is_changelog_auto_translation_enabled(self, guild_id: str) -> bool:
        return (await self.get(guild_id)).changelog_auto_translation

    async def update(self, guild_id: str, **changes) -> SettingsData:
        """
        서버 설정을 변경합니다.

        Args:
            guild_id: 서버 ID
            **changes: 변경할 필드와 값

        Returns:
            변경된 설정
        """
        unknown = set(changes) - set(SettingsData.model_fields)
        if unknown:
            raise ValueError(f"알 수 없는 설정입니다: {sorted(unknown)}")

        settings = await self._settings()
        old_data = await self.get(guild_id)
        new_data = SettingsData(**{**old_data.model_dump(), **changes})

        # 캐시의 리스트를 직접 수정하며, 만료 시 기록됨
        settings[:] = [s for s in settings if s.guild_id != guild_id]
        if not new_data.is_default():
            settings.append(new_data)
            settings.sort(key=lambda s: s.guild_id)

        logger.info(f"서버 설정 변경: {guild_id} {changes}")
        return new_data
