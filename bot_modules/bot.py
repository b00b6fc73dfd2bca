import logging
from typing import List, Optional, Sequence, Type

import discord
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from discord.ext import commands

from erutcurts.archive import delete_quietly, reset_temp_root
from erutcurts.config import (
    BOT_ACTIVITY,
    BOT_NAME,
    DEEPL_AUTH_KEY,
    TEMP_DIR,
    TRANSLATOR_API_BASE,
    TRANSLATOR_API_KEY,
    TRANSLATOR_MODEL,
    TRANSLATOR_PROVIDER,
    TRANSLATOR_REQUEST_DELAY,
    get_int_env,
)
from erutcurts.settings import GuildSettings
from erutcurts.storage import DiscordDB
from erutcurts.structure import LevelVersions
from erutcurts.translator import Translator, get_translator

from .command_translator import BundleTranslator
from .data_request import DataRequest
from .forum_backend import ForumBackend
from .notifications import Notifications
from .package_mode import PackageMode
from .tree import ErutcurtsTree

logger = logging.getLogger(__name__)


def create_intents() -> discord.Intents:
    intents = discord.Intents.none()
    intents.guilds = True
    intents.guild_messages = True
    intents.dm_messages = True
    intents.message_content = True
    return intents


def create_translator() -> Optional[Translator]:
    """설정된 번역기를 생성합니다. 키가 없으면 체인지로그 번역을 사용하지 않습니다."""
    api_key = DEEPL_AUTH_KEY if TRANSLATOR_PROVIDER == "deepl" else TRANSLATOR_API_KEY
    if TRANSLATOR_PROVIDER == "deepl" and not api_key:
        api_key = TRANSLATOR_API_KEY
    if not api_key and TRANSLATOR_PROVIDER != "ollama":
        logger.warning("번역 API 키가 없어 체인지로그 번역을 사용하지 않습니다.")
        return None
    return get_translator(
        TRANSLATOR_PROVIDER,
        api_key,
        TRANSLATOR_MODEL,
        api_base=TRANSLATOR_API_BASE,
        delay=TRANSLATOR_REQUEST_DELAY,
    )


class ErutcurtsBot(commands.Bot):
    """
    Erutcurts 디스코드 봇

    서비스 객체 (데이터베이스, 설정, 알림 등)를 보관하며, 기능은 bot_cogs 의 Cog 에 있습니다.
    """

    def __init__(
        self,
        cogs: Sequence[Type[commands.Cog]] = (),
        admin_cogs: Sequence[Type[commands.Cog]] = (),
    ):
        super().__init__(
            command_prefix=commands.when_mentioned,
            intents=create_intents(),
            activity=discord.Game(BOT_ACTIVITY),
            tree_cls=ErutcurtsTree,
            help_command=None,
        )
        self.notifications = Notifications(self, get_int_env("NOTIFICATION_CHANNEL_ID"))
        self.db = DiscordDB(ForumBackend(self, get_int_env("DATABASE_CHANNEL_ID")))
        self.settings = GuildSettings(self.db, self.joined_guild_ids)
        self.level_versions = LevelVersions(self.db, on_missing=self.request_level_versions)
        self.package_mode = PackageMode(self.is_self_message)
        self.scheduler = AsyncIOScheduler()
        self.translator: Optional[Translator] = None
        self.cog_classes = list(cogs)
        # 관리자 서버에만 등록되는 명령어
        self.admin_cog_classes = list(admin_cogs)

    def is_self_message(self, message: discord.Message) -> bool:
        return self.user is not None and message.author.id == self.user.id

    def joined_guild_ids(self) -> List[str]:
        return [str(guild.id) for guild in self.guilds]

    async def request_level_versions(self) -> None:
        await self.notifications.send_embed(DataRequest.EXPORTED_FLAT_WORLD.create_embed())

    async def setup_hook(self) -> None:
        reset_temp_root()

        self.db.schedule_expiry(self.scheduler)
        self.scheduler.start()

        self.translator = create_translator()
        if self.translator is not None:
            warning = self.translator.warning()
            if warning is not None:
                await self.notifications.send_notification(warning)

        await self.tree.set_translator(BundleTranslator())

        admin_guild = discord.Object(id=get_int_env("ADMIN_GUILD_ID"))
        for cog in self.cog_classes:
            await self.add_cog(cog(self))
        for cog in self.admin_cog_classes:
            await self.add_cog(cog(self), guild=admin_guild)

        admin_commands = await self.tree.sync(guild=admin_guild)
        global_commands = await self.tree.sync()
        logger.info(
            f"명령어 동기화 완료: 전역 {len(global_commands)}개, 관리자 {len(admin_commands)}개"
        )

    async def close(self) -> None:
        logger.info(f"{BOT_NAME} 종료 중...")
        if self.is_ready():
            await self.notifications.send_notification(f"{BOT_NAME} is now shutting down...")

        try:
            await self.db.flush()
        except Exception as e:
            logger.error(f"데이터베이스 기록 실패: {e}", exc_info=True)

        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)

        await super().close()
        delete_quietly(TEMP_DIR)
        logger.info(f"{BOT_NAME} 종료 완료")
