import logging
from typing import Optional

import discord
from discord import app_commands

from erutcurts.localization import bundle_language, has_text, text
from erutcurts.translator import language_of

logger = logging.getLogger(__name__)


def command_text(default: str, key: str) -> app_commands.locale_str:
    """메시지 번들의 키를 가진 명령어 설명 문자열"""
    return app_commands.locale_str(default, key=key)


class BundleTranslator(app_commands.Translator):
    """명령어 설명과 선택지 이름을 메시지 번들로 현지화합니다."""

    async def load(self) -> None:
        logger.info("명령어 현지화 번역기 로드")

    async def translate(
        self,
        string: app_commands.locale_str,
        locale: discord.Locale,
        context: app_commands.TranslationContextTypes,
    ) -> Optional[str]:
        key = string.extras.get("key")
        # 번들이 없는 언어는 기본 설명 (영어)을 그대로 사용
        if key is None or bundle_language(str(locale)) != language_of(str(locale)):
            return None
        if not has_text(key, str(locale)):
            return None
        return text(key, str(locale))
