import json
import logging
import os
import platform
from functools import lru_cache
from typing import Dict

import discord

from .config import (
    BEDROCK_SAMPLES_VERSION,
    BOT_DEVELOPER,
    BOT_NAME,
    BOT_VERSION,
    DEFAULT_LOCALE,
    START_TIME,
    SUPPORTED_LOCALES,
    TEXTS_DIR,
)
from .translator import LANGUAGE_NAMES, language_of

logger = logging.getLogger(__name__)

BUNDLE_FILENAME_FORMAT = "messages_{language}.json"


def bundle_language(locale: str) -> str:
    """
    로케일에 사용할 메시지 번들의 언어를 정합니다.

    지원하지 않는 로케일은 기본 로케일의 번들을 사용합니다.
    """
    supported = {language_of(supported_locale) for supported_locale in SUPPORTED_LOCALES}
    language = language_of(str(locale))
    return language if language in supported else language_of(DEFAULT_LOCALE)


@lru_cache(maxsize=None)
def load_bundle(language: str) -> Dict[str, str]:
    path = os.path.join(TEXTS_DIR, BUNDLE_FILENAME_FORMAT.format(language=language))
    with open(path, "r", encoding="utf-8") as f:
        bundle = json.load(f)
    logger.debug(f"메시지 번들 로드: {path} ({len(bundle)}개)")
    return bundle


def text_variables() -> Dict[str, str]:
    """메시지의 $NAME$ 형식 변수"""
    return {
        "NAME": BOT_NAME,
        "VERSION": BOT_VERSION,
        "DEVELOPER": BOT_DEVELOPER,
        "SUPPORTED_LANGUAGES": ", ".join(
            LANGUAGE_NAMES.get(locale, locale) for locale in SUPPORTED_LOCALES
        ),
        "PYTHON_VERSION": platform.python_version(),
        "PYTHON_IMPLEMENTATION": platform.python_implementation(),
        "SERVER_OS": f"{platform.system()} {platform.release()}",
        "DISCORD_PY_VERSION": discord.__version__,
        "BEDROCK_SAMPLES_VERSION": BEDROCK_SAMPLES_VERSION,
        "START_TIME": START_TIME.replace(second=0, microsecond=0).isoformat(),
    }


def substitute_variables(template: str, variables: Dict[str, str]) -> str:
    result = template
    for name, value in variables.items():
        result = result.replace(f"${name}$", value)
    return result


def text(key: str, locale: str = DEFAULT_LOCALE, **fmt) -> str:
    """
    로케일에 맞는 메시지를 가져옵니다.

    Args:
        key: 메시지 키 (예: "package.started")
        locale: 디스코드 로케일
        **fmt: 메시지의 {name} 자리에 넣을 값

    Returns:
        변수가 치환된 메시지

    Raises:
        KeyError: 번들에 키가 없을 때
    """
    bundle = load_bundle(bundle_language(locale))
    if key not in bundle:
        raise KeyError(f"메시지 키가 없습니다: {key}")

    message = bundle[key]
    if "$" in message:
        message = substitute_variables(message, text_variables())
    if fmt:
        message = message.format(**fmt)
    return message


def has_text(key: str, locale: str = DEFAULT_LOCALE) -> bool:
    return key in load_bundle(bundle_language(locale))
