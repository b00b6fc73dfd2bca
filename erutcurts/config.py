import json
import os
import tempfile
from datetime import datetime, timezone
from typing import Optional

from dotenv import load_dotenv

from . import __version__
from .errors import MissingEnvironmentError

# .env 파일 로드
load_dotenv()

# 리소스 및 임시 파일 경로
RESOURCES_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "resources")
TEMP_DIR = os.path.join(tempfile.gettempdir(), "Erutcurts")

DEFAULT_PACK_ICON = os.path.join(RESOURCES_DIR, "default_pack_icon.png")
FIRST_LOAD_FUNCTION = os.path.join(RESOURCES_DIR, "first_load.mcfunction")
TEMPLATE_LEVEL = os.path.join(RESOURCES_DIR, "template_level.snbt")
TEXTS_DIR = os.path.join(RESOURCES_DIR, "texts")


def get_env(key: str) -> str:
    """
    필수 환경 변수를 읽습니다.

    Args:
        key: 환경 변수 이름

    Returns:
        환경 변수 값

    Raises:
        MissingEnvironmentError: 값이 없거나 비어 있을 때
    """
    value = os.getenv(key)
    if value is None or value.strip() == "":
        raise MissingEnvironmentError(key)
    return value


def get_int_env(key: str) -> int:
    """Discord ID 처럼 정수로 쓰이는 필수 환경 변수를 읽습니다."""
    return int(get_env(key))


def get_optional_int_env(key: str) -> Optional[int]:
    value = os.getenv(key)
    if value is None or value.strip() == "":
        return None
    return int(value)


# --- 봇 정보 --- #
BOT_NAME = "Erutcurts"
BOT_VERSION = __version__
BOT_DEVELOPER = "Risu (@risu729)"
GITHUB_URL = "https://github.com/risu729/erutcurts"
THEME_COLOR = (191, 148, 228)
DEFAULT_LOCALE = "ja"
SUPPORTED_LOCALES = ("ja", "en-US", "en-GB")
START_TIME = datetime.now(timezone.utc)

# help 에 표시되는 마지막 수정일
HELP_LAST_EDIT = datetime(2023, 3, 10, tzinfo=timezone.utc)

with open(
    os.path.join(RESOURCES_DIR, "bedrock-samples", "version.json"),
    "r",
    encoding="utf-8",
) as f:
    BEDROCK_SAMPLES_VERSION = json.load(f)["latest"]["version"]

# --- 디스코드 --- #
BOT_ACTIVITY = "Minecraft Bedrock Edition"
# 데이터베이스 포스트에서 확인할 최근 자기 메시지 수
DATABASE_HISTORY_LIMIT = 5
# 데이터베이스 캐시 만료 시간 (초, 마지막 접근 기준)
DATABASE_EXPIRE_AFTER = 180
# 패키지 모드 판정에 사용하는 채널 기록 수
PACKAGE_HISTORY_LIMIT = 50
# 패키지 모드 상태 캐시 만료 시간 (초)
PACKAGE_CACHE_EXPIRE_AFTER = 180
# Discord 메시지/임베드 길이 제한
MESSAGE_MAX_LENGTH = 2000
EMBED_DESCRIPTION_MAX_LENGTH = 4096
THREAD_NAME_MAX_LENGTH = 100

# --- 번역 --- #
DEEPL_AUTH_KEY = os.getenv("DEEPL_AUTH_KEY", "")
TRANSLATOR_PROVIDER = os.getenv("TRANSLATOR_PROVIDER", "deepl")
TRANSLATOR_MODEL = os.getenv("TRANSLATOR_MODEL", "")
TRANSLATOR_API_KEY = os.getenv("TRANSLATOR_API_KEY", "")
TRANSLATOR_API_BASE = os.getenv("TRANSLATOR_API_BASE")
TRANSLATOR_REQUEST_DELAY = float(os.getenv("TRANSLATOR_REQUEST_DELAY", "1.0"))

TEMPLATE_TRANSLATE_CHANGELOG = """You are translating a Minecraft changelog posted on Discord.
Translate the text inside <source_text> from {source_language} to {target_language}.

Rules:
- Keep every placeholder such as [P1] exactly as it is.
- Keep Minecraft block, item, entity and command names in their official {target_language} form when one exists.
- Keep line breaks and list markers.
- Output only the translated text.

<source_text>
{text}
</source_text>
"""

# --- 로깅 --- #
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", "erutcurts.log")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
