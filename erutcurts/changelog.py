"""
마인크래프트 공식 서버의 체인지로그 채널을 팔로우한 메시지를 번역합니다.

팔로우된 메시지는 작성자 이름이 `<서버 이름> #<채널 이름>` 형식인 웹훅으로 전달됩니다.
"""

import logging
import re
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel

from .config import MESSAGE_MAX_LENGTH, THREAD_NAME_MAX_LENGTH
from .translator import Translator

logger = logging.getLogger(__name__)

SOURCE_LOCALE = "en-US"

VERSION_PATTERN = re.compile(r"\d+\.\d+\.\d+(?:\.\d+)?|\d+w\d+a")

# --- 번역하지 않을 디스코드 서식 --- #
FENCED_CODE_PATTERN = r"```.*?```"
INLINE_CODE_PATTERN = r"`[^`\n]+`"
CUSTOM_EMOJI_PATTERN = r"<a?:\w+:\d+>"
TIMESTAMP_PATTERN = r"<t:-?\d+(?::[tTdDfFR])?>"
MENTION_PATTERN = r"<(?:@[!&]?|#)\d+>"
URL_PATTERN = r"<?https?://[^\s>)]+>?"
MARKDOWN_MARKER_PATTERN = r"\*\*|__|~~|\|\|"

SPECIAL_FORMAT_PATTERN = re.compile(
    "|".join(
        f"(?:{pattern})"
        for pattern in (
            FENCED_CODE_PATTERN,
            INLINE_CODE_PATTERN,
            CUSTOM_EMOJI_PATTERN,
            TIMESTAMP_PATTERN,
            MENTION_PATTERN,
            URL_PATTERN,
            MARKDOWN_MARKER_PATTERN,
        )
    ),
    re.DOTALL,
)


class FollowingChannel(BaseModel):
    """팔로우 중인 다른 서버의 공지 채널"""

    model_config = {"frozen": True}

    server_name: str
    channel_name: str

    @classmethod
    def from_author_name(cls, name: str) -> Optional["FollowingChannel"]:
        """
        팔로우 웹훅의 작성자 이름을 해석합니다.

        Args:
            name: 작성자 이름 (예: "MINECRAFT #java-changelogs")

        Returns:
            FollowingChannel, 형식이 맞지 않으면 None
        """
        index = name.rfind("#")
        if index < 0:
            return None
        return cls(server_name=name[:index].rstrip(), channel_name=name[index + 1 :])

    def __str__(self) -> str:
        return f"{self.server_name} #{self.channel_name}"


MINECRAFT_JAVA_CHANGELOGS = FollowingChannel(
    server_name="MINECRAFT", channel_name="java-changelogs"
)
MINECRAFT_BEDROCK_CHANGELOGS = FollowingChannel(
    server_name="MINECRAFT", channel_name="bedrock-changelogs"
)
CHANGELOG_CHANNELS = (MINECRAFT_JAVA_CHANGELOGS, MINECRAFT_BEDROCK_CHANGELOGS)


def is_changelog_author(name: str) -> bool:
    return FollowingChannel.from_author_name(name) in CHANGELOG_CHANNELS


def find_version(text: str) -> Optional[str]:
    """텍스트에서 처음 나오는 버전 (1.20.40, 23w07a 등)을 찾습니다."""
    match = VERSION_PATTERN.search(text)
    return match.group() if match else None


def thread_name(content: str) -> str:
    """체인지로그 첫 줄로 스레드 이름을 만듭니다."""
    first_line = content.strip().split("\n", 1)[0].strip()
    first_line = first_line.lstrip("#").strip().strip("*_").strip()
    if not first_line:
        version = find_version(content)
        first_line = f"Changelog {version}" if version else "Changelog"
    return first_line[:THREAD_NAME_MAX_LENGTH]


# 특수 형식 추출
def protect_formats(text: str) -> Tuple[str, Dict[str, str]]:
    """
    번역으로 깨지면 안 되는 서식을 [P<n>] 토큰으로 바꿉니다.

    Returns:
        (토큰으로 바뀐 텍스트, 토큰 -> 원래 문자열)
    """
    placeholder_map: Dict[str, str] = {}

    def replace(match: re.Match) -> str:
        token = f"[P{len(placeholder_map) + 1}]"
        placeholder_map[token] = match.group()
        return token

    replaced_text = SPECIAL_FORMAT_PATTERN.sub(replace, text)
    return replaced_text, placeholder_map


# 특수 형식 복원
def restore_formats(text: str, placeholder_map: Dict[str, str]) -> str:
    restored_text = text

    # [P1] 이 [P10] 의 앞부분을 바꾸지 않도록 긴 토큰부터 복원
    for token in sorted(placeholder_map, key=len, reverse=True):
        restored_text = restored_text.replace(token, placeholder_map[token])

    return restored_text


def split_message(text: str, limit: int = MESSAGE_MAX_LENGTH) -> List[str]:
    """
    디스코드 메시지 길이 제한에 맞게 텍스트를 나눕니다.

    가능하면 줄 단위로 나누고, 한 줄이 limit 보다 길면 그 줄을 잘라냅니다.
    """
    if limit <= 0:
        raise ValueError("limit must be positive")

    chunks: List[str] = []
    current = ""
    for line in text.split("\n"):
        while len(line) > limit:
            if current:
                chunks.append(current)
                current = ""
            chunks.append(line[:limit])
            line = line[limit:]

        candidate = f"{current}\n{line}" if current else line
        if len(candidate) > limit:
            chunks.append(current)
            current = line
        else:
            current = candidate

    if current:
        chunks.append(current)
    return [chunk for chunk in chunks if chunk.strip()]


async def translate_changelog(
    translator: Translator,
    content: str,
    target_locale: str,
    source_locale: str = SOURCE_LOCALE,
) -> List[str]:
    """
    체인지로그를 번역하여 메시지 단위로 나눠 반환합니다.

    Args:
        translator: 번역기
        content: 체인지로그 원문
        target_locale: 서버의 디스코드 로케일
        source_locale: 원문의 디스코드 로케일

    Returns:
        메시지 길이 제한 이하로 나눈 번역문
    """
    replaced_text, placeholder_map = protect_formats(content)
    translated = await translator.translate(replaced_text, source_locale, target_locale)
    restored = restore_formats(translated, placeholder_map)
    logger.info(
        f"체인지로그 번역 완료: {find_version(content) or '(버전 없음)'} -> {target_locale}"
    )
    return split_message(restored)
