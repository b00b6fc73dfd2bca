import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterable, Optional

import deepl
from langchain_anthropic import ChatAnthropic
from langchain_community.chat_models import ChatOllama
from langchain_core.language_models import BaseChatModel
from langchain_core.prompts import PromptTemplate
from langchain_core.rate_limiters import BaseRateLimiter, InMemoryRateLimiter
from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_openai import ChatOpenAI

from .config import TEMPLATE_TRANSLATE_CHANGELOG
from .delay_manager import DelayManager
from .errors import TranslationError, UnsupportedLocaleError

logger = logging.getLogger(__name__)

# 디스코드 로케일 -> 프롬프트에 사용할 언어 이름
LANGUAGE_NAMES = {
    "id": "Indonesian",
    "da": "Danish",
    "de": "German",
    "en-GB": "English (UK)",
    "en-US": "English (US)",
    "es-ES": "Spanish",
    "es-419": "Spanish (Latin America)",
    "fr": "French",
    "hr": "Croatian",
    "it": "Italian",
    "lt": "Lithuanian",
    "hu": "Hungarian",
    "nl": "Dutch",
    "no": "Norwegian",
    "pl": "Polish",
    "pt-BR": "Portuguese (Brazil)",
    "ro": "Romanian",
    "fi": "Finnish",
    "sv-SE": "Swedish",
    "vi": "Vietnamese",
    "tr": "Turkish",
    "cs": "Czech",
    "el": "Greek",
    "bg": "Bulgarian",
    "ru": "Russian",
    "uk": "Ukrainian",
    "hi": "Hindi",
    "th": "Thai",
    "zh-CN": "Chinese (Simplified)",
    "ja": "Japanese",
    "zh-TW": "Chinese (Traditional)",
    "ko": "Korean",
}


def language_of(locale: str) -> str:
    """`en-US` -> `en`"""
    return locale.split("-")[0]


def map_locale(locale: str, codes: Iterable[str]) -> Optional[str]:
    """
    디스코드 로케일을 번역기의 언어 코드에 대응시킵니다.

    완전히 일치하는 코드를 먼저 찾고, 없으면 언어 부분만 일치하는 코드를 찾습니다.

    Args:
        locale: 디스코드 로케일 (예: "en-US", "ja")
        codes: 번역기가 지원하는 언어 코드 (예: "EN-US", "JA")

    Returns:
        대응하는 코드, 지원하지 않으면 None
    """
    by_upper = {code.upper(): code for code in codes}
    exact = by_upper.get(locale.upper())
    if exact is not None:
        return exact
    return by_upper.get(language_of(locale).upper())


class Translator(ABC):
    """체인지로그 번역기 인터페이스"""

    def __init__(self, delay_manager: Optional[DelayManager] = None):
        self.delay_manager = delay_manager

    async def _wait(self) -> None:
        if self.delay_manager is not None:
            await self.delay_manager.wait_before_request()

    @abstractmethod
    async def translate(self, text: str, source_locale: str, target_locale: str) -> str:
        """
        텍스트를 번역합니다.

        Args:
            text: 원문
            source_locale: 원문의 디스코드 로케일
            target_locale: 번역할 디스코드 로케일

        Returns:
            번역문
        """
        pass

    def warning(self) -> Optional[str]:
        """관리자에게 알려야 할 설정상의 경고"""
        return None


class DeepLTranslator(Translator):
    """deepl 공식 클라이언트를 사용하는 번역기"""

    def __init__(self, auth_key: str, delay_manager: Optional[DelayManager] = None):
        super().__init__(delay_manager)
        self.auth_key = auth_key
        self.client = deepl.Translator(auth_key)
        self._target_codes: Optional[Dict[str, str]] = None

    def is_free_account(self) -> bool:
        return deepl.util.auth_key_is_free_account(self.auth_key)

    def warning(self) -> Optional[str]:
        if not self.is_free_account():
            return "DeepL API key is not a free key. Translation may incur costs."
        return None

    async def _target_languages(self) -> Dict[str, str]:
        if self._target_codes is None:
            languages = await asyncio.to_thread(self.client.get_target_languages)
            self._target_codes = {language.code: language.name for language in languages}
            logger.info(f"DeepL 지원 언어 {len(self._target_codes)}개 로드")
        return self._target_codes

    async def target_code(self, locale: str) -> str:
        code = map_locale(locale, await self._target_languages())
        if code is None:
            raise UnsupportedLocaleError(locale)
        return code

    async def translate(self, text: str, source_locale: str, target_locale: str) -> str:
        target = await self.target_code(target_locale)
        # 원문 언어에는 지역 구분이 없음
        source = language_of(await self.target_code(source_locale)).upper()

        await self._wait()
        try:
            result = await asyncio.to_thread(
                self.client.translate_text,
                text,
                source_lang=source,
                target_lang=target,
                preserve_formatting=True,
            )
        except deepl.DeepLException as e:
            raise TranslationError(f"DeepL 번역 실패: {e}") from e
        logger.info(f"DeepL 번역 완료: {source} -> {target} ({len(text)}자)")
        return result.text


class ChatModelTranslator(Translator):
    """langchain 채팅 모델을 사용하는 번역기"""

    def __init__(self, llm: BaseChatModel, delay_manager: Optional[DelayManager] = None):
        super().__init__(delay_manager)
        self.llm = llm
        self.prompt_template = PromptTemplate(
            template=TEMPLATE_TRANSLATE_CHANGELOG,
            input_variables=["text", "source_language", "target_language"],
        )

    async def translate(self, text: str, source_locale: str, target_locale: str) -> str:
        if target_locale not in LANGUAGE_NAMES:
            raise UnsupportedLocaleError(target_locale)

        await self._wait()
        chain = self.prompt_template | self.llm
        try:
            result = await chain.ainvoke(
                {
                    "text": text,
                    "source_language": LANGUAGE_NAMES.get(source_locale, source_locale),
                    "target_language": LANGUAGE_NAMES[target_locale],
                }
            )
        except Exception as api_error:
            raise TranslationError(
                f"API 호출 중 오류가 발생하여 번역이 중단되었습니다: {api_error}"
            ) from api_error

        content = result.content if hasattr(result, "content") else str(result)
        return content.strip()


# 제공자별 기본 API 주소
GROK_API_BASE = "https://api.x.ai/v1"
OLLAMA_API_BASE = "http://localhost:11434"


def _openai_model(settings: Dict[str, Any]) -> BaseChatModel:
    return ChatOpenAI(
        openai_api_key=settings.pop("api_key"),
        openai_api_base=settings.pop("api_base"),
        **settings,
    )


def _grok_model(settings: Dict[str, Any]) -> BaseChatModel:
    # OpenAI 호환 엔드포인트
    settings["api_base"] = settings["api_base"] or GROK_API_BASE
    return _openai_model(settings)


def _google_model(settings: Dict[str, Any]) -> BaseChatModel:
    settings.pop("api_base")
    return ChatGoogleGenerativeAI(google_api_key=settings.pop("api_key"), **settings)


def _anthropic_model(settings: Dict[str, Any]) -> BaseChatModel:
    settings.pop("api_base")
    return ChatAnthropic(anthropic_api_key=settings.pop("api_key"), **settings)


def _ollama_model(settings: Dict[str, Any]) -> BaseChatModel:
    # 로컬 서버이므로 API 키를 사용하지 않음
    settings.pop("api_key")
    return ChatOllama(base_url=settings.pop("api_base") or OLLAMA_API_BASE, **settings)


CHAT_MODEL_FACTORIES: Dict[str, Callable[[Dict[str, Any]], BaseChatModel]] = {
    "openai": _openai_model,
    "grok": _grok_model,
    "google": _google_model,
    "anthropic": _anthropic_model,
    "ollama": _ollama_model,
}


def get_chat_model(
    provider: str,
    api_key: str,
    model_name: str,
    api_base: Optional[str] = None,
    temperature: float = 0.1,
    rate_limiter: Optional[BaseRateLimiter] = None,
) -> BaseChatModel:
    """
    LLM 제공자 이름으로 채팅 모델을 만듭니다.

    Args:
        provider: CHAT_MODEL_FACTORIES 의 키
        api_key: API 키
        model_name: 모델 이름
        api_base: API 베이스 URL, 비어 있으면 제공자의 기본값
        temperature: 생성 온도
        rate_limiter: 요청 속도 제한기

    Raises:
        ValueError: 지원하지 않는 제공자일 때
    """
    factory = CHAT_MODEL_FACTORIES.get(provider)
    if factory is None:
        raise ValueError(f"지원하지 않는 모델 제공자입니다: {provider}")

    settings = {
        "api_key": api_key,
        "api_base": api_base.strip() if api_base and api_base.strip() else None,
        "model": model_name,
        "temperature": temperature,
        "rate_limiter": rate_limiter,
    }
    logger.info(f"채팅 모델 생성: {provider} ({model_name})")
    return factory(settings)


def get_translator(
    provider: str,
    api_key: str,
    model_name: str = "",
    api_base: Optional[str] = None,
    temperature: float = 0.1,
    delay: float = 1.0,
) -> Translator:
    """
    설정에 맞는 번역기를 생성합니다.

    Args:
        provider: deepl 또는 LLM 제공자 이름
        api_key: API 키 (deepl 은 인증 키)
        model_name: LLM 모델 이름 (deepl 은 무시)
        api_base: API 베이스 URL
        temperature: 생성 온도
        delay: 요청 사이의 최소 간격 (초)

    Returns:
        Translator 인스턴스
    """
    delay_manager = DelayManager(delay)
    if provider == "deepl":
        return DeepLTranslator(api_key, delay_manager)

    rate_limiter = InMemoryRateLimiter(
        requests_per_second=1 / delay if delay > 0 else 10,
        check_every_n_seconds=0.1,
    )
    llm = get_chat_model(provider, api_key, model_name, api_base, temperature, rate_limiter)
    return ChatModelTranslator(llm, delay_manager)
