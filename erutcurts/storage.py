"""
디스코드 포럼을 저장소로 사용하는 간단한 데이터베이스

각 데이터베이스는 포럼 포스트 하나이며, 값은 봇이 보낸 메시지의 `<이름>.json`
첨부 파일로 저장됩니다. 읽은 값은 마지막 접근 후 일정 시간 동안 캐시되며,
만료되거나 flush 될 때 새 메시지로 기록됩니다.
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Generic, Hashable, List, Optional, Tuple, TypeVar

from pydantic import TypeAdapter, ValidationError

from .config import DATABASE_EXPIRE_AFTER

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")
T = TypeVar("T")

# 만료 작업 실행 간격 (초)
EXPIRY_JOB_INTERVAL = 30


class ExpiringCache(Generic[K, V]):
    """
    마지막 접근 시각을 기준으로 만료되는 캐시

    Args:
        expire_after: 만료 시간 (초)
        clock: 현재 시각 함수 (테스트에서 교체 가능)
    """

    def __init__(self, expire_after: float, clock: Callable[[], float] = time.monotonic):
        self.expire_after = expire_after
        self.clock = clock
        self._entries: Dict[K, List[Any]] = {}

    def __contains__(self, key: K) -> bool:
        entry = self._entries.get(key)
        return entry is not None and not self._is_expired(entry)

    def __len__(self) -> int:
        return len(self._entries)

    def _is_expired(self, entry: List[Any]) -> bool:
        return self.clock() - entry[1] >= self.expire_after

    def get(self, key: K, default: Optional[V] = None) -> Optional[V]:
        """값을 가져오고 접근 시각을 갱신합니다. 만료된 값은 반환하지 않습니다."""
        entry = self._entries.get(key)
        if entry is None or self._is_expired(entry):
            return default
        entry[1] = self.clock()
        return entry[0]

    def put(self, key: K, value: V) -> None:
        self._entries[key] = [value, self.clock()]

    def invalidate(self, key: K) -> None:
        self._entries.pop(key, None)

    def get_expired(self, key: K) -> Optional[V]:
        """만료되었지만 아직 제거되지 않은 값을 반환합니다. 접근 시각은 갱신하지 않습니다."""
        entry = self._entries.get(key)
        if entry is None or not self._is_expired(entry):
            return None
        return entry[0]

    def expired_items(self) -> List[Tuple[K, V]]:
        """만료된 항목 목록. 캐시에서 제거하지 않습니다."""
        return [
            (key, entry[0])
            for key, entry in self._entries.items()
            if self._is_expired(entry)
        ]

    def remove(self, key: K, value: V) -> bool:
        """
        항목이 아직 value 를 가리키고 만료된 상태일 때만 제거합니다.

        Returns:
            제거 여부
        """
        entry = self._entries.get(key)
        if entry is None or entry[0] is not value or not self._is_expired(entry):
            return False
        del self._entries[key]
        return True

    def pop_all(self) -> List[Tuple[K, V]]:
        items = [(key, entry[0]) for key, entry in self._entries.items()]
        self._entries.clear()
        return items


class StorageBackend(ABC):
    """DiscordDB 가 사용하는 저장소 인터페이스"""

    @abstractmethod
    async def read(self, name: str) -> Optional[bytes]:
        """
        데이터베이스의 최신 JSON 을 읽습니다.

        Args:
            name: 데이터베이스 이름

        Returns:
            JSON 바이트, 저장된 값이 없으면 None
        """
        pass

    @abstractmethod
    async def write(self, name: str, data: bytes) -> None:
        """JSON 을 새 값으로 기록합니다."""
        pass


class DiscordDB:
    """
    캐시를 거쳐 StorageBackend 의 값을 읽고 씁니다.

    값은 변경 가능한 객체로 다루며, 캐시에 있는 동안의 변경은 만료 또는
    flush 시점에 기록됩니다. put 으로 값을 교체할 때는 기존 값을 기록하지 않습니다.
    """

    def __init__(
        self,
        backend: StorageBackend,
        expire_after: float = DATABASE_EXPIRE_AFTER,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.backend = backend
        self.cache: ExpiringCache[str, Any] = ExpiringCache(expire_after, clock)
        self._adapters: Dict[str, TypeAdapter] = {}
        self._lock = asyncio.Lock()

    async def find(
        self,
        name: str,
        type_: Any,
        formatter: Optional[Callable[[Any], Any]] = None,
    ) -> Optional[Any]:
        """
        데이터베이스의 값을 읽습니다.

        Args:
            name: 데이터베이스 이름
            type_: 값의 타입 (pydantic TypeAdapter 로 검증)
            formatter: 저장소에서 처음 읽었을 때 적용할 변환 함수

        Returns:
            값, 저장된 값이 없으면 None
        """
        async with self._lock:
            cached = self.cache.get(name)
            if cached is not None:
                return cached

            expired = self.cache.get_expired(name)
            if expired is not None:
                # 캐시에 남은 값이 저장소의 값보다 최신
                await self._write_expired(name, expired)
                self.cache.put(name, expired)
                return expired

            adapter = self._adapters.setdefault(name, TypeAdapter(type_))
            raw = await self.backend.read(name)
            if raw is None:
                logger.info(f"데이터베이스 {name} 에 저장된 값이 없습니다.")
                return None

            try:
                value = adapter.validate_json(raw)
            except ValidationError as e:
                logger.error(f"데이터베이스 {name} 의 값이 올바르지 않습니다: {e}")
                return None
            if formatter is not None:
                value = formatter(value)

            self.cache.put(name, value)
            logger.debug(f"데이터베이스 {name} 로드 완료")
            return value

    async def get(
        self,
        name: str,
        type_: Any,
        fallback: Callable[[], T],
        formatter: Optional[Callable[[Any], Any]] = None,
    ) -> T:
        """find 와 같지만 값이 없으면 fallback() 을 캐시에 넣고 반환합니다."""
        value = await self.find(name, type_, formatter)
        if value is None:
            value = fallback()
            self.put(name, value, type_)
        return value

    def put(self, name: str, value: Any, type_: Any = None) -> None:
        """캐시의 값을 교체합니다. 기록은 만료 또는 flush 시점에 이루어집니다."""
        if type_ is not None:
            self._adapters[name] = TypeAdapter(type_)
        elif name not in self._adapters:
            self._adapters[name] = TypeAdapter(type(value))
        self.cache.put(name, value)

    def _serialize(self, name: str, value: Any) -> bytes:
        adapter = self._adapters.get(name) or TypeAdapter(type(value))
        return adapter.dump_json(value, indent=2)

    async def _write(self, name: str, value: Any) -> None:
        try:
            await self.backend.write(name, self._serialize(name, value))
            logger.info(f"데이터베이스 {name} 기록 완료")
        except Exception as e:
            logger.error(f"데이터베이스 {name} 기록 실패: {e}", exc_info=True)
            raise

    async def save(self, name: str) -> None:
        """캐시에 있는 값을 즉시 기록합니다."""
        value = self.cache.get(name)
        if value is not None:
            await self._write(name, value)

    async def _write_expired(self, name: str, value: Any) -> bool:
        # 실패한 값은 캐시에 남겨 다음 만료 작업에서 다시 기록
        try:
            await self._write(name, value)
        except Exception:
            return False
        return True

    async def evict_expired(self) -> None:
        """만료된 값을 기록하고 캐시에서 제거합니다. 스케줄러에서 주기적으로 호출됩니다."""
        async with self._lock:
            for name, value in self.cache.expired_items():
                if await self._write_expired(name, value):
                    self.cache.remove(name, value)

    async def flush(self) -> None:
        """캐시의 모든 값을 기록합니다. 종료 시 호출됩니다."""
        errors = []
        async with self._lock:
            for name, value in self.cache.pop_all():
                # 하나가 실패해도 나머지는 기록
                try:
                    await self._write(name, value)
                except Exception as e:
                    errors.append(e)
        if errors:
            raise errors[0]

    def schedule_expiry(self, scheduler) -> None:
        """
        만료 작업을 스케줄러에 등록합니다.

        Args:
            scheduler: apscheduler AsyncIOScheduler
        """
        scheduler.add_job(
            self.evict_expired,
            trigger="interval",
            seconds=EXPIRY_JOB_INTERVAL,
            id="database-expiry",
            replace_existing=True,
        )
