import asyncio
import logging
import threading
import time
from typing import Optional

logger = logging.getLogger(__name__)


class DelayManager:
    """
    번역 API 요청 사이의 최소 간격을 보장합니다.

    체인지로그가 여러 서버로 동시에 크로스포스트되면 같은 번역기로 요청이 몰리므로
    하나의 인스턴스를 모든 리스너가 공유합니다.
    """

    _init_lock = threading.Lock()

    def __init__(self, delay: float = 1.0):
        """
        Args:
            delay: 요청 사이의 최소 간격 (초 단위)
        """
        self.delay = max(delay, 0.0)
        self.last_request_time = 0.0
        self.lock: Optional[asyncio.Lock] = None
        logger.info(f"번역 요청 간격: {self.delay}초")

    def set_delay(self, delay: float) -> None:
        self.delay = max(delay, 0.0)
        logger.info(f"번역 요청 간격 변경: {self.delay}초")

    async def _get_or_create_lock(self) -> asyncio.Lock:
        """asyncio.Lock 은 이벤트 루프 안에서 처음 사용할 때 생성합니다."""
        if self.lock is None:
            with DelayManager._init_lock:
                if self.lock is None:
                    self.lock = asyncio.Lock()
        return self.lock

    async def wait_before_request(self) -> None:
        """이전 요청으로부터 delay 가 지날 때까지 대기합니다."""
        lock = await self._get_or_create_lock()
        async with lock:
            elapsed = time.monotonic() - self.last_request_time
            if self.last_request_time > 0 and elapsed < self.delay:
                wait_time = self.delay - elapsed
                logger.debug(f"번역 요청 전 {wait_time:.2f}초 대기")
                await asyncio.sleep(wait_time)
            self.last_request_time = time.monotonic()
