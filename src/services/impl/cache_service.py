"""검색 결과 캐시 서비스 - 캐싱 로직만 담당 (인메모리, TTL + 최대 크기)"""
from dataclasses import dataclass
from time import time
from typing import Any, Callable, Dict, Optional

from src.core.config import settings
from src.core.logging import logger


@dataclass
class _Entry:
    value: Any
    stored_at: float


class ResultCacheService:
    """검색 결과 캐시

    - 조회 시점에 TTL이 지났으면 miss (정리 주기와 무관)
    - 최대 크기를 넘으면 가장 오래 저장된 키 제거
    """

    def __init__(
        self,
        ttl_seconds: Optional[float] = None,
        max_size: Optional[int] = None,
        clock: Callable[[], float] = time,
    ):
        self.ttl_seconds = ttl_seconds or settings.search_cache_ttl_s
        self.max_size = max_size or settings.search_cache_max_size
        self._clock = clock
        self._store: Dict[str, _Entry] = {}

    @property
    def size(self) -> int:
        return len(self._store)

    def get(self, key: str) -> Optional[Any]:
        """
        캐시된 값 조회

        Args:
            key: 캐시 키

        Returns:
            저장된 값 또는 None (없거나 만료)
        """
        entry = self._store.get(key)
        if entry is None:
            logger.debug(f"Result cache miss for key: {key}")
            return None

        if self._clock() - entry.stored_at >= self.ttl_seconds:
            del self._store[key]
            logger.debug(f"Result cache expired for key: {key}")
            return None

        logger.info(f"Result cache hit for key: {key}")
        return entry.value

    def set(self, key: str, value: Any) -> bool:
        """
        값 캐싱

        Args:
            key: 캐시 키
            value: 저장할 값

        Returns:
            성공 여부
        """
        self._store.pop(key, None)
        while len(self._store) >= self.max_size:
            oldest = next(iter(self._store))
            del self._store[oldest]
            logger.debug(f"Result cache evicted oldest key: {oldest}")

        self._store[key] = _Entry(value=value, stored_at=self._clock())
        logger.info(f"Result cache set for key: {key}, TTL: {self.ttl_seconds}s")
        return True

    def delete(self, key: str) -> bool:
        return self._store.pop(key, None) is not None

    def cleanup(self) -> int:
        """만료 항목 제거 → 제거 수"""
        now = self._clock()
        expired = [k for k, e in self._store.items() if now - e.stored_at >= self.ttl_seconds]
        for key in expired:
            del self._store[key]
        if expired:
            logger.info(f"Result cache cleaned up {len(expired)} expired entries")
        return len(expired)

    def clear(self) -> None:
        self._store.clear()

    def get_stats(self) -> dict:
        return {"size": len(self._store), "max_size": self.max_size, "ttl_seconds": self.ttl_seconds}

    def health_check(self) -> bool:
        """인메모리 캐시는 항상 사용 가능"""
        return True
