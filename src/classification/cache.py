"""Classification Cache - 상품명(+검색 컨텍스트) → 카테고리 라벨

- TTL 만료 항목은 조회 시점에 miss로 처리 (주기적 정리와 무관)
- 최대 크기 초과 시 가장 오래 저장된 항목부터 제거
- hits / misses / sets 통계
"""

from __future__ import annotations

from dataclasses import dataclass, field
from time import time
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from src.core.config import settings
from src.core.logging import logger
from src.schemas.product_schema import Category, Product
from src.utils.hash_utils import generate_classification_key


@dataclass
class CacheEntry:
    product_name: str
    category: str
    created_at: float
    expire_at: float
    context_query: Optional[str] = None


@dataclass
class BatchLookup:
    """배치 조회 결과"""

    cached: List[Tuple[Product, str]] = field(default_factory=list)
    uncached: List[Product] = field(default_factory=list)


class ClassificationCache:
    """인메모리 분류 캐시 (이벤트 루프 단일 스레드 전용)"""

    def __init__(
        self,
        ttl_seconds: Optional[float] = None,
        max_size: Optional[int] = None,
        clock: Callable[[], float] = time,
    ) -> None:
        self.ttl_seconds = ttl_seconds or settings.classification_cache_ttl_s
        self.max_size = max_size or settings.classification_cache_max_size
        self._clock = clock
        # 삽입 순서 = 저장 순서 (재저장 시 맨 뒤로 이동)
        self._entries: Dict[str, CacheEntry] = {}
        self._stats = {"hits": 0, "misses": 0, "sets": 0}

    @property
    def size(self) -> int:
        return len(self._entries)

    def get(self, product_name: str, context: Optional[dict] = None) -> Optional[str]:
        key = generate_classification_key(product_name, context)
        entry = self._entries.get(key)
        if entry is None:
            self._stats["misses"] += 1
            return None

        if self._clock() >= entry.expire_at:
            del self._entries[key]
            self._stats["misses"] += 1
            return None

        self._stats["hits"] += 1
        return entry.category

    def set(self, product_name: str, category: str, context: Optional[dict] = None) -> None:
        key = generate_classification_key(product_name, context)
        now = self._clock()

        self._entries.pop(key, None)
        while len(self._entries) >= self.max_size:
            oldest = next(iter(self._entries))
            del self._entries[oldest]

        self._entries[key] = CacheEntry(
            product_name=product_name,
            category=category,
            created_at=now,
            expire_at=now + self.ttl_seconds,
            context_query=(context or {}).get("original_query"),
        )
        self._stats["sets"] += 1

    def batch_get(self, products: Sequence[Product], context: Optional[dict] = None) -> BatchLookup:
        lookup = BatchLookup()
        for product in products:
            category = self.get(product.name, context)
            if category is None:
                lookup.uncached.append(product)
            else:
                lookup.cached.append((product, category))

        if lookup.cached:
            logger.debug(f"[CLS_CACHE] batch lookup: {len(lookup.cached)} hit / {len(lookup.uncached)} miss")
        return lookup

    def batch_set(self, items: Iterable[Tuple[str, str]], context: Optional[dict] = None) -> int:
        count = 0
        for product_name, category in items:
            self.set(product_name, category, context)
            count += 1
        return count

    def cleanup(self) -> int:
        """만료 항목 제거 → 제거 수"""
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if now >= entry.expire_at]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.info(f"[CLS_CACHE] cleaned up {len(expired)} expired entries")
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()
        logger.info("[CLS_CACHE] cleared")

    def clear_stats(self) -> None:
        self._stats = {"hits": 0, "misses": 0, "sets": 0}

    def get_stats(self) -> dict:
        now = self._clock()
        expired = sum(1 for entry in self._entries.values() if now >= entry.expire_at)
        lookups = self._stats["hits"] + self._stats["misses"]
        return {
            "total_items": len(self._entries),
            "expired_items": expired,
            "valid_items": len(self._entries) - expired,
            "max_size": self.max_size,
            "ttl_seconds": self.ttl_seconds,
            "hits": self._stats["hits"],
            "misses": self._stats["misses"],
            "sets": self._stats["sets"],
            "hit_rate": round(self._stats["hits"] / lookups * 100, 2) if lookups else 0.0,
        }

    async def warmup(
        self,
        products: Sequence[Product],
        classify: Callable[[List[Product]], Awaitable[List[Category]]],
        context: Optional[dict] = None,
    ) -> int:
        """캐시에 없는 상품만 분류해 미리 채움 → 저장 수"""
        uncached = self.batch_get(products, context).uncached
        if not uncached:
            return 0

        try:
            categories = await classify(uncached)
        except Exception as e:
            logger.error(f"[CLS_CACHE] warmup failed: {type(e).__name__}: {e}")
            return 0

        stored = self.batch_set(
            ((p.name, c.name) for c in categories for p in c.products),
            context,
        )
        logger.info(f"[CLS_CACHE] warmup stored {stored} labels")
        return stored
