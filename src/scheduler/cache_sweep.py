"""캐시 만료 항목 주기 정리 스케줄러"""

from typing import Optional, Protocol, Sequence

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from src.core.config import settings
from src.core.logging import logger


class SweepableCache(Protocol):
    def cleanup(self) -> int: ...


class CacheSweepScheduler:
    """분류 캐시/검색 결과 캐시의 만료 항목 정리

    만료 판정은 조회 시점에도 이루어지므로 정리는 메모리 회수 용도입니다.
    캐시는 이벤트 루프에서만 변경되므로 AsyncIOScheduler를 사용합니다.
    """

    def __init__(self, caches: Sequence[SweepableCache], interval_s: Optional[float] = None):
        self.caches = list(caches)
        self.interval_s = interval_s or settings.classification_cache_sweep_interval_s
        self._scheduler: Optional[AsyncIOScheduler] = None

    def run_sweep(self) -> int:
        """전체 캐시 정리 → 제거 수"""
        removed = 0
        for cache in self.caches:
            try:
                removed += cache.cleanup()
            except Exception as e:
                logger.error(f"[Scheduler] cache sweep failed for {type(cache).__name__}: {e}", exc_info=True)
        logger.info(f"[Scheduler] cache sweep removed {removed} expired entries")
        return removed

    def start(self) -> AsyncIOScheduler:
        """스케줄러 시작 (실행 중인 이벤트 루프 필요)"""
        scheduler = AsyncIOScheduler()
        scheduler.add_job(
            self.run_sweep,
            trigger=IntervalTrigger(seconds=self.interval_s),
            id="cache_sweep",
            name="Cache expiry sweep",
            replace_existing=True,
        )
        scheduler.start()
        self._scheduler = scheduler
        logger.info(f"[Scheduler] cache sweep job scheduled every {self.interval_s}s")
        return scheduler

    def shutdown(self) -> None:
        if self._scheduler is not None and self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info("[Scheduler] cache sweep stopped")
        self._scheduler = None
