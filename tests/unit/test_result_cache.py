"""검색 결과 캐시 / 만료 정리 스케줄러 테스트"""
from unittest.mock import MagicMock

from src.scheduler.cache_sweep import CacheSweepScheduler
from src.services.impl.cache_service import ResultCacheService


class TestResultCacheService:
    def test_ttl_checked_on_read(self, fake_clock):
        cache = ResultCacheService(ttl_seconds=10, max_size=5, clock=fake_clock)
        cache.set("烏龜_{}_relevance", {"total": 3})

        fake_clock.advance(9)
        assert cache.get("烏龜_{}_relevance") == {"total": 3}

        fake_clock.advance(1)
        assert cache.get("烏龜_{}_relevance") is None
        assert cache.size == 0

    def test_oldest_evicted_when_full(self, fake_clock):
        cache = ResultCacheService(ttl_seconds=100, max_size=2, clock=fake_clock)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.set("a", 11)
        cache.set("c", 3)

        assert cache.get("b") is None
        assert cache.get("a") == 11
        assert cache.get("c") == 3

    def test_cleanup_and_delete(self, fake_clock):
        cache = ResultCacheService(ttl_seconds=10, max_size=10, clock=fake_clock)
        cache.set("old", 1)
        fake_clock.advance(5)
        cache.set("new", 2)
        fake_clock.advance(5)

        assert cache.cleanup() == 1
        assert cache.delete("new")
        assert not cache.delete("new")
        assert cache.get_stats() == {"size": 0, "max_size": 10, "ttl_seconds": 10}
        assert cache.health_check()


class TestCacheSweepScheduler:
    def test_run_sweep_sums_removed(self, fake_clock):
        first = ResultCacheService(ttl_seconds=1, max_size=10, clock=fake_clock)
        first.set("a", 1)
        first.set("b", 2)
        second = MagicMock()
        second.cleanup.return_value = 3
        fake_clock.advance(2)

        assert CacheSweepScheduler([first, second], interval_s=60).run_sweep() == 5

    def test_failing_cache_does_not_stop_sweep(self):
        broken = MagicMock()
        broken.cleanup.side_effect = RuntimeError("boom")
        healthy = MagicMock()
        healthy.cleanup.return_value = 2

        assert CacheSweepScheduler([broken, healthy], interval_s=60).run_sweep() == 2
        healthy.cleanup.assert_called_once()

    def test_shutdown_without_start(self):
        sweeper = CacheSweepScheduler([], interval_s=60)
        sweeper.shutdown()
