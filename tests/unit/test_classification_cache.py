"""분류 캐시 유닛 테스트"""
import pytest

from src.classification.cache import ClassificationCache
from src.classification.categories import build_category


class TestClassificationCache:
    def test_set_and_get(self, fake_clock):
        cache = ClassificationCache(ttl_seconds=60, max_size=10, clock=fake_clock)
        cache.set("烏龜缸", "寵物用品")
        assert cache.get("烏龜缸") == "寵物用品"
        assert cache.get("不存在") is None

    def test_context_separates_entries(self, fake_clock):
        cache = ClassificationCache(ttl_seconds=60, max_size=10, clock=fake_clock)
        cache.set("公仔", "玩具", {"original_query": "烏龜"})
        assert cache.get("公仔") is None
        assert cache.get("公仔", {"original_query": "烏龜"}) == "玩具"

    def test_expired_entry_is_miss_without_sweep(self, fake_clock):
        cache = ClassificationCache(ttl_seconds=60, max_size=10, clock=fake_clock)
        cache.set("烏龜缸", "寵物用品")

        fake_clock.advance(59)
        assert cache.get("烏龜缸") == "寵物用品"

        fake_clock.advance(1)
        assert cache.get("烏龜缸") is None
        assert cache.size == 0

    def test_oldest_evicted_when_full(self, fake_clock):
        cache = ClassificationCache(ttl_seconds=60, max_size=2, clock=fake_clock)
        cache.set("a", "A")
        fake_clock.advance(1)
        cache.set("b", "B")
        fake_clock.advance(1)
        cache.set("c", "C")

        assert cache.size == 2
        assert cache.get("a") is None
        assert cache.get("b") == "B"
        assert cache.get("c") == "C"

    def test_reset_moves_entry_to_newest(self, fake_clock):
        cache = ClassificationCache(ttl_seconds=60, max_size=2, clock=fake_clock)
        cache.set("a", "A")
        cache.set("b", "B")
        cache.set("a", "A2")
        cache.set("c", "C")
        assert cache.get("b") is None
        assert cache.get("a") == "A2"

    def test_batch_get_splits(self, fake_clock, sample_products):
        cache = ClassificationCache(ttl_seconds=60, max_size=10, clock=fake_clock)
        cache.batch_set([(sample_products[0].name, "寵物用品"), (sample_products[3].name, "手機配件")])

        lookup = cache.batch_get(sample_products)
        assert [(p.id, label) for p, label in lookup.cached] == [
            (sample_products[0].id, "寵物用品"),
            (sample_products[3].id, "手機配件"),
        ]
        assert len(lookup.uncached) == 4

    def test_cleanup_and_stats(self, fake_clock):
        cache = ClassificationCache(ttl_seconds=10, max_size=10, clock=fake_clock)
        cache.set("a", "A")
        fake_clock.advance(5)
        cache.set("b", "B")
        fake_clock.advance(6)

        stats = cache.get_stats()
        assert stats["total_items"] == 2
        assert stats["expired_items"] == 1
        assert stats["valid_items"] == 1

        assert cache.cleanup() == 1
        assert cache.size == 1

        cache.get("b")
        cache.get("zzz")
        stats = cache.get_stats()
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["sets"] == 2
        assert stats["hit_rate"] == 50.0

        cache.clear_stats()
        assert cache.get_stats()["hits"] == 0
        cache.clear()
        assert cache.size == 0

    @pytest.mark.asyncio
    async def test_warmup_only_classifies_uncached(self, fake_clock, sample_products):
        cache = ClassificationCache(ttl_seconds=60, max_size=10, clock=fake_clock)
        cache.set(sample_products[0].name, "寵物用品")
        seen = []

        async def classify(products):
            seen.extend(products)
            return [build_category("烏龜商品", products)]

        stored = await cache.warmup(sample_products, classify)
        assert stored == 5
        assert sample_products[0] not in seen
        assert cache.get(sample_products[5].name) == "烏龜商品"

    @pytest.mark.asyncio
    async def test_warmup_failure_returns_zero(self, fake_clock, sample_products):
        cache = ClassificationCache(ttl_seconds=60, max_size=10, clock=fake_clock)

        async def classify(products):
            raise RuntimeError("boom")

        assert await cache.warmup(sample_products, classify) == 0
        assert cache.size == 0
