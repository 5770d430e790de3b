"""멀티 플랫폼 크롤 오케스트레이터 테스트

- 소스 간 격리 (한 소스 실패/지연이 다른 소스에 영향 없음)
- 소스 0개 → 빈 성공 결과
"""
import pytest

from src.core.exceptions import BlockedException, SourceUnavailableException
from src.crawlers.orchestrator import CrawlOrchestrator
from src.engine.budget import BudgetConfig, BudgetManager
from tests.conftest import DummyFetcher, make_product


def _pchome_products():
    return [make_product(k, "pchome") for k in ("turtle_tank", "turtle_filter", "turtle_food")]


def _momo_products():
    return [make_product(k, "momo") for k in ("iphone_case", "turtle_lamp", "turtle_figure")]


class TestCrawlIsolation:
    @pytest.mark.asyncio
    async def test_all_sources_succeed_in_requested_order(self):
        orchestrator = CrawlOrchestrator(
            {"pchome": DummyFetcher("pchome", _pchome_products()), "momo": DummyFetcher("momo", _momo_products())},
            source_timeout_s=5,
        )
        result = await orchestrator.search("烏龜", sources=["momo", "pchome"])

        assert result.success
        assert result.successful_sources == 2
        assert [p.platform for p in result.products] == ["momo"] * 3 + ["pchome"] * 3
        assert result.failed_sources == []

    @pytest.mark.asyncio
    async def test_failed_source_does_not_affect_others(self):
        orchestrator = CrawlOrchestrator(
            {
                "pchome": DummyFetcher("pchome", _pchome_products()),
                "momo": DummyFetcher("momo", error=BlockedException("momo")),
            },
            source_timeout_s=5,
        )
        result = await orchestrator.search("烏龜", sources=["pchome", "momo"])

        assert result.success
        assert result.total == 3
        assert [f.platform for f in result.failed_sources] == ["momo"]
        assert "blocked" in result.failed_sources[0].reason.lower()

    @pytest.mark.asyncio
    async def test_slow_source_abandoned_at_timeout(self):
        orchestrator = CrawlOrchestrator(
            {
                "pchome": DummyFetcher("pchome", _pchome_products()),
                "momo": DummyFetcher("momo", _momo_products(), delay_s=5),
            },
            source_timeout_s=0.05,
        )
        result = await orchestrator.search("烏龜", sources=["pchome", "momo"])

        assert result.total == 3
        assert result.failed_sources[0].platform == "momo"
        assert "timeout" in result.failed_sources[0].reason

    @pytest.mark.asyncio
    async def test_unexpected_exception_isolated(self):
        orchestrator = CrawlOrchestrator(
            {
                "pchome": DummyFetcher("pchome", error=RuntimeError("boom")),
                "momo": DummyFetcher("momo", _momo_products()),
            },
            source_timeout_s=5,
        )
        result = await orchestrator.search("烏龜", sources=["pchome", "momo"])

        assert result.total == 3
        assert result.failed_sources[0].reason == "RuntimeError: boom"

    @pytest.mark.asyncio
    async def test_all_sources_fail_is_empty_success(self):
        orchestrator = CrawlOrchestrator(
            {
                "pchome": DummyFetcher("pchome", error=SourceUnavailableException("pchome", "HTTP 500")),
                "momo": DummyFetcher("momo", error=BlockedException("momo")),
            },
            source_timeout_s=5,
        )
        result = await orchestrator.search("烏龜", sources=["pchome", "momo"])

        assert result.success
        assert result.products == []
        assert len(result.failed_sources) == 2

    @pytest.mark.asyncio
    async def test_unknown_platform_reported(self):
        orchestrator = CrawlOrchestrator({"pchome": DummyFetcher("pchome", _pchome_products())}, source_timeout_s=5)
        result = await orchestrator.search("烏龜", sources=["pchome", "shopee"])

        assert result.total == 3
        assert result.failed_sources[0].platform == "shopee"
        assert result.failed_sources[0].reason == "unknown platform"


class TestZeroSources:
    @pytest.mark.asyncio
    async def test_empty_source_list(self):
        fetcher = DummyFetcher("pchome", _pchome_products())
        orchestrator = CrawlOrchestrator({"pchome": fetcher}, source_timeout_s=5)

        result = await orchestrator.search("烏龜", sources=[])

        assert result.success
        assert result.products == []
        assert result.failed_sources == []
        assert fetcher.calls == 0

    @pytest.mark.asyncio
    async def test_default_sources_used_when_none(self):
        pchome = DummyFetcher("pchome", _pchome_products())
        momo = DummyFetcher("momo", _momo_products())
        orchestrator = CrawlOrchestrator({"pchome": pchome, "momo": momo}, default_sources=["momo"])

        result = await orchestrator.search("烏龜")

        assert momo.calls == 1
        assert pchome.calls == 0
        assert result.platforms == ["momo"]


@pytest.mark.asyncio
async def test_exhausted_budget_fails_sources_without_calling():
    clock_value = [0.0]
    budget = BudgetManager(BudgetConfig(total_budget=1.0), clock=lambda: clock_value[0]).start()
    clock_value[0] = 2.0
    fetcher = DummyFetcher("pchome", _pchome_products())
    orchestrator = CrawlOrchestrator({"pchome": fetcher}, source_timeout_s=5)

    result = await orchestrator.search("烏龜", sources=["pchome"], budget=budget)

    assert fetcher.calls == 0
    assert result.failed_sources[0].reason == "crawl budget exhausted"


@pytest.mark.asyncio
async def test_platform_health_check():
    orchestrator = CrawlOrchestrator(
        {"pchome": DummyFetcher("pchome"), "momo": DummyFetcher("momo")}, source_timeout_s=5
    )
    checks = await orchestrator.check_platforms_health()
    assert [c["platform"] for c in checks] == ["pchome", "momo"]
    assert all(c["status"] == "healthy" for c in checks)
