"""Crawl Orchestrator - 멀티 플랫폼 병렬 크롤

요청된 모든 fetcher를 동시에 실행하고, 소스별로 독립적으로 기다립니다.
한 소스의 실패/지연이 다른 소스를 막지 않으며, 모든 소스가 실패해도
빈 성공 결과를 반환합니다.
"""

from __future__ import annotations

import asyncio
from typing import Dict, List, Optional, Sequence

from src.core.config import settings
from src.core.exceptions import CrawlerException
from src.core.logging import logger
from src.crawlers.base import BaseFetcher
from src.crawlers.result import AggregateResult, SourceCrawlResult
from src.engine.budget import BudgetConfig, BudgetManager
from src.schemas.product_schema import FailedSource


class CrawlOrchestrator:
    """플랫폼 fetcher 병렬 실행/병합

    Usage:
        orchestrator = CrawlOrchestrator({"pchome": PChomeFetcher(), "momo": MomoFetcher()})
        result = await orchestrator.search("烏龜", sources=["pchome", "momo"])
    """

    def __init__(
        self,
        fetchers: Dict[str, BaseFetcher],
        source_timeout_s: Optional[float] = None,
        total_budget_s: Optional[float] = None,
        default_sources: Optional[Sequence[str]] = None,
    ):
        self.fetchers = dict(fetchers)
        self.source_timeout_s = source_timeout_s or settings.crawler_source_timeout_s
        self.total_budget_s = total_budget_s or settings.crawler_total_budget_s
        if default_sources is None:
            default_sources = [s for s in settings.enabled_sources if s in self.fetchers]
        self.default_sources = list(default_sources)

    def supported_platforms(self) -> List[Dict[str, str]]:
        return [fetcher.info() for fetcher in self.fetchers.values()]

    async def search(
        self,
        query: str,
        sources: Optional[Sequence[str]] = None,
        max_results_per_source: int = 100,
        budget: Optional[BudgetManager] = None,
    ) -> AggregateResult:
        """모든 요청 소스를 병렬 크롤 후 요청 순서대로 병합

        Args:
            query: 검색어
            sources: 대상 소스 (None이면 설정된 기본 소스)
            max_results_per_source: 소스별 최대 상품 수
            budget: 상위 오케스트레이션의 예산. 없으면 이 호출 전용 예산을 시작

        Returns:
            AggregateResult (fetcher 실패로 예외를 던지지 않음)
        """
        requested = list(self.default_sources if sources is None else sources)
        if budget is None:
            budget = BudgetManager(
                BudgetConfig(total_budget=self.total_budget_s, stage_timeouts={"crawl": self.source_timeout_s})
            ).start()

        logger.info(f"[CRAWL] start: query='{query}', sources={requested}, max_per_source={max_results_per_source}")

        if not requested:
            logger.warning("[CRAWL] no sources requested, returning empty result")
            return AggregateResult(query=query, elapsed_ms=budget.elapsed() * 1000)

        timeout = budget.get_timeout_for("crawl", default=self.source_timeout_s)
        results = await asyncio.gather(
            *(self._run_source(name, query, max_results_per_source, timeout) for name in requested)
        )

        aggregate = self._merge(query, results)
        aggregate.elapsed_ms = budget.elapsed() * 1000
        budget.checkpoint("crawl_done")

        logger.info(
            f"[CRAWL] done: query='{query}', products={aggregate.total}, "
            f"ok={aggregate.successful_sources}/{len(requested)}, elapsed_ms={aggregate.elapsed_ms:.0f}"
        )
        return aggregate

    async def _run_source(self, name: str, query: str, max_results: int, timeout: float) -> SourceCrawlResult:
        fetcher = self.fetchers.get(name)
        if fetcher is None:
            logger.warning(f"[CRAWL] unknown platform: {name}")
            return SourceCrawlResult.failed(name, "unknown platform")

        if timeout <= 0:
            return SourceCrawlResult.failed(name, "crawl budget exhausted")

        try:
            result = await asyncio.wait_for(fetcher.fetch(query, max_results=max_results), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(f"[CRAWL] {name} abandoned after {timeout:.1f}s")
            return SourceCrawlResult.failed(name, f"timeout after {timeout:.1f}s")
        except CrawlerException as e:
            logger.warning(f"[CRAWL] {name} failed: {e}")
            return SourceCrawlResult.failed(name, e.message)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"[CRAWL] {name} unexpected error: {type(e).__name__}: {e}", exc_info=True)
            return SourceCrawlResult.failed(name, f"{type(e).__name__}: {e}")

        if not result.success:
            return SourceCrawlResult.failed(name, result.error or "fetch failed")

        for product in result.products:
            if not product.platform or product.platform == "unknown":
                product.platform = name
        return result

    @staticmethod
    def _merge(query: str, results: List[SourceCrawlResult]) -> AggregateResult:
        aggregate = AggregateResult(query=query, source_results=list(results))
        for res in results:
            if res.success:
                aggregate.successful_sources += 1
                aggregate.products.extend(res.products)
            else:
                aggregate.failed_sources.append(FailedSource(platform=res.platform, reason=res.error or "unknown error"))
        return aggregate

    async def check_platforms_health(self) -> List[Dict[str, object]]:
        """모든 fetcher의 상태 확인 (병렬)"""
        names = list(self.fetchers.keys())
        checks = await asyncio.gather(
            *(self.fetchers[n].check_health() for n in names), return_exceptions=True
        )
        out: List[Dict[str, object]] = []
        for name, check in zip(names, checks):
            if isinstance(check, BaseException):
                out.append({"platform": name, "status": "unhealthy", "error": str(check), "response_time_ms": None})
            else:
                out.append(check)
        return out
