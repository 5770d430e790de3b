"""Provider Orchestrator - 분류 제공자 fallback 실행

상태 흐름:
    PENDING → TRYING(provider_i) → SUCCESS
                                 → TRYING(provider_i+1) → ... → SUCCESS | EXHAUSTED

- 비활성 제공자: 건너뜀 (실패 기록 없음)
- 다운 판정(연속 실패 임계값 + open 윈도우) 제공자: 건너뜀
- 예산 부족: 네트워크 제공자 건너뜀
- 프로브 실패: 실패 1회 기록 후 건너뜀
- 시도마다 성공/실패 기록, 제공자별 재시도 정책에 따라 대기

키워드 제공자가 순서에 있으면 EXHAUSTED에 도달하지 않습니다.
"""

from __future__ import annotations

import asyncio
from time import monotonic
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from src.classification.cache import ClassificationCache
from src.classification.categories import build_category, group_by_label, merge_into
from src.classification.health import ProviderHealthRegistry
from src.classification.providers.base import ClassificationProvider
from src.classification.result import ClassificationResult, ClassificationState
from src.core.config import settings
from src.core.exceptions import (
    ClassificationExhaustedException,
    ConfigurationException,
    ProviderException,
    ProviderTimeoutException,
)
from src.core.logging import logger
from src.engine.budget import BudgetManager
from src.schemas.product_schema import Category, Product


class ProviderOrchestrator:
    """분류 제공자 fallback 오케스트레이터

    Usage:
        orchestrator = ProviderOrchestrator(build_providers(), cache=ClassificationCache())
        result = await orchestrator.classify(products, "烏龜")
    """

    def __init__(
        self,
        providers: Sequence[ClassificationProvider],
        health: Optional[ProviderHealthRegistry] = None,
        cache: Optional[ClassificationCache] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] = monotonic,
        catch_all_category: Optional[str] = None,
    ):
        if not providers:
            raise ConfigurationException("No classification providers configured", "NO_PROVIDERS")

        self.providers = list(providers)
        if not any(p.name == "keyword" for p in self.providers):
            logger.warning(
                "[CLASSIFY] keyword provider is not in the fallback order, classification may fail"
            )

        self.health = health or ProviderHealthRegistry()
        self.cache = cache
        self._sleep = sleep
        self._clock = clock
        self.catch_all_category = catch_all_category or settings.llm_catch_all_category

    @property
    def fallback_order(self) -> List[str]:
        return [p.name for p in self.providers]

    async def classify(
        self,
        products: Sequence[Product],
        search_query: str,
        context: Optional[dict] = None,
        budget: Optional[BudgetManager] = None,
    ) -> ClassificationResult:
        """상품 목록 → 분할 결과

        Raises:
            ClassificationExhaustedException: 모든 제공자가 실패 (키워드 제공자 미구성 시)
        """
        started = self._clock()
        products = list(products)

        if not products:
            return ClassificationResult(
                categories=[build_category(self.catch_all_category, [])],
                provider="none",
                total_products=0,
                search_query=search_query,
            )

        cached_pairs: List[tuple[Product, str]] = []
        pending = products
        if self.cache is not None:
            lookup = self.cache.batch_get(products, context)
            cached_pairs, pending = lookup.cached, lookup.uncached

        if not pending:
            logger.info(f"[CLASSIFY] all {len(products)} products served from classification cache")
            return ClassificationResult(
                categories=group_by_label(cached_pairs),
                provider="cache",
                total_products=len(products),
                search_query=search_query,
                latency_ms=(self._clock() - started) * 1000,
                from_cache_count=len(cached_pairs),
            )

        state = ClassificationState.PENDING
        tried: List[str] = []
        categories: Optional[List[Category]] = None
        winner: Optional[ClassificationProvider] = None

        for provider in self.providers:
            state = ClassificationState.TRYING
            categories = await self._try_provider(provider, pending, search_query, budget, tried)
            if categories is not None:
                state = ClassificationState.SUCCESS
                winner = provider
                break

        if state != ClassificationState.SUCCESS or winner is None or categories is None:
            state = ClassificationState.EXHAUSTED
            logger.error(f"[CLASSIFY] {state.value}: tried={tried}")
            raise ClassificationExhaustedException(tried)

        if self.cache is not None:
            self.cache.batch_set(
                (
                    (p.name, c.name)
                    for c in categories
                    if c.name != self.catch_all_category
                    for p in c.products
                ),
                context,
            )

        if cached_pairs:
            categories = merge_into(categories, cached_pairs)

        latency_ms = (self._clock() - started) * 1000
        logger.info(
            f"[CLASSIFY] {winner.name} classified {len(pending)} products into {len(categories)} categories "
            f"({len(cached_pairs)} from cache, {latency_ms:.0f}ms)"
        )
        return ClassificationResult(
            categories=categories,
            provider=winner.name,
            total_products=len(products),
            search_query=search_query,
            latency_ms=latency_ms,
            from_cache_count=len(cached_pairs),
            tried=tried,
        )

    async def _try_provider(
        self,
        provider: ClassificationProvider,
        products: List[Product],
        search_query: str,
        budget: Optional[BudgetManager],
        tried: List[str],
    ) -> Optional[List[Category]]:
        """한 제공자를 재시도 정책대로 실행. 성공하면 카테고리, 아니면 None."""
        name = provider.name

        if not provider.is_enabled():
            logger.debug(f"[CLASSIFY] {name} disabled, skipped")
            return None

        if provider.is_network:
            if self.health.is_down(name):
                logger.info(
                    f"[CLASSIFY] {name} treated as down, skipped "
                    f"({self.health.get_remaining_open_time(name):.0f}s remaining)"
                )
                return None
            if budget is not None and not budget.can_execute(name, floor=provider.budget_floor_s):
                logger.warning(f"[CLASSIFY] {name} skipped: budget remaining {budget.remaining():.1f}s")
                return None

        if not await provider.probe():
            self.health.record_failure(name, "health probe failed")
            return None

        tried.append(name)
        policy = provider.retry_policy
        for attempt in range(1, policy.max_attempts + 1):
            timeout_s = provider.timeout_s
            if provider.is_network and budget is not None:
                timeout_s = min(timeout_s, budget.remaining())

            attempt_started = self._clock()
            try:
                categories = await asyncio.wait_for(provider.classify(products, search_query), timeout=timeout_s)
            except asyncio.TimeoutError:
                error: Exception = ProviderTimeoutException(name, timeout_s)
            except ProviderException as e:
                error = e
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"[CLASSIFY] {name} unexpected error: {type(e).__name__}: {e}", exc_info=True)
                error = e
            else:
                self.health.record_success(name, (self._clock() - attempt_started) * 1000)
                return categories

            self.health.record_failure(name, str(error))
            logger.warning(f"[CLASSIFY] {name} attempt {attempt}/{policy.max_attempts} failed: {error}")

            if not policy.should_retry(error, attempt):
                break
            delay = policy.delay_for(attempt, error)
            if budget is not None and provider.is_network and budget.remaining() < delay + provider.budget_floor_s:
                logger.warning(f"[CLASSIFY] {name} retry abandoned: budget too small for {delay:.0f}s wait")
                break
            logger.info(f"[CLASSIFY] {name} retrying in {delay:.0f}s")
            await self._sleep(delay)

        return None

    async def health_check(self) -> Dict[str, Any]:
        """제공자별 상태 스냅샷 (요청 경로와 같은 통계 사용)"""
        providers = []
        for provider in self.providers:
            stats = self.health.get(provider.name).to_dict()
            if not provider.is_enabled():
                status = "disabled"
            elif provider.is_network and self.health.is_down(provider.name):
                status = "down"
            elif not await provider.probe():
                status = "unreachable"
            else:
                status = "healthy"
            providers.append({**stats, "enabled": provider.is_enabled(), "status": status})

        usable = [p for p in providers if p["status"] == "healthy"]
        return {
            "status": "healthy" if usable else "unhealthy",
            "fallback_order": self.fallback_order,
            "providers": providers,
            "cache": self.cache.get_stats() if self.cache is not None else {},
        }

    def report(self) -> None:
        self.health.report()
