"""검색 서비스 - 크롤 → 필터 → 분류 → 캐시 → 페이지네이션 조율"""
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from src.classification.categories import build_category, compute_price_range, distinct_platforms, summarize
from src.classification.orchestrator import ProviderOrchestrator
from src.core.config import settings
from src.core.exceptions import ValidationException
from src.core.logging import logger
from src.core.security import SecurityValidator
from src.crawlers.orchestrator import CrawlOrchestrator
from src.engine.budget import BudgetConfig, BudgetManager
from src.schemas.product_schema import (
    SUPPORTED_SORTS,
    CategoryProductItem,
    CategoryProductsMetadata,
    CategoryProductsResponse,
    CategorySummary,
    Product,
    SearchFilters,
    SearchMetadata,
    SearchResponse,
)
from src.services.impl.cache_service import ResultCacheService
from src.utils.hash_utils import generate_search_cache_key


@dataclass
class CachedSearch:
    """캐시에 저장하는 전체 검색 결과 (페이지네이션 이전)"""
    products: List[Product]
    categories: List[CategorySummary]
    metadata: SearchMetadata


def sort_products(products: Sequence[Product], sort: str) -> List[Product]:
    """price_asc / price_desc / relevance(원래 순서 유지). 모두 안정 정렬."""
    if sort == "price_asc":
        return sorted(products, key=lambda p: p.price)
    if sort == "price_desc":
        return sorted(products, key=lambda p: p.price, reverse=True)
    return list(products)


def apply_filters(products: Sequence[Product], filters: SearchFilters) -> List[Product]:
    result = []
    platforms = set(filters.platforms) if filters.platforms else None
    for p in products:
        if platforms is not None and p.platform not in platforms:
            continue
        if filters.min_price is not None and p.price < filters.min_price:
            continue
        if filters.max_price is not None and p.price > filters.max_price:
            continue
        if filters.in_stock_only and not p.in_stock:
            continue
        result.append(p)
    return result


def paginate(items: Sequence, page: int, limit: int) -> Tuple[list, bool]:
    start = (page - 1) * limit
    window = list(items[start:start + limit])
    return window, start + limit < len(items)


class SearchService:
    """
    검색 서비스 - SRP: 흐름 조율만 담당

    - 크롤링은 CrawlOrchestrator
    - 분류는 ProviderOrchestrator
    - 결과 캐시는 ResultCacheService
    """

    def __init__(
        self,
        crawler: CrawlOrchestrator,
        classifier: ProviderOrchestrator,
        result_cache: ResultCacheService,
        total_budget_s: Optional[float] = None,
    ):
        self.crawler = crawler
        self.classifier = classifier
        self.result_cache = result_cache
        self.total_budget_s = total_budget_s or settings.api_search_timeout_s

    async def search(
        self,
        query: str,
        filters: Optional[SearchFilters] = None,
        sort: str = "relevance",
        page: int = 1,
        limit: int = 40,
        category_mode: bool = True,
    ) -> SearchResponse:
        """
        상품 검색 (Cache-First 전략)

        1. 결과 캐시 확인 (query + filters + sort)
        2. 캐시 미스 시 전 소스 병렬 크롤 → 필터
        3. category_mode면 분류, 아니면 정렬된 단일 카테고리
        4. 캐싱 후 페이지네이션

        Raises:
            ValidationException: 검색어/정렬/페이지/가격 필터 오류
            ConfigurationException: 분류 제공자 구성 오류
        """
        query = SecurityValidator.validate_query(query)
        if sort not in SUPPORTED_SORTS:
            raise ValidationException("sort", f"지원하지 않는 정렬입니다: {sort}")
        SecurityValidator.validate_paging(page, limit)
        filters = filters or SearchFilters()
        SecurityValidator.validate_price_range(filters.min_price, filters.max_price)

        full, from_cache = await self._search_full(query, filters, sort, category_mode, limit)

        products, has_more = paginate(full.products, page, limit)
        metadata = full.metadata.model_copy(update={"from_cache": from_cache})
        return SearchResponse(
            success=True,
            query=query,
            products=products,
            categories=full.categories,
            total=len(full.products),
            page=page,
            limit=limit,
            has_more=has_more,
            metadata=metadata,
        )

    async def _search_full(
        self,
        query: str,
        filters: SearchFilters,
        sort: str,
        category_mode: bool,
        limit: int = 40,
    ) -> Tuple[CachedSearch, bool]:
        cache_key = generate_search_cache_key(query, filters.to_cache_dict(), sort)
        if not category_mode:
            cache_key = f"{cache_key}_flat"

        cached = self.result_cache.get(cache_key)
        if cached is not None:
            return cached, True

        budget = BudgetManager(
            BudgetConfig(
                total_budget=self.total_budget_s,
                stage_timeouts={"crawl": self.crawler.source_timeout_s},
            )
        ).start()

        logger.info(f"Cache miss, crawling for: {query}")
        aggregate = await self.crawler.search(
            query,
            sources=filters.platforms,
            max_results_per_source=max(limit * 3, 100),
            budget=budget,
        )
        budget.checkpoint("crawl")
        products = apply_filters(aggregate.products, filters)

        if category_mode:
            result = await self.classifier.classify(
                products, query, context={"original_query": query, "main_category": None}, budget=budget
            )
            budget.checkpoint("classify")
            categories = result.categories
            provider: Optional[str] = result.provider
        else:
            categories = [build_category(settings.llm_catch_all_category, sort_products(products, sort))]
            provider = None

        tagged = [
            p.model_copy(update={"category": c.name})
            for c in categories
            for p in c.products
        ]
        full = CachedSearch(
            products=tagged,
            categories=[summarize(c) for c in categories],
            metadata=SearchMetadata(
                total_products=len(tagged),
                total_categories=len(categories),
                platforms=distinct_platforms(tagged),
                provider=provider,
                failed_sources=aggregate.failed_sources,
            ),
        )

        if aggregate.successful_sources or not aggregate.failed_sources:
            self.result_cache.set(cache_key, full)
        else:
            logger.warning(f"All sources failed for '{query}', result not cached")

        logger.info(
            f"Search completed: query='{query}', products={len(tagged)}, categories={len(categories)}, "
            f"provider={provider}, budget={budget.get_report()['elapsed']:.1f}s"
        )
        return full, False

    async def get_category_products(
        self,
        original_query: str,
        category_name: str,
        sort_by: str = "price_asc",
        page: int = 1,
        limit: int = 50,
    ) -> CategoryProductsResponse:
        """
        카테고리 상세

        원래 검색(기본 필터, relevance)의 캐시된 결과에서 카테고리 멤버를 꺼냅니다.
        캐시에 없으면 원래 검색어로 새로 검색합니다.
        """
        original_query = SecurityValidator.validate_query(original_query)
        category_name = (category_name or "").strip()
        if not category_name:
            raise ValidationException("category_name", "카테고리 이름은 필수입니다")
        if sort_by not in SUPPORTED_SORTS:
            raise ValidationException("sort_by", f"지원하지 않는 정렬입니다: {sort_by}")
        SecurityValidator.validate_paging(page, limit)

        full, from_cache = await self._search_full(original_query, SearchFilters(), "relevance", True)

        members = sort_products([p for p in full.products if p.category == category_name], sort_by)
        window, has_more = paginate(members, page, limit)
        display_names = self._platform_display_names()

        return CategoryProductsResponse(
            success=True,
            category_name=category_name,
            original_query=original_query,
            products=[
                CategoryProductItem(
                    id=p.id,
                    name=p.name,
                    description=p.description,
                    image=p.image,
                    price=p.price,
                    platform=display_names.get(p.platform, p.platform),
                    url=p.url,
                    in_stock=p.in_stock,
                    category=category_name,
                )
                for p in window
            ],
            total=len(members),
            page=page,
            limit=limit,
            has_more=has_more,
            metadata=CategoryProductsMetadata(
                total_in_category=len(members),
                platforms=distinct_platforms(members),
                price_range=compute_price_range(members),
                sort_by=sort_by,
                from_cache=from_cache,
            ),
        )

    def _platform_display_names(self) -> Dict[str, str]:
        return {info["id"]: info["name"] for info in self.crawler.supported_platforms()}

    def supported_platforms(self) -> List[Dict[str, str]]:
        return self.crawler.supported_platforms()

    async def check_platforms_health(self) -> List[dict]:
        return await self.crawler.check_platforms_health()
