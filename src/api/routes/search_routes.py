"""Search Routes - 검색/카테고리 상세/플랫폼 목록

HTTP Layer는 검증 오류를 400으로, 그 외 오류는 빈 결과 응답으로 변환하는 Translator 역할만 수행합니다.
"""

import asyncio
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from src.classification.cache import ClassificationCache
from src.classification.health import ProviderHealthRegistry
from src.classification.orchestrator import ProviderOrchestrator
from src.classification.providers import build_providers
from src.core.config import settings
from src.core.exceptions import ValidationException
from src.core.logging import logger
from src.crawlers import CrawlOrchestrator, build_default_fetchers
from src.schemas.product_schema import (
    CategoryProductsResponse,
    PlatformInfo,
    SearchFilters,
    SearchResponse,
)
from src.services.impl.cache_service import ResultCacheService
from src.services.search_service import SearchService

router = APIRouter(prefix="/api", tags=["search"])

# 싱글톤 서비스
_result_cache: Optional[ResultCacheService] = None
_classification_cache: Optional[ClassificationCache] = None
_health_registry: Optional[ProviderHealthRegistry] = None
_crawl_orchestrator: Optional[CrawlOrchestrator] = None
_provider_orchestrator: Optional[ProviderOrchestrator] = None
_search_service: Optional[SearchService] = None


def get_result_cache() -> ResultCacheService:
    """ResultCacheService 싱글톤"""
    global _result_cache
    if _result_cache is None:
        _result_cache = ResultCacheService()
    return _result_cache


def get_classification_cache() -> ClassificationCache:
    """ClassificationCache 싱글톤"""
    global _classification_cache
    if _classification_cache is None:
        _classification_cache = ClassificationCache()
    return _classification_cache


def get_health_registry() -> ProviderHealthRegistry:
    global _health_registry
    if _health_registry is None:
        _health_registry = ProviderHealthRegistry()
    return _health_registry


def get_crawl_orchestrator() -> CrawlOrchestrator:
    global _crawl_orchestrator
    if _crawl_orchestrator is None:
        _crawl_orchestrator = CrawlOrchestrator(build_default_fetchers())
    return _crawl_orchestrator


def get_provider_orchestrator(
    cache: ClassificationCache = Depends(get_classification_cache),
    health: ProviderHealthRegistry = Depends(get_health_registry),
) -> ProviderOrchestrator:
    """ProviderOrchestrator 싱글톤 (fallback_order 설정 기준)"""
    global _provider_orchestrator
    if _provider_orchestrator is None:
        _provider_orchestrator = ProviderOrchestrator(build_providers(), health=health, cache=cache)
    return _provider_orchestrator


def get_search_service(
    crawler: CrawlOrchestrator = Depends(get_crawl_orchestrator),
    classifier: ProviderOrchestrator = Depends(get_provider_orchestrator),
    result_cache: ResultCacheService = Depends(get_result_cache),
) -> SearchService:
    """SearchService 싱글톤"""
    global _search_service
    if _search_service is None:
        _search_service = SearchService(crawler, classifier, result_cache)
    return _search_service


def _parse_platforms(platforms: Optional[str]) -> Optional[List[str]]:
    if not platforms:
        return None
    names = [p.strip().lower() for p in platforms.split(",") if p.strip()]
    return list(dict.fromkeys(names)) or None


@router.get("/search", response_model=SearchResponse)
async def search_products(
    q: str = Query(..., description="검색어"),
    sort: str = Query("relevance", description="relevance | price_asc | price_desc"),
    page: int = Query(1, description="페이지 (1부터)"),
    limit: int = Query(40, description="페이지 크기 (1~100)"),
    category_mode: bool = Query(True, description="분류 결과 포함 여부"),
    platforms: Optional[str] = Query(None, description="쉼표로 구분된 플랫폼 (pchome,momo)"),
    min_price: Optional[int] = Query(None, description="최소 가격 (최소 단위)"),
    max_price: Optional[int] = Query(None, description="최대 가격 (최소 단위)"),
    in_stock_only: bool = Query(False),
    service: SearchService = Depends(get_search_service),
):
    """상품 검색 API

    Flow:
        1. 입력 검증 (실패 시 400)
        2. SearchService에 위임 (캐시 → 크롤 → 분류)
        3. 타임아웃/내부 오류는 빈 결과 + 메시지로 변환
    """
    try:
        filters = SearchFilters(
            platforms=_parse_platforms(platforms),
            min_price=min_price,
            max_price=max_price,
            in_stock_only=in_stock_only,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"입력 검증 실패: {e}")

    try:
        return await asyncio.wait_for(
            service.search(q, filters=filters, sort=sort, page=page, limit=limit, category_mode=category_mode),
            timeout=settings.api_search_timeout_s,
        )
    except ValidationException as e:
        logger.warning(f"[API] Input validation failed: {e}")
        raise HTTPException(status_code=400, detail=e.message)
    except asyncio.TimeoutError:
        logger.error(f"[API] Timeout: query length={len(q)}")
        return SearchResponse(
            success=False, query=q, page=page, limit=limit,
            message="검색 시간이 초과되었습니다. 잠시 후 다시 시도해주세요.",
        )
    except Exception as e:
        logger.error(f"[API] Search failed: {type(e).__name__}: {e}", exc_info=True)
        return SearchResponse(
            success=False, query=q, page=page, limit=limit,
            message=f"검색 중 오류가 발생했습니다: {e}",
        )


@router.get("/search/category", response_model=CategoryProductsResponse)
async def get_category_products(
    original_query: str = Query(..., alias="originalQuery"),
    category_name: str = Query(..., alias="categoryName"),
    sort_by: str = Query("price_asc", alias="sortBy"),
    page: int = Query(1),
    limit: int = Query(50),
    service: SearchService = Depends(get_search_service),
):
    """카테고리 상세 API (원래 검색 결과에서 한 카테고리의 상품만)"""
    try:
        return await asyncio.wait_for(
            service.get_category_products(original_query, category_name, sort_by=sort_by, page=page, limit=limit),
            timeout=settings.api_search_timeout_s,
        )
    except ValidationException as e:
        logger.warning(f"[API] Input validation failed: {e}")
        raise HTTPException(status_code=400, detail=e.message)
    except asyncio.TimeoutError:
        logger.error("[API] Category lookup timed out")
        return CategoryProductsResponse(
            success=False, category_name=category_name, original_query=original_query, page=page, limit=limit,
        )
    except Exception as e:
        logger.error(f"[API] Category lookup failed: {type(e).__name__}: {e}", exc_info=True)
        return CategoryProductsResponse(
            success=False, category_name=category_name, original_query=original_query, page=page, limit=limit,
        )


@router.get("/platforms", response_model=List[PlatformInfo])
async def list_platforms(service: SearchService = Depends(get_search_service)):
    """지원 플랫폼 목록"""
    return [PlatformInfo(**info) for info in service.supported_platforms()]
