"""헬스 체크 엔드포인트"""
from fastapi import APIRouter, Depends
from datetime import datetime

from src.schemas.product_schema import (
    HealthResponse,
    PlatformHealth,
    PlatformsHealthResponse,
    ProviderHealthSnapshot,
    ProvidersHealthResponse,
)
from src.classification.orchestrator import ProviderOrchestrator
from src.services.impl.cache_service import ResultCacheService
from src.services.search_service import SearchService
from src.api.routes.search_routes import get_provider_orchestrator, get_result_cache, get_search_service
from src.core.logging import logger
from src import __version__

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(result_cache: ResultCacheService = Depends(get_result_cache)):
    """
    헬스 체크 엔드포인트

    - 서버 상태
    - 결과 캐시 상태
    """
    try:
        cache_ok = result_cache.health_check()
    except Exception as e:
        logger.error(f"Unexpected cache error: {e}")
        cache_ok = False

    return HealthResponse(
        status="ok" if cache_ok else "degraded",
        timestamp=datetime.now(),
        version=__version__
    )


@router.get("/health/providers", response_model=ProvidersHealthResponse)
async def providers_health(orchestrator: ProviderOrchestrator = Depends(get_provider_orchestrator)):
    """분류 제공자 상태 (연속 실패, 성공률, 평균 지연) + 분류 캐시 통계"""
    snapshot = await orchestrator.health_check()
    orchestrator.report()
    return ProvidersHealthResponse(
        status=snapshot["status"],
        fallback_order=snapshot["fallback_order"],
        providers=[ProviderHealthSnapshot(**p) for p in snapshot["providers"]],
        cache=snapshot["cache"],
    )


@router.get("/health/platforms", response_model=PlatformsHealthResponse)
async def platforms_health(service: SearchService = Depends(get_search_service)):
    """쇼핑몰 접근 가능 여부"""
    checks = [PlatformHealth(**c) for c in await service.check_platforms_health()]
    healthy = sum(1 for c in checks if c.status == "healthy")
    if checks and healthy == len(checks):
        status = "ok"
    elif healthy:
        status = "degraded"
    else:
        status = "error"
    return PlatformsHealthResponse(status=status, platforms=checks)


@router.get("/")
async def root():
    """루트 엔드포인트"""
    return {
        "service": "多平台商品比價搜尋",
        "version": __version__,
        "docs": "/docs"
    }
