"""API 엔드포인트 패키지 - export only."""

from .routes import (
    health_router,
    search_router,
    get_classification_cache,
    get_provider_orchestrator,
    get_result_cache,
    get_search_service,
)

__all__ = [
    "health_router",
    "search_router",
    "get_classification_cache",
    "get_provider_orchestrator",
    "get_result_cache",
    "get_search_service",
]
