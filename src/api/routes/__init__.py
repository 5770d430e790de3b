"""API routes package."""

from .search_routes import (
    router as search_router,
    get_classification_cache,
    get_provider_orchestrator,
    get_result_cache,
    get_search_service,
)
from .health_routes import router as health_router

__all__ = [
    "health_router",
    "search_router",
    "get_classification_cache",
    "get_provider_orchestrator",
    "get_result_cache",
    "get_search_service",
]
