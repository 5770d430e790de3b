"""Services implementation package."""

from .cache_service import ResultCacheService

__all__ = ["ResultCacheService"]
