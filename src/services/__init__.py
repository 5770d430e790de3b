"""비즈니스 로직 서비스 - export only."""

from .impl import ResultCacheService
from .search_service import CachedSearch, SearchService

__all__ = ["ResultCacheService", "CachedSearch", "SearchService"]
