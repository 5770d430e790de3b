"""상품 분류 파이프라인 (LLM 제공자 fallback + 키워드 규칙 + 분류 캐시)"""

from .cache import BatchLookup, ClassificationCache
from .categories import build_category, compute_price_range, summarize
from .health import ProviderHealth, ProviderHealthRegistry
from .orchestrator import ProviderOrchestrator
from .providers import (
    ClassificationProvider,
    GeminiProvider,
    KeywordProvider,
    OllamaProvider,
    build_providers,
)
from .repair import parse_classification_response, repair_json
from .result import ClassificationResult, ClassificationState
from .strategy import RetryPolicy

__all__ = [
    "BatchLookup",
    "ClassificationCache",
    "build_category",
    "compute_price_range",
    "summarize",
    "ProviderHealth",
    "ProviderHealthRegistry",
    "ProviderOrchestrator",
    "ClassificationProvider",
    "GeminiProvider",
    "KeywordProvider",
    "OllamaProvider",
    "build_providers",
    "parse_classification_response",
    "repair_json",
    "ClassificationResult",
    "ClassificationState",
    "RetryPolicy",
]
