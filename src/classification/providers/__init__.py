"""분류 제공자 (gemini / ollama / keyword)"""

from typing import List, Optional

from src.core.config import Settings, settings

from .base import ClassificationProvider, HttpLLMProvider
from .gemini import GeminiProvider
from .keyword import KeywordProvider
from .ollama import OllamaProvider

PROVIDER_TYPES = {
    GeminiProvider.name: GeminiProvider,
    OllamaProvider.name: OllamaProvider,
    KeywordProvider.name: KeywordProvider,
}


def build_providers(config: Optional[Settings] = None) -> List[ClassificationProvider]:
    """fallback_order 순서대로 제공자 생성"""
    config = config or settings
    providers: List[ClassificationProvider] = []
    for name in config.fallback_order:
        if name == KeywordProvider.name:
            providers.append(KeywordProvider(default_category=config.llm_default_category))
        else:
            providers.append(PROVIDER_TYPES[name](config))
    return providers


__all__ = [
    "ClassificationProvider",
    "HttpLLMProvider",
    "GeminiProvider",
    "OllamaProvider",
    "KeywordProvider",
    "PROVIDER_TYPES",
    "build_providers",
]
