"""Classification Result - 분류 결과 표준 포맷"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List

from src.schemas.product_schema import Category


class ClassificationState(str, Enum):
    """분류 호출 상태

    PENDING → TRYING(provider_i) → SUCCESS | TRYING(provider_i+1) → ... → SUCCESS | EXHAUSTED
    """

    PENDING = "pending"
    TRYING = "trying"
    SUCCESS = "success"
    EXHAUSTED = "exhausted"


@dataclass
class ClassificationResult:
    """분류 결과

    Attributes:
        categories: 입력 상품을 빠짐없이/중복없이 나눈 카테고리 목록
        provider: 결과를 만든 제공자 ("gemini" | "ollama" | "keyword" | "cache" | "none")
        mode: "<provider>_classification"
        total_products: 입력 상품 수
        search_query: 검색어
        latency_ms: 소요 시간 (밀리초)
        timestamp: 생성 시각
        from_cache_count: 분류 캐시에서 라벨을 가져온 상품 수
        tried: 시도한 제공자 이름 (건너뛴 제공자 제외)
    """

    categories: List[Category]
    provider: str
    total_products: int
    search_query: str
    latency_ms: float = 0.0
    timestamp: datetime = field(default_factory=datetime.now)
    from_cache_count: int = 0
    tried: List[str] = field(default_factory=list)

    @property
    def mode(self) -> str:
        return f"{self.provider}_classification"

    @property
    def product_count(self) -> int:
        """카테고리 멤버 합계 (정상이라면 total_products와 같음)"""
        return sum(c.total_products for c in self.categories)
