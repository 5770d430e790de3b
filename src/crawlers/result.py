"""Crawler Result Standard Format

소스별 크롤 결과와 병합 결과의 표준 형식을 정의합니다.
오케스트레이션 호출마다 만들어지고 병합 후 버려집니다.
"""

from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List

from src.schemas.product_schema import FailedSource, Product


@dataclass
class SourceCrawlResult:
    """소스(플랫폼)별 크롤 결과

    Attributes:
        platform: 플랫폼 이름
        success: 성공 여부
        products: 정규화된 상품 목록 (소스 내 수집 순서 유지)
        metadata: search_url / total_pages / current_page / via(api|http|render)
        error: 실패 사유
    """

    platform: str
    success: bool
    products: List[Product] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def total(self) -> int:
        return len(self.products)

    @classmethod
    def ok(cls, platform: str, products: List[Product], **metadata: Any) -> "SourceCrawlResult":
        """성공 결과 생성"""
        meta = {"total_pages": 1, "current_page": 1}
        meta.update(metadata)
        return cls(platform=platform, success=True, products=products, metadata=meta)

    @classmethod
    def failed(cls, platform: str, reason: str) -> "SourceCrawlResult":
        """실패 결과 생성"""
        return cls(platform=platform, success=False, error=reason)


@dataclass
class AggregateResult:
    """여러 소스의 병합 결과

    모든 소스가 실패해도 success=True + 빈 상품 목록입니다.
    """

    query: str
    products: List[Product] = field(default_factory=list)
    failed_sources: List[FailedSource] = field(default_factory=list)
    successful_sources: int = 0
    source_results: List[SourceCrawlResult] = field(default_factory=list)
    elapsed_ms: float = 0.0
    success: bool = True

    @property
    def total(self) -> int:
        return len(self.products)

    @property
    def platforms(self) -> List[str]:
        seen: List[str] = []
        for p in self.products:
            if p.platform not in seen:
                seen.append(p.platform)
        return seen
