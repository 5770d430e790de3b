"""Pydantic 스키마 정의 - 상품 / 분류 / 검색 응답"""
from typing import Optional, List, Any
from pydantic import BaseModel, Field, field_validator
from datetime import datetime


SUPPORTED_SORTS = ("relevance", "price_asc", "price_desc")


class Product(BaseModel):
    """정규화된 상품 레코드 (가격은 최소 단위 정수, TWD 기준 ×100)"""
    id: str = Field(..., description="platform+name+url MD5 앞 16자리")
    name: str = Field(..., description="정제된 상품명")
    description: str = Field("", description="상품 설명")
    price: int = Field(0, ge=0, description="가격 (최소 단위)")
    platform: str = Field("unknown", description="플랫폼 식별자 (pchome, momo)")
    url: str = Field("", description="상품 URL")
    image: str = Field("/placeholder.svg", description="절대 경로 이미지 URL")
    in_stock: bool = Field(True, description="재고 여부")
    rating: Optional[float] = Field(None, ge=0, description="평점")
    review_count: int = Field(0, ge=0, description="리뷰 수")
    seller: Optional[str] = Field(None, description="판매자")
    shipping: str = Field("依商家規定", description="배송 정보")
    currency: str = Field("TWD", description="통화")
    crawled_at: datetime = Field(default_factory=datetime.now, description="수집 시각")
    category: Optional[str] = Field(None, description="분류 결과 라벨 (검색 응답에서만 채움)")

    @field_validator("price", mode="before")
    @classmethod
    def coerce_negative_price(cls, v: Any) -> Any:
        """음수/None 가격은 0으로 보정"""
        if v is None:
            return 0
        if isinstance(v, (int, float)) and v < 0:
            return 0
        return v


class PriceRange(BaseModel):
    """카테고리 가격 범위 (양수 가격만 집계)"""
    min: int = Field(0, ge=0)
    max: int = Field(0, ge=0)
    avg: int = Field(0, ge=0)


class Category(BaseModel):
    """분류 카테고리

    price_range / platforms / total_products 는 항상 멤버 상품에서
    다시 계산합니다. 제공자가 보고한 값은 사용하지 않습니다.
    """
    name: str
    description: str = ""
    products: List[Product] = Field(default_factory=list)
    price_range: PriceRange = Field(default_factory=PriceRange)
    platforms: List[str] = Field(default_factory=list)
    total_products: int = Field(0, ge=0)


class CategorySummary(BaseModel):
    """검색 응답용 카테고리 요약 (상품 목록 제외)"""
    name: str
    description: str = ""
    total_products: int = 0
    price_range: PriceRange = Field(default_factory=PriceRange)
    platforms: List[str] = Field(default_factory=list)


class SearchFilters(BaseModel):
    """검색 필터"""
    platforms: Optional[List[str]] = Field(None, description="대상 플랫폼")
    min_price: Optional[int] = Field(None, ge=0, description="최소 가격 (최소 단위)")
    max_price: Optional[int] = Field(None, ge=0, description="최대 가격 (최소 단위)")
    in_stock_only: bool = Field(False, description="재고 있는 상품만")

    def to_cache_dict(self) -> dict[str, Any]:
        """캐시 키용 dict (기본값 필드 제외)"""
        return self.model_dump(exclude_none=True, exclude_defaults=True)


class FailedSource(BaseModel):
    """크롤 실패 소스"""
    platform: str
    reason: str


class SearchMetadata(BaseModel):
    """검색 응답 메타데이터"""
    total_products: int = 0
    total_categories: int = 0
    platforms: List[str] = Field(default_factory=list)
    provider: Optional[str] = None
    failed_sources: List[FailedSource] = Field(default_factory=list)
    from_cache: bool = False


class SearchResponse(BaseModel):
    """검색 응답"""
    success: bool = True
    query: str = ""
    products: List[Product] = Field(default_factory=list)
    categories: List[CategorySummary] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = 40
    has_more: bool = False
    metadata: SearchMetadata = Field(default_factory=SearchMetadata)
    message: Optional[str] = None


class CategoryProductItem(BaseModel):
    """카테고리 상세 상품 (플랫폼 표시명 적용)"""
    id: str
    name: str
    description: str = ""
    image: str
    price: int = 0
    platform: str
    url: str
    in_stock: bool = True
    category: str


class CategoryProductsMetadata(BaseModel):
    total_in_category: int = 0
    platforms: List[str] = Field(default_factory=list)
    price_range: PriceRange = Field(default_factory=PriceRange)
    sort_by: str = "price_asc"
    from_cache: bool = True


class CategoryProductsResponse(BaseModel):
    """카테고리 상세 응답"""
    success: bool = True
    category_name: str
    original_query: str
    products: List[CategoryProductItem] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = 50
    has_more: bool = False
    metadata: CategoryProductsMetadata = Field(default_factory=CategoryProductsMetadata)


class PlatformInfo(BaseModel):
    """지원 플랫폼"""
    id: str
    name: str
    base_url: str


class HealthResponse(BaseModel):
    """헬스 체크 응답"""
    status: str
    timestamp: datetime
    version: str


class ProviderHealthSnapshot(BaseModel):
    """제공자 헬스 스냅샷"""
    name: str
    enabled: bool
    status: str
    success_count: int = 0
    total_attempts: int = 0
    consecutive_failures: int = 0
    success_rate: float = 0.0
    avg_latency_ms: float = 0.0
    last_success: Optional[datetime] = None
    last_failure: Optional[datetime] = None
    last_error: Optional[str] = None


class ProvidersHealthResponse(BaseModel):
    """분류 파이프라인 헬스 응답"""
    status: str
    fallback_order: List[str] = Field(default_factory=list)
    providers: List[ProviderHealthSnapshot] = Field(default_factory=list)
    cache: dict[str, Any] = Field(default_factory=dict)


class PlatformHealth(BaseModel):
    platform: str
    status: str
    error: Optional[str] = None
    response_time_ms: Optional[float] = None


class PlatformsHealthResponse(BaseModel):
    status: str
    platforms: List[PlatformHealth] = Field(default_factory=list)
