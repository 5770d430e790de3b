"""설정 관리 - 환경 변수 로드 및 검증"""
from pydantic_settings import BaseSettings
from pydantic import field_validator


KNOWN_PROVIDERS = ("gemini", "ollama", "keyword")
KNOWN_SOURCES = ("pchome", "momo")


class Settings(BaseSettings):
    """애플리케이션 설정"""

    # 크롤러
    crawler_user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )
    crawler_enabled_sources: str = "pchome,momo"
    crawler_http_impersonate: str = "chrome110"
    crawler_http_max_clients: int = 20
    crawler_http_request_timeout_s: float = 15.0

    # 소스별 타임아웃은 전체 예산보다 작아야 한 소스가 전체를 붙잡지 않습니다.
    crawler_source_timeout_s: float = 45.0
    crawler_total_budget_s: float = 60.0

    # Playwright 렌더링 (API/HTTP 경로 실패 시 마지막 수단)
    crawler_render_timeout_ms: int = 30000
    crawler_browser_concurrency: int = 2
    crawler_render_max_scrolls: int = 10

    # 페이지 간 요청 간격 (API 페이징)
    crawler_page_delay_s: float = 1.0

    # 분류 파이프라인 - 우선순위/폴백
    llm_fallback_order: str = "gemini,ollama,keyword"
    llm_fallback_threshold: int = 3
    llm_fallback_open_seconds: float = 60.0
    llm_default_category: str = "其他商品"
    llm_catch_all_category: str = "所有商品"

    # Gemini (원격 LLM)
    gemini_enabled: bool = False
    gemini_api_key: str = ""
    gemini_model: str = "gemini-1.5-flash-latest"
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    gemini_timeout_s: float = 30.0
    gemini_max_retries: int = 3
    # 429(rate limit) 윈도우에 맞춘 긴 고정 지연
    gemini_retry_delay_s: float = 60.0
    gemini_error_retry_delay_s: float = 5.0
    gemini_temperature: float = 0.1
    gemini_max_tokens: int = 4000

    # Ollama (로컬 LLM)
    ollama_enabled: bool = False
    ollama_url: str = "http://localhost:11434"
    ollama_model: str = "qwen2.5:14b"
    ollama_timeout_s: float = 180.0
    ollama_max_retries: int = 3
    ollama_retry_delay_s: float = 5.0
    ollama_health_check_interval_s: float = 60.0
    ollama_health_check_timeout_s: float = 5.0
    ollama_max_tokens: int = 8000

    # 분류 캐시
    classification_cache_ttl_s: int = 24 * 60 * 60
    classification_cache_max_size: int = 10000
    classification_cache_sweep_interval_s: int = 60 * 60

    # 검색 결과 캐시
    search_cache_ttl_s: int = 30 * 60
    search_cache_max_size: int = 100

    # API
    api_title: str = "多平台商品比價搜尋"
    api_version: str = "1.0.0"
    api_description: str = "여러 쇼핑몰 검색 결과를 모아 LLM/키워드 규칙으로 분류합니다."
    api_search_timeout_s: float = 120.0

    # 로깅
    log_level: str = "INFO"

    @field_validator(
        "crawler_source_timeout_s",
        "crawler_total_budget_s",
        "crawler_http_request_timeout_s",
        "gemini_timeout_s",
        "ollama_timeout_s",
    )
    @classmethod
    def validate_timeouts(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeouts must be positive")
        return v

    @field_validator("crawler_browser_concurrency", "crawler_render_timeout_ms")
    @classmethod
    def validate_crawler_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("crawler concurrency/timeouts must be positive")
        return v

    @field_validator("gemini_max_retries", "ollama_max_retries", "llm_fallback_threshold")
    @classmethod
    def validate_retries(cls, v: int) -> int:
        if v < 1:
            raise ValueError("retry counts and thresholds must be >= 1")
        return v

    @field_validator(
        "classification_cache_ttl_s",
        "classification_cache_max_size",
        "search_cache_ttl_s",
        "search_cache_max_size",
    )
    @classmethod
    def validate_cache_bounds(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("cache ttl/size must be positive")
        return v

    @property
    def fallback_order(self) -> list[str]:
        """알려진 제공자만 남긴 폴백 순서 (중복 제거, 순서 유지)"""
        order: list[str] = []
        for raw in self.llm_fallback_order.split(","):
            name = raw.strip().lower()
            if name in KNOWN_PROVIDERS and name not in order:
                order.append(name)
        return order

    @property
    def enabled_sources(self) -> list[str]:
        sources: list[str] = []
        for raw in self.crawler_enabled_sources.split(","):
            name = raw.strip().lower()
            if name and name not in sources:
                sources.append(name)
        return sources

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
