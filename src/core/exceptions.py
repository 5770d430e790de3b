"""커스텀 예외 정의 (Structured Exception Hierarchy)"""
from typing import Any, Optional


# 기본 예외 클래스
class AggregatorException(Exception):
    """기본 예외 클래스 - 모든 커스텀 예외의 부모"""
    def __init__(self, message: str, error_code: str = "UNKNOWN_ERROR", details: Optional[dict[str, Any]] = None):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"


# 크롤러(사이트 Fetcher) 관련 예외
class CrawlerException(AggregatorException):
    """크롤러 관련 예외의 기본 클래스"""
    def __init__(self, message: str, error_code: str = "CRAWLER_ERROR", details: Optional[dict[str, Any]] = None):
        super().__init__(message, error_code or "CRAWLER_ERROR", details)


class SourceUnavailableException(CrawlerException):
    """쇼핑몰에 접근할 수 없거나 결과를 얻지 못한 경우"""
    def __init__(self, platform: str, reason: str, details: Optional[dict[str, Any]] = None):
        message = f"Source '{platform}' unavailable: {reason}"
        super().__init__(message, "SOURCE_UNAVAILABLE",
                         details or {"platform": platform, "reason": reason})


class BrowserException(CrawlerException):
    """브라우저 실행 오류"""
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message, "BROWSER_ERROR", details)


class NetworkTimeoutException(CrawlerException):
    """네트워크 타임아웃 예외"""
    def __init__(self, operation: str, timeout_s: float, details: Optional[dict[str, Any]] = None):
        message = f"Network timeout during '{operation}' after {timeout_s}s"
        super().__init__(message, "NETWORK_TIMEOUT",
                         details or {"operation": operation, "timeout_s": timeout_s})


class ParsingException(CrawlerException):
    """HTML/JSON 파싱 오류"""
    def __init__(self, reason: str, details: Optional[dict[str, Any]] = None):
        message = f"Failed to parse response: {reason}"
        super().__init__(message, "PARSING_ERROR", details or {"reason": reason})


class BlockedException(CrawlerException):
    """봇 감지/차단 예외"""
    def __init__(self, source: str, details: Optional[dict[str, Any]] = None):
        message = f"Request blocked by {source} (possible bot detection)"
        super().__init__(message, "BLOCKED", details or {"source": source})


# 분류 제공자 관련 예외
class ProviderException(AggregatorException):
    """분류 제공자(LLM/키워드) 관련 예외의 기본 클래스"""
    def __init__(self, provider: str, message: str, error_code: str = "PROVIDER_ERROR",
                 details: Optional[dict[str, Any]] = None):
        self.provider = provider
        super().__init__(message, error_code or "PROVIDER_ERROR", details or {"provider": provider})


class ProviderUnavailableException(ProviderException):
    """비활성/미인증/연결 불가 제공자"""
    def __init__(self, provider: str, reason: str, details: Optional[dict[str, Any]] = None):
        super().__init__(provider, f"Provider '{provider}' unavailable: {reason}",
                         "PROVIDER_UNAVAILABLE", details)


class ProviderTimeoutException(ProviderException):
    """제공자 호출 타임아웃"""
    def __init__(self, provider: str, timeout_s: float, details: Optional[dict[str, Any]] = None):
        self.timeout_s = timeout_s
        super().__init__(provider, f"Provider '{provider}' timed out after {timeout_s}s",
                         "PROVIDER_TIMEOUT", details)


class ProviderRateLimitedException(ProviderException):
    """HTTP 429 - rate limit 윈도우 대기 필요"""
    def __init__(self, provider: str, details: Optional[dict[str, Any]] = None):
        super().__init__(provider, f"Provider '{provider}' rate limited (HTTP 429)",
                         "PROVIDER_RATE_LIMITED", details)


class MalformedResponseException(ProviderException):
    """제공자 응답 형식 오류 (응답 본문 구조 자체가 기대와 다름)"""
    def __init__(self, provider: str, reason: str, details: Optional[dict[str, Any]] = None):
        super().__init__(provider, f"Malformed response from '{provider}': {reason}",
                         "MALFORMED_RESPONSE", details)


# 설정 관련 예외 (치명적)
class ConfigurationException(AggregatorException):
    """설정 오류 - 런타임 데이터 문제와 구분되는 치명적 오류"""
    def __init__(self, message: str, error_code: str = "CONFIGURATION_ERROR",
                 details: Optional[dict[str, Any]] = None):
        super().__init__(message, error_code or "CONFIGURATION_ERROR", details)


class ClassificationExhaustedException(ConfigurationException):
    """모든 분류 제공자가 실패 (키워드 제공자 구성 누락 시에만 도달)"""
    def __init__(self, tried: list[str], details: Optional[dict[str, Any]] = None):
        message = f"All classification providers failed: {', '.join(tried) or '(none)'}"
        super().__init__(message, "CLASSIFICATION_EXHAUSTED", details or {"tried": tried})


# 유효성 검증 관련 예외
class ValidationException(AggregatorException):
    """유효성 검증 예외"""
    def __init__(self, field: str, reason: str, details: Optional[dict[str, Any]] = None):
        message = f"Validation failed for '{field}': {reason}"
        super().__init__(message, "VALIDATION_ERROR",
                         details or {"field": field, "reason": reason})


class InvalidQueryException(ValidationException):
    """유효하지 않은 검색어"""
    def __init__(self, reason: str, details: Optional[dict[str, Any]] = None):
        super().__init__("query", reason, details)
