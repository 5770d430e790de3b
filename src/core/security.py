"""
입력 검증 함수
"""

from typing import Optional
from fastapi import Request

from src.core.exceptions import InvalidQueryException, ValidationException
from src.core.logging import logger, sanitize_for_log


class SecurityValidator:
    """입력 보안 검증"""

    MAX_QUERY_LENGTH = 200
    MAX_PAGE_LIMIT = 100

    # 위험한 문자 (인젝션/XSS 방지)
    DANGEROUS_CHARS = ['<', '>', '"', '\\', '\0', ';', '--', '/*', '*/']

    @staticmethod
    def validate_query(query: Optional[str]) -> str:
        """검색어 검증

        Args:
            query: 검색어

        Returns:
            앞뒤 공백을 제거한 검색어

        Raises:
            InvalidQueryException: 유효하지 않은 입력
        """
        normalized = " ".join((query or "").split())
        if not normalized:
            raise InvalidQueryException("검색어는 필수입니다")

        if len(normalized) > SecurityValidator.MAX_QUERY_LENGTH:
            raise InvalidQueryException(f"검색어는 {SecurityValidator.MAX_QUERY_LENGTH}자 이하여야 합니다")

        for char in SecurityValidator.DANGEROUS_CHARS:
            if char in normalized:
                logger.warning(f"검색어에 위험한 문자 감지: {sanitize_for_log(char)}")
                raise InvalidQueryException("검색어에 허용되지 않는 문자가 포함되어 있습니다")

        return normalized

    @staticmethod
    def validate_paging(page: int, limit: int) -> None:
        """페이지 번호/크기 검증

        Raises:
            ValidationException: page < 1 또는 limit 범위 초과
        """
        if page < 1:
            raise ValidationException("page", "1 이상이어야 합니다")
        if not 1 <= limit <= SecurityValidator.MAX_PAGE_LIMIT:
            raise ValidationException("limit", f"1~{SecurityValidator.MAX_PAGE_LIMIT} 범위여야 합니다")

    @staticmethod
    def validate_price_range(min_price: Optional[int], max_price: Optional[int]) -> None:
        """가격 필터 검증

        Raises:
            ValidationException: 음수이거나 min > max
        """
        for field, value in (("min_price", min_price), ("max_price", max_price)):
            if value is not None and value < 0:
                raise ValidationException(field, "가격은 음수일 수 없습니다")
        if min_price is not None and max_price is not None and min_price > max_price:
            raise ValidationException("min_price", "최소 가격이 최대 가격보다 큽니다")


async def log_request(request: Request) -> None:
    """요청 로깅 (민감 정보 제외)

    Args:
        request: FastAPI Request 객체
    """
    method = request.method
    path = request.url.path

    query_params = {}
    for key, value in request.query_params.items():
        query_params[key] = sanitize_for_log(str(value), max_length=50)

    if query_params:
        logger.debug(f"{method} {path}?{query_params}")
    else:
        logger.debug(f"{method} {path}")
