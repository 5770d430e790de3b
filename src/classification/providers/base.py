"""분류 제공자 공통 인터페이스"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

import httpx

from src.classification.strategy import RetryPolicy
from src.core.exceptions import (
    MalformedResponseException,
    ProviderException,
    ProviderRateLimitedException,
    ProviderTimeoutException,
    ProviderUnavailableException,
)
from src.schemas.product_schema import Category, Product


class ClassificationProvider(ABC):
    """분류 제공자

    Attributes:
        name: 제공자 이름 (fallback_order에 쓰는 값)
        is_network: 원격 호출 여부. 네트워크 제공자만 헬스/예산 검사를 받음
        timeout_s: 1회 시도 타임아웃
        budget_floor_s: 남은 예산이 이보다 적으면 시도하지 않음
        retry_policy: 재시도 정책
    """

    name: str = "base"
    is_network: bool = True
    timeout_s: float = 30.0
    budget_floor_s: float = 5.0
    retry_policy: RetryPolicy = RetryPolicy.no_retry()

    @abstractmethod
    def is_enabled(self) -> bool:
        """설정상 사용 가능 여부 (비활성 제공자는 건너뜀, 실패로 기록하지 않음)"""

    async def probe(self) -> bool:
        """시도 전 헬스 프로브. 기본은 항상 통과."""
        return True

    @abstractmethod
    async def classify(self, products: Sequence[Product], search_query: str) -> List[Category]:
        """상품 분할 반환. 실패는 ProviderException 계열로 알림."""


class HttpLLMProvider(ClassificationProvider):
    """HTTP 기반 LLM 제공자 공통 처리 (httpx)"""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        # 테스트에서 httpx.MockTransport 주입
        self._transport = transport

    def _client(self, timeout_s: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=timeout_s, transport=self._transport)

    async def _post_json(self, url: str, payload: dict, params: Optional[dict] = None) -> dict:
        """POST → JSON dict. httpx 오류를 제공자 예외로 변환."""
        try:
            async with self._client(self.timeout_s) as client:
                response = await client.post(url, json=payload, params=params)
        except httpx.TimeoutException as e:
            raise ProviderTimeoutException(self.name, self.timeout_s) from e
        except httpx.ConnectError as e:
            raise ProviderUnavailableException(self.name, f"connection error: {e}") from e
        except httpx.HTTPError as e:
            raise ProviderException(self.name, f"HTTP error: {type(e).__name__}: {e}") from e

        if response.status_code == 429:
            raise ProviderRateLimitedException(self.name)
        if response.status_code in (401, 403):
            raise ProviderUnavailableException(self.name, f"HTTP {response.status_code}")
        if response.status_code >= 400:
            raise ProviderException(
                self.name,
                f"HTTP {response.status_code}: {response.text[:200]}",
                "PROVIDER_HTTP_ERROR",
                {"status_code": response.status_code},
            )

        try:
            data = response.json()
        except ValueError as e:
            raise MalformedResponseException(self.name, "response body is not JSON") from e
        if not isinstance(data, dict):
            raise MalformedResponseException(self.name, "response body is not an object")
        return data
