"""Retry Strategy - 제공자별 재시도/백오프 결정

오류 유형과 시도 횟수에 따라 재시도 여부와 대기 시간을 결정합니다.
"""

from dataclasses import dataclass
from enum import Enum

from src.core.exceptions import ProviderRateLimitedException, ProviderUnavailableException


class BackoffKind(str, Enum):
    """백오프 방식"""

    NONE = "none"
    CONSTANT = "constant"  # 매번 같은 지연
    LINEAR = "linear"  # base_delay × attempt


@dataclass(frozen=True)
class RetryPolicy:
    """재시도 정책

    Attributes:
        max_attempts: 총 시도 횟수 (첫 시도 포함)
        base_delay_s: 일반 오류 지연 (LINEAR는 시도 번호를 곱함)
        rate_limit_delay_s: HTTP 429 지연. None이면 base_delay_s 규칙을 그대로 사용
        backoff: 백오프 방식

    Usage:
        policy = RetryPolicy.rate_limited(max_attempts=3, rate_limit_delay_s=60.0, error_delay_s=5.0)
        if policy.should_retry(error, attempt):
            await sleep(policy.delay_for(attempt, error))
    """

    max_attempts: int = 1
    base_delay_s: float = 0.0
    rate_limit_delay_s: float | None = None
    backoff: BackoffKind = BackoffKind.NONE

    @classmethod
    def rate_limited(cls, max_attempts: int, rate_limit_delay_s: float, error_delay_s: float) -> "RetryPolicy":
        """원격 LLM: 429는 긴 고정 지연(rate-limit 윈도우), 그 외 오류는 짧은 고정 지연"""
        return cls(
            max_attempts=max_attempts,
            base_delay_s=error_delay_s,
            rate_limit_delay_s=rate_limit_delay_s,
            backoff=BackoffKind.CONSTANT,
        )

    @classmethod
    def linear(cls, max_attempts: int, retry_delay_s: float) -> "RetryPolicy":
        """로컬 LLM: retry_delay × attempt"""
        return cls(max_attempts=max_attempts, base_delay_s=retry_delay_s, backoff=BackoffKind.LINEAR)

    @classmethod
    def no_retry(cls) -> "RetryPolicy":
        return cls(max_attempts=1)

    def should_retry(self, error: Exception, attempt: int) -> bool:
        """재시도 여부 결정

        - 시도 횟수 소진: 재시도하지 않음
        - ProviderUnavailableException: 연결 거부/미인증 등, 재시도 무의미
        - 그 외 (타임아웃, 429, 응답 형식 오류): 재시도
        """
        if attempt >= self.max_attempts:
            return False
        if isinstance(error, ProviderUnavailableException):
            return False
        return True

    def delay_for(self, attempt: int, error: Exception) -> float:
        """attempt번째 시도가 실패한 뒤 대기할 시간 (초)"""
        if isinstance(error, ProviderRateLimitedException) and self.rate_limit_delay_s is not None:
            return self.rate_limit_delay_s
        if self.backoff == BackoffKind.CONSTANT:
            return self.base_delay_s
        if self.backoff == BackoffKind.LINEAR:
            return self.base_delay_s * attempt
        return 0.0
