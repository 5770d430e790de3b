"""제공자 헬스 레지스트리 (Circuit Breaker 스타일)

- 시도마다 성공/실패를 기록
- 연속 실패가 임계값 이상이고 마지막 실패 후 open 윈도우 안이면 "다운"으로 간주
- 윈도우가 지나면 다시 시도할 수 있고, 성공하면 연속 실패가 0으로 초기화
- 프로세스 수명 동안만 유지 (영속화 없음)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from time import monotonic
from typing import Callable, Dict, List, Optional

from src.core.config import settings
from src.core.logging import logger, sanitize_for_log


@dataclass
class ProviderHealth:
    """제공자별 통계"""

    name: str
    success_count: int = 0
    total_attempts: int = 0
    total_latency_ms: float = 0.0
    consecutive_failures: int = 0
    last_success: Optional[datetime] = None
    last_failure: Optional[datetime] = None
    last_error: Optional[str] = None
    # 단조 시계 기준 마지막 실패 시각 (open 윈도우 계산용)
    last_failure_at: float = 0.0

    @property
    def success_rate(self) -> float:
        """성공률 (0.0~1.0)"""
        return self.success_count / self.total_attempts if self.total_attempts > 0 else 0.0

    @property
    def avg_latency_ms(self) -> float:
        return self.total_latency_ms / self.success_count if self.success_count > 0 else 0.0

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "success_count": self.success_count,
            "total_attempts": self.total_attempts,
            "consecutive_failures": self.consecutive_failures,
            "success_rate": round(self.success_rate, 4),
            "avg_latency_ms": round(self.avg_latency_ms, 1),
            "last_success": self.last_success,
            "last_failure": self.last_failure,
            "last_error": self.last_error,
        }

    def __repr__(self) -> str:
        return (
            f"ProviderHealth({self.name}: {self.success_count}/{self.total_attempts}="
            f"{self.success_rate:.1%}, streak={self.consecutive_failures})"
        )


class ProviderHealthRegistry:
    """제공자 헬스 상태 저장소 (이벤트 루프 단일 스레드에서만 변경)"""

    def __init__(
        self,
        fail_threshold: Optional[int] = None,
        open_duration_sec: Optional[float] = None,
        clock: Callable[[], float] = monotonic,
    ) -> None:
        """초기화.

        Args:
            fail_threshold: 다운 판정 연속 실패 횟수
            open_duration_sec: 다운 상태 유지 시간 (초)
            clock: 단조 시계 (테스트 주입용)
        """
        self.fail_threshold = fail_threshold or settings.llm_fallback_threshold
        self.open_duration_sec = (
            open_duration_sec if open_duration_sec is not None else settings.llm_fallback_open_seconds
        )
        self._clock = clock
        self._stats: Dict[str, ProviderHealth] = {}

    def get(self, name: str) -> ProviderHealth:
        if name not in self._stats:
            self._stats[name] = ProviderHealth(name=name)
        return self._stats[name]

    def record_success(self, name: str, latency_ms: float) -> None:
        """성공 기록 → 연속 실패 초기화."""
        stats = self.get(name)
        stats.success_count += 1
        stats.total_attempts += 1
        stats.total_latency_ms += latency_ms
        stats.consecutive_failures = 0
        stats.last_success = datetime.now()

    def record_failure(self, name: str, error: str) -> None:
        """실패 기록 → 임계값 도달 시 다운 판정."""
        stats = self.get(name)
        stats.total_attempts += 1
        stats.consecutive_failures += 1
        stats.last_failure = datetime.now()
        stats.last_failure_at = self._clock()
        stats.last_error = sanitize_for_log(error, max_length=300)

        if stats.consecutive_failures == self.fail_threshold:
            logger.warning(
                f"[PROVIDER] {name} treated as down (consecutive_failures={stats.consecutive_failures} "
                f">= {self.fail_threshold}) for {self.open_duration_sec}s"
            )

    def is_down(self, name: str) -> bool:
        """연속 실패가 임계값 이상이고 open 윈도우 안인가?"""
        stats = self._stats.get(name)
        if stats is None or stats.consecutive_failures < self.fail_threshold:
            return False
        return (self._clock() - stats.last_failure_at) < self.open_duration_sec

    def get_remaining_open_time(self, name: str) -> float:
        stats = self._stats.get(name)
        if stats is None or stats.consecutive_failures < self.fail_threshold:
            return 0.0
        return max(0.0, self.open_duration_sec - (self._clock() - stats.last_failure_at))

    def snapshot(self) -> List[dict]:
        return [s.to_dict() for s in self._stats.values()]

    def reset(self) -> None:
        self._stats.clear()

    def report(self) -> None:
        """성능 통계 로그"""
        logger.info("[PROVIDER] performance report:")
        for stats in self._stats.values():
            logger.info(
                f"   {stats.name.upper()}: success_rate {stats.success_rate:.1%}, "
                f"avg_latency {stats.avg_latency_ms:.0f}ms, attempts {stats.total_attempts}"
            )
