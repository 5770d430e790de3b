"""Budget Manager - 오케스트레이션 단위 전체 마감 시간 관리

한 번의 검색(크롤 + 분류)은 하나의 전체 예산을 가지며,
각 단계(소스 fetch, 제공자 호출)의 타임아웃은 남은 예산을 넘지 않습니다.
"""

from dataclasses import dataclass, field
from time import monotonic
from typing import Callable, Optional


@dataclass
class BudgetConfig:
    """예산 설정

    stage_timeouts 예: {"crawl": 45.0, "gemini": 30.0, "ollama": 180.0}
    """

    total_budget: float = 60.0  # 전체 예산 (초)
    stage_timeouts: dict[str, float] = field(default_factory=dict)
    min_remaining: float = 1.0  # 실행 최소 여유 시간 (초)

    def __post_init__(self):
        """설정 검증"""
        if self.total_budget <= 0:
            raise ValueError(f"total_budget must be positive (got {self.total_budget})")
        for stage, timeout in self.stage_timeouts.items():
            if timeout <= 0:
                raise ValueError(f"Stage timeout for '{stage}' must be positive (got {timeout})")


class BudgetManager:
    """시간 예산 관리자

    실시간으로 경과 시간을 추적하고 남은 예산을 계산합니다.

    Usage:
        manager = BudgetManager(BudgetConfig(total_budget=60.0, stage_timeouts={"crawl": 45.0}))
        manager.start()

        timeout = manager.get_timeout_for("crawl")
        manager.checkpoint("crawl_done")

        if manager.can_execute("gemini"):
            ...

        report = manager.get_report()
    """

    def __init__(self, config: Optional[BudgetConfig] = None, clock: Callable[[], float] = monotonic):
        self.config = config or BudgetConfig()
        self._clock = clock
        self.start_time: Optional[float] = None
        self._checkpoints: dict[str, float] = {}

    def start(self) -> "BudgetManager":
        """예산 측정 시작"""
        self.start_time = self._clock()
        self._checkpoints.clear()
        return self

    def checkpoint(self, name: str) -> None:
        """체크포인트 기록

        Raises:
            RuntimeError: start()가 호출되지 않은 경우
        """
        if self.start_time is None:
            raise RuntimeError("Budget not started. Call start() first.")
        self._checkpoints[name] = self._clock() - self.start_time

    def elapsed(self) -> float:
        """경과 시간 반환 (초). start() 전에는 0.0"""
        if self.start_time is None:
            return 0.0
        return self._clock() - self.start_time

    def remaining(self) -> float:
        """남은 예산 반환 (초, 음수 없음)"""
        return max(0.0, self.config.total_budget - self.elapsed())

    def is_exhausted(self) -> bool:
        """최소 여유 시간보다 적게 남았는지 여부"""
        return self.remaining() < self.config.min_remaining

    def can_execute(self, stage: str, floor: Optional[float] = None) -> bool:
        """해당 단계를 시작할 만큼 예산이 남았는지

        Args:
            stage: 단계 이름
            floor: 최소 필요 시간. 없으면 단계 타임아웃, 그것도 없으면 min_remaining
        """
        needed = floor
        if needed is None:
            needed = self.config.stage_timeouts.get(stage, self.config.min_remaining)
        return self.remaining() >= needed

    def get_timeout_for(self, stage: str, default: Optional[float] = None) -> float:
        """단계별 타임아웃 계산

        남은 예산과 단계별 설정값 중 작은 값을 반환합니다.
        """
        remaining = self.remaining()
        configured = self.config.stage_timeouts.get(stage, default)
        if configured is None:
            return remaining
        return min(configured, remaining)

    def get_report(self) -> dict:
        """예산 사용 리포트 생성"""
        return {
            "total_budget": self.config.total_budget,
            "elapsed": self.elapsed(),
            "remaining": self.remaining(),
            "checkpoints": self._checkpoints.copy(),
            "is_exhausted": self.is_exhausted(),
        }
