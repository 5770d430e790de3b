"""Engine Layer - 시간 예산 관리

- BudgetManager: 오케스트레이션 단위 전체 마감 시간
- BudgetConfig: 전체 예산 / 단계별 타임아웃 설정
"""

from .budget import BudgetConfig, BudgetManager

__all__ = [
    "BudgetManager",
    "BudgetConfig",
]
