"""주기 작업 스케줄러."""

from .cache_sweep import CacheSweepScheduler

__all__ = ["CacheSweepScheduler"]
