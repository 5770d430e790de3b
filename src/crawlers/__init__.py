"""Marketplace crawler modules (HTTP/API first, Playwright render fallback).

공개 API는 이 파일에서만 export합니다.
"""

from .base import BaseFetcher
from .result import SourceCrawlResult, AggregateResult
from .pchome import PChomeFetcher
from .momo import MomoFetcher
from .orchestrator import CrawlOrchestrator

__all__ = [
    "BaseFetcher",
    "SourceCrawlResult",
    "AggregateResult",
    "PChomeFetcher",
    "MomoFetcher",
    "CrawlOrchestrator",
    "build_default_fetchers",
]


def build_default_fetchers() -> dict[str, BaseFetcher]:
    """기본 fetcher 레지스트리 (플랫폼 이름 → fetcher)"""
    return {
        PChomeFetcher.platform: PChomeFetcher(),
        MomoFetcher.platform: MomoFetcher(),
    }
