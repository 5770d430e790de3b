"""전역 테스트 설정

역할:
- 테스트 환경 구성
- 공통 Dummy/Fake 주입 (fetcher / 분류 제공자 / 시계)

금지:
- 실제 네트워크 호출
- 대량 상품 데이터 (tests/fixtures 의 dict 사용)
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, List, Optional, Sequence

import pytest


# 프로젝트 루트를 경로에 추가
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from src.classification.categories import build_category  # noqa: E402
from src.classification.providers.base import ClassificationProvider  # noqa: E402
from src.classification.strategy import RetryPolicy  # noqa: E402
from src.crawlers.base import BaseFetcher  # noqa: E402
from src.crawlers.result import SourceCrawlResult  # noqa: E402
from src.schemas.product_schema import Category, Product  # noqa: E402
from tests.fixtures.products import PRODUCTS  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def test_env() -> None:
    """테스트 환경 변수 설정 (세션 전역)"""
    os.environ["ENVIRONMENT"] = "test"
    os.environ["LOG_LEVEL"] = "INFO"


def make_product(key: str, platform: Optional[str] = None, **overrides: Any) -> Product:
    """fixtures dict → Product"""
    data = dict(PRODUCTS[key])
    if platform is not None:
        data["platform"] = platform
    data.update(overrides)
    data.setdefault("id", f"{data.get('platform', 'unknown')}-{key}")
    return Product(**data)


@dataclass
class FakeClock:
    """단조 시계 대용 (수동 전진)"""

    now: float = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class DummyFetcher(BaseFetcher):
    """고정 결과/예외/지연을 돌려주는 fetcher"""

    def __init__(
        self,
        platform: str,
        products: Sequence[Product] = (),
        error: Optional[Exception] = None,
        delay_s: float = 0.0,
    ):
        super().__init__(http_client=object(), render_factory=lambda: None)  # type: ignore[arg-type]
        self.platform = platform
        self.display_name = platform.upper()
        self.base_url = f"https://{platform}.example"
        self.products = list(products)
        self.error = error
        self.delay_s = delay_s
        self.calls = 0

    async def fetch(self, query: str, *, max_results: Optional[int] = None, page: int = 1) -> SourceCrawlResult:
        import asyncio

        self.calls += 1
        if self.delay_s:
            await asyncio.sleep(self.delay_s)
        if self.error is not None:
            raise self.error
        items = self.products[: max_results or len(self.products)]
        return SourceCrawlResult.ok(self.platform, items, via="dummy")

    async def check_health(self) -> dict:
        return {"platform": self.platform, "status": "healthy", "error": None, "response_time_ms": 1.0}


@dataclass
class DummyProvider(ClassificationProvider):
    """분류 제공자 대역

    - errors: 시도마다 순서대로 던질 예외 (소진되면 성공)
    - always_error: 매 시도 던질 예외
    - label: 성공 시 모든 상품을 넣을 카테고리 이름
    """

    name: str = "dummy"
    enabled: bool = True
    is_network: bool = True
    retry_policy: RetryPolicy = field(default_factory=RetryPolicy.no_retry)
    timeout_s: float = 5.0
    budget_floor_s: float = 1.0
    errors: List[Exception] = field(default_factory=list)
    always_error: Optional[Exception] = None
    label: Optional[str] = None
    probe_ok: bool = True
    calls: int = 0
    probes: int = 0
    seen: List[List[Product]] = field(default_factory=list)
    classify_fn: Optional[Callable[[Sequence[Product]], List[Category]]] = None

    def is_enabled(self) -> bool:
        return self.enabled

    async def probe(self) -> bool:
        self.probes += 1
        return self.probe_ok

    async def classify(self, products: Sequence[Product], search_query: str) -> List[Category]:
        self.calls += 1
        self.seen.append(list(products))
        if self.always_error is not None:
            raise self.always_error
        if self.errors:
            raise self.errors.pop(0)
        if self.classify_fn is not None:
            return self.classify_fn(products)
        return [build_category(self.label or f"{self.name}分類", products)]


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sample_products() -> List[Product]:
    """두 플랫폼 6개 상품"""
    return [
        make_product("turtle_tank", "pchome"),
        make_product("turtle_filter", "pchome"),
        make_product("turtle_food", "pchome"),
        make_product("iphone_case", "momo"),
        make_product("turtle_lamp", "momo"),
        make_product("turtle_figure", "momo"),
    ]
