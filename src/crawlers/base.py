"""사이트 Fetcher 기본 클래스

- fetcher 간 공유 상태 없음 (각자 설정 보유, 공유 HTTP 세션은 상태 없음)
- 네트워크/파싱 실패는 CrawlerException 하위 타입으로 전파
- 가격/상품명/이미지 정규화는 fetcher 책임
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from playwright.async_api import Page

from src.core.config import settings
from src.core.logging import logger
from src.crawlers.http_client import SharedHttpClient, get_shared_http_client
from src.crawlers.playwright.browser import render_session
from src.crawlers.result import SourceCrawlResult
from src.schemas.product_schema import Product
from src.utils.hash_utils import generate_product_id
from src.utils.text_utils import clean_product_name, normalize_price
from src.utils.url_utils import normalize_image_url


RenderSessionFactory = Callable[[], AbstractAsyncContextManager[Page]]


class BaseFetcher(ABC):
    """쇼핑몰별 검색 Fetcher"""

    platform: str = ""
    display_name: str = ""
    base_url: str = ""
    health_url: str = ""
    default_max_results: int = 100

    def __init__(
        self,
        http_client: Optional[SharedHttpClient] = None,
        render_factory: Optional[RenderSessionFactory] = None,
        request_timeout_s: Optional[float] = None,
    ) -> None:
        self._http = http_client or get_shared_http_client()
        self._render_factory = render_factory or render_session
        self.request_timeout_s = request_timeout_s or settings.crawler_http_request_timeout_s

    @abstractmethod
    async def fetch(self, query: str, *, max_results: Optional[int] = None, page: int = 1) -> SourceCrawlResult:
        """검색어로 상품을 수집합니다.

        Raises:
            CrawlerException: 네트워크/파싱/차단 등 수집 실패
        """

    def build_product(self, raw: Dict[str, Any], base_url: str) -> Optional[Product]:
        """raw dict → Product. 상품명이 정제 후 비면 None."""
        raw_name = str(raw.get("name") or "")
        name = clean_product_name(raw_name)
        if not name:
            return None
        url = str(raw.get("url") or "")
        return Product(
            id=generate_product_id(self.platform, raw_name, url),
            name=name,
            description=str(raw.get("description") or ""),
            price=normalize_price(raw.get("price")),
            platform=self.platform,
            url=url,
            image=normalize_image_url(str(raw.get("image") or ""), base_url),
            in_stock=raw.get("in_stock") is not False,
            rating=raw.get("rating") or None,
            review_count=int(raw.get("review_count") or 0),
            seller=raw.get("seller"),
            shipping=raw.get("shipping") or "依商家規定",
            crawled_at=datetime.now(),
        )

    def build_result(
        self,
        raws: List[Dict[str, Any]],
        *,
        base_url: str,
        max_results: int,
        **metadata: Any,
    ) -> SourceCrawlResult:
        products: List[Product] = []
        for raw in raws:
            product = self.build_product(raw, base_url)
            if product is not None:
                products.append(product)
            if len(products) >= max_results:
                break
        return SourceCrawlResult.ok(self.platform, products, **metadata)

    async def check_health(self) -> Dict[str, Any]:
        """가벼운 상태 확인 (예외를 던지지 않음)"""
        started = time.perf_counter()
        url = self.health_url or self.base_url
        try:
            res = await self._http.get_text(url, timeout_s=5.0)
        except Exception as e:
            logger.warning(f"[{self.platform.upper()}] health check error: {type(e).__name__}")
            res = None
        elapsed_ms = (time.perf_counter() - started) * 1000

        if res is None:
            return {"platform": self.platform, "status": "unhealthy", "error": "network error", "response_time_ms": elapsed_ms}
        status, _text = res
        if status != 200:
            return {"platform": self.platform, "status": "unhealthy", "error": f"HTTP {status}", "response_time_ms": elapsed_ms}
        return {"platform": self.platform, "status": "healthy", "error": None, "response_time_ms": elapsed_ms}

    def info(self) -> Dict[str, str]:
        return {"id": self.platform, "name": self.display_name, "base_url": self.base_url}
