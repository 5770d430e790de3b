"""PChome 24h Fetcher

1) 구조화된 검색 API (페이지당 50개, max_results까지 페이징)
2) API 실패 또는 빈 결과 → 검색 페이지 렌더링 후 파싱
"""

from __future__ import annotations

import asyncio
import math
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from src.core.config import settings
from src.core.exceptions import (
    BlockedException,
    CrawlerException,
    NetworkTimeoutException,
    ParsingException,
    SourceUnavailableException,
)
from src.core.logging import logger
from src.crawlers.base import BaseFetcher
from src.crawlers.parsing import (
    PCHOME_WEB_BASE,
    get_blocked_keyword,
    parse_pchome_api_products,
    parse_pchome_search_html,
)
from src.crawlers.playwright.pages import scroll_until
from src.crawlers.result import SourceCrawlResult


class PChomeFetcher(BaseFetcher):
    platform = "pchome"
    display_name = "PChome 24h"
    base_url = PCHOME_WEB_BASE
    api_url = "https://ecshweb.pchome.com.tw/search/v3.3/all/results"
    api_base_url = "https://ecshweb.pchome.com.tw"
    health_url = "https://ecshweb.pchome.com.tw/search/v3.3/all/results?q=test&size=1"
    page_size = 50
    sort_by = "sale/dc"

    def search_url(self, query: str) -> str:
        return f"{PCHOME_WEB_BASE}/search/{quote(query)}"

    async def fetch(self, query: str, *, max_results: Optional[int] = None, page: int = 1) -> SourceCrawlResult:
        max_results = max_results or self.default_max_results
        logger.info(f"[PCHOME] search start: query='{query}', max_results={max_results}")

        result: Optional[SourceCrawlResult] = None
        try:
            result = await self._fetch_via_api(query, max_results, page)
        except CrawlerException as e:
            logger.warning(f"[PCHOME] API path failed, falling back to render: {e}")

        if result is None or not result.products:
            result = await self._fetch_via_render(query, max_results)

        logger.info(f"[PCHOME] search done: query='{query}', products={result.total}, via={result.metadata.get('via')}")
        return result

    async def _fetch_via_api(self, query: str, max_results: int, page: int) -> SourceCrawlResult:
        total_pages = max(1, math.ceil(max_results / self.page_size))
        raws: List[Dict[str, Any]] = []
        headers = {
            "Accept": "application/json",
            "Referer": f"{PCHOME_WEB_BASE}/",
        }

        for offset in range(total_pages):
            if len(raws) >= max_results:
                break
            current_page = page + offset
            params = {
                "q": query,
                "page": current_page,
                "size": self.page_size,
                "sort": self.sort_by,
                "region": "tw",
            }
            res = await self._http.get_json(
                self.api_url, timeout_s=self.request_timeout_s, params=params, headers=headers
            )
            if res is None:
                raise SourceUnavailableException(self.platform, "search API request failed")

            status, data = res
            if status in (403, 429):
                raise BlockedException(self.platform, details={"status": status})
            if status != 200:
                raise SourceUnavailableException(self.platform, f"search API returned HTTP {status}")
            if not isinstance(data, dict):
                raise ParsingException("PChome search API returned non-JSON body", details={"status": status})

            prods = data.get("prods")
            if not prods:
                break
            raws.extend(parse_pchome_api_products(prods))

            if offset + 1 < total_pages and len(raws) < max_results:
                await asyncio.sleep(settings.crawler_page_delay_s)

        return self.build_result(
            raws[:max_results],
            base_url=self.api_base_url,
            max_results=max_results,
            search_url=f"{self.api_url}?q={quote(query)}",
            total_pages=total_pages,
            current_page=page,
            via="api",
        )

    async def _fetch_via_render(self, query: str, max_results: int) -> SourceCrawlResult:
        url = self.search_url(query)
        logger.info(f"[PCHOME] render fallback: {url}")
        try:
            async with self._render_factory() as page:
                await page.goto(url, wait_until="domcontentloaded", timeout=settings.crawler_render_timeout_ms)
                await page.wait_for_selector(".prod_info, .ItemList", timeout=10000)
                await scroll_until(page, ".prod_info, .item", max_results, settings.crawler_render_max_scrolls)
                html = await page.content()
        except PlaywrightTimeoutError as e:
            raise NetworkTimeoutException("pchome_render", settings.crawler_render_timeout_ms / 1000) from e
        except PlaywrightError as e:
            raise SourceUnavailableException(self.platform, f"render failed: {e}") from e

        keyword = get_blocked_keyword(html)
        raws = parse_pchome_search_html(html, max_results)
        if not raws and keyword:
            raise BlockedException(self.platform, details={"keyword": keyword})

        return self.build_result(
            raws,
            base_url=PCHOME_WEB_BASE,
            max_results=max_results,
            search_url=url,
            via="render",
        )
