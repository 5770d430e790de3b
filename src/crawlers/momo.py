"""momo購物網 Fetcher

1) 검색 페이지 HTTP fetch + selectolax 파싱
2) 결과가 없거나 차단되면 렌더링 후 같은 파서로 파싱
"""

from __future__ import annotations

from typing import Optional
from urllib.parse import urlencode

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
from src.crawlers.parsing import MOMO_BASE, get_blocked_keyword, parse_momo_search_html
from src.crawlers.playwright.pages import scroll_until
from src.crawlers.result import SourceCrawlResult


class MomoFetcher(BaseFetcher):
    platform = "momo"
    display_name = "momo購物網"
    base_url = MOMO_BASE
    search_endpoint = f"{MOMO_BASE}/search/searchShop.jsp"
    default_max_results = 40

    def search_url(self, query: str, page: int = 1) -> str:
        params = {
            "keyword": query,
            "searchType": 1,
            "curPage": page,
            "_isFuzzy": 0,
            "showType": "chessboardType",
        }
        return f"{self.search_endpoint}?{urlencode(params)}"

    async def fetch(self, query: str, *, max_results: Optional[int] = None, page: int = 1) -> SourceCrawlResult:
        max_results = max_results or self.default_max_results
        url = self.search_url(query, page)
        logger.info(f"[MOMO] search start: query='{query}', max_results={max_results}")

        result: Optional[SourceCrawlResult] = None
        try:
            result = await self._fetch_via_http(url, max_results, page)
        except CrawlerException as e:
            logger.warning(f"[MOMO] HTTP path failed, falling back to render: {e}")

        if result is None or not result.products:
            result = await self._fetch_via_render(url, max_results, page)

        logger.info(f"[MOMO] search done: query='{query}', products={result.total}, via={result.metadata.get('via')}")
        return result

    async def _fetch_via_http(self, url: str, max_results: int, page: int) -> SourceCrawlResult:
        res = await self._http.get_text(
            url, timeout_s=self.request_timeout_s, headers={"Referer": f"{MOMO_BASE}/"}
        )
        if res is None:
            raise SourceUnavailableException(self.platform, "search page request failed")

        status, html = res
        if status in (403, 429):
            raise BlockedException(self.platform, details={"status": status})
        if status != 200:
            raise SourceUnavailableException(self.platform, f"search page returned HTTP {status}")

        raws = parse_momo_search_html(html, max_results)
        if not raws:
            keyword = get_blocked_keyword(html)
            if keyword:
                raise BlockedException(self.platform, details={"keyword": keyword})
            raise ParsingException("momo search page had no product items", details={"length": len(html)})

        return self.build_result(
            raws, base_url=MOMO_BASE, max_results=max_results, search_url=url, current_page=page, via="http"
        )

    async def _fetch_via_render(self, url: str, max_results: int, page: int) -> SourceCrawlResult:
        logger.info(f"[MOMO] render fallback: {url}")
        try:
            async with self._render_factory() as browser_page:
                await browser_page.goto(url, wait_until="domcontentloaded", timeout=settings.crawler_render_timeout_ms)
                await browser_page.wait_for_selector("div.listArea", timeout=15000)
                await scroll_until(browser_page, "div.listArea li", max_results, min(5, settings.crawler_render_max_scrolls))
                html = await browser_page.content()
        except PlaywrightTimeoutError as e:
            raise NetworkTimeoutException("momo_render", settings.crawler_render_timeout_ms / 1000) from e
        except PlaywrightError as e:
            raise SourceUnavailableException(self.platform, f"render failed: {e}") from e

        raws = parse_momo_search_html(html, max_results)
        if not raws:
            raise SourceUnavailableException(self.platform, "no products found")

        return self.build_result(
            raws, base_url=MOMO_BASE, max_results=max_results, search_url=url, current_page=page, via="render"
        )
