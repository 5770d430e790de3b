"""PChome / momo fetcher 유닛 테스트

HTTP 클라이언트와 렌더 세션은 Mock으로 대체합니다.
"""
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.core.exceptions import BlockedException, SourceUnavailableException
from src.crawlers.momo import MomoFetcher
from src.crawlers.pchome import PChomeFetcher
from tests.fixtures.products import MOMO_SEARCH_HTML, PCHOME_API_PAGE


def _render_factory(html: str):
    page = MagicMock()
    page.goto = AsyncMock()
    page.wait_for_selector = AsyncMock()
    page.content = AsyncMock(return_value=html)

    @asynccontextmanager
    async def factory():
        yield page

    return factory, page


class TestPChomeFetcher:
    @pytest.mark.asyncio
    async def test_api_path(self):
        http = MagicMock()
        http.get_json = AsyncMock(return_value=(200, PCHOME_API_PAGE))
        fetcher = PChomeFetcher(http_client=http)

        result = await fetcher.fetch("烏龜", max_results=10)

        assert result.success
        assert result.metadata["via"] == "api"
        assert [p.name for p in result.products] == ["烏龜缸 60公分", "烏龜 過濾器"]
        first = result.products[0]
        assert first.price == 89900
        assert first.platform == "pchome"
        assert len(first.id) == 16
        assert result.products[1].in_stock is False
        http.get_json.assert_awaited_once()
        assert http.get_json.await_args.kwargs["params"]["q"] == "烏龜"

    @pytest.mark.asyncio
    async def test_paging_stops_on_empty_page(self):
        http = MagicMock()
        http.get_json = AsyncMock(side_effect=[(200, PCHOME_API_PAGE), (200, {"prods": []})])
        fetcher = PChomeFetcher(http_client=http)

        with patch("src.crawlers.pchome.asyncio.sleep", new=AsyncMock()) as sleep:
            result = await fetcher.fetch("烏龜", max_results=100)

        assert result.total == 2
        assert http.get_json.await_count == 2
        sleep.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_api_failure_falls_back_to_render(self):
        http = MagicMock()
        http.get_json = AsyncMock(return_value=(500, None))
        html = """
        <div class="prod_info">
          <h5 class="prod_name"><a href="/prod/DEAA01-1">烏龜缸</a></h5>
          <span class="price">$899</span>
        </div>
        """
        factory, page = _render_factory(html)
        fetcher = PChomeFetcher(http_client=http, render_factory=factory)

        with patch("src.crawlers.pchome.scroll_until", new=AsyncMock(return_value=1)):
            result = await fetcher.fetch("烏龜", max_results=10)

        assert result.metadata["via"] == "render"
        assert result.products[0].name == "烏龜缸"
        assert result.products[0].price == 89900
        page.goto.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_render_blocked(self):
        http = MagicMock()
        http.get_json = AsyncMock(return_value=(403, None))
        factory, _ = _render_factory("<title>Just a moment...</title>")
        fetcher = PChomeFetcher(http_client=http, render_factory=factory)

        with patch("src.crawlers.pchome.scroll_until", new=AsyncMock(return_value=0)):
            with pytest.raises(BlockedException):
                await fetcher.fetch("烏龜", max_results=10)


class TestMomoFetcher:
    def test_search_url(self):
        url = MomoFetcher(http_client=MagicMock()).search_url("烏龜", page=2)
        assert url.startswith("https://www.momoshop.com.tw/search/searchShop.jsp?")
        assert "curPage=2" in url
        assert "keyword=%E7%83%8F%E9%BE%9C" in url

    @pytest.mark.asyncio
    async def test_http_path(self):
        http = MagicMock()
        http.get_text = AsyncMock(return_value=(200, MOMO_SEARCH_HTML))
        fetcher = MomoFetcher(http_client=http)

        result = await fetcher.fetch("烏龜")

        assert result.metadata["via"] == "http"
        assert [p.name for p in result.products] == ["iPhone 15 手機殼", "烏龜 曬背燈"]
        assert [p.price for p in result.products] == [39000, 128000]
        assert all(p.platform == "momo" for p in result.products)

    @pytest.mark.asyncio
    async def test_empty_render_is_unavailable(self):
        http = MagicMock()
        http.get_text = AsyncMock(return_value=None)
        factory, _ = _render_factory("<html><div class='listArea'></div></html>")
        fetcher = MomoFetcher(http_client=http, render_factory=factory)

        with patch("src.crawlers.momo.scroll_until", new=AsyncMock(return_value=0)):
            with pytest.raises(SourceUnavailableException):
                await fetcher.fetch("烏龜")


@pytest.mark.asyncio
async def test_check_health_never_raises():
    http = MagicMock()
    http.get_text = AsyncMock(side_effect=RuntimeError("dns"))
    result = await MomoFetcher(http_client=http).check_health()
    assert result["status"] == "unhealthy"
    assert result["platform"] == "momo"
