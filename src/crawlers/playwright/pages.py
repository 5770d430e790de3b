"""Playwright page 설정/보조 함수.

Page 생성 후 라우팅(리소스 차단), 헤더 설정, 스크롤 로딩 등 공통 동작을 분리합니다.
"""

from __future__ import annotations

from playwright.async_api import Page

from src.core.config import settings
from src.core.logging import logger


BLOCKED_RESOURCE_TYPES = {"image", "media", "font", "stylesheet"}


async def configure_page(page: Page) -> Page:
    page.set_default_timeout(settings.crawler_render_timeout_ms)

    async def _route_handler(route, request):
        try:
            if request.resource_type in BLOCKED_RESOURCE_TYPES:
                await route.abort()
                return
            await route.continue_()
        except Exception:
            # 페이지가 이미 닫힌 뒤 들어온 요청
            return

    try:
        await page.route("**/*", _route_handler)
    except Exception as e:
        logger.debug(f"[Playwright] route setup failed: {type(e).__name__}")

    await page.set_extra_http_headers(
        {
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "zh-TW,zh;q=0.9,en-US;q=0.8,en;q=0.7",
        }
    )

    return page


async def scroll_until(page: Page, item_selector: str, target_count: int, max_scrolls: int, wait_ms: int = 1500) -> int:
    """목표 개수에 도달하거나 높이 변화가 없을 때까지 스크롤합니다.

    Returns:
        마지막으로 확인한 아이템 개수
    """
    count = 0
    last_height = 0
    for attempt in range(max_scrolls):
        count = await page.locator(item_selector).count()
        if count >= target_count:
            break

        height = await page.evaluate("() => document.body.scrollHeight")
        if height == last_height and attempt > 1:
            break
        last_height = height

        await page.evaluate("() => window.scrollTo(0, document.body.scrollHeight)")
        await page.wait_for_timeout(wait_ms)

    return count
