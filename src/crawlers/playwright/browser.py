"""Playwright 렌더 세션 관리.

API/HTTP 경로가 모두 실패했을 때만 쓰는 마지막 수단입니다.
브라우저는 호출 단위로 띄우고, 성공/오류/타임아웃/취소 모든 경로에서
async context manager가 정리합니다. 동시 브라우저 수는 세마포어로 제한합니다.
"""

from __future__ import annotations

import asyncio
import platform
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from playwright.async_api import async_playwright, Browser, Page, Playwright

from src.core.config import settings
from src.core.logging import logger
from src.core.exceptions import BrowserException, NetworkTimeoutException
from src.crawlers.playwright.pages import configure_page


_browser_sema: Optional[asyncio.Semaphore] = None

LAUNCH_ATTEMPTS = 2


def build_launch_args() -> list[str]:
    args: list[str] = [
        "--disable-dev-shm-usage",
        "--disable-gpu",
        "--disable-accelerated-2d-canvas",
        "--disable-background-networking",
        "--disable-background-timer-throttling",
        "--disable-renderer-backgrounding",
        "--disable-default-apps",
        "--disable-extensions",
        "--no-first-run",
        "--no-default-browser-check",
    ]

    if platform.system().lower() == "linux":
        args.extend(["--no-sandbox", "--disable-setuid-sandbox"])

    deduped: list[str] = []
    seen: set[str] = set()
    for a in args:
        if a not in seen:
            seen.add(a)
            deduped.append(a)
    return deduped


def get_browser_semaphore() -> asyncio.Semaphore:
    """브라우저 동시성 세마포어 (프로세스 단위)"""
    global _browser_sema
    if _browser_sema is None:
        _browser_sema = asyncio.Semaphore(settings.crawler_browser_concurrency)
    return _browser_sema


async def _acquire_with_timeout(sem: asyncio.Semaphore, timeout: float) -> bool:
    try:
        await asyncio.wait_for(sem.acquire(), timeout=timeout)
        return True
    except asyncio.TimeoutError:
        return False


async def _stop_quietly(pw: Optional[Playwright], browser: Optional[Browser]) -> None:
    if browser is not None:
        try:
            await browser.close()
        except Exception as e:
            logger.debug(f"[Playwright] browser close failed: {type(e).__name__}")
    if pw is not None:
        try:
            await pw.stop()
        except Exception as e:
            logger.debug(f"[Playwright] playwright stop failed: {type(e).__name__}")


async def _launch() -> tuple[Playwright, Browser]:
    last_err: Optional[Exception] = None
    for attempt in range(1, LAUNCH_ATTEMPTS + 1):
        pw: Optional[Playwright] = None
        browser: Optional[Browser] = None
        try:
            logger.info(f"[Playwright] Launching browser (attempt {attempt}/{LAUNCH_ATTEMPTS})...")
            pw = await asyncio.wait_for(async_playwright().start(), timeout=20.0)
            browser = await asyncio.wait_for(
                pw.chromium.launch(
                    headless=True,
                    args=build_launch_args(),
                    timeout=settings.crawler_render_timeout_ms,
                ),
                timeout=25.0,
            )
            return pw, browser
        except Exception as e:
            last_err = e
            logger.error(f"[Playwright] Failed to launch browser (attempt {attempt}/{LAUNCH_ATTEMPTS}): {type(e).__name__}: {e}")
            await _stop_quietly(pw, browser)
            if attempt < LAUNCH_ATTEMPTS:
                await asyncio.sleep(min(2.0 * attempt, 10.0))

    raise BrowserException(f"[Playwright] Browser launch failed after retries: {last_err}")


@asynccontextmanager
async def render_session(acquire_timeout_s: float = 10.0) -> AsyncIterator[Page]:
    """호출 단위 렌더 세션.

    Usage:
        async with render_session() as page:
            await page.goto(url)

    Raises:
        NetworkTimeoutException: 동시성 슬롯을 제때 얻지 못한 경우
        BrowserException: 브라우저 실행 실패
    """
    sem = get_browser_semaphore()
    if not await _acquire_with_timeout(sem, acquire_timeout_s):
        raise NetworkTimeoutException("browser_slot", acquire_timeout_s)

    pw: Optional[Playwright] = None
    browser: Optional[Browser] = None
    try:
        pw, browser = await _launch()
        context = await browser.new_context(
            user_agent=settings.crawler_user_agent,
            locale="zh-TW",
            viewport={"width": 1366, "height": 768},
        )
        page = await context.new_page()
        await configure_page(page)
        yield page
    finally:
        await _stop_quietly(pw, browser)
        sem.release()
        logger.debug("[Playwright] render session released")
