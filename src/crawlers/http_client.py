"""쇼핑몰 공유 HTTP 세션 (curl_cffi, 브라우저 TLS 지문 위장)

- 프로세스 단위로 AsyncSession 하나를 재사용합니다.
- fetcher별 헤더(Referer 등)는 요청마다 넘기고, 세션에는 공통 헤더만 둡니다.
- 실패는 예외 대신 None으로 돌려주며, 상태 코드 해석은 fetcher 책임입니다.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Dict, Optional, Tuple
from urllib.parse import urlsplit

from curl_cffi.requests import AsyncSession

from src.core.config import settings
from src.core.logging import logger


class SharedHttpClient:
    """PChome/momo fetcher가 공유하는 HTTP 세션"""

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._session: Optional[AsyncSession] = None

    async def _ensure_session(self) -> AsyncSession:
        async with self._lock:
            if self._session is None:
                self._session = AsyncSession(
                    impersonate=settings.crawler_http_impersonate,
                    headers={
                        "User-Agent": settings.crawler_user_agent,
                        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
                        "Accept-Language": "zh-TW,zh;q=0.9,en;q=0.8",
                    },
                    allow_redirects=True,
                    max_clients=settings.crawler_http_max_clients,
                    trust_env=False,
                )
                logger.debug(f"[HTTP_CLIENT] session opened (impersonate={settings.crawler_http_impersonate})")
            return self._session

    async def get_text(
        self,
        url: str,
        *,
        timeout_s: float,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Optional[Tuple[int, str]]:
        """GET → (status, body). 네트워크 실패는 None."""
        sess = await self._ensure_session()
        host = urlsplit(url).netloc
        try:
            resp = await sess.get(url, params=params, headers=headers, timeout=timeout_s)
        except Exception as e:
            logger.info(f"[HTTP_CLIENT] GET {host} failed: {type(e).__name__}: {e!r}")
            return None
        status = resp.status_code or 0
        if status >= 400:
            logger.debug(f"[HTTP_CLIENT] GET {host} -> HTTP {status}")
        return status, resp.text or ""

    async def get_json(
        self,
        url: str,
        *,
        timeout_s: float,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Optional[Tuple[int, Any]]:
        """GET 후 JSON 디코드. 네트워크 실패는 None, 디코드 실패는 (status, None)."""
        res = await self.get_text(
            url, timeout_s=timeout_s, params=params, headers={"Accept": "application/json", **(headers or {})}
        )
        if res is None:
            return None
        status, text = res
        if not text:
            return status, None
        try:
            return status, json.loads(text)
        except ValueError:
            logger.info(f"[HTTP_CLIENT] JSON decode failed (status={status}, len={len(text)})")
            return status, None

    async def close(self) -> None:
        async with self._lock:
            session, self._session = self._session, None
        if session is None:
            return
        try:
            await session.close()
        except Exception as e:
            logger.debug(f"[HTTP_CLIENT] close failed: {type(e).__name__}")


_shared_http_client = SharedHttpClient()


def get_shared_http_client() -> SharedHttpClient:
    return _shared_http_client


async def shutdown_shared_http_client() -> None:
    await _shared_http_client.close()
