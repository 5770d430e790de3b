"""Ollama (로컬 LLM) 분류 제공자"""

from __future__ import annotations

from time import monotonic
from typing import Callable, List, Optional, Sequence

import httpx

from src.classification.prompt import build_classification_prompt
from src.classification.providers.base import HttpLLMProvider
from src.classification.repair import parse_classification_response
from src.classification.strategy import RetryPolicy
from src.core.config import Settings, settings
from src.core.exceptions import MalformedResponseException
from src.core.logging import logger
from src.schemas.product_schema import Category, Product

# 결정적 출력 + JSON 이후 설명문 차단
STOP_SEQUENCES = ["\n\n", "```", "注意", "說明", "重要"]


class OllamaProvider(HttpLLMProvider):
    """/api/generate 호출. 시도 전 /api/tags 프로브 (결과는 health_check_interval 동안 캐시)."""

    name = "ollama"

    def __init__(
        self,
        config: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = monotonic,
    ):
        super().__init__(transport)
        self.config = config or settings
        self.timeout_s = float(self.config.ollama_timeout_s)
        self.retry_policy = RetryPolicy.linear(
            max_attempts=self.config.ollama_max_retries,
            retry_delay_s=float(self.config.ollama_retry_delay_s),
        )
        self._clock = clock
        self._last_probe_at: Optional[float] = None
        self._last_probe_ok = False

    def is_enabled(self) -> bool:
        return bool(self.config.ollama_enabled)

    @property
    def base_url(self) -> str:
        return self.config.ollama_url.rstrip("/")

    async def probe(self) -> bool:
        now = self._clock()
        if (
            self._last_probe_at is not None
            and now - self._last_probe_at < self.config.ollama_health_check_interval_s
        ):
            return self._last_probe_ok

        try:
            async with self._client(float(self.config.ollama_health_check_timeout_s)) as client:
                response = await client.get(f"{self.base_url}/api/tags")
            ok = response.status_code == 200
        except httpx.HTTPError as e:
            logger.warning(f"[OLLAMA] health probe failed: {type(e).__name__}: {e}")
            ok = False

        self._last_probe_at = now
        self._last_probe_ok = ok
        if not ok:
            logger.warning(f"[OLLAMA] service not reachable at {self.base_url}")
        return ok

    def build_payload(self, prompt: str) -> dict:
        return {
            "model": self.config.ollama_model,
            "prompt": prompt,
            "stream": False,
            "format": "json",
            "options": {
                "temperature": 0.01,
                "num_predict": self.config.ollama_max_tokens,
                "top_p": 0.1,
                "top_k": 1,
                "repeat_penalty": 1.1,
                "seed": 42,
                "stop": STOP_SEQUENCES,
            },
        }

    async def classify(self, products: Sequence[Product], search_query: str) -> List[Category]:
        prompt = build_classification_prompt(products, search_query)
        logger.debug(f"[OLLAMA] classifying {len(products)} products with {self.config.ollama_model}")

        data = await self._post_json(f"{self.base_url}/api/generate", self.build_payload(prompt))
        text = data.get("response")
        if not isinstance(text, str) or not text.strip():
            raise MalformedResponseException(self.name, "missing 'response' text")

        return parse_classification_response(
            text,
            products,
            default_category=self.config.llm_default_category,
            catch_all_category=self.config.llm_catch_all_category,
        )
