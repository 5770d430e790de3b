"""Gemini (원격 LLM) 분류 제공자"""

from __future__ import annotations

from typing import List, Optional, Sequence

import httpx

from src.classification.prompt import build_classification_prompt
from src.classification.providers.base import HttpLLMProvider
from src.classification.repair import parse_classification_response
from src.classification.strategy import RetryPolicy
from src.core.config import Settings, settings
from src.core.exceptions import MalformedResponseException
from src.core.logging import logger
from src.schemas.product_schema import Category, Product


class GeminiProvider(HttpLLMProvider):
    """generateContent API 호출

    429는 rate-limit 윈도우(기본 60초)만큼, 그 외 오류는 짧게(기본 5초) 대기 후 재시도.
    """

    name = "gemini"

    def __init__(self, config: Optional[Settings] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__(transport)
        self.config = config or settings
        self.timeout_s = float(self.config.gemini_timeout_s)
        self.retry_policy = RetryPolicy.rate_limited(
            max_attempts=self.config.gemini_max_retries,
            rate_limit_delay_s=float(self.config.gemini_retry_delay_s),
            error_delay_s=float(self.config.gemini_error_retry_delay_s),
        )

    def is_enabled(self) -> bool:
        return bool(self.config.gemini_enabled and self.config.gemini_api_key)

    @property
    def endpoint(self) -> str:
        return f"{self.config.gemini_base_url.rstrip('/')}/models/{self.config.gemini_model}:generateContent"

    def build_payload(self, prompt: str) -> dict:
        return {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self.config.gemini_temperature,
                "maxOutputTokens": self.config.gemini_max_tokens,
                "topP": 0.8,
                "topK": 10,
            },
        }

    @staticmethod
    def extract_text(data: dict) -> str:
        """candidates[0].content.parts[0].text"""
        try:
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            raise MalformedResponseException("gemini", "missing candidates[0].content.parts[0].text") from e
        if not isinstance(text, str) or not text.strip():
            raise MalformedResponseException("gemini", "empty response text")
        return text

    async def classify(self, products: Sequence[Product], search_query: str) -> List[Category]:
        prompt = build_classification_prompt(products, search_query)
        logger.debug(f"[GEMINI] classifying {len(products)} products (prompt {len(prompt)} chars)")

        data = await self._post_json(
            self.endpoint,
            self.build_payload(prompt),
            params={"key": self.config.gemini_api_key},
        )
        return parse_classification_response(
            self.extract_text(data),
            products,
            default_category=self.config.llm_default_category,
            catch_all_category=self.config.llm_catch_all_category,
        )
