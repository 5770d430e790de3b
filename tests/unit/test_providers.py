"""분류 제공자 유닛 테스트 (httpx.MockTransport, 네트워크 없음)"""
import json

import httpx
import pytest

from src.classification.prompt import build_classification_prompt
from src.classification.providers import GeminiProvider, KeywordProvider, OllamaProvider, build_providers
from src.core.config import Settings
from src.core.exceptions import (
    MalformedResponseException,
    ProviderException,
    ProviderTimeoutException,
    ProviderUnavailableException,
)


def _config(**overrides) -> Settings:
    base = dict(
        gemini_enabled=True,
        gemini_api_key="test-key",
        ollama_enabled=True,
        ollama_url="http://ollama.local:11434",
    )
    base.update(overrides)
    return Settings(**base)


LLM_ANSWER = json.dumps(
    {
        "categories": [
            {"name": "寵物用品", "description": "烏龜飼養", "productIndexes": [0, 1, 2, 4]},
            {"name": "其他", "description": "其他", "productIndexes": [3, 5]},
        ]
    },
    ensure_ascii=False,
)


class TestPrompt:
    def test_product_lines(self, sample_products):
        prompt = build_classification_prompt(sample_products, "烏龜")
        assert "「烏龜」" in prompt
        assert "1. [ID:0] 烏龜缸 60公分 玻璃水族箱 - 無描述 - $899元 - 平台:pchome" in prompt
        assert "[ID:5]" in prompt
        assert '"productIndexes"' in prompt


class TestGeminiProvider:
    def test_enabled_requires_key(self):
        assert GeminiProvider(_config()).is_enabled()
        assert not GeminiProvider(_config(gemini_api_key="")).is_enabled()
        assert not GeminiProvider(_config(gemini_enabled=False)).is_enabled()

    @pytest.mark.asyncio
    async def test_classify_success(self, sample_products):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["body"] = json.loads(request.content)
            return httpx.Response(
                200, json={"candidates": [{"content": {"parts": [{"text": f"```json\n{LLM_ANSWER}\n```"}]}}]}
            )

        provider = GeminiProvider(_config(), transport=httpx.MockTransport(handler))
        categories = await provider.classify(sample_products, "烏龜")

        assert [c.name for c in categories] == ["寵物用品", "其他"]
        assert ":generateContent" in captured["url"]
        assert captured["body"]["generationConfig"]["temperature"] == 0.1
        assert captured["body"]["generationConfig"]["maxOutputTokens"] == 4000
        assert "烏龜" in captured["body"]["contents"][0]["parts"][0]["text"]

    @pytest.mark.asyncio
    async def test_missing_candidates_is_malformed(self, sample_products):
        provider = GeminiProvider(
            _config(), transport=httpx.MockTransport(lambda r: httpx.Response(200, json={"candidates": []}))
        )
        with pytest.raises(MalformedResponseException):
            await provider.classify(sample_products, "烏龜")

    @pytest.mark.asyncio
    async def test_garbage_text_still_partitions(self, sample_products):
        body = {"candidates": [{"content": {"parts": [{"text": "抱歉，我無法完成"}]}}]}
        provider = GeminiProvider(_config(), transport=httpx.MockTransport(lambda r: httpx.Response(200, json=body)))
        categories = await provider.classify(sample_products, "烏龜")
        assert len(categories) == 1
        assert categories[0].total_products == 6

    @pytest.mark.asyncio
    async def test_server_error(self, sample_products):
        provider = GeminiProvider(
            _config(), transport=httpx.MockTransport(lambda r: httpx.Response(500, text="internal"))
        )
        with pytest.raises(ProviderException) as exc_info:
            await provider.classify(sample_products, "烏龜")
        assert exc_info.value.details["status_code"] == 500

    @pytest.mark.asyncio
    async def test_timeout(self, sample_products):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        provider = GeminiProvider(_config(), transport=httpx.MockTransport(handler))
        with pytest.raises(ProviderTimeoutException):
            await provider.classify(sample_products, "烏龜")


class TestOllamaProvider:
    @pytest.mark.asyncio
    async def test_classify_success(self, sample_products):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["path"] = request.url.path
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json={"response": LLM_ANSWER})

        provider = OllamaProvider(_config(), transport=httpx.MockTransport(handler))
        categories = await provider.classify(sample_products, "烏龜")

        assert captured["path"] == "/api/generate"
        assert captured["body"]["stream"] is False
        assert captured["body"]["format"] == "json"
        assert captured["body"]["options"]["seed"] == 42
        assert sum(c.total_products for c in categories) == 6

    @pytest.mark.asyncio
    async def test_connection_refused_is_unavailable(self, sample_products):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        provider = OllamaProvider(_config(), transport=httpx.MockTransport(handler))
        with pytest.raises(ProviderUnavailableException):
            await provider.classify(sample_products, "烏龜")

    @pytest.mark.asyncio
    async def test_probe_cached_for_interval(self, fake_clock):
        calls = []

        def handler(request):
            calls.append(request.url.path)
            return httpx.Response(200, json={"models": []})

        provider = OllamaProvider(
            _config(ollama_health_check_interval_s=60),
            transport=httpx.MockTransport(handler),
            clock=fake_clock,
        )
        assert await provider.probe()
        assert await provider.probe()
        assert calls == ["/api/tags"]

        fake_clock.advance(61)
        assert await provider.probe()
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_probe_failure(self, fake_clock):
        provider = OllamaProvider(
            _config(), transport=httpx.MockTransport(lambda r: httpx.Response(503)), clock=fake_clock
        )
        assert not await provider.probe()


class TestKeywordProvider:
    def test_query_rule_first(self):
        provider = KeywordProvider()
        assert provider.match("60公分 玻璃缸", "烏龜") == "寵物用品"
        assert provider.match("60公分 玻璃缸", "金魚") != "寵物用品"

    def test_brand_then_category_then_subcategory(self):
        provider = KeywordProvider()
        assert provider.match("Apple iPhone 15 128G") == "3C電子"
        assert provider.match("透明手機殼 防摔") == "手機配件"
        assert provider.match("不鏽鋼 保溫瓶 500ml") == "廚房用品"
        assert provider.match("神秘物品") == "其他商品"

    def test_custom_rules(self):
        provider = KeywordProvider(
            rules={"brands": {}, "query_rules": [], "categories": [{"category": "A", "keywords": ["x"]}]},
            default_category="Z",
        )
        assert provider.match("XL") == "A"
        assert provider.match("y") == "Z"

    @pytest.mark.asyncio
    async def test_classify_groups_in_first_seen_order(self, sample_products):
        categories = await KeywordProvider().classify(sample_products, "烏龜")
        assert [c.name for c in categories] == ["寵物用品", "3C電子", "遊戲娛樂"]
        assert categories[0].description == "基於關鍵字匹配的 寵物用品 分類"


def test_build_providers_follows_fallback_order():
    providers = build_providers(_config(llm_fallback_order="keyword,gemini,unknown,gemini"))
    assert [p.name for p in providers] == ["keyword", "gemini"]
