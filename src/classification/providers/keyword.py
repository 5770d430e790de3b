"""키워드 규칙 기반 분류 (네트워크 없음, 항상 성공)"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from src.classification.categories import build_category
from src.classification.providers.base import ClassificationProvider
from src.classification.strategy import RetryPolicy
from src.core.config import settings
from src.schemas.product_schema import Category, Product
from src.utils.resource_loader import load_keyword_rules


class KeywordProvider(ClassificationProvider):
    """규칙 적용 순서: query_rules → brands → categories(+subcategories) → 기본 카테고리"""

    name = "keyword"
    is_network = False
    timeout_s = 30.0
    budget_floor_s = 0.0
    retry_policy = RetryPolicy.no_retry()

    def __init__(self, rules: Optional[Dict[str, Any]] = None, default_category: Optional[str] = None):
        self.rules = rules if rules is not None else load_keyword_rules()
        self.default_category = default_category or settings.llm_default_category

    def is_enabled(self) -> bool:
        return True

    def match(self, product_name: str, search_query: str = "") -> str:
        name = (product_name or "").lower()
        query = (search_query or "").lower()

        for rule in self.rules.get("query_rules") or []:
            query_hit = any(str(k).lower() in query for k in rule.get("query_keywords") or [])
            if query_hit and any(str(k).lower() in name for k in rule.get("name_keywords") or []):
                return rule["category"]

        for brand, category in (self.rules.get("brands") or {}).items():
            if str(brand).lower() in name:
                return category

        for rule in self.rules.get("categories") or []:
            if not any(str(k).lower() in name for k in rule.get("keywords") or []):
                continue
            for sub_category, sub_keywords in (rule.get("subcategories") or {}).items():
                if any(str(k).lower() in name for k in sub_keywords or []):
                    return sub_category
            return rule["category"]

        return self.default_category

    async def classify(self, products: Sequence[Product], search_query: str) -> List[Category]:
        groups: Dict[str, List[Product]] = {}
        for product in products:
            groups.setdefault(self.match(product.name, search_query), []).append(product)

        return [
            build_category(category, members, f"基於關鍵字匹配的 {category} 分類")
            for category, members in groups.items()
        ]
