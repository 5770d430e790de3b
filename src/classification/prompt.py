"""LLM 분류 프롬프트 빌더"""

from typing import Sequence

from src.core.exceptions import ConfigurationException
from src.schemas.product_schema import Product
from src.utils.resource_loader import load_classification_prompt


def format_product_line(index: int, product: Product, line_template: str, empty_description: str) -> str:
    """상품 한 줄. [ID:n]의 n이 응답 productIndexes의 인덱스가 됩니다."""
    return line_template.format(
        number=index + 1,
        index=index,
        name=product.name,
        description=product.description or empty_description,
        # 최소 단위 → 표시 단위
        price=product.price // 100,
        platform=product.platform,
    )


def build_classification_prompt(products: Sequence[Product], search_query: str) -> str:
    prompt = load_classification_prompt()
    if not prompt["template"] or not prompt["product_line"]:
        raise ConfigurationException(
            "Classification prompt resource is missing", error_code="PROMPT_NOT_CONFIGURED"
        )

    product_list = "\n".join(
        format_product_line(i, p, prompt["product_line"], prompt["empty_description"])
        for i, p in enumerate(products)
    )
    return prompt["template"].format(
        search_query=search_query,
        product_list=product_list,
        product_count=len(products),
    )
