"""텍스트 처리 유틸리티 - 상품명 정제 / 가격 정규화"""

from __future__ import annotations

import re
from typing import Any


# 대괄호류 홍보 문구 (【限時】, [現貨], （免運）, (贈品))
_BRACKET_NOISE_PATTERNS = (
    re.compile(r"【.*?】"),
    re.compile(r"\[.*?\]"),
    re.compile(r"（.*?）"),
    re.compile(r"\(.*?\)"),
)
_PRICE_CHARS = re.compile(r"[^\d.]")


def clean_product_name(product_name: str) -> str:
    """
    상품명에서 괄호 안의 홍보 문구를 제거하고 공백을 정리

    예시:
    - "【限時優惠】Apple iPhone 15 (128G)" -> "Apple iPhone 15"
    - "[現貨]  烏龜  過濾器" -> "烏龜 過濾器"

    Args:
        product_name: 원본 상품명

    Returns:
        정제된 상품명
    """
    if not product_name:
        return ""

    cleaned = re.sub(r"\s+", " ", product_name)
    for pattern in _BRACKET_NOISE_PATTERNS:
        cleaned = pattern.sub("", cleaned)

    # 괄호 제거 후 생긴 다중 공백 정리
    cleaned = re.sub(r"\s+", " ", cleaned)
    return cleaned.strip()


def normalize_price(price: Any) -> int:
    """가격을 정수 최소 단위(×100)로 변환.

    "NT$1,299" -> 129900, 1299 -> 129900, "12.5元" -> 1250.
    숫자를 찾을 수 없으면 0을 반환합니다.
    """
    if price is None or price == "":
        return 0

    if isinstance(price, bool):
        return 0

    if isinstance(price, (int, float)):
        value = float(price)
    else:
        digits = _PRICE_CHARS.sub("", str(price))
        # 마지막 소수점만 유지 ("1.299.00" -> "1299.00")
        if digits.count(".") > 1:
            head, _, tail = digits.rpartition(".")
            digits = head.replace(".", "") + "." + tail
        try:
            value = float(digits) if digits and digits != "." else 0.0
        except ValueError:
            return 0

    if value <= 0:
        return 0
    return int(round(value * 100))


def extract_price_from_text(price_text: str) -> int:
    """가격 텍스트에서 가장 긴 숫자 덩어리만 추출 (단위 변환 없음)."""
    if not price_text:
        return 0

    numbers = re.findall(r"[\d,]+", price_text)

    if not numbers:
        return 0

    price_str = max(numbers, key=len)

    try:
        return int(price_str.replace(",", ""))
    except ValueError:
        return 0


def strip_escaped_newlines(text: str) -> str:
    """API 응답에 섞여 오는 리터럴 "\\r\\n" 제거"""
    if not text:
        return ""
    return text.replace("\\r\\n", "").replace("\r\n", " ").strip()


__all__ = [
    "clean_product_name",
    "normalize_price",
    "extract_price_from_text",
    "strip_escaped_newlines",
]
