"""해싱 유틸리티"""
import hashlib
import json
from typing import Any, Optional


def hash_string(text: str) -> str:
    """
    문자열을 MD5 해시로 변환

    Args:
        text: 해시할 문자열

    Returns:
        MD5 해시 문자열
    """
    return hashlib.md5(text.encode("utf-8")).hexdigest()


def generate_product_id(platform: str, name: str, url: str) -> str:
    """
    상품 식별자 생성 (platform-name-url 조합의 MD5 앞 16자리)

    같은 (name, platform, url) 조합은 항상 같은 ID가 되어
    반복 크롤링 결과를 중복 제거할 수 있습니다.

    Args:
        platform: 플랫폼 이름 (pchome, momo)
        name: 원본 상품명
        url: 상품 URL

    Returns:
        16자리 hex 문자열
    """
    return hash_string(f"{platform}-{name}-{url}")[:16]


def generate_classification_key(product_name: str, context: Optional[dict[str, Any]] = None) -> str:
    """
    분류 캐시 키 생성

    컨텍스트(원본 검색어 + 상위 카테고리)가 다르면 같은 상품명이라도
    다른 라벨로 분류될 수 있도록 키를 분리합니다.

    Args:
        product_name: 상품명
        context: {"original_query": ..., "main_category": ...} 또는 None

    Returns:
        MD5 해시 키
    """
    if context:
        context_str = f"{context.get('original_query')}_{context.get('main_category')}"
    else:
        context_str = "default"
    return hash_string(f"{product_name}_{context_str}")


def generate_search_cache_key(query: str, filters: Optional[dict[str, Any]], sort: str) -> str:
    """검색 결과 캐시 키 생성 (query_<filters json>_<sort>)"""
    filters_json = json.dumps(filters or {}, sort_keys=True, ensure_ascii=False)
    return f"{query}_{filters_json}_{sort}"
