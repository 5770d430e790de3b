"""LLM 응답 파싱 + JSON 복구

흐름:
    1. 응답 텍스트에서 첫 번째 JSON 객체 추출 (괄호 균형, 문자열/이스케이프 인식)
    2. 엄격 파싱 → 실패 시 단계적 복구 후 재파싱
    3. 그래도 실패하면 "name": "..." 패턴으로 카테고리 이름만 회수해 상품을 균등 분배
    4. 이름도 없으면 전체 상품을 catch-all 카테고리 하나로

어떤 입력이든 예외 없이 상품 분할(partition)을 반환합니다.
"""

from __future__ import annotations

import json
import re
from typing import Any, List, Optional, Sequence

from src.classification.categories import build_category
from src.core.config import settings
from src.core.logging import logger
from src.schemas.product_schema import Category, Product

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")
_WHITESPACE_CONTROL = str.maketrans({"\n": " ", "\r": " ", "\t": " "})
_TRAILING_COMMA = re.compile(r",(\s*[}\]])")
_NAME_FIELD = re.compile(r'"name"\s*:\s*"((?:[^"\\]|\\.)+)"')
# 객체 끝에 값 없이 남은 키 ("key" / "key": / , "key")
_DANGLING_KEY = re.compile(r'([,{])\s*"(?:[^"\\]|\\.)*"\s*:?\s*$')
_DANGLING_SEPARATOR = re.compile(r"[,:]\s*$")

_CLOSERS = {"{": "}", "[": "]"}


def extract_first_json_object(text: str) -> Optional[str]:
    """첫 '{'부터 짝이 맞는 '}'까지 반환. 끝까지 닫히지 않으면 나머지 전체."""
    start = text.find("{")
    if start < 0:
        return None

    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start : i + 1]
    return text[start:]


def _scan(text: str) -> tuple[List[str], bool, bool]:
    """(열린 괄호 스택, 문자열 안에서 끝났는가, 이스케이프 중인가)"""
    stack: List[str] = []
    in_string = False
    escaped = False
    for ch in text:
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch in _CLOSERS:
            stack.append(ch)
        elif ch in "}]":
            if stack and _CLOSERS[stack[-1]] == ch:
                stack.pop()
    return stack, in_string, escaped


def repair_json(text: str) -> str:
    """유한 단계 복구

    1. 제어 문자 제거 (개행/탭은 공백으로)
    2. 닫기 직전 trailing comma 제거
    3. 닫히지 않은 문자열 닫기
    4. 값 없이 끝난 키/구분자 제거
    5. 열린 순서의 역순으로 괄호 닫기
    """
    repaired = _CONTROL_CHARS.sub("", text.translate(_WHITESPACE_CONTROL)).strip()
    repaired = _TRAILING_COMMA.sub(r"\1", repaired)

    stack, in_string, escaped = _scan(repaired)
    if in_string:
        if escaped:
            repaired = repaired[:-1]
        repaired += '"'

    if stack and stack[-1] == "{":
        repaired = _DANGLING_KEY.sub(lambda m: "" if m.group(1) == "," else "{", repaired)
    repaired = _DANGLING_SEPARATOR.sub("", repaired.rstrip())

    stack, _, _ = _scan(repaired)
    repaired += "".join(_CLOSERS[opener] for opener in reversed(stack))
    return _TRAILING_COMMA.sub(r"\1", repaired)


def loads_lenient(text: str) -> Optional[Any]:
    """엄격 파싱 → 복구 후 파싱. 둘 다 실패하면 None."""
    try:
        return json.loads(text)
    except ValueError as e:
        logger.warning(f"[REPAIR] strict JSON parse failed: {e}")

    repaired = repair_json(text)
    try:
        data = json.loads(repaired)
    except ValueError as e:
        logger.error(f"[REPAIR] JSON repair failed: {e}")
        return None
    logger.info("[REPAIR] JSON repaired")
    return data


def _coerce_index(raw: Any) -> Optional[int]:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float) and raw.is_integer():
        return int(raw)
    if isinstance(raw, str) and raw.strip().isdigit():
        return int(raw.strip())
    return None


def validate_categories(
    raw_categories: Sequence[Any],
    products: Sequence[Product],
    default_category: Optional[str] = None,
) -> List[Category]:
    """제공자 카테고리 목록 → 검증된 분할

    - 정수가 아니거나 범위를 벗어나거나 이미 배정된 인덱스는 버림
    - 같은 이름의 카테고리는 합침
    - 빈 카테고리 제거
    - 배정되지 않은 상품은 기본 카테고리로
    """
    default_category = default_category or settings.llm_default_category
    total = len(products)
    claimed: set[int] = set()
    groups: dict[str, tuple[str, List[Product]]] = {}

    for position, raw in enumerate(raw_categories):
        if not isinstance(raw, dict):
            logger.warning(f"[REPAIR] category #{position} is not an object, skipped")
            continue

        name = str(raw.get("name") or "").strip() or f"{default_category} {position + 1}"
        description = str(raw.get("description") or "").strip() or f"{name}分類"
        indexes = raw.get("productIndexes") or []
        if not isinstance(indexes, list):
            indexes = [indexes]

        members: List[Product] = []
        for raw_index in indexes:
            index = _coerce_index(raw_index)
            if index is None or not 0 <= index < total:
                logger.warning(f"[REPAIR] invalid product index {raw_index!r} in '{name}' (total={total})")
                continue
            if index in claimed:
                logger.debug(f"[REPAIR] product index {index} already assigned, ignored in '{name}'")
                continue
            claimed.add(index)
            members.append(products[index])

        if name in groups:
            groups[name][1].extend(members)
        else:
            groups[name] = (description, members)

    leftover = [p for i, p in enumerate(products) if i not in claimed]
    if leftover:
        logger.info(f"[REPAIR] {len(leftover)} unassigned products → '{default_category}'")
        if default_category in groups:
            groups[default_category][1].extend(leftover)
        else:
            groups[default_category] = (f"{default_category}分類", leftover)

    return [
        build_category(name, members, description)
        for name, (description, members) in groups.items()
        if members
    ]


def distribute_evenly(names: Sequence[str], products: Sequence[Product]) -> List[Category]:
    """이름만 회수된 경우: 연속 구간으로 균등 분배 (빈 구간은 제외)"""
    unique: List[str] = list(dict.fromkeys(names))
    total = len(products)
    step = total / len(unique)
    categories = []
    for i, name in enumerate(unique):
        members = list(products[int(step * i) : int(step * (i + 1))])
        if members:
            categories.append(build_category(name, members))
    return categories


def parse_classification_response(
    text: str,
    products: Sequence[Product],
    default_category: Optional[str] = None,
    catch_all_category: Optional[str] = None,
) -> List[Category]:
    """LLM 응답 텍스트 → 카테고리 분할 (절대 예외를 던지지 않음)"""
    catch_all_category = catch_all_category or settings.llm_catch_all_category
    if not products:
        return []

    candidate = extract_first_json_object(text or "")
    if candidate is not None:
        data = loads_lenient(candidate)
        if isinstance(data, dict) and isinstance(data.get("categories"), list):
            logger.info(f"[REPAIR] {len(data['categories'])} categories in response")
            categories = validate_categories(data["categories"], products, default_category)
            if categories:
                return categories
        else:
            logger.error("[REPAIR] response has no 'categories' array")

    names = [n.strip() for n in _NAME_FIELD.findall(text or "") if n.strip()]
    if names:
        logger.warning(f"[REPAIR] degraded parse: {len(names)} category names recovered")
        return distribute_evenly(names, products)

    logger.warning(f"[REPAIR] unrecoverable response, all products → '{catch_all_category}'")
    return [build_category(catch_all_category, products)]
