"""카테고리 생성/집계 유틸

가격 범위와 플랫폼 목록은 항상 실제 멤버 상품에서 다시 계산합니다.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from src.schemas.product_schema import Category, CategorySummary, PriceRange, Product


def compute_price_range(products: Iterable[Product]) -> PriceRange:
    """양수 가격만으로 min/max/avg(반올림) 계산. 양수 가격이 없으면 전부 0."""
    prices = [p.price for p in products if p.price > 0]
    if not prices:
        return PriceRange()
    return PriceRange(
        min=min(prices),
        max=max(prices),
        avg=int(round(sum(prices) / len(prices))),
    )


def distinct_platforms(products: Iterable[Product]) -> List[str]:
    """등장 순서를 유지한 플랫폼 목록"""
    seen: List[str] = []
    for p in products:
        if p.platform not in seen:
            seen.append(p.platform)
    return seen


def build_category(name: str, products: Sequence[Product], description: Optional[str] = None) -> Category:
    members = list(products)
    return Category(
        name=name,
        description=description or f"{name}相關商品",
        products=members,
        price_range=compute_price_range(members),
        platforms=distinct_platforms(members),
        total_products=len(members),
    )


def summarize(category: Category) -> CategorySummary:
    return CategorySummary(
        name=category.name,
        description=category.description,
        total_products=category.total_products,
        price_range=category.price_range,
        platforms=list(category.platforms),
    )


def group_by_label(pairs: Iterable[tuple[Product, str]], description_template: str = "{name}相關商品") -> List[Category]:
    """(상품, 라벨) 목록을 첫 등장 순서대로 카테고리로 묶음"""
    groups: dict[str, List[Product]] = {}
    for product, label in pairs:
        groups.setdefault(label, []).append(product)
    return [
        build_category(label, members, description_template.format(name=label))
        for label, members in groups.items()
    ]


def merge_into(categories: List[Category], extra: Iterable[tuple[Product, str]]) -> List[Category]:
    """기존 카테고리 목록에 (상품, 라벨)을 합쳐 새 목록 반환 (이름 기준 병합)"""
    by_name: dict[str, tuple[str, List[Product]]] = {
        c.name: (c.description, list(c.products)) for c in categories
    }
    order = [c.name for c in categories]
    for product, label in extra:
        if label not in by_name:
            by_name[label] = (f"{label}相關商品", [])
            order.append(label)
        by_name[label][1].append(product)
    return [build_category(name, by_name[name][1], by_name[name][0]) for name in order]
