"""쇼핑몰 검색 결과 파싱/검증 유틸.

이 모듈은 네트워크(fetch)와 분리된 순수 파싱 로직을 담습니다.
반환값은 정규화 전 raw dict 목록이며, 정규화는 BaseFetcher가 담당합니다.
"""

from __future__ import annotations

from typing import Any, Optional, List, Dict

from selectolax.parser import HTMLParser, Node

from src.core.logging import logger
from src.utils.text_utils import extract_price_from_text, strip_escaped_newlines
from src.utils.url_utils import normalize_href, upgrade_momo_thumbnail


_BLOCK_KEYWORDS = (
    "access denied",
    "captcha",
    "cloudflare",
    "just a moment",
    "verify you are human",
    "請稍候",
)

PCHOME_IMAGE_BASE = "https://a.ecimg.tw"
PCHOME_PRODUCT_BASE = "https://24h.pchome.com.tw/prod/"
PCHOME_WEB_BASE = "https://24h.pchome.com.tw"
MOMO_BASE = "https://www.momoshop.com.tw"


def get_blocked_keyword(html: str) -> Optional[str]:
    if not html:
        return None
    lowered = html.lower()
    for k in _BLOCK_KEYWORDS:
        if k in lowered:
            return k
    return None


def _text(node: Optional[Node]) -> str:
    if node is None:
        return ""
    return (node.text(separator=" ", strip=True) or "").strip()


def _attr(node: Optional[Node], *names: str) -> str:
    if node is None:
        return ""
    attrs = node.attributes or {}
    for name in names:
        value = attrs.get(name)
        if value:
            return value.strip()
    return ""


# ==================== PChome ====================

def pchome_shipping_info(prod: Dict[str, Any]) -> str:
    if prod.get("isBigSize"):
        return "大型商品配送"
    if prod.get("isDelivery"):
        return "24小時到貨"
    if prod.get("isSuperStore"):
        return "超商取貨"
    return "宅配到府"


def _pchome_image(prod: Dict[str, Any]) -> str:
    # 큰 이미지 우선
    for key in ("picB", "picS", "pic"):
        pic = prod.get(key)
        if pic:
            return pic if str(pic).startswith("http") else f"{PCHOME_IMAGE_BASE}{pic}"
    return ""


def parse_pchome_api_products(prods: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """PChome 검색 API의 prods 배열을 raw 상품 dict로 변환"""
    out: List[Dict[str, Any]] = []
    for prod in prods or []:
        if not isinstance(prod, dict):
            continue
        prod_id = prod.get("Id")
        out.append(
            {
                "name": strip_escaped_newlines(str(prod.get("name") or "")),
                "description": strip_escaped_newlines(str(prod.get("describe") or "")),
                "price": prod.get("price") or 0,
                "url": f"{PCHOME_PRODUCT_BASE}{prod_id}" if prod_id else "",
                "image": _pchome_image(prod),
                # D = 품절
                "in_stock": prod.get("buttonType") != "D",
                "seller": prod.get("store") or "PChome 24h購物",
                "shipping": pchome_shipping_info(prod),
            }
        )
    return out


def parse_pchome_search_html(html: str, max_results: int) -> List[Dict[str, Any]]:
    """렌더링된 PChome 검색 페이지 파싱"""
    parser = HTMLParser(html or "")
    out: List[Dict[str, Any]] = []
    for node in parser.css(".prod_info, .item"):
        if len(out) >= max_results:
            break
        name = _text(node.css_first(".prod_desc, .describe")) or _text(node.css_first(".prod_name a, .name a, h5 a"))
        href = _attr(node.css_first('a[href*="/prod/"]'), "href")
        url = normalize_href(href, PCHOME_WEB_BASE)
        if not name or not url:
            continue
        img = node.css_first("img")
        out.append(
            {
                "name": name,
                "price": extract_price_from_text(_text(node.css_first(".price, .prod_price .value"))),
                "url": url,
                "image": _attr(img, "src", "data-src"),
                "in_stock": True,
            }
        )
    logger.debug(f"[PCHOME] rendered parse: {len(out)} items")
    return out


# ==================== momo ====================

def parse_momo_search_html(html: str, max_results: int) -> List[Dict[str, Any]]:
    """momo 검색 페이지(div.listArea li) 파싱. 가격이 없는 항목은 버립니다."""
    parser = HTMLParser(html or "")
    out: List[Dict[str, Any]] = []
    for node in parser.css("div.listArea li"):
        if len(out) >= max_results:
            break
        name_node = node.css_first(".prdName")
        if name_node is None:
            continue
        name = _text(name_node)
        price = extract_price_from_text(_text(node.css_first(".price, .money")))
        if not name or price <= 0:
            continue

        link = node.css_first('a[href*="/goods/"], a[href*="GoodsDetail"], .prdName a, h3 a')
        url = normalize_href(_attr(link, "href"), MOMO_BASE)

        image = _attr(node.css_first("img"), "data-original", "src", "data-src")
        if image:
            image = upgrade_momo_thumbnail(normalize_href(image, MOMO_BASE))

        out.append(
            {
                "name": name,
                "price": price,
                "url": url,
                "image": image,
                "in_stock": True,
                "seller": "momo購物網",
                "rating": 0,
                "review_count": 0,
            }
        )
    logger.debug(f"[MOMO] parse: {len(out)} items")
    return out


def has_momo_list(html: str) -> bool:
    if not html:
        return False
    return HTMLParser(html).css_first("div.listArea") is not None
