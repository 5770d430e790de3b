"""URL 정규화 유틸리티"""
import re


PLACEHOLDER_IMAGE = "/placeholder.svg"

_MOMO_THUMBNAIL = re.compile(r"_[SMsm]\.(jpg|webp)$")


def normalize_href(href: str, base_url: str) -> str:
    """상대/프로토콜-상대 href를 절대 URL로 정규화합니다.

    - "//host/path" -> "https://host/path"
    - "/path" -> "{base_url}/path"
    - "path" -> "{base_url}/path"
    - "http(s)://..." -> 그대로
    """
    if not href:
        return ""

    h = href.strip()
    if not h:
        return ""

    if h.startswith(("http://", "https://")):
        return h

    if h.startswith("//"):
        return f"https:{h}"

    base = base_url.rstrip("/")
    if h.startswith("/"):
        return f"{base}{h}"

    return f"{base}/{h}"


def normalize_image_url(image_url: str, base_url: str) -> str:
    """
    이미지 URL을 절대 경로로 변환 (없으면 placeholder)

    Examples:
        >>> normalize_image_url("//img.example.com/a.jpg", "https://x.com")
        'https://img.example.com/a.jpg'
        >>> normalize_image_url("", "https://x.com")
        '/placeholder.svg'
    """
    if not image_url or not image_url.strip():
        return PLACEHOLDER_IMAGE
    return normalize_href(image_url, base_url)


def upgrade_momo_thumbnail(image_url: str) -> str:
    """momo 썸네일(_S/_M)을 큰 이미지(_L)로 교체"""
    if not image_url:
        return image_url
    return _MOMO_THUMBNAIL.sub(r"_L.\1", image_url)
