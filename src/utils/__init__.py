"""Utilities package - Flat structure (no nested directories)"""

# Hash utilities
from .hash_utils import (
    hash_string,
    generate_product_id,
    generate_classification_key,
    generate_search_cache_key,
)

# URL utilities
from .url_utils import normalize_href, normalize_image_url, upgrade_momo_thumbnail, PLACEHOLDER_IMAGE

# Text utilities
from .text_utils import (
    clean_product_name,
    normalize_price,
    extract_price_from_text,
    strip_escaped_newlines,
)

__all__ = [
    # hash
    "hash_string",
    "generate_product_id",
    "generate_classification_key",
    "generate_search_cache_key",
    # url
    "normalize_href",
    "normalize_image_url",
    "upgrade_momo_thumbnail",
    "PLACEHOLDER_IMAGE",
    # text
    "clean_product_name",
    "normalize_price",
    "extract_price_from_text",
    "strip_escaped_newlines",
]
