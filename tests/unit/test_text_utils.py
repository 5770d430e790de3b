"""텍스트 유틸리티 유닛 테스트"""
import pytest
from src.utils.text_utils import (
    clean_product_name,
    normalize_price,
    extract_price_from_text,
    strip_escaped_newlines,
)


class TestCleanProductName:
    """상품명 정제 테스트"""

    def test_remove_brackets(self):
        """괄호류 홍보 문구 제거"""
        assert clean_product_name("【限時優惠】Apple iPhone 15 (128G)") == "Apple iPhone 15"
        assert clean_product_name("[現貨] 烏龜 過濾器") == "烏龜 過濾器"
        assert clean_product_name("烏龜缸（免運）") == "烏龜缸"

    def test_normalize_whitespace(self):
        """다중 공백 정규화"""
        assert clean_product_name("烏龜   \n  過濾器") == "烏龜 過濾器"

    def test_empty_string(self):
        """빈 문자열 처리"""
        assert clean_product_name("") == ""
        assert clean_product_name("【只有標籤】") == ""


class TestNormalizePrice:
    """가격 최소 단위 변환"""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            (899, 89900),
            ("NT$1,299", 129900),
            ("12.5元", 1250),
            (0, 0),
            (-10, 0),
            (None, 0),
            ("", 0),
            ("免費", 0),
            (True, 0),
        ],
    )
    def test_normalize(self, raw, expected):
        assert normalize_price(raw) == expected


class TestExtractPriceFromText:
    def test_longest_group(self):
        assert extract_price_from_text("$1,280 起 (2件)") == 1280

    def test_no_digits(self):
        assert extract_price_from_text("售完") == 0


def test_strip_escaped_newlines():
    assert strip_escaped_newlines("玻璃\\r\\n水族箱") == "玻璃水族箱"
