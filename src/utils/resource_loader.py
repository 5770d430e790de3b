"""리소스 파일(YAML) 로더 유틸리티"""
import os
import yaml
from typing import Any, Dict
from functools import lru_cache

from src.core.logging import logger


def get_resource_path(relative_path: str) -> str:
    """프로젝트 루트 기준 리소스 절대 경로 반환"""
    # src/utils/resource_loader.py -> src/utils -> src -> root
    base_dir = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
    return os.path.join(base_dir, "resources", relative_path)


@lru_cache(maxsize=32)
def load_yaml_resource(relative_path: str) -> Dict[str, Any]:
    """YAML 리소스 로드 및 캐싱"""
    path = get_resource_path(relative_path)
    if not os.path.exists(path):
        logger.warning(f"Resource not found: {path}")
        return {}

    try:
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    except Exception as e:
        logger.error(f"Failed to load YAML resource {path}: {e}")
        return {}


def load_keyword_rules() -> Dict[str, Any]:
    """키워드 분류 규칙 로드 (brands / categories / query_rules)"""
    data = load_yaml_resource("classification/keyword_rules.yaml")
    return {
        "brands": data.get("brands", {}) or {},
        "categories": data.get("categories", []) or [],
        "query_rules": data.get("query_rules", []) or [],
    }


def load_classification_prompt() -> Dict[str, str]:
    """LLM 분류 프롬프트 템플릿 로드"""
    data = load_yaml_resource("classification/prompt.yaml")
    return {
        "template": data.get("template", "") or "",
        "product_line": data.get("product_line", "") or "",
        "empty_description": data.get("empty_description", "") or "",
    }
