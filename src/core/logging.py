"""로깅 설정

모든 모듈은 여기서 만든 `logger`를 import 합니다.
로그 태그: [CRAWL] [PCHOME] [MOMO] [HTTP_CLIENT] [Playwright] [CLASSIFY] [GEMINI] [OLLAMA] [PROVIDER] [REPAIR] [CLS_CACHE] [API] [Scheduler]
"""
import logging
import os
import sys

from src.core.config import settings


IS_PRODUCTION = os.getenv("ENVIRONMENT", "development") == "production"

# httpx는 요청 URL을 INFO로 남기는데 Gemini는 API 키를 쿼리스트링에 싣습니다.
_QUIET_LOGGERS = ("httpx", "httpcore", "apscheduler")

_SENSITIVE_MARKERS = ("password", "token", "api_key", "key=", "secret")


def setup_logging() -> logging.Logger:
    """'mall_search' 로거 초기화 (stdout, 중복 핸들러 방지)"""
    logger = logging.getLogger("mall_search")

    level_name = settings.log_level.upper()
    if IS_PRODUCTION and level_name == "DEBUG":
        level_name = "INFO"
    level = getattr(logging, level_name, logging.INFO)
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(level)
        if IS_PRODUCTION:
            fmt = "%(asctime)s - %(levelname)s - %(message)s"
        else:
            fmt = "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"
        handler.setFormatter(logging.Formatter(fmt=fmt, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return logger


logger = setup_logging()


def sanitize_for_log(value: str, max_length: int = 100) -> str:
    """민감 정보가 섞인 값은 통째로 가리고, 길면 자릅니다.

    제공자 오류 메시지(요청 URL 포함 가능)를 헬스 통계에 남길 때도 사용합니다.

    Args:
        value: 로깅할 문자열
        max_length: 최대 길이

    Returns:
        로깅 가능한 문자열
    """
    if not value:
        return "[empty]"

    lowered = value.lower()
    if any(marker in lowered for marker in _SENSITIVE_MARKERS):
        return "***"

    if len(value) > max_length:
        return value[:max_length] + "..."
    return value
