"""FastAPI 앱 팩토리"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from src.core.config import settings
from src.core.logging import logger
from src.api import health_router, search_router, get_classification_cache, get_result_cache
from src.crawlers.http_client import shutdown_shared_http_client
from src.scheduler.cache_sweep import CacheSweepScheduler


@asynccontextmanager
async def lifespan(app: FastAPI):
    """애플리케이션 생명주기"""
    logger.info("Starting application...")
    sweeper = CacheSweepScheduler([get_classification_cache(), get_result_cache()])
    sweeper.start()
    logger.info(f"Application started (fallback_order={settings.fallback_order}, sources={settings.enabled_sources})")
    yield
    logger.info("Shutting down application...")
    sweeper.shutdown()
    try:
        await shutdown_shared_http_client()
    except Exception as e:
        # 종료 훅에서의 예외는 앱 종료를 막지 않도록 로그만 남김
        logger.warning(f"HTTP client shutdown failed: {e}")


def create_app() -> FastAPI:
    """
    FastAPI 앱 생성 (Factory Pattern)

    Returns:
        FastAPI 앱 인스턴스
    """
    app = FastAPI(
        title=settings.api_title,
        description=settings.api_description,
        version=settings.api_version,
        lifespan=lifespan
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # 라우터 등록
    app.include_router(health_router)
    app.include_router(search_router)

    return app

# 앱 인스턴스 생성 (uvicorn이 로드할 수 있도록)
app = create_app()
