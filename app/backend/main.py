# app/backend/main.py
import logging
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.backend.core.config import Settings, get_settings
from app.backend.core.errors import register_error_handlers
from app.backend.core.logging_config import setup_logging
from app.backend.core.metrics import PerformanceMonitor
from app.backend.db.store import InMemoryTaskStore, InMemoryUserStore
from app.backend.middleware.rate_limit import RateLimiter, RateLimitMiddleware
from app.backend.middleware.security import (
    BodyLimitMiddleware,
    HeadAsGetMiddleware,
    OptionalGZipMiddleware,
    cors_origin_log_middleware,
    request_monitor_middleware,
    security_headers_middleware,
)

# 라우터
from app.backend.routers import auth, health, spa, task, user

logger = logging.getLogger(__name__)

DEFAULT_STATIC_DIR = Path(__file__).resolve().parent.parent / "static"


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.log_level)

    app = FastAPI(title=settings.app_name, version=settings.app_version)

    # 프로세스 수명 동안만 유지되는 상태
    app.state.settings = settings
    app.state.task_store = InMemoryTaskStore()
    app.state.user_store = InMemoryUserStore()
    app.state.monitor = PerformanceMonitor()
    app.state.static_dir = Path(settings.static_dir) if settings.static_dir else DEFAULT_STATIC_DIR

    register_error_handlers(app)

    # 미들웨어: 나중에 추가한 것이 바깥쪽
    if settings.compression_enabled:
        app.add_middleware(OptionalGZipMiddleware, minimum_size=1024)
    app.add_middleware(BodyLimitMiddleware, max_bytes=settings.max_request_bytes)
    app.add_middleware(
        RateLimitMiddleware,
        rules=[
            ("/auth/", RateLimiter(settings.auth_rate_limit_max, settings.rate_limit_window_seconds)),
            ("/api/", RateLimiter(settings.rate_limit_max, settings.rate_limit_window_seconds)),
        ],
    )

    # CORS (빈 목록이면 모든 origin 허용)
    origins = settings.cors_origin_list or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(cors_origin_log_middleware)
    app.middleware("http")(security_headers_middleware)
    app.middleware("http")(request_monitor_middleware)
    app.add_middleware(HeadAsGetMiddleware)

    # 라우터 등록
    app.include_router(health.router)
    app.include_router(auth.auth_router)
    app.include_router(user.user_router)
    app.include_router(task.router)

    # catch-all, 항상 마지막
    app.include_router(spa.router)

    logger.info(
        "%s v%s ready env=%s rate_limit=%s/%ss",
        settings.app_name,
        settings.app_version,
        settings.environment,
        settings.rate_limit_max,
        settings.rate_limit_window_seconds,
    )
    return app


app = create_app()
