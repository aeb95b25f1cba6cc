#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Solo Hunter - FastAPI Application
HTTP-сервис: пользователи, события календаря и записи

Версия: 1.0.0
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from solo_hunter.core.exceptions import (
    ConflictError, NotAuthenticatedError, NotFoundError, RateLimitedError, StoreError, ValidationError,
)
from solo_hunter.server.api import auth, calendar_events, notes
from solo_hunter.server.config import ServerSettings, get_settings
from solo_hunter.server.db import Database
from solo_hunter.server.schemas import HealthCheck
from solo_hunter.services import ServiceManager
from solo_hunter.utils.logger import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Управление жизненным циклом приложения"""
    settings: ServerSettings = app.state.settings

    setup_logging()
    logger.info(f"🚀 Запуск {settings.APP_NAME} v{settings.VERSION} ({settings.ENVIRONMENT})")
    app.state.start_time = time.time()

    db = Database(settings.DATABASE_URL, echo=settings.DB_ECHO)
    await db.init_models()
    app.state.db = db

    services = ServiceManager()
    services.initialize_services()
    app.state.services = services

    logger.info(f"🌐 API доступен на: http://{settings.HOST}:{settings.PORT}")

    yield

    logger.info("🛑 Остановка сервиса...")
    await services.close_services()
    await db.dispose()
    logger.info("✅ Ресурсы очищены")


# ===== ОБРАБОТЧИКИ ОШИБОК =====

def _error(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, **extra})


async def validation_error_handler(request: Request, exc: ValidationError):
    return _error(422, str(exc), field=exc.field)


async def not_authenticated_handler(request: Request, exc: NotAuthenticatedError):
    return _error(status.HTTP_401_UNAUTHORIZED, str(exc))


async def not_found_handler(request: Request, exc: NotFoundError):
    return _error(status.HTTP_404_NOT_FOUND, "Not found")


async def conflict_handler(request: Request, exc: ConflictError):
    return _error(status.HTTP_409_CONFLICT, str(exc), field=exc.field)


async def rate_limited_handler(request: Request, exc: RateLimitedError):
    response = _error(status.HTTP_429_TOO_MANY_REQUESTS, str(exc))
    response.headers["Retry-After"] = str(max(1, round(exc.retry_after)))
    return response


async def store_error_handler(request: Request, exc: StoreError):
    logger.error(f"❌ Ошибка хранилища на {request.url.path}: {exc}")
    return _error(status.HTTP_503_SERVICE_UNAVAILABLE, "Storage unavailable")


def create_app(settings: Optional[ServerSettings] = None) -> FastAPI:
    """Создание FastAPI приложения"""
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.APP_NAME,
        description="Геймифицированный трекер целей: квесты, опыт, ранги и серии",
        version=settings.VERSION,
        docs_url="/api/docs" if settings.DEBUG else None,
        redoc_url="/api/redoc" if settings.DEBUG else None,
        openapi_url="/api/openapi.json" if settings.DEBUG else None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.start_time = time.time()

    # ===== MIDDLEWARE =====

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Логирование запросов"""
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time

        logger.info(
            f"{request.method} {request.url.path} "
            f"- {response.status_code} - {process_time:.3f}s"
        )
        response.headers["X-Process-Time"] = f"{process_time:.3f}"
        return response

    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(NotAuthenticatedError, not_authenticated_handler)
    app.add_exception_handler(NotFoundError, not_found_handler)
    app.add_exception_handler(ConflictError, conflict_handler)
    app.add_exception_handler(RateLimitedError, rate_limited_handler)
    app.add_exception_handler(StoreError, store_error_handler)

    # ===== МАРШРУТЫ =====

    app.include_router(auth.router)
    app.include_router(calendar_events.router)
    app.include_router(notes.router)

    @app.get("/health", response_model=HealthCheck)
    async def health_check(request: Request):
        """Проверка состояния сервиса"""
        services = getattr(request.app.state, "services", None)
        report = services.health_check() if services is not None else {"status": "starting"}
        return HealthCheck(
            status=report["status"],
            services=report.get("services", {}),
            service=settings.APP_NAME,
            version=settings.VERSION,
            timestamp=time.time(),
            uptime_seconds=time.time() - request.app.state.start_time,
        )

    return app


__all__ = ['create_app', 'lifespan']
