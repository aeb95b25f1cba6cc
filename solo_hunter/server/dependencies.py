#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Solo Hunter - Server Dependencies
Провайдеры зависимостей FastAPI: сессия БД, хранилище, текущий пользователь

Версия: 1.0.0
"""

import logging
from typing import AsyncGenerator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from solo_hunter.core.exceptions import NotAuthenticatedError, NotFoundError
from solo_hunter.server.config import ServerSettings
from solo_hunter.server.db import UserRecord
from solo_hunter.server.storage import Storage
from solo_hunter.services.rate_limiter import RateLimits

logger = logging.getLogger(__name__)


def get_app_settings(request: Request) -> ServerSettings:
    """Настройки, с которыми создано приложение"""
    return request.app.state.settings


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Сессия БД на запрос: фиксация при успехе, откат при ошибке"""
    async with request.app.state.db.session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_rate_limits(request: Request) -> RateLimits:
    """Лимиты частоты операций, общие для приложения"""
    return request.app.state.services.rate_limits


async def get_storage(session: AsyncSession = Depends(get_db_session)) -> Storage:
    return Storage(session)


async def get_current_user(
    request: Request,
    storage: Storage = Depends(get_storage),
    settings: ServerSettings = Depends(get_app_settings),
) -> UserRecord:
    """Пользователь по заголовку с Firebase uid (401 без заголовка, 404 если не найден)"""
    firebase_uid = request.headers.get(settings.AUTH_HEADER, "").strip()
    if not firebase_uid:
        raise NotAuthenticatedError(f"Missing {settings.AUTH_HEADER} header")

    user = await storage.get_user_by_firebase_uid(firebase_uid)
    if user is None:
        logger.debug(f"Неизвестный uid в заголовке: {firebase_uid}")
        raise NotFoundError("users", firebase_uid)
    return user


__all__ = ['get_app_settings', 'get_db_session', 'get_rate_limits', 'get_storage', 'get_current_user']
