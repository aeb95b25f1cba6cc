#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Solo Hunter - Server Configuration
Конфигурация HTTP-сервиса с настройками для разных сред

Версия: 1.0.0
"""

from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServerSettings(BaseSettings):
    """Настройки HTTP-сервиса Solo Hunter"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # ===== ОСНОВНЫЕ НАСТРОЙКИ =====

    APP_NAME: str = Field(
        default="Solo Hunter API",
        description="Название приложения"
    )

    VERSION: str = Field(
        default="1.0.0",
        description="Версия API"
    )

    ENVIRONMENT: str = Field(
        default="development",
        description="Среда выполнения (development/production/testing)"
    )

    DEBUG: bool = Field(
        default=False,
        description="Режим отладки"
    )

    # ===== СЕТЕВЫЕ НАСТРОЙКИ =====

    HOST: str = Field(
        default="0.0.0.0",
        description="Хост для запуска сервиса"
    )

    PORT: int = Field(
        default=5000,
        description="Порт для запуска сервиса"
    )

    # ===== CORS НАСТРОЙКИ =====

    ALLOWED_ORIGINS: str = Field(
        default="*",
        description="Разрешенные источники для CORS (через запятую)"
    )

    # ===== БАЗА ДАННЫХ =====

    DATABASE_URL: str = Field(
        default="sqlite+aiosqlite:///./data/solo_hunter.db",
        description="URL реляционной базы (SQLAlchemy async)"
    )

    DB_ECHO: bool = Field(
        default=False,
        description="Логировать SQL-запросы"
    )

    # ===== АВТОРИЗАЦИЯ =====

    AUTH_HEADER: str = Field(
        default="X-Firebase-Uid",
        description="Заголовок с внешним идентификатором пользователя"
    )

    # ===== ЛОГИРОВАНИЕ =====

    LOG_LEVEL: str = Field(
        default="INFO",
        description="Уровень логирования (DEBUG/INFO/WARNING/ERROR/CRITICAL)"
    )

    @field_validator('ENVIRONMENT')
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Валидация среды выполнения"""
        allowed_envs = ['development', 'production', 'testing']
        if v.lower() not in allowed_envs:
            raise ValueError(f"ENVIRONMENT must be one of {allowed_envs}")
        return v.lower()

    @field_validator('LOG_LEVEL')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Валидация уровня логирования"""
        allowed_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in allowed_levels:
            raise ValueError(f"LOG_LEVEL must be one of {allowed_levels}")
        return v.upper()

    @field_validator('PORT')
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Валидация порта"""
        if not 1 <= v <= 65535:
            raise ValueError("PORT must be between 1 and 65535")
        return v

    @property
    def cors_origins(self) -> List[str]:
        """Список CORS origins"""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(',') if origin.strip()]


@lru_cache()
def get_settings() -> ServerSettings:
    """Получить настройки (кэшируются на процесс)"""
    return ServerSettings()


__all__ = ['ServerSettings', 'get_settings']
