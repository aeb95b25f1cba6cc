#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Solo Hunter - Configuration
Централизованная конфигурация с валидацией

Версия: 1.0.0
"""

import os
import sys
from pathlib import Path
from typing import Dict, Any
from dataclasses import dataclass, field
from enum import Enum

import pytz


class Environment(Enum):
    """Среды выполнения"""
    DEVELOPMENT = "development"
    TESTING = "testing"
    PRODUCTION = "production"


class LogLevel(Enum):
    """Уровни логирования"""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class StoreBackend(Enum):
    """Бэкенды документного хранилища"""
    MEMORY = "memory"
    JSON = "json"


@dataclass
class ProgressionConfig:
    """Конфигурация опыта и уровней"""
    xp_per_level: int = 1000
    min_xp_reward: int = 1
    max_xp_reward: int = 100
    default_goal_xp: int = 10
    priority_xp: Dict[str, int] = field(default_factory=lambda: {
        "low": 25,
        "medium": 50,
        "high": 100,
    })


@dataclass
class StreakConfig:
    """Конфигурация серий выполнения"""
    timezone: str = "UTC"


@dataclass
class StoreConfig:
    """Конфигурация документного хранилища"""
    backend: StoreBackend = StoreBackend.MEMORY
    data_dir: Path = Path("data")
    data_file: str = "solo_hunter.json"
    retry_attempts: int = 1
    retry_delay_seconds: float = 2.0
    cache_enabled: bool = True
    cache_max_entries: int = 1000

    @property
    def data_path(self) -> Path:
        return self.data_dir / self.data_file


@dataclass
class RateLimitConfig:
    """Лимиты частоты операций на пользователя"""
    goal_create_per_minute: int = 10
    goal_update_per_minute: int = 20
    note_create_per_minute: int = 5
    window_seconds: float = 60.0


def _env_bool(key: str, default: str) -> bool:
    return os.getenv(key, default).lower() == 'true'


class AppConfig:
    """Главный класс конфигурации"""

    def __init__(self):
        self.environment = Environment(os.getenv('ENVIRONMENT', 'development'))
        self._load_config()
        self._validate_config()

    def _load_config(self):
        """Загрузка конфигурации из переменных окружения"""

        self.progression = ProgressionConfig(
            xp_per_level=int(os.getenv('XP_PER_LEVEL', 1000)),
            min_xp_reward=int(os.getenv('MIN_XP_REWARD', 1)),
            max_xp_reward=int(os.getenv('MAX_XP_REWARD', 100)),
        )

        self.streaks = StreakConfig(
            timezone=os.getenv('STREAK_TIMEZONE', 'UTC'),
        )

        self.store = StoreConfig(
            backend=StoreBackend(os.getenv('STORE_BACKEND', 'memory')),
            data_dir=Path(os.getenv('DATA_DIR', 'data')),
            data_file=os.getenv('DATA_FILE', 'solo_hunter.json'),
            retry_attempts=int(os.getenv('STORE_RETRY_ATTEMPTS', 1)),
            retry_delay_seconds=float(os.getenv('STORE_RETRY_DELAY', 2.0)),
            cache_enabled=_env_bool('CACHE_ENABLED', 'true'),
            cache_max_entries=int(os.getenv('CACHE_MAX_ENTRIES', 1000)),
        )

        self.rate_limits = RateLimitConfig(
            goal_create_per_minute=int(os.getenv('GOAL_CREATE_LIMIT', 10)),
            goal_update_per_minute=int(os.getenv('GOAL_UPDATE_LIMIT', 20)),
            note_create_per_minute=int(os.getenv('NOTE_CREATE_LIMIT', 5)),
        )

        # Логирование
        self.log_dir = Path(os.getenv('LOG_DIR', 'logs'))
        self.log_level = LogLevel(os.getenv('LOG_LEVEL', 'INFO'))
        self.log_to_file = _env_bool('LOG_TO_FILE', 'false')
        self.log_format = os.getenv(
            'LOG_FORMAT',
            '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
        )

    def _validate_config(self):
        """Валидация конфигурации"""
        errors = []

        if self.progression.xp_per_level <= 0:
            errors.append("XP_PER_LEVEL должен быть положительным числом")

        if not 1 <= self.progression.min_xp_reward <= self.progression.max_xp_reward:
            errors.append("MIN_XP_REWARD/MAX_XP_REWARD заданы неверно")

        if self.streaks.timezone not in pytz.all_timezones_set:
            errors.append(f"Неизвестная временная зона: {self.streaks.timezone}")

        if self.store.retry_attempts < 0:
            errors.append("STORE_RETRY_ATTEMPTS не может быть отрицательным")

        if self.store.retry_delay_seconds < 0:
            errors.append("STORE_RETRY_DELAY не может быть отрицательным")

        for name in ('goal_create_per_minute', 'goal_update_per_minute', 'note_create_per_minute'):
            if getattr(self.rate_limits, name) <= 0:
                errors.append(f"Лимит {name} должен быть положительным")

        if errors:
            raise ValueError("Ошибки конфигурации:\n" + "\n".join(f"• {error}" for error in errors))

    def get_logging_config(self) -> Dict[str, Any]:
        """Получение конфигурации логирования"""
        handlers = ['console']
        if self.log_to_file:
            handlers.append('file')

        logging_config = {
            'version': 1,
            'disable_existing_loggers': False,
            'formatters': {
                'default': {
                    'format': self.log_format,
                    'datefmt': '%Y-%m-%d %H:%M:%S'
                }
            },
            'handlers': {
                'console': {
                    'class': 'logging.StreamHandler',
                    'level': self.log_level.value,
                    'formatter': 'default',
                    'stream': sys.stdout
                },
            },
            'loggers': {
                '': {
                    'level': self.log_level.value,
                    'handlers': handlers,
                    'propagate': False
                },
                'uvicorn.access': {
                    'level': 'WARNING',
                    'handlers': handlers,
                    'propagate': False
                },
                'sqlalchemy.engine': {
                    'level': 'WARNING',
                    'handlers': handlers,
                    'propagate': False
                },
            }
        }

        if self.log_to_file:
            logging_config['handlers']['file'] = {
                'class': 'logging.handlers.RotatingFileHandler',
                'level': self.log_level.value,
                'formatter': 'default',
                'filename': str(self.log_dir / f"solo_hunter_{self.environment.value}.log"),
                'maxBytes': 10485760,  # 10MB
                'backupCount': 5,
                'encoding': 'utf-8'
            }

        return logging_config

    def to_dict(self) -> Dict[str, Any]:
        """Сериализация конфигурации в словарь"""
        return {
            'environment': self.environment.value,
            'progression': {
                'xp_per_level': self.progression.xp_per_level,
                'xp_reward_range': [self.progression.min_xp_reward, self.progression.max_xp_reward],
            },
            'streaks': {'timezone': self.streaks.timezone},
            'store': {
                'backend': self.store.backend.value,
                'data_path': str(self.store.data_path),
                'retry_attempts': self.store.retry_attempts,
                'retry_delay_seconds': self.store.retry_delay_seconds,
                'cache_enabled': self.store.cache_enabled,
            },
            'rate_limits': {
                'goal_create_per_minute': self.rate_limits.goal_create_per_minute,
                'goal_update_per_minute': self.rate_limits.goal_update_per_minute,
                'note_create_per_minute': self.rate_limits.note_create_per_minute,
            },
            'log_level': self.log_level.value,
        }


# Глобальный экземпляр конфигурации
config = AppConfig()

__all__ = [
    'config',
    'AppConfig',
    'Environment',
    'LogLevel',
    'StoreBackend',
    'ProgressionConfig',
    'StreakConfig',
    'StoreConfig',
    'RateLimitConfig',
]
