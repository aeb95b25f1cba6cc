# solo_hunter/services/__init__.py

"""
Модуль сервисов Solo Hunter

Содержит сервисы для работы с данными пользователя, квестами, сериями
и уведомлениями.
"""

import logging
from typing import Optional

from solo_hunter.config import StoreConfig, config
from solo_hunter.core.events import EventBus
from solo_hunter.database import DocumentStore, LocalCache, create_document_store

from .note_service import NoteService
from .notifications import Notification, NotificationKind, NotificationService
from .quest_service import CompletionResult, QuestService
from .rate_limiter import RateLimiter, RateLimits
from .streak_service import StreakService
from .user_data import UserDataManager

logger = logging.getLogger(__name__)


class ServiceManager:
    """
    Менеджер для управления всеми сервисами

    Обеспечивает:
    - Инициализацию сервисов в нужном порядке
    - Общие хранилище, кэш и шину событий
    - Корректное закрытие хранилища
    """

    def __init__(self, store: Optional[DocumentStore] = None,
                 store_config: Optional[StoreConfig] = None):
        self.store_config = store_config or config.store
        self.store = store
        self.cache: Optional[LocalCache] = None
        self.bus = EventBus()
        self.notifications: Optional[NotificationService] = None
        self.rate_limits = RateLimits()
        self.initialized = False

    def initialize_services(self) -> None:
        """Инициализация всех сервисов"""
        logger.info("🔧 Инициализация сервисов Solo Hunter...")

        if self.store is None:
            self.store = create_document_store(self.store_config)
        if self.store_config.cache_enabled:
            self.cache = LocalCache(self.store_config.cache_max_entries)
        self.notifications = NotificationService(self.bus)

        self.initialized = True
        logger.info("✅ Все сервисы инициализированы успешно!")

    def _require_initialized(self) -> None:
        if not self.initialized:
            raise RuntimeError("ServiceManager is not initialized")

    def user_data(self, user_id: Optional[str] = None) -> UserDataManager:
        """Менеджер данных для сессии пользователя"""
        self._require_initialized()
        return UserDataManager(self.store, self.cache, user_id)

    def quest_service(self, data: UserDataManager) -> QuestService:
        self._require_initialized()
        return QuestService(data, self.bus, StreakService(data, self.bus), self.rate_limits)

    def note_service(self, data: UserDataManager) -> NoteService:
        self._require_initialized()
        return NoteService(data, self.rate_limits)

    def get_services_info(self) -> dict:
        """Получить информацию о состоянии сервисов"""
        info = {
            "initialized": self.initialized,
            "services": {},
        }
        if self.store is not None and hasattr(self.store, "stats"):
            info["services"]["store"] = self.store.stats()
        if self.cache is not None:
            info["services"]["cache"] = self.cache.stats.to_dict()
        info["services"]["event_bus"] = {
            "subscribers": self.bus.subscriber_count,
            "published": self.bus.published_count,
            "failed_handlers": self.bus.failed_handlers,
        }
        return info

    def health_check(self) -> dict:
        """Проверка состояния всех сервисов"""
        info = self.get_services_info()
        return {
            "status": "healthy" if self.initialized else "starting",
            "store": type(self.store).__name__ if self.store is not None else None,
            "cache_enabled": self.cache is not None,
            "services": info["services"],
        }

    async def close_services(self) -> None:
        """Корректное закрытие всех сервисов"""
        logger.info("🔄 Закрытие сервисов...")
        if self.notifications is not None:
            self.notifications.close()
        if self.store is not None:
            await self.store.close()
        if self.cache is not None:
            self.cache.clear()
        self.initialized = False
        logger.info("✅ Сервисы закрыты")


__all__ = [
    'ServiceManager',
    'UserDataManager',
    'QuestService',
    'NoteService',
    'CompletionResult',
    'StreakService',
    'RateLimiter',
    'RateLimits',
    'NotificationService',
    'Notification',
    'NotificationKind',
]
