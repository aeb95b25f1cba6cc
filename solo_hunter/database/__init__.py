# solo_hunter/database/__init__.py

"""
Слой хранения Solo Hunter: документное хранилище, бэкенды и локальный кэш.
"""

import logging
from typing import Optional

from solo_hunter.config import StoreBackend, StoreConfig, config

from .base import (
    Document, DocumentStore, Query, Subscription, Transaction,
    USERS, GOALS, CATEGORIES, NOTES, SETTINGS, STREAKS, COLLECTIONS,
)
from .cache import LocalCache, CacheStats
from .memory import InMemoryDocumentStore
from .json_store import JsonFileDocumentStore

logger = logging.getLogger(__name__)


def create_document_store(store_config: Optional[StoreConfig] = None) -> DocumentStore:
    """Создание хранилища по конфигурации"""
    store_config = store_config or config.store

    if store_config.backend == StoreBackend.JSON:
        logger.info(f"📂 Хранилище: JSON-файл {store_config.data_path}")
        return JsonFileDocumentStore(store_config.data_path)

    logger.info("📂 Хранилище: в памяти")
    return InMemoryDocumentStore()


__all__ = [
    'Document', 'DocumentStore', 'Query', 'Subscription', 'Transaction',
    'USERS', 'GOALS', 'CATEGORIES', 'NOTES', 'SETTINGS', 'STREAKS', 'COLLECTIONS',
    'LocalCache', 'CacheStats', 'InMemoryDocumentStore', 'JsonFileDocumentStore',
    'create_document_store',
]
