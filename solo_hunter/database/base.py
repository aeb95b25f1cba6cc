#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Solo Hunter - Document Store Contract
Абстрактное документное хранилище: коллекции, запросы, подписки, транзакции

Версия: 1.0.0
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import Any, AsyncContextManager, Awaitable, Callable, Dict, List, Optional, Tuple, Union

logger = logging.getLogger(__name__)

Document = Dict[str, Any]
SnapshotCallback = Callable[[List[Document]], Union[None, Awaitable[None]]]

# ===== COLLECTIONS =====

USERS = "users"
GOALS = "goals"
CATEGORIES = "categories"
NOTES = "notes"
SETTINGS = "user_settings"
STREAKS = "streaks"

COLLECTIONS = (USERS, GOALS, CATEGORIES, NOTES, SETTINGS, STREAKS)

# ===== QUERY =====

def _sort_key(value: Any) -> Tuple[int, Any]:
    # None всегда в конце при сортировке по возрастанию
    return (1, "") if value is None else (0, value)


@dataclass(frozen=True)
class Query:
    """Запрос к коллекции: фильтры по равенству, сортировка, лимит"""
    filters: Tuple[Tuple[str, Any], ...] = ()
    order_field: Optional[str] = None
    descending: bool = False
    max_results: Optional[int] = None

    def where(self, field_name: str, value: Any) -> "Query":
        return replace(self, filters=self.filters + ((field_name, value),))

    def order_by(self, field_name: str, descending: bool = False) -> "Query":
        return replace(self, order_field=field_name, descending=descending)

    def limit(self, count: int) -> "Query":
        if count < 0:
            raise ValueError("limit must be non-negative")
        return replace(self, max_results=count)

    def matches(self, document: Document) -> bool:
        return all(document.get(name) == value for name, value in self.filters)

    def apply(self, documents: List[Document]) -> List[Document]:
        result = [doc for doc in documents if self.matches(doc)]
        if self.order_field:
            result.sort(key=lambda doc: _sort_key(doc.get(self.order_field)), reverse=self.descending)
        if self.max_results is not None:
            result = result[:self.max_results]
        return result

# ===== SUBSCRIPTION =====

@dataclass(eq=False)
class Subscription:
    """Подписка на изменения коллекции"""
    collection: str
    query: Query
    callback: SnapshotCallback
    active: bool = True
    _on_cancel: Optional[Callable[["Subscription"], None]] = field(default=None, repr=False)

    def unsubscribe(self) -> None:
        """Остановить доставку. Повторный вызов безопасен"""
        if not self.active:
            return
        self.active = False
        if self._on_cancel is not None:
            self._on_cancel(self)

# ===== STORE CONTRACT =====

class Transaction(ABC):
    """Набор операций, применяемых атомарно при выходе из контекста"""

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        ...

    @abstractmethod
    def set(self, collection: str, doc_id: str, data: Document, merge: bool = False) -> None:
        ...

    @abstractmethod
    def update(self, collection: str, doc_id: str, changes: Document) -> None:
        ...

    @abstractmethod
    def delete(self, collection: str, doc_id: str) -> None:
        ...


class DocumentStore(ABC):
    """
    Документное хранилище.

    Документы - словари; поле "id" содержит идентификатор документа
    и добавляется ко всем прочитанным документам.
    """

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        """Документ по id или None"""

    @abstractmethod
    async def query(self, collection: str, query: Optional[Query] = None) -> List[Document]:
        """Документы коллекции, удовлетворяющие запросу"""

    @abstractmethod
    async def add(self, collection: str, data: Document, doc_id: Optional[str] = None) -> str:
        """Создать документ и вернуть его id"""

    @abstractmethod
    async def set(self, collection: str, doc_id: str, data: Document, merge: bool = False) -> None:
        """Записать документ целиком (или слить с существующим при merge=True)"""

    @abstractmethod
    async def update(self, collection: str, doc_id: str, changes: Document) -> None:
        """Частичное обновление. NotFoundError, если документа нет"""

    @abstractmethod
    async def delete(self, collection: str, doc_id: str) -> None:
        """Удаление. Отсутствующий документ не является ошибкой"""

    @abstractmethod
    async def subscribe(self, collection: str, query: Optional[Query],
                        callback: SnapshotCallback) -> Subscription:
        """Подписка на полный результат запроса после каждого изменения"""

    @abstractmethod
    def transaction(self) -> AsyncContextManager[Transaction]:
        """Контекст транзакции: все записи фиксируются вместе или не фиксируются"""

    async def close(self) -> None:
        """Освобождение ресурсов"""


__all__ = [
    'Document', 'SnapshotCallback', 'Query', 'Subscription', 'Transaction', 'DocumentStore',
    'USERS', 'GOALS', 'CATEGORIES', 'NOTES', 'SETTINGS', 'STREAKS', 'COLLECTIONS',
]
