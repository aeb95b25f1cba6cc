#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Solo Hunter - In-Memory Document Store
Документное хранилище в памяти процесса

Версия: 1.0.0
"""

import asyncio
import copy
import inspect
import logging
import uuid
from contextlib import asynccontextmanager
from typing import Any, Callable, Dict, List, Optional, Set

from solo_hunter.core.exceptions import NotFoundError, PermanentStoreError
from solo_hunter.database.base import (
    Document, DocumentStore, Query, SnapshotCallback, Subscription, Transaction,
)

logger = logging.getLogger(__name__)

_DELETED = object()


def _with_id(doc_id: str, data: Document) -> Document:
    document = copy.deepcopy(data)
    document["id"] = doc_id
    return document


class _StagedTransaction(Transaction):
    """Транзакция с буфером записей поверх текущего состояния хранилища"""

    def __init__(self, store: "InMemoryDocumentStore"):
        self._store = store
        self._writes: Dict[str, Dict[str, Any]] = {}

    def _current(self, collection: str, doc_id: str) -> Optional[Document]:
        staged = self._writes.get(collection, {})
        if doc_id in staged:
            value = staged[doc_id]
            return None if value is _DELETED else value
        return self._store._collections.get(collection, {}).get(doc_id)

    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        current = self._current(collection, doc_id)
        return _with_id(doc_id, current) if current is not None else None

    def set(self, collection: str, doc_id: str, data: Document, merge: bool = False) -> None:
        current = self._current(collection, doc_id) if merge else None
        merged = dict(current or {})
        merged.update(copy.deepcopy(data))
        merged.pop("id", None)
        self._writes.setdefault(collection, {})[doc_id] = merged

    def update(self, collection: str, doc_id: str, changes: Document) -> None:
        if self._current(collection, doc_id) is None:
            raise NotFoundError(collection, doc_id)
        self.set(collection, doc_id, changes, merge=True)

    def delete(self, collection: str, doc_id: str) -> None:
        self._writes.setdefault(collection, {})[doc_id] = _DELETED

    def _apply(self) -> Dict[str, Dict[str, Any]]:
        """Применить записи; возвращает прежние значения для отката"""
        previous: Dict[str, Dict[str, Any]] = {}
        for collection, writes in self._writes.items():
            target = self._store._collections.setdefault(collection, {})
            for doc_id, value in writes.items():
                previous.setdefault(collection, {})[doc_id] = target.get(doc_id, _DELETED)
                if value is _DELETED:
                    target.pop(doc_id, None)
                else:
                    target[doc_id] = value
        return previous

    def _rollback(self, previous: Dict[str, Dict[str, Any]]) -> None:
        for collection, values in previous.items():
            target = self._store._collections.setdefault(collection, {})
            for doc_id, value in values.items():
                if value is _DELETED:
                    target.pop(doc_id, None)
                else:
                    target[doc_id] = value


class InMemoryDocumentStore(DocumentStore):
    """
    Хранилище в памяти.

    Записи сериализуются через asyncio.Lock; транзакция удерживает блокировку
    до фиксации. Подписчики получают снимок после каждой фиксации.
    """

    def __init__(self):
        self._collections: Dict[str, Dict[str, Document]] = {}
        self._subscriptions: List[Subscription] = []
        self._lock = asyncio.Lock()
        self._closed = False
        self.write_count = 0

    # ===== ВНУТРЕННИЕ МЕТОДЫ =====

    def _ensure_open(self) -> None:
        if self._closed:
            raise PermanentStoreError("Store is closed")

    def _snapshot(self, collection: str, query: Query) -> List[Document]:
        documents = [
            _with_id(doc_id, data)
            for doc_id, data in self._collections.get(collection, {}).items()
        ]
        return query.apply(documents)

    async def _commit(self, writes: Dict[str, Dict[str, Any]]) -> None:
        """Хук после фиксации изменений (для хранилищ с персистентностью)"""

    async def _deliver(self, subscription: Subscription) -> None:
        if not subscription.active:
            return
        snapshot = self._snapshot(subscription.collection, subscription.query)
        try:
            result = subscription.callback(snapshot)
            if inspect.isawaitable(result):
                await result
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"❌ Ошибка подписчика коллекции {subscription.collection}: {e}")

    async def _notify(self, collections: Set[str]) -> None:
        for subscription in list(self._subscriptions):
            if subscription.collection in collections:
                await self._deliver(subscription)

    async def _apply_and_commit(self, transaction: _StagedTransaction) -> Set[str]:
        previous = transaction._apply()
        try:
            await self._commit(transaction._writes)
        except Exception:
            transaction._rollback(previous)
            raise
        self.write_count += 1
        return set(transaction._writes)

    async def _write(self, stage: Callable[[_StagedTransaction], None]) -> None:
        """Подготовка и фиксация одиночной записи под блокировкой"""
        async with self._lock:
            self._ensure_open()
            transaction = _StagedTransaction(self)
            stage(transaction)
            changed = await self._apply_and_commit(transaction)
        await self._notify(changed)

    # ===== ЧТЕНИЕ =====

    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        self._ensure_open()
        data = self._collections.get(collection, {}).get(doc_id)
        return _with_id(doc_id, data) if data is not None else None

    async def query(self, collection: str, query: Optional[Query] = None) -> List[Document]:
        self._ensure_open()
        return self._snapshot(collection, query or Query())

    # ===== ЗАПИСЬ =====

    async def add(self, collection: str, data: Document, doc_id: Optional[str] = None) -> str:
        doc_id = doc_id or data.get("id") or uuid.uuid4().hex
        await self._write(lambda t: t.set(collection, doc_id, data))
        return doc_id

    async def set(self, collection: str, doc_id: str, data: Document, merge: bool = False) -> None:
        await self._write(lambda t: t.set(collection, doc_id, data, merge=merge))

    async def update(self, collection: str, doc_id: str, changes: Document) -> None:
        await self._write(lambda t: t.update(collection, doc_id, changes))

    async def delete(self, collection: str, doc_id: str) -> None:
        self._ensure_open()
        if doc_id not in self._collections.get(collection, {}):
            return
        await self._write(lambda t: t.delete(collection, doc_id))

    @asynccontextmanager
    async def transaction(self):
        """Транзакция: записи применяются только при успешном выходе из блока"""
        async with self._lock:
            self._ensure_open()
            staged = _StagedTransaction(self)
            yield staged
            changed = await self._apply_and_commit(staged)
        await self._notify(changed)

    # ===== ПОДПИСКИ =====

    async def subscribe(self, collection: str, query: Optional[Query],
                        callback: SnapshotCallback) -> Subscription:
        self._ensure_open()
        subscription = Subscription(
            collection=collection,
            query=query or Query(),
            callback=callback,
            _on_cancel=self._remove_subscription,
        )
        self._subscriptions.append(subscription)
        await self._deliver(subscription)
        return subscription

    def _remove_subscription(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    @property
    def subscription_count(self) -> int:
        return len(self._subscriptions)

    async def close(self) -> None:
        for subscription in list(self._subscriptions):
            subscription.unsubscribe()
        self._closed = True
        logger.debug("Хранилище в памяти закрыто")

    def stats(self) -> Dict[str, Any]:
        return {
            'collections': {name: len(docs) for name, docs in self._collections.items()},
            'subscriptions': len(self._subscriptions),
            'writes': self.write_count,
        }


__all__ = ['InMemoryDocumentStore']
