# solo_hunter/database/cache.py

"""Локальный write-through кэш документов"""

import copy
import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

CacheKey = Tuple[str, str, str]


@dataclass
class CacheStats:
    """Статистика кэша"""
    hits: int = 0
    misses: int = 0
    evictions: int = 0
    size: int = 0
    max_size: int = 1000

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return (self.hits / total * 100) if total > 0 else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'hits': self.hits,
            'misses': self.misses,
            'evictions': self.evictions,
            'size': self.size,
            'max_size': self.max_size,
            'hit_rate': round(self.hit_rate, 2),
        }


class LocalCache:
    """
    LRU-кэш документов по ключу (user_id, collection, doc_id).

    Кэш не является источником истины: каждая запись сначала уходит в
    хранилище, затем обновляет кэш. Отсутствующие документы не кэшируются.
    """

    def __init__(self, max_size: int = 1000):
        self.max_size = max_size
        self._entries: "OrderedDict[CacheKey, Dict[str, Any]]" = OrderedDict()
        self.stats = CacheStats(max_size=max_size)
        self._lock = threading.RLock()

    def get(self, user_id: str, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        key = (user_id, collection, doc_id)
        with self._lock:
            if key in self._entries:
                self._entries.move_to_end(key)
                self.stats.hits += 1
                return copy.deepcopy(self._entries[key])
            self.stats.misses += 1
            return None

    def put(self, user_id: str, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        key = (user_id, collection, doc_id)
        with self._lock:
            if key not in self._entries and len(self._entries) >= self.max_size:
                self._evict_lru()
            self._entries[key] = copy.deepcopy(data)
            self._entries.move_to_end(key)
            self.stats.size = len(self._entries)

    def remove(self, user_id: str, collection: str, doc_id: str) -> bool:
        with self._lock:
            removed = self._entries.pop((user_id, collection, doc_id), None) is not None
            self.stats.size = len(self._entries)
            return removed

    def invalidate_user(self, user_id: str, collection: Optional[str] = None) -> int:
        """Удалить все записи пользователя (или одной его коллекции)"""
        with self._lock:
            keys = [
                key for key in self._entries
                if key[0] == user_id and (collection is None or key[1] == collection)
            ]
            for key in keys:
                del self._entries[key]
            self.stats.size = len(self._entries)
            return len(keys)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.stats.size = 0

    def _evict_lru(self) -> None:
        key, _ = self._entries.popitem(last=False)
        self.stats.evictions += 1
        logger.debug(f"Evicted {key} from local cache")

    def __len__(self) -> int:
        return len(self._entries)


__all__ = ['LocalCache', 'CacheStats']
