#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Solo Hunter - JSON File Document Store
Документное хранилище с сохранением всех коллекций в один JSON-файл

Версия: 1.0.0
"""

import asyncio
import json
import logging
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Union

from solo_hunter.core.exceptions import PermanentStoreError
from solo_hunter.database.memory import InMemoryDocumentStore
from solo_hunter.utils.datetime_utils import utc_now_iso

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1


class JsonFileDocumentStore(InMemoryDocumentStore):
    """
    Хранилище поверх JSON-файла.

    Состояние держится в памяти и целиком записывается на диск после каждой
    фиксации через временный файл. Повреждённый файл перемещается в каталог
    бэкапов, хранилище начинает с пустых коллекций.
    """

    def __init__(self, data_file: Union[str, Path], backup_dir: Optional[Path] = None):
        super().__init__()
        self.data_file = Path(data_file)
        self.backup_dir = backup_dir or self.data_file.parent / "backups"
        self.save_count = 0
        self.last_save_time: Optional[float] = None
        self._load()

    def _load(self) -> None:
        """Загрузка коллекций из файла"""
        if not self.data_file.exists():
            logger.info(f"📂 Файл данных {self.data_file} не найден, начинаем с пустого хранилища")
            return

        try:
            with open(self.data_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"❌ Ошибка парсинга JSON: {e}")
            self._create_backup_and_reset()
            return

        collections = data.get("collections") if isinstance(data, dict) else None
        if not isinstance(collections, dict):
            logger.warning("⚠️ Неверный формат файла данных")
            self._create_backup_and_reset()
            return

        self._collections = {
            name: dict(documents)
            for name, documents in collections.items()
            if isinstance(documents, dict)
        }
        total = sum(len(documents) for documents in self._collections.values())
        logger.info(f"📂 Загружено {total} документов из {self.data_file}")

    def _create_backup_and_reset(self) -> None:
        """Перемещение повреждённого файла в бэкап и сброс"""
        self.backup_dir.mkdir(parents=True, exist_ok=True)
        backup_name = f"corrupted_backup_{datetime.now().strftime('%Y%m%d_%H%M%S')}.json"
        backup_path = self.backup_dir / backup_name
        self.data_file.replace(backup_path)
        logger.warning(f"🔄 Поврежденный файл перемещен в {backup_path}")
        self._collections = {}

    def _save(self) -> None:
        """Атомарное сохранение через временный файл"""
        payload: Dict[str, Any] = {
            "version": FORMAT_VERSION,
            "saved_at": utc_now_iso(),
            "collections": self._collections,
        }

        try:
            self.data_file.parent.mkdir(parents=True, exist_ok=True)
            temp_file = self.data_file.with_suffix('.tmp')
            with open(temp_file, 'w', encoding='utf-8') as f:
                json.dump(payload, f, ensure_ascii=False, indent=2)
            temp_file.replace(self.data_file)
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"❌ Ошибка сохранения данных: {e}")
            raise PermanentStoreError(f"Failed to save {self.data_file}: {e}") from e

        self.save_count += 1
        self.last_save_time = time.time()

    async def _commit(self, writes: Dict[str, Dict[str, Any]]) -> None:
        await asyncio.to_thread(self._save)

    async def flush(self) -> None:
        async with self._lock:
            await asyncio.to_thread(self._save)

    async def close(self) -> None:
        if not self._closed:
            await self.flush()
            logger.info(f"💾 Данные сохранены в {self.data_file}")
        await super().close()

    def stats(self) -> Dict[str, Any]:
        stats = super().stats()
        stats.update({
            'data_file': str(self.data_file),
            'save_count': self.save_count,
            'last_save_time': self.last_save_time,
        })
        return stats


__all__ = ['JsonFileDocumentStore']
