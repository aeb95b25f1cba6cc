#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Solo Hunter - Relational Storage
Доступ к пользователям, событиям календаря и записям через SQLAlchemy

Все выборки и изменения событий и записей ограничены владельцем:
чужой документ для вызывающего выглядит как несуществующий.

Версия: 1.0.0
"""

import logging
from typing import Any, Dict, List, Optional, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from solo_hunter.core.exceptions import ConflictError, NotFoundError
from solo_hunter.core.models import Rank
from solo_hunter.server.db import Base, CalendarEventRecord, NoteRecord, UserRecord
from solo_hunter.server.schemas import (
    CalendarEventCreate, CalendarEventUpdate, NoteCreate, NoteUpdate, UserUpsert,
)

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=Base)

# Поля, которые можно явно обнулить в PUT
NULLABLE_FIELDS = {"description", "time"}


def _changes(data) -> Dict[str, Any]:
    return {
        name: value
        for name, value in data.model_dump(exclude_unset=True).items()
        if value is not None or name in NULLABLE_FIELDS
    }


class Storage:
    """Хранилище HTTP-сервиса поверх AsyncSession"""

    def __init__(self, session: AsyncSession):
        self.session = session

    # ===== ПОЛЬЗОВАТЕЛИ =====

    async def get_user_by_firebase_uid(self, firebase_uid: str) -> Optional[UserRecord]:
        result = await self.session.execute(
            select(UserRecord).where(UserRecord.firebase_uid == firebase_uid)
        )
        return result.scalar_one_or_none()

    async def upsert_user(self, data: UserUpsert) -> UserRecord:
        """Вернуть существующего пользователя или создать нового с начальными значениями"""
        user = await self.get_user_by_firebase_uid(data.firebase_uid)
        if user is not None:
            return user

        taken = await self.session.execute(select(UserRecord.id).where(UserRecord.email == data.email))
        if taken.first() is not None:
            raise ConflictError(f"Email {data.email} is already registered", "email")

        user = UserRecord(
            firebase_uid=data.firebase_uid,
            email=data.email,
            display_name=data.display_name,
            level=1,
            current_xp=0,
            total_xp=0,
            streak=0,
            rank=Rank.E.value,
        )
        self.session.add(user)
        await self.session.flush()
        await self.session.refresh(user)

        logger.info(f"👤 Создан пользователь {user.id} ({data.firebase_uid})")
        return user

    # ===== ОБЩИЕ ОПЕРАЦИИ =====

    async def _list_owned(self, model: Type[RecordT], user_id: str) -> List[RecordT]:
        result = await self.session.execute(
            select(model)
            .where(model.user_id == user_id)
            .order_by(model.created_at)
        )
        return list(result.scalars().all())

    async def _get_owned(self, model: Type[RecordT], user_id: str, doc_id: str) -> Optional[RecordT]:
        record = await self.session.get(model, doc_id)
        if record is None or record.user_id != user_id:
            return None
        return record

    async def _create(self, model: Type[RecordT], user_id: str, values: Dict[str, Any]) -> RecordT:
        record = model(user_id=user_id, **values)
        self.session.add(record)
        await self.session.flush()
        await self.session.refresh(record)
        return record

    async def _update(self, model: Type[RecordT], user_id: str, doc_id: str,
                      changes: Dict[str, Any]) -> RecordT:
        record = await self._get_owned(model, user_id, doc_id)
        if record is None:
            raise NotFoundError(model.__tablename__, doc_id)

        for name, value in changes.items():
            setattr(record, name, value)
        await self.session.flush()
        await self.session.refresh(record)
        return record

    async def _delete(self, model: Type[RecordT], user_id: str, doc_id: str) -> bool:
        record = await self._get_owned(model, user_id, doc_id)
        if record is None:
            return False
        await self.session.delete(record)
        await self.session.flush()
        return True

    # ===== СОБЫТИЯ КАЛЕНДАРЯ =====

    async def list_events(self, user_id: str) -> List[CalendarEventRecord]:
        return await self._list_owned(CalendarEventRecord, user_id)

    async def create_event(self, user_id: str, data: CalendarEventCreate) -> CalendarEventRecord:
        values = data.model_dump()
        values["type"] = data.type.value
        return await self._create(CalendarEventRecord, user_id, values)

    async def update_event(self, user_id: str, event_id: str,
                           data: CalendarEventUpdate) -> CalendarEventRecord:
        changes = _changes(data)
        if "type" in changes:
            changes["type"] = data.type.value
        return await self._update(CalendarEventRecord, user_id, event_id, changes)

    async def delete_event(self, user_id: str, event_id: str) -> bool:
        return await self._delete(CalendarEventRecord, user_id, event_id)

    # ===== ЗАПИСИ =====

    async def list_notes(self, user_id: str) -> List[NoteRecord]:
        return await self._list_owned(NoteRecord, user_id)

    async def create_note(self, user_id: str, data: NoteCreate) -> NoteRecord:
        values = data.model_dump()
        values["category"] = data.category.value
        return await self._create(NoteRecord, user_id, values)

    async def update_note(self, user_id: str, note_id: str, data: NoteUpdate) -> NoteRecord:
        changes = _changes(data)
        if "category" in changes:
            changes["category"] = data.category.value
        return await self._update(NoteRecord, user_id, note_id, changes)

    async def delete_note(self, user_id: str, note_id: str) -> bool:
        return await self._delete(NoteRecord, user_id, note_id)


__all__ = ['Storage']
