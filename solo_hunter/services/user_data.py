#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Solo Hunter - User Data Manager
CRUD-операции над данными пользователя с изоляцией по user_id

Версия: 1.0.0
"""

import inspect
import logging
from contextlib import asynccontextmanager
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from solo_hunter.core.exceptions import NotAuthenticatedError, NotFoundError, ValidationError
from solo_hunter.core.models import (
    Category, DEFAULT_CATEGORIES, Goal, GoalStatus, Note, NoteCategory,
    StreakData, UserProfile, UserSettings, coerce_enum, new_id,
)
from solo_hunter.database.base import (
    CATEGORIES, GOALS, NOTES, SETTINGS, STREAKS, USERS,
    Document, DocumentStore, Query, Subscription, Transaction,
)
from solo_hunter.database.cache import LocalCache
from solo_hunter.utils.datetime_utils import utc_now_iso
from solo_hunter.utils.decorators import retry_on_transient

logger = logging.getLogger(__name__)

# Поля, которые пользователь может менять напрямую
PROFILE_EDITABLE_FIELDS = {"display_name", "email"}
GOAL_EDITABLE_FIELDS = {
    "title", "description", "category_id", "priority", "xp_reward",
    "due_date", "is_recurring", "recurring_pattern",
}
CATEGORY_EDITABLE_FIELDS = {"name", "icon", "color", "is_active"}
NOTE_EDITABLE_FIELDS = {"title", "content", "tags", "category", "starred"}
SETTINGS_EDITABLE_FIELDS = {
    "theme", "color_theme", "notifications_enabled", "reminder_times", "daily_goal_target",
}


def _check_fields(changes: Dict[str, Any], allowed: Set[str], entity: str) -> None:
    forbidden = sorted(set(changes) - allowed)
    if forbidden:
        raise ValidationError(f"Cannot update {entity} fields: {', '.join(forbidden)}", forbidden[0])


async def _invoke(callback: Callable, value: Any) -> None:
    result = callback(value)
    if inspect.isawaitable(result):
        await result


class ScopedTransaction:
    """
    Транзакция хранилища с учётом изменённых документов.

    Затронутый документ удаляется из кэша сразу при постановке записи и
    ещё раз после фиксации.
    """

    def __init__(self, transaction: Transaction, cache: Optional[LocalCache] = None,
                 user_id: Optional[str] = None):
        self._transaction = transaction
        self._cache = cache
        self._user_id = user_id
        self.touched: List[Tuple[str, str]] = []

    def _touch(self, collection: str, doc_id: str) -> None:
        self.touched.append((collection, doc_id))
        if self._cache is not None:
            self._cache.remove(self._user_id, collection, doc_id)

    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        return await self._transaction.get(collection, doc_id)

    def set(self, collection: str, doc_id: str, data: Document, merge: bool = False) -> None:
        self._transaction.set(collection, doc_id, data, merge=merge)
        self._touch(collection, doc_id)

    def update(self, collection: str, doc_id: str, changes: Document) -> None:
        self._transaction.update(collection, doc_id, changes)
        self._touch(collection, doc_id)

    def delete(self, collection: str, doc_id: str) -> None:
        self._transaction.delete(collection, doc_id)
        self._touch(collection, doc_id)


class UserDataManager:
    """
    Менеджер данных пользователя.

    Один экземпляр на сессию. Все операции требуют установленного
    пользователя и видят только его документы. Обращения к хранилищу
    проходят через повтор при временных сбоях и локальный кэш.
    """

    def __init__(self, store: DocumentStore, cache: Optional[LocalCache] = None,
                 user_id: Optional[str] = None):
        self.store = store
        self.cache = cache
        self._user_id = user_id

    # ===== СЕССИЯ =====

    @property
    def user_id(self) -> Optional[str]:
        return self._user_id

    def set_user(self, user_id: Optional[str]) -> None:
        """Установить (или сбросить) текущего пользователя"""
        if user_id is not None and (not isinstance(user_id, str) or not user_id.strip()):
            raise ValidationError("user id must be a non-empty string", "user_id")
        if self._user_id and self.cache is not None and user_id != self._user_id:
            self.cache.invalidate_user(self._user_id)
        self._user_id = user_id

    def require_user(self) -> str:
        if not self._user_id:
            raise NotAuthenticatedError()
        return self._user_id

    # ===== ДОСТУП К ХРАНИЛИЩУ =====

    @retry_on_transient()
    async def _get(self, collection: str, doc_id: str) -> Optional[Document]:
        user_id = self.require_user()
        if self.cache is not None:
            cached = self.cache.get(user_id, collection, doc_id)
            if cached is not None:
                return cached

        document = await self.store.get(collection, doc_id)
        if document is not None and self.cache is not None:
            self.cache.put(user_id, collection, doc_id, document)
        return document

    @retry_on_transient()
    async def _query(self, collection: str, query: Query) -> List[Document]:
        return await self.store.query(collection, query)

    @retry_on_transient()
    async def _set(self, collection: str, doc_id: str, data: Document, merge: bool = False) -> None:
        user_id = self.require_user()
        await self.store.set(collection, doc_id, data, merge=merge)
        if self.cache is not None:
            if merge:
                self.cache.remove(user_id, collection, doc_id)
            else:
                self.cache.put(user_id, collection, doc_id, dict(data, id=doc_id))

    @retry_on_transient()
    async def _delete(self, collection: str, doc_id: str) -> None:
        user_id = self.require_user()
        await self.store.delete(collection, doc_id)
        if self.cache is not None:
            self.cache.remove(user_id, collection, doc_id)

    @retry_on_transient()
    async def _subscribe(self, collection: str, query: Query, callback: Callable) -> Subscription:
        return await self.store.subscribe(collection, query, callback)

    async def _get_owned(self, collection: str, doc_id: str) -> Document:
        """Документ текущего пользователя; чужой документ неотличим от отсутствующего"""
        user_id = self.require_user()
        document = await self._get(collection, doc_id)
        if document is None or document.get("user_id") != user_id:
            raise NotFoundError(collection, doc_id)
        return document

    def _owned_query(self) -> Query:
        return Query().where("user_id", self.require_user())

    @retry_on_transient()
    async def _update_owned(self, collection: str, doc_id: str, changes: Dict[str, Any], model):
        """
        Частичное обновление документа пользователя.

        Документ читается внутри транзакции (мимо кэша), проверяется моделью,
        а в хранилище пишутся только изменённые поля и updated_at.
        """
        user_id = self.require_user()
        async with self.transaction() as tx:
            document = await tx.get(collection, doc_id)
            if document is None or document.get("user_id") != user_id:
                raise NotFoundError(collection, doc_id)

            data = dict(document)
            data.update(changes)
            data["updated_at"] = utc_now_iso()
            updated = model.from_dict(data)

            normalized = updated.to_dict()
            fields = {name: normalized[name] for name in changes}
            fields["updated_at"] = normalized["updated_at"]
            tx.update(collection, doc_id, fields)
        return updated

    @asynccontextmanager
    async def transaction(self):
        """Транзакция хранилища; затронутые документы удаляются из кэша после фиксации"""
        user_id = self.require_user()
        async with self.store.transaction() as transaction:
            scoped = ScopedTransaction(transaction, self.cache, user_id)
            yield scoped
        if self.cache is not None:
            for collection, doc_id in scoped.touched:
                self.cache.remove(user_id, collection, doc_id)

    # ===== ПРОФИЛЬ =====

    def _initial_documents(self, user_id: str) -> List[Tuple[str, str, Document]]:
        """Категории, настройки и серия по умолчанию для нового пользователя"""
        documents = []
        for defaults in DEFAULT_CATEGORIES:
            category = Category(id=new_id(), user_id=user_id, **defaults)
            documents.append((CATEGORIES, category.id, category.to_dict()))
        documents.append((SETTINGS, user_id, UserSettings(user_id=user_id).to_dict()))
        documents.append((STREAKS, user_id, dict(StreakData().to_dict(), user_id=user_id)))
        return documents

    async def create_user_profile(self, uid: str, email: str = "",
                                  display_name: Optional[str] = None) -> UserProfile:
        """Создание профиля при первом входе (устанавливает текущего пользователя)"""
        self.set_user(uid)
        profile = UserProfile(
            uid=uid,
            email=email or "",
            display_name=display_name or "Hunter",
            last_login_date=utc_now_iso(),
        )

        async with self.transaction() as tx:
            if await tx.get(USERS, uid) is not None:
                raise ValidationError(f"Profile {uid} already exists", "uid")
            tx.set(USERS, uid, dict(profile.to_dict(), user_id=uid))
            for collection, doc_id, data in self._initial_documents(uid):
                tx.set(collection, doc_id, data)

        logger.info(f"✅ Создан профиль охотника {uid}")
        return profile

    async def get_user_profile(self) -> Optional[UserProfile]:
        document = await self._get(USERS, self.require_user())
        return UserProfile.from_dict(document) if document else None

    async def ensure_user_profile(self, uid: str, email: str = "",
                                  display_name: Optional[str] = None) -> UserProfile:
        """Получить профиль при входе или создать новый"""
        self.set_user(uid)
        profile = await self.get_user_profile()
        if profile is None:
            return await self.create_user_profile(uid, email, display_name)

        now = utc_now_iso()
        await self._set(USERS, uid, {"last_login_date": now, "updated_at": now}, merge=True)
        profile.last_login_date = now
        profile.updated_at = now
        logger.debug(f"Вход охотника {uid}")
        return profile

    async def update_user_profile(self, changes: Dict[str, Any]) -> UserProfile:
        """Обновление редактируемых полей профиля (имя, email)"""
        user_id = self.require_user()
        _check_fields(changes, PROFILE_EDITABLE_FIELDS, "profile")
        return await self._update_owned(USERS, user_id, changes, UserProfile)

    async def reset_user_data(self) -> UserProfile:
        """Сброс прогресса: удаление квестов и записей, профиль и категории по умолчанию"""
        user_id = self.require_user()
        profile = await self.get_user_profile()
        if profile is None:
            raise NotFoundError(USERS, user_id)

        owned = {}
        for collection in (GOALS, NOTES, CATEGORIES):
            owned[collection] = await self._query(collection, self._owned_query())

        fresh = UserProfile(
            uid=user_id,
            email=profile.email,
            display_name=profile.display_name,
            created_at=profile.created_at,
            last_login_date=profile.last_login_date,
        )

        async with self.transaction() as tx:
            for collection, documents in owned.items():
                for document in documents:
                    tx.delete(collection, document["id"])
            tx.set(USERS, user_id, dict(fresh.to_dict(), user_id=user_id))
            for collection, doc_id, data in self._initial_documents(user_id):
                tx.set(collection, doc_id, data)

        if self.cache is not None:
            self.cache.invalidate_user(user_id)

        logger.warning(f"⚠️ Данные охотника {user_id} сброшены")
        return fresh

    # ===== КВЕСТЫ =====

    async def create_goal(self, title: str, **kwargs) -> Goal:
        """Создать новый квест"""
        user_id = self.require_user()
        category_id = kwargs.get("category_id")
        if category_id is not None:
            await self._get_owned(CATEGORIES, category_id)

        goal = Goal.create(user_id=user_id, title=title, **kwargs)
        if goal.status == GoalStatus.COMPLETED:
            raise ValidationError("New goals cannot start completed", "status")

        await self._set(GOALS, goal.id, goal.to_dict())
        logger.info(f"✅ Создан квест {goal.id} для {user_id}: {goal.title}")
        return goal

    async def get_goal(self, goal_id: str) -> Goal:
        return Goal.from_dict(await self._get_owned(GOALS, goal_id))

    async def list_goals(self, status=None, category_id: Optional[str] = None) -> List[Goal]:
        """Квесты пользователя, новые первыми"""
        query = self._owned_query().order_by("created_at", descending=True)
        if status is not None:
            query = query.where("status", coerce_enum(status, GoalStatus, "status").value)
        if category_id is not None:
            query = query.where("category_id", category_id)
        return [Goal.from_dict(doc) for doc in await self._query(GOALS, query)]

    async def update_goal(self, goal_id: str, changes: Dict[str, Any]) -> Goal:
        """Обновление полей квеста (кроме статуса)"""
        self.require_user()
        _check_fields(changes, GOAL_EDITABLE_FIELDS, "goal")

        if changes.get("category_id") is not None:
            await self._get_owned(CATEGORIES, changes["category_id"])

        return await self._update_owned(GOALS, goal_id, changes, Goal)

    @retry_on_transient()
    async def change_goal_status(self, goal_id: str, status: GoalStatus, reopen: bool = False) -> Goal:
        """
        Смена статуса квеста (кроме выполнения).

        Статус проверяется внутри транзакции: выполненный квест меняет
        статус только при reopen=True, иначе возвращается как есть.
        """
        user_id = self.require_user()
        async with self.transaction() as tx:
            document = await tx.get(GOALS, goal_id)
            if document is None or document.get("user_id") != user_id:
                raise NotFoundError(GOALS, goal_id)

            goal = Goal.from_dict(document)
            if (goal.is_completed and not reopen) or goal.status == status:
                return goal

            now = utc_now_iso()
            tx.update(GOALS, goal_id, {"status": status.value, "completed_at": None, "updated_at": now})

        goal.status = status
        goal.completed_at = None
        goal.updated_at = now
        return goal

    async def delete_goal(self, goal_id: str) -> None:
        """Удаление квеста. Отсутствующий id не является ошибкой"""
        try:
            await self._get_owned(GOALS, goal_id)
        except NotFoundError:
            logger.debug(f"Квест {goal_id} уже удалён или не принадлежит пользователю")
            return
        await self._delete(GOALS, goal_id)
        logger.info(f"🗑️ Удалён квест {goal_id}")

    # ===== КАТЕГОРИИ =====

    async def list_categories(self) -> List[Category]:
        query = self._owned_query().order_by("order")
        return [Category.from_dict(doc) for doc in await self._query(CATEGORIES, query)]

    async def update_category(self, category_id: str, changes: Dict[str, Any]) -> Category:
        self.require_user()
        _check_fields(changes, CATEGORY_EDITABLE_FIELDS, "category")
        return await self._update_owned(CATEGORIES, category_id, changes, Category)

    async def reset_categories(self) -> List[Category]:
        """Вернуть категориям названия, иконки и цвета по умолчанию (id сохраняются)"""
        user_id = self.require_user()
        existing = await self.list_categories()
        now = utc_now_iso()

        categories = []
        for index, defaults in enumerate(DEFAULT_CATEGORIES):
            if index < len(existing):
                data = existing[index].to_dict()
                data.update(defaults)
                data.update({"original_name": defaults["name"], "is_active": True, "updated_at": now})
                categories.append(Category.from_dict(data))
            else:
                categories.append(Category(id=new_id(), user_id=user_id, **defaults))

        async with self.transaction() as tx:
            for category in categories:
                tx.set(CATEGORIES, category.id, category.to_dict())

        logger.info(f"🔄 Категории {user_id} сброшены к значениям по умолчанию")
        return categories

    # ===== АРХИВ ЗАПИСЕЙ =====

    async def create_note(self, title: str, content: str, **kwargs) -> Note:
        user_id = self.require_user()
        note = Note.create(user_id=user_id, title=title, content=content, **kwargs)
        await self._set(NOTES, note.id, note.to_dict())
        logger.info(f"✅ Создана запись {note.id} для {user_id}")
        return note

    async def get_note(self, note_id: str) -> Note:
        return Note.from_dict(await self._get_owned(NOTES, note_id))

    async def list_notes(self, category=None, tag: Optional[str] = None,
                         starred: Optional[bool] = None, search: Optional[str] = None) -> List[Note]:
        """Записи пользователя, недавно изменённые первыми"""
        query = self._owned_query().order_by("updated_at", descending=True)
        if category is not None:
            query = query.where("category", coerce_enum(category, NoteCategory, "category").value)
        if starred is not None:
            query = query.where("starred", starred)

        notes = [Note.from_dict(doc) for doc in await self._query(NOTES, query)]
        if tag:
            notes = [note for note in notes if tag in note.tags]
        if search:
            notes = [note for note in notes if note.matches(search)]
        return notes

    async def update_note(self, note_id: str, changes: Dict[str, Any]) -> Note:
        self.require_user()
        _check_fields(changes, NOTE_EDITABLE_FIELDS, "note")
        return await self._update_owned(NOTES, note_id, changes, Note)

    async def toggle_note_star(self, note_id: str) -> Note:
        note = await self.get_note(note_id)
        return await self.update_note(note_id, {"starred": not note.starred})

    async def delete_note(self, note_id: str) -> None:
        """Удаление записи. Отсутствующий id не является ошибкой"""
        try:
            await self._get_owned(NOTES, note_id)
        except NotFoundError:
            return
        await self._delete(NOTES, note_id)

    # ===== НАСТРОЙКИ =====

    async def get_user_settings(self) -> UserSettings:
        user_id = self.require_user()
        document = await self._get(SETTINGS, user_id)
        if document is None:
            return UserSettings(user_id=user_id)
        return UserSettings.from_dict(document)

    async def update_user_settings(self, changes: Dict[str, Any]) -> UserSettings:
        """Слияние изменений с текущими настройками"""
        user_id = self.require_user()
        _check_fields(changes, SETTINGS_EDITABLE_FIELDS, "settings")

        if await self._get(SETTINGS, user_id) is None:
            await self._set(SETTINGS, user_id, UserSettings(user_id=user_id).to_dict())
        return await self._update_owned(SETTINGS, user_id, changes, UserSettings)

    # ===== СЕРИИ =====

    async def get_streak_data(self) -> StreakData:
        document = await self._get(STREAKS, self.require_user())
        return StreakData.from_dict(document) if document else StreakData()

    async def save_streak_data(self, streak: StreakData) -> None:
        user_id = self.require_user()
        await self._set(STREAKS, user_id, dict(streak.to_dict(), user_id=user_id))

    # ===== ПОДПИСКИ =====

    async def subscribe_to_user_profile(self, callback: Callable[[Optional[UserProfile]], Any]) -> Subscription:
        async def deliver(documents: List[Document]) -> None:
            await _invoke(callback, UserProfile.from_dict(documents[0]) if documents else None)

        return await self._subscribe(USERS, self._owned_query(), deliver)

    async def subscribe_to_goals(self, callback: Callable[[List[Goal]], Any], status=None) -> Subscription:
        query = self._owned_query().order_by("created_at", descending=True)
        if status is not None:
            query = query.where("status", coerce_enum(status, GoalStatus, "status").value)

        async def deliver(documents: List[Document]) -> None:
            await _invoke(callback, [Goal.from_dict(doc) for doc in documents])

        return await self._subscribe(GOALS, query, deliver)

    async def subscribe_to_notes(self, callback: Callable[[List[Note]], Any]) -> Subscription:
        query = self._owned_query().order_by("updated_at", descending=True)

        async def deliver(documents: List[Document]) -> None:
            await _invoke(callback, [Note.from_dict(doc) for doc in documents])

        return await self._subscribe(NOTES, query, deliver)

    async def subscribe_to_categories(self, callback: Callable[[List[Category]], Any]) -> Subscription:
        query = self._owned_query().order_by("order")

        async def deliver(documents: List[Document]) -> None:
            await _invoke(callback, [Category.from_dict(doc) for doc in documents])

        return await self._subscribe(CATEGORIES, query, deliver)


__all__ = ['UserDataManager', 'ScopedTransaction']
