"""
Pytest Configuration and Fixtures

Общие фикстуры: хранилище, кэш, шина событий, сервисы и HTTP-клиент.
"""
from datetime import date
from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from solo_hunter.config import config
from solo_hunter.core.events import EventBus
from solo_hunter.database import InMemoryDocumentStore, LocalCache
from solo_hunter.services import QuestService, RateLimits, StreakService, UserDataManager

USER_ID = "hunter-1"
OTHER_USER_ID = "hunter-2"


@pytest.fixture(autouse=True)
def no_retry_delay(monkeypatch):
    """Повтор при временном сбое без паузы"""
    monkeypatch.setattr(config.store, "retry_delay_seconds", 0)


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def cache() -> LocalCache:
    return LocalCache(max_size=100)


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def recorded_events(bus):
    """Все опубликованные события в порядке публикации"""
    events = []
    bus.subscribe(None, events.append)
    return events


@pytest.fixture
async def data(store, cache) -> UserDataManager:
    """Менеджер данных с созданным профилем охотника"""
    manager = UserDataManager(store, cache)
    await manager.create_user_profile(USER_ID, "hunter@example.com", "Jin-Woo")
    return manager


@pytest.fixture
async def other_data(store, cache) -> UserDataManager:
    manager = UserDataManager(store, cache)
    await manager.create_user_profile(OTHER_USER_ID, "other@example.com", "Cha Hae-In")
    return manager


@pytest.fixture
def streaks(data, bus) -> StreakService:
    return StreakService(data, bus, timezone="UTC")


@pytest.fixture
def quests(data, bus, streaks) -> QuestService:
    return QuestService(data, bus, streaks, RateLimits())


@pytest.fixture
def today() -> date:
    return date(2024, 3, 13)


@pytest.fixture
async def client(tmp_path) -> AsyncGenerator[AsyncClient, None]:
    """HTTP-клиент к приложению с отдельной базой SQLite"""
    from solo_hunter.server.app import create_app
    from solo_hunter.server.config import ServerSettings

    settings = ServerSettings(
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        ENVIRONMENT="testing",
    )
    app = create_app(settings)

    async with app.router.lifespan_context(app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://testserver") as http:
            yield http
