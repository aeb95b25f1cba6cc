"""
Tests for the ServiceManager composition root
"""
import pytest

from solo_hunter.database import InMemoryDocumentStore
from solo_hunter.services import ServiceManager

USER_ID = "hunter-1"


@pytest.fixture
async def manager():
    services = ServiceManager(store=InMemoryDocumentStore())
    services.initialize_services()
    yield services
    await services.close_services()


class TestServiceManager:

    def test_requires_initialization(self):
        with pytest.raises(RuntimeError):
            ServiceManager(store=InMemoryDocumentStore()).user_data(USER_ID)

    async def test_session_flow(self, manager, today):
        """Вход, квест, выполнение и уведомления через общие сервисы"""
        data = manager.user_data()
        await data.ensure_user_profile(USER_ID, "hunter@example.com")
        quests = manager.quest_service(data)

        goal = await quests.create_goal("Run", xp_reward=40)
        result = await quests.complete_goal(goal.id, today)

        assert result.xp_gained == 40
        assert (await manager.user_data(USER_ID).get_user_profile()).total_xp == 40
        titles = [n.title for n in manager.notifications.pending(USER_ID)]
        assert titles == ["Achievement Unlocked!", "Quest Complete!"]

    async def test_note_service_shares_limits(self, manager):
        data = manager.user_data(USER_ID)
        await data.create_user_profile(USER_ID)
        notes = manager.note_service(data)

        await notes.create_note("Plan", "Train")
        assert notes.rate_limits is manager.rate_limits

    async def test_health_check(self, manager):
        report = manager.health_check()

        assert report["status"] == "healthy"
        assert report["store"] == "InMemoryDocumentStore"
        assert report["cache_enabled"] is (manager.cache is not None)
        assert set(report["services"]) >= {"store", "event_bus"}

    async def test_health_after_close(self):
        services = ServiceManager(store=InMemoryDocumentStore())
        services.initialize_services()
        await services.close_services()

        assert services.health_check()["status"] == "starting"
