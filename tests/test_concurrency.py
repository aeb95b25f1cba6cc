"""
Tests for concurrent edits racing with goal completion
"""
import asyncio

import pytest

from solo_hunter.core.events import EventBus
from solo_hunter.core.exceptions import NotAuthenticatedError
from solo_hunter.core.models import Goal, GoalStatus
from solo_hunter.database import GOALS, NOTES, InMemoryDocumentStore, LocalCache
from solo_hunter.services import QuestService, RateLimits, StreakService, UserDataManager

USER_ID = "hunter-1"


class YieldingStore(InMemoryDocumentStore):
    """Хранилище, уступающее управление при чтении и во время фиксации"""

    async def get(self, collection, doc_id):
        await asyncio.sleep(0)
        return await super().get(collection, doc_id)

    async def _commit(self, writes):
        await asyncio.sleep(0)


@pytest.fixture
async def racing_quests():
    store = YieldingStore()
    bus = EventBus()
    data = UserDataManager(store, LocalCache(max_size=100))
    await data.create_user_profile(USER_ID, "hunter@example.com", "Jin-Woo")
    return QuestService(data, bus, StreakService(data, bus, timezone="UTC"), RateLimits())


class TestCompletionRaces:

    async def test_rename_during_completion_keeps_completed(self, racing_quests, today):
        quests = racing_quests
        goal = await quests.create_goal("Run", xp_reward=50)
        await quests.data.get_goal(goal.id)

        await asyncio.gather(
            quests.complete_goal(goal.id, today),
            quests.update_goal(goal.id, {"title": "Renamed"}),
        )

        stored = Goal.from_dict(await quests.data.store.get(GOALS, goal.id))
        assert stored.status == GoalStatus.COMPLETED
        assert stored.title == "Renamed"

        again = await quests.complete_goal(goal.id, today)
        assert again.already_completed
        assert (await quests.data.get_user_profile()).total_xp == 50

    async def test_status_change_during_completion(self, racing_quests, today):
        """Смена статуса по устаревшему чтению не отменяет выполнение"""
        quests = racing_quests
        goal = await quests.create_goal("Run", xp_reward=50)
        await quests.data.get_goal(goal.id)

        await asyncio.gather(
            quests.complete_goal(goal.id, today),
            quests.set_goal_status(goal.id, "in-progress"),
        )

        assert (await quests.data.get_goal(goal.id)).status == GoalStatus.COMPLETED
        assert (await quests.complete_goal(goal.id, today)).already_completed
        assert (await quests.data.get_user_profile()).total_xp == 50


class TestPartialUpdates:

    async def test_update_writes_only_changed_fields(self, store, data):
        goal = await data.create_goal("Run")
        await data.get_goal(goal.id)
        await store.update(GOALS, goal.id, {"status": "completed",
                                            "completed_at": "2024-03-13T10:00:00+00:00"})

        updated = await data.update_goal(goal.id, {"title": "Sprint"})
        stored = await store.get(GOALS, goal.id)

        assert stored["title"] == "Sprint"
        assert stored["status"] == "completed"
        assert updated.status == GoalStatus.COMPLETED

    async def test_note_update_keeps_concurrent_star(self, store, data):
        note = await data.create_note("Plan", "Train")
        await store.update(NOTES, note.id, {"starred": True})

        updated = await data.update_note(note.id, {"content": "Train harder"})
        assert updated.starred
        assert (await store.get(NOTES, note.id))["starred"] is True

    async def test_cache_evicted_when_write_is_staged(self, cache, data):
        goal = await data.create_goal("Run")
        assert cache.get(USER_ID, GOALS, goal.id) is not None

        async with data.transaction() as tx:
            tx.update(GOALS, goal.id, {"title": "Sprint"})
            assert cache.get(USER_ID, GOALS, goal.id) is None

        assert (await data.get_goal(goal.id)).title == "Sprint"


class TestAuthBeforeFields:

    @pytest.mark.parametrize("call", [
        lambda d: d.update_user_profile({"total_xp": 1}),
        lambda d: d.update_goal("g1", {"status": "completed"}),
        lambda d: d.update_category("c1", {"order": 1}),
        lambda d: d.update_note("n1", {"user_id": "x"}),
        lambda d: d.update_user_settings({"user_id": "x"}),
    ])
    async def test_signed_out_update_is_not_authenticated(self, store, call):
        with pytest.raises(NotAuthenticatedError):
            await call(UserDataManager(store))
