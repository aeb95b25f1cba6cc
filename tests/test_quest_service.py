"""
Tests for quest completion, XP grants and streak side effects
"""
import asyncio
from datetime import timedelta

import pytest

from solo_hunter.config import RateLimitConfig
from solo_hunter.core.events import EventType
from solo_hunter.core.exceptions import NotFoundError, RateLimitedError
from solo_hunter.core.models import GoalStatus, Rank
from solo_hunter.database import USERS
from solo_hunter.services import QuestService, RateLimits

USER_ID = "hunter-1"


async def seed_xp(store, total_xp: int, level: int):
    await store.set(USERS, USER_ID, {"total_xp": total_xp, "level": level,
                                     "current_xp": total_xp % 1000}, merge=True)


class TestCreateGoal:

    async def test_xp_defaults_from_priority(self, quests):
        low = await quests.create_goal("Stretch", priority="low")
        high = await quests.create_goal("Boss fight", priority="high")
        default = await quests.create_goal("Read")

        assert (low.xp_reward, high.xp_reward, default.xp_reward) == (25, 100, 50)

    async def test_explicit_xp_kept(self, quests):
        goal = await quests.create_goal("Read", priority="high", xp_reward=15)
        assert goal.xp_reward == 15

    async def test_rate_limited(self, data, bus):
        limits = RateLimits(RateLimitConfig(goal_create_per_minute=2))
        service = QuestService(data, bus, rate_limits=limits)

        await service.create_goal("One")
        await service.create_goal("Two")
        with pytest.raises(RateLimitedError):
            await service.create_goal("Three")


class TestCompleteGoal:

    async def test_grants_xp_and_marks_completed(self, quests, data, today):
        goal = await quests.create_goal("Run", xp_reward=40)
        result = await quests.complete_goal(goal.id, today)

        assert not result.already_completed
        assert result.xp_gained == 40
        assert result.goal.status == GoalStatus.COMPLETED
        assert result.goal.completed_at is not None

        profile = await data.get_user_profile()
        assert profile.total_xp == 40
        assert profile.current_xp == 40
        assert profile.total_goals_completed == 1

    async def test_level_up_across_boundary(self, quests, data, store, today):
        """980 XP + 25 XP = уровень 2 и 5 XP внутри уровня"""
        await seed_xp(store, 980, 1)
        goal = await quests.create_goal("Run", xp_reward=25)

        result = await quests.complete_goal(goal.id, today)
        profile = await data.get_user_profile()

        assert result.leveled_up
        assert (profile.total_xp, profile.level, profile.current_xp) == (1005, 2, 5)

    async def test_rank_up(self, quests, data, store, today, recorded_events):
        await seed_xp(store, 3990, 4)
        goal = await quests.create_goal("Run", xp_reward=20)

        await quests.complete_goal(goal.id, today)

        assert (await data.get_user_profile()).rank == Rank.D
        rank_events = [e for e in recorded_events if e.type == EventType.RANK_UP]
        assert rank_events[0].payload == {"rank": "D-Rank", "previous_rank": "E-Rank"}

    async def test_completing_twice_grants_once(self, quests, data, today):
        goal = await quests.create_goal("Run", xp_reward=50)

        await quests.complete_goal(goal.id, today)
        second = await quests.complete_goal(goal.id, today)

        assert second.already_completed
        assert second.xp_gained == 0
        assert (await data.get_user_profile()).total_xp == 50

    async def test_concurrent_completion_grants_once(self, quests, data, today):
        goal = await quests.create_goal("Run", xp_reward=50)

        results = await asyncio.gather(
            quests.complete_goal(goal.id, today),
            quests.complete_goal(goal.id, today),
        )

        assert sorted(r.already_completed for r in results) == [False, True]
        assert (await data.get_user_profile()).total_xp == 50

    async def test_total_xp_never_decreases(self, quests, data, today):
        totals = []
        for index in range(5):
            goal = await quests.create_goal(f"Quest {index}", xp_reward=100)
            await quests.complete_goal(goal.id, today)
            await quests.reopen_goal(goal.id)
            totals.append((await data.get_user_profile()).total_xp)

        assert totals == sorted(totals)
        assert totals[-1] == 500

    async def test_missing_profile_leaves_goal_untouched(self, quests, data, store, today):
        """Без профиля транзакция не фиксирует и статус квеста"""
        goal = await quests.create_goal("Run")
        await store.delete(USERS, USER_ID)

        with pytest.raises(NotFoundError):
            await quests.complete_goal(goal.id, today)
        assert (await data.get_goal(goal.id)).status == GoalStatus.PENDING

    async def test_other_users_goal_not_found(self, quests, other_data, bus, today):
        goal = await quests.create_goal("Mine")
        intruder = QuestService(other_data, bus)

        with pytest.raises(NotFoundError):
            await intruder.complete_goal(goal.id, today)


class TestCompletionSideEffects:

    async def test_events_published(self, quests, today, recorded_events):
        goal = await quests.create_goal("Run", xp_reward=30)
        await quests.complete_goal(goal.id, today)

        types = [e.type for e in recorded_events]
        assert types == [EventType.STREAK_UPDATED, EventType.ACHIEVEMENT_UNLOCKED, EventType.GOAL_COMPLETED]
        assert recorded_events[1].payload["achievement_id"] == "first-day"
        assert recorded_events[2].payload["xp_gained"] == 30

    async def test_streak_recorded_once_per_day(self, quests, data, today):
        for title in ("One", "Two", "Three"):
            goal = await quests.create_goal(title)
            await quests.complete_goal(goal.id, today)

        streak = await data.get_streak_data()
        assert streak.current_streak == 1
        assert streak.total_completions == 1
        assert (await data.get_user_profile()).streak == 1

    async def test_consecutive_days_extend_streak(self, quests, data, today):
        for offset in range(3):
            goal = await quests.create_goal(f"Day {offset}")
            await quests.complete_goal(goal.id, today + timedelta(days=offset))

        streak = await data.get_streak_data()
        assert streak.current_streak == 3
        assert streak.achievement_ids == ["first-day", "three-days"]

    async def test_achievement_event_not_repeated(self, quests, today, recorded_events):
        for offset in (0, 2):
            goal = await quests.create_goal(f"Day {offset}")
            await quests.complete_goal(goal.id, today + timedelta(days=offset))

        unlocked = [e for e in recorded_events if e.type == EventType.ACHIEVEMENT_UNLOCKED]
        assert [e.payload["achievement_id"] for e in unlocked] == ["first-day"]

    async def test_week_warrior_kept_after_reset(self, quests, data, today):
        """Достижение за 7 дней остаётся после сброса серии"""
        for offset in range(7):
            goal = await quests.create_goal(f"Day {offset}")
            await quests.complete_goal(goal.id, today + timedelta(days=offset))

        goal = await quests.create_goal("After the break")
        await quests.complete_goal(goal.id, today + timedelta(days=10))

        streak = await data.get_streak_data()
        assert streak.current_streak == 1
        assert streak.longest_streak == 7
        assert streak.has_achievement("week-warrior")

    async def test_notifications_built_from_completion(self, quests, today):
        from solo_hunter.services import NotificationService

        notifications = NotificationService(quests.bus)
        goal = await quests.create_goal("Run", xp_reward=30)
        await quests.complete_goal(goal.id, today)

        titles = [n.title for n in notifications.pending(USER_ID)]
        assert titles == ["Achievement Unlocked!", "Quest Complete!"]


class TestStatusChanges:

    async def test_set_status_completed_routes_to_completion(self, quests, data, today):
        goal = await quests.create_goal("Run", xp_reward=10)
        updated = await quests.set_goal_status(goal.id, "completed", today)

        assert updated.status == GoalStatus.COMPLETED
        assert (await data.get_user_profile()).total_xp == 10

    async def test_plain_status_change(self, quests):
        goal = await quests.create_goal("Run")
        updated = await quests.set_goal_status(goal.id, GoalStatus.IN_PROGRESS)

        assert updated.status == GoalStatus.IN_PROGRESS
        assert updated.completed_at is None

    async def test_update_goal_with_status(self, quests, data):
        goal = await quests.create_goal("Run", xp_reward=10)
        updated = await quests.update_goal(goal.id, {"title": "Sprint", "status": "completed"})

        assert updated.title == "Sprint"
        assert updated.status == GoalStatus.COMPLETED
        assert (await data.get_user_profile()).total_xp == 10

    async def test_reopen_keeps_xp_and_streak(self, quests, data, today):
        goal = await quests.create_goal("Run", xp_reward=20)
        await quests.complete_goal(goal.id, today)

        reopened = await quests.reopen_goal(goal.id)

        assert reopened.status == GoalStatus.PENDING
        assert reopened.completed_at is None
        assert (await data.get_user_profile()).total_xp == 20
        assert (await data.get_streak_data()).current_streak == 1

    async def test_failed_from_completed_clears_timestamp(self, quests, today):
        goal = await quests.create_goal("Run")
        await quests.complete_goal(goal.id, today)

        updated = await quests.set_goal_status(goal.id, "failed")
        assert updated.status == GoalStatus.FAILED
        assert updated.completed_at is None

    async def test_delete_twice_succeeds(self, quests, data):
        goal = await quests.create_goal("Run")
        await quests.delete_goal(goal.id)
        await quests.delete_goal(goal.id)

        assert await data.list_goals() == []


class TestDailySummary:

    async def test_counts_today(self, quests):
        today = quests.streaks.today()
        done = await quests.create_goal("Done", xp_reward=30)
        await quests.create_goal("Open")
        await quests.create_goal("Tomorrow", due_date=(today + timedelta(days=1)).isoformat())
        await quests.complete_goal(done.id, today)

        summary = await quests.daily_summary(today)

        assert summary.total_goals == 2
        assert summary.goals_completed == 1
        assert summary.xp_gained == 30
        assert summary.completion_rate == 50.0
        assert not summary.is_dungeon_cleared
