"""
Tests for daily streak tracking
"""
from datetime import date, datetime, timedelta, timezone

import pytest

from solo_hunter.core.exceptions import ValidationError
from solo_hunter.core.models import StreakData, UnlockedAchievement
from solo_hunter.core.streaks import (
    day_qualifies, effective_current_streak, is_streak_active_today, record_completion_for_today,
)

WEDNESDAY = date(2024, 3, 13)
NOW = datetime(2024, 3, 13, 12, 0, tzinfo=timezone.utc)


class TestRecordCompletion:

    def test_first_completion_starts_streak(self):
        update = record_completion_for_today(StreakData(), WEDNESDAY, now=NOW)

        assert update.changed
        assert not update.continued
        assert update.streak.current_streak == 1
        assert update.streak.longest_streak == 1
        assert update.streak.total_completions == 1
        assert update.streak.last_completion_date == WEDNESDAY

    def test_same_day_is_idempotent(self):
        """Повторное выполнение в тот же день не меняет серию"""
        first = record_completion_for_today(StreakData(), WEDNESDAY, now=NOW).streak
        second = record_completion_for_today(first, WEDNESDAY, now=NOW)

        assert not second.changed
        assert second.streak == first

    def test_yesterday_continues_streak(self):
        streak = StreakData(current_streak=4, longest_streak=4,
                            last_completion_date=WEDNESDAY - timedelta(days=1), total_completions=4)
        update = record_completion_for_today(streak, WEDNESDAY, now=NOW)

        assert update.continued
        assert update.streak.current_streak == 5
        assert update.streak.longest_streak == 5
        assert update.streak.total_completions == 5

    def test_gap_resets_to_one(self):
        """Пропуск дня начинает серию заново, рекорд сохраняется"""
        streak = StreakData(current_streak=10, longest_streak=12,
                            last_completion_date=WEDNESDAY - timedelta(days=2), total_completions=30)
        update = record_completion_for_today(streak, WEDNESDAY, now=NOW)

        assert not update.continued
        assert update.streak.current_streak == 1
        assert update.streak.longest_streak == 12
        assert update.streak.total_completions == 31

    def test_future_last_completion_rejected(self):
        streak = StreakData(current_streak=1, longest_streak=1,
                            last_completion_date=WEDNESDAY + timedelta(days=1), total_completions=1)
        with pytest.raises(ValidationError):
            record_completion_for_today(streak, WEDNESDAY, now=NOW)

    def test_input_not_mutated(self):
        streak = StreakData()
        record_completion_for_today(streak, WEDNESDAY, now=NOW)
        assert streak.current_streak == 0
        assert streak.last_completion_date is None

    def test_accepts_datetime(self):
        update = record_completion_for_today(StreakData(), NOW, now=NOW)
        assert update.streak.last_completion_date == WEDNESDAY

    def test_rejects_non_date(self):
        with pytest.raises(ValidationError):
            record_completion_for_today(StreakData(), "2024-03-13", now=NOW)

    def test_longest_never_below_current(self):
        """Серия из 20 дней подряд держит longest >= current на каждом шаге"""
        streak = StreakData()
        day = date(2024, 1, 1)
        for offset in range(20):
            streak = record_completion_for_today(streak, day + timedelta(days=offset), now=NOW).streak
            assert streak.longest_streak >= streak.current_streak
        assert streak.current_streak == 20


class TestWeeklyProgress:

    def test_marks_day_of_week(self):
        """Среда занимает индекс 3 (воскресенье = 0)"""
        update = record_completion_for_today(StreakData(), WEDNESDAY, now=NOW)
        assert update.streak.weekly_progress == [False, False, False, True, False, False, False]

    def test_same_week_accumulates(self):
        sunday = date(2024, 3, 10)
        streak = record_completion_for_today(StreakData(), sunday, now=NOW).streak
        streak = record_completion_for_today(streak, sunday + timedelta(days=1), now=NOW).streak

        assert streak.weekly_progress[:2] == [True, True]

    def test_new_week_resets(self):
        saturday = date(2024, 3, 16)
        streak = record_completion_for_today(StreakData(), saturday, now=NOW).streak
        streak = record_completion_for_today(streak, saturday + timedelta(days=1), now=NOW).streak

        assert streak.weekly_progress == [True, False, False, False, False, False, False]
        assert streak.current_streak == 2


class TestAchievementUnlocks:

    def test_first_day_unlocks(self):
        update = record_completion_for_today(StreakData(), WEDNESDAY, now=NOW)

        assert [a.id for a in update.new_achievements] == ["first-day"]
        assert update.streak.has_achievement("first-day")
        assert update.new_achievements[0].unlocked_at == NOW.isoformat()

    def test_unlocked_achievements_are_kept_after_reset(self):
        """Сброс серии не удаляет полученные достижения"""
        streak = StreakData(
            current_streak=7, longest_streak=7,
            last_completion_date=WEDNESDAY - timedelta(days=5), total_completions=7,
            achievements=[UnlockedAchievement("first-day", "2024-03-01T00:00:00+00:00"),
                          UnlockedAchievement("three-days", "2024-03-03T00:00:00+00:00"),
                          UnlockedAchievement("week-warrior", "2024-03-07T00:00:00+00:00")],
        )
        update = record_completion_for_today(streak, WEDNESDAY, now=NOW)

        assert update.streak.current_streak == 1
        assert update.new_achievements == []
        assert update.streak.achievement_ids == ["first-day", "three-days", "week-warrior"]

    def test_no_duplicates(self):
        streak = StreakData()
        day = date(2024, 1, 1)
        for offset in range(8):
            streak = record_completion_for_today(streak, day + timedelta(days=offset), now=NOW).streak

        ids = streak.achievement_ids
        assert len(ids) == len(set(ids))
        assert ids == ["first-day", "three-days", "week-warrior"]


class TestEffectiveStreak:

    def test_active_when_completed_yesterday(self):
        streak = StreakData(current_streak=3, longest_streak=3,
                            last_completion_date=WEDNESDAY - timedelta(days=1), total_completions=3)
        assert effective_current_streak(streak, WEDNESDAY) == 3
        assert not is_streak_active_today(streak, WEDNESDAY)

    def test_broken_after_gap(self):
        streak = StreakData(current_streak=3, longest_streak=3,
                            last_completion_date=WEDNESDAY - timedelta(days=2), total_completions=3)
        assert effective_current_streak(streak, WEDNESDAY) == 0

    def test_empty_streak(self):
        assert effective_current_streak(StreakData(), WEDNESDAY) == 0

    def test_day_qualifies(self):
        assert not day_qualifies(0)
        assert day_qualifies(1)
        assert day_qualifies(5)


class TestStreakDataModel:

    def test_roundtrip_through_document(self):
        streak = record_completion_for_today(StreakData(), WEDNESDAY, now=NOW).streak
        document = streak.to_dict()

        assert document["last_completion_date"] == "2024-03-13"
        assert StreakData.from_dict(dict(document, user_id="hunter-1")) == streak

    def test_longest_below_current_rejected(self):
        with pytest.raises(ValidationError):
            StreakData(current_streak=5, longest_streak=3)

    def test_weekly_progress_length(self):
        with pytest.raises(ValidationError):
            StreakData(weekly_progress=[True] * 6)


class TestStreakService:

    async def test_current_streak_drops_after_missed_day(self, streaks):
        await streaks.record_completion(WEDNESDAY, now=NOW)

        assert await streaks.get_current_streak(WEDNESDAY) == 1
        assert await streaks.get_current_streak(WEDNESDAY + timedelta(days=1)) == 1
        assert await streaks.get_current_streak(WEDNESDAY + timedelta(days=2)) == 0

    async def test_same_day_recorded_once(self, streaks, data):
        first = await streaks.record_completion(WEDNESDAY, now=NOW)
        second = await streaks.record_completion(WEDNESDAY, now=NOW)

        assert first.changed and not second.changed
        assert (await data.get_streak_data()).total_completions == 1

    async def test_achievements_summary(self, streaks):
        for offset in range(3):
            await streaks.record_completion(WEDNESDAY + timedelta(days=offset))

        summary = await streaks.achievements_summary()

        assert summary["total_earned"] == 2
        assert summary["next_achievement"]["id"] == "week-warrior"
        assert summary["days_to_next"] == 4
