#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Solo Hunter - Quest Service
Создание и выполнение квестов с начислением опыта

Версия: 1.0.0
"""

import logging
from dataclasses import dataclass, replace
from datetime import date
from typing import Any, Dict, List, Optional

from solo_hunter.core.events import EventBus, EventType
from solo_hunter.core.exceptions import NotFoundError
from solo_hunter.core.models import DailySummary, Goal, GoalStatus, UserProfile, coerce_enum
from solo_hunter.core.progression import ProgressionResult, apply_xp, default_xp_for_priority
from solo_hunter.core.streaks import StreakUpdate
from solo_hunter.database.base import GOALS, USERS
from solo_hunter.services.rate_limiter import RateLimits
from solo_hunter.services.streak_service import StreakService
from solo_hunter.services.user_data import UserDataManager
from solo_hunter.utils.datetime_utils import local_today, parse_date, parse_datetime, utc_now, utc_now_iso
from solo_hunter.utils.decorators import retry_on_transient

logger = logging.getLogger(__name__)


@dataclass
class CompletionResult:
    """Результат выполнения квеста"""
    goal: Goal
    already_completed: bool = False
    progression: Optional[ProgressionResult] = None
    streak_update: Optional[StreakUpdate] = None

    @property
    def xp_gained(self) -> int:
        return self.progression.xp_gained if self.progression else 0

    @property
    def profile(self) -> Optional[UserProfile]:
        return self.progression.profile if self.progression else None

    @property
    def leveled_up(self) -> bool:
        return bool(self.progression and self.progression.leveled_up)

    @property
    def new_achievements(self) -> List[str]:
        if not self.streak_update:
            return []
        return [a.id for a in self.streak_update.new_achievements]


class QuestService:
    """
    Сервис квестов.

    Выполнение квеста и начисление опыта фиксируются одной транзакцией;
    повторное выполнение уже выполненного квеста опыт не начисляет.
    """

    def __init__(self, data: UserDataManager, bus: EventBus,
                 streaks: Optional[StreakService] = None,
                 rate_limits: Optional[RateLimits] = None):
        self.data = data
        self.bus = bus
        self.streaks = streaks or StreakService(data, bus)
        self.rate_limits = rate_limits or RateLimits()
        logger.info("✅ QuestService инициализирован")

    # ===== ОСНОВНЫЕ МЕТОДЫ CRUD =====

    async def create_goal(self, title: str, **kwargs) -> Goal:
        """Создать новый квест (XP по умолчанию зависит от приоритета)"""
        user_id = self.data.require_user()
        self.rate_limits.goal_create.check(user_id)

        if kwargs.get("xp_reward") is None:
            kwargs["xp_reward"] = default_xp_for_priority(kwargs.get("priority", "medium"))

        return await self.data.create_goal(title, **kwargs)

    async def update_goal(self, goal_id: str, changes: Dict[str, Any]) -> Goal:
        """Обновить поля квеста; смена статуса передаётся в set_goal_status"""
        user_id = self.data.require_user()
        self.rate_limits.goal_update.check(user_id)

        changes = dict(changes)
        status = changes.pop("status", None)

        goal = await self.data.update_goal(goal_id, changes) if changes else await self.data.get_goal(goal_id)
        if status is not None and coerce_enum(status, GoalStatus, "status") != goal.status:
            goal = await self._change_status(goal, coerce_enum(status, GoalStatus, "status"))
        return goal

    async def set_goal_status(self, goal_id: str, status, today: Optional[date] = None) -> Goal:
        """Смена статуса квеста"""
        user_id = self.data.require_user()
        self.rate_limits.goal_update.check(user_id)
        goal = await self.data.get_goal(goal_id)
        return await self._change_status(goal, coerce_enum(status, GoalStatus, "status"), today)

    async def _change_status(self, goal: Goal, status: GoalStatus, today: Optional[date] = None) -> Goal:
        if status == GoalStatus.COMPLETED:
            return (await self.complete_goal(goal.id, today)).goal
        if goal.is_completed:
            return await self.reopen_goal(goal.id, status)
        if status == goal.status:
            return goal
        return await self.data.change_goal_status(goal.id, status)

    async def delete_goal(self, goal_id: str) -> None:
        await self.data.delete_goal(goal_id)

    # ===== ВЫПОЛНЕНИЕ =====

    @retry_on_transient()
    async def _complete_in_transaction(self, user_id: str, goal_id: str) -> CompletionResult:
        async with self.data.transaction() as tx:
            goal_doc = await tx.get(GOALS, goal_id)
            if goal_doc is None or goal_doc.get("user_id") != user_id:
                raise NotFoundError(GOALS, goal_id)

            goal = Goal.from_dict(goal_doc)
            if goal.is_completed:
                return CompletionResult(goal=goal, already_completed=True)

            profile_doc = await tx.get(USERS, user_id)
            if profile_doc is None:
                raise NotFoundError(USERS, user_id)

            progression = apply_xp(UserProfile.from_dict(profile_doc), goal.xp_reward)
            profile = replace(
                progression.profile,
                total_goals_completed=progression.profile.total_goals_completed + 1,
                updated_at=utc_now_iso(),
            )

            now = utc_now_iso()
            completed = replace(goal, status=GoalStatus.COMPLETED, completed_at=now, updated_at=now)

            tx.set(GOALS, goal_id, completed.to_dict())
            tx.set(USERS, user_id, dict(profile.to_dict(), user_id=user_id))

        return CompletionResult(goal=completed, progression=replace(progression, profile=profile))

    async def complete_goal(self, goal_id: str, today: Optional[date] = None) -> CompletionResult:
        """
        Выполнить квест.

        Статус квеста и опыт профиля записываются атомарно. Для уже
        выполненного квеста возвращается already_completed=True без начисления.
        После фиксации засчитывается день серии и публикуются события.
        """
        user_id = self.data.require_user()
        result = await self._complete_in_transaction(user_id, goal_id)

        if result.already_completed:
            logger.debug(f"Квест {goal_id} уже выполнен, опыт не начисляется")
            return result

        progression = result.progression
        logger.info(f"✅ Квест {goal_id} выполнен {user_id}: +{progression.xp_gained} XP")

        result.streak_update = await self.streaks.record_completion(today)

        await self.bus.emit(
            EventType.GOAL_COMPLETED, user_id,
            goal_id=goal_id,
            title=result.goal.title,
            xp_gained=progression.xp_gained,
            total_xp=progression.profile.total_xp,
        )

        if progression.leveled_up:
            logger.info(f"🆙 {user_id} достиг уровня {progression.profile.level}")
            await self.bus.emit(
                EventType.LEVEL_UP, user_id,
                level=progression.profile.level,
                levels_gained=progression.levels_gained,
            )

        if progression.rank_changed:
            await self.bus.emit(
                EventType.RANK_UP, user_id,
                rank=progression.profile.rank.value,
                previous_rank=progression.previous_rank.value,
            )

        return result

    async def reopen_goal(self, goal_id: str, status=GoalStatus.PENDING) -> Goal:
        """Вернуть выполненный квест в работу. Опыт и серия не отзываются"""
        status = coerce_enum(status, GoalStatus, "status")
        if status == GoalStatus.COMPLETED:
            status = GoalStatus.PENDING

        updated = await self.data.change_goal_status(goal_id, status, reopen=True)

        logger.info(f"🔄 Квест {goal_id} возвращён в статус {status.value}")
        return updated

    # ===== СТАТИСТИКА =====

    def _local_date(self, value: Optional[str]) -> Optional[date]:
        if not value:
            return None
        if len(value) == 10:
            return parse_date(value)
        return local_today(self.streaks.timezone, parse_datetime(value))

    async def daily_summary(self, day: Optional[date] = None) -> DailySummary:
        """
        Итоги дня.

        В день входят квесты со сроком на этот день, выполненные в этот день
        и созданные в этот день без срока.
        """
        day = day or self.streaks.today(utc_now())
        goals = await self.data.list_goals()

        day_goals = []
        for goal in goals:
            due = self._local_date(goal.due_date)
            completed_on = self._local_date(goal.completed_at)
            created_on = self._local_date(goal.created_at)
            if due == day or completed_on == day or (due is None and created_on == day):
                day_goals.append(goal)

        completed = [g for g in day_goals if g.is_completed and self._local_date(g.completed_at) == day]

        return DailySummary(
            date=day,
            goals_completed=len(completed),
            total_goals=len(day_goals),
            xp_gained=sum(g.xp_reward for g in completed),
        )


__all__ = ['QuestService', 'CompletionResult']
