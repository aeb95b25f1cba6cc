# solo_hunter/services/streak_service.py

import logging
from datetime import date, datetime
from typing import Any, Dict, Optional

from solo_hunter.config import config
from solo_hunter.core.achievements import AchievementRegistry, default_registry, summarize
from solo_hunter.core.events import EventBus, EventType
from solo_hunter.core.models import StreakData
from solo_hunter.core.streaks import (
    StreakUpdate, day_qualifies, effective_current_streak, record_completion_for_today,
)
from solo_hunter.database.base import STREAKS, USERS
from solo_hunter.services.user_data import UserDataManager
from solo_hunter.utils.datetime_utils import local_today, utc_now_iso
from solo_hunter.utils.decorators import retry_on_transient

logger = logging.getLogger(__name__)


class StreakService:
    """
    Сервис серий выполнения.

    Засчитывает день не более одного раза, сохраняет серию, дублирует
    текущую серию в профиль и публикует события о новых достижениях.
    """

    def __init__(self, data: UserDataManager, bus: EventBus,
                 registry: Optional[AchievementRegistry] = None,
                 timezone: Optional[str] = None):
        self.data = data
        self.bus = bus
        self.registry = registry or default_registry
        self.timezone = timezone or config.streaks.timezone

    def today(self, now: Optional[datetime] = None) -> date:
        """Сегодняшняя дата в часовом поясе серий"""
        return local_today(self.timezone, now)

    @retry_on_transient()
    async def _record_in_transaction(self, user_id: str, today: date,
                                     now: Optional[datetime]) -> StreakUpdate:
        async with self.data.transaction() as tx:
            document = await tx.get(STREAKS, user_id)
            streak = StreakData.from_dict(document) if document else StreakData()
            if streak.last_completion_date == today:
                return StreakUpdate(streak=streak, changed=False)

            update = record_completion_for_today(streak, today, now=now, registry=self.registry)
            tx.set(STREAKS, user_id, dict(update.streak.to_dict(), user_id=user_id))
            if await tx.get(USERS, user_id) is not None:
                tx.set(USERS, user_id, {"streak": update.streak.current_streak, "updated_at": utc_now_iso()},
                       merge=True)
        return update

    async def record_completion(self, today: Optional[date] = None, completed_today: int = 1,
                                now: Optional[datetime] = None) -> StreakUpdate:
        """Засчитать сегодняшний день в серию"""
        user_id = self.data.require_user()
        today = today or self.today(now)
        if not day_qualifies(completed_today):
            return StreakUpdate(streak=await self.data.get_streak_data(), changed=False)

        update = await self._record_in_transaction(user_id, today, now)
        if not update.changed:
            return update

        logger.info(f"🔥 Серия {user_id}: {update.streak.current_streak} "
                    f"({'продолжение' if update.continued else 'начало'})")

        await self.bus.emit(
            EventType.STREAK_UPDATED, user_id,
            current_streak=update.streak.current_streak,
            longest_streak=update.streak.longest_streak,
            continued=update.continued,
        )

        for achievement in update.new_achievements:
            definition = self.registry.get(achievement.id)
            await self.bus.emit(
                EventType.ACHIEVEMENT_UNLOCKED, user_id,
                achievement_id=achievement.id,
                title=definition.title if definition else achievement.id,
                description=definition.description if definition else "",
                unlocked_at=achievement.unlocked_at,
            )

        return update

    async def get_current_streak(self, today: Optional[date] = None) -> int:
        """Текущая серия с учётом пропущенных дней"""
        streak = await self.data.get_streak_data()
        return effective_current_streak(streak, today or self.today())

    async def achievements_summary(self) -> Dict[str, Any]:
        return summarize(await self.data.get_streak_data(), self.registry)


__all__ = ['StreakService']
