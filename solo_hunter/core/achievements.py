#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Solo Hunter - Achievement System
Достижения за серии ежедневного выполнения

Версия: 1.0.0
"""

from datetime import datetime
from typing import Dict, List, Optional, Any, Iterable
from dataclasses import dataclass
from enum import Enum
import logging

from solo_hunter.core.exceptions import ValidationError
from solo_hunter.core.models import StreakData, UnlockedAchievement
from solo_hunter.utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)

# ===== ENUMS =====

class AchievementRarity(str, Enum):
    """Редкость достижений"""
    COMMON = "common"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"

# ===== DATA CLASSES =====

@dataclass(frozen=True)
class AchievementDefinition:
    """Определение достижения"""
    id: str
    title: str
    description: str
    icon: str
    required_streak: int
    rarity: AchievementRarity = AchievementRarity.COMMON

    @property
    def rarity_emoji(self) -> str:
        """Emoji для редкости"""
        rarity_emojis = {
            AchievementRarity.COMMON: "⚪",
            AchievementRarity.RARE: "🔵",
            AchievementRarity.EPIC: "🟣",
            AchievementRarity.LEGENDARY: "🟡",
        }
        return rarity_emojis.get(self.rarity, "⚪")

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'icon': self.icon,
            'required_streak': self.required_streak,
            'rarity': self.rarity.value,
        }


DEFAULT_STREAK_ACHIEVEMENTS = [
    AchievementDefinition("first-day", "First Step", "Complete your first day", "🎯", 1, AchievementRarity.COMMON),
    AchievementDefinition("three-days", "Getting Started", "3 days in a row", "🔥", 3, AchievementRarity.COMMON),
    AchievementDefinition("week-warrior", "Week Warrior", "7 days streak", "⚔️", 7, AchievementRarity.RARE),
    AchievementDefinition("fortnight-fighter", "Fortnight Fighter", "14 days streak", "🛡️", 14, AchievementRarity.RARE),
    AchievementDefinition("month-master", "Month Master", "30 days streak", "👑", 30, AchievementRarity.EPIC),
    AchievementDefinition("quarter-champion", "Quarter Champion", "90 days streak", "💎", 90, AchievementRarity.EPIC),
    AchievementDefinition("half-year-hero", "Half-Year Hero", "180 days streak", "⭐", 180,
                          AchievementRarity.LEGENDARY),
    AchievementDefinition("year-legend", "Year Legend", "365 days streak", "🏆", 365, AchievementRarity.LEGENDARY),
]

# ===== REGISTRY =====

class AchievementRegistry:
    """Реестр всех достижений"""

    def __init__(self, definitions: Optional[Iterable[AchievementDefinition]] = None):
        self.achievements: Dict[str, AchievementDefinition] = {}
        for definition in (DEFAULT_STREAK_ACHIEVEMENTS if definitions is None else definitions):
            self.register(definition)

    def register(self, definition: AchievementDefinition) -> None:
        """Зарегистрировать достижение"""
        if definition.required_streak < 1:
            raise ValidationError("required_streak must be at least 1", "required_streak")
        self.achievements[definition.id] = definition
        logger.debug(f"Registered achievement: {definition.id}")

    def get(self, achievement_id: str) -> Optional[AchievementDefinition]:
        return self.achievements.get(achievement_id)

    def all(self) -> List[AchievementDefinition]:
        """Все достижения по возрастанию порога"""
        return sorted(self.achievements.values(), key=lambda a: (a.required_streak, a.id))

    def unlockable(self, current_streak: int, already_unlocked: Iterable[str]) -> List[AchievementDefinition]:
        """Достижения, порог которых достигнут, но которые ещё не получены"""
        unlocked = set(already_unlocked)
        return [
            definition for definition in self.all()
            if definition.required_streak <= current_streak and definition.id not in unlocked
        ]

    def __len__(self) -> int:
        return len(self.achievements)


default_registry = AchievementRegistry()


def evaluate_unlocks(current_streak: int, unlocked: List[UnlockedAchievement],
                     now: Optional[datetime] = None,
                     registry: Optional[AchievementRegistry] = None) -> List[UnlockedAchievement]:
    """
    Новые достижения для текущей серии.

    Возвращает только те, которых ещё нет в unlocked; существующие записи
    никогда не удаляются.
    """
    registry = registry or default_registry
    unlocked_at = (now or utc_now()).isoformat()

    new_achievements = [
        UnlockedAchievement(id=definition.id, unlocked_at=unlocked_at)
        for definition in registry.unlockable(current_streak, (a.id for a in unlocked))
    ]

    for achievement in new_achievements:
        logger.info(f"🏆 Разблокировано достижение {achievement.id} (серия {current_streak})")

    return new_achievements


def summarize(streak: StreakData, registry: Optional[AchievementRegistry] = None) -> Dict[str, Any]:
    """Получить сводку достижений пользователя"""
    registry = registry or default_registry
    unlocked_ids = set(streak.achievement_ids)
    all_achievements = registry.all()

    unlocked = [a for a in all_achievements if a.id in unlocked_ids]
    locked = [a for a in all_achievements if a.id not in unlocked_ids]
    next_achievement = next((a for a in locked if a.required_streak > streak.current_streak), None)

    return {
        'total_earned': len(unlocked),
        'total_available': len(all_achievements),
        'completion_percentage': (len(unlocked) / len(all_achievements) * 100) if all_achievements else 0,
        'unlocked': [a.to_dict() for a in unlocked],
        'locked': [a.to_dict() for a in locked],
        'next_achievement': next_achievement.to_dict() if next_achievement else None,
        'days_to_next': (next_achievement.required_streak - streak.current_streak) if next_achievement else None,
    }


__all__ = [
    'AchievementRarity',
    'AchievementDefinition',
    'AchievementRegistry',
    'DEFAULT_STREAK_ACHIEVEMENTS',
    'default_registry',
    'evaluate_unlocks',
    'summarize',
]
