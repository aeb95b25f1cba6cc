#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Solo Hunter - Progression Engine
Начисление опыта, расчёт уровня и ранга

Версия: 1.0.0
"""

import logging
from dataclasses import dataclass, replace
from typing import Any

from solo_hunter.config import config
from solo_hunter.core.exceptions import ValidationError
from solo_hunter.core.models import GoalPriority, Rank, UserProfile, coerce_enum
from solo_hunter.utils.datetime_utils import utc_now_iso

logger = logging.getLogger(__name__)

# Значение по умолчанию 1000, переопределяется переменной окружения XP_PER_LEVEL
XP_PER_LEVEL = config.progression.xp_per_level


def _xp_per_level() -> int:
    return config.progression.xp_per_level


def _require_xp(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field_name} must be a whole number", field_name)
    if value < 0:
        raise ValidationError(f"{field_name} cannot be negative", field_name)
    return value


def rank_of(level: int) -> Rank:
    """Ранг для уровня. Определён для любого уровня >= 1"""
    if isinstance(level, bool) or not isinstance(level, int) or level < 1:
        raise ValidationError(f"Invalid level: {level}", "level")
    return Rank.for_level(level)


def level_for_xp(total_xp: int) -> int:
    return _require_xp(total_xp, "total_xp") // _xp_per_level() + 1


def current_xp_for(total_xp: int) -> int:
    """Опыт внутри текущего уровня"""
    return _require_xp(total_xp, "total_xp") % _xp_per_level()


@dataclass(frozen=True)
class ProgressionResult:
    """Результат начисления опыта"""
    profile: UserProfile
    xp_gained: int
    levels_gained: int
    previous_rank: Rank

    @property
    def leveled_up(self) -> bool:
        return self.levels_gained > 0

    @property
    def rank_changed(self) -> bool:
        return self.profile.rank != self.previous_rank


def apply_xp(profile: UserProfile, delta: int) -> ProgressionResult:
    """
    Начисление опыта профилю.

    Чистая функция: исходный профиль не изменяется, возвращается новая копия
    с пересчитанными total_xp, level, current_xp и rank.
    """
    delta = _require_xp(delta, "xp_delta")

    total_xp = profile.total_xp + delta
    level = level_for_xp(total_xp)

    updated = replace(
        profile,
        total_xp=total_xp,
        current_xp=current_xp_for(total_xp),
        level=level,
        updated_at=utc_now_iso() if delta else profile.updated_at,
    )

    result = ProgressionResult(
        profile=updated,
        xp_gained=delta,
        levels_gained=level - profile.level,
        previous_rank=profile.rank,
    )

    if result.leveled_up:
        logger.debug(f"🆙 {profile.uid}: уровень {profile.level} -> {level}")

    return result


def level_progress(profile: UserProfile) -> float:
    """Прогресс внутри уровня в процентах"""
    return profile.current_xp / _xp_per_level() * 100


def xp_to_next_level(profile: UserProfile) -> int:
    return _xp_per_level() - profile.current_xp


def default_xp_for_priority(priority) -> int:
    """XP по умолчанию для приоритета квеста"""
    priority = coerce_enum(priority, GoalPriority, "priority")
    return config.progression.priority_xp[priority.value]


__all__ = [
    'XP_PER_LEVEL',
    'ProgressionResult',
    'rank_of',
    'level_for_xp',
    'current_xp_for',
    'apply_xp',
    'level_progress',
    'xp_to_next_level',
    'default_xp_for_priority',
]
