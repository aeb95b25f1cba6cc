#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Solo Hunter - Streak Tracker
Расчёт серий ежедневного выполнения

Версия: 1.0.0
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import List, Optional

from solo_hunter.core.achievements import AchievementRegistry, evaluate_unlocks
from solo_hunter.core.exceptions import ValidationError
from solo_hunter.core.models import StreakData, UnlockedAchievement
from solo_hunter.utils.datetime_utils import day_of_week_index, week_start, yesterday

logger = logging.getLogger(__name__)

# Минимум выполненных квестов за день, чтобы день засчитался в серию
MIN_DAILY_COMPLETIONS = 1


@dataclass(frozen=True)
class StreakUpdate:
    """Результат записи выполнения за день"""
    streak: StreakData
    changed: bool
    continued: bool = False
    new_achievements: List[UnlockedAchievement] = field(default_factory=list)


def _as_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raise ValidationError(f"Invalid date: {value!r}", "today")


def record_completion_for_today(streak: StreakData, today: date,
                                now: Optional[datetime] = None,
                                registry: Optional[AchievementRegistry] = None) -> StreakUpdate:
    """
    Записать выполнение за сегодня.

    Вчерашнее выполнение продолжает серию, сегодняшнее ничего не меняет,
    любой больший разрыв начинает серию заново с 1. Исходный объект
    не изменяется.
    """
    today = _as_date(today)
    last = streak.last_completion_date

    if last is not None and last > today:
        raise ValidationError(
            f"Last completion {last.isoformat()} is after {today.isoformat()}", "last_completion_date"
        )

    if last == today:
        return StreakUpdate(streak=streak, changed=False)

    continued = last is not None and last == yesterday(today)
    current_streak = streak.current_streak + 1 if continued else 1

    # Новая неделя (с воскресенья) начинается с пустой отметки
    if last is None or week_start(today) > week_start(last):
        weekly_progress = [False] * 7
    else:
        weekly_progress = list(streak.weekly_progress)
    weekly_progress[day_of_week_index(today)] = True

    new_achievements = evaluate_unlocks(current_streak, streak.achievements, now=now, registry=registry)

    updated = replace(
        streak,
        current_streak=current_streak,
        longest_streak=max(streak.longest_streak, current_streak),
        last_completion_date=today,
        total_completions=streak.total_completions + 1,
        weekly_progress=weekly_progress,
        achievements=list(streak.achievements) + new_achievements,
    )

    return StreakUpdate(
        streak=updated,
        changed=True,
        continued=continued,
        new_achievements=new_achievements,
    )


def effective_current_streak(streak: StreakData, today: date) -> int:
    """Текущая серия с учётом пропусков: 0, если последнее выполнение было раньше вчера"""
    today = _as_date(today)
    last = streak.last_completion_date
    if last is None or last < yesterday(today):
        return 0
    return streak.current_streak


def is_streak_active_today(streak: StreakData, today: date) -> bool:
    return streak.last_completion_date == _as_date(today)


def day_qualifies(completed_count: int) -> bool:
    """День засчитывается, если выполнен хотя бы один квест"""
    return completed_count >= MIN_DAILY_COMPLETIONS


__all__ = [
    'MIN_DAILY_COMPLETIONS',
    'StreakUpdate',
    'record_completion_for_today',
    'effective_current_streak',
    'is_streak_active_today',
    'day_qualifies',
]
