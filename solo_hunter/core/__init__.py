# solo_hunter/core/__init__.py

"""
Ядро Solo Hunter: модели, прогрессия, серии, достижения и события.
"""

from .exceptions import (
    SoloHunterError, NotAuthenticatedError, NotFoundError, ValidationError,
    RateLimitedError, StoreError, TransientStoreError, PermanentStoreError,
)
from .models import (
    GoalStatus, GoalPriority, NoteCategory, Theme, Rank,
    UserProfile, Goal, Category, Note, StreakData, UserSettings, DailySummary,
)
from .progression import apply_xp, rank_of, ProgressionResult, XP_PER_LEVEL
from .streaks import record_completion_for_today, StreakUpdate
from .achievements import AchievementRegistry, AchievementDefinition, default_registry
from .events import EventBus, EventType, Event

__all__ = [
    'SoloHunterError', 'NotAuthenticatedError', 'NotFoundError', 'ValidationError',
    'RateLimitedError', 'StoreError', 'TransientStoreError', 'PermanentStoreError',
    'GoalStatus', 'GoalPriority', 'NoteCategory', 'Theme', 'Rank',
    'UserProfile', 'Goal', 'Category', 'Note', 'StreakData', 'UserSettings', 'DailySummary',
    'apply_xp', 'rank_of', 'ProgressionResult', 'XP_PER_LEVEL',
    'record_completion_for_today', 'StreakUpdate',
    'AchievementRegistry', 'AchievementDefinition', 'default_registry',
    'EventBus', 'EventType', 'Event',
]
