#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Solo Hunter - Core Data Models
Модели данных с валидацией и типизацией

Версия: 1.0.0
"""

import re
import uuid
from datetime import date, datetime
from typing import Dict, List, Optional, Any, Type, TypeVar
from dataclasses import dataclass, field, asdict, fields
from enum import Enum
import logging

from solo_hunter.config import config
from solo_hunter.core.exceptions import ValidationError
from solo_hunter.utils.datetime_utils import utc_now_iso, parse_date, parse_datetime

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)

# ===== ENUMS =====

class GoalStatus(str, Enum):
    """Статусы квестов"""
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class GoalPriority(str, Enum):
    """Приоритеты квестов"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class NoteCategory(str, Enum):
    """Разделы архива"""
    STRATEGY = "strategy"
    REFLECTION = "reflection"
    PLAN = "plan"
    IDEA = "idea"


class Theme(str, Enum):
    """Темы оформления"""
    LIGHT = "light"
    DARK = "dark"
    SYSTEM = "system"


class RecurrenceType(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"


class Rank(str, Enum):
    """Ранги охотника, от низшего к высшему"""
    E = "E-Rank"
    D = "D-Rank"
    C = "C-Rank"
    B = "B-Rank"
    A = "A-Rank"
    S = "S-Rank"
    SHADOW_MONARCH = "Shadow Monarch"

    @property
    def tier(self) -> int:
        """Порядковый номер ранга (0 = E-Rank)"""
        return list(Rank).index(self)

    @classmethod
    def for_level(cls, level: int) -> "Rank":
        """Ранг, соответствующий уровню"""
        rank = cls.E
        for threshold_rank, min_level in RANK_THRESHOLDS:
            if level >= min_level:
                rank = threshold_rank
        return rank


# Минимальный уровень для каждого ранга
RANK_THRESHOLDS = [
    (Rank.E, 1),
    (Rank.D, 5),
    (Rank.C, 10),
    (Rank.B, 20),
    (Rank.A, 30),
    (Rank.S, 40),
    (Rank.SHADOW_MONARCH, 50),
]

WEEKDAYS = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")

HEX_COLOR_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")
TIME_RE = re.compile(r"^([01]?[0-9]|2[0-3]):[0-5][0-9]$")

MAX_TAGS = 10
MAX_TAG_LENGTH = 20
MAX_REMINDERS = 5

# ===== VALIDATION HELPERS =====

def validate_text(text: Any, min_length: int = 1, max_length: int = 1000, field_name: str = "text") -> str:
    """Валидация текстовых полей"""
    if not isinstance(text, str):
        raise ValidationError(f"{field_name} must be a string", field_name)

    text = text.strip()
    if len(text) < min_length:
        if min_length == 1:
            raise ValidationError(f"{field_name} is required", field_name)
        raise ValidationError(f"{field_name} must be at least {min_length} characters", field_name)

    if len(text) > max_length:
        raise ValidationError(f"{field_name} must be at most {max_length} characters", field_name)

    return text


def coerce_enum(value: Any, enum_class: Type[E], field_name: str = "value") -> E:
    """Приведение значения к закрытому набору enum"""
    if isinstance(value, enum_class):
        return value
    try:
        return enum_class(value)
    except ValueError:
        valid_values = [e.value for e in enum_class]
        raise ValidationError(f"{field_name} must be one of: {valid_values}", field_name)


def validate_non_negative_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field_name} must be a whole number", field_name)
    if value < 0:
        raise ValidationError(f"{field_name} cannot be negative", field_name)
    return value


def validate_xp_reward(value: Any) -> int:
    """XP за квест: целое число в допустимом диапазоне"""
    low = config.progression.min_xp_reward
    high = config.progression.max_xp_reward
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError("xp_reward must be a whole number", "xp_reward")
    if not low <= value <= high:
        raise ValidationError(f"xp_reward must be between {low} and {high}", "xp_reward")
    return value


def validate_iso_date(value: Optional[str], field_name: str) -> Optional[str]:
    if value is None:
        return None
    try:
        if isinstance(value, (date, datetime)):
            return value.isoformat()
        parse_datetime(value)
        return value
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field_name} format: {value}", field_name)


def validate_tags(tags: Any) -> List[str]:
    """Теги: не более 10 штук, каждый не длиннее 20 символов"""
    if tags is None:
        return []
    if not isinstance(tags, (list, tuple, set)):
        raise ValidationError("tags must be a list of strings", "tags")

    validated: List[str] = []
    for tag in tags:
        if not isinstance(tag, str):
            raise ValidationError("tags must be a list of strings", "tags")
        tag = tag.strip()
        if not tag:
            continue
        if len(tag) > MAX_TAG_LENGTH:
            raise ValidationError(f"Tag must be less than {MAX_TAG_LENGTH} characters", "tags")
        if tag not in validated:
            validated.append(tag)

    if len(validated) > MAX_TAGS:
        raise ValidationError(f"Maximum {MAX_TAGS} tags allowed", "tags")
    return validated


def validate_hex_color(color: Optional[str]) -> Optional[str]:
    if color is None:
        return None
    if not isinstance(color, str) or not HEX_COLOR_RE.match(color):
        raise ValidationError("Color must be a valid hex code", "color")
    return color


def new_id() -> str:
    return uuid.uuid4().hex


def _serialize(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _serialize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_serialize(v) for v in value]
    return value


def _known_fields(cls, data: Dict[str, Any]) -> Dict[str, Any]:
    """Отбросить ключи, которых нет в модели (например, служебные поля документа)"""
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in data.items() if k in names}

# ===== CORE MODELS =====

@dataclass
class UserProfile:
    """Профиль охотника"""
    uid: str
    email: str = ""
    display_name: str = "Hunter"
    level: int = 1
    current_xp: int = 0
    total_xp: int = 0
    rank: Rank = Rank.E
    streak: int = 0
    total_goals_completed: int = 0
    last_login_date: Optional[str] = None
    created_at: str = field(default_factory=utc_now_iso)
    updated_at: str = field(default_factory=utc_now_iso)

    def __post_init__(self):
        """Валидация после создания объекта"""
        self.display_name = validate_text(self.display_name, max_length=50, field_name="display_name")
        validate_non_negative_int(self.current_xp, "current_xp")
        validate_non_negative_int(self.total_xp, "total_xp")
        validate_non_negative_int(self.streak, "streak")
        validate_non_negative_int(self.total_goals_completed, "total_goals_completed")
        if isinstance(self.level, bool) or not isinstance(self.level, int) or self.level < 1:
            raise ValidationError("level must be at least 1", "level")
        # Ранг всегда пересчитывается из уровня
        self.rank = Rank.for_level(self.level)

    def to_dict(self) -> Dict[str, Any]:
        return _serialize(asdict(self))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserProfile":
        return cls(**_known_fields(cls, data))


@dataclass
class RecurringPattern:
    type: RecurrenceType = RecurrenceType.DAILY
    days: List[str] = field(default_factory=list)

    def __post_init__(self):
        self.type = coerce_enum(self.type, RecurrenceType, "recurring_pattern.type")
        days = [d.lower() for d in self.days]
        unknown = [d for d in days if d not in WEEKDAYS]
        if unknown:
            raise ValidationError(f"Unknown weekdays: {unknown}", "recurring_pattern.days")
        self.days = days

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RecurringPattern":
        return cls(type=data.get("type", "daily"), days=list(data.get("days") or []))


@dataclass
class Goal:
    """Квест охотника"""
    id: str
    user_id: str
    title: str
    category_id: Optional[str] = None
    description: Optional[str] = None
    status: GoalStatus = GoalStatus.PENDING
    priority: GoalPriority = GoalPriority.MEDIUM
    xp_reward: int = field(default_factory=lambda: config.progression.default_goal_xp)
    due_date: Optional[str] = None
    completed_at: Optional[str] = None
    is_recurring: bool = False
    recurring_pattern: Optional[RecurringPattern] = None
    created_at: str = field(default_factory=utc_now_iso)
    updated_at: str = field(default_factory=utc_now_iso)

    def __post_init__(self):
        """Валидация после создания объекта"""
        self.title = validate_text(self.title, max_length=100, field_name="title")

        if self.description is not None:
            self.description = validate_text(self.description, min_length=0, max_length=500,
                                             field_name="description")

        self.status = coerce_enum(self.status, GoalStatus, "status")
        self.priority = coerce_enum(self.priority, GoalPriority, "priority")
        self.xp_reward = validate_xp_reward(self.xp_reward)
        self.due_date = validate_iso_date(self.due_date, "due_date")
        self.completed_at = validate_iso_date(self.completed_at, "completed_at")

        if isinstance(self.recurring_pattern, dict):
            self.recurring_pattern = RecurringPattern.from_dict(self.recurring_pattern)

        # completed_at задан тогда и только тогда, когда квест выполнен
        if self.is_completed != (self.completed_at is not None):
            raise ValidationError("completed_at must be set exactly when status is completed", "completed_at")

    @property
    def is_completed(self) -> bool:
        return self.status == GoalStatus.COMPLETED

    @property
    def completion_date(self) -> Optional[date]:
        return parse_datetime(self.completed_at).date() if self.completed_at else None

    def to_dict(self) -> Dict[str, Any]:
        return _serialize(asdict(self))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Goal":
        return cls(**_known_fields(cls, data))

    @classmethod
    def create(cls, user_id: str, title: str, **kwargs) -> "Goal":
        """Создание нового квеста"""
        return cls(id=new_id(), user_id=user_id, title=title, **kwargs)


@dataclass
class Category:
    """Категория квестов"""
    id: str
    user_id: str
    name: str
    icon: str
    color: Optional[str] = None
    original_name: Optional[str] = None
    order: int = 0
    is_active: bool = True
    created_at: str = field(default_factory=utc_now_iso)
    updated_at: str = field(default_factory=utc_now_iso)

    def __post_init__(self):
        self.name = validate_text(self.name, max_length=50, field_name="name")
        self.icon = validate_text(self.icon, max_length=10, field_name="icon")
        self.color = validate_hex_color(self.color)
        if self.original_name is None:
            self.original_name = self.name

    def to_dict(self) -> Dict[str, Any]:
        return _serialize(asdict(self))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Category":
        return cls(**_known_fields(cls, data))


# Категории по умолчанию для нового охотника
DEFAULT_CATEGORIES = [
    {"name": "Main Mission", "icon": "⚔️", "color": "#EF4444", "order": 0},
    {"name": "Training", "icon": "🛡️", "color": "#3B82F6", "order": 1},
    {"name": "Side Quest", "icon": "⭐", "color": "#10B981", "order": 2},
]


@dataclass
class Note:
    """Запись архива теней"""
    id: str
    user_id: str
    title: str
    content: str
    tags: List[str] = field(default_factory=list)
    category: NoteCategory = NoteCategory.PLAN
    starred: bool = False
    created_at: str = field(default_factory=utc_now_iso)
    updated_at: str = field(default_factory=utc_now_iso)

    def __post_init__(self):
        self.title = validate_text(self.title, max_length=100, field_name="title")
        self.content = validate_text(self.content, max_length=10000, field_name="content")
        self.tags = validate_tags(self.tags)
        self.category = coerce_enum(self.category, NoteCategory, "category")

    def matches(self, query: str) -> bool:
        """Поиск по заголовку, тексту и тегам"""
        query = query.lower()
        return (
            query in self.title.lower()
            or query in self.content.lower()
            or any(query in tag.lower() for tag in self.tags)
        )

    def to_dict(self) -> Dict[str, Any]:
        return _serialize(asdict(self))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Note":
        return cls(**_known_fields(cls, data))

    @classmethod
    def create(cls, user_id: str, title: str, content: str, **kwargs) -> "Note":
        return cls(id=new_id(), user_id=user_id, title=title, content=content, **kwargs)


@dataclass
class UnlockedAchievement:
    """Полученное достижение"""
    id: str
    unlocked_at: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UnlockedAchievement":
        return cls(id=data["id"], unlocked_at=data["unlocked_at"])


@dataclass
class StreakData:
    """Серия ежедневного выполнения"""
    current_streak: int = 0
    longest_streak: int = 0
    last_completion_date: Optional[date] = None
    total_completions: int = 0
    weekly_progress: List[bool] = field(default_factory=lambda: [False] * 7)
    achievements: List[UnlockedAchievement] = field(default_factory=list)

    def __post_init__(self):
        validate_non_negative_int(self.current_streak, "current_streak")
        validate_non_negative_int(self.longest_streak, "longest_streak")
        validate_non_negative_int(self.total_completions, "total_completions")

        if self.longest_streak < self.current_streak:
            raise ValidationError("longest_streak cannot be less than current_streak", "longest_streak")

        if self.last_completion_date is not None:
            try:
                self.last_completion_date = parse_date(self.last_completion_date)
            except (TypeError, ValueError):
                raise ValidationError(f"Invalid date: {self.last_completion_date}", "last_completion_date")

        if len(self.weekly_progress) != 7:
            raise ValidationError("weekly_progress must have 7 slots", "weekly_progress")
        self.weekly_progress = [bool(v) for v in self.weekly_progress]

        self.achievements = [
            a if isinstance(a, UnlockedAchievement) else UnlockedAchievement.from_dict(a)
            for a in self.achievements
        ]

    @property
    def achievement_ids(self) -> List[str]:
        return [a.id for a in self.achievements]

    def has_achievement(self, achievement_id: str) -> bool:
        return achievement_id in self.achievement_ids

    def to_dict(self) -> Dict[str, Any]:
        return _serialize(asdict(self))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StreakData":
        return cls(**_known_fields(cls, data))


@dataclass
class ReminderTime:
    id: str
    time: str
    label: str = ""
    enabled: bool = True

    def __post_init__(self):
        if not isinstance(self.time, str) or not TIME_RE.match(self.time):
            raise ValidationError("Invalid time format", "reminder_times.time")
        self.label = validate_text(self.label, min_length=0, max_length=50, field_name="label")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReminderTime":
        return cls(id=data.get("id") or new_id(), time=data.get("time", ""),
                   label=data.get("label", ""), enabled=data.get("enabled", True))


@dataclass
class UserSettings:
    """Настройки пользователя"""
    user_id: str
    theme: Theme = Theme.DARK
    color_theme: str = "solo-leveling"
    notifications_enabled: bool = True
    reminder_times: List[ReminderTime] = field(default_factory=list)
    daily_goal_target: int = 3
    created_at: str = field(default_factory=utc_now_iso)
    updated_at: str = field(default_factory=utc_now_iso)

    def __post_init__(self):
        self.theme = coerce_enum(self.theme, Theme, "theme")
        self.reminder_times = [
            r if isinstance(r, ReminderTime) else ReminderTime.from_dict(r)
            for r in self.reminder_times
        ]
        if len(self.reminder_times) > MAX_REMINDERS:
            raise ValidationError(f"Maximum {MAX_REMINDERS} reminder times allowed", "reminder_times")
        if isinstance(self.daily_goal_target, bool) or not isinstance(self.daily_goal_target, int) \
                or self.daily_goal_target < 1:
            raise ValidationError("daily_goal_target must be at least 1", "daily_goal_target")

    def to_dict(self) -> Dict[str, Any]:
        return _serialize(asdict(self))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserSettings":
        return cls(**_known_fields(cls, data))


@dataclass
class DailySummary:
    """Итоги дня (зачистка подземелья)"""
    date: date
    goals_completed: int = 0
    total_goals: int = 0
    xp_gained: int = 0

    @property
    def is_dungeon_cleared(self) -> bool:
        return self.total_goals > 0 and self.goals_completed == self.total_goals

    @property
    def completion_rate(self) -> float:
        if self.total_goals == 0:
            return 0.0
        return self.goals_completed / self.total_goals * 100

    def to_dict(self) -> Dict[str, Any]:
        data = _serialize(asdict(self))
        data["is_dungeon_cleared"] = self.is_dungeon_cleared
        return data


__all__ = [
    'GoalStatus', 'GoalPriority', 'NoteCategory', 'Theme', 'RecurrenceType', 'Rank',
    'RANK_THRESHOLDS', 'DEFAULT_CATEGORIES',
    'validate_text', 'coerce_enum', 'validate_tags', 'validate_xp_reward', 'new_id',
    'UserProfile', 'RecurringPattern', 'Goal', 'Category', 'Note',
    'UnlockedAchievement', 'StreakData', 'ReminderTime', 'UserSettings', 'DailySummary',
]
