# solo_hunter/server/schemas.py

"""Модели запросов и ответов HTTP API (camelCase на проводе)"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Dict, List, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from solo_hunter.core.exceptions import ValidationError as DomainValidationError
from solo_hunter.core.models import NoteCategory, validate_tags
from solo_hunter.utils.validators import is_valid_date, is_valid_email, is_valid_time, sanitize_text


class CalendarEventType(str, Enum):
    MAIN_MISSION = "main-mission"
    TRAINING = "training"
    SIDE_QUEST = "side-quest"


class ApiModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def _clean_title(v: str) -> str:
    v = sanitize_text(v)
    if not v:
        raise ValueError("Title is required")
    return v


def _check_date(v: str) -> str:
    if not is_valid_date(v):
        raise ValueError("Date must be in YYYY-MM-DD format")
    return v


def _check_time(v: Optional[str]) -> Optional[str]:
    if v is not None and not is_valid_time(v):
        raise ValueError("Time must be in HH:MM format")
    return v


def _check_tags(v: Optional[List[str]]) -> Optional[List[str]]:
    if v is None:
        return v
    try:
        return validate_tags(v)
    except DomainValidationError as e:
        raise ValueError(str(e)) from e


Title = Annotated[str, Field(min_length=1, max_length=100), AfterValidator(_clean_title)]
EventDate = Annotated[str, AfterValidator(_check_date)]
EventTime = Annotated[Optional[str], AfterValidator(_check_time)]
Tags = Annotated[List[str], AfterValidator(_check_tags)]


# ===== ПОЛЬЗОВАТЕЛИ =====

class UserUpsert(ApiModel):
    firebase_uid: str = Field(min_length=1, max_length=128)
    email: str
    display_name: Optional[str] = Field(default=None, max_length=50)

    @field_validator('email')
    @classmethod
    def validate_email(cls, v: str) -> str:
        v = v.strip()
        if not is_valid_email(v):
            raise ValueError("Invalid email address")
        return v


class UserResponse(ApiModel):
    id: str
    firebase_uid: str
    email: str
    display_name: Optional[str] = None
    level: int
    current_xp: int = Field(alias="currentXP")
    total_xp: int = Field(alias="totalXP")
    streak: int
    rank: str
    created_at: Optional[datetime] = None

# ===== СОБЫТИЯ КАЛЕНДАРЯ =====

class CalendarEventCreate(ApiModel):
    title: Title
    description: Optional[str] = Field(default=None, max_length=500)
    date: EventDate
    time: EventTime = None
    type: CalendarEventType = CalendarEventType.MAIN_MISSION
    completed: bool = False


class CalendarEventUpdate(ApiModel):
    title: Optional[Title] = None
    description: Optional[str] = Field(default=None, max_length=500)
    date: Optional[EventDate] = None
    time: EventTime = None
    type: Optional[CalendarEventType] = None
    completed: Optional[bool] = None

class CalendarEventResponse(ApiModel):
    id: str
    user_id: str
    title: str
    description: Optional[str] = None
    date: str
    time: Optional[str] = None
    type: CalendarEventType
    completed: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

# ===== ЗАПИСИ =====

class NoteCreate(ApiModel):
    title: Title
    content: str = Field(min_length=1, max_length=10000)
    tags: Tags = Field(default_factory=list)
    category: NoteCategory = NoteCategory.PLAN
    starred: bool = False


class NoteUpdate(ApiModel):
    title: Optional[Title] = None
    content: Optional[str] = Field(default=None, min_length=1, max_length=10000)
    tags: Optional[Tags] = None
    category: Optional[NoteCategory] = None
    starred: Optional[bool] = None

class NoteResponse(ApiModel):
    id: str
    user_id: str
    title: str
    content: str
    tags: List[str]
    category: NoteCategory
    starred: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

# ===== СЛУЖЕБНЫЕ =====

class SuccessResponse(BaseModel):
    success: bool = True


class HealthCheck(BaseModel):
    status: str
    service: str
    version: str
    timestamp: float
    uptime_seconds: float
    services: Dict[str, Any] = Field(default_factory=dict)


__all__ = [
    'CalendarEventType',
    'UserUpsert', 'UserResponse',
    'CalendarEventCreate', 'CalendarEventUpdate', 'CalendarEventResponse',
    'NoteCreate', 'NoteUpdate', 'NoteResponse',
    'SuccessResponse', 'HealthCheck',
]
