from datetime import date, datetime, timedelta, timezone
from typing import Optional, Union

import pytz


def get_timezone(name: str = "UTC"):
    return pytz.timezone(name)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_now_iso() -> str:
    return utc_now().isoformat()


def local_today(tz_name: str = "UTC", now: Optional[datetime] = None) -> date:
    """Сегодняшняя дата в часовом поясе пользователя"""
    now = now or utc_now()
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(get_timezone(tz_name)).date()


def yesterday(day: date) -> date:
    return day - timedelta(days=1)


def day_of_week_index(day: date) -> int:
    """Индекс дня недели: воскресенье = 0, суббота = 6"""
    return (day.weekday() + 1) % 7


def week_start(day: date) -> date:
    """Воскресенье, с которого начинается неделя"""
    return day - timedelta(days=day_of_week_index(day))


def parse_date(value: Union[str, date, datetime]) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)


def parse_datetime(value: Union[str, datetime]) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value.replace('Z', '+00:00'))
