import re
from datetime import date

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
TIME_RE = re.compile(r"^([01]?[0-9]|2[0-3]):[0-5][0-9]$")


def is_valid_email(email: str) -> bool:
    return bool(email) and bool(EMAIL_RE.match(email)) and len(email) <= 254


def is_valid_date(date_str: str) -> bool:
    """Дата в формате YYYY-MM-DD"""
    if not DATE_RE.match(date_str):
        return False
    try:
        date.fromisoformat(date_str)
    except ValueError:
        return False
    return True


def is_valid_time(time_str: str) -> bool:
    """Время в формате HH:MM"""
    return bool(TIME_RE.match(time_str))


def sanitize_text(text: str) -> str:
    """Обрезка пробелов и удаление управляющих символов"""
    return "".join(ch for ch in text if ch.isprintable() or ch in "\n\t").strip()
