# solo_hunter/services/notifications.py

"""Уведомления пользователя, построенные из событий шины"""

import logging
from collections import deque
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Deque, Dict, List, Optional

from solo_hunter.core.events import Event, EventBus, EventType, Subscription
from solo_hunter.utils.datetime_utils import utc_now_iso

logger = logging.getLogger(__name__)

MAX_INBOX_SIZE = 50


class NotificationKind(str, Enum):
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass
class Notification:
    kind: NotificationKind
    title: str
    message: str = ""
    created_at: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> Dict[str, str]:
        data = asdict(self)
        data["kind"] = self.kind.value
        return data


def _format_event(event: Event) -> Optional[Notification]:
    """Текст уведомления для события"""
    payload = event.payload

    if event.type == EventType.GOAL_COMPLETED:
        return Notification(NotificationKind.SUCCESS, "Quest Complete!",
                            f"{payload.get('title', 'Quest')} (+{payload.get('xp_gained', 0)} XP)")
    if event.type == EventType.LEVEL_UP:
        return Notification(NotificationKind.SUCCESS, "Level Up!",
                            f"You reached level {payload.get('level')}")
    if event.type == EventType.RANK_UP:
        return Notification(NotificationKind.SUCCESS, "Rank Up!",
                            f"You are now {payload.get('rank')}")
    if event.type == EventType.ACHIEVEMENT_UNLOCKED:
        return Notification(NotificationKind.SUCCESS, "Achievement Unlocked!",
                            f"{payload.get('title')} - {payload.get('description')}")
    if event.type == EventType.NOTIFICATION:
        return Notification(NotificationKind(payload.get("kind", "info")),
                            payload.get("title", ""), payload.get("message", ""))
    return None


class NotificationService:
    """
    Очередь уведомлений по пользователям.

    Подписывается на шину событий; каждое событие превращается не более чем
    в одно уведомление. Очередь ограничена, старые уведомления вытесняются.
    """

    def __init__(self, bus: EventBus, max_inbox_size: int = MAX_INBOX_SIZE):
        self.bus = bus
        self.max_inbox_size = max_inbox_size
        self._inboxes: Dict[str, Deque[Notification]] = {}
        self._subscription: Optional[Subscription] = bus.subscribe(None, self._on_event)

    def _on_event(self, event: Event) -> None:
        notification = _format_event(event)
        if notification is None:
            return
        inbox = self._inboxes.setdefault(event.user_id, deque(maxlen=self.max_inbox_size))
        inbox.append(notification)
        logger.debug(f"Уведомление для {event.user_id}: {notification.title}")

    async def notify(self, user_id: str, kind: NotificationKind, title: str, message: str = "") -> None:
        """Отправить произвольное уведомление через шину"""
        await self.bus.emit(EventType.NOTIFICATION, user_id,
                            kind=NotificationKind(kind).value, title=title, message=message)

    def pending(self, user_id: str) -> List[Notification]:
        return list(self._inboxes.get(user_id, ()))

    def drain(self, user_id: str) -> List[Notification]:
        """Забрать и очистить уведомления пользователя"""
        inbox = self._inboxes.pop(user_id, None)
        return list(inbox) if inbox else []

    def close(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None


__all__ = ['NotificationKind', 'Notification', 'NotificationService']
