#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Solo Hunter - Event Bus
Типизированная шина событий с явной подпиской и отпиской

Версия: 1.0.0
"""

import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from solo_hunter.utils.datetime_utils import utc_now_iso

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Типы событий"""
    GOAL_COMPLETED = "goal_completed"
    LEVEL_UP = "level_up"
    RANK_UP = "rank_up"
    ACHIEVEMENT_UNLOCKED = "achievement_unlocked"
    STREAK_UPDATED = "streak_updated"
    NOTIFICATION = "notification"


@dataclass(frozen=True)
class Event:
    type: EventType
    user_id: str
    payload: Dict[str, Any] = field(default_factory=dict)
    created_at: str = field(default_factory=utc_now_iso)


Handler = Callable[[Event], Any]


class Subscription:
    """Подписка на события. Повторная отписка ничего не делает"""

    def __init__(self, bus: "EventBus", event_type: Optional[EventType], handler: Handler):
        self._bus = bus
        self.event_type = event_type
        self.handler = handler
        self.active = True

    def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        self._bus._remove(self)


class EventBus:
    """Шина событий: обработчики вызываются по порядку подписки"""

    def __init__(self):
        self._subscriptions: List[Subscription] = []
        self.published_count = 0
        self.failed_handlers = 0

    def subscribe(self, event_type: Optional[EventType], handler: Handler) -> Subscription:
        """Подписка на тип события (None - на все события)"""
        subscription = Subscription(self, event_type, handler)
        self._subscriptions.append(subscription)
        return subscription

    def _remove(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    async def publish(self, event: Event) -> None:
        """Доставка события всем подписчикам. Ошибка обработчика не прерывает доставку"""
        self.published_count += 1

        for subscription in list(self._subscriptions):
            if not subscription.active:
                continue
            if subscription.event_type is not None and subscription.event_type != event.type:
                continue

            try:
                result = subscription.handler(event)
                if inspect.isawaitable(result):
                    await result
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self.failed_handlers += 1
                logger.error(f"❌ Ошибка обработчика события {event.type.value}: {e}")

    async def emit(self, event_type: EventType, user_id: str, **payload) -> Event:
        event = Event(type=event_type, user_id=user_id, payload=payload)
        await self.publish(event)
        return event


__all__ = ['EventType', 'Event', 'Subscription', 'EventBus']
