# solo_hunter/services/rate_limiter.py

"""Ограничение частоты операций пользователя (скользящее окно)"""

import logging
import time
from typing import Callable, Dict, List, Optional

from solo_hunter.config import RateLimitConfig, config
from solo_hunter.core.exceptions import RateLimitedError

logger = logging.getLogger(__name__)


class RateLimiter:
    """Простой rate limiter в памяти"""

    def __init__(self, max_attempts: int, window_seconds: float = 60.0,
                 clock: Callable[[], float] = time.monotonic, name: str = "operation"):
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self.name = name
        self._clock = clock
        self.requests: Dict[str, List[float]] = {}

    def _prune(self, key: str, now: float) -> List[float]:
        cutoff_time = now - self.window_seconds
        attempts = [t for t in self.requests.get(key, []) if t > cutoff_time]
        self.requests[key] = attempts
        return attempts

    def is_allowed(self, key: str) -> bool:
        """Проверка лимита; разрешённая попытка сразу учитывается"""
        now = self._clock()
        attempts = self._prune(key, now)

        if len(attempts) >= self.max_attempts:
            return False

        attempts.append(now)
        return True

    def remaining_time(self, key: str) -> float:
        """Секунды до освобождения места в окне"""
        now = self._clock()
        attempts = self._prune(key, now)
        if len(attempts) < self.max_attempts:
            return 0.0
        return max(0.0, attempts[0] + self.window_seconds - now)

    def check(self, key: str) -> None:
        if not self.is_allowed(key):
            retry_after = self.remaining_time(key)
            logger.warning(f"⚠️ Лимит {self.name} превышен для {key}")
            raise RateLimitedError(self.name, retry_after)

    def reset(self, key: Optional[str] = None) -> None:
        if key is None:
            self.requests.clear()
        else:
            self.requests.pop(key, None)


class RateLimits:
    """Лимиты на создание и обновление квестов и записей"""

    def __init__(self, limits: Optional[RateLimitConfig] = None,
                 clock: Callable[[], float] = time.monotonic):
        limits = limits or config.rate_limits
        self.goal_create = RateLimiter(limits.goal_create_per_minute, limits.window_seconds,
                                       clock, name="goal creation")
        self.goal_update = RateLimiter(limits.goal_update_per_minute, limits.window_seconds,
                                       clock, name="goal update")
        self.note_create = RateLimiter(limits.note_create_per_minute, limits.window_seconds,
                                       clock, name="note creation")

    def reset(self) -> None:
        for limiter in (self.goal_create, self.goal_update, self.note_create):
            limiter.reset()


__all__ = ['RateLimiter', 'RateLimits']
