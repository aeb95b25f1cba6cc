"""
Tests for sliding-window rate limiting
"""
import pytest

from solo_hunter.config import RateLimitConfig
from solo_hunter.core.exceptions import RateLimitedError
from solo_hunter.services import RateLimiter, RateLimits


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestRateLimiter:

    def test_allows_up_to_limit(self):
        limiter = RateLimiter(3, 60, clock=FakeClock())
        assert [limiter.is_allowed("u1") for _ in range(4)] == [True, True, True, False]

    def test_keys_are_independent(self):
        limiter = RateLimiter(1, 60, clock=FakeClock())
        assert limiter.is_allowed("u1")
        assert limiter.is_allowed("u2")
        assert not limiter.is_allowed("u1")

    def test_window_slides(self):
        clock = FakeClock()
        limiter = RateLimiter(2, 60, clock=clock)
        limiter.is_allowed("u1")
        clock.now += 30
        limiter.is_allowed("u1")

        assert limiter.remaining_time("u1") == pytest.approx(30)
        clock.now += 31
        assert limiter.is_allowed("u1")

    def test_check_raises_with_retry_after(self):
        limiter = RateLimiter(1, 60, clock=FakeClock(), name="goal creation")
        limiter.check("u1")

        with pytest.raises(RateLimitedError) as exc_info:
            limiter.check("u1")
        assert exc_info.value.retry_after == pytest.approx(60)
        assert exc_info.value.action == "goal creation"

    def test_reset(self):
        limiter = RateLimiter(1, 60, clock=FakeClock())
        limiter.is_allowed("u1")
        limiter.reset("u1")
        assert limiter.is_allowed("u1")


class TestRateLimits:

    def test_built_from_config(self):
        limits = RateLimits(RateLimitConfig(goal_create_per_minute=2, goal_update_per_minute=4,
                                            note_create_per_minute=1))
        assert limits.goal_create.max_attempts == 2
        assert limits.goal_update.max_attempts == 4
        assert limits.note_create.max_attempts == 1
