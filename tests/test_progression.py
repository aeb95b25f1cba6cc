"""
Tests for XP, level and rank progression
"""
import pytest

from solo_hunter.config import config
from solo_hunter.core.exceptions import ValidationError
from solo_hunter.core.models import Rank, UserProfile
from solo_hunter.core.progression import (
    XP_PER_LEVEL, apply_xp, current_xp_for, default_xp_for_priority,
    level_for_xp, level_progress, rank_of, xp_to_next_level,
)


def make_profile(**kwargs) -> UserProfile:
    return UserProfile(uid="hunter-1", **kwargs)


class TestRankOf:

    @pytest.mark.parametrize("level,rank", [
        (1, Rank.E), (4, Rank.E),
        (5, Rank.D), (9, Rank.D),
        (10, Rank.C), (19, Rank.C),
        (20, Rank.B), (29, Rank.B),
        (30, Rank.A), (39, Rank.A),
        (40, Rank.S), (49, Rank.S),
        (50, Rank.SHADOW_MONARCH), (500, Rank.SHADOW_MONARCH),
    ])
    def test_thresholds(self, level, rank):
        """Ранг определяется наибольшим достигнутым порогом"""
        assert rank_of(level) == rank

    def test_is_monotonic(self):
        """Ранг не понижается с ростом уровня"""
        tiers = [rank_of(level).tier for level in range(1, 120)]
        assert tiers == sorted(tiers)

    @pytest.mark.parametrize("level", [0, -3, 1.5, "5", True])
    def test_invalid_level(self, level):
        with pytest.raises(ValidationError):
            rank_of(level)


class TestLevelMath:

    def test_xp_per_level_follows_config(self):
        assert XP_PER_LEVEL == config.progression.xp_per_level

    def test_level_from_total_xp(self):
        assert level_for_xp(0) == 1
        assert level_for_xp(XP_PER_LEVEL - 1) == 1
        assert level_for_xp(XP_PER_LEVEL) == 2
        assert level_for_xp(XP_PER_LEVEL * 9 + 5) == 10

    def test_current_xp_is_remainder(self):
        assert current_xp_for(2500) == 500
        assert current_xp_for(999) == 999

    def test_negative_total_rejected(self):
        with pytest.raises(ValidationError):
            level_for_xp(-1)

    def test_progress_helpers(self):
        profile = make_profile(level=1, current_xp=250, total_xp=250)
        assert level_progress(profile) == 25.0
        assert xp_to_next_level(profile) == 750

    def test_default_xp_by_priority(self):
        assert default_xp_for_priority("low") == 25
        assert default_xp_for_priority("medium") == 50
        assert default_xp_for_priority("high") == 100


class TestApplyXp:

    def test_identity_on_zero(self):
        """Начисление 0 XP не меняет показатели"""
        profile = make_profile(level=3, current_xp=120, total_xp=2120)
        result = apply_xp(profile, 0)

        assert result.profile.total_xp == 2120
        assert result.profile.level == 3
        assert result.profile.current_xp == 120
        assert not result.leveled_up

    def test_level_up_across_boundary(self):
        """Переход 950 + 100 XP даёт уровень 2 и остаток 50"""
        profile = make_profile(level=1, current_xp=950, total_xp=950)
        result = apply_xp(profile, 100)

        assert result.profile.total_xp == 1050
        assert result.profile.level == 2
        assert result.profile.current_xp == 50
        assert result.levels_gained == 1
        assert result.leveled_up

    def test_multiple_levels_at_once(self):
        profile = make_profile()
        result = apply_xp(profile, XP_PER_LEVEL * 3 + 10)

        assert result.profile.level == 4
        assert result.levels_gained == 3
        assert result.profile.current_xp == 10

    def test_rank_change_reported(self):
        """Достижение 5 уровня повышает ранг до D"""
        profile = make_profile(level=4, current_xp=990, total_xp=3990)
        result = apply_xp(profile, 20)

        assert result.profile.rank == Rank.D
        assert result.previous_rank == Rank.E
        assert result.rank_changed

    def test_input_not_mutated(self):
        profile = make_profile(level=1, current_xp=10, total_xp=10)
        apply_xp(profile, 500)

        assert profile.total_xp == 10
        assert profile.current_xp == 10

    def test_additive(self):
        """Два начисления подряд эквивалентны одному суммарному"""
        profile = make_profile()
        twice = apply_xp(apply_xp(profile, 700).profile, 800).profile
        once = apply_xp(profile, 1500).profile

        assert (twice.total_xp, twice.level, twice.current_xp) == \
            (once.total_xp, once.level, once.current_xp)

    def test_invariants_hold(self):
        """total_xp = (level - 1) * XP_PER_LEVEL + current_xp после любых начислений"""
        profile = make_profile()
        for delta in (5, 995, 0, 1234, 50, 10000):
            profile = apply_xp(profile, delta).profile
            assert profile.total_xp == (profile.level - 1) * XP_PER_LEVEL + profile.current_xp
            assert 0 <= profile.current_xp < XP_PER_LEVEL
            assert profile.rank == rank_of(profile.level)

    @pytest.mark.parametrize("delta", [-1, 2.5, "10", None])
    def test_invalid_delta(self, delta):
        with pytest.raises(ValidationError):
            apply_xp(make_profile(), delta)
