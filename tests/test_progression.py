"""
tests/test_progression.py — Unit Tests for the Leveling Formula & XP Awards
============================================================================

Pure calculation tests (no I/O, no database).
"""

from __future__ import annotations

from datetime import date

import pytest

from questline.constants import level_for_xp, xp_into_level
from questline.engine.progression import AwardResult, award_xp
from questline.errors import ValidationError

TODAY = date(2026, 3, 14)


class TestLevelForXp:
    @pytest.mark.parametrize(
        "total_xp, expected",
        [(0, 1), (1, 1), (99, 1), (100, 2), (199, 2), (250, 3), (299, 3), (300, 4), (10_000, 101)],
    )
    def test_level_boundaries(self, total_xp, expected):
        assert level_for_xp(total_xp) == expected

    def test_matches_floor_formula(self):
        for xp in range(0, 1000, 7):
            assert level_for_xp(xp) == xp // 100 + 1

    def test_negative_xp_rejected(self):
        with pytest.raises(ValueError):
            level_for_xp(-1)

    def test_xp_into_level(self):
        assert xp_into_level(0) == (0, 100)
        assert xp_into_level(275) == (75, 100)


class TestAwardXp:
    def test_adds_amount_and_recomputes_level(self):
        result = award_xp(90, 25, today=TODAY)
        assert isinstance(result, AwardResult)
        assert result.new_total_xp == 115
        assert result.old_level == 1
        assert result.new_level == 2
        assert result.leveled_up
        assert result.levels_gained == 1
        assert result.activity_date == TODAY

    def test_no_level_up_below_threshold(self):
        result = award_xp(225, 25, today=TODAY)
        assert result.new_total_xp == 250
        assert result.new_level == 3
        assert not result.leveled_up

    def test_level_progression_scenario(self):
        """225 → 250 → 275 stays level 3; reaching 300 flips to level 4."""
        total = 225
        levels = []
        for _ in range(3):
            result = award_xp(total, 25, today=TODAY)
            total = result.new_total_xp
            levels.append((total, result.new_level, result.leveled_up))
        assert levels == [(250, 3, False), (275, 3, False), (300, 4, True)]

    def test_large_award_skips_levels(self):
        result = award_xp(50, 460, today=TODAY)
        assert result.new_level == 6
        assert result.levels_gained == 5

    def test_no_cap_on_total(self):
        assert award_xp(1_000_000, 25, today=TODAY).new_total_xp == 1_000_025

    @pytest.mark.parametrize("amount", [0, -5])
    def test_non_positive_amount_rejected(self, amount):
        with pytest.raises(ValidationError):
            award_xp(0, amount, today=TODAY)

    def test_deterministic(self):
        assert award_xp(40, 25, today=TODAY) == award_xp(40, 25, today=TODAY)
