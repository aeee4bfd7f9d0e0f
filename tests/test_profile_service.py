"""
tests/test_profile_service.py — Profile Persistence Tests
==========================================================

Runs the progression and streak services against an in-memory SQLite
database.
"""

from __future__ import annotations

from datetime import date, timedelta

import pytest
from sqlalchemy import create_engine, select
from sqlalchemy.pool import StaticPool

from questline.database.models import Profile
from questline.engine.streak import StreakTransition
from questline.errors import PersistenceError, ValidationError
from questline.services import profile_service

USER = "user-1"
TODAY = date(2026, 6, 1)


def _seed(db_session, **fields) -> Profile:
    profile = Profile(user_id=USER, **fields)
    db_session.add(profile)
    db_session.commit()
    return profile


class TestGetOrCreate:
    def test_creates_defaults(self, db_engine):
        profile = profile_service.get_or_create_profile(db_engine, USER)
        assert profile.user_id == USER
        assert profile.current_level == 1
        assert profile.total_xp == 0
        assert profile.current_streak == 0
        assert profile.last_active_date is None

    def test_idempotent(self, db_engine, db_session):
        first = profile_service.get_or_create_profile(db_engine, USER)
        second = profile_service.get_or_create_profile(db_engine, USER)
        assert first.id == second.id
        assert len(db_session.scalars(select(Profile)).all()) == 1

    def test_get_profile_missing(self, db_engine):
        assert profile_service.get_profile(db_engine, "nobody") is None


class TestDisplayName:
    def test_sets_trimmed_name(self, db_engine):
        profile = profile_service.set_display_name(db_engine, USER, "  Ada  ")
        assert profile.display_name == "Ada"
        assert profile_service.get_profile(db_engine, USER).display_name == "Ada"

    def test_blank_rejected(self, db_engine):
        with pytest.raises(ValidationError):
            profile_service.set_display_name(db_engine, USER, "   ")


class TestAwardXp:
    def test_persists_total_level_and_activity(self, db_engine):
        profile, result = profile_service.award_xp(db_engine, USER, 25, today=TODAY)
        assert result.new_total_xp == 25
        assert profile.total_xp == 25
        assert profile.current_level == 1
        assert profile.last_active_date == TODAY

        stored = profile_service.get_profile(db_engine, USER)
        assert stored.total_xp == 25
        assert stored.last_active_date == TODAY

    def test_level_up_persisted(self, db_engine, db_session):
        _seed(db_session, total_xp=275, current_level=3)
        profile, result = profile_service.award_xp(db_engine, USER, 25, today=TODAY)
        assert result.leveled_up
        assert profile.current_level == 4
        assert profile_service.get_profile(db_engine, USER).current_level == 4

    def test_streak_untouched(self, db_engine, db_session):
        _seed(db_session, current_streak=3, last_active_date=TODAY - timedelta(days=1))
        profile, _ = profile_service.award_xp(db_engine, USER, 25, today=TODAY)
        assert profile.current_streak == 3

    def test_invalid_amount_writes_nothing(self, db_engine):
        with pytest.raises(ValidationError):
            profile_service.award_xp(db_engine, USER, 0, today=TODAY)
        assert profile_service.get_profile(db_engine, USER) is None


class TestEvaluateStreak:
    def test_increment_writes_streak_and_date(self, db_engine, db_session):
        _seed(db_session, current_streak=2, last_active_date=TODAY - timedelta(days=1))
        profile, result = profile_service.evaluate_streak(db_engine, USER, today=TODAY)
        assert result.transition == StreakTransition.INCREMENT
        assert profile.current_streak == 3
        assert profile.last_active_date == TODAY

    def test_reset_writes_zero(self, db_engine, db_session):
        _seed(db_session, current_streak=8, last_active_date=TODAY - timedelta(days=4))
        profile, result = profile_service.evaluate_streak(db_engine, USER, today=TODAY)
        assert result.transition == StreakTransition.RESET
        stored = profile_service.get_profile(db_engine, USER)
        assert stored.current_streak == 0
        assert stored.last_active_date == TODAY

    def test_same_day_is_idempotent(self, db_engine, db_session):
        _seed(db_session, current_streak=2, last_active_date=TODAY - timedelta(days=1))
        profile_service.evaluate_streak(db_engine, USER, today=TODAY)
        profile, result = profile_service.evaluate_streak(db_engine, USER, today=TODAY)
        assert result.transition == StreakTransition.UNCHANGED
        assert profile.current_streak == 3

    def test_new_user_has_no_history(self, db_engine):
        profile, result = profile_service.evaluate_streak(db_engine, USER, today=TODAY)
        assert result.transition == StreakTransition.NO_HISTORY
        assert profile.current_streak == 0
        assert profile.last_active_date is None

    def test_anomaly_leaves_row_alone(self, db_engine, db_session):
        future = TODAY + timedelta(days=3)
        _seed(db_session, current_streak=5, last_active_date=future)
        _, result = profile_service.evaluate_streak(db_engine, USER, today=TODAY)
        assert result.transition == StreakTransition.ANOMALY
        stored = profile_service.get_profile(db_engine, USER)
        assert stored.current_streak == 5
        assert stored.last_active_date == future


class TestStoreFailure:
    def test_missing_tables_raise_persistence_error(self):
        engine = create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        with pytest.raises(PersistenceError):
            profile_service.award_xp(engine, USER, 25, today=TODAY)
