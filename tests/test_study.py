# tests/test_study.py
from datetime import date

from studydeck.study import get_profile, update_study_streak


def test_profile_defaults(db):
    assert get_profile(db, "bob") == {"last_study_date": None, "study_streak": 0}


def test_first_study_day_starts_streak(db):
    assert update_study_streak(db, "bob", today=date(2026, 3, 1)) == 1
    assert get_profile(db, "bob")["last_study_date"] == "2026-03-01"


def test_same_day_does_not_change_streak(db):
    update_study_streak(db, "bob", today=date(2026, 3, 1))
    assert update_study_streak(db, "bob", today=date(2026, 3, 1)) == 1


def test_consecutive_days_extend_streak(db):
    update_study_streak(db, "bob", today=date(2026, 2, 27))
    update_study_streak(db, "bob", today=date(2026, 2, 28))
    assert update_study_streak(db, "bob", today=date(2026, 3, 1)) == 3


def test_gap_resets_streak(db):
    update_study_streak(db, "bob", today=date(2026, 3, 1))
    update_study_streak(db, "bob", today=date(2026, 3, 2))
    assert update_study_streak(db, "bob", today=date(2026, 3, 5)) == 1
    assert get_profile(db, "bob")["study_streak"] == 1


def test_streaks_are_per_user(db):
    update_study_streak(db, "bob", today=date(2026, 3, 1))
    update_study_streak(db, "bob", today=date(2026, 3, 2))
    assert update_study_streak(db, "carol", today=date(2026, 3, 2)) == 1
    assert get_profile(db, "bob")["study_streak"] == 2
