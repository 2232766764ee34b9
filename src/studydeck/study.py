"""User study profile and daily study streak."""
from datetime import date
from typing import Optional

from studydeck.db import get_connection


def get_profile(db_path: str, user_id: str) -> dict:
    conn = get_connection(db_path)
    row = conn.execute(
        "SELECT last_study_date, study_streak FROM user_profiles WHERE user_id = ?", (user_id,)
    ).fetchone()
    conn.close()
    if row is None:
        return {"last_study_date": None, "study_streak": 0}
    return {"last_study_date": row["last_study_date"], "study_streak": row["study_streak"] or 0}


def update_study_streak(db_path: str, user_id: str, today: Optional[date] = None) -> int:
    """Record a study day and return the current streak.

    Studying again on the same day changes nothing, studying the day after
    the last study day extends the streak, any longer gap restarts it at 1.
    """
    today = today or date.today()
    profile = get_profile(db_path, user_id)
    last = date.fromisoformat(profile["last_study_date"]) if profile["last_study_date"] else None
    if last == today:
        return profile["study_streak"]

    if last is not None and (today - last).days == 1:
        streak = profile["study_streak"] + 1
    else:
        streak = 1

    conn = get_connection(db_path)
    conn.execute(
        """INSERT INTO user_profiles (user_id, last_study_date, study_streak) VALUES (?, ?, ?)
        ON CONFLICT(user_id) DO UPDATE SET last_study_date=excluded.last_study_date,
            study_streak=excluded.study_streak""",
        (user_id, today.isoformat(), streak),
    )
    conn.commit()
    conn.close()
    return streak
