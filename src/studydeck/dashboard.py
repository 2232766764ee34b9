"""Progress dashboard: bucket counts, exam records and study stats."""
from typing import Optional

from studydeck.cards import list_cards
from studydeck.db import get_connection
from studydeck.exams import list_exam_scores
from studydeck.models import BUCKET_ORDER, Score
from studydeck.scheduling import group_by_bucket
from studydeck.study import get_profile

BUCKET_COLORS = {
    "New": "cyan",
    "Now": "red",
    "Tomorrow": "yellow",
    "Next Week": "green",
}


def format_elapsed_time(milliseconds: int) -> str:
    total_seconds = milliseconds // 1000
    minutes, seconds = divmod(total_seconds, 60)
    return f"{minutes} minutes {seconds} seconds"


def score_percentage(score: Score) -> float:
    if score.total_questions == 0:
        return 0.0
    return round(score.correct_answers / score.total_questions * 100, 1)


def get_bucket_summary(db_path: str, user_id: str, topic: Optional[str] = None) -> list[dict]:
    """Card counts per review bucket, in display order."""
    groups = group_by_bucket(list_cards(db_path, user_id, topic))
    return [{"bucket": b.value, "count": len(groups[b])} for b in BUCKET_ORDER]


def get_exam_summary(db_path: str, user_id: str) -> list[dict]:
    results = []
    for row in list_exam_scores(db_path, user_id):
        score = Score(row["score"], row["total_questions"])
        results.append({
            **row,
            "percentage": score_percentage(score),
            "perfect": score.is_perfect,
            "time": format_elapsed_time(row["time_elapsed"]),
        })
    return results


def get_study_stats(db_path: str, user_id: str) -> dict:
    conn = get_connection(db_path)
    reviewed = conn.execute(
        "SELECT COUNT(*), COALESCE(SUM(attempts), 0) FROM card_progress WHERE user_id = ?", (user_id,)
    ).fetchone()
    exams = conn.execute(
        "SELECT COUNT(*), COALESCE(SUM(score = total_questions), 0) FROM exam_scores WHERE user_id = ?",
        (user_id,),
    ).fetchone()
    conn.close()
    return {
        "cards_studied": reviewed[0],
        "reviews": reviewed[1],
        "exams_taken": exams[0],
        "perfect_exams": exams[1],
        "study_streak": get_profile(db_path, user_id)["study_streak"],
    }
