"""Exam questions, exam assembly and score persistence."""
import logging
import random
from dataclasses import replace
from datetime import datetime
from typing import Optional, Sequence

from studydeck.db import get_connection
from studydeck.errors import NotFoundError, PermissionDeniedError, ValidationError
from studydeck.grading import merge_exam_score
from studydeck.models import ExamRecord, Option, Question, Score
from studydeck.scheduling import RandomSource, sample, shuffle

logger = logging.getLogger(__name__)

MIN_OPTIONS = 2
MAX_OPTIONS = 5


def _validate_question(text: str, options: Sequence[Option]) -> None:
    if not text or not text.strip():
        raise ValidationError("Question text is required")
    if not MIN_OPTIONS <= len(options) <= MAX_OPTIONS:
        raise ValidationError(f"A question needs {MIN_OPTIONS} to {MAX_OPTIONS} options")
    if any(not option.text or not option.text.strip() for option in options):
        raise ValidationError("Options cannot be blank")
    if not any(option.correct for option in options):
        raise ValidationError("At least one option must be correct")


def prepare_question(exam_type: str, exam_number: int, text: str, options: Sequence[Option]) -> Question:
    """Validate a new question and return it unsaved (id 0)."""
    _validate_question(text, options)
    exam_type = (exam_type or "").strip().lower()
    if not exam_type:
        raise ValidationError("Exam type is required")
    return Question(
        id=0,
        text=text.strip(),
        options=[Option(text=o.text.strip(), correct=bool(o.correct)) for o in options],
        exam_type=exam_type,
        exam_number=exam_number,
    )


def insert_question(conn, user_id: str, question: Question) -> int:
    """Insert a prepared question and its options on an open connection. The caller commits."""
    now = datetime.now().isoformat()
    cur = conn.execute(
        """INSERT INTO questions (user_id, exam_type, exam_number, question, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, ?)""",
        (user_id, question.exam_type, question.exam_number, question.text, now, now),
    )
    question_id = cur.lastrowid
    conn.executemany(
        "INSERT INTO question_options (question_id, position, text, correct) VALUES (?, ?, ?, ?)",
        [(question_id, i, o.text, int(o.correct)) for i, o in enumerate(question.options)],
    )
    return question_id


def create_question(
    db_path: str,
    user_id: str,
    exam_type: str,
    exam_number: int,
    text: str,
    options: Sequence[Option],
) -> int:
    question = prepare_question(exam_type, exam_number, text, options)
    conn = get_connection(db_path)
    question_id = insert_question(conn, user_id, question)
    conn.commit()
    conn.close()
    logger.info("Created question %d for %s exam %d", question_id, question.exam_type, exam_number)
    return question_id


def _load_questions(conn, rows) -> list[Question]:
    questions = []
    for row in rows:
        options = conn.execute(
            "SELECT text, correct FROM question_options WHERE question_id = ? ORDER BY position",
            (row["id"],),
        ).fetchall()
        questions.append(Question(
            id=row["id"],
            text=row["question"],
            options=[Option(text=o["text"], correct=bool(o["correct"])) for o in options],
            exam_type=row["exam_type"],
            exam_number=row["exam_number"],
            user_id=row["user_id"],
            is_hidden=bool(row["is_hidden"]),
        ))
    return questions


def get_question(db_path: str, question_id: int) -> Question:
    conn = get_connection(db_path)
    rows = conn.execute("SELECT * FROM questions WHERE id = ?", (question_id,)).fetchall()
    questions = _load_questions(conn, rows)
    conn.close()
    if not questions:
        raise NotFoundError(f"Exam question {question_id} not found")
    return questions[0]


def delete_question(db_path: str, user_id: str, question_id: int) -> None:
    question = get_question(db_path, question_id)
    if question.user_id != user_id:
        raise PermissionDeniedError("Only the question's creator can delete it")
    conn = get_connection(db_path)
    conn.execute("DELETE FROM questions WHERE id = ?", (question_id,))
    conn.commit()
    conn.close()


def list_questions(db_path: str, exam_type: str, exam_number: int) -> list[Question]:
    """Visible questions for one exam, in creation order."""
    conn = get_connection(db_path)
    rows = conn.execute(
        """SELECT * FROM questions
        WHERE exam_type = ? AND exam_number = ? AND is_hidden = 0
        ORDER BY id""",
        (exam_type, exam_number),
    ).fetchall()
    questions = _load_questions(conn, rows)
    conn.close()
    return questions


def list_exams(db_path: str) -> list[tuple[str, int]]:
    conn = get_connection(db_path)
    rows = conn.execute(
        """SELECT DISTINCT exam_type, exam_number FROM questions
        WHERE is_hidden = 0 ORDER BY exam_type, exam_number"""
    ).fetchall()
    conn.close()
    return [(r["exam_type"], r["exam_number"]) for r in rows]


def build_exam(
    questions: Sequence[Question],
    count: int = 30,
    rng: RandomSource = random.random,
) -> list[Question]:
    """Pick up to count questions at random and shuffle each one's options."""
    return [
        replace(question, options=shuffle(question.options, rng))
        for question in sample(questions, count, rng)
    ]


def get_exam_score(db_path: str, user_id: str, exam_type: str, exam_number: int) -> Optional[ExamRecord]:
    conn = get_connection(db_path)
    row = conn.execute(
        """SELECT score, time_elapsed, tries FROM exam_scores
        WHERE user_id = ? AND exam_type = ? AND exam_number = ?""",
        (user_id, exam_type, exam_number),
    ).fetchone()
    conn.close()
    if row is None:
        return None
    return ExamRecord(score=row["score"], time_elapsed=row["time_elapsed"], tries=row["tries"])


def upsert_exam_score(
    db_path: str,
    user_id: str,
    exam_type: str,
    exam_number: int,
    record: ExamRecord,
    total_questions: int,
) -> None:
    conn = get_connection(db_path)
    conn.execute(
        """INSERT INTO exam_scores
        (user_id, exam_type, exam_number, score, total_questions, time_elapsed, tries, updated_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        ON CONFLICT(user_id, exam_type, exam_number) DO UPDATE SET
            score=excluded.score, total_questions=excluded.total_questions,
            time_elapsed=excluded.time_elapsed, tries=excluded.tries,
            updated_at=excluded.updated_at""",
        (user_id, exam_type, exam_number, record.score, total_questions,
         record.time_elapsed, record.tries, datetime.now().isoformat()),
    )
    conn.commit()
    conn.close()


def save_exam_score(
    db_path: str,
    user_id: str,
    exam_type: str,
    exam_number: int,
    score: Score,
    time_elapsed: int,
) -> ExamRecord:
    """Merge a graded attempt into the user's best-of record and store it."""
    existing = get_exam_score(db_path, user_id, exam_type, exam_number)
    record = merge_exam_score(existing, score, time_elapsed)
    upsert_exam_score(db_path, user_id, exam_type, exam_number, record, score.total_questions)
    logger.info(
        "Saved %s exam %d for %s: best %d, tries %d",
        exam_type, exam_number, user_id, record.score, record.tries,
    )
    return record


def list_exam_scores(db_path: str, user_id: str) -> list[dict]:
    conn = get_connection(db_path)
    rows = conn.execute(
        """SELECT exam_type, exam_number, score, total_questions, time_elapsed, tries
        FROM exam_scores WHERE user_id = ?
        ORDER BY exam_type, exam_number""",
        (user_id,),
    ).fetchall()
    conn.close()
    return [dict(r) for r in rows]
