"""Flashcard records, per-user progress and review sessions."""
import logging
import random
from datetime import datetime
from typing import Optional

from studydeck.db import get_connection
from studydeck.errors import NotFoundError, PermissionDeniedError, ValidationError
from studydeck.models import Card
from studydeck.scheduling import ALL_CARDS, RandomSource, categorize, select_for_review

logger = logging.getLogger(__name__)

# Grade added per review, by how hard the card felt
RATING_INCREMENTS = {
    "again": 0.0,
    "hard": 0.7,
    "good": 0.85,
    "easy": 1.0,
}

EDITABLE_FIELDS = ("topic", "front_text", "back_text", "front_image", "back_image")

_CARD_QUERY = """SELECT c.*, COALESCE(p.grade, 0) as grade, COALESCE(p.attempts, 0) as attempts
    FROM cards c
    LEFT JOIN card_progress p ON p.card_id = c.id AND p.user_id = ?"""


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _row_to_card(row) -> Card:
    return Card(
        id=row["id"],
        topic=row["topic"],
        front_text=row["front_text"],
        back_text=row["back_text"],
        front_image=row["front_image"],
        back_image=row["back_image"],
        grade=row["grade"],
        attempts=row["attempts"],
        user_id=row["user_id"],
        is_hidden=bool(row["is_hidden"]),
    )


def prepare_card(
    topic: str,
    front_text: Optional[str] = None,
    back_text: Optional[str] = None,
    front_image: Optional[str] = None,
    back_image: Optional[str] = None,
) -> dict:
    """Validate and clean card fields without touching the database."""
    topic = _clean(topic)
    if not topic:
        raise ValidationError("Topic is required")
    front_text, back_text = _clean(front_text), _clean(back_text)
    if not front_text and not front_image:
        raise ValidationError("Card front needs text or an image")
    return {
        "topic": topic,
        "front_text": front_text,
        "back_text": back_text,
        "front_image": front_image,
        "back_image": back_image,
    }


def insert_card(conn, user_id: str, card: dict) -> int:
    """Insert a prepared card on an open connection. The caller commits."""
    now = datetime.now().isoformat()
    cur = conn.execute(
        """INSERT INTO cards (user_id, topic, front_text, back_text, front_image, back_image, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
        (user_id, card["topic"], card["front_text"], card["back_text"],
         card["front_image"], card["back_image"], now, now),
    )
    return cur.lastrowid


def create_card(
    db_path: str,
    user_id: str,
    topic: str,
    front_text: Optional[str] = None,
    back_text: Optional[str] = None,
    front_image: Optional[str] = None,
    back_image: Optional[str] = None,
) -> int:
    card = prepare_card(topic, front_text, back_text, front_image, back_image)
    conn = get_connection(db_path)
    card_id = insert_card(conn, user_id, card)
    conn.commit()
    conn.close()
    logger.info("Created card %d in topic %s", card_id, card["topic"])
    return card_id


def get_card(db_path: str, card_id: int, user_id: Optional[str] = None) -> Card:
    """Fetch a card, with user_id's progress when given."""
    conn = get_connection(db_path)
    row = conn.execute(_CARD_QUERY + " WHERE c.id = ?", (user_id, card_id)).fetchone()
    conn.close()
    if row is None:
        raise NotFoundError(f"Flash card {card_id} not found")
    return _row_to_card(row)


def _require_owner(db_path: str, user_id: str, card_id: int) -> Card:
    card = get_card(db_path, card_id)
    if card.user_id != user_id:
        raise PermissionDeniedError("Only the card's creator can change it")
    return card


def update_card(db_path: str, user_id: str, card_id: int, **fields) -> Card:
    _require_owner(db_path, user_id, card_id)
    unknown = set(fields) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Cannot edit card fields: {', '.join(sorted(unknown))}")
    if "topic" in fields and not _clean(fields["topic"]):
        raise ValidationError("Topic is required")
    if not fields:
        return get_card(db_path, card_id, user_id)
    updates = {
        key: value if key.endswith("_image") else _clean(value)
        for key, value in fields.items()
    }
    assignments = ", ".join(f"{key} = ?" for key in updates)
    conn = get_connection(db_path)
    conn.execute(
        f"UPDATE cards SET {assignments}, updated_at = ? WHERE id = ?",
        (*updates.values(), datetime.now().isoformat(), card_id),
    )
    conn.commit()
    conn.close()
    return get_card(db_path, card_id, user_id)


def delete_card(db_path: str, user_id: str, card_id: int) -> None:
    _require_owner(db_path, user_id, card_id)
    conn = get_connection(db_path)
    conn.execute("DELETE FROM cards WHERE id = ?", (card_id,))
    conn.commit()
    conn.close()
    logger.info("Deleted card %d", card_id)


def list_cards(db_path: str, user_id: str, topic: Optional[str] = None) -> list[Card]:
    """Visible cards with this user's progress (0/0 where never reviewed)."""
    query = _CARD_QUERY + " WHERE c.is_hidden = 0"
    params: list = [user_id]
    if topic is not None:
        query += " AND c.topic = ?"
        params.append(topic)
    conn = get_connection(db_path)
    rows = conn.execute(query + " ORDER BY c.id", params).fetchall()
    conn.close()
    return [_row_to_card(r) for r in rows]


def list_topics(db_path: str) -> list[str]:
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT DISTINCT topic FROM cards WHERE is_hidden = 0 ORDER BY topic"
    ).fetchall()
    conn.close()
    return [r["topic"] for r in rows]


def get_card_progress(db_path: str, user_id: str, card_id: int) -> dict:
    conn = get_connection(db_path)
    row = conn.execute(
        "SELECT grade, attempts FROM card_progress WHERE user_id = ? AND card_id = ?",
        (user_id, card_id),
    ).fetchone()
    conn.close()
    if row is None:
        return {"grade": 0.0, "attempts": 0}
    return {"grade": row["grade"], "attempts": row["attempts"]}


def upsert_card_progress(db_path: str, user_id: str, card_id: int, grade: float, attempts: int) -> None:
    """Write a user's progress on a card. Progress only moves forward."""
    current = get_card_progress(db_path, user_id, card_id)
    added = attempts - current["attempts"]
    if added < 0 or grade < current["grade"]:
        raise ValidationError("Card progress cannot decrease")
    if grade - current["grade"] > added + 1e-9:
        raise ValidationError("Grade can rise by at most 1.0 per attempt")
    conn = get_connection(db_path)
    conn.execute(
        """INSERT INTO card_progress (user_id, card_id, grade, attempts, updated_at)
        VALUES (?, ?, ?, ?, ?)
        ON CONFLICT(user_id, card_id) DO UPDATE SET grade=excluded.grade,
            attempts=excluded.attempts, updated_at=excluded.updated_at""",
        (user_id, card_id, grade, attempts, datetime.now().isoformat()),
    )
    conn.commit()
    conn.close()


def reset_card_progress(db_path: str, user_id: str, topic: Optional[str] = None) -> int:
    """Forget a user's grades, for one topic or every card. Returns rows cleared.

    The cards go back to the New bucket.
    """
    query = "DELETE FROM card_progress WHERE user_id = ?"
    params: list = [user_id]
    if topic is not None:
        query += " AND card_id IN (SELECT id FROM cards WHERE topic = ?)"
        params.append(topic)
    conn = get_connection(db_path)
    cur = conn.execute(query, params)
    conn.commit()
    conn.close()
    logger.info("Reset %d card grades for %s (topic %s)", cur.rowcount, user_id, topic or "all")
    return cur.rowcount


def record_card_review(db_path: str, user_id: str, card_id: int, difficulty: str) -> dict:
    """Apply one review rating and return the new progress and bucket."""
    if difficulty not in RATING_INCREMENTS:
        raise ValidationError(f"Unknown difficulty: {difficulty}")
    get_card(db_path, card_id)
    progress = get_card_progress(db_path, user_id, card_id)
    grade = progress["grade"] + RATING_INCREMENTS[difficulty]
    attempts = progress["attempts"] + 1
    upsert_card_progress(db_path, user_id, card_id, grade, attempts)
    return {"grade": grade, "attempts": attempts, "bucket": categorize(grade, attempts)}


def build_review_session(
    db_path: str,
    user_id: str,
    topic: Optional[str] = None,
    bucket=ALL_CARDS,
    count: int = 5,
    rng: RandomSource = random.random,
) -> list[Card]:
    cards = list_cards(db_path, user_id, topic)
    return select_for_review(cards, bucket, count, rng)
