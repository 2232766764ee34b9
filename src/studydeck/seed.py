"""Seed the database with the bundled starter cards and exam questions."""
import json
from pathlib import Path

from studydeck.cards import create_card
from studydeck.db import get_connection
from studydeck.exams import create_question
from studydeck.models import Option

CONTENT_DIR = Path(__file__).parent / "content"

# Owner recorded on bundled content
SEED_USER = "seed"


def is_seeded(db_path: str) -> bool:
    """Check whether the database already holds any cards or questions."""
    conn = get_connection(db_path)
    cards = conn.execute("SELECT COUNT(*) FROM cards").fetchone()[0]
    questions = conn.execute("SELECT COUNT(*) FROM questions").fetchone()[0]
    conn.close()
    return cards + questions > 0


def seed_cards(db_path: str) -> int:
    """Insert flashcards from cards.json."""
    data = json.loads((CONTENT_DIR / "cards.json").read_text())
    for card in data["cards"]:
        create_card(db_path, SEED_USER, card["topic"], card["front"], card["back"])
    return len(data["cards"])


def seed_questions(db_path: str) -> int:
    """Insert exam questions from questions.json."""
    data = json.loads((CONTENT_DIR / "questions.json").read_text())
    for q in data["questions"]:
        create_question(
            db_path, SEED_USER, q["exam_type"], q["exam_number"], q["question"],
            [Option(text=o["text"], correct=o["correct"]) for o in q["options"]],
        )
    return len(data["questions"])


def seed_all(db_path: str) -> None:
    """Run all seed functions in order."""
    if is_seeded(db_path):
        return
    seed_cards(db_path)
    seed_questions(db_path)
