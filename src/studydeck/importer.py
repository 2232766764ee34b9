"""Import decks of cards and exam questions from files."""
import csv
import json
import logging
from pathlib import Path

from studydeck.cards import insert_card, prepare_card
from studydeck.db import get_connection
from studydeck.errors import ValidationError
from studydeck.exams import insert_question, prepare_question
from studydeck.models import Option

logger = logging.getLogger(__name__)


def read_deck_file(file_path: str) -> dict:
    """Load a deck as {"cards": [...], "questions": [...]}.

    JSON and YAML files use the same layout as the bundled content files.
    CSV files hold cards only, with topic, front and back columns.
    """
    path = Path(file_path)
    suffix = path.suffix.lower()

    if suffix == ".json":
        data = json.loads(path.read_text())
    elif suffix in (".yaml", ".yml"):
        import yaml
        data = yaml.safe_load(path.read_text())
    elif suffix == ".csv":
        with path.open(newline="") as f:
            data = {"cards": list(csv.DictReader(f))}
    else:
        raise ValidationError(f"Unsupported deck file type: {suffix or path.name}")

    if not isinstance(data, dict):
        raise ValidationError(f"{path.name} does not contain a deck")
    return {"cards": data.get("cards") or [], "questions": data.get("questions") or []}


def _prepare_deck(deck: dict) -> tuple[list[dict], list]:
    cards, questions = [], []
    for n, card in enumerate(deck["cards"], 1):
        try:
            cards.append(prepare_card(
                card.get("topic", ""),
                front_text=card.get("front"), back_text=card.get("back"),
                front_image=card.get("front_image") or None, back_image=card.get("back_image") or None,
            ))
        except (AttributeError, ValidationError) as e:
            raise ValidationError(f"Card {n}: {e}") from e
    for n, q in enumerate(deck["questions"], 1):
        try:
            options = [Option(text=o.get("text"), correct=bool(o.get("correct"))) for o in q.get("options", [])]
            questions.append(prepare_question(
                q.get("exam_type", ""), int(q.get("exam_number", 0)), q.get("question", ""), options,
            ))
        except (AttributeError, TypeError, ValueError) as e:
            raise ValidationError(f"Question {n}: {e}") from e
    return cards, questions


def import_deck(db_path: str, user_id: str, file_path: str) -> dict:
    """Create every card and question in the file, owned by user_id.

    The whole deck is validated first and written in one transaction, so a
    bad item leaves nothing behind.
    """
    deck = read_deck_file(file_path)
    cards, questions = _prepare_deck(deck)
    conn = get_connection(db_path)
    try:
        for card in cards:
            insert_card(conn, user_id, card)
        for question in questions:
            insert_question(conn, user_id, question)
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()
    name = Path(file_path).name
    logger.info("Imported %s: %d cards, %d questions", name, len(deck["cards"]), len(deck["questions"]))
    return {"filename": name, "cards": len(deck["cards"]), "questions": len(deck["questions"])}
