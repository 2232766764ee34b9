# tests/test_cards.py
import pytest

from studydeck.cards import (
    build_review_session, create_card, delete_card, get_card, get_card_progress,
    list_cards, list_topics, record_card_review, reset_card_progress, update_card,
    upsert_card_progress,
)
from studydeck.db import get_connection
from studydeck.errors import NotFoundError, PermissionDeniedError, ValidationError
from studydeck.models import ReviewBucket


def test_create_and_get_card(db):
    card_id = create_card(db, "alice", "  lecture-2 ", "Lateral", "Away from the midline")
    card = get_card(db, card_id)
    assert card.topic == "lecture-2"
    assert card.front_text == "Lateral"
    assert card.user_id == "alice"
    assert card.grade == 0
    assert card.attempts == 0


def test_create_card_requires_topic(db):
    with pytest.raises(ValidationError):
        create_card(db, "alice", "   ", "front", "back")


def test_create_card_requires_front(db):
    with pytest.raises(ValidationError):
        create_card(db, "alice", "lab-3", "  ", "back")


def test_create_card_front_image_only(db):
    card_id = create_card(db, "alice", "lab-3", front_image="https://blob.example/skull.png", back_text="Skull")
    assert get_card(db, card_id).front_image == "https://blob.example/skull.png"


def test_get_card_missing(db):
    with pytest.raises(NotFoundError):
        get_card(db, 999)


def test_update_card_by_owner(db):
    card_id = create_card(db, "alice", "lab-3", "Cephalic", "Head")
    card = update_card(db, "alice", card_id, back_text=" The head ")
    assert card.back_text == "The head"


def test_update_card_by_other_user_denied(db):
    card_id = create_card(db, "alice", "lab-3", "Cephalic", "Head")
    with pytest.raises(PermissionDeniedError):
        update_card(db, "bob", card_id, back_text="Neck")


def test_update_card_rejects_unknown_fields(db):
    card_id = create_card(db, "alice", "lab-3", "Cephalic", "Head")
    with pytest.raises(ValidationError):
        update_card(db, "alice", card_id, is_hidden=1)


def test_delete_card_cascades_progress(db):
    card_id = create_card(db, "alice", "lab-3", "Cephalic", "Head")
    record_card_review(db, "bob", card_id, "good")
    delete_card(db, "alice", card_id)
    conn = get_connection(db)
    assert conn.execute("SELECT COUNT(*) FROM card_progress").fetchone()[0] == 0
    conn.close()


def test_delete_card_by_other_user_denied(db):
    card_id = create_card(db, "alice", "lab-3", "Cephalic", "Head")
    with pytest.raises(PermissionDeniedError):
        delete_card(db, "bob", card_id)


def test_list_cards_joins_user_progress(db):
    c1 = create_card(db, "alice", "lab-3", "Cephalic", "Head")
    c2 = create_card(db, "alice", "lab-3", "Cervical", "Neck")
    record_card_review(db, "bob", c1, "easy")
    record_card_review(db, "carol", c2, "hard")

    bob_cards = {c.id: c for c in list_cards(db, "bob")}
    assert bob_cards[c1].grade == 1.0
    assert bob_cards[c1].attempts == 1
    assert bob_cards[c2].grade == 0
    assert bob_cards[c2].attempts == 0


def test_list_cards_filters_topic_and_hidden(db):
    create_card(db, "alice", "lab-3", "Cephalic", "Head")
    hidden = create_card(db, "alice", "lab-3", "Pedal", "Foot")
    create_card(db, "alice", "lecture-2", "Medial", "Toward the midline")
    conn = get_connection(db)
    conn.execute("UPDATE cards SET is_hidden = 1 WHERE id = ?", (hidden,))
    conn.commit()
    conn.close()
    assert [c.front_text for c in list_cards(db, "bob", "lab-3")] == ["Cephalic"]
    assert len(list_cards(db, "bob")) == 2
    assert list_topics(db) == ["lab-3", "lecture-2"]


def test_card_progress_defaults_to_zero(db):
    card_id = create_card(db, "alice", "lab-3", "Cephalic", "Head")
    assert get_card_progress(db, "bob", card_id) == {"grade": 0.0, "attempts": 0}


def test_upsert_card_progress(db):
    card_id = create_card(db, "alice", "lab-3", "Cephalic", "Head")
    upsert_card_progress(db, "bob", card_id, 1.55, 2)
    assert get_card_progress(db, "bob", card_id) == {"grade": 1.55, "attempts": 2}


def test_upsert_card_progress_rejects_decrease(db):
    card_id = create_card(db, "alice", "lab-3", "Cephalic", "Head")
    upsert_card_progress(db, "bob", card_id, 1.0, 2)
    with pytest.raises(ValidationError):
        upsert_card_progress(db, "bob", card_id, 1.0, 1)
    with pytest.raises(ValidationError):
        upsert_card_progress(db, "bob", card_id, 0.5, 3)


def test_upsert_card_progress_rejects_grade_jump(db):
    card_id = create_card(db, "alice", "lab-3", "Cephalic", "Head")
    with pytest.raises(ValidationError):
        upsert_card_progress(db, "bob", card_id, 1.5, 1)


def test_record_card_review_increments(db):
    card_id = create_card(db, "alice", "lab-3", "Cephalic", "Head")
    result = record_card_review(db, "bob", card_id, "again")
    assert result == {"grade": 0.0, "attempts": 1, "bucket": ReviewBucket.NOW}
    result = record_card_review(db, "bob", card_id, "easy")
    assert result["attempts"] == 2
    assert result["grade"] == 1.0
    assert result["bucket"] == ReviewBucket.NOW  # exactly 50%
    result = record_card_review(db, "bob", card_id, "good")
    assert result["grade"] == pytest.approx(1.85)
    assert result["bucket"] == ReviewBucket.TOMORROW


def test_record_card_review_all_easy_is_next_week(db):
    card_id = create_card(db, "alice", "lab-3", "Cephalic", "Head")
    for _ in range(3):
        result = record_card_review(db, "bob", card_id, "easy")
    assert result["bucket"] == ReviewBucket.NEXT_WEEK


def test_record_card_review_unknown_difficulty(db):
    card_id = create_card(db, "alice", "lab-3", "Cephalic", "Head")
    with pytest.raises(ValidationError):
        record_card_review(db, "bob", card_id, "trivial")


def test_record_card_review_missing_card(db):
    with pytest.raises(NotFoundError):
        record_card_review(db, "bob", 42, "good")


def test_build_review_session_by_bucket(db):
    ids = [create_card(db, "alice", "lab-3", f"front {i}", "back") for i in range(6)]
    for card_id in ids[:2]:
        record_card_review(db, "bob", card_id, "again")
    now_cards = build_review_session(db, "bob", "lab-3", ReviewBucket.NOW, 10)
    assert sorted(c.id for c in now_cards) == ids[:2]
    new_cards = build_review_session(db, "bob", "lab-3", "New", 3)
    assert len(new_cards) == 3
    assert all(c.id in ids[2:] for c in new_cards)


def test_reset_card_progress_for_topic(db):
    lab = create_card(db, "alice", "lab-3", "Cephalic", "Head")
    lecture = create_card(db, "alice", "lecture-2", "Medial", "Toward the midline")
    record_card_review(db, "bob", lab, "easy")
    record_card_review(db, "bob", lecture, "again")
    record_card_review(db, "carol", lab, "good")

    assert reset_card_progress(db, "bob", "lab-3") == 1
    assert get_card(db, lab, "bob").attempts == 0
    assert [c.id for c in build_review_session(db, "bob", "lab-3", ReviewBucket.NEW, 5)] == [lab]
    assert get_card_progress(db, "bob", lecture)["attempts"] == 1
    assert get_card_progress(db, "carol", lab)["attempts"] == 1


def test_reset_card_progress_all_topics(db):
    ids = [create_card(db, "alice", topic, "front", "back") for topic in ("lab-3", "lecture-2")]
    for card_id in ids:
        record_card_review(db, "bob", card_id, "good")
    assert reset_card_progress(db, "bob") == 2
    assert len(build_review_session(db, "bob", None, "New", 5)) == 2
    # Progress can be recorded again from zero
    assert record_card_review(db, "bob", ids[0], "hard")["attempts"] == 1
