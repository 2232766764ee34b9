# tests/test_reports.py
import pytest

from studydeck.cards import create_card, get_card, list_cards
from studydeck.errors import NotFoundError, ValidationError
from studydeck.exams import create_question, get_question, list_questions
from studydeck.models import Option
from studydeck.reports import (
    delete_reported_item, list_reports, report_bug, report_item, restore_report,
)


@pytest.fixture
def card_id(db):
    return create_card(db, "alice", "lab-3", "Pedal", "Hand")


@pytest.fixture
def question_id(db):
    return create_question(db, "alice", "lab", 3, "Pedal means?", [Option("Foot", True), Option("Hand", False)])


def test_report_card_hides_it(db, card_id):
    report_id = report_item(db, "flash_card", card_id, "bob", "Bob", "Back side is wrong")
    assert get_card(db, card_id).is_hidden
    assert list_cards(db, "bob", "lab-3") == []
    reports = list_reports(db)
    assert reports[0]["id"] == report_id
    assert reports[0]["reported_item_id"] == card_id


def test_report_question_hides_it(db, question_id):
    report_item(db, "exam_question", question_id, "bob", "Bob")
    assert get_question(db, question_id).is_hidden
    assert list_questions(db, "lab", 3) == []


def test_report_already_hidden(db, card_id):
    report_item(db, "flash_card", card_id, "bob", "Bob")
    with pytest.raises(ValidationError):
        report_item(db, "flash_card", card_id, "carol", "Carol")


def test_report_missing_item(db):
    with pytest.raises(NotFoundError):
        report_item(db, "flash_card", 404, "bob", "Bob")


def test_report_needs_reporter(db, card_id):
    with pytest.raises(ValidationError):
        report_item(db, "flash_card", card_id, "", "Bob")


def test_report_unknown_type(db, card_id):
    with pytest.raises(ValidationError):
        report_item(db, "deck", card_id, "bob", "Bob")


def test_restore_report_unhides_and_closes(db, card_id):
    report_id = report_item(db, "flash_card", card_id, "bob", "Bob")
    restore_report(db, report_id)
    assert not get_card(db, card_id).is_hidden
    assert list_reports(db) == []


def test_delete_reported_question(db, question_id):
    report_id = report_item(db, "exam_question", question_id, "bob", "Bob")
    delete_reported_item(db, report_id)
    with pytest.raises(NotFoundError):
        get_question(db, question_id)
    assert list_reports(db) == []


def test_restore_missing_report(db):
    with pytest.raises(NotFoundError):
        restore_report(db, 77)


def test_bug_reports_cannot_be_restored(db):
    report_id = report_bug(db, "bob", "Bob", "Timer kept running after submit")
    with pytest.raises(ValidationError):
        restore_report(db, report_id)
    assert list_reports(db)[0]["report_type"] == "bug"


def test_bug_report_needs_description(db):
    with pytest.raises(ValidationError):
        report_bug(db, "bob", "Bob", " ")
