"""Interactive CLI application."""
import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from studydeck.cards import (
    RATING_INCREMENTS, build_review_session, create_card, delete_card, get_card, list_topics,
    record_card_review, reset_card_progress, update_card,
)
from studydeck.config import get_settings
from studydeck.dashboard import (
    BUCKET_COLORS, format_elapsed_time, get_bucket_summary, get_exam_summary,
    get_study_stats, score_percentage,
)
from studydeck.db import init_db
from studydeck.errors import StudyDeckError
from studydeck.exams import (
    build_exam, create_question, delete_question, get_question, list_exams, list_questions, save_exam_score,
)
from studydeck.grading import is_answer_correct
from studydeck.importer import import_deck
from studydeck.models import BUCKET_ORDER, Option
from studydeck.reports import delete_reported_item, list_reports, report_bug, report_item, restore_report
from studydeck.scheduling import ALL_CARDS
from studydeck.seed import is_seeded, seed_all
from studydeck.session import ExamResult, ExamSession, SessionEvent, SessionState
from studydeck.study import update_study_streak

logger = logging.getLogger(__name__)

console = Console()

EXIT_WORDS = ("q", "menu")
LETTERS = "abcde"


class SessionExitRequested(Exception):
    """Raised when the user leaves a session to go back to the menu."""


def session_prompt(prompt: str, choices: Optional[list[str]] = None, default: str = "") -> str:
    """Prompt.ask that treats 'q'/'menu' as leaving the session."""
    while True:
        value = Prompt.ask(prompt, default=default).strip()
        if value.lower() in EXIT_WORDS:
            raise SessionExitRequested()
        if choices is None or value in choices:
            return value
        console.print(f"[red]Please choose one of: {', '.join(choices)}[/red]")


def session_int_prompt(prompt: str, choices: Optional[list[str]] = None, default: str = "") -> int:
    while True:
        value = session_prompt(prompt, choices=choices, default=default)
        try:
            return int(value)
        except ValueError:
            console.print("[red]Please enter a number.[/red]")


def show_welcome():
    console.print(Panel(
        "[bold]StudyDeck[/bold]\n[dim]Flashcards and timed exams[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("flashcards", "Review flashcards by bucket"),
        ("exam", "Take a timed exam"),
        ("dashboard", "Buckets, exam records, streak"),
        ("add-card", "Create a flashcard"),
        ("edit-card", "Edit one of your flashcards"),
        ("delete-card", "Delete one of your flashcards"),
        ("add-question", "Create an exam question"),
        ("delete-question", "Delete one of your exam questions"),
        ("import", "Import a deck file"),
        ("report", "Report a bug"),
        ("reports", "Review reported items"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def _report_item(db_path: str, report_type: str, item_id: int, user_id: str, user_name: Optional[str]) -> None:
    description = session_prompt("What is wrong with it?")
    report_item(db_path, report_type, item_id, user_id, user_name or user_id, description)
    console.print("[yellow]Reported. It is hidden until a moderator reviews it.[/yellow]\n")


def run_review_session(db_path: str, user_id: str, cards: list, user_name: Optional[str] = None) -> int:
    """Walk through cards, recording a difficulty rating for each. Returns cards reviewed."""
    if not cards:
        console.print("[yellow]No flashcards in that bucket![/yellow]")
        return 0
    console.print(f"\n[bold]Flashcard Review[/bold] — {len(cards)} cards [dim](q to stop)[/dim]\n")
    reviewed = 0
    try:
        for i, card in enumerate(cards, 1):
            console.print(Panel(card.front_text or card.front_image or "", title=f"Card {i}/{len(cards)}", border_style="cyan"))
            session_prompt("[dim]Press Enter to flip[/dim]")
            console.print(Panel(card.back_text or card.back_image or "", border_style="green"))
            difficulty = session_prompt(
                "How was it? (again/hard/good/easy, or report)",
                choices=list(RATING_INCREMENTS) + ["report"],
            )
            if difficulty == "report":
                _report_item(db_path, "flash_card", card.id, user_id, user_name)
                continue
            progress = record_card_review(db_path, user_id, card.id, difficulty)
            reviewed += 1
            color = BUCKET_COLORS[progress["bucket"].value]
            console.print(f"[{color}]→ {progress['bucket'].value}[/{color}]\n")
    finally:
        if reviewed:
            update_study_streak(db_path, user_id)
    return reviewed


def _show_question(index: int, question, selected: set) -> None:
    console.print(f"[bold]{index + 1}.[/bold] {question.text}")
    for j, option in enumerate(question.options):
        mark = "[x]" if j in selected else "[ ]"
        console.print(f"  {mark} [cyan]{LETTERS[j]})[/cyan] {option.text}")


def _show_result(session: ExamSession, result: ExamResult) -> None:
    for i, question in enumerate(session.questions):
        selected = session.attempt.selected(i)
        if is_answer_correct(question, selected):
            console.print(f"  [green]✓[/green] {i + 1}. {question.text}")
        else:
            answer = ", ".join(o.text for o in question.options if o.correct)
            console.print(f"  [red]✗[/red] {i + 1}. {question.text} [dim]({answer})[/dim]")
    score = result.score
    console.print(Panel(
        f"[bold]{score.correct_answers}/{score.total_questions}[/bold] ({score_percentage(score):.0f}%)\n"
        f"Completed in: {format_elapsed_time(result.time_elapsed)}",
        title="Test Complete!", border_style="magenta",
    ))


def run_exam_session(
    db_path: str,
    user_id: str,
    exam_type: str,
    exam_number: int,
    questions: list,
    duration_seconds: float,
    user_name: Optional[str] = None,
) -> Optional[ExamResult]:
    """Answer questions until submitted or out of time, then save the score."""
    if not questions:
        console.print("[yellow]No questions available for that exam![/yellow]")
        return None
    session = ExamSession(questions)
    session.start_countdown(duration_seconds)
    console.print(
        f"\n[bold]{exam_type.title()} Exam {exam_number}[/bold] — {len(questions)} questions, "
        f"{format_elapsed_time(int(duration_seconds * 1000))}. Select all that apply.\n"
    )
    result = None
    try:
        while result is None:
            for i, question in enumerate(session.questions):
                if session.state is not SessionState.IN_PROGRESS:
                    break
                _show_question(i, question, session.attempt.selected(i))
                letters = session_prompt("Toggle options (e.g. 'a c'), Enter to keep")
                for letter in letters.lower().split():
                    if letter in LETTERS[:len(question.options)]:
                        session.toggle(i, LETTERS.index(letter))
                console.print()
            if session.state is SessionState.IN_PROGRESS:
                answer = session_prompt("Submit test? (y/n)", choices=["y", "n"], default="y")
                if answer == "y":
                    _, result = session.submit_or_expire(SessionEvent.SUBMIT)
                    if result is None and session.state is SessionState.IN_PROGRESS:
                        console.print("[yellow]Answer every question before submitting.[/yellow]\n")
            if session.state is not SessionState.IN_PROGRESS and result is None:
                console.print("[yellow]Time is up! See your score below.[/yellow]")
                result = session.result
    except (Exception, KeyboardInterrupt):
        if session.countdown is not None:
            session.countdown.cancel()
        raise

    _show_result(session, result)
    record = save_exam_score(db_path, user_id, exam_type, exam_number, result.score, result.time_elapsed)
    update_study_streak(db_path, user_id)
    console.print(f"Best score: [bold]{record.score}/{result.score.total_questions}[/bold]  |  Tries: {record.tries}\n")

    numbers = [str(i) for i in range(1, len(session.questions) + 1)]
    choice = session_prompt("Report a question? (number, Enter to skip)", choices=[""] + numbers, default="")
    if choice:
        _report_item(db_path, "exam_question", session.questions[int(choice) - 1].id, user_id, user_name)
    return result


def cmd_flashcards(db_path: str):
    settings = get_settings()
    topics = list_topics(db_path)
    if not topics:
        console.print("[yellow]No flashcards yet. Use 'add-card' or 'import'.[/yellow]")
        return
    topic = session_prompt("Topic", choices=topics + [ALL_CARDS], default=ALL_CARDS)
    topic = None if topic == ALL_CARDS else topic
    reset = session_prompt("Reset grades for these cards first? (y/n)", choices=["y", "n"], default="n")
    if reset == "y":
        cleared = reset_card_progress(db_path, settings.user_id, topic)
        console.print(f"[yellow]Reset {cleared} card grade(s). Those cards are New again.[/yellow]")
    for row in get_bucket_summary(db_path, settings.user_id, topic):
        color = BUCKET_COLORS[row["bucket"]]
        console.print(f"  [{color}]{row['bucket']:<10}[/{color}] {row['count']}")
    bucket = session_prompt(
        "Bucket", choices=[b.value for b in BUCKET_ORDER] + [ALL_CARDS], default=ALL_CARDS,
    )
    count = session_int_prompt("Number of cards", default=str(settings.review_count))
    cards = build_review_session(db_path, settings.user_id, topic, bucket, count)
    run_review_session(db_path, settings.user_id, cards, settings.user_name)


def cmd_exam(db_path: str):
    settings = get_settings()
    exams = list_exams(db_path)
    if not exams:
        console.print("[yellow]No exams yet. Use 'add-question' or 'import'.[/yellow]")
        return
    for i, (exam_type, exam_number) in enumerate(exams, 1):
        console.print(f"  [cyan]{i}[/cyan]) {exam_type.title()} {exam_number}")
    choice = session_int_prompt("Select exam", choices=[str(i) for i in range(1, len(exams) + 1)])
    exam_type, exam_number = exams[choice - 1]
    questions = build_exam(list_questions(db_path, exam_type, exam_number), settings.exam_question_count)
    run_exam_session(
        db_path, settings.user_id, exam_type, exam_number, questions,
        settings.exam_duration_seconds, settings.user_name,
    )


def cmd_dashboard(db_path: str):
    settings = get_settings()
    stats = get_study_stats(db_path, settings.user_id)
    console.print(Panel(
        f"[bold]Study streak: {stats['study_streak']} day(s)[/bold]",
        title="StudyDeck Dashboard", border_style="blue",
    ))

    table = Table(title="Review Buckets")
    table.add_column("Bucket")
    table.add_column("Cards", justify="right")
    for row in get_bucket_summary(db_path, settings.user_id):
        color = BUCKET_COLORS[row["bucket"]]
        table.add_row(f"[{color}]{row['bucket']}[/{color}]", str(row["count"]))
    console.print(table)

    exams = get_exam_summary(db_path, settings.user_id)
    if exams:
        table = Table(title="Exam Records")
        table.add_column("Exam", style="cyan")
        table.add_column("Best", justify="right")
        table.add_column("Time")
        table.add_column("Tries", justify="right")
        for e in exams:
            best = f"{e['score']}/{e['total_questions']} ({e['percentage']}%)"
            table.add_row(
                f"{e['exam_type'].title()} {e['exam_number']}",
                f"[green]{best}[/green]" if e["perfect"] else best,
                e["time"],
                str(e["tries"]),
            )
        console.print(table)

    console.print(f"\n  Cards studied: [bold]{stats['cards_studied']}[/bold]  |  "
                  f"Reviews: [bold]{stats['reviews']}[/bold]  |  "
                  f"Exams: [bold]{stats['exams_taken']}[/bold]  |  "
                  f"Perfect: [bold]{stats['perfect_exams']}[/bold]")


def cmd_add_card(db_path: str):
    settings = get_settings()
    topic = session_prompt("Topic")
    front = session_prompt("Front text")
    back = session_prompt("Back text")
    card_id = create_card(db_path, settings.user_id, topic, front, back)
    console.print(f"[green]Created card {card_id}.[/green]")


def cmd_edit_card(db_path: str):
    """Edit a card you created. Enter keeps the current value."""
    settings = get_settings()
    card_id = session_int_prompt("Card ID")
    card = get_card(db_path, card_id)
    topic = session_prompt("Topic", default=card.topic)
    front = session_prompt("Front text", default=card.front_text or "")
    back = session_prompt("Back text", default=card.back_text or "")
    update_card(db_path, settings.user_id, card_id, topic=topic, front_text=front, back_text=back)
    console.print(f"[green]Updated card {card_id}.[/green]")


def cmd_delete_card(db_path: str):
    settings = get_settings()
    card_id = session_int_prompt("Card ID")
    card = get_card(db_path, card_id)
    console.print(Panel(card.front_text or card.front_image or "", title=f"Card {card_id}", border_style="red"))
    if session_prompt("Delete this card? (y/n)", choices=["y", "n"], default="n") == "y":
        delete_card(db_path, settings.user_id, card_id)
        console.print(f"[green]Deleted card {card_id}.[/green]")


def cmd_add_question(db_path: str):
    settings = get_settings()
    exam_type = session_prompt("Exam type", choices=["lecture", "lab"], default="lecture")
    exam_number = session_int_prompt("Exam number")
    text = session_prompt("Question")
    count = session_int_prompt("Number of options", choices=["2", "3", "4", "5"], default="4")
    options = []
    for i in range(count):
        option_text = session_prompt(f"Option {LETTERS[i]}")
        correct = session_prompt("Correct? (y/n)", choices=["y", "n"], default="n") == "y"
        options.append(Option(text=option_text, correct=correct))
    question_id = create_question(db_path, settings.user_id, exam_type, exam_number, text, options)
    console.print(f"[green]Created question {question_id}.[/green]")


def cmd_delete_question(db_path: str):
    settings = get_settings()
    question_id = session_int_prompt("Question ID")
    question = get_question(db_path, question_id)
    console.print(Panel(question.text, title=f"Question {question_id}", border_style="red"))
    if session_prompt("Delete this question? (y/n)", choices=["y", "n"], default="n") == "y":
        delete_question(db_path, settings.user_id, question_id)
        console.print(f"[green]Deleted question {question_id}.[/green]")


def cmd_import(db_path: str):
    settings = get_settings()
    file_path = Prompt.ask("File path")
    if not Path(file_path).exists():
        console.print(f"[red]File not found: {file_path}[/red]")
        return
    result = import_deck(db_path, settings.user_id, file_path)
    console.print(f"[green]Imported {result['filename']}: {result['cards']} cards, {result['questions']} questions[/green]")


def cmd_report(db_path: str):
    settings = get_settings()
    description = session_prompt("Describe the bug")
    report_bug(db_path, settings.user_id, settings.user_name, description)
    console.print("[green]Thanks! Bug reported.[/green]")


def cmd_reports(db_path: str):
    reports = list_reports(db_path)
    if not reports:
        console.print("[green]No open reports.[/green]")
        return
    table = Table(title="Reports")
    table.add_column("ID", justify="right")
    table.add_column("Type")
    table.add_column("Item", justify="right")
    table.add_column("Reporter")
    table.add_column("Description")
    for r in reports:
        table.add_row(
            str(r["id"]), r["report_type"], str(r["reported_item_id"] or ""),
            r["reporter_name"], r["description"] or "",
        )
    console.print(table)
    report_id = session_int_prompt("Report ID", choices=[str(r["id"]) for r in reports])
    action = session_prompt("Action (restore/delete/skip)", choices=["restore", "delete", "skip"], default="skip")
    if action == "restore":
        restore_report(db_path, report_id)
        console.print("[green]Item restored and report closed.[/green]")
    elif action == "delete":
        delete_reported_item(db_path, report_id)
        console.print("[green]Item and report deleted.[/green]")


COMMANDS = {
    "flashcards": cmd_flashcards,
    "exam": cmd_exam,
    "dashboard": cmd_dashboard,
    "add-card": cmd_add_card,
    "edit-card": cmd_edit_card,
    "delete-card": cmd_delete_card,
    "add-question": cmd_add_question,
    "delete-question": cmd_delete_question,
    "import": cmd_import,
    "report": cmd_report,
    "reports": cmd_reports,
}


def main():
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )
    db_path = settings.db_path
    init_db(db_path)
    first_run = not is_seeded(db_path)
    if first_run:
        console.print("[dim]Setting up for first use...[/dim]")
    seed_all(db_path)
    if first_run:
        console.print("[green]Ready![/green]\n")

    show_welcome()

    while True:
        show_menu()
        choice = Prompt.ask("\n[bold]>[/bold]", default="flashcards").strip().lower()
        if choice in ("quit", "exit", "q"):
            console.print("[dim]Happy studying![/dim]")
            break
        command = COMMANDS.get(choice)
        if command is None:
            console.print("[red]Unknown command. Try again.[/red]")
            continue
        try:
            command(db_path)
        except SessionExitRequested:
            console.print("[dim]Back to menu.[/dim]")
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except StudyDeckError as e:
            logger.warning("%s failed: %s", choice, e)
            console.print(f"[red]Error: {e}[/red]")
        except Exception as e:
            logger.exception("%s crashed", choice)
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()
