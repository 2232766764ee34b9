"""Exam grading and best-of score merging."""
from typing import Iterable, Mapping, Optional, Sequence

from studydeck.models import ExamRecord, Question, Score


def correct_indices(question: Question) -> set[int]:
    return {i for i, option in enumerate(question.options) if option.correct}


def is_answer_correct(question: Question, selected: Iterable[int]) -> bool:
    """Select-all-that-apply: the selection must equal the correct set exactly."""
    return set(selected) == correct_indices(question)


def grade(
    questions: Sequence[Question],
    selections: Mapping[int, Iterable[int]],
) -> Score:
    """Count exactly-matched questions.

    Args:
        questions: Questions in the order they were shown
        selections: Question index -> selected option indices. Missing
            entries count as nothing selected.

    Returns:
        Score over all questions. An empty exam scores 0/0.
    """
    correct = sum(
        1 for i, question in enumerate(questions)
        if is_answer_correct(question, selections.get(i, ()))
    )
    return Score(correct_answers=correct, total_questions=len(questions))


def merge_exam_score(
    existing: Optional[ExamRecord],
    score: Score,
    time_elapsed: int,
) -> ExamRecord:
    """Fold a new attempt into the stored best-of record.

    The best score always wins. Time is replaced only by a faster attempt
    with an equal or better score, or by a slower attempt with a strictly
    better score; an identical time never replaces the stored one. Tries
    stop counting once either side is a perfect score.
    """
    if existing is None:
        return ExamRecord(score=score.correct_answers, time_elapsed=time_elapsed, tries=1)

    new_score = score.correct_answers
    should_update_time = (
        (time_elapsed < existing.time_elapsed and new_score >= existing.score)
        or (time_elapsed > existing.time_elapsed and new_score > existing.score)
    )
    existing_is_perfect = existing.score == score.total_questions
    tries = existing.tries
    if not score.is_perfect and not existing_is_perfect:
        tries += 1

    return ExamRecord(
        score=max(existing.score, new_score),
        time_elapsed=time_elapsed if should_update_time else existing.time_elapsed,
        tries=tries,
    )
