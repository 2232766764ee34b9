"""Timed exam sessions: answer tracking, countdown and one-shot grading."""
import logging
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional, Sequence

from studydeck.grading import grade
from studydeck.models import Question, Score

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    IN_PROGRESS = "in_progress"
    GRADING = "grading"
    GRADED = "graded"


class SessionEvent(str, Enum):
    SUBMIT = "submit"
    EXPIRE = "expire"


@dataclass
class ExamAttempt:
    """Selected option indices per question index for one sitting."""
    question_count: int
    selections: dict[int, set[int]] = field(default_factory=dict)

    def toggle(self, question_index: int, option_index: int) -> None:
        chosen = self.selections.setdefault(question_index, set())
        if option_index in chosen:
            chosen.remove(option_index)
        else:
            chosen.add(option_index)

    def selected(self, question_index: int) -> set[int]:
        return set(self.selections.get(question_index, ()))

    def is_complete(self) -> bool:
        """True once every question has at least one option selected."""
        return all(self.selections.get(i) for i in range(self.question_count))


@dataclass(frozen=True)
class ExamResult:
    score: Score
    time_elapsed: int  # milliseconds
    event: SessionEvent


class Countdown:
    """Fires on_time_up once after `seconds`, on a background timer thread.

    cancel() may be called any number of times.
    """

    def __init__(
        self,
        seconds: float,
        on_time_up: Callable[[], object],
        clock: Callable[[], float] = time.monotonic,
        timer_factory=threading.Timer,
    ):
        self.seconds = seconds
        self._on_time_up = on_time_up
        self._clock = clock
        self._timer_factory = timer_factory
        self._timer = None
        self._started_at: Optional[float] = None
        self.fired = False
        self.cancelled = False

    def start(self) -> None:
        self._started_at = self._clock()
        self._timer = self._timer_factory(self.seconds, self._fire)
        self._timer.daemon = True
        self._timer.start()

    def _fire(self) -> None:
        if self.cancelled:
            return
        self.fired = True
        self._on_time_up()

    def cancel(self) -> None:
        if self.cancelled:
            return
        self.cancelled = True
        if self._timer is not None:
            self._timer.cancel()

    def elapsed_ms(self) -> int:
        if self._started_at is None:
            return 0
        return int((self._clock() - self._started_at) * 1000)

    def remaining(self) -> float:
        if self._started_at is None:
            return float(self.seconds)
        return max(0.0, self.seconds - (self._clock() - self._started_at))


class ExamSession:
    """State machine for one exam attempt: IN_PROGRESS -> GRADING -> GRADED.

    Submit and time-up both go through submit_or_expire(); whichever gets
    there first grades the attempt and the other gets no effect back.
    """

    def __init__(
        self,
        questions: Sequence[Question],
        clock: Callable[[], float] = time.monotonic,
        on_graded: Optional[Callable[[ExamResult], object]] = None,
    ):
        self.questions = list(questions)
        self.attempt = ExamAttempt(len(self.questions))
        self.state = SessionState.IN_PROGRESS
        self.result: Optional[ExamResult] = None
        self.countdown: Optional[Countdown] = None
        self._clock = clock
        self._started_at = clock()
        self._on_graded = on_graded
        self._lock = threading.Lock()

    def start_countdown(self, seconds: float, timer_factory=threading.Timer) -> Countdown:
        self.countdown = Countdown(
            seconds,
            lambda: self.submit_or_expire(SessionEvent.EXPIRE),
            clock=self._clock,
            timer_factory=timer_factory,
        )
        self.countdown.start()
        return self.countdown

    def elapsed_ms(self) -> int:
        return int((self._clock() - self._started_at) * 1000)

    def toggle(self, question_index: int, option_index: int) -> bool:
        """Toggle an option; ignored once grading has started."""
        with self._lock:
            if self.state is not SessionState.IN_PROGRESS:
                return False
            self.attempt.toggle(question_index, option_index)
            return True

    def submit_or_expire(
        self,
        event: SessionEvent,
        time_elapsed: Optional[int] = None,
    ) -> tuple[SessionState, Optional[ExamResult]]:
        """Single transition for both submit and time-up.

        Returns the new state and the grading result, which is only ever
        returned to one caller per session. A manual submit with unanswered
        questions leaves the session in progress.
        """
        event = SessionEvent(event)
        with self._lock:
            if self.state is not SessionState.IN_PROGRESS:
                return self.state, None
            if event is SessionEvent.SUBMIT and not self.attempt.is_complete():
                return self.state, None
            self.state = SessionState.GRADING
            selections = {i: set(s) for i, s in self.attempt.selections.items()}

        if time_elapsed is None:
            time_elapsed = self.elapsed_ms()
        try:
            score = grade(self.questions, selections)
        except Exception:
            with self._lock:
                self.state = SessionState.IN_PROGRESS
            logger.exception("Grading failed on %s, exam left in progress", event.value)
            raise
        result = ExamResult(score=score, time_elapsed=time_elapsed, event=event)

        with self._lock:
            self.result = result
            self.state = SessionState.GRADED
        if self.countdown is not None:
            self.countdown.cancel()
        logger.info(
            "Exam graded on %s: %d/%d in %d ms",
            event.value, result.score.correct_answers, result.score.total_questions, time_elapsed,
        )
        if self._on_graded is not None:
            self._on_graded(result)
        return SessionState.GRADED, result
