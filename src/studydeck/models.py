"""Data classes for the study domain model."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class ReviewBucket(str, Enum):
    NEW = "New"
    NOW = "Now"
    TOMORROW = "Tomorrow"
    NEXT_WEEK = "Next Week"


# Display order for bucket groupings
BUCKET_ORDER = (
    ReviewBucket.NEW,
    ReviewBucket.NOW,
    ReviewBucket.TOMORROW,
    ReviewBucket.NEXT_WEEK,
)


@dataclass
class Card:
    id: int
    topic: str
    front_text: Optional[str] = None
    back_text: Optional[str] = None
    front_image: Optional[str] = None
    back_image: Optional[str] = None
    grade: float = 0.0
    attempts: int = 0
    user_id: Optional[str] = None
    is_hidden: bool = False


@dataclass
class Option:
    text: str
    correct: bool = False


@dataclass
class Question:
    id: int
    text: str
    options: list[Option] = field(default_factory=list)
    exam_type: str = ""
    exam_number: int = 0
    user_id: Optional[str] = None
    is_hidden: bool = False


@dataclass(frozen=True)
class Score:
    correct_answers: int
    total_questions: int

    @property
    def is_perfect(self) -> bool:
        return self.correct_answers == self.total_questions


@dataclass(frozen=True)
class ExamRecord:
    """Best-of record kept per (user, exam type, exam number)."""
    score: int
    time_elapsed: int
    tries: int = 1
