"""Review bucket categorization and card selection."""
import random
from typing import Callable, Sequence, TypeVar

from studydeck.models import BUCKET_ORDER, Card, ReviewBucket

T = TypeVar("T")

# Zero-argument callable returning a float in [0, 1), e.g. random.Random(7).random
RandomSource = Callable[[], float]

ALL_CARDS = "all"


def categorize(grade: float, attempts: int) -> ReviewBucket:
    """Map a card's review history to a bucket.

    Args:
        grade: Cumulative grade (0.0 to 1.0 added per attempt)
        attempts: Number of times the card has been reviewed

    Returns:
        NEW when never reviewed, otherwise a bucket picked by the grade
        percentage. 50% and 90% fall into the lower bucket.
    """
    if attempts == 0:
        return ReviewBucket.NEW

    percentage = (grade / attempts) * 100
    if percentage <= 50:
        return ReviewBucket.NOW
    if percentage <= 90:
        return ReviewBucket.TOMORROW
    return ReviewBucket.NEXT_WEEK


def group_by_bucket(cards: Sequence[Card]) -> dict[ReviewBucket, list[Card]]:
    """Partition cards into all four buckets, keeping input order within each."""
    groups = {bucket: [] for bucket in BUCKET_ORDER}
    for card in cards:
        groups[categorize(card.grade, card.attempts)].append(card)
    return groups


def shuffle(items: Sequence[T], rng: RandomSource = random.random) -> list[T]:
    """Return a Fisher-Yates shuffled copy of items."""
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = int(rng() * (i + 1))
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def sample(items: Sequence[T], count: int, rng: RandomSource = random.random) -> list[T]:
    """Shuffle then take at most count items."""
    return shuffle(items, rng)[:max(count, 0)]


def resolve_bucket(bucket) -> ReviewBucket | str:
    """Turn a bucket name or value into a ReviewBucket, or ALL_CARDS."""
    if bucket == ALL_CARDS or isinstance(bucket, ReviewBucket):
        return bucket
    for member in ReviewBucket:
        if bucket in (member.value, member.name):
            return member
    raise ValueError(f"Unknown review bucket: {bucket!r}")


def select_for_review(
    cards: Sequence[Card],
    bucket: ReviewBucket | str,
    count: int,
    rng: RandomSource = random.random,
) -> list[Card]:
    """Draw a shuffled sample of up to count cards from a bucket (or all cards)."""
    bucket = resolve_bucket(bucket)
    if bucket == ALL_CARDS:
        source = list(cards)
    else:
        source = group_by_bucket(cards)[bucket]
    return sample(source, count, rng)
