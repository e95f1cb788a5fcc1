import math
from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional

from django.utils import timezone

from .enums import CardClass, PRIORITY_ORDER, Priority
from .state import CardScheduleState, CardStats
from ..config import (
    BATCH_TIERS,
    DEFAULT_EASINESS_FACTOR,
    FAST_RESPONSE_MS,
    FIRST_INTERVAL_DAYS,
    LAPSE_INTERVAL_DAYS,
    MASTERED_INTERVAL_DAYS,
    MAX_BATCH_SIZE,
    MAX_QUALITY,
    MIN_EASINESS_FACTOR,
    MIN_QUALITY,
    PASSING_QUALITY,
    QUALITY_FOR,
    SECOND_INTERVAL_DAYS,
)
from ..errors import ValidationError
from ..utils.time import to_local_date


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def validate_quality(quality) -> int:
    if isinstance(quality, bool) or not isinstance(quality, int):
        raise ValidationError(f"quality must be an integer, got {quality!r}")
    if not MIN_QUALITY <= quality <= MAX_QUALITY:
        raise ValidationError(
            f"quality must be between {MIN_QUALITY} and {MAX_QUALITY}, got {quality}"
        )
    return int(quality)


def next_easiness_factor(easiness_factor: float, quality: int) -> float:
    miss = MAX_QUALITY - quality
    return max(
        MIN_EASINESS_FACTOR,
        easiness_factor + 0.1 - miss * (0.08 + miss * 0.02),
    )


def process_review(
    state: CardScheduleState, quality: int, now: Optional[datetime] = None
) -> CardScheduleState:
    """Apply one SM-2 review to ``state`` and return the new state.

    A quality below 3 is a lapse: repetitions and interval reset, but the
    easiness factor is still updated. Otherwise the interval goes 1, 6, then
    grows by the easiness factor the card had before this review.
    """
    quality = validate_quality(quality)
    now = now or timezone.now()

    if quality < PASSING_QUALITY:
        repetitions = 0
        interval = LAPSE_INTERVAL_DAYS
    else:
        repetitions = state.repetitions + 1
        if repetitions == 1:
            interval = FIRST_INTERVAL_DAYS
        elif repetitions == 2:
            interval = SECOND_INTERVAL_DAYS
        else:
            interval = _round_half_up(state.interval * state.easiness_factor)

    return replace(
        state,
        repetitions=repetitions,
        easiness_factor=next_easiness_factor(state.easiness_factor, quality),
        interval=interval,
        next_review_date=now + timedelta(days=interval),
        last_reviewed_at=now,
        last_quality=quality,
        is_new=False,
    )


def initialize_flashcard(flashcard_id, user_id, now: Optional[datetime] = None) -> CardScheduleState:
    return CardScheduleState(
        flashcard_id=flashcard_id,
        user_id=user_id,
        repetitions=0,
        easiness_factor=DEFAULT_EASINESS_FACTOR,
        interval=FIRST_INTERVAL_DAYS,
        next_review_date=now or timezone.now(),  # reviewable immediately
        last_reviewed_at=None,
        last_quality=None,
        is_new=True,
    )


def convert_to_quality_score(is_easy: bool, response_time_ms: Optional[int] = None) -> int:
    # Hard always lands below PASSING_QUALITY, so it is always a lapse.
    if not is_easy:
        return QUALITY_FOR["hard"]
    # 0 means the client did not measure the answer time
    if response_time_ms and response_time_ms < FAST_RESPONSE_MS:
        return QUALITY_FOR["easy_fast"]
    return QUALITY_FOR["easy"]


def get_review_priority(next_review_date: datetime, now: Optional[datetime] = None) -> Priority:
    today = to_local_date(now or timezone.now())
    review_day = to_local_date(next_review_date)
    if review_day < today:
        return Priority.OVERDUE
    if review_day == today:
        return Priority.DUE
    return Priority.UPCOMING


def get_days_since_last_review(
    last_reviewed_at: Optional[datetime], now: Optional[datetime] = None
) -> int:
    if last_reviewed_at is None:
        return 0
    elapsed = (now or timezone.now()) - last_reviewed_at
    return max(0, elapsed.days)


def get_optimal_batch_size(total_due: int) -> int:
    for upper, size in BATCH_TIERS:
        if total_due <= upper:
            return total_due if size is None else size
    return MAX_BATCH_SIZE


def sort_review_queue(items: Iterable) -> List:
    """Overdue first, then due, then upcoming; longest-neglected first within a tier."""
    return sorted(
        items,
        key=lambda item: (PRIORITY_ORDER[Priority(item.priority)], -item.days_since_last_review),
    )


def classify(state: CardScheduleState) -> CardClass:
    if state.is_new:
        return CardClass.NEW
    if state.repetitions < 2:
        return CardClass.LEARNING
    if state.interval >= MASTERED_INTERVAL_DAYS:
        return CardClass.MASTERED
    return CardClass.REVIEW


def calculate_learning_stats(states: Iterable[CardScheduleState]) -> CardStats:
    states = list(states)
    total = len(states)
    if not total:
        return CardStats()

    counts = {card_class: 0 for card_class in CardClass}
    for state in states:
        counts[classify(state)] += 1
    successful = sum(
        1 for s in states if s.last_quality is not None and s.last_quality >= PASSING_QUALITY
    )

    return CardStats(
        total_cards=total,
        new_cards=counts[CardClass.NEW],
        learning_cards=counts[CardClass.LEARNING],
        review_cards=counts[CardClass.REVIEW],
        mastered_cards=counts[CardClass.MASTERED],
        average_easiness_factor=sum(s.easiness_factor for s in states) / total,
        retention_rate=successful / total,
    )


def calculate_current_streak(review_days: Iterable[date]) -> int:
    """Consecutive calendar days with at least one review.

    Counts back from the most recent review day (not from today) and stops at
    the first day without a review. Duplicates and ordering do not matter.
    """
    days = set(review_days)
    if not days:
        return 0

    streak = 0
    pointer = max(days)
    while pointer in days:
        streak += 1
        pointer -= timedelta(days=1)
    return streak


def calculate_session_retention(cards_reviewed: int, cards_correct: int) -> Optional[float]:
    """Share of correct cards in a study session; None when nothing was reviewed."""
    if not cards_reviewed:
        return None
    return cards_correct / cards_reviewed
