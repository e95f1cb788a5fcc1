from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from uuid import UUID

from .enums import Priority
from ..config import DEFAULT_EASINESS_FACTOR


@dataclass(frozen=True)
class CardScheduleState:
    """Scheduling state of one flashcard for one learner.

    ``is_new`` is a one-way flag: it is cleared by the first review and never
    set again, even when a lapse resets ``repetitions`` to zero.
    """

    flashcard_id: UUID
    user_id: UUID
    repetitions: int
    easiness_factor: float
    interval: int
    next_review_date: datetime
    last_reviewed_at: Optional[datetime] = None
    last_quality: Optional[int] = None
    is_new: bool = True

    def snapshot(self) -> dict:
        return {
            "repetitions": self.repetitions,
            "easiness_factor": self.easiness_factor,
            "interval": self.interval,
            "last_quality": self.last_quality,
        }


@dataclass(frozen=True)
class ReviewQueueItem:
    flashcard_id: UUID
    note_id: UUID
    question: str
    answer: str
    next_review_date: datetime
    priority: Priority
    days_since_last_review: int
    repetitions: int = 0
    easiness_factor: float = DEFAULT_EASINESS_FACTOR
    interval: int = 1
    is_new: bool = True


@dataclass(frozen=True)
class CardStats:
    total_cards: int = 0
    new_cards: int = 0
    learning_cards: int = 0
    review_cards: int = 0
    mastered_cards: int = 0
    average_easiness_factor: float = DEFAULT_EASINESS_FACTOR
    retention_rate: float = 0.0


@dataclass(frozen=True)
class ReviewOutcome:
    """Result of one submitted review, as stored."""

    flashcard_id: UUID
    user_id: UUID
    quality: int
    next_review_date: datetime
    interval: int
    idempotent: bool = False


@dataclass(frozen=True)
class StudySessionRecord:
    session_id: UUID
    user_id: UUID
    session_type: str
    note_id: Optional[UUID]
    started_at: datetime
    completed_at: Optional[datetime] = None
    cards_reviewed: int = 0
    cards_correct: int = 0
    total_time_ms: int = 0
    retention_rate: Optional[float] = None


@dataclass(frozen=True)
class CardProgress:
    """Review history and current schedule of one card for one learner.

    Schedule fields are None while the card has not been initialized.
    """

    flashcard_id: UUID
    user_id: UUID
    note_id: UUID
    question: str
    answer: str
    review_count: int
    last_reviewed_at: Optional[datetime] = None
    repetitions: Optional[int] = None
    easiness_factor: Optional[float] = None
    interval: Optional[int] = None
    next_review_date: Optional[datetime] = None
    is_new: Optional[bool] = None
