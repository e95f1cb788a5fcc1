from .queue import get_review_queue
from .reviews import initialize_flashcard, initialize_note, record_review, submit_review
from .sessions import complete_study_session, start_study_session
from .stats import get_card_progress, get_learning_stats

__all__ = [
    "complete_study_session",
    "get_card_progress",
    "get_learning_stats",
    "get_review_queue",
    "initialize_flashcard",
    "initialize_note",
    "record_review",
    "start_study_session",
    "submit_review",
]
