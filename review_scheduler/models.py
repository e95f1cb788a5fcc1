from .data.models import CardSchedule, Flashcard, ReviewLog, StudySession  # noqa: F401
