import uuid

from django.db import models
from django.utils import timezone

from ..config import DEFAULT_EASINESS_FACTOR, FIRST_INTERVAL_DAYS
from ..domain.state import CardScheduleState, StudySessionRecord


class Flashcard(models.Model):
    """Content owned by the notes side; only read here."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    note_id = models.UUIDField(db_index=True)
    question = models.TextField()
    answer = models.TextField()
    created_at = models.DateTimeField(default=timezone.now)


class CardSchedule(models.Model):
    flashcard = models.ForeignKey(
        Flashcard, on_delete=models.CASCADE, related_name="schedules"
    )
    user_id = models.UUIDField()
    repetitions = models.PositiveIntegerField(default=0)
    easiness_factor = models.FloatField(default=DEFAULT_EASINESS_FACTOR)
    interval_days = models.PositiveIntegerField(default=FIRST_INTERVAL_DAYS)
    next_review_at = models.DateTimeField(default=timezone.now)  # UTC
    last_reviewed_at = models.DateTimeField(null=True, blank=True)
    last_quality = models.PositiveSmallIntegerField(null=True, blank=True)
    is_new = models.BooleanField(default=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = (("flashcard", "user_id"),)
        indexes = [
            models.Index(fields=["user_id", "next_review_at"]),
        ]

    def to_state(self) -> CardScheduleState:
        return CardScheduleState(
            flashcard_id=self.flashcard_id,
            user_id=self.user_id,
            repetitions=self.repetitions,
            easiness_factor=self.easiness_factor,
            interval=self.interval_days,
            next_review_date=self.next_review_at,
            last_reviewed_at=self.last_reviewed_at,
            last_quality=self.last_quality,
            is_new=self.is_new,
        )

    def apply_state(self, state: CardScheduleState):
        self.repetitions = state.repetitions
        self.easiness_factor = state.easiness_factor
        self.interval_days = state.interval
        self.next_review_at = state.next_review_date
        self.last_reviewed_at = state.last_reviewed_at
        self.last_quality = state.last_quality
        self.is_new = state.is_new


class ReviewLog(models.Model):
    """Append-only audit of every applied review."""

    flashcard = models.ForeignKey(
        Flashcard, on_delete=models.CASCADE, related_name="review_logs"
    )
    user_id = models.UUIDField()
    quality = models.PositiveSmallIntegerField()
    difficulty = models.CharField(max_length=8)
    response_time_ms = models.PositiveIntegerField(null=True, blank=True)
    idempotency_key = models.CharField(max_length=64, null=True, blank=True)
    reviewed_at = models.DateTimeField(default=timezone.now)

    before_repetitions = models.PositiveIntegerField()
    before_easiness_factor = models.FloatField()
    before_interval_days = models.PositiveIntegerField()
    before_last_quality = models.PositiveSmallIntegerField(null=True, blank=True)
    after_repetitions = models.PositiveIntegerField()
    after_easiness_factor = models.FloatField()
    after_interval_days = models.PositiveIntegerField()
    after_last_quality = models.PositiveSmallIntegerField(null=True, blank=True)
    next_review_at = models.DateTimeField()

    class Meta:
        unique_together = (("user_id", "flashcard", "idempotency_key"),)
        indexes = [
            models.Index(fields=["user_id", "reviewed_at"]),
            models.Index(fields=["user_id", "flashcard", "reviewed_at"]),
        ]


class StudySession(models.Model):
    """One sitting of reviews; counters are filled in when it completes."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user_id = models.UUIDField()
    session_type = models.CharField(max_length=16, default="review")
    note_id = models.UUIDField(null=True, blank=True)
    started_at = models.DateTimeField(default=timezone.now)
    completed_at = models.DateTimeField(null=True, blank=True)
    cards_reviewed = models.PositiveIntegerField(default=0)
    cards_correct = models.PositiveIntegerField(default=0)
    total_time_ms = models.PositiveIntegerField(default=0)
    retention_rate = models.FloatField(null=True, blank=True)

    class Meta:
        indexes = [
            models.Index(fields=["user_id", "started_at"]),
        ]

    def to_record(self) -> StudySessionRecord:
        return StudySessionRecord(
            session_id=self.id,
            user_id=self.user_id,
            session_type=self.session_type,
            note_id=self.note_id,
            started_at=self.started_at,
            completed_at=self.completed_at,
            cards_reviewed=self.cards_reviewed,
            cards_correct=self.cards_correct,
            total_time_ms=self.total_time_ms,
            retention_rate=self.retention_rate,
        )
