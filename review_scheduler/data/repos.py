from contextlib import contextmanager

from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import Count, Max
from django.db.models.functions import TruncDate

from ..errors import ConcurrencyConflict, PersistenceError
from .models import CardSchedule, Flashcard, ReviewLog, StudySession


@contextmanager
def store_errors(operation):
    """Translate database failures into scheduler errors."""
    try:
        yield
    except IntegrityError as exc:
        raise ConcurrencyConflict(f"{operation}: conflicting write") from exc
    except DatabaseError as exc:
        raise PersistenceError(f"{operation}: store unavailable") from exc


@contextmanager
def atomic_unit(operation):
    """One all-or-nothing transaction; nothing is visible if the body fails."""
    with store_errors(operation):
        with transaction.atomic():
            yield


# Content store

def get_flashcard(flashcard_id):
    return Flashcard.objects.filter(pk=flashcard_id).first()


def get_note_flashcard_ids(note_id):
    return list(
        Flashcard.objects.filter(note_id=note_id)
        .order_by("created_at")
        .values_list("id", flat=True)
    )


# Schedule store

def get_schedule(flashcard_id, user_id, for_update=False):
    qs = CardSchedule.objects.filter(flashcard_id=flashcard_id, user_id=user_id)
    if for_update:
        # Must run inside atomic_unit
        qs = qs.select_for_update()
    return qs.first()


def create_schedule(state):
    """Insert the default row for a key unless one exists; return (row, created)."""
    return CardSchedule.objects.get_or_create(
        flashcard_id=state.flashcard_id,
        user_id=state.user_id,
        defaults={
            "repetitions": state.repetitions,
            "easiness_factor": state.easiness_factor,
            "interval_days": state.interval,
            "next_review_at": state.next_review_date,
            "last_reviewed_at": state.last_reviewed_at,
            "last_quality": state.last_quality,
            "is_new": state.is_new,
        },
    )


def lock_or_create_schedule(state):
    """
    Fetch the schedule row and lock it for update to avoid lost updates.
    Create it from ``state`` if missing.
    """
    sched = get_schedule(state.flashcard_id, state.user_id, for_update=True)
    if sched is not None:
        return sched, False
    sched, created = create_schedule(state)
    # Lock the just-created row
    return CardSchedule.objects.select_for_update().get(pk=sched.pk), created


def save_schedule(sched, state):
    sched.apply_state(state)
    sched.save(update_fields=[
        "repetitions",
        "easiness_factor",
        "interval_days",
        "next_review_at",
        "last_reviewed_at",
        "last_quality",
        "is_new",
        "updated_at",
    ])
    return sched


def get_due_schedules(user_id, until, note_id=None):
    qs = (
        CardSchedule.objects.select_related("flashcard")
        .filter(user_id=user_id, next_review_at__lte=until)
    )
    if note_id is not None:
        qs = qs.filter(flashcard__note_id=note_id)
    return list(qs.order_by("next_review_at"))


def get_schedules_for_user(user_id):
    return list(CardSchedule.objects.filter(user_id=user_id))


# Audit log

def get_existing_idempotent(user_id, flashcard_id, idem_key):
    if not idem_key:
        return None
    return ReviewLog.objects.filter(
        user_id=user_id, flashcard_id=flashcard_id, idempotency_key=idem_key
    ).first()


def append_review_log(*, before, after, quality, difficulty, response_time_ms, idem_key):
    return ReviewLog.objects.create(
        flashcard_id=after.flashcard_id,
        user_id=after.user_id,
        quality=quality,
        difficulty=difficulty,
        response_time_ms=response_time_ms,
        idempotency_key=idem_key or None,
        reviewed_at=after.last_reviewed_at,
        before_repetitions=before.repetitions,
        before_easiness_factor=before.easiness_factor,
        before_interval_days=before.interval,
        before_last_quality=before.last_quality,
        after_repetitions=after.repetitions,
        after_easiness_factor=after.easiness_factor,
        after_interval_days=after.interval,
        after_last_quality=after.last_quality,
        next_review_at=after.next_review_date,
    )


def count_reviews(user_id, on_day=None):
    qs = ReviewLog.objects.filter(user_id=user_id)
    if on_day is not None:
        qs = qs.filter(reviewed_at__date=on_day)
    return qs.count()


def get_review_days(user_id):
    """Distinct calendar days (in the current time zone) with at least one review."""
    return list(
        ReviewLog.objects.filter(user_id=user_id)
        .annotate(day=TruncDate("reviewed_at"))
        .values_list("day", flat=True)
        .order_by("-day")
        .distinct()
    )


def get_review_summary(user_id, flashcard_id):
    """Review count and latest review time for one card and learner."""
    return ReviewLog.objects.filter(user_id=user_id, flashcard_id=flashcard_id).aggregate(
        review_count=Count("id"),
        last_reviewed_at=Max("reviewed_at"),
    )


# Study sessions

def create_study_session(user_id, started_at, note_id=None, session_type="review"):
    return StudySession.objects.create(
        user_id=user_id,
        note_id=note_id,
        session_type=session_type,
        started_at=started_at,
    )


def get_study_session(session_id, for_update=False):
    qs = StudySession.objects.filter(pk=session_id)
    if for_update:
        qs = qs.select_for_update()
    return qs.first()


def save_study_session(session):
    session.save(update_fields=[
        "completed_at",
        "cards_reviewed",
        "cards_correct",
        "total_time_ms",
        "retention_rate",
    ])
    return session
