from django.utils import timezone
import structlog

from ..api.serializers import (
    NoteScheduleSerializer,
    ReviewInSerializer,
    ScheduleKeySerializer,
    validated,
)
from ..data import repos
from ..domain import logic
from ..domain.enums import Difficulty, QUALITY_LABELS, Quality
from ..domain.state import ReviewOutcome
from ..errors import ConcurrencyConflict, NotFoundError, PersistenceError
from ..utils.time import to_local_iso

logger = structlog.get_logger()


def _require_flashcard(flashcard_id):
    flashcard = repos.get_flashcard(flashcard_id)
    if flashcard is None:
        raise NotFoundError(f"flashcard {flashcard_id} does not exist")
    return flashcard


def initialize_flashcard(flashcard_id, user_id, clock=timezone.now):
    """Make a flashcard schedulable for a learner.

    Creates the default state if none exists yet and returns the stored
    state either way; an existing schedule is never reset.
    """
    data = validated(ScheduleKeySerializer, flashcard_id=flashcard_id, user_id=user_id)
    flashcard_id, user_id = data["flashcard_id"], data["user_id"]

    with repos.store_errors("initialize_flashcard"):
        _require_flashcard(flashcard_id)
        defaults = logic.initialize_flashcard(flashcard_id, user_id, now=clock())
        sched, created = repos.create_schedule(defaults)

    if created:
        logger.info("schedule_initialized",
            user_id=str(user_id),
            flashcard_id=str(flashcard_id),
        )
    return sched.to_state()


def initialize_note(note_id, user_id, clock=timezone.now):
    """Initialize every flashcard of a note; return how many were new."""
    data = validated(NoteScheduleSerializer, note_id=note_id, user_id=user_id)
    note_id, user_id = data["note_id"], data["user_id"]

    with repos.store_errors("initialize_note"):
        flashcard_ids = repos.get_note_flashcard_ids(note_id)
        created = 0
        for flashcard_id in flashcard_ids:
            defaults = logic.initialize_flashcard(flashcard_id, user_id, now=clock())
            _, was_created = repos.create_schedule(defaults)
            created += int(was_created)

    logger.info("note_schedules_initialized",
        user_id=str(user_id),
        note_id=str(note_id),
        flashcard_count=len(flashcard_ids),
        created=created,
    )
    return created


def submit_review(
    flashcard_id,
    user_id,
    difficulty,
    response_time_ms=None,
    idempotency_key=None,
    clock=timezone.now,
    initialize_missing=True,
) -> ReviewOutcome:
    data = validated(
        ReviewInSerializer,
        flashcard_id=flashcard_id,
        user_id=user_id,
        difficulty=difficulty,
        response_time_ms=response_time_ms,
        idempotency_key=idempotency_key,
    )
    flashcard_id, user_id = data["flashcard_id"], data["user_id"]
    difficulty = Difficulty(data["difficulty"])
    response_time_ms = data.get("response_time_ms")
    idem = data.get("idempotency_key")

    quality = logic.convert_to_quality_score(difficulty == Difficulty.EASY, response_time_ms)

    logger.info("review_received",
        user_id=str(user_id),
        flashcard_id=str(flashcard_id),
        difficulty=difficulty.value,
        quality=quality,
        quality_label=QUALITY_LABELS[Quality(quality)],
        response_time_ms=response_time_ms,
        idempotency_key=idem,
    )

    with repos.atomic_unit("record_review"):
        _require_flashcard(flashcard_id)

        # Serialize schedule update per (user, flashcard)
        if initialize_missing:
            sched, _ = repos.lock_or_create_schedule(
                logic.initialize_flashcard(flashcard_id, user_id, now=clock())
            )
        else:
            sched = repos.get_schedule(flashcard_id, user_id, for_update=True)
            if sched is None:
                raise NotFoundError(
                    f"no schedule for flashcard {flashcard_id} and user {user_id}"
                )

        # Checked under the row lock so a concurrent duplicate cannot slip in
        existing = repos.get_existing_idempotent(user_id, flashcard_id, idem)
        if existing:
            logger.info("idempotent_reuse",
                user_id=str(user_id),
                flashcard_id=str(flashcard_id),
                next_review_utc=existing.next_review_at.isoformat(),
                next_review_local=to_local_iso(existing.next_review_at),
            )
            return ReviewOutcome(
                flashcard_id=flashcard_id,
                user_id=user_id,
                quality=existing.quality,
                next_review_date=existing.next_review_at,
                interval=existing.after_interval_days,
                idempotent=True,
            )

        before = sched.to_state()
        after = logic.process_review(before, quality, now=clock())
        repos.save_schedule(sched, after)
        repos.append_review_log(
            before=before,
            after=after,
            quality=quality,
            difficulty=difficulty.value,
            response_time_ms=response_time_ms,
            idem_key=idem,
        )

    logger.info("review_scheduled",
        user_id=str(user_id),
        flashcard_id=str(flashcard_id),
        quality=quality,
        repetitions=after.repetitions,
        easiness_factor=round(after.easiness_factor, 4),
        interval_days=after.interval,
        next_review_utc=after.next_review_date.isoformat(),
        next_review_local=to_local_iso(after.next_review_date),
    )

    return ReviewOutcome(
        flashcard_id=flashcard_id,
        user_id=user_id,
        quality=quality,
        next_review_date=after.next_review_date,
        interval=after.interval,
    )


def record_review(
    flashcard_id,
    user_id,
    difficulty,
    response_time_ms=None,
    idempotency_key=None,
    clock=timezone.now,
    initialize_missing=True,
) -> bool:
    """Record one Easy/Hard answer; False means "not recorded, retry".

    Invalid input raises ValidationError and an unknown flashcard raises
    NotFoundError; only retryable store failures are reported as False.
    """
    try:
        submit_review(
            flashcard_id,
            user_id,
            difficulty,
            response_time_ms=response_time_ms,
            idempotency_key=idempotency_key,
            clock=clock,
            initialize_missing=initialize_missing,
        )
    except (PersistenceError, ConcurrencyConflict) as exc:
        logger.warning("review_not_recorded",
            user_id=str(user_id),
            flashcard_id=str(flashcard_id),
            error=str(exc),
            retryable=exc.retryable,
        )
        return False
    return True
