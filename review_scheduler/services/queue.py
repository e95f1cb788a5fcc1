from django.utils import timezone
import structlog

from ..api.serializers import ReviewQueueQuerySerializer, validated
from ..data import repos
from ..domain import logic
from ..domain.state import ReviewQueueItem
from ..utils.time import to_local_iso

logger = structlog.get_logger()


def _to_queue_item(sched, now):
    state = sched.to_state()
    flashcard = sched.flashcard
    return ReviewQueueItem(
        flashcard_id=flashcard.id,
        note_id=flashcard.note_id,
        question=flashcard.question,
        answer=flashcard.answer,
        next_review_date=state.next_review_date,
        priority=logic.get_review_priority(state.next_review_date, now),
        days_since_last_review=logic.get_days_since_last_review(state.last_reviewed_at, now),
        repetitions=state.repetitions,
        easiness_factor=state.easiness_factor,
        interval=state.interval,
        is_new=state.is_new,
    )


def get_review_queue(user_id, note_id=None, limit=None, clock=timezone.now):
    """Due cards for one learner, most urgent first.

    Without an explicit ``limit`` the queue is cut to the batch size the
    engine recommends for the number of due cards. Returns ``[]`` when
    nothing is due.
    """
    data = validated(ReviewQueueQuerySerializer, user_id=user_id, note_id=note_id, limit=limit)
    user_id, note_id, limit = data["user_id"], data.get("note_id"), data.get("limit")
    now = clock()

    with repos.store_errors("get_review_queue"):
        due = repos.get_due_schedules(user_id, now, note_id=note_id)

    total_due = len(due)
    if limit is None:
        limit = logic.get_optimal_batch_size(total_due)

    queue = logic.sort_review_queue(_to_queue_item(sched, now) for sched in due)[:limit]

    logger.info("review_queue_built",
        user_id=str(user_id),
        note_id=str(note_id) if note_id else None,
        total_due=total_due,
        limit=limit,
        card_count=len(queue),
        as_of_utc=now.isoformat(),
        as_of_local=to_local_iso(now),
    )
    return queue
