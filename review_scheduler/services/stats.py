from django.utils import timezone
import structlog

from ..api.serializers import ScheduleKeySerializer, UserQuerySerializer, validated
from ..data import repos
from ..domain import logic
from ..domain.state import CardProgress
from ..errors import NotFoundError
from ..utils.time import to_local_date

logger = structlog.get_logger()


def get_learning_stats(user_id, clock=timezone.now):
    """Per-learner summary built from schedule rows and the review log.

    Card classes, retention and average easiness come from
    ``calculate_learning_stats``; review counts and the streak come from the
    review log. An account without any reviews reports zero retention, an
    average easiness of 2.5 and no streak.
    """
    user_id = validated(UserQuerySerializer, user_id=user_id)["user_id"]
    now = clock()
    today = to_local_date(now)

    with repos.store_errors("get_learning_stats"):
        states = [sched.to_state() for sched in repos.get_schedules_for_user(user_id)]
        total_reviews = repos.count_reviews(user_id)
        reviews_today = repos.count_reviews(user_id, on_day=today)
        review_days = repos.get_review_days(user_id)

    card_stats = logic.calculate_learning_stats(states)
    stats = {
        "total_reviews": total_reviews,
        "reviews_today": reviews_today,
        "cards_due": sum(1 for s in states if s.next_review_date <= now),
        "new_cards": card_stats.new_cards,
        "learning_cards": card_stats.learning_cards,
        "review_cards": card_stats.review_cards,
        "cards_mastered": card_stats.mastered_cards,
        "retention_rate": card_stats.retention_rate,
        "average_easiness_factor": card_stats.average_easiness_factor,
        "current_streak": logic.calculate_current_streak(review_days),
    }

    logger.info("learning_stats_computed", user_id=str(user_id), **stats)
    return stats


def get_card_progress(flashcard_id, user_id) -> CardProgress:
    """Review history and current schedule of one card for one learner."""
    data = validated(ScheduleKeySerializer, flashcard_id=flashcard_id, user_id=user_id)
    flashcard_id, user_id = data["flashcard_id"], data["user_id"]

    with repos.store_errors("get_card_progress"):
        flashcard = repos.get_flashcard(flashcard_id)
        if flashcard is None:
            raise NotFoundError(f"flashcard {flashcard_id} does not exist")
        summary = repos.get_review_summary(user_id, flashcard_id)
        sched = repos.get_schedule(flashcard_id, user_id)

    schedule = {}
    if sched is not None:
        state = sched.to_state()
        schedule = {
            "repetitions": state.repetitions,
            "easiness_factor": state.easiness_factor,
            "interval": state.interval,
            "next_review_date": state.next_review_date,
            "is_new": state.is_new,
        }
    return CardProgress(
        flashcard_id=flashcard.id,
        user_id=user_id,
        note_id=flashcard.note_id,
        question=flashcard.question,
        answer=flashcard.answer,
        review_count=summary["review_count"],
        last_reviewed_at=summary["last_reviewed_at"],
        **schedule,
    )
