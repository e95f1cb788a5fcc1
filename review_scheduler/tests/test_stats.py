import pytest
import logging
from dataclasses import asdict
from datetime import datetime, timedelta, timezone as dt_timezone
import uuid

from review_scheduler.api.serializers import CardProgressSerializer, LearningStatsSerializer
from review_scheduler.errors import NotFoundError, ValidationError
from review_scheduler.services import (
    get_card_progress,
    get_learning_stats,
    initialize_flashcard,
    record_review,
)

logger = logging.getLogger(__name__)


@pytest.mark.django_db
def test_account_without_reviews(user_id, clock):
    stats = get_learning_stats(user_id, clock=clock)

    assert stats == {
        "total_reviews": 0,
        "reviews_today": 0,
        "cards_due": 0,
        "new_cards": 0,
        "learning_cards": 0,
        "review_cards": 0,
        "cards_mastered": 0,
        "retention_rate": 0,
        "average_easiness_factor": 2.5,
        "current_streak": 0,
    }
    logger.info("✓ Passed: empty account stats")


@pytest.mark.django_db
def test_initialized_cards_are_new_and_due(make_flashcard, user_id, clock):
    for i in range(3):
        initialize_flashcard(make_flashcard(question=f"Q{i}").id, user_id, clock=clock)

    stats = get_learning_stats(user_id, clock=clock)
    assert stats["new_cards"] == 3
    assert stats["cards_due"] == 3
    assert stats["total_reviews"] == 0
    assert stats["retention_rate"] == 0
    assert stats["average_easiness_factor"] == pytest.approx(2.5)
    assert stats["current_streak"] == 0


@pytest.mark.django_db
def test_card_classes(make_flashcard, make_schedule, user_id, now, clock):
    reviewed = now - timedelta(days=2)
    make_schedule(make_flashcard(), user_id, now)  # new, due
    make_schedule(make_flashcard(), user_id, now + timedelta(days=1), repetitions=1,
                  last_reviewed_at=reviewed, last_quality=4)                          # learning
    make_schedule(make_flashcard(), user_id, now + timedelta(days=5), repetitions=2,
                  interval_days=6, last_reviewed_at=reviewed, last_quality=5)         # review
    make_schedule(make_flashcard(), user_id, now - timedelta(days=1), repetitions=6,
                  interval_days=30, easiness_factor=2.9,
                  last_reviewed_at=reviewed, last_quality=2)                          # mastered, overdue

    stats = get_learning_stats(user_id, clock=clock)
    assert stats["new_cards"] == 1
    assert stats["learning_cards"] == 1
    assert stats["review_cards"] == 1
    assert stats["cards_mastered"] == 1
    assert stats["cards_due"] == 2
    assert stats["retention_rate"] == pytest.approx(2 / 4)
    assert stats["average_easiness_factor"] == pytest.approx((2.5 * 3 + 2.9) / 4)


@pytest.mark.django_db
def test_review_counts_and_streak(make_flashcard, user_id, clock):
    cards = [make_flashcard(question=f"Q{i}") for i in range(2)]

    # Three consecutive days, two reviews on the last one
    clock.advance(days=-2)
    record_review(cards[0].id, user_id, "easy", 1000, clock=clock)
    clock.advance(days=1)
    record_review(cards[1].id, user_id, "hard", 1000, clock=clock)
    clock.advance(days=1)
    record_review(cards[0].id, user_id, "easy", 1000, clock=clock)
    record_review(cards[1].id, user_id, "easy", 5000, clock=clock)

    stats = get_learning_stats(user_id, clock=clock)
    assert stats["total_reviews"] == 4
    assert stats["reviews_today"] == 2
    assert stats["current_streak"] == 3
    assert stats["retention_rate"] == pytest.approx(1.0)
    logger.info("✓ Passed: streak=%s", stats["current_streak"])


@pytest.mark.django_db
def test_gap_day_breaks_streak(flashcard, user_id, clock):
    start = clock.now
    for day in (0, 1, 3, 4):  # nothing on day 2
        clock.now = start + timedelta(days=day)
        record_review(flashcard.id, user_id, "easy", 1000, clock=clock)

    assert get_learning_stats(user_id, clock=clock)["current_streak"] == 2


@pytest.mark.django_db
def test_streak_survives_until_next_review(flashcard, user_id, clock):
    """The streak counts back from the latest review day, not from today."""
    for _ in range(3):
        record_review(flashcard.id, user_id, "easy", 1000, clock=clock)
        clock.advance(days=1)
    clock.advance(days=4)

    stats = get_learning_stats(user_id, clock=clock)
    assert stats["current_streak"] == 3
    assert stats["reviews_today"] == 0


@pytest.mark.django_db
def test_stats_are_per_learner(flashcard, user_id, clock):
    record_review(flashcard.id, uuid.uuid4(), "easy", 1000, clock=clock)
    assert get_learning_stats(user_id, clock=clock)["total_reviews"] == 0


@pytest.mark.django_db
def test_stats_match_exposed_shape(flashcard, user_id, clock):
    record_review(flashcard.id, user_id, "easy", 1000, clock=clock)
    s = LearningStatsSerializer(data=get_learning_stats(user_id, clock=clock))
    assert s.is_valid(), s.errors


def test_invalid_user_id_rejected(clock):
    with pytest.raises(ValidationError):
        get_learning_stats("", clock=clock)


@pytest.mark.django_db
def test_reviews_today_and_streak_use_local_calendar(settings, make_flashcard, user_id, clock):
    """23:30 and 00:30 in Tokyo are two local days although both fall on one UTC day."""
    settings.TIME_ZONE = "Asia/Tokyo"
    cards = [make_flashcard(question=f"Q{i}") for i in range(2)]

    clock.now = datetime(2024, 5, 15, 14, 30, tzinfo=dt_timezone.utc)  # 23:30 JST
    record_review(cards[0].id, user_id, "easy", 1000, clock=clock)
    clock.advance(hours=1)  # 00:30 JST, 16 May
    record_review(cards[1].id, user_id, "easy", 1000, clock=clock)

    stats = get_learning_stats(user_id, clock=clock)
    assert stats["total_reviews"] == 2
    assert stats["reviews_today"] == 1
    assert stats["current_streak"] == 2
    logger.info("✓ Passed: Tokyo calendar today=%s streak=%s",
                stats["reviews_today"], stats["current_streak"])


@pytest.mark.django_db
def test_same_reviews_on_utc_calendar_are_one_day(make_flashcard, user_id, clock):
    cards = [make_flashcard(question=f"Q{i}") for i in range(2)]

    clock.now = datetime(2024, 5, 15, 14, 30, tzinfo=dt_timezone.utc)
    record_review(cards[0].id, user_id, "easy", 1000, clock=clock)
    clock.advance(hours=1)
    record_review(cards[1].id, user_id, "easy", 1000, clock=clock)

    stats = get_learning_stats(user_id, clock=clock)
    assert stats["reviews_today"] == 2
    assert stats["current_streak"] == 1


@pytest.mark.django_db
def test_progress_of_uninitialized_card(flashcard, user_id):
    progress = get_card_progress(flashcard.id, user_id)

    assert progress.flashcard_id == flashcard.id
    assert progress.note_id == flashcard.note_id
    assert progress.question == flashcard.question
    assert progress.review_count == 0
    assert progress.last_reviewed_at is None
    assert progress.repetitions is None
    assert progress.next_review_date is None
    assert progress.is_new is None


@pytest.mark.django_db
def test_progress_counts_reviews(flashcard, user_id, clock, now):
    record_review(flashcard.id, user_id, "easy", 1000, clock=clock)
    clock.advance(days=1)
    record_review(flashcard.id, user_id, "hard", 1000, clock=clock)
    record_review(flashcard.id, uuid.uuid4(), "easy", 1000, clock=clock)  # another learner

    progress = get_card_progress(flashcard.id, user_id)
    assert progress.review_count == 2
    assert progress.last_reviewed_at == now + timedelta(days=1)
    assert progress.repetitions == 0
    assert progress.interval == 1
    assert progress.is_new is False
    assert progress.next_review_date == now + timedelta(days=2)


@pytest.mark.django_db
def test_progress_of_unknown_card_not_found(user_id):
    with pytest.raises(NotFoundError):
        get_card_progress(uuid.uuid4(), user_id)


@pytest.mark.django_db
def test_progress_matches_exposed_shape(flashcard, user_id, clock):
    record_review(flashcard.id, user_id, "easy", 1000, clock=clock)
    s = CardProgressSerializer(data=asdict(get_card_progress(flashcard.id, user_id)))
    assert s.is_valid(), s.errors
