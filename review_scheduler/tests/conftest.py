import uuid
from datetime import datetime, timedelta, timezone as dt_timezone

import pytest

from review_scheduler.data.models import CardSchedule, Flashcard

FIXED_NOW = datetime(2024, 5, 15, 12, 0, tzinfo=dt_timezone.utc)


class FrozenClock:
    """Injectable clock that only moves when told to."""

    def __init__(self, now=FIXED_NOW):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture(autouse=True)
def utc_calendar(settings):
    settings.TIME_ZONE = "UTC"


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def now(clock):
    return clock()


@pytest.fixture
def user_id():
    return uuid.uuid4()


@pytest.fixture
def note_id():
    return uuid.uuid4()


@pytest.fixture
def make_flashcard(note_id):
    def _make(question="What is SM-2?", answer="A spaced-repetition algorithm", note=None):
        return Flashcard.objects.create(
            note_id=note or note_id, question=question, answer=answer
        )
    return _make


@pytest.fixture
def flashcard(make_flashcard):
    return make_flashcard()


@pytest.fixture
def make_schedule():
    def _make(flashcard, user_id, next_review_at, **fields):
        fields.setdefault("is_new", fields.get("last_reviewed_at") is None)
        return CardSchedule.objects.create(
            flashcard=flashcard,
            user_id=user_id,
            next_review_at=next_review_at,
            **fields,
        )
    return _make
