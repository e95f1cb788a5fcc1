"""Input validation and exposed shapes of the scheduler.

The ``*Serializer`` classes used with ``validated()`` guard every service
entry point. The output serializers (``ReviewQueueItemSerializer``,
``LearningStatsSerializer``, ``StudySessionSerializer``,
``CardProgressSerializer``) describe what the services return; no views are
shipped in this package, so they are the contract an HTTP layer renders
with and are only checked against service results in the test suite.
"""
from rest_framework import serializers

from ..domain.enums import Difficulty, Priority
from ..errors import ValidationError


class UserQuerySerializer(serializers.Serializer):
    user_id = serializers.UUIDField()


class ScheduleKeySerializer(UserQuerySerializer):
    flashcard_id = serializers.UUIDField()


class NoteScheduleSerializer(UserQuerySerializer):
    note_id = serializers.UUIDField()


class ReviewInSerializer(ScheduleKeySerializer):
    difficulty = serializers.ChoiceField(choices=[d.value for d in Difficulty])
    response_time_ms = serializers.IntegerField(min_value=0, required=False, allow_null=True)
    idempotency_key = serializers.CharField(max_length=64, required=False, allow_null=True)


class ReviewQueueQuerySerializer(UserQuerySerializer):
    note_id = serializers.UUIDField(required=False, allow_null=True)
    limit = serializers.IntegerField(min_value=1, required=False, allow_null=True)


class StudySessionStartSerializer(UserQuerySerializer):
    note_id = serializers.UUIDField(required=False, allow_null=True)


class StudySessionCompleteSerializer(serializers.Serializer):
    session_id = serializers.UUIDField()
    cards_reviewed = serializers.IntegerField(min_value=0)
    cards_correct = serializers.IntegerField(min_value=0)
    total_time_ms = serializers.IntegerField(min_value=0)

    def validate(self, attrs):
        if attrs["cards_correct"] > attrs["cards_reviewed"]:
            raise serializers.ValidationError("cards_correct cannot exceed cards_reviewed")
        return attrs


class ReviewQueueItemSerializer(serializers.Serializer):
    flashcard_id = serializers.UUIDField()
    note_id = serializers.UUIDField()
    question = serializers.CharField()
    answer = serializers.CharField()
    next_review_date = serializers.DateTimeField()
    priority = serializers.ChoiceField(choices=[p.value for p in Priority])
    days_since_last_review = serializers.IntegerField()
    repetitions = serializers.IntegerField()
    easiness_factor = serializers.FloatField()
    interval = serializers.IntegerField()
    is_new = serializers.BooleanField()


class LearningStatsSerializer(serializers.Serializer):
    total_reviews = serializers.IntegerField()
    reviews_today = serializers.IntegerField()
    cards_due = serializers.IntegerField()
    new_cards = serializers.IntegerField()
    learning_cards = serializers.IntegerField()
    review_cards = serializers.IntegerField()
    cards_mastered = serializers.IntegerField()
    retention_rate = serializers.FloatField()
    average_easiness_factor = serializers.FloatField()
    current_streak = serializers.IntegerField()


class StudySessionSerializer(serializers.Serializer):
    session_id = serializers.UUIDField()
    user_id = serializers.UUIDField()
    session_type = serializers.CharField()
    note_id = serializers.UUIDField(allow_null=True)
    started_at = serializers.DateTimeField()
    completed_at = serializers.DateTimeField(allow_null=True)
    cards_reviewed = serializers.IntegerField()
    cards_correct = serializers.IntegerField()
    total_time_ms = serializers.IntegerField()
    retention_rate = serializers.FloatField(allow_null=True)


class CardProgressSerializer(serializers.Serializer):
    flashcard_id = serializers.UUIDField()
    user_id = serializers.UUIDField()
    note_id = serializers.UUIDField()
    question = serializers.CharField()
    answer = serializers.CharField()
    review_count = serializers.IntegerField()
    last_reviewed_at = serializers.DateTimeField(allow_null=True)
    repetitions = serializers.IntegerField(allow_null=True)
    easiness_factor = serializers.FloatField(allow_null=True)
    interval = serializers.IntegerField(allow_null=True)
    next_review_date = serializers.DateTimeField(allow_null=True)
    is_new = serializers.BooleanField(allow_null=True)


def validated(serializer_class, **data):
    """Run ``serializer_class`` over ``data`` and return validated_data.

    DRF validation failures are re-raised as the scheduler's ValidationError.
    """
    s = serializer_class(data=data)
    if not s.is_valid():
        raise ValidationError(f"invalid input: {dict(s.errors)}")
    return s.validated_data
