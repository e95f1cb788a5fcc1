from django.utils import timezone
import structlog

from ..api.serializers import (
    StudySessionCompleteSerializer,
    StudySessionStartSerializer,
    validated,
)
from ..data import repos
from ..domain import logic
from ..domain.state import StudySessionRecord
from ..errors import NotFoundError

logger = structlog.get_logger()


def start_study_session(user_id, note_id=None, clock=timezone.now) -> StudySessionRecord:
    """Open a review session for a learner, optionally scoped to one note."""
    data = validated(StudySessionStartSerializer, user_id=user_id, note_id=note_id)

    with repos.store_errors("start_study_session"):
        session = repos.create_study_session(
            data["user_id"], started_at=clock(), note_id=data.get("note_id")
        )

    logger.info("study_session_started",
        session_id=str(session.id),
        user_id=str(session.user_id),
        note_id=str(session.note_id) if session.note_id else None,
    )
    return session.to_record()


def complete_study_session(
    session_id, cards_reviewed, cards_correct, total_time_ms, clock=timezone.now
) -> StudySessionRecord:
    """Close a session with its final counters.

    The retention rate is ``cards_correct / cards_reviewed``, or None when no
    card was reviewed. Completing an already completed session overwrites the
    counters and the completion time.
    """
    data = validated(
        StudySessionCompleteSerializer,
        session_id=session_id,
        cards_reviewed=cards_reviewed,
        cards_correct=cards_correct,
        total_time_ms=total_time_ms,
    )

    with repos.atomic_unit("complete_study_session"):
        session = repos.get_study_session(data["session_id"], for_update=True)
        if session is None:
            raise NotFoundError(f"study session {data['session_id']} does not exist")
        if session.completed_at is not None:
            logger.warning("study_session_recompleted", session_id=str(session.id))

        session.completed_at = clock()
        session.cards_reviewed = data["cards_reviewed"]
        session.cards_correct = data["cards_correct"]
        session.total_time_ms = data["total_time_ms"]
        session.retention_rate = logic.calculate_session_retention(
            data["cards_reviewed"], data["cards_correct"]
        )
        repos.save_study_session(session)

    logger.info("study_session_completed",
        session_id=str(session.id),
        user_id=str(session.user_id),
        cards_reviewed=session.cards_reviewed,
        cards_correct=session.cards_correct,
        total_time_ms=session.total_time_ms,
        retention_rate=session.retention_rate,
    )
    return session.to_record()
