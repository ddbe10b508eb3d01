"""
Session store for interviews and their feedback.

Thin service layer over the SQLAlchemy models. Database errors are rolled
back and surfaced as StoreFailed.
"""
import logging
from typing import List, Optional, Tuple

from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from mockprep.core.errors import StoreFailed
from mockprep.db.models.interview import AiInterview, STATUS_COMPLETED, STATUS_PENDING, new_id
from mockprep.db.models.interview_feedback import InterviewFeedback
from mockprep.schemas.interview import FeedbackRecord, TranscriptTurn

logger = logging.getLogger(__name__)

# Dialects with INSERT ... ON CONFLICT DO NOTHING
_CONFLICT_INSERTS = {
    "postgresql": postgresql_insert,
    "sqlite": sqlite_insert,
}


def create_interview(
    db: Session,
    user_id: str,
    interview_type: str,
    level: str,
    role: str,
    tech_stack: List[str],
    questions: List[str],
) -> AiInterview:
    """Persist a new pending interview."""
    interview = AiInterview(
        user_id=user_id,
        type=interview_type,
        level=level,
        role=role,
        tech_stack=list(tech_stack),
        questions=list(questions),
        status=STATUS_PENDING,
    )
    try:
        db.add(interview)
        db.commit()
        db.refresh(interview)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to create interview: {e}", exc_info=True)
        raise StoreFailed("Failed to create interview") from e

    logger.info(f"Interview created: interview_id={interview.id}, user_id={user_id}, questions={len(questions)}")
    return interview


def get_interview(db: Session, interview_id: str, user_id: Optional[str] = None) -> Optional[AiInterview]:
    """
    Fetch an interview by id.

    When ``user_id`` is given, an interview owned by someone else is treated
    as missing.
    """
    interview = db.query(AiInterview).filter(AiInterview.id == interview_id).first()
    if interview is None:
        return None
    if user_id is not None and interview.user_id != user_id:
        logger.info(f"Interview {interview_id} requested by non-owner {user_id}")
        return None
    return interview


def list_interviews(db: Session, user_id: str, page: int = 1, page_size: int = 20) -> Tuple[List[AiInterview], int]:
    """Caller's interviews, newest first, with the total count."""
    query = db.query(AiInterview).filter(AiInterview.user_id == user_id)
    total = query.count()
    interviews = (
        query.order_by(AiInterview.created_at.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return interviews, total


def get_feedback(db: Session, interview_id: str) -> Optional[InterviewFeedback]:
    return db.query(InterviewFeedback).filter(InterviewFeedback.interview_id == interview_id).first()


def create_feedback(
    db: Session,
    interview_id: str,
    record: FeedbackRecord,
    transcript: List[TranscriptTurn],
) -> InterviewFeedback:
    """
    Store feedback for an interview, at most once.

    Uses a single INSERT ... ON CONFLICT (interview_id) DO NOTHING where the
    dialect supports it, otherwise relies on the unique constraint. Either way
    a second call returns the record stored by the first.
    """
    values = {
        "id": new_id(),
        "interview_id": interview_id,
        "transcript": [turn.model_dump() for turn in transcript],
        "total_score": record.total_score,
        "category_scores": [category.model_dump() for category in record.category_scores],
        "strengths": list(record.strengths),
        "areas_for_improvement": list(record.areas_for_improvement),
        "final_assessment": record.final_assessment,
    }

    dialect = db.get_bind().dialect.name
    try:
        if dialect in _CONFLICT_INSERTS:
            stmt = (
                _CONFLICT_INSERTS[dialect](InterviewFeedback)
                .values(**values)
                .on_conflict_do_nothing(index_elements=["interview_id"])
            )
            db.execute(stmt)
            db.commit()
        else:
            try:
                db.add(InterviewFeedback(**values))
                db.commit()
            except IntegrityError:
                db.rollback()
                logger.info(f"Feedback already exists for interview {interview_id}")

        feedback = get_feedback(db, interview_id)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to store feedback for interview {interview_id}: {e}", exc_info=True)
        raise StoreFailed("Failed to save feedback") from e

    if feedback is None:
        raise StoreFailed("Failed to save feedback")

    if feedback.id == values["id"]:
        logger.info(f"Feedback created: feedback_id={feedback.id}, interview_id={interview_id}")
    else:
        logger.info(f"Feedback already existed: feedback_id={feedback.id}, interview_id={interview_id}")
    return feedback


def complete_interview(db: Session, interview_id: str) -> None:
    """Mark an interview completed. Only call after create_feedback succeeded."""
    try:
        updated = (
            db.query(AiInterview)
            .filter(AiInterview.id == interview_id, AiInterview.status == STATUS_PENDING)
            .update({AiInterview.status: STATUS_COMPLETED}, synchronize_session="fetch")
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to complete interview {interview_id}: {e}", exc_info=True)
        raise StoreFailed("Failed to update interview") from e

    if updated:
        logger.info(f"Interview completed: interview_id={interview_id}")
