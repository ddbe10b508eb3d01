"""
Interview lifecycle orchestration shared by the REST and voice endpoints.
"""
import logging
from typing import List

from sqlalchemy.orm import Session

from mockprep.db.models.interview import AiInterview
from mockprep.db.models.interview_feedback import InterviewFeedback
from mockprep.llm.provider import LLMProvider
from mockprep.schemas.interview import TranscriptTurn
from mockprep.services import session_store
from mockprep.services.feedback_synthesizer import synthesize
from mockprep.services.question_generator import format_role, generate_questions

logger = logging.getLogger(__name__)


def start_interview(
    db: Session,
    provider: LLMProvider,
    user_id: str,
    interview_type: str,
    level: str,
    role: str,
    tech_stack: List[str],
) -> AiInterview:
    """Generate questions and store a new pending interview."""
    questions = generate_questions(provider, interview_type, level, role, tech_stack)
    return session_store.create_interview(
        db,
        user_id=user_id,
        interview_type=interview_type,
        level=level,
        role=format_role(role),
        tech_stack=tech_stack,
        questions=questions,
    )


def finalize_interview(
    db: Session,
    provider: LLMProvider,
    interview: AiInterview,
    transcript: List[TranscriptTurn],
) -> InterviewFeedback:
    """
    Produce and store feedback for a finished interview, then mark it completed.

    If feedback already exists it is returned without calling the LLM. A
    failed synthesis leaves the interview pending.
    """
    existing = session_store.get_feedback(db, interview.id)
    if existing is not None:
        logger.info(f"Feedback already exists for interview {interview.id}, skipping synthesis")
        return existing

    record = synthesize(provider, interview, transcript)
    feedback = session_store.create_feedback(db, interview.id, record, transcript)
    session_store.complete_interview(db, interview.id)
    return feedback
