"""
AI mock interview endpoints.

Create an interview from a configuration, run text conversation turns
against it, and turn a finished transcript into stored feedback.
"""
import logging
from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from mockprep.core.auth_dependency import get_current_user, get_db, get_llm_provider
from mockprep.core.errors import NotFound
from mockprep.core.rate_limit import check_rate_limit
from mockprep.db.models.interview import AiInterview
from mockprep.llm.provider import LLMProvider
from mockprep.schemas.interview import (
    ConversationRequest,
    ConversationResponse,
    FeedbackCreatedResponse,
    FeedbackRequest,
    FeedbackResponse,
    GenerateInterviewRequest,
    GenerateInterviewResponse,
    InterviewListResponse,
    InterviewResponse,
)
from mockprep.services import session_store
from mockprep.services.interview_service import finalize_interview, start_interview
from mockprep.services.session_conductor import advance

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/interview/ai-mock", tags=["AI Mock Interview"])


def _owned_interview(db: Session, interview_id: str, user_id: str) -> AiInterview:
    interview = session_store.get_interview(db, interview_id, user_id=user_id)
    if interview is None:
        raise NotFound("Interview not found")
    return interview


def _interview_response(db: Session, interview: AiInterview) -> InterviewResponse:
    return InterviewResponse(
        id=interview.id,
        type=interview.type,
        level=interview.level,
        role=interview.role,
        tech_stack=interview.tech_stack,
        questions=interview.questions,
        status=interview.status,
        created_at=interview.created_at,
        has_feedback=session_store.get_feedback(db, interview.id) is not None,
    )


@router.post("/generate", response_model=GenerateInterviewResponse)
def generate_interview(
    payload: GenerateInterviewRequest,
    request: Request,
    user_id: str = Depends(get_current_user),
    db: Session = Depends(get_db),
    provider: LLMProvider = Depends(get_llm_provider),
):
    """
    Generate questions for the chosen configuration and create a pending interview.
    """
    check_rate_limit(request)

    interview = start_interview(
        db,
        provider,
        user_id=user_id,
        interview_type=payload.interview_type,
        level=payload.experience_level,
        role=payload.role,
        tech_stack=payload.tech_stack,
    )
    return GenerateInterviewResponse(interview_id=interview.id)


@router.get("", response_model=InterviewListResponse)
def list_interviews(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(20, ge=1, le=100, description="Items per page"),
    user_id: str = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """List the caller's interviews, newest first."""
    interviews, total = session_store.list_interviews(db, user_id, page=page, page_size=page_size)
    return InterviewListResponse(
        interviews=[_interview_response(db, interview) for interview in interviews],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/{interview_id}", response_model=InterviewResponse)
def get_interview(
    interview_id: str,
    user_id: str = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    interview = _owned_interview(db, interview_id, user_id)
    return _interview_response(db, interview)


@router.post("/conversation", response_model=ConversationResponse)
def conversation_turn(
    payload: ConversationRequest,
    request: Request,
    user_id: str = Depends(get_current_user),
    db: Session = Depends(get_db),
    provider: LLMProvider = Depends(get_llm_provider),
):
    """
    Respond to one candidate utterance.

    The client keeps the question index and transcript; it appends the
    returned message and advances the index when moveToNextQuestion is set.
    """
    check_rate_limit(request)

    interview = _owned_interview(db, payload.interview_id, user_id)
    decision = advance(
        provider,
        interview,
        payload.current_question,
        payload.user_input,
        payload.transcript,
    )
    return ConversationResponse(
        message=decision.message,
        move_to_next_question=decision.move_to_next,
        end_interview=decision.end_interview,
    )


@router.post("/feedback", response_model=FeedbackCreatedResponse, status_code=status.HTTP_200_OK)
def create_feedback(
    payload: FeedbackRequest,
    request: Request,
    user_id: str = Depends(get_current_user),
    db: Session = Depends(get_db),
    provider: LLMProvider = Depends(get_llm_provider),
):
    """
    Evaluate a finished transcript and store the feedback.

    Repeated calls for the same interview return the existing feedback.
    """
    check_rate_limit(request)

    interview = _owned_interview(db, payload.interview_id, user_id)
    feedback = finalize_interview(db, provider, interview, payload.transcript)
    return FeedbackCreatedResponse(feedback_id=feedback.id)


@router.get("/{interview_id}/feedback", response_model=FeedbackResponse)
def get_feedback(
    interview_id: str,
    user_id: str = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    interview = _owned_interview(db, interview_id, user_id)
    feedback = session_store.get_feedback(db, interview.id)
    if feedback is None:
        raise NotFound("Feedback not found")
    return FeedbackResponse.model_validate(feedback)
