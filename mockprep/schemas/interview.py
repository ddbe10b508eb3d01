"""
Pydantic schemas for AI mock interview endpoints.

Field aliases keep the camelCase JSON contract used by the web client
(``interviewId``, ``techStack``, ``totalScore`` ...); services construct the
models with the snake_case names.
"""
import logging
from typing import Optional, List, Literal
from datetime import datetime
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

InterviewType = Literal["technical", "behavioral", "mixed"]
ExperienceLevel = Literal["entry", "intermediate", "senior"]

# Voice SDK and legacy transcripts use other names for the two speakers
ROLE_ALIASES = {
    "interviewer": "interviewer",
    "assistant": "interviewer",
    "ai": "interviewer",
    "candidate": "candidate",
    "user": "candidate",
}


def clamp_score(value: float, field_name: str = "score") -> float:
    """Clamp an LLM-reported score into [0, 100], logging when it was out of range."""
    clamped = max(0.0, min(100.0, float(value)))
    if clamped != float(value):
        logger.warning(f"Clamped out-of-range {field_name}: {value} -> {clamped}")
    return clamped


class TranscriptTurn(BaseModel):
    """One spoken turn of the interview."""
    role: Literal["interviewer", "candidate"] = Field(..., description="Who spoke")
    content: str = Field(..., description="What was said")

    @field_validator("role", mode="before")
    @classmethod
    def normalize_role(cls, value):
        if isinstance(value, str):
            return ROLE_ALIASES.get(value.strip().lower(), value)
        return value


class CategoryScore(BaseModel):
    name: str
    score: float
    comment: str = ""

    @field_validator("score", mode="after")
    @classmethod
    def clamp(cls, value: float) -> float:
        return clamp_score(value, "category score")


class FeedbackRecord(BaseModel):
    """Structured evaluation produced by the feedback synthesizer."""
    total_score: float = Field(..., alias="totalScore", description="Overall score 0-100")
    category_scores: List[CategoryScore] = Field(..., alias="categoryScores")
    strengths: List[str] = Field(...)
    areas_for_improvement: List[str] = Field(..., alias="areasForImprovement")
    final_assessment: str = Field(..., alias="finalAssessment")

    @field_validator("total_score", mode="after")
    @classmethod
    def clamp_total(cls, value: float) -> float:
        return clamp_score(value, "totalScore")

    class Config:
        populate_by_name = True


# ============================================
# Request Models
# ============================================

class GenerateInterviewRequest(BaseModel):
    """Request model for creating an interview."""
    interview_type: InterviewType = Field(..., alias="interviewType")
    experience_level: ExperienceLevel = Field(..., alias="experienceLevel")
    role: str = Field(..., min_length=1, description="Role id or display name, e.g. software-engineer")
    tech_stack: List[str] = Field(..., alias="techStack", min_length=1, max_length=5)

    @field_validator("tech_stack", mode="after")
    @classmethod
    def strip_tech(cls, value: List[str]) -> List[str]:
        cleaned = [tech.strip() for tech in value if tech and tech.strip()]
        if not cleaned:
            raise ValueError("techStack must contain at least one technology")
        return cleaned

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "interviewType": "technical",
                "experienceLevel": "senior",
                "role": "software-engineer",
                "techStack": ["python", "docker"]
            }
        }


class ConversationRequest(BaseModel):
    """One candidate utterance during an interview."""
    interview_id: str = Field(..., alias="interviewId", min_length=1)
    user_input: str = Field(..., alias="userInput", min_length=1)
    current_question: int = Field(..., alias="currentQuestion", ge=0)
    transcript: List[TranscriptTurn] = Field(default_factory=list)

    class Config:
        populate_by_name = True


class FeedbackRequest(BaseModel):
    """Completed transcript submitted for evaluation."""
    interview_id: str = Field(..., alias="interviewId", min_length=1)
    transcript: List[TranscriptTurn] = Field(..., min_length=1)

    class Config:
        populate_by_name = True


# ============================================
# Response Models
# ============================================

class GenerateInterviewResponse(BaseModel):
    success: bool = True
    interview_id: str = Field(..., alias="interviewId")

    class Config:
        populate_by_name = True


class InterviewResponse(BaseModel):
    id: str
    type: str
    level: str
    role: str
    tech_stack: List[str] = Field(..., alias="techStack")
    questions: List[str]
    status: str
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    has_feedback: bool = Field(False, alias="hasFeedback")

    class Config:
        from_attributes = True
        populate_by_name = True


class InterviewListResponse(BaseModel):
    interviews: List[InterviewResponse]
    total: int
    page: int = 1
    page_size: int = Field(20, alias="pageSize")

    class Config:
        populate_by_name = True


class ConversationResponse(BaseModel):
    success: bool = True
    message: str
    move_to_next_question: bool = Field(False, alias="moveToNextQuestion")
    end_interview: bool = Field(False, alias="endInterview")

    class Config:
        populate_by_name = True


class FeedbackCreatedResponse(BaseModel):
    success: bool = True
    feedback_id: str = Field(..., alias="feedbackId")

    class Config:
        populate_by_name = True


class FeedbackResponse(BaseModel):
    id: str
    interview_id: str = Field(..., alias="interviewId")
    transcript: List[TranscriptTurn]
    total_score: float = Field(..., alias="totalScore")
    category_scores: List[CategoryScore] = Field(..., alias="categoryScores")
    strengths: List[str]
    areas_for_improvement: List[str] = Field(..., alias="areasForImprovement")
    final_assessment: str = Field(..., alias="finalAssessment")
    created_at: Optional[datetime] = Field(None, alias="createdAt")

    class Config:
        from_attributes = True
        populate_by_name = True
