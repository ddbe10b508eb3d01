"""
AI mock interview: the configuration a candidate chose and the questions generated for it.
"""
import uuid
from sqlalchemy import Column, String, DateTime, JSON, Index
from sqlalchemy.sql import func
from mockprep.db.base import Base

INTERVIEW_TYPES = ("technical", "behavioral", "mixed")
EXPERIENCE_LEVELS = ("entry", "intermediate", "senior")

STATUS_PENDING = "pending"
STATUS_COMPLETED = "completed"


def new_id() -> str:
    return str(uuid.uuid4())


class AiInterview(Base):
    __tablename__ = "ai_interviews"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String, nullable=False, index=True)  # opaque id from the identity provider
    type = Column(String, nullable=False)  # technical / behavioral / mixed
    level = Column(String, nullable=False)  # entry / intermediate / senior
    role = Column(String, nullable=False)
    tech_stack = Column(JSON, nullable=False, default=list)
    questions = Column(JSON, nullable=False)  # fixed at creation
    status = Column(String, nullable=False, default=STATUS_PENDING)  # pending / completed
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("idx_ai_interviews_user_created", "user_id", "created_at"),
    )
