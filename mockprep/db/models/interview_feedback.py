from sqlalchemy import Column, String, ForeignKey, Text, DateTime, Float, JSON
from sqlalchemy.sql import func
from mockprep.db.base import Base
from mockprep.db.models.interview import new_id


class InterviewFeedback(Base):
    __tablename__ = "interview_feedback"

    id = Column(String(36), primary_key=True, default=new_id)
    # At most one feedback per interview
    interview_id = Column(String(36), ForeignKey("ai_interviews.id"), nullable=False, unique=True)

    transcript = Column(JSON, nullable=False)  # snapshot at synthesis time
    total_score = Column(Float, nullable=False)
    category_scores = Column(JSON, nullable=False)  # [{name, score, comment}]
    strengths = Column(JSON, nullable=False)
    areas_for_improvement = Column(JSON, nullable=False)
    final_assessment = Column(Text, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
