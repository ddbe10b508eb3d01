"""
Database models module.

This module imports all database models to ensure they are registered with SQLAlchemy's Base.metadata
before table creation.

All models must be imported here to be included in database migrations and table creation.
"""
from mockprep.db.models.interview import AiInterview
from mockprep.db.models.interview_feedback import InterviewFeedback

__all__ = [
    "AiInterview",
    "InterviewFeedback",
]
