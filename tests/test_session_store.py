"""
Unit tests for the interview session store.
Tests interview persistence, ownership checks, and at-most-once feedback.
"""
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from mockprep.db.base import Base
import mockprep.db.models  # noqa: F401  (register tables)
from mockprep.db.models.interview import STATUS_COMPLETED, STATUS_PENDING
from mockprep.db.models.interview_feedback import InterviewFeedback
from mockprep.schemas.interview import FeedbackRecord, TranscriptTurn
from mockprep.services import session_store
from fakes import EIGHT_QUESTIONS, sample_feedback_json


# Setup in-memory SQLite database for testing
TEST_DATABASE_URL = "sqlite:///:memory:"
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=test_engine)
    db = TestSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def interview(db):
    return session_store.create_interview(
        db,
        user_id="user_1",
        interview_type="technical",
        level="senior",
        role="Software Engineer",
        tech_stack=["python", "docker"],
        questions=EIGHT_QUESTIONS,
    )


@pytest.fixture
def record():
    return FeedbackRecord.model_validate_json(sample_feedback_json())


@pytest.fixture
def transcript():
    return [
        TranscriptTurn(role="interviewer", content=EIGHT_QUESTIONS[0]),
        TranscriptTurn(role="candidate", content="Only one thread runs Python bytecode at a time."),
    ]


def test_create_interview(db, interview):
    """New interviews are pending and keep their questions in order."""
    assert interview.id
    assert interview.status == STATUS_PENDING
    assert interview.questions == EIGHT_QUESTIONS
    assert interview.tech_stack == ["python", "docker"]
    assert interview.created_at is not None


def test_get_interview_checks_owner(db, interview):
    assert session_store.get_interview(db, interview.id).id == interview.id
    assert session_store.get_interview(db, interview.id, user_id="user_1").id == interview.id
    assert session_store.get_interview(db, interview.id, user_id="user_2") is None
    assert session_store.get_interview(db, "missing") is None


def test_list_interviews_only_returns_own(db, interview):
    for role in ("Data Engineer", "Site Reliability Engineer"):
        session_store.create_interview(db, "user_1", "mixed", "entry", role, ["go"], ["Why Go?"])
    session_store.create_interview(db, "user_2", "behavioral", "entry", "Designer", ["figma"], ["Why?"])

    interviews, total = session_store.list_interviews(db, "user_1", page=1, page_size=2)

    assert total == 3
    assert len(interviews) == 2
    assert all(i.user_id == "user_1" for i in interviews)

    second_page, _ = session_store.list_interviews(db, "user_1", page=2, page_size=2)
    assert len(second_page) == 1


def test_create_feedback(db, interview, record, transcript):
    feedback = session_store.create_feedback(db, interview.id, record, transcript)

    assert feedback.interview_id == interview.id
    assert feedback.total_score == 82
    assert [c["name"] for c in feedback.category_scores] == [
        "Technical Knowledge", "Communication", "Problem-Solving"
    ]
    assert feedback.strengths == ["Docker fundamentals", "Structured answers"]
    assert feedback.transcript[1] == {
        "role": "candidate",
        "content": "Only one thread runs Python bytecode at a time.",
    }
    assert session_store.get_feedback(db, interview.id).id == feedback.id


def test_create_feedback_twice_keeps_first(db, interview, record, transcript):
    """A second write for the same interview returns the stored record unchanged."""
    first = session_store.create_feedback(db, interview.id, record, transcript)
    lower = record.model_copy(update={"total_score": 10.0})
    second = session_store.create_feedback(db, interview.id, lower, transcript)

    assert second.id == first.id
    assert second.total_score == 82
    assert db.query(InterviewFeedback).filter(InterviewFeedback.interview_id == interview.id).count() == 1


def test_complete_interview(db, interview, record, transcript):
    session_store.create_feedback(db, interview.id, record, transcript)
    session_store.complete_interview(db, interview.id)
    # Completing again is a no-op
    session_store.complete_interview(db, interview.id)

    db.refresh(interview)
    assert interview.status == STATUS_COMPLETED
