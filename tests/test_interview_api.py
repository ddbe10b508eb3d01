"""
Integration tests for the AI mock interview endpoints.
"""
import json
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from mockprep.main import app
from mockprep.core import config
from mockprep.core.auth_dependency import get_db
from mockprep.core.rate_limit import rate_limit_store
from mockprep.core.security import create_access_token
from mockprep.db.base import Base
import mockprep.db.models  # noqa: F401  (register tables)
from mockprep.services.question_generator import DEFAULT_QUESTIONS
from mockprep.services.session_conductor import WRAP_UP_MESSAGE
from fakes import EIGHT_QUESTIONS, FakeLLMProvider, sample_feedback_json


# Setup in-memory SQLite database for testing
TEST_DATABASE_URL = "sqlite:///:memory:"
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

BASE = "/api/interview/ai-mock"

GENERATE_PAYLOAD = {
    "interviewType": "technical",
    "experienceLevel": "senior",
    "role": "software-engineer",
    "techStack": ["python", "docker"],
}


def override_get_db():
    """Override get_db dependency for testing."""
    db = TestSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="function", autouse=True)
def setup_app():
    """Fresh tables, rate limits and LLM for each test."""
    app.dependency_overrides[get_db] = override_get_db
    Base.metadata.create_all(bind=test_engine)
    rate_limit_store.clear()
    app.state.llm_provider = FakeLLMProvider()
    yield
    app.state.llm_provider = None
    app.dependency_overrides.pop(get_db, None)
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def llm():
    return app.state.llm_provider


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {create_access_token({'sub': 'user_1'})}"}


@pytest.fixture
def other_headers():
    return {"Authorization": f"Bearer {create_access_token({'sub': 'user_2'})}"}


@pytest.fixture
def interview_id(client, llm, auth_headers):
    llm.responses.append(json.dumps(EIGHT_QUESTIONS))
    response = client.post(f"{BASE}/generate", json=GENERATE_PAYLOAD, headers=auth_headers)
    assert response.status_code == 200
    return response.json()["interviewId"]


def _six_turns():
    return [
        {"role": "interviewer", "content": EIGHT_QUESTIONS[0]},
        {"role": "candidate", "content": "The GIL serialises bytecode execution."},
        {"role": "interviewer", "content": "How does that affect I/O bound threads?"},
        {"role": "candidate", "content": "They release it while waiting, so they still overlap."},
        {"role": "assistant", "content": EIGHT_QUESTIONS[1]},
        {"role": "user", "content": "A builder stage for wheels and a slim runtime stage."},
    ]


# ============================================
# Auth and validation
# ============================================

def test_requires_token(client):
    response = client.post(f"{BASE}/generate", json=GENERATE_PAYLOAD)
    assert response.status_code == 401
    assert response.json() == {"success": False, "error": "Unauthorized"}


def test_rejects_bad_token(client):
    response = client.get(BASE, headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401


def test_generate_missing_fields(client, llm, auth_headers):
    payload = {k: v for k, v in GENERATE_PAYLOAD.items() if k != "techStack"}
    response = client.post(f"{BASE}/generate", json=payload, headers=auth_headers)

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Missing required fields"}
    assert llm.calls == []


def test_generate_rejects_too_many_technologies(client, auth_headers):
    payload = dict(GENERATE_PAYLOAD, techStack=["a", "b", "c", "d", "e", "f"])
    response = client.post(f"{BASE}/generate", json=payload, headers=auth_headers)
    assert response.status_code == 400


# ============================================
# Interviews
# ============================================

def test_generate_interview(client, llm, interview_id, auth_headers):
    response = client.get(f"{BASE}/{interview_id}", headers=auth_headers)
    data = response.json()

    assert response.status_code == 200
    assert data["role"] == "Software Engineer"
    assert data["techStack"] == ["python", "docker"]
    assert data["questions"] == EIGHT_QUESTIONS
    assert data["status"] == "pending"
    assert data["hasFeedback"] is False
    assert "Generate 8-10 interview questions for a senior Software Engineer position" in llm.prompts[0]


def test_generate_with_unusable_output_uses_defaults(client, llm, auth_headers):
    llm.responses.append("I'm sorry, I can't help with that.")
    response = client.post(f"{BASE}/generate", json=GENERATE_PAYLOAD, headers=auth_headers)
    interview_id = response.json()["interviewId"]

    data = client.get(f"{BASE}/{interview_id}", headers=auth_headers).json()
    assert data["questions"] == DEFAULT_QUESTIONS


def test_generate_llm_failure(client, llm, auth_headers):
    llm.responses.append(TimeoutError("timed out"))
    response = client.post(f"{BASE}/generate", json=GENERATE_PAYLOAD, headers=auth_headers)

    assert response.status_code == 502
    assert response.json()["success"] is False
    assert client.get(BASE, headers=auth_headers).json()["total"] == 0


def test_generate_without_llm_configured(client, auth_headers):
    app.state.llm_provider = None
    response = client.post(f"{BASE}/generate", json=GENERATE_PAYLOAD, headers=auth_headers)
    assert response.status_code == 502
    assert response.json()["error"] == "AI service is not configured"


def test_interview_hidden_from_other_users(client, interview_id, other_headers):
    response = client.get(f"{BASE}/{interview_id}", headers=other_headers)
    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Interview not found"}


def test_list_interviews(client, interview_id, auth_headers, other_headers):
    data = client.get(BASE, headers=auth_headers).json()
    assert data["total"] == 1
    assert data["interviews"][0]["id"] == interview_id
    assert data["page"] == 1

    assert client.get(BASE, headers=other_headers).json()["total"] == 0


def test_generate_rate_limited(client, llm, auth_headers, monkeypatch):
    monkeypatch.setattr(config, "RATE_LIMIT_MAX_REQUESTS", 2)
    llm.responses.extend([json.dumps(EIGHT_QUESTIONS)] * 2)

    for _ in range(2):
        assert client.post(f"{BASE}/generate", json=GENERATE_PAYLOAD, headers=auth_headers).status_code == 200
    response = client.post(f"{BASE}/generate", json=GENERATE_PAYLOAD, headers=auth_headers)

    assert response.status_code == 429
    assert response.json()["success"] is False


# ============================================
# Conversation
# ============================================

def test_conversation_turn(client, llm, interview_id, auth_headers):
    llm.responses.append("Can you give a concrete example? STAY_ON_CURRENT")
    response = client.post(
        f"{BASE}/conversation",
        json={
            "interviewId": interview_id,
            "userInput": "It limits CPU parallelism.",
            "currentQuestion": 0,
            "transcript": [{"role": "interviewer", "content": EIGHT_QUESTIONS[0]}],
        },
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "message": "Can you give a concrete example?",
        "moveToNextQuestion": False,
        "endInterview": False,
    }


def test_conversation_unknown_interview(client, auth_headers):
    response = client.post(
        f"{BASE}/conversation",
        json={"interviewId": "missing", "userInput": "hi", "currentQuestion": 0, "transcript": []},
        headers=auth_headers,
    )
    assert response.status_code == 404


def test_conversation_llm_failure(client, llm, interview_id, auth_headers):
    llm.responses.append(ConnectionError("reset"))
    response = client.post(
        f"{BASE}/conversation",
        json={"interviewId": interview_id, "userInput": "hi", "currentQuestion": 0, "transcript": []},
        headers=auth_headers,
    )
    assert response.status_code == 502
    assert response.json() == {"success": False, "error": "Failed to process conversation"}


# ============================================
# Feedback
# ============================================

def test_full_interview_flow(client, llm, interview_id, auth_headers):
    """Last question, wrap-up, feedback, and idempotent re-submit."""
    transcript = _six_turns()

    llm.responses.append("Thank you, that's a thorough answer. MOVE_TO_NEXT")
    last = client.post(
        f"{BASE}/conversation",
        json={
            "interviewId": interview_id,
            "userInput": "Separate liveness and readiness probes with short timeouts.",
            "currentQuestion": 7,
            "transcript": transcript,
        },
        headers=auth_headers,
    ).json()
    assert last["moveToNextQuestion"] is True
    assert "MOVE_TO_NEXT" not in last["message"]

    calls_before_wrap_up = len(llm.calls)
    wrap_up = client.post(
        f"{BASE}/conversation",
        json={
            "interviewId": interview_id,
            "userInput": "Thanks!",
            "currentQuestion": 8,
            "transcript": transcript,
        },
        headers=auth_headers,
    ).json()
    assert wrap_up == {
        "success": True,
        "message": WRAP_UP_MESSAGE,
        "moveToNextQuestion": False,
        "endInterview": True,
    }
    assert len(llm.calls) == calls_before_wrap_up

    llm.responses.append(sample_feedback_json())
    created = client.post(
        f"{BASE}/feedback",
        json={"interviewId": interview_id, "transcript": transcript},
        headers=auth_headers,
    )
    assert created.status_code == 200
    feedback_id = created.json()["feedbackId"]

    feedback = client.get(f"{BASE}/{interview_id}/feedback", headers=auth_headers).json()
    assert feedback["id"] == feedback_id
    assert 0 <= feedback["totalScore"] <= 100
    assert len(feedback["categoryScores"]) == 3
    assert feedback["strengths"] and feedback["areasForImprovement"] and feedback["finalAssessment"]
    assert [turn["role"] for turn in feedback["transcript"]] == ["interviewer", "candidate"] * 3

    interview = client.get(f"{BASE}/{interview_id}", headers=auth_headers).json()
    assert interview["status"] == "completed"
    assert interview["hasFeedback"] is True

    # Re-submitting returns the stored feedback without another LLM call
    calls_before_resubmit = len(llm.calls)
    again = client.post(
        f"{BASE}/feedback",
        json={"interviewId": interview_id, "transcript": transcript},
        headers=auth_headers,
    )
    assert again.json()["feedbackId"] == feedback_id
    assert len(llm.calls) == calls_before_resubmit


def test_feedback_with_unparseable_output_uses_default(client, llm, interview_id, auth_headers):
    llm.responses.append("Overall a good interview, I'd say 80/100.")
    client.post(
        f"{BASE}/feedback",
        json={"interviewId": interview_id, "transcript": _six_turns()},
        headers=auth_headers,
    )

    feedback = client.get(f"{BASE}/{interview_id}/feedback", headers=auth_headers).json()
    assert feedback["totalScore"] == 70
    assert [c["name"] for c in feedback["categoryScores"]] == [
        "Technical Knowledge", "Communication", "Problem-Solving"
    ]


def test_feedback_llm_failure_keeps_interview_pending(client, llm, interview_id, auth_headers):
    llm.responses.append(TimeoutError("timed out"))
    response = client.post(
        f"{BASE}/feedback",
        json={"interviewId": interview_id, "transcript": _six_turns()},
        headers=auth_headers,
    )

    assert response.status_code == 502
    assert response.json() == {"success": False, "error": "Failed to generate feedback"}
    assert client.get(f"{BASE}/{interview_id}", headers=auth_headers).json()["status"] == "pending"
    assert client.get(f"{BASE}/{interview_id}/feedback", headers=auth_headers).status_code == 404


def test_feedback_requires_transcript(client, llm, interview_id, auth_headers):
    response = client.post(
        f"{BASE}/feedback",
        json={"interviewId": interview_id, "transcript": []},
        headers=auth_headers,
    )
    assert response.status_code == 400
    # Only the question generation call
    assert len(llm.calls) == 1


def test_feedback_not_found_before_interview_ends(client, interview_id, auth_headers):
    response = client.get(f"{BASE}/{interview_id}/feedback", headers=auth_headers)
    assert response.status_code == 404
    assert response.json()["error"] == "Feedback not found"


# ============================================
# System
# ============================================

def test_health(client):
    data = client.get("/system/health").json()
    assert data["status"] == "ok"
    assert data["database"] == "connected"
    assert data["llm"] == "configured"


def test_health_degraded_without_llm(client):
    app.state.llm_provider = None
    data = client.get("/system/health").json()
    assert data["status"] == "degraded"
    assert data["llm"] == "missing"
