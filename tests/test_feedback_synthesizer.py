"""
Tests for feedback synthesis and its parsing fallbacks.
"""
import json
import pytest

from mockprep.core.errors import FeedbackGenerationFailed, ValidationFailed
from mockprep.schemas.interview import FeedbackRecord, TranscriptTurn
from mockprep.services.feedback_synthesizer import (
    build_feedback_prompt,
    default_feedback,
    parse_feedback,
    synthesize,
)
from fakes import FakeLLMProvider, make_interview, sample_feedback_json


TRANSCRIPT = [
    TranscriptTurn(role="interviewer", content="Explain the Python GIL."),
    TranscriptTurn(role="candidate", content="It serialises bytecode execution across threads."),
]


def test_parse_clean_json():
    record = parse_feedback(sample_feedback_json())
    assert record.total_score == 82
    assert [c.name for c in record.category_scores] == ["Technical Knowledge", "Communication", "Problem-Solving"]
    assert record.strengths == ["Docker fundamentals", "Structured answers"]
    assert record.areas_for_improvement == ["Go deeper on profiling tools"]
    assert record.final_assessment.startswith("A capable senior candidate")


def test_parse_object_surrounded_by_prose():
    text = "Here is my evaluation:\n```json\n" + sample_feedback_json(total_score=64) + "\n```\nHope this helps {:}"
    record = parse_feedback(text)
    assert record.total_score == 64
    assert len(record.category_scores) == 3
    assert record.final_assessment == "A capable senior candidate with room to deepen performance work."


def test_parse_garbage_returns_default():
    record = parse_feedback("The candidate did fine overall.")
    assert record == default_feedback()
    assert record.total_score == 70
    assert len(record.category_scores) == 3
    assert len(record.strengths) == 3
    assert len(record.areas_for_improvement) == 3


def test_parse_incomplete_object_returns_default():
    record = parse_feedback(json.dumps({"totalScore": 90, "strengths": ["Great"]}))
    assert record == default_feedback()


def test_scores_are_clamped():
    text = sample_feedback_json(
        total_score=140,
        categoryScores=[
            {"name": "Technical Knowledge", "score": -5, "comment": ""},
            {"name": "Communication", "score": 101, "comment": ""},
            {"name": "Problem-Solving", "score": 50, "comment": ""},
        ],
    )
    record = parse_feedback(text)
    assert record.total_score == 100
    assert [c.score for c in record.category_scores] == [0, 100, 50]


def test_default_feedback_is_complete():
    record = default_feedback()
    assert isinstance(record, FeedbackRecord)
    dumped = record.model_dump(by_alias=True)
    assert set(dumped) == {"totalScore", "categoryScores", "strengths", "areasForImprovement", "finalAssessment"}


def test_prompt_contains_questions_and_transcript():
    interview = make_interview(questions=["Q one?", "Q two?"])
    prompt = build_feedback_prompt(interview, TRANSCRIPT)
    assert "1. Q one?\n2. Q two?" in prompt
    assert "INTERVIEWER: Explain the Python GIL." in prompt
    assert "CANDIDATE: It serialises bytecode execution across threads." in prompt
    assert "senior Software Engineer position" in prompt
    assert "python, docker" in prompt


def test_synthesize_requests_json_output():
    provider = FakeLLMProvider([sample_feedback_json()])
    record = synthesize(provider, make_interview(), TRANSCRIPT)

    assert record.total_score == 82
    assert provider.calls[0]["json_output"] is True
    assert provider.calls[0]["max_tokens"] == 2048


def test_synthesize_provider_failure():
    provider = FakeLLMProvider([ConnectionError("reset by peer")])
    with pytest.raises(FeedbackGenerationFailed):
        synthesize(provider, make_interview(), TRANSCRIPT)


def test_synthesize_unparseable_output_never_raises():
    provider = FakeLLMProvider(["<html>502 Bad Gateway</html>"])
    assert synthesize(provider, make_interview(), TRANSCRIPT) == default_feedback()


def test_synthesize_preconditions():
    provider = FakeLLMProvider()
    with pytest.raises(ValidationFailed):
        synthesize(provider, make_interview(), [])
    with pytest.raises(ValidationFailed):
        synthesize(provider, make_interview(questions=[]), TRANSCRIPT)
    assert provider.calls == []
