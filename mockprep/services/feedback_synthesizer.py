"""
Feedback synthesis: scores a finished interview transcript with the LLM.

The caller always gets a complete FeedbackRecord. Malformed model output falls
back to extracting the first JSON object and then to a fixed default record;
only a failed LLM call is raised.
"""
import logging
from typing import Any, List, Optional

from pydantic import ValidationError

from mockprep.core.errors import FeedbackGenerationFailed, ValidationFailed
from mockprep.db.models.interview import AiInterview
from mockprep.llm.provider import LLMProvider
from mockprep.llm.router import get_model_for_feature, FEEDBACK
from mockprep.schemas.interview import FeedbackRecord, TranscriptTurn
from mockprep.services.llm_output import extract_balanced, try_parse_json

logger = logging.getLogger(__name__)

FEEDBACK_TEMPERATURE = 0.7
FEEDBACK_MAX_TOKENS = 2048


def default_feedback() -> FeedbackRecord:
    """Feedback returned when the model output cannot be parsed at all."""
    return FeedbackRecord(
        total_score=70,
        category_scores=[
            {"name": "Technical Knowledge", "score": 70, "comment": "Demonstrated basic understanding of required technologies."},
            {"name": "Communication", "score": 75, "comment": "Communicated ideas with reasonable clarity."},
            {"name": "Problem-Solving", "score": 65, "comment": "Showed some problem-solving capability but could improve."},
        ],
        strengths=[
            "Showed enthusiasm for the role",
            "Demonstrated basic technical knowledge",
            "Responded to all questions",
        ],
        areas_for_improvement=[
            "Could provide more detailed technical explanations",
            "Should practice more complex problem scenarios",
            "May benefit from more concise communication",
        ],
        final_assessment="The candidate shows potential but would benefit from additional preparation and practice in technical interviews.",
    )


def format_transcript(transcript: List[TranscriptTurn]) -> str:
    return "\n\n".join(f"{turn.role.upper()}: {turn.content}" for turn in transcript)


def build_feedback_prompt(interview: AiInterview, transcript: List[TranscriptTurn]) -> str:
    questions = "\n".join(f"{i + 1}. {q}" for i, q in enumerate(interview.questions))
    return f"""You are an expert interviewer and hiring manager evaluating an interview for a {interview.level} {interview.role} position.

The interview focused on {interview.type} questions and covered technologies including: {", ".join(interview.tech_stack)}.

Your task is to provide comprehensive feedback on the candidate's performance including:
1. Overall assessment (score out of 100)
2. Scores for different categories (technical knowledge, communication, problem-solving)
3. Key strengths (3-5 points)
4. Areas for improvement (3-5 points)
5. Final assessment summary (2-3 sentences)

Format your response as a valid JSON object with the following structure:
{{
  "totalScore": 85,
  "categoryScores": [
    {{"name": "Technical Knowledge", "score": 80, "comment": "Demonstrated good understanding of core concepts..."}},
    {{"name": "Communication", "score": 90, "comment": "Articulated ideas clearly and concisely..."}},
    {{"name": "Problem-Solving", "score": 85, "comment": "Showed strong analytical thinking..."}}
  ],
  "strengths": ["Strong understanding of fundamental concepts", "Clear and concise communication"],
  "areasForImprovement": ["Could provide more detailed examples", "Consider discussing more advanced topics"],
  "finalAssessment": "Overall, the candidate demonstrated solid skills for the position..."
}}

Be fair but critical in your assessment. Base your evaluation only on the interview transcript.

Here are the questions that were prepared for this interview:
{questions}

Now, here is the full interview transcript:
{format_transcript(transcript)}

Please analyze this interview and provide your feedback in the JSON format described."""


def _to_record(data: Any) -> Optional[FeedbackRecord]:
    if not isinstance(data, dict):
        return None
    try:
        return FeedbackRecord.model_validate(data)
    except ValidationError as e:
        logger.warning(f"Feedback JSON missing or malformed fields: {e.error_count()} errors")
        return None


def parse_feedback(response_text: str) -> FeedbackRecord:
    """Parse model output into a FeedbackRecord, falling back to the default record."""
    record = _to_record(try_parse_json(response_text))
    if record is not None:
        return record

    logger.warning(f"Feedback output was not clean JSON, extracting object: {response_text[:100]!r}")
    record = _to_record(try_parse_json(extract_balanced(response_text, "{", "}")))
    if record is not None:
        return record

    logger.warning("Could not parse feedback from model output, using default feedback")
    return default_feedback()


def synthesize(
    provider: LLMProvider,
    interview: AiInterview,
    transcript: List[TranscriptTurn],
) -> FeedbackRecord:
    """
    Evaluate a completed interview transcript.

    Raises:
        ValidationFailed: if the transcript or the interview's questions are empty
        FeedbackGenerationFailed: if the LLM call itself fails
    """
    if not transcript:
        raise ValidationFailed("Transcript is empty")
    if not interview.questions:
        raise ValidationFailed("Interview has no questions")

    prompt = build_feedback_prompt(interview, transcript)
    model = get_model_for_feature(FEEDBACK)

    try:
        response_text = provider.complete(
            prompt,
            model=model,
            temperature=FEEDBACK_TEMPERATURE,
            max_tokens=FEEDBACK_MAX_TOKENS,
            json_output=True,
        )
    except Exception as e:
        logger.error(f"Feedback generation failed for interview {interview.id}: {type(e).__name__}: {e}", exc_info=True)
        raise FeedbackGenerationFailed() from e

    record = parse_feedback(response_text)
    logger.info(f"Feedback synthesized for interview {interview.id}: totalScore={record.total_score}")
    return record
