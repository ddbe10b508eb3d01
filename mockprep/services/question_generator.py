"""
Question generation for AI mock interviews.

Builds a prompt from the interview configuration, asks the LLM for a JSON
array of questions and recovers a usable list from whatever comes back.
"""
import logging
import re
from typing import List

from mockprep.core.errors import GenerationFailed, ValidationFailed
from mockprep.llm.provider import LLMProvider
from mockprep.llm.router import get_model_for_feature, QUESTION_GENERATION
from mockprep.services.llm_output import iter_balanced, try_parse_json

logger = logging.getLogger(__name__)

DEFAULT_QUESTIONS = [
    "Tell me about yourself and your experience.",
    "What are your strengths and weaknesses?",
]


def format_role(role_id: str) -> str:
    """Turn a role id like ``software-engineer`` into ``Software Engineer``."""
    return " ".join(
        word[:1].upper() + word[1:]
        for word in role_id.strip().split("-")
        if word
    )


def build_question_prompt(interview_type: str, level: str, role: str, tech_stack: List[str]) -> str:
    return f"""Generate 8-10 interview questions for a {level} {format_role(role)} position.
The interview type should focus on {interview_type} questions.
The candidate has experience with: {", ".join(tech_stack)}.

Please return only the questions in a valid JSON array format, like this:
["Question 1", "Question 2", "Question 3"]

The questions should be challenging but appropriate for the experience level."""


def _as_questions(value) -> List[str]:
    """String items of a JSON array; anything else yields no questions."""
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def _questions_from_lines(text: str) -> List[str]:
    questions = []
    for line in text.splitlines():
        stripped = line.strip()
        if not (stripped.startswith('"') or stripped.startswith("- ")):
            continue
        question = re.sub(r"^-\s+", "", stripped)
        question = re.sub(r'^"', "", question)
        question = re.sub(r'",?$', "", question).strip()
        if question:
            questions.append(question)
    return questions


def parse_questions(response_text: str) -> List[str]:
    """
    Recover a question list from raw model output.

    Tries, in order: the first balanced JSON array holding question strings,
    the whole response as JSON, list-looking lines, and finally the default
    question set.
    """
    for candidate in iter_balanced(response_text, "[", "]"):
        questions = _as_questions(try_parse_json(candidate))
        if questions:
            return questions

    questions = _as_questions(try_parse_json(response_text))
    if questions:
        return questions

    logger.warning(f"Question output was not a JSON array, extracting lines: {response_text[:100]!r}")
    questions = _questions_from_lines(response_text or "")
    if questions:
        return questions

    logger.warning("No questions recovered from model output, using default questions")
    return list(DEFAULT_QUESTIONS)


def generate_questions(
    provider: LLMProvider,
    interview_type: str,
    level: str,
    role: str,
    tech_stack: List[str],
) -> List[str]:
    """
    Generate the question list for a new interview.

    Raises:
        ValidationFailed: if a required field is empty
        GenerationFailed: if the LLM call itself fails
    """
    if not interview_type or not level or not role or not role.strip() or not tech_stack:
        raise ValidationFailed()

    prompt = build_question_prompt(interview_type, level, role, tech_stack)
    model = get_model_for_feature(QUESTION_GENERATION)

    try:
        response_text = provider.complete(prompt, model=model, temperature=0.7)
    except Exception as e:
        logger.error(f"Question generation failed: {type(e).__name__}: {e}", exc_info=True)
        raise GenerationFailed() from e

    questions = parse_questions(response_text)
    logger.info(f"Generated {len(questions)} questions for {level} {format_role(role)} ({interview_type})")
    return questions
