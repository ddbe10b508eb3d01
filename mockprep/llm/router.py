"""
Model router for selecting the model used by each interview feature.
"""
from mockprep.core import config

QUESTION_GENERATION = "question_generation"
CONVERSATION = "conversation"
FEEDBACK = "feedback"

DEFAULT_MODEL = "gpt-4o-mini"


def get_model_for_feature(feature: str) -> str:
    """
    Get the configured model for a feature.
    
    Args:
        feature: One of QUESTION_GENERATION, CONVERSATION, FEEDBACK
        
    Returns:
        Model identifier string
    """
    routing = {
        QUESTION_GENERATION: config.QUESTION_MODEL,
        CONVERSATION: config.CONVERSATION_MODEL,
        FEEDBACK: config.FEEDBACK_MODEL,
    }
    return routing.get(feature) or DEFAULT_MODEL
