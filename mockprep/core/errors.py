"""
Error taxonomy for the mock interview service.

Every error carries the HTTP status it maps to and a user-facing message.
Parse irregularities in LLM output never surface here; only failures of the
external services, bad input and missing records do.
"""
from fastapi import status


class MockPrepError(Exception):
    """Base class for errors rendered as {"success": false, "error": ...}."""
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthorized(MockPrepError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"


class NotFound(MockPrepError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Interview not found"


class ValidationFailed(MockPrepError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Missing required fields"


class GenerationFailed(MockPrepError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "Failed to generate interview questions"


class ConversationFailed(MockPrepError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "Failed to process conversation"


class FeedbackGenerationFailed(MockPrepError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "Failed to generate feedback"


class StoreFailed(MockPrepError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Failed to save interview data"
