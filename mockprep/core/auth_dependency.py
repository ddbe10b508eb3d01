from typing import Optional
from fastapi import Depends
from fastapi.requests import HTTPConnection
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from mockprep.core.errors import Unauthorized, GenerationFailed
from mockprep.core.security import decode_user_id
from mockprep.db.session import SessionLocal
from mockprep.llm.provider import LLMProvider

bearer_scheme = HTTPBearer(auto_error=False)


def get_db():
    """Database session dependency."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> str:
    """Get the caller's opaque user id from the bearer token."""
    user_id = decode_user_id(credentials.credentials if credentials else None)
    if user_id is None:
        raise Unauthorized()
    return user_id


def get_llm_provider(connection: HTTPConnection) -> LLMProvider:
    """LLM provider constructed by the application lifespan (HTTP and WebSocket routes)."""
    provider = getattr(connection.app.state, "llm_provider", None)
    if provider is None:
        raise GenerationFailed("AI service is not configured")
    return provider
