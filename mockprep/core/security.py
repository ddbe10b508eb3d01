import logging
from datetime import datetime, timedelta
from typing import Optional
from jose import jwt, JWTError
from mockprep.core.config import SECRET_KEY, ALGORITHM

logger = logging.getLogger(__name__)


def create_access_token(data: dict, expires_delta: timedelta = None):
    """Issue a token in the identity provider's format (used by scripts and tests)."""
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=60))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_user_id(token: Optional[str]) -> Optional[str]:
    """
    Resolve the opaque user identity carried in a token.
    
    Returns:
        The token's ``sub`` claim, or None if the token is missing or invalid
    """
    if not token:
        return None
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.info(f"Rejected token: {type(e).__name__}")
        return None

    user_id = payload.get("sub")
    if not user_id:
        return None
    return str(user_id)
