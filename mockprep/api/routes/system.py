import logging
from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from mockprep.core.auth_dependency import get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/system", tags=["System"])


@router.get("/health")
def system_health(request: Request, db: Session = Depends(get_db)):
    """Database connectivity and whether interview AI is available."""
    try:
        db.execute(text("SELECT 1"))
        db_ok = True
    except SQLAlchemyError as e:
        logger.error(f"Health check database error: {e}")
        db_ok = False

    llm_ok = getattr(request.app.state, "llm_provider", None) is not None

    return {
        "status": "ok" if db_ok and llm_ok else "degraded",
        "database": "connected" if db_ok else "error",
        "llm": "configured" if llm_ok else "missing",
        "api_version": "1.0.0",
        "service": "MockPrep API",
    }
