import logging

from mockprep.db.base import Base
import mockprep.db.models  # noqa: F401  registers models on Base.metadata

logger = logging.getLogger(__name__)


def init_db(bind=None):
    """Create any missing tables (used when migrations are not run)."""
    if bind is None:
        from mockprep.db.session import engine
        bind = engine
    Base.metadata.create_all(bind=bind)
    logger.info("Database tables ensured")
