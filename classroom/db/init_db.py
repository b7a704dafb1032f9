import logging

from classroom.db.base import Base
from classroom.db.session import engine

logger = logging.getLogger(__name__)


def init_db() -> None:
    """Create any missing tables. Existing tables are left as they are."""
    Base.metadata.create_all(bind=engine)
    logger.info("Schema ready on %s (%s tables)", engine.url.render_as_string(hide_password=True), len(Base.metadata.tables))
