"""Create all tables. Run on app startup."""
import logging

from sqlalchemy.engine import Engine

from orderbot.db.base import Base
from orderbot.models import customer, order  # noqa: F401 - register models

logger = logging.getLogger(__name__)


def init_db(engine: Engine) -> None:
    Base.metadata.create_all(bind=engine)
    logger.info(f"[DB] Tables ready: {', '.join(sorted(Base.metadata.tables))}")
