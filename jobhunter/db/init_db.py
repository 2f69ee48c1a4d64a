"""
Create all tables directly from the models (local development without Alembic).
"""
import logging

from jobhunter.db.base import Base
from jobhunter.db import models  # noqa: F401  registers every model on Base.metadata
from jobhunter.db.session import engine

logger = logging.getLogger(__name__)


def init_db(bind=None):
    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database tables created")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_db()
