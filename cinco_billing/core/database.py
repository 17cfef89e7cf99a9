"""
SQLite database initialisation with SQLAlchemy.
Creates the engine and session factory for the local persisted state.
"""

import logging
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from cinco_billing.config import settings

logger = logging.getLogger(__name__)


def build_engine(database_url: str):
    """Creates an engine; SQLite needs check_same_thread off for FastAPI and the sync job."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}
    return create_engine(database_url, connect_args=connect_args)


engine = build_engine(settings.database_url)

# Database session
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base for ORM models
Base = declarative_base()


def init_db(bind=None):
    """
    Initialises the database - creates all tables.

    Args:
        bind: Engine to create tables on (defaults to the application engine)
    """
    from cinco_billing.models.storage import LocalState  # noqa: F401

    Base.metadata.create_all(bind=bind or engine, checkfirst=True)
    logger.info("Database initialised")
