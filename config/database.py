"""
Storefront - Database Configuration
====================================
Engine, SessionLocal, Base, the get_db dependency and unit_of_work.
All models across all modules inherit from this Base.
"""

import logging
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool
from config.settings import DATABASE_URL
from common.exceptions import StoreError, PersistenceError

logger = logging.getLogger("storefront.db")


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        # Single shared connection so in-memory databases survive across sessions
        return {"connect_args": {"check_same_thread": False}, "poolclass": StaticPool}
    return {
        "pool_size": 20,
        "max_overflow": 40,
        "pool_timeout": 30,
        "pool_recycle": 1800,  # Refresh connections every 30 minutes
    }


engine = create_engine(DATABASE_URL, **_engine_options(DATABASE_URL))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """FastAPI dependency: yields a database session, auto-closes after request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def unit_of_work(db: Session, action: str):
    """
    Commit the block's writes as one transaction.
    Business errors roll back and propagate unchanged; database errors roll
    back and surface as PersistenceError.
    """
    try:
        yield
        db.commit()
    except StoreError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to {action}: {e}")
        raise PersistenceError(f"failed to {action}: {e}") from e
