"""
Database session and engine.
"""
import logging

from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.config import settings
from app.core.errors import ConflictError, StoreError
from app.db.base import Base

logger = logging.getLogger(__name__)

if settings.database_url.startswith("sqlite"):
    # Local runs and tests; broadcasts read from the threadpool, so allow cross-thread use
    engine = create_engine(settings.database_url, connect_args={"check_same_thread": False})
else:
    engine = create_engine(
        settings.database_url,
        pool_size=8,
        max_overflow=10,
        pool_pre_ping=True,
        pool_recycle=300,
        pool_timeout=30,
    )
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def commit_or_raise(db: Session, action: str) -> None:
    """Commit; on failure roll back and raise ConflictError (unique/FK) or StoreError. Never retried here."""
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning("%s: integrity error: %s", action, e.orig)
        raise ConflictError(f"{action}: conflicts with an existing record") from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("%s failed: %s", action, e)
        raise StoreError(f"{action} failed") from e


def init_db() -> None:
    """Create tables (no migrations) and seed the status lookup table."""
    import app.models  # noqa: F401  registers models on Base.metadata
    from app.services.building_service import seed_study_space_statuses

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        seed_study_space_statuses(db)
    finally:
        db.close()
