from app.db.base import Base
from app.db.session import get_db, engine, init_db, SessionLocal

__all__ = ["get_db", "engine", "init_db", "SessionLocal", "Base"]
