"""Accepted availability labels (Available, Nearly Full, Full). Seeded at startup."""
from sqlalchemy import Column, String

from app.db.base import Base


class StudySpaceStatus(Base):
    __tablename__ = "study_space_statuses"

    name = Column(String(100), primary_key=True)
