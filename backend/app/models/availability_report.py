"""One user's report of how full a study space is. Append-only: never updated, deleted only with its space."""
from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship

from app.db.base import Base


class AvailabilityReport(Base):
    __tablename__ = "availability_reports"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(100), ForeignKey("users.username", ondelete="CASCADE"), nullable=False)
    study_space_id = Column(
        Integer, ForeignKey("study_spaces.id", ondelete="CASCADE"), nullable=False, index=True
    )
    study_space_status_name = Column(String(100), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)  # set by the service (injectable clock)

    study_space = relationship("StudySpace", back_populates="availability_reports")

    __table_args__ = (
        # window query (space, created_at >= since) and rate-limit lookup (user, space, latest)
        Index("ix_availability_reports_space_created", "study_space_id", "created_at"),
        Index("ix_availability_reports_user_space_created", "username", "study_space_id", "created_at"),
    )
