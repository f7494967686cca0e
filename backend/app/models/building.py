"""Building: a named container of study spaces. Its availability is derived, never stored."""
from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.db.base import Base


class Building(Base):
    __tablename__ = "buildings"

    name = Column(String(200), primary_key=True)  # e.g. "EV"; also the Radar geofence externalId
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    study_spaces = relationship(
        "StudySpace",
        back_populates="building",
        cascade="all, delete-orphan",
    )
