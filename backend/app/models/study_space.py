"""Study space inside a building; the unit availability reports are filed against.

polygon: GeoJSON Polygon ({"type": "Polygon", "coordinates": [[[lng, lat], ...]]}).
"""
from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.db.base import Base


class StudySpace(Base):
    __tablename__ = "study_spaces"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    capacity = Column(Integer, nullable=False)
    building_name = Column(
        String(200), ForeignKey("buildings.name", ondelete="CASCADE"), nullable=False, index=True
    )
    polygon = Column(JSON, nullable=False)
    has_outlets = Column(String(100), nullable=True)
    wifi_quality = Column(String(100), nullable=True)
    group_friendly = Column(Boolean, nullable=True)
    quiet_study = Column(Boolean, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    building = relationship("Building", back_populates="study_spaces")
    availability_reports = relationship(
        "AvailabilityReport",
        back_populates="study_space",
        cascade="all, delete-orphan",
    )
