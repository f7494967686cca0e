"""
Availability consensus from time-windowed user reports.
- aggregate_reports: per study space (majority vote + verification flag).
- aggregate_building: per building (most favorable space status, OR of verification).
"""
from app.services.aggregation.aggregate import (
    BuildingAvailability,
    SpaceAvailability,
    aggregate_building,
    aggregate_reports,
)

__all__ = ["BuildingAvailability", "SpaceAvailability", "aggregate_building", "aggregate_reports"]
