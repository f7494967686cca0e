"""
Study spaces: CRUD, aggregated reads (rawReports / studySpaceStatusName / isVerified) and nearest-space lookup.
"""
import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.orm import Session

from app.core.errors import NotFoundError
from app.db.session import commit_or_raise
from app.models.study_space import StudySpace
from app.services.aggregation import SpaceAvailability
from app.services.building_service import list_spaces, require_building
from app.services.geo import (
    distance_to_polygon_meters,
    polygon_frontend_to_geojson,
    polygon_geojson_to_frontend,
    validate_point,
)
from app.services.report_service import as_utc, get_space_availability, get_spaces_availability

logger = logging.getLogger(__name__)

# Request field -> column. Only fields present in a PATCH are written.
_UPDATABLE_FIELDS = {
    "name": "name",
    "description": "description",
    "capacity": "capacity",
    "buildingName": "building_name",
    "hasOutlets": "has_outlets",
    "wifiQuality": "wifi_quality",
    "groupFriendly": "group_friendly",
    "quietStudy": "quiet_study",
}


def study_space_to_dict(s: StudySpace, availability: SpaceAvailability | None = None) -> dict[str, Any]:
    """Wire shape; polygon in the frontend's latlngs form. availability=None omits the derived fields."""
    out: dict[str, Any] = {
        "id": s.id,
        "name": s.name,
        "description": s.description,
        "capacity": s.capacity,
        "buildingName": s.building_name,
        "polygon": polygon_geojson_to_frontend(s.polygon or {}),
        "hasOutlets": s.has_outlets,
        "wifiQuality": s.wifi_quality,
        "groupFriendly": s.group_friendly,
        "quietStudy": s.quiet_study,
        "createdAt": as_utc(s.created_at).isoformat() if s.created_at else None,
        "updatedAt": as_utc(s.updated_at).isoformat() if s.updated_at else None,
    }
    if availability is not None:
        out["rawReports"] = availability.raw_reports()
        out["isVerified"] = availability.is_verified
        out["studySpaceStatusName"] = availability.status
    return out


def require_study_space(db: Session, building_name: str, study_space_id: int) -> StudySpace:
    require_building(db, building_name)
    space = (
        db.query(StudySpace)
        .filter(StudySpace.id == study_space_id, StudySpace.building_name == building_name)
        .first()
    )
    if space is None:
        raise NotFoundError("Provided studySpace id does not exist")
    return space


def _with_availability(db: Session, spaces: list[StudySpace], now: datetime | None) -> list[dict]:
    by_space = get_spaces_availability(db, [s.id for s in spaces], now)
    return [study_space_to_dict(s, by_space[s.id]) for s in spaces]


# --- Reads ---


def get_aggregated_space(
    db: Session, building_name: str, study_space_id: int, now: datetime | None = None
) -> dict:
    space = require_study_space(db, building_name, study_space_id)
    return study_space_to_dict(space, get_space_availability(db, space.id, now))


def list_all_spaces(db: Session, now: datetime | None = None) -> list[dict]:
    spaces = db.query(StudySpace).order_by(StudySpace.id.asc()).all()
    return _with_availability(db, spaces, now)


def list_building_spaces(db: Session, building_name: str, now: datetime | None = None) -> list[dict]:
    require_building(db, building_name)
    return _with_availability(db, list_spaces(db, building_name), now)


def closest_study_space(db: Session, lng: float, lat: float, now: datetime | None = None) -> dict:
    """Study space nearest to the point (0 m if the point is inside it)."""
    validate_point(lng, lat)
    spaces = db.query(StudySpace).all()
    if not spaces:
        raise NotFoundError("no study spaces exist")
    best = min(spaces, key=lambda s: distance_to_polygon_meters(lng, lat, s.polygon or {}))
    out = study_space_to_dict(best, get_space_availability(db, best.id, now))
    out["distanceMeters"] = round(distance_to_polygon_meters(lng, lat, best.polygon or {}), 1)
    return out


# --- Writes ---


def create_study_space(db: Session, building_name: str, fields: dict[str, Any]) -> StudySpace:
    """fields uses wire names (camelCase); polygon in latlngs form."""
    require_building(db, building_name)
    now = datetime.now(timezone.utc)
    space = StudySpace(
        name=fields["name"],
        description=fields.get("description"),
        capacity=fields["capacity"],
        building_name=building_name,
        polygon=polygon_frontend_to_geojson(fields["polygon"]),
        has_outlets=fields.get("hasOutlets"),
        wifi_quality=fields.get("wifiQuality"),
        group_friendly=fields.get("groupFriendly"),
        quiet_study=fields.get("quietStudy"),
        created_at=now,
        updated_at=now,
    )
    db.add(space)
    commit_or_raise(db, "create study space")
    db.refresh(space)
    logger.info("Created study space %s (%s) in %s", space.id, space.name, building_name)
    return space


def update_study_space(db: Session, building_name: str, study_space_id: int, fields: dict[str, Any]) -> StudySpace:
    """Partial update. buildingName in fields moves the space (target building must exist)."""
    space = require_study_space(db, building_name, study_space_id)
    if fields.get("buildingName"):
        require_building(db, fields["buildingName"])
    for key, column in _UPDATABLE_FIELDS.items():
        if key in fields and fields[key] is not None:
            setattr(space, column, fields[key])
    if fields.get("polygon") is not None:
        space.polygon = polygon_frontend_to_geojson(fields["polygon"])
    space.updated_at = datetime.now(timezone.utc)
    commit_or_raise(db, "update study space")
    db.refresh(space)
    return space


def delete_study_space(db: Session, building_name: str, study_space_id: int) -> dict:
    """Delete the study space and (cascade) all its availability reports."""
    space = (
        db.query(StudySpace)
        .filter(StudySpace.id == study_space_id, StudySpace.building_name == building_name)
        .first()
    )
    if space is None:
        raise NotFoundError("Cannot delete studySpace. Provided studySpaceId does not exist")
    out = study_space_to_dict(space)
    db.delete(space)
    commit_or_raise(db, "delete study space")
    logger.info("Deleted study space %s from %s", study_space_id, building_name)
    return out
