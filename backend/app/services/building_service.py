"""
Buildings: CRUD plus derived availability (status / isVerified from the spaces inside).
"""
import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from app.core.constants import STATUS_PRIORITY
from app.core.errors import ConflictError, NotFoundError
from app.db.session import commit_or_raise
from app.models.building import Building
from app.models.study_space import StudySpace
from app.models.study_space_status import StudySpaceStatus
from app.services.aggregation import BuildingAvailability, aggregate_building
from app.services.report_service import as_utc, get_spaces_availability

logger = logging.getLogger(__name__)


def seed_study_space_statuses(db: Session) -> None:
    """Insert the accepted status labels if missing. Safe to run on every startup."""
    existing = {r.name for r in db.query(StudySpaceStatus).all()}
    missing = [name for name in STATUS_PRIORITY if name not in existing]
    for name in missing:
        db.add(StudySpaceStatus(name=name))
    if missing:
        commit_or_raise(db, "seed study space statuses")
        logger.info("Seeded study space statuses: %s", missing)


# --- Store ---


def get_building(db: Session, name: str) -> Building | None:
    return db.get(Building, name)


def require_building(db: Session, name: str) -> Building:
    building = get_building(db, name)
    if building is None:
        raise NotFoundError("provided buildingName does not exist")
    return building


def list_building_names(db: Session) -> list[str]:
    return [name for (name,) in db.query(Building.name).order_by(Building.name.asc()).all()]


def list_spaces(db: Session, building_name: str) -> list[StudySpace]:
    return (
        db.query(StudySpace)
        .filter(StudySpace.building_name == building_name)
        .order_by(StudySpace.id.asc())
        .all()
    )


# --- Availability ---


def get_building_availability(db: Session, name: str, now: datetime | None = None) -> BuildingAvailability:
    """Consensus of every study space in the building (raises NotFoundError if the building is gone)."""
    require_building(db, name)
    space_ids = [s.id for s in list_spaces(db, name)]
    by_space = get_spaces_availability(db, space_ids, now)
    return aggregate_building(by_space[sid] for sid in space_ids)


def building_to_dict(b: Building, availability: BuildingAvailability) -> dict:
    return {
        "name": b.name,
        "description": b.description,
        "createdAt": as_utc(b.created_at).isoformat() if b.created_at else None,
        "updatedAt": as_utc(b.updated_at).isoformat() if b.updated_at else None,
        "status": availability.status,
        "isVerified": availability.is_verified,
    }


def get_aggregated_building(db: Session, name: str, now: datetime | None = None) -> dict:
    building = require_building(db, name)
    return building_to_dict(building, get_building_availability(db, name, now))


def list_buildings_with_status(db: Session, now: datetime | None = None) -> list[dict]:
    """
    All buildings with derived status. One report query for the whole campus.
    This is the payload pushed to live clients.
    """
    buildings = db.query(Building).order_by(Building.name.asc()).all()
    spaces = db.query(StudySpace.id, StudySpace.building_name).all()
    by_space = get_spaces_availability(db, [sid for sid, _ in spaces], now)
    space_ids_by_building: dict[str, list[int]] = {}
    for sid, bname in spaces:
        space_ids_by_building.setdefault(bname, []).append(sid)
    return [
        building_to_dict(b, aggregate_building(by_space[sid] for sid in space_ids_by_building.get(b.name, [])))
        for b in buildings
    ]


# --- CRUD ---


def create_building(db: Session, name: str, description: str | None = None) -> Building:
    if get_building(db, name) is not None:
        raise ConflictError(f"building _id: {name} already exists")
    now = datetime.now(timezone.utc)
    building = Building(name=name, description=description, created_at=now, updated_at=now)
    db.add(building)
    commit_or_raise(db, "create building")
    db.refresh(building)
    logger.info("Created building %s", name)
    return building


def update_building(db: Session, name: str, description: str | None) -> Building:
    building = require_building(db, name)
    building.description = description
    building.updated_at = datetime.now(timezone.utc)
    commit_or_raise(db, "update building")
    db.refresh(building)
    return building


def delete_building(db: Session, name: str) -> dict:
    """Delete the building, its study spaces and their reports. Returns the deleted building."""
    building = get_building(db, name)
    if building is None:
        raise NotFoundError("Cannot delete building. Provided buildingName: does not exist")
    out = building_to_dict(building, BuildingAvailability())
    db.delete(building)
    commit_or_raise(db, "delete building")
    logger.info("Deleted building %s", name)
    return out
