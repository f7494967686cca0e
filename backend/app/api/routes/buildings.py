"""
Buildings API: CRUD with derived availability (status, isVerified).

Mounted under /api. Writes require an admin session.
"""
import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Path
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from app.api.deps import get_live, require_admin
from app.core.constants import MAX_DESCRIPTION_LENGTH, MAX_NAME_LENGTH
from app.db.session import get_db
from app.models.user import User
from app.services.aggregation import BuildingAvailability
from app.services.building_service import (
    building_to_dict,
    create_building,
    delete_building,
    get_aggregated_building,
    list_buildings_with_status,
    update_building,
)
from app.services.live import LiveUpdates

router = APIRouter()
logger = logging.getLogger(__name__)

BuildingName = Annotated[str, Path(min_length=1, max_length=MAX_NAME_LENGTH)]


class CreateBuildingBody(BaseModel):
    name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    description: str | None = Field(None, min_length=1, max_length=MAX_DESCRIPTION_LENGTH)


class UpdateBuildingBody(BaseModel):
    description: str | None = Field(None, min_length=1, max_length=MAX_DESCRIPTION_LENGTH)


@router.get("/buildings/")
def list_buildings(db: Session = Depends(get_db)) -> list[dict[str, Any]]:
    """All buildings, each with its most favorable study space status."""
    return list_buildings_with_status(db)


@router.get("/buildings/{building_name}/")
def get_building(building_name: BuildingName, db: Session = Depends(get_db)) -> dict[str, Any]:
    return get_aggregated_building(db, building_name)


@router.post("/buildings/")
async def add_building(
    body: CreateBuildingBody,
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
    live: LiveUpdates = Depends(get_live),
) -> dict[str, Any]:
    """Create a building. 409 if the name is taken. New buildings start as Unknown."""
    building = await run_in_threadpool(create_building, db, body.name.strip(), body.description)
    await live.refresher.broadcast()
    return building_to_dict(building, BuildingAvailability())


@router.patch("/buildings/{building_name}/")
def edit_building(
    building_name: BuildingName,
    body: UpdateBuildingBody,
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> dict[str, Any]:
    update_building(db, building_name, body.description)
    return get_aggregated_building(db, building_name)


@router.delete("/buildings/{building_name}/")
async def remove_building(
    building_name: BuildingName,
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
    live: LiveUpdates = Depends(get_live),
) -> dict[str, Any]:
    """Delete the building together with its study spaces and their reports."""
    deleted = await run_in_threadpool(delete_building, db, building_name)
    live.update_scheduler.cancel(building_name)
    await live.refresher.broadcast()
    return deleted
