"""
Study spaces API: CRUD, availability reports and nearest-space lookup.

Mounted under /api. Every read includes rawReports / studySpaceStatusName / isVerified computed
from the reports of the last REPORT_WINDOW_MINUTES.
"""
import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Path, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from app.api.deps import get_live, require_admin, require_user
from app.core.constants import MAX_CAPACITY, MAX_DESCRIPTION_LENGTH, MAX_NAME_LENGTH
from app.db.session import get_db
from app.models.user import User
from app.services.live import LiveUpdates
from app.services.report_service import list_window_reports, report_to_dict, submit_report
from app.services.study_space_service import (
    closest_study_space,
    create_study_space,
    delete_study_space,
    get_aggregated_space,
    list_all_spaces,
    list_building_spaces,
    study_space_to_dict,
    update_study_space,
)

router = APIRouter()
logger = logging.getLogger(__name__)

BuildingName = Annotated[str, Path(min_length=1, max_length=MAX_NAME_LENGTH)]
StudySpaceId = Annotated[int, Path(ge=1)]


class CreateStudySpaceBody(BaseModel):
    name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    description: str | None = Field(None, min_length=1, max_length=MAX_DESCRIPTION_LENGTH)
    capacity: int = Field(..., ge=0, le=MAX_CAPACITY)
    polygon: dict[str, Any] = Field(..., description='{"latlngs": [[lat, lng], ...]}')
    hasOutlets: str | None = Field(None, min_length=1, max_length=100)
    wifiQuality: str | None = Field(None, min_length=1, max_length=100)
    groupFriendly: bool | None = None
    quietStudy: bool | None = None


class UpdateStudySpaceBody(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str | None = Field(None, min_length=1, max_length=MAX_NAME_LENGTH)
    description: str | None = Field(None, min_length=1, max_length=MAX_DESCRIPTION_LENGTH)
    capacity: int | None = Field(None, ge=0, le=MAX_CAPACITY)
    buildingName: str | None = Field(None, min_length=1, max_length=MAX_NAME_LENGTH, description="Move to this building")
    polygon: dict[str, Any] | None = None
    hasOutlets: str | None = Field(None, min_length=1, max_length=100)
    wifiQuality: str | None = Field(None, min_length=1, max_length=100)
    groupFriendly: bool | None = None
    quietStudy: bool | None = None


class CreateReportBody(BaseModel):
    studySpaceStatusName: str = Field(..., min_length=1, max_length=100)


# --- Study spaces ---


@router.get("/studySpaces/")
def list_study_spaces(db: Session = Depends(get_db)) -> list[dict[str, Any]]:
    return list_all_spaces(db)


@router.get("/buildings/{building_name}/studySpaces/")
def list_study_spaces_in_building(building_name: BuildingName, db: Session = Depends(get_db)) -> list[dict[str, Any]]:
    return list_building_spaces(db, building_name)


@router.get("/buildings/{building_name}/studySpaces/{study_space_id}/")
def get_study_space(
    building_name: BuildingName,
    study_space_id: StudySpaceId,
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    return get_aggregated_space(db, building_name, study_space_id)


@router.post("/buildings/{building_name}/studySpaces/")
def add_study_space(
    building_name: BuildingName,
    body: CreateStudySpaceBody,
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> dict[str, Any]:
    """Create a study space. The polygon is returned in the same latlngs form it was sent in."""
    space = create_study_space(db, building_name, body.model_dump())
    return study_space_to_dict(space)


@router.patch("/buildings/{building_name}/studySpaces/{study_space_id}/")
def edit_study_space(
    building_name: BuildingName,
    study_space_id: StudySpaceId,
    body: UpdateStudySpaceBody,
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> dict[str, Any]:
    space = update_study_space(db, building_name, study_space_id, body.model_dump(exclude_unset=True))
    return study_space_to_dict(space)


@router.delete("/buildings/{building_name}/studySpaces/{study_space_id}/")
async def remove_study_space(
    building_name: BuildingName,
    study_space_id: StudySpaceId,
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
    live: LiveUpdates = Depends(get_live),
) -> dict[str, Any]:
    """Delete the study space and all of its availability reports; the building's status is re-broadcast."""
    deleted = await run_in_threadpool(delete_study_space, db, building_name, study_space_id)
    await live.refresher.refresh(building_name)
    return deleted


# --- Availability reports ---


@router.get("/buildings/{building_name}/studySpaces/{study_space_id}/availabilityReports/")
def list_availability_reports(
    building_name: BuildingName,
    study_space_id: StudySpaceId,
    db: Session = Depends(get_db),
) -> list[dict[str, Any]]:
    """Raw reports filed for this study space within the window."""
    return list_window_reports(db, building_name, study_space_id)


@router.post("/buildings/{building_name}/studySpaces/{study_space_id}/availabilityReports/")
async def add_availability_report(
    building_name: BuildingName,
    study_space_id: StudySpaceId,
    body: CreateReportBody,
    username: str = Depends(require_user),
    db: Session = Depends(get_db),
    live: LiveUpdates = Depends(get_live),
) -> dict[str, Any]:
    """
    Report how full a study space is. One report per user per study space per window
    (409 with the minutes left otherwise). On success every live client gets the updated
    building list and the building's refresh timer restarts.
    """
    # store work off the event loop; the commit completes before the broadcast below
    report = await run_in_threadpool(
        submit_report, db, study_space_id, building_name, username, body.studySpaceStatusName.strip()
    )
    await live.report_accepted(building_name)
    return report_to_dict(report)


# --- Nearest ---


@router.get("/closestStudySpace/")
def get_closest_study_space(
    lng: float = Query(..., description="Longitude, -180 < lng < 180"),
    lat: float = Query(..., description="Latitude, -90 < lat < 90"),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    return closest_study_space(db, lng, lat)
