"""
Radar API: read-only proxies (users, geofences, events) and a manual full geofence sync.

Mounted under /api. Radar failures surface as 502 here (unlike the report path, where they are only logged).
"""
import logging
from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from app.api.deps import get_live, get_radar, require_admin
from app.db.session import get_db
from app.models.user import User
from app.services.building_service import list_building_names
from app.services.live import LiveUpdates
from app.services.radar import RadarClient

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/displayUsers/")
async def list_radar_users(radar: RadarClient = Depends(get_radar)) -> list[dict[str, Any]]:
    """Users Radar is currently tracking."""
    return await radar.list_users()


@router.get("/geofences/")
async def list_radar_geofences(radar: RadarClient = Depends(get_radar)) -> list[dict[str, Any]]:
    """Geofences, newest first (Radar's order)."""
    return await radar.list_geofences()


@router.get("/events/")
async def list_radar_events(radar: RadarClient = Depends(get_radar)) -> list[dict[str, Any]]:
    """Geofence entry/exit events, newest first (Radar's order)."""
    return await radar.list_events()


@router.post("/geofences/sync/")
async def sync_all_geofences(
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
    live: LiveUpdates = Depends(get_live),
) -> dict[str, Any]:
    """Push the current status of every building into its Radar geofence (best-effort per building)."""
    names = await run_in_threadpool(list_building_names, db)
    for name in names:
        await live.refresher.sync_geofence(name)
    logger.info("Manual geofence sync requested for %s buildings", len(names))
    return {"ok": True, "buildings": names}
