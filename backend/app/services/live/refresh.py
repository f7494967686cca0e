"""
Building refresh: the action run right after a report is stored and again when that
building's debounce timer fires.

1. Broadcast the recomputed building list to every live client (awaited).
2. Sync the building's status into its Radar geofence (background task; errors logged only).
"""
import asyncio
import json
import logging
from typing import Callable

from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from app.core.errors import ExternalSyncError, NotFoundError
from app.services.aggregation import BuildingAvailability
from app.services.building_service import get_building_availability, list_buildings_with_status
from app.services.live.hub import BroadcastHub
from app.services.radar import RadarClient

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], Session]


def load_buildings_payload(session_factory: SessionFactory) -> str:
    """Serialized building list in its own session (runs in the threadpool)."""
    db = session_factory()
    try:
        return json.dumps(list_buildings_with_status(db))
    finally:
        db.close()


def load_building_availability(session_factory: SessionFactory, building_name: str) -> BuildingAvailability:
    db = session_factory()
    try:
        return get_building_availability(db, building_name)
    finally:
        db.close()


def make_snapshot(session_factory: SessionFactory):
    """Coroutine factory for BroadcastHub: store reads off the event loop."""

    async def snapshot() -> str:
        return await run_in_threadpool(load_buildings_payload, session_factory)

    return snapshot


class BuildingRefresher:
    def __init__(self, hub: BroadcastHub, radar: RadarClient, session_factory: SessionFactory) -> None:
        self._hub = hub
        self._radar = radar
        self._session_factory = session_factory
        self._sync_tasks: set[asyncio.Task] = set()

    async def broadcast(self) -> int:
        """Push the building list to live clients. A failed snapshot is logged; returns 0 then."""
        try:
            return await self._hub.broadcast()
        except Exception as e:
            logger.warning("Live broadcast failed: %s", e, exc_info=True)
            return 0

    async def refresh(self, building_name: str) -> None:
        sent = await self.broadcast()
        logger.debug("Refresh %s: building list sent to %s live clients", building_name, sent)
        self._start_geofence_sync(building_name)

    def _start_geofence_sync(self, building_name: str) -> None:
        task = asyncio.create_task(self.sync_geofence(building_name))
        # keep a reference until done so the task is not garbage-collected mid-flight
        self._sync_tasks.add(task)
        task.add_done_callback(self._sync_tasks.discard)

    async def sync_geofence(self, building_name: str) -> None:
        """Best-effort: never raises, never retried."""
        if not self._radar.is_configured():
            logger.debug("Radar not configured; skipping geofence sync for %s", building_name)
            return
        try:
            availability = await run_in_threadpool(load_building_availability, self._session_factory, building_name)
            await self._radar.sync_building_status(building_name, availability.status, availability.is_verified)
        except NotFoundError:
            logger.info("Building %s no longer exists; skipping geofence sync", building_name)
        except ExternalSyncError as e:
            logger.warning("Radar geofence sync for %s failed: %s", building_name, e)
        except Exception as e:
            logger.warning("Radar geofence sync for %s failed unexpectedly: %s", building_name, e, exc_info=True)

    async def wait_for_syncs(self) -> None:
        """Let in-flight geofence syncs finish (shutdown, tests)."""
        if self._sync_tasks:
            await asyncio.gather(*list(self._sync_tasks), return_exceptions=True)
