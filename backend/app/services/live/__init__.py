"""
Live updates: WebSocket broadcast hub, building refresh, and the per-building debounce timer.

LiveUpdates is built once in main's lifespan and stored on app.state.live.
"""
import logging
from dataclasses import dataclass

from app.scheduler.update_scheduler import UpdateScheduler
from app.services.live.hub import BroadcastHub
from app.services.live.refresh import BuildingRefresher, make_snapshot

logger = logging.getLogger(__name__)


@dataclass
class LiveUpdates:
    hub: BroadcastHub
    refresher: BuildingRefresher
    update_scheduler: UpdateScheduler

    async def report_accepted(self, building_name: str) -> None:
        """
        Called after the report is committed: broadcast now (the list already includes it),
        then restart the building's timer so clients get the decayed status once it ages out.
        """
        try:
            await self.refresher.refresh(building_name)
        finally:
            self.update_scheduler.arm(building_name)


__all__ = ["BroadcastHub", "BuildingRefresher", "LiveUpdates", "UpdateScheduler", "make_snapshot"]
