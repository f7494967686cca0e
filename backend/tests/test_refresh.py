"""Building refresh: broadcast then best-effort geofence sync."""
from datetime import datetime, timezone

import pytest

from app.core.errors import ExternalSyncError
from app.db.session import SessionLocal
from app.services.building_service import create_building
from app.services.live import BroadcastHub, LiveUpdates
from app.services.live.refresh import BuildingRefresher, load_buildings_payload
from app.services.report_service import submit_report
from app.services.study_space_service import create_study_space
from tests.conftest import SQUARE, make_user


class FakeHub:
    def __init__(self):
        self.broadcasts = 0

    async def broadcast(self):
        self.broadcasts += 1
        return 1


class FakeRadar:
    def __init__(self, configured=True, error=None):
        self.configured = configured
        self.error = error
        self.synced = []

    def is_configured(self):
        return self.configured

    async def sync_building_status(self, name, status, is_verified):
        if self.error:
            raise self.error
        self.synced.append((name, status, is_verified))


class FakeTimers:
    def __init__(self):
        self.armed = []

    def arm(self, name):
        self.armed.append(name)


@pytest.fixture
def library(db):
    create_building(db, "Library")
    space = create_study_space(db, "Library", {"name": "Floor 2", "capacity": 40, "polygon": SQUARE})
    make_user(db, "alice")
    submit_report(db, space.id, "Library", "alice", "Available", now=datetime.now(timezone.utc))
    return space


def test_buildings_payload_is_json_list(library):
    assert '"status": "Available"' in load_buildings_payload(SessionLocal)


@pytest.mark.asyncio
async def test_refresh_broadcasts_and_syncs_geofence(library):
    hub, radar = FakeHub(), FakeRadar()
    refresher = BuildingRefresher(hub, radar, SessionLocal)
    await refresher.refresh("Library")
    await refresher.wait_for_syncs()
    assert hub.broadcasts == 1
    assert radar.synced == [("Library", "Available", False)]


@pytest.mark.asyncio
async def test_sync_errors_are_swallowed(library):
    radar = FakeRadar(error=ExternalSyncError("Radar API error: 503"))
    refresher = BuildingRefresher(FakeHub(), radar, SessionLocal)
    await refresher.sync_geofence("Library")
    await refresher.sync_geofence("Nowhere")
    assert radar.synced == []


@pytest.mark.asyncio
async def test_sync_skipped_when_radar_not_configured(library):
    radar = FakeRadar(configured=False)
    refresher = BuildingRefresher(FakeHub(), radar, SessionLocal)
    await refresher.sync_geofence("Library")
    assert radar.synced == []


@pytest.mark.asyncio
async def test_report_accepted_broadcasts_then_arms_timer(library):
    hub, timers = FakeHub(), FakeTimers()
    refresher = BuildingRefresher(hub, FakeRadar(configured=False), SessionLocal)
    live = LiveUpdates(hub=hub, refresher=refresher, update_scheduler=timers)
    await live.report_accepted("Library")
    assert hub.broadcasts == 1
    assert timers.armed == ["Library"]


class FakeSocket:
    def __init__(self):
        self.sent = []

    async def accept(self):
        pass

    async def send_text(self, data):
        self.sent.append(data)


@pytest.mark.asyncio
async def test_report_accepted_survives_failed_broadcast(caplog):
    calls = []

    async def snapshot():
        calls.append(1)
        if len(calls) > 1:
            raise RuntimeError("store down")
        return "[]"

    hub = BroadcastHub(snapshot)
    socket = FakeSocket()
    await hub.connect(socket)

    timers = FakeTimers()
    refresher = BuildingRefresher(hub, FakeRadar(configured=False), SessionLocal)
    live = LiveUpdates(hub=hub, refresher=refresher, update_scheduler=timers)
    await live.report_accepted("Library")
    await refresher.wait_for_syncs()

    assert timers.armed == ["Library"]
    assert socket.sent == ["[]"]
    assert "Live broadcast failed" in caplog.text


@pytest.mark.asyncio
async def test_timer_armed_even_if_refresh_raises():
    class ExplodingRefresher:
        async def refresh(self, name):
            raise RuntimeError("boom")

    timers = FakeTimers()
    live = LiveUpdates(hub=FakeHub(), refresher=ExplodingRefresher(), update_scheduler=timers)
    with pytest.raises(RuntimeError):
        await live.report_accepted("Library")
    assert timers.armed == ["Library"]
