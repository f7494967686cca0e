"""Radar client against httpx.MockTransport."""
import json

import httpx
import pytest

from app.core.errors import ExternalSyncError
from app.services.radar import RadarClient, RadarConfig, geofence_update_payload

GEOFENCE = {
    "_id": "5f0c",
    "tag": "building",
    "externalId": "Library",
    "description": "Main library",
    "type": "polygon",
    "mode": "car",
    "live": True,
    "geometry": {"type": "Polygon", "coordinates": [[[-79.0, 43.0], [-78.9, 43.0], [-78.9, 43.1], [-79.0, 43.0]]]},
    "geometryCenter": {"type": "Point", "coordinates": [-78.95, 43.05]},
    "geometryRadius": 120,
    "metadata": {"floor": 2},
}


def _client(handler, secret_key="sk_test"):
    config = RadarConfig(secret_key=secret_key, base_url="https://radar.test/v1")
    return RadarClient(config, transport=httpx.MockTransport(handler))


def test_update_payload_sets_metadata_and_drops_read_only_fields():
    body = geofence_update_payload(GEOFENCE, "Full", True)
    assert body["metadata"] == {"floor": 2, "status": "Full", "isVerified": True}
    assert body["coordinates"] == GEOFENCE["geometry"]["coordinates"][0]
    assert body["radius"] == 120
    for key in ("_id", "geometry", "geometryCenter", "geometryRadius", "live", "mode"):
        assert key not in body
    assert body["description"] == "Main library"
    # original untouched
    assert GEOFENCE["metadata"] == {"floor": 2}
    assert "_id" in GEOFENCE


def test_update_payload_for_circle_uses_center():
    circle = {"type": "circle", "externalId": "Gym", "geometryCenter": {"coordinates": [1.0, 2.0]}}
    body = geofence_update_payload(circle, "Available", False)
    assert body["coordinates"] == [1.0, 2.0]
    assert body["metadata"] == {"status": "Available", "isVerified": False}


@pytest.mark.asyncio
async def test_sync_building_status_gets_then_puts():
    requests = []

    def handler(request):
        requests.append(request)
        if request.method == "GET":
            return httpx.Response(200, json={"geofence": GEOFENCE})
        return httpx.Response(200, json={"geofence": json.loads(request.content)})

    await _client(handler).sync_building_status("Library", "Nearly Full", False)

    assert [(r.method, r.url.path) for r in requests] == [
        ("GET", "/v1/geofences/building/Library"),
        ("PUT", "/v1/geofences/building/Library"),
    ]
    assert all(r.headers["Authorization"] == "sk_test" for r in requests)
    sent = json.loads(requests[1].content)
    assert sent["metadata"]["status"] == "Nearly Full"
    assert sent["metadata"]["isVerified"] is False
    assert "_id" not in sent


@pytest.mark.asyncio
async def test_error_status_raises_external_sync_error():
    client = _client(lambda request: httpx.Response(500, text="upstream broke"))
    with pytest.raises(ExternalSyncError, match="500"):
        await client.list_geofences()


@pytest.mark.asyncio
async def test_transport_failure_raises_external_sync_error():
    def handler(request):
        raise httpx.ConnectError("connection refused")

    with pytest.raises(ExternalSyncError, match="request failed"):
        await _client(handler).list_users()


@pytest.mark.asyncio
async def test_missing_geofence_raises():
    client = _client(lambda request: httpx.Response(200, json={"meta": {"code": 200}}))
    with pytest.raises(ExternalSyncError, match="no geofence"):
        await client.get_building_geofence("Library")


@pytest.mark.asyncio
async def test_listings_unwrap_radar_envelope():
    def handler(request):
        key = request.url.path.rsplit("/", 1)[-1]
        return httpx.Response(200, json={"meta": {"code": 200}, key: [{"_id": key}]})

    client = _client(handler)
    assert await client.list_events() == [{"_id": "events"}]
    assert await client.list_users() == [{"_id": "users"}]
    assert await client.list_geofences() == [{"_id": "geofences"}]


@pytest.mark.asyncio
async def test_unconfigured_client():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json={})

    client = _client(handler, secret_key="")
    assert client.is_configured() is False
    await client.sync_building_status("Library", "Full", True)
    with pytest.raises(ExternalSyncError, match="not configured"):
        await client.list_geofences()
    assert calls == []
