"""Radar API client: geofence metadata sync and read-only listings. Raises ExternalSyncError on any failure."""
import copy
import logging
from typing import Any
from urllib.parse import quote

import httpx

from app.core.errors import ExternalSyncError
from app.services.radar.config import BUILDING_GEOFENCE_TAG, GEOFENCE_READ_ONLY_FIELDS, RadarConfig

logger = logging.getLogger(__name__)


def geofence_update_payload(geofence: dict[str, Any], status: str, is_verified: bool) -> dict[str, Any]:
    """
    Turn a geofence from GET into the body for PUT /geofences/{tag}/{externalId},
    with metadata.status / metadata.isVerified set. Input is not mutated.
    """
    body = copy.deepcopy(geofence)
    metadata = dict(body.get("metadata") or {})
    metadata["status"] = status
    metadata["isVerified"] = is_verified
    body["metadata"] = metadata

    # PUT takes coordinates/radius at top level; GET returns them under geometry*
    gtype = body.get("type")
    if gtype in ("circle", "isochrone"):
        body["coordinates"] = (body.get("geometryCenter") or {}).get("coordinates")
    elif gtype == "polygon":
        body["coordinates"] = ((body.get("geometry") or {}).get("coordinates") or [None])[0]
    if body.get("geometryRadius") is not None:
        body["radius"] = body["geometryRadius"]

    for key in GEOFENCE_READ_ONLY_FIELDS:
        body.pop(key, None)
    return body


class RadarClient:
    """Radar geofences/users/events client (async; safe to call from the event loop)."""

    def __init__(self, config: RadarConfig | None = None, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._config = config or RadarConfig()
        self._transport = transport  # tests pass httpx.MockTransport

    def is_configured(self) -> bool:
        return self._config.is_configured()

    async def _request(self, method: str, path: str, json_body: dict[str, Any] | None = None) -> dict[str, Any]:
        if not self._config.is_configured():
            raise ExternalSyncError("Radar credentials not configured. Add RADAR_SECRET_KEY to .env.")
        url = f"{self._config.base_url}{path}"
        try:
            async with httpx.AsyncClient(timeout=self._config.timeout, transport=self._transport) as c:
                r = await c.request(method, url, json=json_body, headers=self._config.headers())
        except httpx.HTTPError as e:
            raise ExternalSyncError(f"Radar request failed: {e}") from e
        if not r.is_success:
            raise ExternalSyncError(f"Radar API error: {r.status_code} {r.text[:500] if r.text else ''}".strip())
        try:
            return r.json() if r.content else {}
        except ValueError as e:
            raise ExternalSyncError("Radar returned a non-JSON body") from e

    async def list_geofences(self) -> list[dict[str, Any]]:
        return (await self._request("GET", "/geofences")).get("geofences") or []

    async def list_users(self) -> list[dict[str, Any]]:
        return (await self._request("GET", "/users")).get("users") or []

    async def list_events(self) -> list[dict[str, Any]]:
        return (await self._request("GET", "/events")).get("events") or []

    async def get_building_geofence(self, building_name: str) -> dict[str, Any]:
        data = await self._request("GET", f"/geofences/{BUILDING_GEOFENCE_TAG}/{quote(building_name, safe='')}")
        geofence = data.get("geofence")
        if not geofence:
            raise ExternalSyncError(f"Radar has no geofence for building {building_name}")
        return geofence

    async def put_geofence(self, geofence: dict[str, Any]) -> dict[str, Any]:
        tag = quote(str(geofence.get("tag") or BUILDING_GEOFENCE_TAG), safe="")
        external_id = quote(str(geofence.get("externalId") or ""), safe="")
        if not external_id:
            raise ExternalSyncError("geofence has no externalId")
        return await self._request("PUT", f"/geofences/{tag}/{external_id}", geofence)

    async def sync_building_status(self, building_name: str, status: str, is_verified: bool) -> None:
        """Write status/isVerified into the building geofence's metadata. No-op when Radar is not configured."""
        if not self.is_configured():
            logger.debug("Radar not configured; skipping geofence sync for %s", building_name)
            return
        geofence = await self.get_building_geofence(building_name)
        await self.put_geofence(geofence_update_payload(geofence, status, is_verified))
        logger.info("Radar geofence %s synced: status=%s verified=%s", building_name, status, is_verified)
