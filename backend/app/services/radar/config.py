"""Radar API config. Secret key from settings (RADAR_SECRET_KEY) or RadarClient args."""
from app.config import settings

DEFAULT_TIMEOUT_SECONDS = 10.0

# Fields Radar returns on GET /geofences that must not be sent back on PUT
GEOFENCE_READ_ONLY_FIELDS = (
    "_id",
    "geometryCenter",
    "live",
    "createdAt",
    "updatedAt",
    "geometry",
    "geometryRadius",
    "mode",
)

# Our building geofences are tagged "building" with externalId = building name
BUILDING_GEOFENCE_TAG = "building"


class RadarConfig:
    """API key and base URL for Radar."""

    __slots__ = ("secret_key", "base_url", "timeout")

    def __init__(
        self,
        *,
        secret_key: str | None = None,
        base_url: str | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self.secret_key = (secret_key if secret_key is not None else settings.radar_secret_key).strip()
        self.base_url = (base_url or settings.radar_base_url).rstrip("/")
        self.timeout = timeout

    def is_configured(self) -> bool:
        return bool(self.secret_key)

    def headers(self) -> dict[str, str]:
        return {"Authorization": self.secret_key}
