from app.services.radar.client import RadarClient, geofence_update_payload
from app.services.radar.config import RadarConfig

__all__ = ["RadarClient", "RadarConfig", "geofence_update_payload"]
