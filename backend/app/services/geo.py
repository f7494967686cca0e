"""
Polygon format conversion and nearest-space distance.

The map frontend (Leaflet) sends and expects {"latlngs": [[lat, lng], ...]}; we store GeoJSON
({"type": "Polygon", "coordinates": [[[lng, lat], ...]]}) so coordinates match Radar and GeoJSON tooling.
"""
import copy
import math
from typing import Any

from app.core.errors import ValidationError

EARTH_RADIUS_METERS = 6_371_000.0


def polygon_frontend_to_geojson(polygon: dict[str, Any]) -> dict[str, Any]:
    """{"latlngs": [[lat, lng]]} -> GeoJSON Polygon. Extra keys are kept; input is not mutated."""
    latlngs = polygon.get("latlngs") if isinstance(polygon, dict) else None
    if not isinstance(latlngs, list) or len(latlngs) < 3:
        raise ValidationError("polygon: latlngs must be a list of at least 3 [lat, lng] points")
    ring = []
    for point in latlngs:
        if not isinstance(point, (list, tuple)) or len(point) != 2:
            raise ValidationError("polygon: each point must be [lat, lng]")
        lat, lng = point
        if not isinstance(lat, (int, float)) or not isinstance(lng, (int, float)):
            raise ValidationError("polygon: coordinates must be numbers")
        ring.append([lng, lat])
    out = {k: copy.deepcopy(v) for k, v in polygon.items() if k != "latlngs"}
    out["type"] = "Polygon"
    out["coordinates"] = [ring]
    return out


def polygon_geojson_to_frontend(polygon: dict[str, Any]) -> dict[str, Any]:
    """GeoJSON Polygon -> {"latlngs": [[lat, lng]]}. The type key is dropped (frontend knows it is a polygon)."""
    out = {k: copy.deepcopy(v) for k, v in polygon.items() if k not in ("type", "coordinates")}
    ring = (polygon.get("coordinates") or [[]])[0]
    out["latlngs"] = [[lat, lng] for lng, lat in ring]
    return out


def validate_point(lng: float, lat: float) -> None:
    if not -180 < lng < 180:
        raise ValidationError("longitude must be between -180 to 180")
    if not -90 < lat < 90:
        raise ValidationError("latitude must be between -90 to 90")


def haversine_meters(lng1: float, lat1: float, lng2: float, lat2: float) -> float:
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = phi2 - phi1
    dlmb = math.radians(lng2 - lng1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2) ** 2
    return 2 * EARTH_RADIUS_METERS * math.asin(math.sqrt(a))


def _point_in_ring(lng: float, lat: float, ring: list[list[float]]) -> bool:
    """Ray casting on the (lng, lat) plane; fine at building scale."""
    inside = False
    n = len(ring)
    j = n - 1
    for i in range(n):
        xi, yi = ring[i][0], ring[i][1]
        xj, yj = ring[j][0], ring[j][1]
        if (yi > lat) != (yj > lat) and lng < (xj - xi) * (lat - yi) / (yj - yi) + xi:
            inside = not inside
        j = i
    return inside


def distance_to_polygon_meters(lng: float, lat: float, polygon: dict[str, Any]) -> float:
    """0 when the point is inside the polygon, else distance to its closest vertex."""
    ring = (polygon.get("coordinates") or [[]])[0]
    if not ring:
        return math.inf
    if _point_in_ring(lng, lat, ring):
        return 0.0
    return min(haversine_meters(lng, lat, p[0], p[1]) for p in ring)
