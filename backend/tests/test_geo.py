"""Polygon conversion and point distance."""
import pytest

from app.core.errors import ValidationError
from app.services.geo import (
    distance_to_polygon_meters,
    haversine_meters,
    polygon_frontend_to_geojson,
    polygon_geojson_to_frontend,
    validate_point,
)

LATLNGS = [[43.0, -79.0], [43.0, -78.9], [43.1, -78.9], [43.1, -79.0]]


def test_frontend_polygon_becomes_geojson():
    polygon = {"latlngs": LATLNGS, "color": "red"}
    out = polygon_frontend_to_geojson(polygon)
    assert out["type"] == "Polygon"
    assert out["coordinates"] == [[[-79.0, 43.0], [-78.9, 43.0], [-78.9, 43.1], [-79.0, 43.1]]]
    assert out["color"] == "red"
    assert "latlngs" not in out
    # input untouched
    assert polygon == {"latlngs": LATLNGS, "color": "red"}


def test_geojson_polygon_goes_back_to_frontend_form():
    stored = polygon_frontend_to_geojson({"latlngs": LATLNGS})
    assert polygon_geojson_to_frontend(stored) == {"latlngs": LATLNGS}


@pytest.mark.parametrize(
    "polygon",
    [
        {},
        {"latlngs": [[1, 2], [3, 4]]},
        {"latlngs": [[1, 2], [3, 4], [5]]},
        {"latlngs": [[1, 2], [3, 4], ["a", 6]]},
    ],
)
def test_bad_frontend_polygon_is_rejected(polygon):
    with pytest.raises(ValidationError):
        polygon_frontend_to_geojson(polygon)


def test_validate_point_bounds():
    validate_point(-79.4, 43.6)
    with pytest.raises(ValidationError, match="longitude"):
        validate_point(180, 0)
    with pytest.raises(ValidationError, match="latitude"):
        validate_point(0, -90)


def test_haversine_one_degree_of_latitude():
    assert haversine_meters(0, 0, 0, 1) == pytest.approx(111_195, rel=1e-3)


def test_distance_is_zero_inside_polygon():
    polygon = polygon_frontend_to_geojson({"latlngs": LATLNGS})
    assert distance_to_polygon_meters(-78.95, 43.05, polygon) == 0.0


def test_distance_outside_polygon_is_to_nearest_vertex():
    polygon = polygon_frontend_to_geojson({"latlngs": LATLNGS})
    expected = haversine_meters(-78.8, 43.1, -78.9, 43.1)
    assert distance_to_polygon_meters(-78.8, 43.1, polygon) == pytest.approx(expected)
