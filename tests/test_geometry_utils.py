"""
Tests for spherical distance, bearing and bounding box helpers
"""

import math

import pytest

from overpasskit.analysis import GeoUtils
from overpasskit.analysis.geometry_utils import EARTH_RADIUS_M
from overpasskit.query import BoundingBox, Coordinate


ONE_DEGREE_M = EARTH_RADIUS_M * math.pi / 180

SAN_FRANCISCO = Coordinate(37.7749, -122.4194)
LOS_ANGELES = Coordinate(34.0522, -118.2437)


def test_distance_to_self_is_zero():
    assert GeoUtils.distance(SAN_FRANCISCO, SAN_FRANCISCO) == 0


def test_distance_is_symmetric():
    assert GeoUtils.distance(SAN_FRANCISCO, LOS_ANGELES) == pytest.approx(
        GeoUtils.distance(LOS_ANGELES, SAN_FRANCISCO)
    )


def test_one_degree_along_equator():
    assert GeoUtils.distance(Coordinate(0, 0), Coordinate(0, 1)) == pytest.approx(ONE_DEGREE_M)


def test_known_city_distance():
    # About 559 km great-circle
    assert GeoUtils.distance(SAN_FRANCISCO, LOS_ANGELES) == pytest.approx(559_000, rel=0.01)


def test_antipodal_distance_is_half_circumference():
    assert GeoUtils.distance(Coordinate(0, 0), Coordinate(0, 180)) == pytest.approx(math.pi * EARTH_RADIUS_M)


@pytest.mark.parametrize(
    "target,expected",
    [
        (Coordinate(1, 0), 0),
        (Coordinate(0, 1), 90),
        (Coordinate(-1, 0), 180),
        (Coordinate(0, -1), 270),
    ],
)
def test_cardinal_bearings(target, expected):
    assert GeoUtils.bearing(Coordinate(0, 0), target) == pytest.approx(expected, abs=1e-9)


@pytest.mark.parametrize(
    "a,b",
    [
        (SAN_FRANCISCO, LOS_ANGELES),
        (LOS_ANGELES, SAN_FRANCISCO),
        (Coordinate(10, 10), Coordinate(10, 10)),
        (Coordinate(-45, 170), Coordinate(45, -170)),
    ],
)
def test_bearing_range(a, b):
    assert 0 <= GeoUtils.bearing(a, b) < 360


def test_destination_east_along_equator():
    point = GeoUtils.destination(Coordinate(0, 0), ONE_DEGREE_M, 90)
    assert point.latitude == pytest.approx(0, abs=1e-9)
    assert point.longitude == pytest.approx(1)


def test_destination_wraps_antimeridian():
    point = GeoUtils.destination(Coordinate(0, 179.5), ONE_DEGREE_M, 90)
    assert point.longitude == pytest.approx(-179.5)


def test_destination_then_distance_agree():
    point = GeoUtils.destination(SAN_FRANCISCO, 2500, 37)
    assert GeoUtils.distance(SAN_FRANCISCO, point) == pytest.approx(2500, rel=1e-6)
    assert GeoUtils.bearing(SAN_FRANCISCO, point) == pytest.approx(37, abs=0.01)


def test_bounding_box_for_applies_padding():
    coords = [Coordinate(0, 0), Coordinate(2, 2)]
    assert GeoUtils.bounding_box_for(coords, padding_factor=1.0) == BoundingBox.create(0, 0, 2, 2)

    padded = GeoUtils.bounding_box_for(coords)
    assert padded.south == pytest.approx(-0.1)
    assert padded.north == pytest.approx(2.1)
    assert padded.west == pytest.approx(-0.1)
    assert padded.east == pytest.approx(2.1)


def test_bounding_box_for_invalid_input_returns_none():
    assert GeoUtils.bounding_box_for([]) is None
    assert GeoUtils.bounding_box_for([Coordinate(-90, 0), Coordinate(90, 0)]) is None


def test_bounding_box_around():
    assert GeoUtils.bounding_box_around(Coordinate(0, 0), 111000) == BoundingBox.create(-1, -1, 1, 1)
    assert GeoUtils.bounding_box_around(Coordinate(89.999, 0), 1000) is None


def test_expand_bounding_box():
    expanded = GeoUtils.expand_bounding_box(BoundingBox.create(0, 0, 1, 1), 111000)
    assert expanded == BoundingBox.create(-1, -1, 2, 2)
    assert GeoUtils.expand_bounding_box(BoundingBox.WORLD, 10_000_000) is None


def test_validity_checks():
    assert GeoUtils.is_valid_coordinate(Coordinate(90, -180))
    assert not GeoUtils.is_valid_coordinate(Coordinate(90.1, 0))
    assert GeoUtils.is_valid_bounding_box(BoundingBox.create(0, 0, 1, 1))


@pytest.mark.parametrize(
    "meters,text",
    [
        (0, "0 m"),
        (850, "850 m"),
        (2500, "2.5 km"),
        (12000, "12 km"),
    ],
)
def test_format_distance(meters, text):
    assert GeoUtils.format_distance(meters) == text


def test_format_coordinate():
    assert GeoUtils.format_coordinate(Coordinate(1.5, -2.25)) == "1.500000, -2.250000"


def test_path_length():
    points = [Coordinate(0, 0), Coordinate(0, 1), Coordinate(0, 2)]
    assert GeoUtils.path_length(points) == pytest.approx(2 * ONE_DEGREE_M)
    assert GeoUtils.path_length(points[:1]) == 0
