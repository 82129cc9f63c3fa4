"""
Geographic bounding box

Validated lat/lon rectangle used to scope Overpass queries and to
post-filter their results. Serializes to the Overpass QL coordinate
syntax (south,west,north,east).
"""

import math
from dataclasses import dataclass
from typing import Iterable, Tuple

from ..exceptions import InvalidBoundingBoxError, InvalidCoordinatesError


# Approximate meters per degree (equirectangular)
METERS_PER_DEGREE = 111000.0

# Web Mercator world size in map points (2^28)
MAP_WORLD_SIZE = 268435456.0


@dataclass(frozen=True)
class Coordinate:
    """WGS84 latitude/longitude pair"""
    latitude: float
    longitude: float

    def as_tuple(self) -> Tuple[float, float]:
        return (self.latitude, self.longitude)


def format_degrees(value: float) -> str:
    """Shortest text for a coordinate value; integral values drop the fraction"""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def _check_latitude(value: float) -> None:
    if math.isnan(value) or not -90.0 <= value <= 90.0:
        raise InvalidCoordinatesError(f"Latitude {value} outside [-90, 90]")


def _check_longitude(value: float) -> None:
    if math.isnan(value) or not -180.0 <= value <= 180.0:
        raise InvalidCoordinatesError(f"Longitude {value} outside [-180, 180]")


@dataclass(frozen=True)
class BoundingBox:
    """
    Rectangular lat/lon region

    Invariants: south <= north, west <= east, latitudes within [-90, 90]
    and longitudes within [-180, 180]. Instances are immutable and compare
    by value.
    """
    south: float
    west: float
    north: float
    east: float

    def __post_init__(self):
        # Range checks come first so out-of-range input never reports as inverted
        _check_latitude(self.south)
        _check_latitude(self.north)
        _check_longitude(self.west)
        _check_longitude(self.east)

        if self.south > self.north:
            raise InvalidBoundingBoxError(f"South {self.south} is north of north {self.north}")
        if self.west > self.east:
            raise InvalidBoundingBoxError(f"West {self.west} is east of east {self.east}")

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    @classmethod
    def create(cls, south: float, west: float, north: float, east: float) -> "BoundingBox":
        """
        Create a validated bounding box

        Raises:
            InvalidCoordinatesError: If any bound is outside its valid range
            InvalidBoundingBoxError: If south > north or west > east
        """
        return cls(float(south), float(west), float(north), float(east))

    @classmethod
    def from_center_radius(cls, center: Coordinate, radius_m: float) -> "BoundingBox":
        """Square box around center, radius converted at 111 km per degree"""
        radius_deg = radius_m / METERS_PER_DEGREE
        return cls.create(
            center.latitude - radius_deg,
            center.longitude - radius_deg,
            center.latitude + radius_deg,
            center.longitude + radius_deg,
        )

    @classmethod
    def from_region(cls, center: Coordinate, lat_span: float, lon_span: float) -> "BoundingBox":
        """Box from a center and full latitude/longitude spans"""
        half_lat = lat_span / 2.0
        half_lon = lon_span / 2.0
        return cls.create(
            center.latitude - half_lat,
            center.longitude - half_lon,
            center.latitude + half_lat,
            center.longitude + half_lon,
        )

    @classmethod
    def from_rect(cls, min_x: float, min_y: float, max_x: float, max_y: float) -> "BoundingBox":
        """
        Box from a Web Mercator map rect

        Map points run from (0, 0) at the north-west corner of the world to
        (2^28, 2^28) at the south-east corner, so the bottom-left corner of
        the rect is (min_x, max_y) and the top-right corner is (max_x, min_y).
        """
        south_west = map_point_to_coordinate(min_x, max_y)
        north_east = map_point_to_coordinate(max_x, min_y)
        return cls.create(
            south_west.latitude,
            south_west.longitude,
            north_east.latitude,
            north_east.longitude,
        )

    @classmethod
    def encompassing(cls, coordinates: Iterable[Coordinate]) -> "BoundingBox":
        """
        Smallest box containing every coordinate

        Raises:
            InvalidCoordinatesError: If coordinates is empty
        """
        coords = list(coordinates)
        if not coords:
            raise InvalidCoordinatesError("Cannot build a bounding box from no coordinates")

        lats = [c.latitude for c in coords]
        lons = [c.longitude for c in coords]
        return cls.create(min(lats), min(lons), max(lats), max(lons))

    @classmethod
    def parse(cls, text: str) -> "BoundingBox":
        """Inverse of to_overpass(): "(s,w,n,e)" -> BoundingBox"""
        body = text.strip()
        if body.startswith("(") and body.endswith(")"):
            body = body[1:-1]
        parts = [p.strip() for p in body.split(",")]
        if len(parts) != 4:
            raise InvalidCoordinatesError(f"Expected four comma separated bounds, got {text!r}")
        try:
            south, west, north, east = (float(p) for p in parts)
        except ValueError as e:
            raise InvalidCoordinatesError(f"Non-numeric bound in {text!r}") from e
        return cls.create(south, west, north, east)

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def center(self) -> Coordinate:
        return Coordinate((self.south + self.north) / 2.0, (self.west + self.east) / 2.0)

    @property
    def span(self) -> Tuple[float, float]:
        """(latitude delta, longitude delta) in degrees"""
        return (abs(self.north - self.south), abs(self.east - self.west))

    @property
    def area(self) -> float:
        """Area in square degrees"""
        lat_delta, lon_delta = self.span
        return lat_delta * lon_delta

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def to_overpass(self) -> str:
        """Overpass QL bbox filter: (south,west,north,east)"""
        return "({},{},{},{})".format(
            format_degrees(self.south),
            format_degrees(self.west),
            format_degrees(self.north),
            format_degrees(self.east),
        )

    def contains(self, coordinate: Coordinate) -> bool:
        """Inclusive containment test on both axes"""
        return (
            self.south <= coordinate.latitude <= self.north
            and self.west <= coordinate.longitude <= self.east
        )

    def expanded(self, delta_degrees: float) -> "BoundingBox":
        """Grow all four bounds by delta_degrees; the result is re-validated"""
        return BoundingBox.create(
            self.south - delta_degrees,
            self.west - delta_degrees,
            self.north + delta_degrees,
            self.east + delta_degrees,
        )

    def union(self, other: "BoundingBox") -> "BoundingBox":
        """Smallest box containing both boxes"""
        return BoundingBox.create(
            min(self.south, other.south),
            min(self.west, other.west),
            max(self.north, other.north),
            max(self.east, other.east),
        )

    def __lt__(self, other: "BoundingBox") -> bool:
        if not isinstance(other, BoundingBox):
            return NotImplemented
        return self.area < other.area

    def __str__(self) -> str:
        return f"BoundingBox({self.south}, {self.west}, {self.north}, {self.east})"


def map_point_to_coordinate(x: float, y: float) -> Coordinate:
    """Web Mercator map point -> coordinate"""
    longitude = x / MAP_WORLD_SIZE * 360.0 - 180.0
    n = math.pi * (1.0 - 2.0 * y / MAP_WORLD_SIZE)
    latitude = math.degrees(math.atan(math.sinh(n)))
    return Coordinate(latitude, longitude)


def coordinate_to_map_point(coordinate: Coordinate) -> Tuple[float, float]:
    """Coordinate -> Web Mercator map point"""
    x = (coordinate.longitude + 180.0) / 360.0 * MAP_WORLD_SIZE
    lat_rad = math.radians(coordinate.latitude)
    y = (1.0 - math.log(math.tan(lat_rad) + 1.0 / math.cos(lat_rad)) / math.pi) / 2.0 * MAP_WORLD_SIZE
    return (x, y)


# Small area around the origin
BoundingBox.DEFAULT = BoundingBox(-0.1, -0.1, 0.1, 0.1)

# Covers the Web Mercator-visible world
BoundingBox.WORLD = BoundingBox(-85.0, -180.0, 85.0, 180.0)
