"""
Geometry utilities for distance, bearing and bounding box calculations

Spherical-earth formulas only; accuracy is approximate, not ellipsoidal.
"""

import math
from typing import List, Optional, Sequence

from ..exceptions import OverpassError
from ..query.bounding_box import METERS_PER_DEGREE, BoundingBox, Coordinate


EARTH_RADIUS_M = 6371000.0


class GeoUtils:
    """Stateless geographic calculations"""

    @staticmethod
    def distance(a: Coordinate, b: Coordinate) -> float:
        """Great-circle distance in meters (Haversine)"""
        phi1 = math.radians(a.latitude)
        phi2 = math.radians(b.latitude)
        delta_phi = math.radians(b.latitude - a.latitude)
        delta_lambda = math.radians(b.longitude - a.longitude)

        h = math.sin(delta_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(delta_lambda / 2) ** 2
        # Rounding can push h a hair past 1 for antipodal points
        h = min(1.0, max(0.0, h))
        c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))

        return EARTH_RADIUS_M * c

    @staticmethod
    def bearing(origin: Coordinate, target: Coordinate) -> float:
        """Initial bearing from origin to target in degrees, within [0, 360)"""
        lat1 = math.radians(origin.latitude)
        lat2 = math.radians(target.latitude)
        delta_lon = math.radians(target.longitude - origin.longitude)

        y = math.sin(delta_lon) * math.cos(lat2)
        x = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(delta_lon)

        result = math.degrees(math.atan2(y, x)) % 360.0
        # -1e-15 % 360 rounds to 360.0
        return 0.0 if result >= 360.0 else result

    @staticmethod
    def destination(origin: Coordinate, distance_m: float, bearing_deg: float) -> Coordinate:
        """
        Point reached by travelling distance_m from origin along bearing_deg

        Longitude is normalized to [-180, 180).
        """
        angular = distance_m / EARTH_RADIUS_M
        theta = math.radians(bearing_deg)
        lat1 = math.radians(origin.latitude)
        lon1 = math.radians(origin.longitude)

        lat2 = math.asin(
            math.sin(lat1) * math.cos(angular) + math.cos(lat1) * math.sin(angular) * math.cos(theta)
        )
        lon2 = lon1 + math.atan2(
            math.sin(theta) * math.sin(angular) * math.cos(lat1),
            math.cos(angular) - math.sin(lat1) * math.sin(lat2),
        )

        longitude = (math.degrees(lon2) + 540.0) % 360.0 - 180.0
        return Coordinate(math.degrees(lat2), longitude)

    @staticmethod
    def bounding_box_for(coordinates: Sequence[Coordinate], padding_factor: float = 1.1) -> Optional[BoundingBox]:
        """
        Box around coordinates with each axis' span scaled by padding_factor

        Returns None for empty input or when the padded box leaves the valid range.
        """
        if not coordinates:
            return None

        lats = [c.latitude for c in coordinates]
        lons = [c.longitude for c in coordinates]
        lat_center = (min(lats) + max(lats)) / 2.0
        lon_center = (min(lons) + max(lons)) / 2.0
        lat_delta = (max(lats) - min(lats)) * padding_factor / 2.0
        lon_delta = (max(lons) - min(lons)) * padding_factor / 2.0

        try:
            return BoundingBox.create(
                lat_center - lat_delta,
                lon_center - lon_delta,
                lat_center + lat_delta,
                lon_center + lon_delta,
            )
        except OverpassError:
            return None

    @staticmethod
    def bounding_box_around(center: Coordinate, radius_m: float) -> Optional[BoundingBox]:
        """BoundingBox.from_center_radius, or None when the result is invalid"""
        try:
            return BoundingBox.from_center_radius(center, radius_m)
        except OverpassError:
            return None

    @staticmethod
    def expand_bounding_box(bounding_box: BoundingBox, meters: float) -> Optional[BoundingBox]:
        """Grow a box by meters on every side, or None when the result is invalid"""
        try:
            return bounding_box.expanded(meters / METERS_PER_DEGREE)
        except OverpassError:
            return None

    @staticmethod
    def is_valid_coordinate(coordinate: Coordinate) -> bool:
        return -90.0 <= coordinate.latitude <= 90.0 and -180.0 <= coordinate.longitude <= 180.0

    @staticmethod
    def is_valid_bounding_box(bounding_box: BoundingBox) -> bool:
        return (
            bounding_box.south <= bounding_box.north
            and bounding_box.west <= bounding_box.east
            and GeoUtils.is_valid_coordinate(Coordinate(bounding_box.south, bounding_box.west))
            and GeoUtils.is_valid_coordinate(Coordinate(bounding_box.north, bounding_box.east))
        )

    @staticmethod
    def format_distance(distance_m: float) -> str:
        """850 m, 2.5 km, 12 km"""
        if distance_m < 1000:
            return f"{distance_m:.0f} m"
        if distance_m < 10000:
            return f"{distance_m / 1000:.1f} km"
        return f"{distance_m / 1000:.0f} km"

    @staticmethod
    def format_coordinate(coordinate: Coordinate) -> str:
        return f"{coordinate.latitude:.6f}, {coordinate.longitude:.6f}"

    @staticmethod
    def path_length(points: List[Coordinate]) -> float:
        """Total length in meters of a polyline"""
        return sum(GeoUtils.distance(a, b) for a, b in zip(points, points[1:]))
