"""
Analysis helpers for decoded Overpass elements
"""

from .geometry_utils import GeoUtils
from .element_utils import ElementUtils

__all__ = [
    "GeoUtils",
    "ElementUtils",
]
