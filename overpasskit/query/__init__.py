"""
Query construction: bounding boxes and Overpass QL builders
"""

from .bounding_box import BoundingBox, Coordinate
from .builder import ElementFilter, ElementKind, OverpassQuery, QueryTimeout

__all__ = [
    "BoundingBox",
    "Coordinate",
    "ElementFilter",
    "ElementKind",
    "OverpassQuery",
    "QueryTimeout",
]
