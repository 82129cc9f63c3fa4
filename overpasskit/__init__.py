"""
overpasskit - client library for the OpenStreetMap Overpass API

Build bounding-box scoped queries, execute them with caching, and work
with the decoded elements.
"""

from .config import ClientConfig, Endpoint, OutputFormat, get_config
from .exceptions import (
    OverpassError,
    InvalidCoordinatesError,
    InvalidBoundingBoxError,
    NetworkError,
    InvalidResponseError,
    OverpassTimeoutError,
    QueryError,
    NoDataError,
)
from .models import Address, Element, ElementType, OverpassResponse, SearchType
from .query import BoundingBox, Coordinate, ElementFilter, OverpassQuery, QueryTimeout
from .analysis import ElementUtils, GeoUtils
from .client import OverpassClient, ResponseCache
from .favorites import FavoriteLocation, FavoritesStore
from .search import SearchResult, SearchSession

__version__ = "1.0.0"

__all__ = [
    "ClientConfig",
    "Endpoint",
    "OutputFormat",
    "get_config",
    "OverpassError",
    "InvalidCoordinatesError",
    "InvalidBoundingBoxError",
    "NetworkError",
    "InvalidResponseError",
    "OverpassTimeoutError",
    "QueryError",
    "NoDataError",
    "Address",
    "Element",
    "ElementType",
    "OverpassResponse",
    "SearchType",
    "BoundingBox",
    "Coordinate",
    "ElementFilter",
    "OverpassQuery",
    "QueryTimeout",
    "ElementUtils",
    "GeoUtils",
    "OverpassClient",
    "ResponseCache",
    "FavoriteLocation",
    "FavoritesStore",
    "SearchResult",
    "SearchSession",
]
