"""
Error types for Overpass operations

Validation errors (coordinates, bounding boxes, queries) are raised
synchronously when values are constructed. Transport and decode errors
are raised from OverpassClient.execute or the future returned by submit.
"""

from typing import Optional


class OverpassError(Exception):
    """Base class for every error raised by overpasskit"""

    default_message = "Overpass operation failed"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.default_message)


class InvalidCoordinatesError(OverpassError):
    """Latitude or longitude outside its valid range"""

    default_message = "Invalid coordinates provided"


class InvalidBoundingBoxError(OverpassError):
    """Bounding box with inverted bounds (south > north or west > east)"""

    default_message = "Invalid bounding box configuration"


class NetworkError(OverpassError):
    """Transport failure or non-2xx HTTP status"""

    default_message = "Network error"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class InvalidResponseError(OverpassError):
    """Response body present but not decodable against the response schema"""

    default_message = "Invalid response from server"


class OverpassTimeoutError(OverpassError):
    """Client-side deadline exceeded"""

    default_message = "Request timed out"


class QueryError(OverpassError):
    """Malformed endpoint URL, query or request construction failure"""

    default_message = "Query error"


class NoDataError(OverpassError):
    """Transport returned no body at all"""

    default_message = "No data returned from query"
