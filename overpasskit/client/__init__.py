"""
Overpass client stack

- OverpassAPIClient: HTTP transport for one endpoint
- OverpassResponseParser: JSON body -> OverpassResponse
- ResponseCache: TTL + LRU cache keyed by formatted query
- OverpassClient: orchestrates cache, transport and parsing
"""

from .api_client import OverpassAPIClient
from .parser import OverpassResponseParser
from .cache import ResponseCache
from .client import ClientState, OverpassClient

__all__ = [
    "OverpassAPIClient",
    "OverpassResponseParser",
    "ResponseCache",
    "ClientState",
    "OverpassClient",
]
