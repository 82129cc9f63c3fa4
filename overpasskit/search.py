"""
Search session

High-level search flow over an OverpassClient: one search at a time,
results returned as values instead of raised, a bounded history of
successful searches and a persistent favorites list.
"""

import threading
import uuid
from concurrent.futures import CancelledError, Future
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

from loguru import logger

from .client.client import OverpassClient
from .config import ClientConfig, get_config
from .exceptions import NetworkError, OverpassError
from .favorites import FavoriteLocation, FavoritesStore
from .models import OverpassResponse, SearchType
from .query.bounding_box import BoundingBox
from .query.builder import OverpassQuery


@dataclass(frozen=True)
class SearchQuery:
    """Record of one search; equality is by id"""
    type: SearchType
    bounding_box: BoundingBox
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def __eq__(self, other):
        if not isinstance(other, SearchQuery):
            return NotImplemented
        return self.id == other.id

    def __hash__(self):
        return hash(self.id)


@dataclass(frozen=True)
class SearchResult:
    query: SearchQuery
    response: Optional[OverpassResponse] = None
    error: Optional[OverpassError] = None
    cancelled: bool = False

    @property
    def is_success(self) -> bool:
        return self.error is None and self.response is not None

    @property
    def element_count(self) -> int:
        return len(self.response.elements) if self.response is not None else 0


class SearchSession:
    """
    Runs searches through one client

    Starting a search cancels the one in progress; the cancelled search
    returns a SearchResult with cancelled=True and is not added to history.
    """

    def __init__(
        self,
        client: Optional[OverpassClient] = None,
        favorites: Optional[FavoritesStore] = None,
        config: Optional[ClientConfig] = None,
    ):
        self.config = config if config is not None else get_config()
        if client is None:
            client = OverpassClient(config=self.config)
        if favorites is None:
            favorites = FavoritesStore.at_path(self.config.favorites_path)
        self.client = client
        self.favorites_store = favorites
        self.history_limit = self.config.search_history_limit

        self._lock = threading.Lock()
        self._current: Optional[Future] = None
        self._history: List[SearchQuery] = []

    # ------------------------------------------------------------------
    # Searches
    # ------------------------------------------------------------------

    def search_toilets(self, bounding_box: BoundingBox) -> SearchResult:
        return self._search(self._preset(OverpassQuery.toilets, bounding_box), SearchType.TOILETS, bounding_box)

    def search_restaurants(self, bounding_box: BoundingBox) -> SearchResult:
        return self._search(self._preset(OverpassQuery.restaurants, bounding_box), SearchType.RESTAURANTS, bounding_box)

    def search_cafes(self, bounding_box: BoundingBox) -> SearchResult:
        return self._search(self._preset(OverpassQuery.cafes, bounding_box), SearchType.CAFES, bounding_box)

    def search_hotels(self, bounding_box: BoundingBox) -> SearchResult:
        return self._search(self._preset(OverpassQuery.hotels, bounding_box), SearchType.HOTELS, bounding_box)

    def search_shops(self, bounding_box: BoundingBox, shop_type: Optional[str] = None) -> SearchResult:
        query = OverpassQuery.shops(bounding_box, shop_type, self.client.output_format, self.client.timeout)
        return self._search(query, SearchType.SHOPS, bounding_box)

    def search_parks(self, bounding_box: BoundingBox) -> SearchResult:
        return self._search(self._preset(OverpassQuery.parks, bounding_box), SearchType.PARKS, bounding_box)

    def perform_custom_search(
        self,
        query: OverpassQuery,
        search_type: SearchType = SearchType.CUSTOM,
        bounding_box: Optional[BoundingBox] = None,
    ) -> SearchResult:
        """Run an arbitrary query; bounding_box defaults to the query's own"""
        bounding_box = bounding_box or query.bounding_box or BoundingBox.WORLD
        return self._search(query, SearchType(search_type), bounding_box)

    def search(self, search_type: SearchType, bounding_box: BoundingBox, shop_type: Optional[str] = None) -> SearchResult:
        """Dispatch on search_type; CUSTOM is not accepted here"""
        search_type = SearchType(search_type)
        if search_type == SearchType.SHOPS:
            return self.search_shops(bounding_box, shop_type)
        dispatch = {
            SearchType.TOILETS: self.search_toilets,
            SearchType.RESTAURANTS: self.search_restaurants,
            SearchType.CAFES: self.search_cafes,
            SearchType.HOTELS: self.search_hotels,
            SearchType.PARKS: self.search_parks,
        }
        if search_type not in dispatch:
            raise ValueError("Custom searches need a query, use perform_custom_search()")
        return dispatch[search_type](bounding_box)

    def _preset(self, factory, bounding_box: BoundingBox) -> OverpassQuery:
        return factory(bounding_box, self.client.output_format, self.client.timeout)

    def _search(self, query: OverpassQuery, search_type: SearchType, bounding_box: BoundingBox) -> SearchResult:
        self.cancel_search()

        record = SearchQuery(search_type, bounding_box)
        logger.info(f"Searching {search_type.display_name.lower()} in {bounding_box}")

        with self._lock:
            future = self.client.submit(query)
            self._current = future

        try:
            response = future.result()
        except CancelledError:
            logger.info(f"Search for {search_type.value} was cancelled")
            return SearchResult(record, cancelled=True)
        except OverpassError as e:
            logger.error(f"Search for {search_type.value} failed: {e}")
            return SearchResult(record, error=e)
        except Exception as e:
            logger.exception(f"Unexpected failure during {search_type.value} search")
            wrapped = NetworkError(str(e))
            wrapped.__cause__ = e
            return SearchResult(record, error=wrapped)
        finally:
            with self._lock:
                if self._current is future:
                    self._current = None

        self._record(record)
        logger.info(f"Search for {search_type.value} found {len(response.elements)} elements")
        return SearchResult(record, response=response)

    def _record(self, record: SearchQuery) -> None:
        with self._lock:
            self._history.insert(0, record)
            del self._history[self.history_limit:]

    def cancel_search(self) -> bool:
        """Cancel the search in progress, if any"""
        with self._lock:
            future, self._current = self._current, None
        if future is None:
            return False
        return self.client.cancel(future)

    # ------------------------------------------------------------------
    # State passthrough
    # ------------------------------------------------------------------

    @property
    def history(self) -> List[SearchQuery]:
        """Successful searches, most recent first"""
        with self._lock:
            return list(self._history)

    def clear_history(self) -> None:
        with self._lock:
            self._history.clear()

    @property
    def is_loading(self) -> bool:
        return self.client.is_loading

    @property
    def last_response(self) -> Optional[OverpassResponse]:
        return self.client.last_response

    @property
    def last_error(self) -> Optional[Exception]:
        return self.client.last_error

    def clear_error(self) -> None:
        self.client.clear_error()

    # ------------------------------------------------------------------
    # Favorites
    # ------------------------------------------------------------------

    @property
    def favorites(self) -> List[FavoriteLocation]:
        return self.favorites_store.favorites

    def add_favorite(self, location: FavoriteLocation) -> bool:
        return self.favorites_store.add(location)

    def remove_favorite(self, location: FavoriteLocation) -> bool:
        return self.favorites_store.remove(location)

    def is_favorite(self, location: FavoriteLocation) -> bool:
        return self.favorites_store.is_favorite(location)

    def close(self) -> None:
        self.cancel_search()
        self.client.close()

    def __enter__(self) -> "SearchSession":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
