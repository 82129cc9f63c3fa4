"""
Main Overpass client

Orchestrates the request lifecycle:

    check cache -> build request -> HTTP GET -> parse -> populate cache -> return

Every call runs on a small worker pool and is represented by its own
Future. Cancellation is cooperative: cancelled calls stop being
delivered, but a request already on the wire runs to completion and its
result is discarded.
"""

import threading
from concurrent.futures import Future, InvalidStateError, ThreadPoolExecutor
from dataclasses import dataclass, replace
from typing import Callable, Dict, List, Optional, Set, Tuple, Union

from loguru import logger

from ..config import ClientConfig, get_config
from ..exceptions import QueryError
from ..models import OverpassResponse
from ..query.bounding_box import BoundingBox
from ..query.builder import OverpassQuery, QueryTimeout
from .api_client import OverpassAPIClient
from .cache import ResponseCache
from .parser import OverpassResponseParser


QueryLike = Union[OverpassQuery, str]


@dataclass(frozen=True)
class ClientState:
    """Observable client state"""
    is_loading: bool = False
    last_error: Optional[Exception] = None
    last_response: Optional[OverpassResponse] = None


StateListener = Callable[[ClientState], None]


class OverpassClient:
    """
    Client for the Overpass API

    Thread-safe. Responses are cached by formatted query text, so repeated
    identical queries within the cache TTL never reach the network.
    """

    def __init__(
        self,
        endpoint=None,
        config: Optional[ClientConfig] = None,
        cache: Optional[ResponseCache] = None,
        api_client: Optional[OverpassAPIClient] = None,
        parser: Optional[OverpassResponseParser] = None,
    ):
        self.config = config if config is not None else get_config()
        api = self.config.api

        if api_client is None:
            api_client = OverpassAPIClient(
                endpoint=endpoint or api.overpass_url,
                user_agent=api.user_agent,
                max_connections=api.max_connections,
            )
        if cache is None:
            cache = ResponseCache(
                ttl_seconds=self.config.cache.ttl_seconds,
                max_entries=self.config.cache.max_entries,
            )
        self.api_client = api_client
        self.cache = cache
        self.parser = parser if parser is not None else OverpassResponseParser()

        self.output_format = api.output_format
        self.timeout = QueryTimeout(api.server_timeout, api.client_timeout)

        self._executor = ThreadPoolExecutor(
            max_workers=api.max_connections,
            thread_name_prefix="overpass",
        )
        self._lock = threading.Lock()
        self._in_flight: Set[Future] = set()
        # formatted query -> network fetch shared by identical concurrent calls
        self._fetches: Dict[str, Future] = {}
        self._listeners: List[StateListener] = []
        self._state = ClientState()
        self._version = 0
        # Serializes listener calls; superseded snapshots are dropped
        self._notify_lock = threading.RLock()
        self._delivered_version = 0
        self._closed = False

        if self.config.cache.enable_sweeper:
            self.cache.start_sweeper(self.config.cache.sweep_interval_seconds)

    @property
    def endpoint(self) -> str:
        return self.api_client.overpass_url

    @property
    def state(self) -> ClientState:
        with self._lock:
            return self._state

    @property
    def is_loading(self) -> bool:
        return self.state.is_loading

    @property
    def last_error(self) -> Optional[Exception]:
        return self.state.last_error

    @property
    def last_response(self) -> Optional[OverpassResponse]:
        return self.state.last_response

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def execute(self, query: QueryLike) -> OverpassResponse:
        """
        Execute a query and wait for its response

        Args:
            query: OverpassQuery, or a raw Overpass QL body

        Returns:
            Decoded response (possibly with no elements)

        Raises:
            NetworkError: Transport failure or non-2xx status
            OverpassTimeoutError: Client timeout expired
            InvalidResponseError: Body could not be decoded
            NoDataError: Server sent no body
            QueryError: Query or request could not be built
            concurrent.futures.CancelledError: cancel_all() was called meanwhile
        """
        return self.submit(query).result()

    def submit(self, query: QueryLike) -> "Future[OverpassResponse]":
        """Start executing a query; the returned future carries the response or error"""
        query = self._coerce_query(query)
        future: Future = Future()

        with self._lock:
            if self._closed:
                raise QueryError("Client is closed")
            self._in_flight.add(future)
            update = self._update_state(is_loading=True, last_error=None)

        self._notify(*update)
        self._executor.submit(self._run, query, future)
        return future

    def _coerce_query(self, query: QueryLike) -> OverpassQuery:
        if isinstance(query, OverpassQuery):
            return query
        if isinstance(query, str):
            return OverpassQuery(query, output_format=self.output_format, timeout=self.timeout)
        raise QueryError(f"Expected an OverpassQuery or query string, got {type(query).__name__}")

    def _run(self, query: OverpassQuery, future: Future) -> None:
        if future.cancelled():
            logger.debug("Skipping request cancelled before it started")
            self._finish(future)
            return

        try:
            response = self._perform(query, future)
        except Exception as e:
            self._finish(future, error=e)
        else:
            self._finish(future, response=response)

    def _perform(self, query: OverpassQuery, future: Future) -> OverpassResponse:
        key = query.formatted_query

        cached = self.cache.get(key)
        if cached is not None:
            logger.debug(f"Cache hit for query: {query.query_string[:80]}")
            return cached

        response = self._fetch_shared(query)

        if future.cancelled():
            logger.warning("Discarding response of cancelled request")
            return response

        self.cache.put(key, response)
        logger.info(f"Received {response.summary()}")
        return response

    def _fetch_shared(self, query: OverpassQuery) -> OverpassResponse:
        """
        Fetch and parse, joining an identical request already on the wire

        At most one network request per formatted query is in flight; later
        callers wait for it and receive the same response or error.
        """
        key = query.formatted_query

        with self._lock:
            shared = self._fetches.get(key)
            leader = shared is None
            if leader:
                shared = Future()
                self._fetches[key] = shared

        if not leader:
            logger.debug(f"Joining in-flight request for query: {query.query_string[:80]}")
            return shared.result()

        try:
            logger.info(f"Executing Overpass query against {self.endpoint}: {query.query_string[:120]}")
            body = self.api_client.fetch(key, timeout=query.timeout.client_timeout)
            response = self.parser.parse(body)
        except Exception as e:
            shared.set_exception(e)
            raise
        else:
            shared.set_result(response)
            return response
        finally:
            with self._lock:
                self._fetches.pop(key, None)

    def _finish(
        self,
        future: Future,
        response: Optional[OverpassResponse] = None,
        error: Optional[Exception] = None,
    ) -> None:
        with self._lock:
            self._in_flight.discard(future)
            delivered = not future.cancelled()
            changes = {"is_loading": bool(self._in_flight)}
            if delivered and error is not None:
                changes["last_error"] = error
            elif delivered and response is not None:
                changes.update(last_response=response, last_error=None)
            update = self._update_state(**changes)

        # Listeners run before the waiting caller wakes up
        self._notify(*update)

        if delivered:
            try:
                if error is not None:
                    future.set_exception(error)
                else:
                    future.set_result(response)
            except InvalidStateError:
                # cancel_all() won the race after the check above
                logger.debug("Result arrived for a request cancelled meanwhile")

    # ------------------------------------------------------------------
    # Convenience queries
    # ------------------------------------------------------------------

    def find_toilets(self, bounding_box: BoundingBox) -> OverpassResponse:
        return self.execute(OverpassQuery.toilets(bounding_box, self.output_format, self.timeout))

    def find_restaurants(self, bounding_box: BoundingBox) -> OverpassResponse:
        return self.execute(OverpassQuery.restaurants(bounding_box, self.output_format, self.timeout))

    def find_cafes(self, bounding_box: BoundingBox) -> OverpassResponse:
        return self.execute(OverpassQuery.cafes(bounding_box, self.output_format, self.timeout))

    def find_hotels(self, bounding_box: BoundingBox) -> OverpassResponse:
        return self.execute(OverpassQuery.hotels(bounding_box, self.output_format, self.timeout))

    def find_shops(self, bounding_box: BoundingBox, shop_type: Optional[str] = None) -> OverpassResponse:
        return self.execute(OverpassQuery.shops(bounding_box, shop_type, self.output_format, self.timeout))

    def find_parks(self, bounding_box: BoundingBox) -> OverpassResponse:
        return self.execute(OverpassQuery.parks(bounding_box, self.output_format, self.timeout))

    # ------------------------------------------------------------------
    # Lifecycle and state
    # ------------------------------------------------------------------

    def cancel(self, future: Future) -> bool:
        """Abandon one request started by submit(); returns whether it was cancelled"""
        return self._cancel([future]) == 1

    def cancel_all(self) -> int:
        """
        Abandon every outstanding request

        Returns the number of requests cancelled. Requests already on the
        wire finish in the background and their results are dropped.
        """
        with self._lock:
            pending = list(self._in_flight)
        cancelled = self._cancel(pending)
        if pending:
            logger.info(f"Cancelled {cancelled} outstanding Overpass requests")
        return cancelled

    def _cancel(self, futures: List[Future]) -> int:
        with self._lock:
            for future in futures:
                self._in_flight.discard(future)

        cancelled = sum(1 for f in futures if f.cancel())

        with self._lock:
            update = self._update_state(is_loading=bool(self._in_flight))

        self._notify(*update)
        return cancelled

    def clear_cache(self) -> None:
        self.cache.clear()

    def clear_error(self) -> None:
        with self._lock:
            update = self._update_state(last_error=None)
        self._notify(*update)

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """
        Register a listener called with the new ClientState after every change

        Returns a callable that unregisters the listener.
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _update_state(self, **changes) -> Tuple[int, ClientState]:
        """Apply changes and number the new snapshot; caller holds self._lock"""
        self._state = replace(self._state, **changes)
        self._version += 1
        return self._version, self._state

    def _notify(self, version: int, state: ClientState) -> None:
        with self._notify_lock:
            if version <= self._delivered_version:
                logger.debug(f"Dropping superseded state notification #{version}")
                return
            self._delivered_version = version

            with self._lock:
                listeners = list(self._listeners)
            for listener in listeners:
                if version < self._delivered_version:
                    # A listener caused a newer state, which was already delivered
                    return
                try:
                    listener(state)
                except Exception as e:
                    logger.exception(f"State listener {listener!r} failed: {e}")

    def close(self) -> None:
        """Cancel outstanding work and release the worker pool and HTTP session"""
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self.cancel_all()
        self._executor.shutdown(wait=False)
        self.cache.stop_sweeper()
        self.api_client.close()
        logger.debug("Overpass client closed")

    def __enter__(self) -> "OverpassClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


__all__ = ["OverpassClient", "ClientState"]
