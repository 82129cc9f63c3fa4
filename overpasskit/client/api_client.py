"""
Overpass API client

Handles HTTP communication with an Overpass endpoint:
- Shared session with a bounded connection pool
- Request construction (GET ?data=<query>)
- Translation of transport failures into overpasskit errors

No retries are attempted here; callers decide whether to re-issue.
"""

from typing import Optional

import requests
from loguru import logger
from requests.adapters import HTTPAdapter

from ..config import Endpoint, is_valid_endpoint
from ..exceptions import NetworkError, NoDataError, OverpassTimeoutError, QueryError


DEFAULT_USER_AGENT = "overpasskit/1.0 (+https://wiki.openstreetmap.org/wiki/Overpass_API)"


def resolve_endpoint(endpoint) -> str:
    """Endpoint member or URL string -> validated URL"""
    url = endpoint.value if isinstance(endpoint, Endpoint) else str(endpoint or "").strip()
    if not is_valid_endpoint(url):
        raise QueryError(f"Invalid endpoint URL: {url!r}")
    return url


class OverpassAPIClient:
    """Transport for one Overpass endpoint"""

    def __init__(
        self,
        endpoint=Endpoint.OVERPASS_API,
        user_agent: str = DEFAULT_USER_AGENT,
        max_connections: int = 4,
        session: Optional[requests.Session] = None,
    ):
        self.overpass_url = resolve_endpoint(endpoint)
        self.user_agent = user_agent
        self.max_connections = max_connections
        self.session = session if session is not None else self._create_session()

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        adapter = HTTPAdapter(pool_connections=1, pool_maxsize=self.max_connections, max_retries=0)
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        return session

    def fetch(self, formatted_query: str, timeout: float) -> bytes:
        """
        Execute one Overpass query and return the raw body

        Args:
            formatted_query: Complete Overpass QL text, directives included
            timeout: Client-side timeout in seconds

        Returns:
            Response body bytes

        Raises:
            OverpassTimeoutError: If the client timeout expires
            NetworkError: On transport failure or non-2xx status
            QueryError: If the request cannot be built
            NoDataError: If the server answered without a body
        """
        headers = {
            "Accept": "application/json",
            "User-Agent": self.user_agent,
        }

        try:
            response = self.session.get(
                self.overpass_url,
                params={"data": formatted_query},
                headers=headers,
                timeout=timeout,
            )
        except requests.exceptions.Timeout as e:
            logger.error(f"Overpass request timed out after {timeout}s: {self.overpass_url}")
            raise OverpassTimeoutError(f"Request timed out after {timeout}s") from e
        except (requests.exceptions.InvalidURL, requests.exceptions.MissingSchema,
                requests.exceptions.InvalidSchema) as e:
            logger.error(f"Could not build Overpass request for {self.overpass_url}: {e}")
            raise QueryError(f"Failed to build request URL: {e}") from e
        except requests.exceptions.RequestException as e:
            logger.error(f"Overpass request failed: {e}")
            raise NetworkError(f"Network error: {e}") from e

        if not 200 <= response.status_code < 300:
            logger.error(f"Overpass HTTP error {response.status_code} from {self.overpass_url}")
            raise NetworkError(
                f"Overpass API returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

        if not response.content:
            logger.error(f"Overpass returned an empty body (HTTP {response.status_code})")
            raise NoDataError()

        logger.debug(f"Overpass response: HTTP {response.status_code}, {len(response.content)} bytes")
        return response.content

    def close(self) -> None:
        self.session.close()
