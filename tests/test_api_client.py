"""
Tests for the HTTP transport, using a mocked requests.Session
"""

import pytest
import requests

from overpasskit.client import OverpassAPIClient
from overpasskit.client.api_client import resolve_endpoint
from overpasskit.config import Endpoint
from overpasskit.exceptions import NetworkError, NoDataError, OverpassTimeoutError, QueryError


QUERY = '[out:json][timeout:20];(node["amenity"="toilets"](0,0,1,1););out body;>;out skel qt;'


def test_fetch_sends_query_as_data_parameter(mock_session, http_response):
    mock_session.get.return_value = http_response(content=b'{"elements": []}')
    client = OverpassAPIClient(endpoint=Endpoint.KUMI_SYSTEMS, user_agent="tests/1.0", session=mock_session)

    body = client.fetch(QUERY, timeout=22.0)

    assert body == b'{"elements": []}'
    args, kwargs = mock_session.get.call_args
    assert args == ("https://overpass.kumi.systems/api/interpreter",)
    assert kwargs["params"] == {"data": QUERY}
    assert kwargs["timeout"] == 22.0
    assert kwargs["headers"]["User-Agent"] == "tests/1.0"
    assert kwargs["headers"]["Accept"] == "application/json"


@pytest.mark.parametrize("status_code", [400, 429, 500, 504])
def test_non_2xx_status_is_network_error(mock_session, http_response, status_code):
    mock_session.get.return_value = http_response(status_code=status_code)
    client = OverpassAPIClient(session=mock_session)

    with pytest.raises(NetworkError) as exc_info:
        client.fetch(QUERY, timeout=22.0)
    assert exc_info.value.status_code == status_code


@pytest.mark.parametrize(
    "error",
    [requests.exceptions.Timeout(), requests.exceptions.ReadTimeout(), requests.exceptions.ConnectTimeout()],
)
def test_timeouts_map_to_timeout_error(mock_session, error):
    mock_session.get.side_effect = error
    client = OverpassAPIClient(session=mock_session)

    with pytest.raises(OverpassTimeoutError):
        client.fetch(QUERY, timeout=1.0)


def test_connection_failure_is_network_error(mock_session):
    mock_session.get.side_effect = requests.exceptions.ConnectionError("refused")
    client = OverpassAPIClient(session=mock_session)

    with pytest.raises(NetworkError) as exc_info:
        client.fetch(QUERY, timeout=1.0)
    assert exc_info.value.status_code is None
    assert isinstance(exc_info.value.__cause__, requests.exceptions.ConnectionError)


def test_malformed_url_is_query_error(mock_session):
    mock_session.get.side_effect = requests.exceptions.InvalidURL("bad")
    client = OverpassAPIClient(session=mock_session)

    with pytest.raises(QueryError):
        client.fetch(QUERY, timeout=1.0)


def test_empty_body_is_no_data_error(mock_session, http_response):
    mock_session.get.return_value = http_response(content=b"")
    client = OverpassAPIClient(session=mock_session)

    with pytest.raises(NoDataError):
        client.fetch(QUERY, timeout=1.0)


@pytest.mark.parametrize(
    "endpoint,url",
    [
        (Endpoint.OVERPASS_API, "https://overpass-api.de/api/interpreter"),
        (Endpoint.MIATARU, "https://overpass.miataru.com/api/interpreter"),
        ("http://localhost:12345/api/interpreter", "http://localhost:12345/api/interpreter"),
    ],
)
def test_resolve_endpoint(endpoint, url):
    assert resolve_endpoint(endpoint) == url


@pytest.mark.parametrize("endpoint", ["", "not a url", "ftp://example.com/api", None])
def test_invalid_endpoints_are_rejected(endpoint):
    with pytest.raises(QueryError):
        OverpassAPIClient(endpoint=endpoint)


def test_default_session_pool_is_bounded():
    client = OverpassAPIClient(max_connections=4)
    try:
        adapter = client.session.get_adapter("https://overpass-api.de/api/interpreter")
        assert adapter._pool_maxsize == 4
    finally:
        client.close()
