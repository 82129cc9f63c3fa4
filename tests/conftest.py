"""
Shared fixtures: fake clock, canned HTTP responses and a mocked transport
"""

import json
from unittest.mock import MagicMock

import pytest
import requests

from overpasskit.client import OverpassAPIClient, OverpassClient, ResponseCache
from overpasskit.config import ClientConfig


SAMPLE_PAYLOAD = {
    "version": 0.6,
    "generator": "Overpass API 0.7.62",
    "osm3s": {
        "timestamp_osm_base": "2024-05-01T12:00:00Z",
        "copyright": "The data included in this document is from www.openstreetmap.org.",
    },
    "elements": [
        {
            "type": "node",
            "id": 1,
            "lat": 0.5,
            "lon": 0.5,
            "tags": {"amenity": "toilets", "name": "Public WC", "addr:street": "Main St"},
        },
        {
            "type": "node",
            "id": 2,
            "lat": 0.25,
            "lon": 0.75,
            "tags": {"amenity": "cafe"},
        },
        {
            "type": "way",
            "id": 10,
            "nodes": [1, 2],
            "tags": {"highway": "footway"},
        },
    ],
}


class FakeClock:
    """Manually advanced monotonic clock"""

    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_http_response(payload=None, status_code=200, content=None):
    response = MagicMock()
    response.status_code = status_code
    if content is None:
        content = json.dumps(payload if payload is not None else SAMPLE_PAYLOAD).encode("utf-8")
    response.content = content
    return response


@pytest.fixture
def sample_payload():
    return json.loads(json.dumps(SAMPLE_PAYLOAD))


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def http_response():
    """Factory for canned requests responses"""
    return make_http_response


@pytest.fixture
def mock_session():
    session = MagicMock(spec=requests.Session)
    session.get.return_value = make_http_response()
    return session


@pytest.fixture
def client_config():
    return ClientConfig()


@pytest.fixture
def client(mock_session, fake_clock, client_config):
    api_client = OverpassAPIClient(session=mock_session)
    cache = ResponseCache(ttl_seconds=300, max_entries=50, clock=fake_clock)
    overpass_client = OverpassClient(config=client_config, api_client=api_client, cache=cache)
    yield overpass_client
    overpass_client.close()
