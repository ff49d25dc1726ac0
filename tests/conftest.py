"""
Pytest configuration and shared fixtures for EpisodeFusion tests.

Upstreams are served by an in-process ``httpx.MockTransport`` and Redis is
replaced by an in-memory async fake, so no test touches the network.
"""

import json

import httpx
import pytest

from api.services.aggregation import AggregationPipeline
from api.services.episode_cache import EpisodeCacheService
from db.config import Settings
from db.redis_database import CacheUnavailableError
from scrapers import create_scrapers

CONSUMET_URL = "https://consumet.test"
ANIFY_URL = "https://anify.test"
MALSYNC_URL = "https://malsync.test/mal/anime/anilist:"
ZORO_URL = "https://zoro.test"
ANIZIP_URL = "https://anizip.test"


def _route_key(url: httpx.URL) -> tuple:
    return url.host, url.path, tuple(sorted(url.params.multi_items()))


class UpstreamStub:
    """Routes requests to canned JSON responses and records every request."""

    def __init__(self):
        self.routes = {}
        self.requests: list[httpx.Request] = []

    def add(
        self,
        url: str,
        json_data=None,
        *,
        params: dict | None = None,
        status_code: int = 200,
        error: bool = False,
        text: str | None = None,
    ):
        key = _route_key(httpx.URL(url, params=params) if params else httpx.URL(url))
        self.routes[key] = (json_data, status_code, error, text)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(_route_key(request.url))
        if route is None:
            return httpx.Response(404, json={"message": "Not found"})

        json_data, status_code, error, text = route
        if error:
            raise httpx.ConnectError("connection refused", request=request)
        if text is not None:
            return httpx.Response(status_code, text=text)
        return httpx.Response(status_code, json=json_data)

    def requested_paths(self, host: str | None = None) -> list[str]:
        return [
            request.url.path
            for request in self.requests
            if host is None or request.url.host == host
        ]


class FakeRedis:
    """In-memory stand-in for the async Redis wrapper."""

    def __init__(self, store: dict | None = None, fail: bool = False):
        self.store = dict(store or {})
        self.ttls = {}
        self.calls = []
        self.fail = fail

    def _record(self, *call):
        self.calls.append(call)
        if self.fail:
            raise CacheUnavailableError("connection refused")

    async def get(self, key):
        self._record("get", key)
        return self.store.get(key)

    async def setex(self, key, ex, value):
        self._record("setex", key, ex)
        self.store[key] = value
        self.ttls[key] = ex
        return True

    async def delete(self, *keys):
        self._record("delete", *keys)
        deleted = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                deleted += 1
        return deleted

    def cached_json(self, key):
        return json.loads(self.store[key])

    def deleted_keys(self) -> list[str]:
        return [key for call in self.calls if call[0] == "delete" for key in call[1:]]


def consumet_episodes(count: int, prefix: str = "ep") -> list[dict]:
    return [
        {
            "id": f"{prefix}-{number}",
            "number": number,
            "title": f"Episode {number}",
            "image": f"https://img.test/{prefix}/{number}.jpg",
            "url": f"https://watch.test/{prefix}-{number}",
        }
        for number in range(1, count + 1)
    ]


def anizip_payload(count: int) -> dict:
    return {
        "titles": {"en": "Test Show"},
        "episodes": {
            str(number): {
                "episode": str(number),
                "title": {"en": f"Meta Title {number}", "x-jat": f"Jat {number}"},
                "airdate": f"2024-01-{number:02d}",
                "overview": f"Overview {number}",
                "image": f"https://meta.test/{number}.jpg",
                "runtime": 24,
            }
            for number in range(1, count + 1)
        },
    }


@pytest.fixture
def upstream():
    return UpstreamStub()


@pytest.fixture
def http_client(upstream):
    return httpx.AsyncClient(transport=httpx.MockTransport(upstream.handler))


@pytest.fixture
def test_settings():
    return Settings(
        redis_url=None,
        consumet_url=CONSUMET_URL,
        anify_url=ANIFY_URL,
        malsync_url=MALSYNC_URL,
        zoro_url=ZORO_URL,
        anizip_url=ANIZIP_URL,
    )


@pytest.fixture
def scrapers(http_client, test_settings):
    return create_scrapers(http_client, test_settings)


@pytest.fixture
def pipeline(scrapers):
    return AggregationPipeline(scrapers)


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def episode_service(pipeline, fake_redis):
    return EpisodeCacheService(pipeline, redis=fake_redis)
