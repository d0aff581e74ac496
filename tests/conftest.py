import os

# must be set before core.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["SEED_DEMO_DATA"] = "0"

import pytest
import requests

from core import http_client
from core.config import INCIDENTS_URL, REGIONS_URL
from services import closures_service, regions_service
from storage.bootstrap import init_db
from storage.engine import get_session, init_engine


class FakeResponse:
    def __init__(self, payload=None, status_code=200, url=""):
        self._payload = payload
        self.status_code = status_code
        self.url = url

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error for url: {self.url}", response=self)

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeFeed:
    """Stands in for the NCDOT API; routes by exact URL and records calls."""

    def __init__(self):
        self.routes = {}
        self.calls = []

    def incidents(self, region_id, payload=None, status_code=200):
        self.routes[INCIDENTS_URL.format(region_id=region_id)] = (payload, status_code)

    def regions(self, payload=None, status_code=200):
        self.routes[REGIONS_URL] = (payload, status_code)

    def calls_to(self, url):
        return sum(1 for u in self.calls if u == url)

    def __call__(self, url, timeout=None):
        self.calls.append(url)
        route = self.routes.get(url)
        if route is None:
            raise requests.ConnectionError(f"no route for {url}")
        payload, status_code = route
        return FakeResponse(payload, status_code, url)


@pytest.fixture(autouse=True)
def clear_caches():
    closures_service.clear_cache()
    regions_service.clear_cache()
    yield
    closures_service.clear_cache()
    regions_service.clear_cache()


@pytest.fixture
def feed(monkeypatch):
    fake = FakeFeed()
    monkeypatch.setattr(http_client, "http_get", fake)
    return fake


@pytest.fixture
def db():
    init_engine("sqlite://")
    init_db(seed=False)
    session = get_session()
    try:
        yield session
    finally:
        session.close()
