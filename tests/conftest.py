"""
Pytest fixtures and configuration for GameHub tests
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["ADMIN_API_KEY"] = "test-admin-key"
os.environ["SECRET_KEY"] = "test-secret-key"

import pytest
from fastapi.testclient import TestClient

from gamehub.core.security import create_access_token
from gamehub.db import Base, SessionLocal, engine
from gamehub.main import app
from gamehub.models import User
from gamehub.services.catalog_store import CatalogStore
from gamehub.services.registry import build_services
from gamehub.services.steam_client import AppListPage, UpstreamUnavailable


class FakeClock:
    """Manually advanced time source for cache expiry."""

    def __init__(self, start: float = 1_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeSteamClient:
    """In-memory stand-in for SteamClient that records every call."""

    def __init__(self) -> None:
        self.pages = {}
        self.details = {}
        self.featured = []
        self.search_results = []
        self.up_to_date = {"success": True, "up_to_date": True}
        self.calls = []
        self.closed = False

    def get_app_list(self, last_appid=0, max_results=30):
        self.calls.append(("get_app_list", last_appid, max_results))
        page = self.pages.get(last_appid)
        if isinstance(page, Exception):
            raise page
        if page is None:
            return AppListPage(items=[], has_more=False, last_appid=None)
        return page

    def get_app_details(self, appid):
        self.calls.append(("get_app_details", appid))
        detail = self.details.get(appid)
        if isinstance(detail, Exception):
            raise detail
        return detail

    def get_featured_categories(self):
        self.calls.append(("get_featured_categories",))
        if isinstance(self.featured, Exception):
            raise self.featured
        return self.featured

    def search_store(self, term):
        self.calls.append(("search_store", term))
        return self.search_results

    def check_up_to_date(self, appid, version):
        self.calls.append(("check_up_to_date", appid, version))
        return self.up_to_date

    def close(self):
        self.closed = True

    def count(self, name):
        return sum(1 for call in self.calls if call[0] == name)


def steam_payload(name="Test Game", **overrides):
    payload = {
        "name": name,
        "header_image": f"https://cdn.example/{name.replace(' ', '_')}.jpg",
        "is_free": False,
        "required_age": 0,
        "categories": [{"id": 2, "description": "Single-player"}],
        "screenshots": [{"id": 0, "path_full": "https://cdn.example/shot0.jpg"}],
        "price_overview": {
            "currency": "USD",
            "initial": 1999,
            "final": 999,
            "discount_percent": 50,
            "final_formatted": "$9.99",
        },
        "platforms": {"windows": True, "mac": False, "linux": True},
    }
    payload.update(overrides)
    return payload


@pytest.fixture(autouse=True)
def database():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def store(db_session):
    return CatalogStore(db_session)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fake_steam():
    return FakeSteamClient()


@pytest.fixture
def services(fake_steam, clock):
    return build_services(client=fake_steam, clock=clock)


@pytest.fixture
def client(services):
    previous = app.state.services
    app.state.services = services
    with TestClient(app) as test_client:
        yield test_client
    app.state.services = previous


@pytest.fixture
def make_user(db_session):
    def _make_user(email="player@example.com", name="Player"):
        user = User(email=email, name=name, display_name=name)
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def auth_headers():
    def _auth_headers(user):
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return _auth_headers


@pytest.fixture
def unavailable():
    return UpstreamUnavailable("Steam returned 503", status_code=503)
