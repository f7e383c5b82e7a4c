"""
Tests for the per-client rate limit middleware
"""
from fastapi import FastAPI
from fastapi.testclient import TestClient

from gamehub.core.cache import RateLimiter
from gamehub.middleware import RateLimitMiddleware


def build_app(clock, limit=2, enabled=True):
    app = FastAPI()
    app.add_middleware(
        RateLimitMiddleware,
        limiter=RateLimiter(clock=clock),
        limit=limit,
        enabled=enabled,
    )

    @app.get("/ping")
    def ping():
        return {"ok": True}

    @app.get("/other")
    def other():
        return {"ok": True}

    return app


class TestRateLimitMiddleware:
    def test_blocks_over_limit(self, clock):
        client = TestClient(build_app(clock))
        assert client.get("/ping").status_code == 200
        assert client.get("/ping").status_code == 200

        response = client.get("/ping")
        assert response.status_code == 429
        assert response.json() == {"detail": "Too many requests"}

    def test_paths_are_limited_separately(self, clock):
        client = TestClient(build_app(clock, limit=1))
        assert client.get("/ping").status_code == 200
        assert client.get("/other").status_code == 200

    def test_window_expires(self, clock):
        client = TestClient(build_app(clock, limit=1))
        client.get("/ping")
        assert client.get("/ping").status_code == 429
        clock.advance(61)
        assert client.get("/ping").status_code == 200

    def test_disabled(self, clock):
        client = TestClient(build_app(clock, limit=1, enabled=False))
        for _ in range(3):
            assert client.get("/ping").status_code == 200
