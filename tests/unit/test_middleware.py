"""Tests for CORS, security headers, and rate limiting middleware."""

from unittest.mock import MagicMock, patch

import pytest
from fastapi import FastAPI, Response
from fastapi.testclient import TestClient
from starlette.requests import Request

from ems_api.api.middleware import RateLimitMiddleware, SecurityHeadersMiddleware, get_client_ip, setup_cors
from ems_api.core.config import Settings


def _create_test_app() -> FastAPI:
    """Create a minimal FastAPI app for middleware testing."""
    app = FastAPI()

    @app.get("/test")
    async def test_route() -> dict:
        return {"ok": True}

    return app


def _request(headers: dict[str, str], client: tuple[str, int] | None = ("10.0.0.1", 1234)) -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
        "client": client,
    }
    return Request(scope)


class TestSecurityHeadersMiddleware:
    """Tests for SecurityHeadersMiddleware."""

    @pytest.fixture
    def client(self) -> TestClient:
        app = _create_test_app()
        app.add_middleware(SecurityHeadersMiddleware)
        return TestClient(app)

    def test_all_security_headers_present(self, client: TestClient) -> None:
        response = client.get("/test")
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"
        assert response.headers["Referrer-Policy"] == "no-referrer"
        assert response.headers["Cache-Control"] == "no-store"


class TestRateLimitMiddleware:
    """Tests for RateLimitMiddleware."""

    def test_limit_exceeded_returns_429(self) -> None:
        app = _create_test_app()
        app.add_middleware(RateLimitMiddleware, requests_per_minute=2)
        client = TestClient(app)

        assert client.get("/test").status_code == 200
        assert client.get("/test").status_code == 200
        response = client.get("/test")

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "60"
        assert response.json() == {"success": False, "message": "Rate limit exceeded", "reason": "rate_limited"}

    def test_window_slides(self) -> None:
        app = _create_test_app()
        app.add_middleware(RateLimitMiddleware, requests_per_minute=1)
        client = TestClient(app)
        clock = MagicMock()

        with patch("ems_api.api.middleware.time", clock):
            clock.monotonic.return_value = 1000.0
            assert client.get("/test").status_code == 200
            clock.monotonic.return_value = 1030.0
            assert client.get("/test").status_code == 429
            clock.monotonic.return_value = 1061.0
            assert client.get("/test").status_code == 200

    def test_limits_are_per_client(self) -> None:
        app = _create_test_app()
        app.add_middleware(RateLimitMiddleware, requests_per_minute=1, trusted_proxy_headers=["X-Forwarded-For"])
        client = TestClient(app)

        assert client.get("/test", headers={"X-Forwarded-For": "1.1.1.1"}).status_code == 200
        assert client.get("/test", headers={"X-Forwarded-For": "2.2.2.2"}).status_code == 200
        assert client.get("/test", headers={"X-Forwarded-For": "1.1.1.1"}).status_code == 429

    def test_default_settings_ignore_spoofed_forwarded_for(self) -> None:
        settings = Settings(
            _env_file=None,
            database_url="sqlite+aiosqlite:///:memory:",
            jwt_secret_key="test-secret-key-not-for-production",
        )
        app = _create_test_app()
        app.add_middleware(
            RateLimitMiddleware,
            requests_per_minute=2,
            trusted_proxy_headers=settings.trusted_proxy_header_list,
        )
        client = TestClient(app)

        statuses = [
            client.get("/test", headers={"X-Forwarded-For": f"203.0.113.{n}"}).status_code for n in range(5)
        ]

        assert statuses == [200, 200, 429, 429, 429]

    async def test_idle_clients_are_forgotten(self) -> None:
        limiter = RateLimitMiddleware(_create_test_app(), requests_per_minute=5)

        async def call_next(request: Request) -> Response:
            return Response("ok")

        clock = MagicMock()
        with patch("ems_api.api.middleware.time", clock):
            clock.monotonic.return_value = 1000.0
            limiter._last_sweep = 1000.0
            for n in range(3):
                await limiter.dispatch(_request({}, client=(f"10.0.0.{n}", 1234)), call_next)
            assert len(limiter._hits) == 3

            clock.monotonic.return_value = 1061.0
            await limiter.dispatch(_request({}, client=("10.0.0.9", 1234)), call_next)

        assert list(limiter._hits) == ["10.0.0.9"]

    async def test_returning_client_window_resets(self) -> None:
        limiter = RateLimitMiddleware(_create_test_app(), requests_per_minute=1)

        async def call_next(request: Request) -> Response:
            return Response("ok")

        clock = MagicMock()
        with patch("ems_api.api.middleware.time", clock):
            clock.monotonic.return_value = 1000.0
            limiter._last_sweep = 1000.0
            assert (await limiter.dispatch(_request({}), call_next)).status_code == 200
            assert (await limiter.dispatch(_request({}), call_next)).status_code == 429
            clock.monotonic.return_value = 1060.5
            assert (await limiter.dispatch(_request({}), call_next)).status_code == 200

        assert len(limiter._hits["10.0.0.1"]) == 1


class TestGetClientIp:
    """Tests for get_client_ip."""

    def test_falls_back_to_peer_address(self) -> None:
        assert get_client_ip(_request({})) == "10.0.0.1"

    def test_untrusted_header_ignored(self) -> None:
        assert get_client_ip(_request({"X-Forwarded-For": "9.9.9.9"})) == "10.0.0.1"

    def test_forwarded_for_uses_leftmost(self) -> None:
        request = _request({"X-Forwarded-For": "203.0.113.5, 10.0.0.2"})
        assert get_client_ip(request, ["X-Forwarded-For", "X-Real-IP"]) == "203.0.113.5"

    def test_header_priority(self) -> None:
        request = _request({"X-Real-IP": "198.51.100.7"})
        assert get_client_ip(request, ["X-Forwarded-For", "X-Real-IP"]) == "198.51.100.7"

    def test_no_client(self) -> None:
        assert get_client_ip(_request({}, client=None)) == "unknown"


class TestCors:
    """Tests for setup_cors."""

    def _settings(self, origins: str) -> Settings:
        return Settings(
            _env_file=None,
            database_url="sqlite+aiosqlite:///:memory:",
            jwt_secret_key="test-secret-key-not-for-production",
            cors_origins=origins,
        )

    def test_preflight_allows_authorization_header(self) -> None:
        app = _create_test_app()
        setup_cors(app, self._settings("http://localhost:3000"))
        client = TestClient(app)

        response = client.options(
            "/test",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "GET",
                "Access-Control-Request-Headers": "Authorization",
            },
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "http://localhost:3000"

    def test_no_origins_configured(self) -> None:
        app = _create_test_app()
        setup_cors(app, self._settings(""))
        response = TestClient(app).get("/test", headers={"Origin": "http://evil.example"})
        assert "access-control-allow-origin" not in response.headers
