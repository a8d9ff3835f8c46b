"""CORS, rate limiting, and security headers middleware."""

import time
from collections import deque

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from ems_api.core.config import Settings

_WINDOW_SECONDS = 60.0

_SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "Cache-Control": "no-store",
}


def get_client_ip(request: Request, trusted_headers: list[str] | None = None) -> str:
    """Return the client address, preferring the first trusted proxy header that is set.

    For ``X-Forwarded-For`` the leftmost entry is the original client.
    """
    for header in trusted_headers or []:
        value = request.headers.get(header, "").strip()
        if not value:
            continue
        if header.lower() == "x-forwarded-for":
            return value.split(",")[0].strip()
        return value

    if request.client:
        return request.client.host
    return "unknown"


def setup_cors(app: FastAPI, settings: Settings) -> None:
    """Configure CORS middleware when origins are configured.

    The Authorization header must be allowed for browser clients to send
    bearer tokens.
    """
    if not settings.cors_origin_list:
        return
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
    )


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        for name, value in _SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Per-IP sliding-window rate limiter held in process memory.

    Client addresses whose window has emptied are forgotten, both when they
    return and in a sweep over all addresses at most once per window.
    """

    def __init__(
        self,
        app: ASGIApp,
        requests_per_minute: int = 60,
        trusted_proxy_headers: list[str] | None = None,
    ) -> None:
        super().__init__(app)
        self.requests_per_minute = requests_per_minute
        self.trusted_proxy_headers = trusted_proxy_headers
        self._hits: dict[str, deque[float]] = {}
        self._last_sweep = time.monotonic()

    @staticmethod
    def _expire(hits: deque[float], cutoff: float) -> None:
        while hits and hits[0] <= cutoff:
            hits.popleft()

    def _sweep(self, now: float) -> None:
        cutoff = now - _WINDOW_SECONDS
        for client_ip in list(self._hits):
            hits = self._hits[client_ip]
            self._expire(hits, cutoff)
            if not hits:
                del self._hits[client_ip]
        self._last_sweep = now

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        client_ip = get_client_ip(request, self.trusted_proxy_headers)
        now = time.monotonic()
        if now - self._last_sweep >= _WINDOW_SECONDS:
            self._sweep(now)

        hits = self._hits.get(client_ip)
        if hits is not None:
            self._expire(hits, now - _WINDOW_SECONDS)
        if hits and len(hits) >= self.requests_per_minute:
            return JSONResponse(
                status_code=429,
                content={"success": False, "message": "Rate limit exceeded", "reason": "rate_limited"},
                headers={"Retry-After": str(int(_WINDOW_SECONDS))},
            )

        self._hits.setdefault(client_ip, deque()).append(now)
        return await call_next(request)
