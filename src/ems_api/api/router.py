"""Root API router and middleware registration."""

from fastapi import APIRouter, FastAPI

from ems_api.api.middleware import RateLimitMiddleware, SecurityHeadersMiddleware, setup_cors
from ems_api.core.config import Settings


def create_router(settings: Settings) -> APIRouter:
    """Mount the auth, user, employee, payroll and attendance routes under ``settings.api_prefix``."""
    from ems_api.api.v1.attendance import attendance_router, leave_router
    from ems_api.api.v1.auth import router as auth_router
    from ems_api.api.v1.employees import employees_router
    from ems_api.api.v1.payroll import advances_router, salaries_router

    root_router = APIRouter(prefix=settings.api_prefix)
    for router in (
        auth_router,
        employees_router,
        salaries_router,
        advances_router,
        attendance_router,
        leave_router,
    ):
        root_router.include_router(router)
    return root_router


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Register middleware; the last one added is the outermost.

    Rate limiting is outermost and CORS innermost, so preflight replies also
    get the security headers.
    """
    setup_cors(app, settings)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        requests_per_minute=settings.rate_limit_per_minute,
        trusted_proxy_headers=settings.trusted_proxy_header_list,
    )
