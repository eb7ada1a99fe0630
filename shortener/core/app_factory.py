"""Application factory for FastAPI app.

Centralizes app construction (services, middleware, handlers, routers) so
tests can build isolated apps with their own settings and stores.
"""

from __future__ import annotations

from fastapi import FastAPI
from starlette.routing import BaseRoute

from shortener.adapters.factory import Stores
from shortener.api.routes import auth_router, health_router, links_router, redirect_router
from shortener.core.config import Settings, settings as default_settings
from shortener.core.container import build_container
from shortener.core.exception_handlers import setup_exception_handlers
from shortener.core.logging import configure_logging
from shortener.core.middleware import request_id_middleware
from shortener.core.openapi import apply_openapi_customizations


def static_route_codes(routes: list[BaseRoute]) -> frozenset[str]:
    """Return the single-segment paths served by fixed routes.

    A short code equal to one of these (``health``, ``docs``, ``openapi.json``)
    would be shadowed by that route and never reach the redirect.
    """
    codes = set()
    for route in routes:
        path = getattr(route, "path", "")
        segment = path.strip("/")
        if segment and "/" not in segment and "{" not in segment:
            codes.add(segment)
    return frozenset(codes)


def create_app(
    app_settings: Settings | None = None,
    *,
    stores: Stores | None = None,
    configure_logs: bool = True,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        app_settings: Settings to use; defaults to the process-wide settings.
        stores: Pre-built stores; created from the store settings when omitted.
        configure_logs: Install the JSON logging configuration.

    Returns:
        Configured FastAPI app with services, middleware, handlers and routers.
    """
    cfg = app_settings or default_settings

    # Logging first so subsequent init logs are formatted as desired
    if configure_logs:
        configure_logging(cfg.log)

    app = FastAPI(
        title="Tiered URL Shortener",
        description=(
            "URL shortener with cookie-based credentials and per-tier daily "
            "request quotas. Tier1 accounts may create 1000 links per window, "
            "Tier2 accounts 100."
        ),
        version="0.1.0",
    )

    # Middleware
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers; the catch-all redirect route must come last
    app.include_router(health_router)
    app.include_router(auth_router, prefix="/api")
    app.include_router(links_router, prefix="/api/user")
    app.include_router(redirect_router)

    # Built after the routers so their fixed paths are reserved as codes
    app.state.container = build_container(
        cfg, stores, reserved_codes=static_route_codes(app.routes)
    )

    apply_openapi_customizations(app, cookie_name=cfg.auth.cookie_name)

    return app
