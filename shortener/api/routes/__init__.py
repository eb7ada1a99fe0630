from __future__ import annotations

from shortener.api.routes.auth import router as auth_router
from shortener.api.routes.health import router as health_router
from shortener.api.routes.links import router as links_router
from shortener.api.routes.redirect import router as redirect_router

__all__ = ["auth_router", "health_router", "links_router", "redirect_router"]
