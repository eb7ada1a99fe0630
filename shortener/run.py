"""Programmatic uvicorn entry point.

Usage:
    python -m shortener.run
    tiered-shortener            # via pyproject.toml [project.scripts]

Host and port come from ``SERVER_HOST`` / ``SERVER_PORT`` (default
127.0.0.1:3000).
"""

from __future__ import annotations

import uvicorn

from shortener.core.config import settings


def main() -> None:
    """Start the API server."""
    uvicorn.run(
        "shortener.main:app",
        host=settings.server.host,
        port=settings.server.port,
        log_level=settings.log.level.lower(),
        access_log=False,
    )


if __name__ == "__main__":
    main()
