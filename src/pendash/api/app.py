"""FastAPI application factory for the pendash JSON API."""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI

from pendash.api import routes


def create_app(lifespan: Any = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        lifespan: Optional async context manager for application lifespan events.
                  Used by main.py to build the service on startup.

    Returns:
        FastAPI application with the JSON API mounted under /api.
    """
    app = FastAPI(
        title="Pendle Yield Dashboard",
        lifespan=lifespan,
    )

    # Wired by the main.py lifespan (or directly by tests)
    app.state.service = None
    app.state.settings = None

    app.include_router(routes.router, prefix="/api")

    return app
