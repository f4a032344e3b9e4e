"""FastAPI host for the Explorer cache layer.

create_app() only wires things together. The cache context itself is built
by explorer.core.lifespan, and errors are mapped in
explorer.core.exception_handlers. Settings are read when create_app() runs,
so tests can change the environment and call get_settings.cache_clear() first.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from explorer.api.v1 import api_router
from explorer.core.config import get_settings
from explorer.core.exception_handlers import register_exception_handlers
from explorer.core.lifespan import create_lifespan


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    settings = get_settings()
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=create_lifespan,
    )

    register_exception_handlers(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in settings.allowed_origins.split(",") if o.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router, prefix="/api/v1")
    return app


app = create_app()
