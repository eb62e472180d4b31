"""FastAPI application entry point.

Wiring only: lifespan, exception handlers, middleware, routers.
No business logic here. See taskflow.core.lifespan and taskflow.core.exception_handlers.

Settings are loaded inside create_app() so that tests can set env (and optionally
clear get_settings cache) before calling create_app().
"""

from fastapi import FastAPI

from taskflow.api.v1 import api_router
from taskflow.core.config import get_settings
from taskflow.core.exception_handlers import register_exception_handlers
from taskflow.core.lifespan import create_lifespan
from taskflow.middleware import UserContextMiddleware


def create_app() -> FastAPI:
    """Build and return the FastAPI application. Settings are resolved here (deferred from import)."""
    settings = get_settings()
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=create_lifespan,
    )

    register_exception_handlers(app)
    app.add_middleware(UserContextMiddleware)
    app.include_router(api_router, prefix="/api/v1")

    return app


app = create_app()
