from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from pgregistry.app import App
from pgregistry.config import Config
from pgregistry.errors import AllocationError, UserError
from pgregistry.web.error_handlers import (
    allocation_error_handler,
    general_exception_handler,
    request_validation_error_handler,
    user_error_handler,
)
from pgregistry.web.middleware import REQUEST_ID_HEADER, RequestContextMiddleware
from pgregistry.web.openapi import set_custom_openapi
from pgregistry.web.routers import export_router, imagekit_router, seed_router, students_router


def create_fastapi_app(app_instance: App, config: Config) -> FastAPI:
    """Create and configure FastAPI application."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
        """FastAPI application lifespan management."""
        # Store app instance and config in app state
        app.state.app = app_instance
        app.state.config = config
        async with app_instance.lifespan():
            yield

    app = FastAPI(title="PG Registry API", lifespan=lifespan)
    app.add_middleware(RequestContextMiddleware)

    # The browser client is served from a different origin
    if config.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
            expose_headers=[REQUEST_ID_HEADER],
        )

    # Health check endpoint (at root level)
    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "healthy"}

    app.include_router(students_router, prefix="/api")
    app.include_router(export_router, prefix="/api")
    app.include_router(imagekit_router, prefix="/api")
    app.include_router(seed_router)

    # Register error handlers
    app.add_exception_handler(UserError, user_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(AllocationError, allocation_error_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    set_custom_openapi(app)

    return app
