"""FastAPI application factory."""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException

from api.exception_handlers import (
    http_exception_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from api.lifespan import lifespan
from db.config import settings
from utils import const


def create_app(use_lifespan: bool = True) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        use_lifespan: Build the upstream and Redis clients on startup.
            Tests disable it and provide services through dependency overrides.

    Returns:
        Configured FastAPI application instance.
    """
    app = FastAPI(
        title=settings.addon_name,
        description=settings.description,
        version=settings.version,
        lifespan=lifespan if use_lifespan else None,
    )

    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def add_cors_header(request: Request, call_next):
        response = await call_next(request)
        response.headers.update(const.CORS_HEADERS)
        return response

    _register_routers(app)

    return app


def _register_routers(app: FastAPI) -> None:
    """Register all API routers.

    Args:
        app: FastAPI application instance.
    """
    # Import routers here to avoid circular imports
    from api.routers.episode import get_router as get_episode_router

    app.include_router(get_episode_router())
