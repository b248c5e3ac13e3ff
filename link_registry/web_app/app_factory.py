"""FastAPI application factory."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..lib.shortcode import ShortCodeGenerator
from .api import api_router
from .api.schemas import Payload
from .middleware.logging import LoggingMiddleware


def create_app(
    registry_instance,
    config,
    logger: logging.Logger = None,
) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        registry_instance: Registry instance (may be None and set by the lifespan)
        config: Configuration instance
        logger: Optional logger for request logging

    Returns:
        Configured FastAPI app
    """
    app = FastAPI(
        title="Link Registry",
        description="Short link registration and redirect service",
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    # Store instances in app state for access in routes
    app.state.registry = registry_instance
    app.state.config = config
    app.state.generator = ShortCodeGenerator(default_length=config.id_length)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Accept", "Content-Type"],
        expose_headers=["Location"],
    )

    app.add_middleware(LoggingMiddleware, logger=logger)

    @app.exception_handler(RequestValidationError)
    async def bad_payload_handler(request: Request, exc: RequestValidationError):
        """Reject undecodable request bodies with the registry payload."""
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=Payload(error="Bad JSON format").model_dump(),
        )

    app.include_router(api_router, prefix="/api", tags=["API"])

    return app
