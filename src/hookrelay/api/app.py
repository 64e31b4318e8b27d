"""FastAPI application for hookrelay."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from hookrelay import __version__
from hookrelay.config import Settings
from hookrelay.exceptions import HookRelayError, ValidationError
from hookrelay.logging import configure_logging, get_logger
from hookrelay.storage import InMemorySubscriptionRegistry
from hookrelay.webhooks import WebhookDispatcher

from .router import router, set_dispatcher

logger = get_logger(__name__)


def create_app(
    settings: Settings | None = None,
    dispatcher: WebhookDispatcher | None = None,
) -> FastAPI:
    """Create a FastAPI application.

    Args:
        settings: Optional settings. Uses environment if None.
        dispatcher: Dispatcher whose deliveries are exposed. A dispatcher
            over an empty in-memory registry is created if None.

    Returns:
        Configured FastAPI application.

    Example:
        ```python
        from hookrelay.api import create_app

        app = create_app(dispatcher=dispatcher)
        # Run with: uvicorn hookrelay.api:app --reload
        ```
    """
    if settings is None:
        settings = Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Configure logging and publish the dispatcher for the app's lifetime."""
        configure_logging(level=settings.log_level, format=settings.log_format)
        active = dispatcher or WebhookDispatcher(
            InMemorySubscriptionRegistry(), settings=settings
        )
        set_dispatcher(active)
        logger.info("Starting hookrelay API", log_level=settings.log_level)

        yield

        set_dispatcher(None)

    app = FastAPI(
        title="hookrelay",
        description="Signed, retried webhook delivery with an inspectable delivery log.",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
        """Handle validation errors with 400 status."""
        logger.warning(
            "Validation error", field=exc.field, error=exc.message, path=str(request.url)
        )
        return JSONResponse(status_code=400, content=exc.to_dict())

    @app.exception_handler(HookRelayError)
    async def hookrelay_error_handler(request: Request, exc: HookRelayError) -> JSONResponse:
        """Handle all other hookrelay errors with 500 status."""
        logger.error("hookrelay error", error=exc.message, code=exc.code, path=str(request.url))
        return JSONResponse(status_code=500, content=exc.to_dict())

    app.include_router(router, prefix="/api/v1")

    return app


# Default app instance for uvicorn
app = create_app()
