"""FastAPI application factory for the contribution review API."""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from azure.monitor.opentelemetry import configure_azure_monitor
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from contribution_review.config import load_settings
from contribution_review.errors import (
    InvalidTransition,
    NotFoundError,
    UploadError,
    ValidationError,
)
from contribution_review.events import ChannelRegistry, ServiceBusPublisher
from contribution_review.health import check_emulators
from contribution_review.logging import configure_logging
from contribution_review.review.revision import RevisionPipeline
from contribution_review.review.state_machine import ApprovalStateMachine
from contribution_review.routes import contributions, events
from contribution_review.routes import status as status_routes
from contribution_review.startup import (
    init_database,
    init_repositories,
    init_storage,
    init_store,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)


async def _validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={"error": "validation_failed", "fields": exc.fields},
    )


async def _invalid_transition(request: Request, exc: InvalidTransition) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={
            "error": "invalid_transition",
            "detail": str(exc),
            "current": str(exc.current),
            "target": str(exc.target),
        },
    )


async def _not_found(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"error": "not_found", "detail": str(exc)},
    )


async def _upload_error(request: Request, exc: UploadError) -> JSONResponse:
    code = status.HTTP_502_BAD_GATEWAY if exc.retryable else status.HTTP_400_BAD_REQUEST
    return JSONResponse(
        status_code=code,
        content={"error": "upload_failed", "detail": str(exc), "retryable": exc.retryable},
    )


def install_error_handlers(app: FastAPI) -> None:
    """Map the review error taxonomy to JSON responses."""
    app.add_exception_handler(ValidationError, _validation_error)
    app.add_exception_handler(InvalidTransition, _invalid_transition)
    app.add_exception_handler(NotFoundError, _not_found)
    app.add_exception_handler(UploadError, _upload_error)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Wire storage, the review core and event publishing for the app's lifetime."""
    settings = app.state.settings

    if settings.app.is_development and not await check_emulators(settings):
        raise RuntimeError("Local emulators are not reachable")

    cosmos = await init_database(settings)
    repositories = init_repositories(cosmos)
    store = init_store(repositories)
    storage = await init_storage(settings)
    publisher = ServiceBusPublisher(settings.servicebus)

    app.state.cosmos = cosmos
    app.state.repositories = repositories
    app.state.store = store
    app.state.storage = storage
    app.state.event_publisher = publisher
    app.state.state_machine = ApprovalStateMachine(store, events=publisher)
    app.state.pipeline = RevisionPipeline(
        store,
        storage,
        repositories.payment_methods,
        events=publisher,
    )
    app.state.start_time = time.monotonic()
    logger.info("Contribution review API started: env=%s", settings.app.env)

    try:
        yield
    finally:
        logger.info("Contribution review API shutting down")
        await publisher.close()
        await storage.close()
        await cosmos.close()


def create_app() -> FastAPI:
    """Build the FastAPI application."""
    settings = load_settings()
    configure_logging(settings.app.log_level, log_file="contribution-review.log")

    if settings.monitor.connection_string:
        configure_azure_monitor(connection_string=settings.monitor.connection_string)
        logger.info("Azure Monitor OpenTelemetry configured")

    if not settings.app.secret_key and not settings.app.is_development:
        raise RuntimeError("APP_SECRET_KEY must be set outside development")

    app = FastAPI(title="Contribution Review", lifespan=lifespan)
    app.state.settings = settings
    app.state.channels = ChannelRegistry()
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.app.secret_key or "dev-secret",
        https_only=not settings.app.is_development,
    )

    install_error_handlers(app)

    app.include_router(contributions.router)
    app.include_router(events.router)
    app.include_router(status_routes.router)
    return app
