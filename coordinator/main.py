"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from coordinator.config import Settings, settings
from coordinator.engine.reaper import ExpiryReaper
from coordinator.engine.registry import InMemoryTradeRegistry, TradeRegistry
from coordinator.engine.scheduler import ReaperSchedule
from coordinator.errors import (
    Conflict,
    CoordinatorError,
    DuplicateId,
    InvalidInput,
    InvalidState,
    NotFound,
)
from coordinator.services.artifacts import get_validator
from coordinator.services.coordinator import TradeCoordinator
from coordinator.utils.clock import Clock, utc_now
from coordinator.utils.logging import setup_logging
from coordinator.api import trades, system

logger = logging.getLogger(__name__)

ERROR_STATUS_CODES: dict[type[CoordinatorError], int] = {
    InvalidInput: 400,
    NotFound: 404,
    InvalidState: 409,
    Conflict: 409,
    DuplicateId: 500,
}


def build_registry(app_settings: Settings) -> TradeRegistry:
    """Construct the configured registry backend."""
    if app_settings.registry_backend == "sql":
        from coordinator.database import create_db_and_tables, make_engine
        from coordinator.engine.sql_registry import SqlTradeRegistry

        engine = make_engine(app_settings.database_url)
        create_db_and_tables(engine)
        return SqlTradeRegistry(engine)
    return InMemoryTradeRegistry()


async def coordinator_error_handler(request: Request, exc: CoordinatorError):
    status_code = ERROR_STATUS_CODES.get(type(exc), 500)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=status_code, content=exc.to_dict())


def _describe_validation_errors(errors) -> str:
    parts = []
    for error in errors:
        loc = ".".join(str(p) for p in error["loc"] if p != "body")
        parts.append(f"{loc}: {error['msg']}" if loc else error["msg"])
    return "; ".join(parts)


async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Request shape errors use the same body as core InvalidInput."""
    error = InvalidInput(_describe_validation_errors(exc.errors()))
    return JSONResponse(status_code=ERROR_STATUS_CODES[InvalidInput], content=error.to_dict())


def create_app(app_settings: Settings | None = None, clock: Clock = utc_now) -> FastAPI:
    app_settings = app_settings or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown events."""
        setup_logging(app_settings.log_level)
        registry = build_registry(app_settings)
        reaper = ExpiryReaper(registry, clock=clock)
        app.state.coordinator = TradeCoordinator(
            registry,
            clock=clock,
            guard_timeout=app_settings.guard_timeout_seconds,
            artifact_validator=get_validator(app_settings.artifact_check),
        )
        app.state.reaper = reaper
        app.state.reaper_schedule = None

        if app_settings.reaper_enabled:
            schedule = ReaperSchedule(reaper, app_settings.reaper_interval_seconds)
            schedule.start()
            app.state.reaper_schedule = schedule

        logger.info(f"Coordinator ready ({app_settings.registry_backend} registry)")
        yield

        if app.state.reaper_schedule:
            await app.state.reaper_schedule.stop()

    app = FastAPI(
        title="Swap Coordinator",
        description="Coordinator for atomic payment-for-asset swaps",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(CoordinatorError, coordinator_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    app.include_router(trades.router)
    app.include_router(system.router)
    return app


app = create_app()
