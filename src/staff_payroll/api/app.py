"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from staff_payroll.api.routes import health_router, payroll_router
from staff_payroll.calculators.proration import InvalidPeriodError, ProrationStrategy
from staff_payroll.config import Settings, StatutoryPolicy, configure_logging, get_settings, load_policy
from staff_payroll.database import create_schema, dispose_db, init_db
from staff_payroll.models import ImmutableRecordError
from staff_payroll.services.generation_service import EmptyRosterError
from staff_payroll.services.persistence import DuplicatePeriodError, PersistenceFailureError
from staff_payroll.services.state_machine import InvalidTransitionError
from staff_payroll.services.status_service import RecordNotFoundError

logger = logging.getLogger(__name__)

# Domain error -> (HTTP status, error code)
ERROR_STATUS: dict[type[Exception], tuple[int, str]] = {
    InvalidPeriodError: (status.HTTP_400_BAD_REQUEST, "INVALID_PERIOD"),
    EmptyRosterError: (status.HTTP_404_NOT_FOUND, "EMPTY_ROSTER"),
    RecordNotFoundError: (status.HTTP_404_NOT_FOUND, "RECORD_NOT_FOUND"),
    DuplicatePeriodError: (status.HTTP_409_CONFLICT, "DUPLICATE_PERIOD"),
    InvalidTransitionError: (status.HTTP_409_CONFLICT, "INVALID_TRANSITION"),
    PersistenceFailureError: (status.HTTP_500_INTERNAL_SERVER_ERROR, "PERSISTENCE_FAILURE"),
    ImmutableRecordError: (status.HTTP_500_INTERNAL_SERVER_ERROR, "IMMUTABLE_RECORD"),
}


def error_body(error: str, code: str, nothing_written: bool) -> dict:
    return {"error": error, "code": code, "nothingWritten": nothing_written}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    # Startup
    settings: Settings = app.state.settings
    engine, factory = init_db(settings.database_url)
    app.state.session_factory = factory
    if settings.create_schema:
        await create_schema(engine)
    yield
    # Shutdown
    await dispose_db()
    app.state.session_factory = None


def create_app(
    settings: Settings | None = None,
    policy: StatutoryPolicy | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    The statutory policy is loaded here, once, and handed to request
    handlers through app.state; a malformed policy fails startup.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Staff Payroll API",
        description="Payroll generation and payslip queries for salaried staff",
        version=settings.engine_version,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.policy = policy or load_policy(settings.policy_file)
    app.state.proration_strategy = ProrationStrategy(settings.proration_strategy)
    app.state.session_factory = None

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    async def domain_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Map domain errors to their status code and error body."""
        status_code, code = next(
            ERROR_STATUS[cls] for cls in type(exc).__mro__ if cls in ERROR_STATUS
        )
        if status_code >= 500:
            logger.error("%s on %s %s: %s", code, request.method, request.url.path, exc)
        return JSONResponse(
            status_code=status_code,
            content=error_body(str(exc), code, getattr(exc, "nothing_written", True)),
        )

    for exc_class in ERROR_STATUS:
        app.add_exception_handler(exc_class, domain_exception_handler)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(str(exc.detail), f"HTTP_{exc.status_code}", True),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_body("An unexpected error occurred", "INTERNAL_ERROR", False),
        )

    # Include routers
    app.include_router(health_router)
    app.include_router(payroll_router, prefix="/api/v1")

    return app


# Default app instance for uvicorn
app = create_app()
