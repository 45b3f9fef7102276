"""
Worknest - FastAPI Application
==============================

Main application factory with all routers and middleware.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from worknest.api import auth, comments, projects, tickets
from worknest.core.config import Settings, get_settings
from worknest.core.container import Services
from worknest.core.database import Database
from worknest.core.errors import AuthenticationError, StorageError, WorknestError
from worknest.core.migrations import run_migrations
from worknest.core.schemas import ErrorResponse, HealthResponse


def configure_logging(settings: Settings) -> None:
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if settings.is_production else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


logger = structlog.get_logger()


def _error(status_code: int, message: str, headers: Optional[dict[str, str]] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message).model_dump(),
        headers=headers,
    )


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = str(first.get("msg", "Invalid value"))
    return f"{location}: {message}" if location else message


# ==========================================================================
# App Factory
# ==========================================================================

def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Application settings, defaults to the environment
        database: Pre-built connection pool; built from settings if omitted

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()
    configure_logging(settings)
    database = database or Database.from_settings(settings)
    services = Services.build(database, settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """
        Startup: apply pending schema migrations.
        Shutdown: close database connections.
        """
        logger.info("Starting Worknest", version=settings.APP_VERSION, environment=settings.ENVIRONMENT)
        await run_migrations(database)

        yield

        logger.info("Shutting down Worknest")
        await database.close()
        logger.info("Database connections closed")

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Worknest - project and ticket tracking API",
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.services = services

    # ==========================================================================
    # Middleware
    # ==========================================================================

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Total-Count"],
    )

    # ==========================================================================
    # Exception Handlers
    # ==========================================================================

    @app.exception_handler(WorknestError)
    async def worknest_error_handler(request: Request, exc: WorknestError) -> JSONResponse:
        if isinstance(exc, StorageError):
            logger.error(
                "Storage failure",
                error_type=type(exc).__name__,
                path=request.url.path,
                method=request.method,
            )
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
        return _error(exc.status_code, exc.message, headers)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _error(status.HTTP_400_BAD_REQUEST, _validation_message(exc))

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle uncaught exceptions."""
        logger.error(
            "Unhandled exception",
            exc_info=exc,
            path=request.url.path,
            method=request.method,
        )
        detail = str(exc) if settings.is_development else "An unexpected error occurred"
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, detail)

    # ==========================================================================
    # Routers
    # ==========================================================================

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["Health"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        """Report application version and database reachability."""
        database_ok = await services.database.ping()
        return HealthResponse(
            status="healthy" if database_ok else "degraded",
            version=settings.APP_VERSION,
            environment=settings.ENVIRONMENT,
            database="connected" if database_ok else "unavailable",
        )

    app.include_router(auth.router, prefix=settings.API_PREFIX)
    app.include_router(projects.router, prefix=settings.API_PREFIX)
    app.include_router(tickets.router, prefix=settings.API_PREFIX)
    app.include_router(comments.router, prefix=settings.API_PREFIX)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "worknest.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=get_settings().is_development,
    )
