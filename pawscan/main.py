"""Paw Scan API main application module.

This module initializes the FastAPI application and configures
logging, middleware, routers, exception handlers and startup/shutdown
events.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from pawscan.api.health import router as health_router
from pawscan.api.middleware import INTERNAL_ERROR_MESSAGE, setup_middleware
from pawscan.api.products import router as products_router
from pawscan.catalog.factory import POSTGRES_BACKEND
from pawscan.domain.exceptions import (
    CatalogError,
    ErrorKind,
    FieldError,
    ValidationFailedError,
)
from pawscan.infrastructure.app_logging import configure_logging
from pawscan.infrastructure.config import settings
from pawscan.infrastructure.database import create_tables, engine

configure_logging(level=settings.log_level, json_logs=settings.log_json)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup and shutdown events.

    Args:
        app: The FastAPI application instance.

    Yields:
        None after startup, cleanup happens after yield.
    """
    logger.info(
        "Starting Paw Scan API",
        version=settings.api_version,
        environment=settings.environment,
        storage_backend=settings.storage_backend,
    )

    uses_database = settings.storage_backend == POSTGRES_BACKEND
    if uses_database and settings.create_tables_on_startup:
        await create_tables()
        logger.info("Database tables ready")

    yield

    logger.info("Shutting down Paw Scan API")
    if uses_database:
        await engine.dispose()


app = FastAPI(
    title="Paw Scan API",
    description="Pet food product catalog with ingredient quality ratings",
    version=settings.api_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware (must be added before custom middleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Setup custom middleware (request ID, error handling)
setup_middleware(app)

# Include routers
app.include_router(health_router, tags=["Health"])
app.include_router(products_router, prefix=settings.api_prefix)


# ============================================================================
# Custom Exception Handlers
# ============================================================================


def envelope(status_code: int, **fields: Any) -> JSONResponse:
    """Build an error envelope response."""
    content = {"success": False}
    content.update({key: value for key, value in fields.items() if value is not None})
    return JSONResponse(status_code=status_code, content=content)


def validation_envelope(errors: list[FieldError]) -> JSONResponse:
    """Build the "Validation failed" envelope listing every field error."""
    return envelope(
        status.HTTP_400_BAD_REQUEST,
        error="Validation failed",
        validationErrors=[error.to_dict() for error in errors],
    )


def _field_name(error: dict[str, Any]) -> str:
    # Drop the "body"/"query"/"path" source prefix; JSON errors carry a position
    location = [str(part) for part in error.get("loc", ())]
    if error.get("type") == "json_invalid" or len(location) < 2:
        return location[0] if location else "body"
    return ".".join(location[1:])


@app.exception_handler(CatalogError)
async def catalog_error_handler(request: Request, exc: CatalogError) -> JSONResponse:
    """Turn catalog errors into the response envelope."""
    if isinstance(exc, ValidationFailedError):
        logger.info("Validation failed", path=request.url.path, fields=exc.details["fields"])
        return validation_envelope(exc.errors)

    if not exc.is_operational:
        logger.error(
            "Unexpected catalog error",
            path=request.url.path,
            method=request.method,
            error=exc.message,
            exc_info=exc,
            **exc.details,
        )
        return envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, error=INTERNAL_ERROR_MESSAGE)

    if exc.kind is ErrorKind.NOT_FOUND:
        logger.info("Product not found", path=request.url.path, **exc.details)
        return envelope(exc.status_code, message=exc.message)

    logger.info("Request rejected", path=request.url.path, error=exc.message, **exc.details)
    return envelope(exc.status_code, error=exc.message)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle malformed request bodies and parameters."""
    errors = [
        FieldError(_field_name(error), error.get("msg", "Invalid value"))
        for error in exc.errors()
    ]
    return validation_envelope(errors)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Handle HTTP exceptions (unknown route, wrong method) with the envelope."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle uncaught exceptions with the generic error envelope."""
    logger.error(
        "Unhandled exception in handler",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        exc_info=exc,
    )
    return envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, error=INTERNAL_ERROR_MESSAGE)
