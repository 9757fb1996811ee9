"""
Marketplace API - Main FastAPI Application.

Wires the database façade into the routers and translates storage errors
into HTTP responses.
"""

from contextlib import asynccontextmanager
from http import HTTPStatus
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import settings
from .logging_config import get_logger, setup_logging
from .metrics import metrics_endpoint, track_request_metrics
from .metrics_middleware import PrometheusMiddleware
from .models import ErrorResponse
from .routers import activity_router, debug_router, health_router
from .storage import (AlreadyExistsError, NotConfiguredError, NotFoundError,
                      StoreError, create_database)

# Setup logging
setup_logging(
    log_level=settings.LOG_LEVEL,
    service_name="marketplace-api",
    use_json=settings.LOG_JSON,
)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Builds the database façade on startup and drops it on shutdown.
    """
    logger.info("Starting Marketplace API...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Log level: {settings.LOG_LEVEL}")

    app.state.database = create_database(settings)
    logger.info(f"Storage mode: {app.state.database.mode.value}")

    yield

    logger.info("Shutting down Marketplace API...")
    app.state.database = None


# Initialize FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description="REST backend for the NFT marketplace",
    version="1.0.0",
    docs_url="/api/docs" if settings.DEBUG else None,
    redoc_url="/api/redoc" if settings.DEBUG else None,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(PrometheusMiddleware, track_func=track_request_metrics)

app.include_router(health_router)
app.include_router(activity_router)
app.include_router(debug_router)


@app.get("/metrics", include_in_schema=False)
async def metrics():
    """Prometheus metrics endpoint."""
    return await metrics_endpoint()


def _error_response(
    status_code: int,
    error: str,
    code: str,
    headers: Optional[dict] = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, code=code).model_dump(),
        headers=headers,
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Give HTTP errors raised by routes and dependencies the common error body."""
    try:
        code = HTTPStatus(exc.status_code).name
    except ValueError:
        code = "HTTP_ERROR"
    return _error_response(exc.status_code, str(exc.detail), code, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return _error_response(422, message, "VALIDATION_ERROR")


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return _error_response(status.HTTP_404_NOT_FOUND, exc.message, exc.code)


@app.exception_handler(AlreadyExistsError)
async def already_exists_handler(request: Request, exc: AlreadyExistsError):
    return _error_response(status.HTTP_409_CONFLICT, exc.message, exc.code)


@app.exception_handler(NotConfiguredError)
async def not_configured_handler(request: Request, exc: NotConfiguredError):
    logger.error(f"Storage not configured: {request.method} {request.url.path}")
    return _error_response(status.HTTP_503_SERVICE_UNAVAILABLE, exc.message, exc.code)


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    logger.error(f"Storage error on {request.method} {request.url.path}: {exc.message}")
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, exc.message, exc.code)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle all unhandled exceptions."""
    logger.exception(f"Unhandled exception on {request.method} {request.url.path}: {exc}")
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "An unexpected error occurred",
        "INTERNAL_ERROR",
    )


def main() -> None:
    import uvicorn

    uvicorn.run(
        "marketplace_api.app:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
