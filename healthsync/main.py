"""
Main FastAPI application for the Health Sync service.
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from healthsync.api.v1.api import api_router
from healthsync.api.v1.endpoints import health
from healthsync.core.config import settings
from healthsync.core.database import init_db
from healthsync.core.exceptions import (
    HealthSyncException, UnauthorizedError, ValidationError, CredentialNotFoundError,
    ConfigurationError, UpstreamServiceError, StorageError, InvalidStateError,
)
from healthsync.core.logging_config import setup_logging, log_info, log_warning, log_error
from healthsync.core.http_client import close_http_client
from healthsync.integrations.apps import load_provider_apps
from healthsync.middleware.request_logging import request_id_ctx, RequestLoggingMiddleware

# -----------------------------------------------------------------------------
# Startup / Shutdown
# -----------------------------------------------------------------------------
setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    log_info("Starting up Health Sync Service...")
    try:
        init_db()
        log_info("Database initialization completed!")

        app.state.provider_apps = load_provider_apps(settings)
        configured = sorted(provider.value for provider in app.state.provider_apps)
        log_info(f"OAuth provider apps configured: {configured or 'none (per-user credentials only)'}")
    except Exception as exc:
        log_error(exc)
        raise
    yield
    log_info("Shutting down Health Sync Service...")
    try:
        await close_http_client()
    except Exception as exc:
        log_warning(f"Failed to close HTTP client: {exc}")


# -----------------------------------------------------------------------------
# App Initialization
# -----------------------------------------------------------------------------
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Integration backend for health routines: OAuth for Google, Fitbit and Alexa, and notification forwarding",
    openapi_url=f"{settings.api_v1_prefix}/openapi.json",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# -----------------------------------------------------------------------------
# Middleware Configuration
# -----------------------------------------------------------------------------
@app.middleware("http")
async def answer_bare_options(request: Request, call_next):
    """Answer OPTIONS requests that are not CORS preflights with an empty 200."""
    if request.method != "OPTIONS" or "access-control-request-method" in request.headers:
        return await call_next(request)
    headers = {
        "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
        "Access-Control-Allow-Headers": ", ".join(settings.cors_allow_headers),
    }
    if "*" in settings.cors_origins:
        headers["Access-Control-Allow-Origin"] = "*"
    return Response(status_code=status.HTTP_200_OK, headers=headers)


# Browser and mobile clients call from arbitrary origins with bearer tokens, no cookies
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=settings.cors_allow_headers,
    max_age=3600,
)
log_info(f"CORS enabled for origins: {settings.cors_origins}")

# Logging Middleware
app.add_middleware(RequestLoggingMiddleware)


# -----------------------------------------------------------------------------
# Exception Handlers
# -----------------------------------------------------------------------------
def _error_response(status_code: int, error: str, **extra) -> JSONResponse:
    content = {"success": False, "error": error, "request_id": request_id_ctx.get()}
    content.update(extra)
    return JSONResponse(status_code=status_code, content=content)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle FastAPI request validation errors with detailed logging."""
    errors = exc.errors()
    sanitized_errors = [
        {
            "loc": err.get("loc"),
            "msg": err.get("msg"),
            "type": err.get("type")
        }
        for err in errors
    ]

    log_warning(
        "Request validation failed",
        request_id=request_id_ctx.get(),
        path=request.url.path,
        method=request.method,
        errors=sanitized_errors,
    )
    return _error_response(422, "validation_error", details=sanitized_errors)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    response = _error_response(exc.status_code, str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.exception_handler(HealthSyncException)
async def health_sync_exception_handler(request: Request, exc: HealthSyncException):
    request_id = request_id_ctx.get()

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    extra = {}
    headers = None
    if isinstance(exc, UnauthorizedError):
        status_code = status.HTTP_401_UNAUTHORIZED
        headers = {"WWW-Authenticate": "Bearer"}
    elif isinstance(exc, (ValidationError, ConfigurationError, InvalidStateError)):
        status_code = status.HTTP_400_BAD_REQUEST
    elif isinstance(exc, CredentialNotFoundError):
        status_code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, UpstreamServiceError):
        status_code = exc.status_code or status.HTTP_502_BAD_GATEWAY
        if exc.details is not None:
            extra["details"] = exc.details
    elif isinstance(exc, StorageError):
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    if status_code >= 500:
        log_error(exc, request_id=request_id)
    else:
        log_warning(f"{type(exc).__name__}: {exc}", request_id=request_id, path=request.url.path)

    message = (
        "An unexpected internal error occurred."
        if settings.environment == "production" and status_code == 500
        else str(exc)
    )
    response = _error_response(status_code, message, **extra)
    if headers:
        response.headers.update(headers)
    return response


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    log_error(exc, request_id=request_id_ctx.get())
    msg = (
        "An unexpected error occurred. Please try again later."
        if settings.environment == "production"
        else str(exc)
    )
    return _error_response(500, msg)


# -----------------------------------------------------------------------------
# API Routers
# -----------------------------------------------------------------------------
app.include_router(api_router, prefix=settings.api_v1_prefix)
app.include_router(health.router)


# -----------------------------------------------------------------------------
# Entry Point
# -----------------------------------------------------------------------------
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "healthsync.main:app",
        host="0.0.0.0",
        port=8000,
    )
