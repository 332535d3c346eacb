"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from cortex.api.router import api_router
from cortex.core.config import settings
from cortex.core.exceptions import AppError
from cortex.core.logging import get_logger, setup_logging
from cortex.schemas.common import ErrorResponse

# Initialize logging
setup_logging()
logger = get_logger(__name__)


def error_response(status_code: int, message: str, status: str | None = None) -> JSONResponse:
    """Build the JSON error envelope used by every failing endpoint."""
    if status is None:
        status = "fail" if 400 <= status_code < 500 else "error"
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(status=status, message=message).model_dump(),
    )


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render a domain error with its own status code and message."""
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "request_failed",
        method=request.method,
        path=request.url.path,
        status_code=exc.status_code,
        error_code=exc.code,
        error=exc.message,
    )
    return error_response(exc.status_code, exc.message, exc.status)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render framework HTTP errors (unknown routes, bad methods) in the same envelope."""
    return error_response(exc.status_code, str(exc.detail))


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Render malformed request bodies as a 400."""
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return error_response(400, message)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Hide unexpected failures behind a generic 500."""
    logger.exception(
        "unhandled_error",
        method=request.method,
        path=request.url.path,
        error_type=type(exc).__name__,
    )
    message = str(exc) if settings.debug else "Something went wrong"
    return error_response(500, message)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan events."""
    logger.info(
        "starting_application",
        app_name=settings.app_name,
        version=settings.version,
        host=settings.host,
        port=settings.port,
        google_oauth_configured=settings.google_oauth_configured,
        llm_configured=settings.llm_configured,
    )
    if settings.jwt_secret == "change-me":
        logger.warning("jwt_secret_default", hint="Set CORTEX_JWT_SECRET in production")
    yield
    logger.info("shutting_down_application")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        description="Dashboard backend for browsing, analyzing and chatting about Google Drive files",
        version=settings.version,
        lifespan=lifespan,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )

    # Configure CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # Include API routes
    app.include_router(api_router)

    return app


# Create the application instance
app = create_app()


def main() -> None:
    """Run the application with uvicorn."""
    import uvicorn

    uvicorn.run(
        "cortex.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()
