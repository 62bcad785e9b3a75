"""Result service FastAPI application.

Registers fixtures for result tracking and calls subscribers back with the
final score.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from result_service.api.routes import aliases, health, matches, subscriptions
from result_service.config import get_settings
from result_service.errors import (
    MissingExternalLinkError,
    NotFoundError,
    UnprocessableContentError,
)
from result_service.logging_config import configure_logging

settings = get_settings()

configure_logging(settings.log_level)

logger = structlog.get_logger(__name__)

CODE_INVALID_REQUEST = "INVALID_REQUEST"
CODE_RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
CODE_UNPROCESSABLE_CONTENT = "UNPROCESSABLE_CONTENT"
CODE_INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"

HTTP_422_UNPROCESSABLE = 422


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("starting_result_service", version="0.1.0")
    yield
    logger.info("shutting_down_result_service")


# Create FastAPI application
app = FastAPI(
    title="Result Service",
    description="Match result tracking with webhook notifications",
    version="0.1.0",
    lifespan=lifespan,
)

# Include API routers
app.include_router(health.router)
app.include_router(matches.router)
app.include_router(subscriptions.router)
app.include_router(aliases.router)


def error_response(status_code: int, message: str, code: str | None = None) -> JSONResponse:
    content = {"error": message}
    if code is not None:
        content["code"] = code
    return JSONResponse(status_code=status_code, content=content)


# Error handlers
@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return error_response(
        status.HTTP_400_BAD_REQUEST, str(exc.errors()), CODE_INVALID_REQUEST
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return error_response(exc.status_code, str(exc.detail))


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return error_response(status.HTTP_400_BAD_REQUEST, str(exc), CODE_RESOURCE_NOT_FOUND)


@app.exception_handler(UnprocessableContentError)
@app.exception_handler(MissingExternalLinkError)
async def unprocessable_content_handler(request: Request, exc: Exception):
    return error_response(
        HTTP_422_UNPROCESSABLE, str(exc), CODE_UNPROCESSABLE_CONTENT
    )


@app.exception_handler(Exception)
async def server_error_handler(request: Request, exc: Exception):
    """Any other error."""
    logger.error("server_error", path=request.url.path, error=str(exc))
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc), CODE_INTERNAL_SERVER_ERROR
    )
