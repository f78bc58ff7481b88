"""Exception handlers that turn errors into the API's error envelope."""

import logging

import pydantic
from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from fragments_api.exceptions import (
    BackendUnavailableError,
    InvalidKeyError,
    NotFoundError,
    TypeMismatchError,
    UnsupportedTypeError,
)
from fragments_api.schemas import error_body

logger = logging.getLogger(__name__)


def _error_response(code: int, message: str, headers=None) -> JSONResponse:
    return JSONResponse(status_code=code, content=error_body(code, message), headers=headers)


async def handle_http_exceptions(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


async def handle_pydantic_validation_errors(
    request: Request, exc: pydantic.ValidationError | RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    message = "; ".join(
        f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg')}" for error in errors
    )
    logger.warning(f"Validation error on {request.method} {request.url.path}: {message}")
    return _error_response(422, message)


async def handle_not_found(request: Request, exc: NotFoundError) -> JSONResponse:
    logger.warning(f"Not found on {request.method} {request.url.path}: {exc}")
    return _error_response(status.HTTP_404_NOT_FOUND, "fragment not found")


async def handle_unsupported_type(request: Request, exc: UnsupportedTypeError) -> JSONResponse:
    logger.warning(f"Unsupported type on {request.method} {request.url.path}: {exc.content_type!r}")
    return _error_response(status.HTTP_415_UNSUPPORTED_MEDIA_TYPE, str(exc))


async def handle_type_mismatch(request: Request, exc: TypeMismatchError) -> JSONResponse:
    return _error_response(status.HTTP_400_BAD_REQUEST, str(exc))


async def handle_invalid_key(request: Request, exc: InvalidKeyError) -> JSONResponse:
    return _error_response(status.HTTP_400_BAD_REQUEST, "invalid fragment id")


async def handle_backend_unavailable(request: Request, exc: BackendUnavailableError) -> JSONResponse:
    logger.error(f"Backend unavailable on {request.method} {request.url.path}: {exc}")
    return _error_response(status.HTTP_503_SERVICE_UNAVAILABLE, "storage backend unavailable")


async def handle_broad_exceptions(request: Request, call_next):
    """Handle any exception that propagates out of a route."""
    try:
        return await call_next(request)
    except Exception as err:
        logger.exception(err)
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")
