import logging
import traceback

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from shoplist.schemas.common import error_content
from shoplist.utils.exceptions import AppException, ErrorCode

logger = logging.getLogger(__name__)


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Render any AppException; 401s keep their WWW-Authenticate header."""
    error = exc.detail.get("error", {})
    return JSONResponse(
        status_code=exc.status_code,
        content=error_content(
            exc.detail.get("message", exc.message),
            error.get("code", exc.error_code),
            error.get("details"),
            error.get("field"),
        ),
        headers=exc.headers,
    )


def _field_name(loc: tuple) -> str:
    # ("body", "email") -> "email"; ("body",) for a missing body -> "body"
    parts = [str(part) for part in loc if part != "body"]
    return ".".join(parts) if parts else "body"


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Request body/query validation failures -> 422 VALIDATION_ERROR with per-field details."""
    details = [
        {"field": _field_name(tuple(err.get("loc", ()))), "message": err.get("msg", "Invalid value")}
        for err in exc.errors()
    ]
    field = details[0]["field"] if len(details) == 1 else None
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error_content("Request validation failed", ErrorCode.VALIDATION_ERROR, details, field),
    )


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    """Unique/FK violations that escaped the services. The DB message is logged, never returned."""
    logger.warning(f"IntegrityError on {request.method} {request.url.path}: {exc.orig}")
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content=error_content("The record conflicts with existing data", ErrorCode.DUPLICATE_ENTRY),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"Unhandled {type(exc).__name__} on {request.method} {request.url.path}\n"
        f"{''.join(traceback.format_exception(type(exc), exc, exc.__traceback__))}"
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_content("Internal server error", ErrorCode.INTERNAL_SERVER_ERROR),
    )
