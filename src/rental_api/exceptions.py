"""FastAPI exception handlers for converting BookingError to HTTP responses.

Every error body has the ErrorResponse shape:
``{success, error_code, message, recovery, details}``. Request validation
failures use the same envelope with ERR_INVALID_INPUT and status 400.

Usage:
    from rental_api.exceptions import register_exception_handlers
    register_exception_handlers(app)
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_403_FORBIDDEN,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

from rental_core.models import BookingError, ErrorCode, ErrorResponse

logger = logging.getLogger(__name__)

# Map ErrorCode to HTTP status codes
ERROR_CODE_TO_HTTP_STATUS: dict[ErrorCode, int] = {
    ErrorCode.INVALID_INPUT: HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_SIGNATURE: HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_STATE_TRANSITION: HTTP_400_BAD_REQUEST,
    ErrorCode.UNAUTHORIZED: HTTP_403_FORBIDDEN,
    ErrorCode.NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorCode.CONFLICT: HTTP_409_CONFLICT,
    ErrorCode.INTERNAL_FAILURE: HTTP_500_INTERNAL_SERVER_ERROR,
}


def get_http_status_for_error(code: ErrorCode) -> int:
    """Get HTTP status code for an ErrorCode (400 if unmapped)."""
    return ERROR_CODE_TO_HTTP_STATUS.get(code, HTTP_400_BAD_REQUEST)


async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    """Convert a BookingError to its JSON error response."""
    status_code = get_http_status_for_error(exc.code)
    if status_code >= HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.code.value)

    return JSONResponse(
        status_code=status_code,
        content=exc.to_error_response().model_dump(mode="json"),
    )


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report request validation failures as ERR_INVALID_INPUT."""
    details = {
        ".".join(str(part) for part in err.get("loc", ()) if part != "body") or "body": str(
            err.get("msg", "")
        )
        for err in exc.errors()
    }
    body = ErrorResponse.from_code(ErrorCode.INVALID_INPUT, details=details)
    return JSONResponse(
        status_code=HTTP_400_BAD_REQUEST,
        content=body.model_dump(mode="json"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(BookingError, booking_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_error_handler)  # type: ignore[arg-type]
