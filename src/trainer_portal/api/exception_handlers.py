"""
Exception handlers for the FastAPI application.

This module registers exception handlers that convert application
exceptions to appropriate HTTP responses with consistent formatting:
``{"success": false, "error": {"code", "message", "details"?}}``.
"""

import logging
from typing import Any, Dict

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..config import get_settings
from ..exceptions import ErrorCode, TrainerPortalError


logger = logging.getLogger("trainer_portal.api")


_STATUS_CODES = {
    400: ErrorCode.VALIDATION_ERROR,
    401: ErrorCode.UNAUTHORIZED,
    403: ErrorCode.FORBIDDEN,
    404: ErrorCode.NOT_FOUND,
    405: ErrorCode.METHOD_NOT_ALLOWED,
    409: ErrorCode.CONFLICT,
    413: ErrorCode.PAYLOAD_TOO_LARGE,
    429: ErrorCode.RATE_LIMITED,
    503: ErrorCode.SERVICE_UNAVAILABLE,
}


def create_error_response(
    status_code: int,
    code: str,
    message: str,
    details: Dict[str, Any] | None = None,
    headers: Dict[str, str] | None = None,
) -> JSONResponse:
    """Create a standardized error response."""
    content: Dict[str, Any] = {
        "success": False,
        "error": {
            "code": code,
            "message": message,
        },
    }
    if details:
        content["error"]["details"] = details
    return JSONResponse(status_code=status_code, content=content, headers=headers)


async def trainer_portal_error_handler(
    request: Request,
    exc: TrainerPortalError,
) -> JSONResponse:
    """Handle all TrainerPortalError exceptions."""
    if exc.status_code >= 500:
        logger.error(f"{exc.__class__.__name__} on {request.url.path}: {exc.message}")
    return create_error_response(
        status_code=exc.status_code,
        code=exc.code.value,
        message=exc.message,
        details=exc.details if exc.details else None,
    )


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    """Handle HTTPExceptions raised by dependencies and unknown routes."""
    code = _STATUS_CODES.get(exc.status_code, ErrorCode.INTERNAL_ERROR)
    if exc.status_code == 404 and exc.detail == "Not Found":
        message = "Route not found"
    else:
        message = str(exc.detail)
    return create_error_response(
        status_code=exc.status_code,
        code=code.value,
        message=message,
        headers=getattr(exc, "headers", None),
    )


async def request_validation_error_handler(
    request: Request,
    exc: RequestValidationError | PydanticValidationError,
) -> JSONResponse:
    """Handle request body and parameter validation errors."""
    errors = []
    for error in exc.errors():
        loc = ".".join(str(x) for x in error["loc"] if x != "body")
        errors.append({
            "field": loc,
            "message": error["msg"],
            "type": error["type"],
        })

    first = errors[0] if errors else None
    message = (
        f"Invalid value for '{first['field']}': {first['message']}"
        if first and first["field"]
        else "Request validation failed"
    )
    return create_error_response(
        status_code=400,
        code=ErrorCode.VALIDATION_ERROR.value,
        message=message,
        details={"errors": errors},
    )


async def generic_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.exception(f"Unhandled exception on {request.method} {request.url.path}")

    details = None
    if get_settings().debug:
        details = {"exception": f"{exc.__class__.__name__}: {exc}"}

    return create_error_response(
        status_code=500,
        code=ErrorCode.INTERNAL_ERROR.value,
        message="Internal server error",
        details=details,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register all exception handlers with the FastAPI application.

    Args:
        app: The FastAPI application instance
    """
    app.add_exception_handler(TrainerPortalError, trainer_portal_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(PydanticValidationError, request_validation_error_handler)

    # Note: This should be last as it catches all Exception types
    app.add_exception_handler(Exception, generic_exception_handler)
