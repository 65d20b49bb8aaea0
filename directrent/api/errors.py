"""
Exception handlers: domain errors -> stable JSON error codes.
Policy denials and validation errors are expected traffic (INFO); only
consistency faults and unknown errors are logged as errors.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from directrent.core.errors import (
    AuthError,
    ConsistencyFault,
    DirectRentError,
    PolicyDenial,
)

logger = logging.getLogger("api")


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


async def directrent_error_handler(request: Request, exc: DirectRentError) -> JSONResponse:
    extra = {
        "request_id": _request_id(request),
        "path": request.url.path,
        "method": request.method,
        "status_code": exc.status_code,
        "error": exc.code,
    }
    if isinstance(exc, ConsistencyFault):
        logger.error("request_consistency_fault", extra=extra, exc_info=exc)
    elif isinstance(exc, (PolicyDenial, AuthError)):
        logger.info("request_denied", extra=extra)
    else:
        logger.info("request_rejected", extra=extra)

    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthError) else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload(), headers=headers)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Body/path validation -> 400 with the first violation only."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    loc = [str(p) for p in first.get("loc", ()) if p not in ("body", "path", "query")]
    return JSONResponse(
        status_code=400,
        content={
            "error": "ValidationError",
            "field": ".".join(loc) or None,
            "message": first.get("msg", "Validation failed"),
        },
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "request_unhandled_error",
        extra={"request_id": _request_id(request), "path": request.url.path, "method": request.method},
    )
    return JSONResponse(
        status_code=500,
        content={"error": "InternalError", "message": "An unexpected error occurred"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DirectRentError, directrent_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
