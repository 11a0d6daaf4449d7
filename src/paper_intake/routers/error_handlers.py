"""Map intake errors onto the service's JSON error responses.

Validation and not-found responses carry caller-facing detail. Storage and
allocation failures are reported generically; their detail has already been
logged where they were raised.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from paper_intake.errors import (
    AllocationExhausted,
    NotFound,
    StorageUnavailable,
    ValidationFailure,
)

logger = logging.getLogger(__name__)

VALIDATION_FAILED = "Validation failed"
SERVICE_UNAVAILABLE = "Service unavailable"
NOT_FOUND = "Not Found"


def error_body(message: str, **extra) -> dict:
    return {"status": "error", "message": message, **extra}


async def handle_validation_failure(request: Request, exc: ValidationFailure):
    return JSONResponse(
        status_code=422,
        content=error_body(
            VALIDATION_FAILED, errors=[v.to_dict() for v in exc.violations]
        ),
    )


async def handle_not_found(request: Request, exc: NotFound):
    return JSONResponse(status_code=404, content=error_body(NOT_FOUND))


async def handle_service_unavailable(request: Request, exc: Exception):
    logger.error(
        f"{request.method} {request.url.path} failed: {type(exc).__name__}: {exc}"
    )
    return JSONResponse(status_code=503, content=error_body(SERVICE_UNAVAILABLE))


async def handle_http_exception(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ValidationFailure, handle_validation_failure)
    app.add_exception_handler(NotFound, handle_not_found)
    app.add_exception_handler(AllocationExhausted, handle_service_unavailable)
    app.add_exception_handler(StorageUnavailable, handle_service_unavailable)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
