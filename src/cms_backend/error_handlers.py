"""Translate domain errors into JSON responses."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .errors import (
    AuthenticationError,
    ConstraintViolation,
    ContentError,
    ImageProcessingError,
    NotFoundError,
    ReferenceConstraintError,
    RegistrationClosed,
    SlugAllocationExhausted,
    UniqueConstraintError,
    UnsupportedUploadType,
    UploadTooLarge,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Most specific first.
_STATUS_CODES: tuple[tuple[type[ContentError], int], ...] = (
    (UnsupportedUploadType, 415),
    (UploadTooLarge, 413),
    (ValidationError, 400),
    (NotFoundError, 404),
    (UniqueConstraintError, 409),
    (ReferenceConstraintError, 400),
    (ConstraintViolation, 409),
    (AuthenticationError, 401),
    (RegistrationClosed, 403),
    (SlugAllocationExhausted, 500),
    (ImageProcessingError, 500),
)


def status_for(exc: ContentError) -> int:
    for error_type, status_code in _STATUS_CODES:
        if isinstance(exc, error_type):
            return status_code
    return 500


async def content_error_handler(request: Request, exc: ContentError) -> JSONResponse:
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error(
            "%s %s failed: %s",
            request.method,
            request.url.path,
            exc,
            exc_info=exc,
        )
        return JSONResponse(status_code=status_code, content={"message": "Internal server error"})

    logger.info("%s %s -> %d: %s", request.method, request.url.path, status_code, exc)
    content: dict[str, object] = {"message": str(exc)}
    if isinstance(exc, UniqueConstraintError) and exc.fields:
        content["fields"] = list(exc.fields)
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return JSONResponse(status_code=status_code, content=content, headers=headers)


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"message": "Validation failed", "errors": jsonable_encoder(exc.errors())},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ContentError, content_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, request_validation_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_error_handler)


__all__ = ["install_error_handlers", "status_for"]
