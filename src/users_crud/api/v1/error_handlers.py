"""
FastAPI exception handlers that map application exceptions to HTTP responses.

The validation and repository layers raise `users_crud.exceptions.base.*`
exceptions carrying a canonical `error_code`; this module is the only place
that knows which HTTP status each code becomes. Payloads come from
`AppError.to_payload()`:

    {"detail": "username already in use", "code": "duplicate", "fields": ["user_name"]}
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from users_crud.exceptions.base import (
    AppError,
    AlreadyExistsError,
    NotFoundError,
    StorageUnavailableError,
    ValidationFailedError,
)

logger = logging.getLogger(__name__)


STATUS_BY_ERROR_CODE = {
    "invalid_input": status.HTTP_400_BAD_REQUEST,
    "not_found": status.HTTP_404_NOT_FOUND,
    "duplicate": status.HTTP_409_CONFLICT,
    "storage_unavailable": status.HTTP_500_INTERNAL_SERVER_ERROR,
}

BIND_ERROR_MESSAGE = "Failed to bind request body"
BAD_ID_MESSAGE = "'id' is not a number"


def status_for(exc: AppError) -> int:
    return STATUS_BY_ERROR_CODE.get(exc.error_code, status.HTTP_500_INTERNAL_SERVER_ERROR)


def _respond(exc: AppError) -> JSONResponse:
    return JSONResponse(status_code=status_for(exc), content=exc.to_payload())


# Most specific first. The handlers only log and delegate; the mapping lives in the table above.

async def validation_failed_handler(request: Request, exc: ValidationFailedError) -> JSONResponse:
    """400 Bad Request, `detail` holds one `'{field}' is {reason}` line per violation."""
    logger.info(
        "http.validation_failed",
        extra={"method": request.method, "path": request.url.path, "fields": exc.fields},
    )
    return _respond(exc)


async def already_exists_handler(request: Request, exc: AlreadyExistsError) -> JSONResponse:
    """409 Conflict for a taken user_name."""
    logger.info(
        "http.duplicate",
        extra={"method": request.method, "path": request.url.path, "fields": exc.fields},
    )
    return _respond(exc)


async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    logger.info("http.not_found", extra={"method": request.method, "path": request.url.path})
    return _respond(exc)


async def storage_unavailable_handler(request: Request, exc: StorageUnavailableError) -> JSONResponse:
    """
    500 with the sanitized per-operation message ("Failed to create user").
    The driver error was already logged with its stack trace by the mapper.
    """
    logger.warning(
        "http.storage_unavailable",
        extra={"method": request.method, "path": request.url.path, "cause": type(exc.__cause__).__name__},
    )
    return _respond(exc)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Fallback for any other application error."""
    logger.warning(
        "http.app_error",
        extra={"method": request.method, "path": request.url.path, "error_code": exc.error_code},
    )
    return _respond(exc)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Replace FastAPI's 422 with the service's 400 responses:
      - unparsable path id          -> "'id' is not a number"
      - body missing / not a JSON object -> "Failed to bind request body"
    """
    errors = exc.errors()
    if any(err.get("loc", ())[:1] == ("path",) for err in errors):
        detail, fields = BAD_ID_MESSAGE, ["id"]
    else:
        detail, fields = BIND_ERROR_MESSAGE, None

    logger.info(
        "http.bind_failed",
        extra={"method": request.method, "path": request.url.path, "error_count": len(errors)},
    )
    payload = {"detail": detail, "code": "invalid_input"}
    if fields:
        payload["fields"] = fields
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=payload)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(ValidationFailedError, validation_failed_handler)
    app.add_exception_handler(AlreadyExistsError, already_exists_handler)
    app.add_exception_handler(NotFoundError, not_found_handler)
    app.add_exception_handler(StorageUnavailableError, storage_unavailable_handler)
    app.add_exception_handler(AppError, app_error_handler)
