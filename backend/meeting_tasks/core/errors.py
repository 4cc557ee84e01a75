from __future__ import annotations

from typing import Any, Optional

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.status import (
    HTTP_401_UNAUTHORIZED,
    HTTP_409_CONFLICT,
    HTTP_422_UNPROCESSABLE_ENTITY,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

from meeting_tasks.logging_utils import get_logger

log = get_logger(__name__)


# ---------------------------------------------------------------------------
# Error taxonomy
# ---------------------------------------------------------------------------


class AppError(Exception):
    """Base class for failures that carry a user-displayable message."""

    code: str = "error"

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class AuthFailure(AppError):
    """Identity provider rejected or could not complete an operation."""

    code = "auth-failure"


class StoreReadFailure(AppError):
    code = "store-read"


class StoreWriteFailure(AppError):
    code = "store-write"


class ValidationFailure(AppError):
    """A required form field is missing."""

    code = "validation"


class TransportFailure(AppError):
    """The outbound webhook POST raised."""

    code = "transport"


class ActionInProgress(AppError):
    """The same action is already in flight for this session."""

    code = "in-progress"


# ---------------------------------------------------------------------------
# API error payloads + handlers
# ---------------------------------------------------------------------------


class ApiError(BaseModel):
    error: str
    message: str
    details: Optional[Any] = None


def error_response(status_code: int, error: str, message: str, details: Any = None) -> JSONResponse:
    payload = ApiError(error=error, message=message, details=details).model_dump()
    return JSONResponse(status_code=status_code, content=payload)


async def http_exception_handler(request: Request, exc: HTTPException):
    # Normalize all HTTPExceptions into {error, message, details}
    detail = exc.detail
    if isinstance(detail, dict) and "error" in detail and "message" in detail:
        payload = detail
    else:
        payload = {
            "error": "HTTPError",
            "message": str(detail),
            "details": None,
        }
    log.warning("HTTPException", extra={"path": request.url.path, "status": exc.status_code, "payload": payload})
    return JSONResponse(status_code=exc.status_code, content=payload, headers=exc.headers)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    log.warning("ValidationError", extra={"path": request.url.path, "details": exc.errors()})
    return error_response(
        HTTP_422_UNPROCESSABLE_ENTITY,
        "ValidationError",
        "Request validation failed",
        jsonable_errors(exc),
    )


def jsonable_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    # ctx may hold exception instances that json can't serialize
    return [{k: v for k, v in err.items() if k != "ctx"} for err in exc.errors()]


async def auth_failure_handler(request: Request, exc: AuthFailure):
    log.info("AuthFailure", extra={"path": request.url.path, "code": exc.code})
    return error_response(HTTP_401_UNAUTHORIZED, "AuthFailure", exc.message, {"code": exc.code})


async def action_in_progress_handler(request: Request, exc: ActionInProgress):
    log.info("ActionInProgress", extra={"path": request.url.path})
    return error_response(HTTP_409_CONFLICT, "ActionInProgress", exc.message)


async def generic_exception_handler(request: Request, exc: Exception):
    log.error("Unhandled exception", extra={"path": request.url.path}, exc_info=exc)
    return error_response(
        HTTP_500_INTERNAL_SERVER_ERROR,
        "InternalServerError",
        "An unexpected error occurred",
    )
