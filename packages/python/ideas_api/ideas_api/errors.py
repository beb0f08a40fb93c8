"""Map repository errors onto HTTP responses."""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException

from ideas_repo import (
    IdeaNotFoundError,
    InvalidInputError,
    NotFoundError,
    PermissionDeniedError,
    VoteConflictError,
)
from profiles_repo import InvalidProfileError, ProfileCreationError, ProfileNotFoundError

_STATUS_BY_ERROR: list[tuple[type[Exception], int, str | None]] = [
    (NotFoundError, 404, None),
    (IdeaNotFoundError, 404, "Idea not found"),
    (ProfileNotFoundError, 404, "Profile not found"),
    (InvalidInputError, 400, None),
    (InvalidProfileError, 400, None),
    (PermissionDeniedError, 403, "Forbidden"),
    (VoteConflictError, 500, "Internal server error"),
    (ProfileCreationError, 500, "Internal server error"),
]


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _handler(status_code: int, public_message: str | None):
    async def handle(request: Request, exc: Exception) -> JSONResponse:
        if status_code >= 500:
            logger.error(
                "{method} {path} failed: {error}",
                method=request.method,
                path=request.url.path,
                error=exc,
            )
        return _error_response(status_code, public_message or str(exc))

    return handle


async def _http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def _validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    return _error_response(400, f"{location}: {message}" if location else message)


def register_exception_handlers(app: FastAPI) -> None:
    """Install handlers rendering ``{"error": message}`` bodies."""

    for error_type, status_code, message in _STATUS_BY_ERROR:
        app.add_exception_handler(error_type, _handler(status_code, message))
    app.add_exception_handler(HTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_handler)
