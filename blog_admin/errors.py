"""
User-facing error messages and exception handlers for the API.

Every error body has the shape ``{"message": str}``; validation failures add
``"errors": {field: [message, ...]}`` so the admin frontend can show them
next to the right input.
"""

from __future__ import annotations

import logging
import traceback

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

# Auth
UNAUTHENTICATED = "Unauthenticated."
INVALID_CREDENTIALS = (
    "The provided credentials do not match our records or are not for an administrator."
)

# WordPress proxy
POSTS_FETCH_FAILED = "Could not fetch posts from WordPress."
POST_NOT_FOUND = "Post not found in WordPress."
POST_CREATE_FAILED = "Failed to create post in WordPress."
POST_UPDATE_FAILED = "Failed to update post in WordPress."
POST_NOT_FOUND_FOR_PRIORITY = "Post not found in WordPress to update priority."
POST_REFETCH_FAILED = "Post updated, but could not refetch from WordPress."
POST_DELETE_FAILED = "Failed to delete post from WordPress."

# General
VALIDATION_ERROR = "The given data was invalid."
INTERNAL_SERVER_ERROR = "An unexpected error occurred. Please try again in a few moments."


class ApiError(Exception):
    """An error that maps directly onto a JSON error response."""

    def __init__(
        self,
        status_code: int,
        message: str,
        errors: dict[str, list[str]] | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.errors = errors

    def to_dict(self) -> dict:
        body: dict = {"message": self.message}
        if self.errors:
            body["errors"] = self.errors
        return body


def validation_failed(field: str, message: str) -> ApiError:
    return ApiError(422, message, errors={field: [message]})


def _field_name(loc: tuple) -> str:
    parts = [str(part) for part in loc if part not in ("body", "query", "path")]
    return ".".join(parts) or str(loc[0] if loc else "request")


def format_validation_errors(raw_errors: list[dict]) -> dict:
    errors: dict[str, list[str]] = {}
    for error in raw_errors:
        errors.setdefault(_field_name(tuple(error.get("loc", ()))), []).append(
            error.get("msg", "Invalid value")
        )
    messages = [msg for field_messages in errors.values() for msg in field_messages]
    message = messages[0] if messages else VALIDATION_ERROR
    if len(messages) > 1:
        extra = len(messages) - 1
        message = f"{message} (and {extra} more error{'s' if extra > 1 else ''})"
    return {"message": message, "errors": errors}


def register_exception_handlers(app: FastAPI, *, debug: bool = False) -> None:
    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=422,
            content=format_validation_errors(exc.errors()),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        content = {"message": INTERNAL_SERVER_ERROR}
        if debug:
            content["type"] = type(exc).__name__
            content["traceback"] = traceback.format_exc()
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content
        )
