"""Application exceptions and the FastAPI handlers that render them.

Every error leaves the API as ``{"msg": "..."}`` with the exception's status
code.  Server-side failures (5xx) never expose their internal message: the
client sees the generic text of the route that failed, while the full
context (ticker, stage, cause) goes to the log.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger("app.errors")


class AppException(Exception):
    """Base application exception."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Server error"

    def __init__(
        self,
        message: str | None = None,
        public_message: str | None = None,
        stage: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message or self.message
        self.public_message = public_message
        self.stage = stage
        self.details = details or {}
        super().__init__(self.message)

    @property
    def client_message(self) -> str:
        """Text safe to return to the caller."""
        if self.status_code >= 500:
            return self.public_message or "Server error"
        return self.public_message or self.message


class InvalidRequest(AppException):
    """Bad ticker, horizon or request body."""

    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid request"


class DataUnavailable(AppException):
    """Upstream market data returned nothing, an unknown symbol, or failed."""

    message = "Market data unavailable"


class InsufficientData(AppException):
    """Series too short (or degenerate) for the requested computation."""

    message = "Insufficient data"


class AuthenticationError(AppException):
    """Missing or rejected bearer token.  The reason is logged, not returned."""

    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Token is not valid"

    @property
    def client_message(self) -> str:
        return self.public_message or type(self).message


class NotFoundError(AppException):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Not found"


@contextmanager
def public_errors(message: str) -> Iterator[None]:
    """Attach *message* as the client-facing text of any 5xx raised inside.

    Unexpected exceptions are wrapped in ``AppException`` so they go through
    the same handler instead of Starlette's plain-text 500.
    """
    try:
        yield
    except AppException as exc:
        if exc.status_code >= 500 and exc.public_message is None:
            exc.public_message = message
        raise
    except Exception as exc:
        raise AppException(repr(exc), public_message=message, stage="unexpected") from exc


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    request_id = getattr(request.state, "request_id", None)
    if exc.status_code >= 500:
        logger.error(
            "%s %s failed stage=%s request_id=%s: %s %s",
            request.method,
            request.url.path,
            exc.stage,
            request_id,
            exc.message,
            exc.details,
            exc_info=exc.__cause__,
        )
    else:
        logger.info(
            "%s %s rejected status=%d request_id=%s: %s",
            request.method,
            request.url.path,
            exc.status_code,
            request_id,
            exc.message,
        )
    return JSONResponse(status_code=exc.status_code, content={"msg": exc.client_message})


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    detail = first.get("msg", "Invalid request")
    msg = f"Invalid request: {field}: {detail}" if field else f"Invalid request: {detail}"
    logger.info("%s %s rejected: %s", request.method, request.url.path, msg)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"msg": msg})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
