"""API middleware -- CORS, request logging, and error handling.

Starlette middleware is a stack (last added, first executed).  In
``main.py`` the error handler is added before the request logger, so the
logger is outermost and records the *final* status code, including error
responses produced by :class:`ErrorHandlingMiddleware`.

Every failure leaves the service as ``{"error": <message>, ...}`` with the
status code carried by the :class:`CoTeacherError` subclass.
"""

from __future__ import annotations

import time
import traceback
from collections.abc import Iterable

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from coteacher.utils.errors import CoTeacherError
from coteacher.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------


def configure_cors(app: FastAPI, *, allowed_origins: list[str] | None = None) -> None:
    """Add CORS middleware to the FastAPI application.

    Parameters
    ----------
    app:
        The FastAPI application instance.
    allowed_origins:
        Explicit list of allowed origins.  Defaults to ``["*"]``.
    """
    origins = allowed_origins or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        # Browsers reject credentialed requests against a wildcard origin.
        allow_credentials=origins != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )


# ---------------------------------------------------------------------------
# Request Logging
# ---------------------------------------------------------------------------


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every HTTP request with method, path, status code, and duration."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        start = time.perf_counter()
        response: Response | None = None

        try:
            response = await call_next(request)
            return response
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            status_code = response.status_code if response else 500
            _logger.info(
                "http_request",
                method=request.method,
                path=str(request.url.path),
                status=status_code,
                duration_ms=duration_ms,
            )


# ---------------------------------------------------------------------------
# Error Handling
# ---------------------------------------------------------------------------


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Translate exceptions into JSON error bodies, exactly once.

    * :class:`CoTeacherError` -> its ``status_code`` with
      ``{"error": message, **exc.response_extra()}``.
    * Anything else -> 500 ``{"error": message}``; on *traceback_paths*
      (the indexing route) a ``details`` field carries the traceback so
      operators can diagnose parser failures from the upload UI.
    """

    def __init__(self, app: ASGIApp, traceback_paths: Iterable[str] = ()) -> None:
        super().__init__(app)
        self._traceback_paths = frozenset(traceback_paths)

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        path = str(request.url.path)
        try:
            return await call_next(request)
        except CoTeacherError as exc:
            log = _logger.warning if exc.status_code < 500 else _logger.error
            log(
                "application_error",
                error_type=type(exc).__name__,
                message=exc.message,
                provider=exc.provider_name,
                status=exc.status_code,
                path=path,
            )
            return JSONResponse(
                status_code=exc.status_code,
                content={"error": exc.message, **exc.response_extra()},
            )
        except Exception as exc:  # noqa: BLE001 -- last-resort boundary
            _logger.exception(
                "unexpected_error",
                error_type=type(exc).__name__,
                path=path,
            )
            content: dict[str, str] = {"error": str(exc) or "Internal server error"}
            if path in self._traceback_paths:
                content["details"] = "".join(traceback.format_exception(exc))
            return JSONResponse(status_code=500, content=content)


# ---------------------------------------------------------------------------
# Request validation
# ---------------------------------------------------------------------------


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Map FastAPI body validation failures to the 400 error contract."""
    errors = exc.errors()
    if any(
        err.get("type") == "json_invalid" or tuple(err.get("loc", ())) == ("body",)
        for err in errors
    ):
        message = "Invalid JSON"
    else:
        message = "Invalid request body"
    _logger.warning(
        "request_validation_failed",
        path=str(request.url.path),
        errors=len(errors),
    )
    return JSONResponse(status_code=400, content={"error": message})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, request_validation_handler)
