"""
HTTP response helpers for the JSON API.

Every response uses one envelope::

    {"ok": bool, "data": ..., "error": {...} | null, "message": str?, "details": {...}?}

Client errors (4xx) carry the exception message and its ``detail`` dict so
callers can react (e.g. ``blocking_command_id`` on a 409). Server errors
(5xx) only ever carry a generic message; the real exception goes to the log.
"""
from __future__ import annotations

import functools
import logging
from typing import Any, Callable

from flask import Response, jsonify
from pydantic import ValidationError as PydanticValidationError
from werkzeug.exceptions import HTTPException

from app.domain.exceptions import IrrigationSyncError
from app.utils.time import iso_now

_log = logging.getLogger(__name__)

_GENERIC_MESSAGES: dict[int, str] = {
    400: "Invalid request",
    401: "Authentication required",
    403: "Access denied",
    404: "Resource not found",
    409: "Conflict",
    500: "An internal error occurred",
    503: "Service temporarily unavailable",
}

RETRY_AFTER_SECONDS = 1


def success_response(
    data: dict | list | None = None,
    status: int = 200,
    *,
    message: str | None = None,
) -> Response:
    payload: dict[str, Any] = {"ok": True, "data": data, "error": None}
    if message is not None:
        payload["message"] = message
    response = jsonify(payload)
    response.status_code = status
    return response


def error_response(
    message: str,
    status: int = 500,
    *,
    details: dict | None = None,
) -> Response:
    error: dict[str, Any] = {"message": message, "status": status, "timestamp": iso_now()}
    body: dict[str, Any] = {"ok": False, "data": None, "error": error, "message": message}
    if details:
        error.update(details)
        body["details"] = details
    response = jsonify(body)
    response.status_code = status
    return response


def safe_error(exc: BaseException, status: int = 500, *, context: str = "") -> Response:
    """Log ``exc`` in full and answer with the generic message for ``status``.

    503 responses carry ``Retry-After`` since the store is expected back shortly.
    """
    _log.error("API error [%s] %s: %s", status, context, exc, exc_info=exc)
    response = error_response(_GENERIC_MESSAGES.get(status, _GENERIC_MESSAGES[500]), status)
    if status == 503:
        response.headers["Retry-After"] = str(RETRY_AFTER_SECONDS)
    return response


def _pydantic_details(exc: PydanticValidationError) -> dict[str, Any]:
    return {
        "errors": [
            {"field": ".".join(str(part) for part in err.get("loc", ())), "message": err.get("msg", "")}
            for err in exc.errors()
        ]
    }


def exception_response(exc: Exception, *, context: str = "", fallback_status: int = 500) -> Response:
    """Translate an exception raised while serving a request into an envelope."""
    if isinstance(exc, PydanticValidationError):
        return error_response("Invalid request payload", 400, details=_pydantic_details(exc))

    if isinstance(exc, IrrigationSyncError):
        status = exc.http_status
        if status >= 500:
            return safe_error(exc, status, context=context or type(exc).__name__)
        return error_response(str(exc) or _GENERIC_MESSAGES.get(status, "Request failed"), status, details=exc.detail)

    if isinstance(exc, HTTPException):
        status = int(exc.code or 500)
        if status >= 500:
            return safe_error(exc, status, context=context or "http-exception")
        return error_response(exc.description or _GENERIC_MESSAGES.get(status, "Request failed"), status)

    return safe_error(exc, fallback_status, context=context or "unhandled")


def safe_route(error_message: str = "An internal error occurred", *, error_status: int = 500) -> Callable:
    """Wrap a route so domain and payload errors become JSON envelopes.

    ``error_message`` is the log context for unexpected failures; clients
    only see the generic message for ``error_status``.

    Usage::

        @devices_api.post("/<device_id>/commands")
        @safe_route("Failed to enqueue command")
        def enqueue_command(device_id: str):
            ...
    """

    def decorator(fn: Callable) -> Callable:
        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Response:
            try:
                return fn(*args, **kwargs)
            except Exception as exc:
                return exception_response(exc, context=error_message, fallback_status=error_status)

        return wrapper

    return decorator
