"""Centralized exception hierarchy for the irrigation sync service.

All domain and service exceptions inherit from :class:`IrrigationSyncError`
so that callers can catch a single base class when they need a broad safety
net, yet still match on specific subclasses where narrower handling is
appropriate.

Blueprint-level error handling (see ``app/utils/http.safe_route``) maps these
to the correct HTTP status codes automatically.

Hierarchy
---------
::

    IrrigationSyncError (base: maps to 500)
    ├── ValidationError          (400: bad input from caller)
    │   └── InvalidRangeError    (400: moisture outside [0, 100])
    ├── ForbiddenError           (403: identity lacks the admin role)
    ├── NotFoundError            (404: device / command does not exist)
    ├── ConflictError            (409: out-of-order execution)
    └── RepositoryError          (500: database / persistence)
        └── RetryableError       (503: store transiently unavailable)

Reads never raise :class:`NotFoundError`; they return ``None`` or an explicit
absent-state value instead.
"""

from __future__ import annotations


class IrrigationSyncError(Exception):
    """Base exception for all irrigation sync errors.

    Parameters
    ----------
    message:
        Human-readable description (logged server-side, **not** leaked to
        the HTTP client unless the exception class opts in).
    detail:
        Optional machine-readable context dict attached to the error for
        structured logging.
    """

    http_status: int = 500

    def __init__(self, message: str = "", *, detail: dict | None = None) -> None:
        super().__init__(message)
        self.detail = detail or {}


# ── Client errors (4xx) ──────────────────────────────────────────────


class ValidationError(IrrigationSyncError):
    """Caller supplied invalid or malformed input (HTTP 400)."""

    http_status: int = 400


class InvalidRangeError(ValidationError):
    """Moisture percentage outside the closed interval [0, 100]."""


class ForbiddenError(IrrigationSyncError):
    """Identity is not allowed to perform the operation (HTTP 403)."""

    http_status: int = 403


class NotFoundError(IrrigationSyncError):
    """Referenced device or command does not exist (HTTP 404)."""

    http_status: int = 404


class ConflictError(IrrigationSyncError):
    """Operation conflicts with existing state (HTTP 409)."""

    http_status: int = 409


# ── Server errors (5xx) ──────────────────────────────────────────────


class RepositoryError(IrrigationSyncError):
    """Database / persistence layer failure (HTTP 500)."""

    http_status: int = 500


class RetryableError(RepositoryError):
    """Backing store is transiently unavailable; the caller may retry (HTTP 503)."""

    http_status: int = 503
