"""
Blueprint Common Utilities
==========================

Shared helper functions for the API blueprints.

Usage:
    from app.blueprints.api._common import (
        get_container, get_identity, get_json, success, fail,
        get_command_service, get_sensor_log_service, ...
    )

This module centralizes:
- Session identity extraction
- Service container access
- Request JSON parsing
- Standardized response helpers
- Datetime parsing utilities
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from flask import current_app, request, session

from app.domain.exceptions import ValidationError
from app.domain.identity import Identity
from app.utils.http import error_response, success_response
from app.utils.time import coerce_datetime

logger = logging.getLogger("api._common")

# ============================================================================
# User Session Utilities
# ============================================================================


def get_user_id() -> Optional[str]:
    """Get current user ID from session (set by the identity provider integration)."""
    user_id = session.get("user_id")
    return str(user_id) if user_id is not None else None


def get_user_role() -> str:
    """Get current user role from session."""
    return session.get("user_role", "user")


def get_identity() -> Optional[Identity]:
    """Identity of the session caller, or None when nobody is signed in."""
    user_id = get_user_id()
    if user_id is None:
        return None
    return Identity.from_claims(user_id, get_user_role())


# ============================================================================
# CONTAINER ACCESS
# ============================================================================


def get_container():
    """
    Get the service container from Flask app config.

    Raises:
        RuntimeError: If container is not configured
    """
    container = current_app.config.get("CONTAINER")
    if not container:
        raise RuntimeError("ServiceContainer not found in app config")
    return container


def get_device_service():
    return get_container().device_service


def get_command_service():
    return get_container().command_service


def get_heartbeat_service():
    return get_container().heartbeat_service


def get_sensor_log_service():
    return get_container().sensor_log_service


def get_device_state_service():
    return get_container().device_state_service


# ============================================================================
# REQUEST HELPERS
# ============================================================================


def get_json() -> dict:
    """
    Get JSON request body with silent failure.

    Returns:
        dict: Parsed JSON body or empty dict if not available
    """
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


def parse_datetime(param: Optional[str], name: str) -> Optional[datetime]:
    """
    Parse an ISO-8601 query parameter.

    Returns None when the parameter is absent; raises ValidationError when it
    is present but unparseable.
    """
    if param is None or param == "":
        return None
    parsed = coerce_datetime(param)
    if parsed is None:
        raise ValidationError(f"{name} must be an ISO-8601 timestamp", detail={name: param})
    return parsed


def parse_int(param: Optional[str], name: str) -> Optional[int]:
    if param is None or param == "":
        return None
    try:
        return int(param)
    except ValueError:
        raise ValidationError(f"{name} must be an integer", detail={name: param}) from None


def parse_flag(param: Optional[str]) -> bool:
    return (param or "").strip().lower() in {"1", "true", "yes", "on"}


# ============================================================================
# RESPONSE HELPERS
# ============================================================================


def success(data: dict | list | None = None, status: int = 200, *, message: str | None = None):
    """
    Standard success response wrapper.

    Returns:
        Flask Response with format: {"ok": true, "data": ..., "error": null}
    """
    return success_response(data, status, message=message)


def fail(message: str, status: int = 400, *, details: dict | None = None):
    """
    Standard error response wrapper.

    Returns:
        Flask Response with format: {"ok": false, "data": null, "error": {...}}
    """
    return error_response(message, status, details=details)
