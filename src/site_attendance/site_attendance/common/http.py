"""JSON helpers shared by the controllers.

Domain errors are expected conditions in the field (double taps, flaky
signal) and always come back with their own message and status code.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

from flask import Flask, jsonify, request

from ..attendance.model import Location
from ..core.exceptions import (
    AlreadySignedIn,
    AuthenticationError,
    AuthorizationError,
    ConcurrentWriteConflict,
    DomainError,
    InvalidTimeRange,
    InvalidTransition,
    NoActiveSignIn,
    StorageUnavailable,
    TimesheetNotFound,
    ValidationError,
    WorkerNotFound,
)
from .validators import optional_float

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: tuple[tuple[type[DomainError], int], ...] = (
    (AlreadySignedIn, 409),
    (ConcurrentWriteConflict, 409),
    (NoActiveSignIn, 404),
    (WorkerNotFound, 404),
    (TimesheetNotFound, 404),
    (InvalidTimeRange, 400),
    (InvalidTransition, 400),
    (ValidationError, 400),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
)


def status_for(err: DomainError) -> int:
    for cls, code in _STATUS_BY_ERROR:
        if isinstance(err, cls):
            return code
    return 400


def ok(payload: Optional[dict] = None, status: int = 200):
    body: dict[str, Any] = {"success": True}
    body.update(payload or {})
    return jsonify(body), status


def fail(message: str, status: int, **extra):
    body: dict[str, Any] = {"success": False, "message": message}
    body.update(extra)
    return jsonify(body), status


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def location_from(data: dict) -> Optional[Location]:
    loc = Location(
        latitude=optional_float(data.get("latitude"), "Latitude"),
        longitude=optional_float(data.get("longitude"), "Longitude"),
        address=(str(data.get("address") or "").strip() or None),
    )
    return None if loc.is_empty() else loc


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def _domain_error(e: DomainError):
        return fail(str(e), status_for(e), error=type(e).__name__)

    @app.errorhandler(StorageUnavailable)
    def _storage_unavailable(e: StorageUnavailable):
        logger.warning("storage unavailable on %s %s: %s", request.method, request.path, e)
        return fail("Service temporarily unavailable, please retry", 503, retryable=True)

    @app.errorhandler(Exception)
    def _unexpected(e: Exception):
        # werkzeug HTTPException (404, 405, ...) keeps its own code.
        code = getattr(e, "code", None)
        if isinstance(code, int) and code < 500:
            return fail(getattr(e, "description", str(e)), code)
        logger.exception("unhandled error on %s %s", request.method, request.path)
        return fail("Internal server error", 500)
