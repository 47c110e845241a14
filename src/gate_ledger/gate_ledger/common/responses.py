from __future__ import annotations

import logging

from flask import jsonify

from ..core.exceptions import (
    ConflictError,
    DomainError,
    NotFoundError,
    StoreUnavailableError,
    ValidationError,
)

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR = (
    (ValidationError, 400),
    (NotFoundError, 404),
    (ConflictError, 409),
    (StoreUnavailableError, 503),
)


def ok(message: str = "OK", status: int = 200, **payload):
    body = {"success": True, "message": message}
    body.update(payload)
    return jsonify(body), status


def fail(message: str, status: int):
    return jsonify({"success": False, "message": message}), status


def domain_error(e: DomainError):
    for exc_type, status in _STATUS_BY_ERROR:
        if isinstance(e, exc_type):
            return fail(str(e), status)
    return fail(str(e), 400)


def unexpected_error(action: str):
    logger.exception("Unexpected failure while %s", action)
    return fail(f"System error while {action}", 500)
