"""Standardised API responses.

Usage
-----
    from ideaforge.utils.errors import api_error, api_success, E

    return api_success({"idea": idea.to_dict()}, message="Idea created", status=201)
    return api_error(E.NOT_FOUND, "Document not found")

Every ``AppError`` raised below a view is serialised by the handlers
installed with :func:`register_error_handlers`, so views rarely need
``api_error`` directly.
"""

from __future__ import annotations

import logging

from flask import jsonify
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


# ── Error code constants ──────────────────────────────────────────────
class E:
    """Machine-readable error code constants."""

    # Validation – HTTP 400
    VALIDATION_REQUIRED = "ERR_VALIDATION_REQUIRED"
    VALIDATION_INVALID = "ERR_VALIDATION_INVALID"

    # Not-found – HTTP 404
    NOT_FOUND = "ERR_NOT_FOUND"

    # Conflict – HTTP 409
    CONFLICT_STATE = "ERR_CONFLICT_STATE"

    # Auth – HTTP 401 / 403
    UNAUTHORIZED = "ERR_UNAUTHORIZED"
    FORBIDDEN = "ERR_FORBIDDEN"

    # Upstream – HTTP 503
    UPSTREAM_UNAVAILABLE = "ERR_UPSTREAM_UNAVAILABLE"

    # Server – HTTP 500
    INTERNAL = "ERR_INTERNAL"
    HTTP = "ERR_HTTP"


# ── Default HTTP status mapping ───────────────────────────────────────
_DEFAULT_STATUS: dict[str, int] = {
    E.VALIDATION_REQUIRED: 400,
    E.VALIDATION_INVALID: 400,
    E.NOT_FOUND: 404,
    E.CONFLICT_STATE: 409,
    E.UNAUTHORIZED: 401,
    E.FORBIDDEN: 403,
    E.UPSTREAM_UNAVAILABLE: 503,
    E.INTERNAL: 500,
}


def _status_word(http_status: int) -> str:
    return "fail" if 400 <= http_status < 500 else "error"


def api_error(
    code: str,
    message: str,
    *,
    status: int | None = None,
    details: dict | None = None,
):
    """Return a standard JSON error response.

    Parameters
    ----------
    code : str
        Machine-readable error code (use ``E.*`` constants).
    message : str
        Human-readable explanation for the client.
    status : int, optional
        HTTP status override.  Falls back to ``_DEFAULT_STATUS[code]``,
        then to ``400``.
    details : dict, optional
        Extra structured payload.

    Returns
    -------
    tuple[Response, int]
        ``(jsonify(body), http_status)`` – drop-in for Flask views.
    """

    http_status = status or _DEFAULT_STATUS.get(code, 400)

    body: dict = {
        "status": _status_word(http_status),
        "message": message,
        "code": code,
    }
    if details:
        body["details"] = details

    return jsonify(body), http_status


def api_success(data=None, *, message: str | None = None, status: int = 200):
    """Return the ``{"status": "success", "message"?, "data"?}`` envelope."""
    body: dict = {"status": "success"}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return jsonify(body), status


def register_error_handlers(app):
    """Install the app-wide handlers that serialise every error uniformly."""
    from ideaforge.core.exceptions import AppError
    from ideaforge.models import db

    @app.errorhandler(AppError)
    def _handle_app_error(error: AppError):
        db.session.rollback()
        if error.status_code >= 500:
            logger.warning("%s: %s", type(error).__name__, error.message)
        return api_error(error.code, error.message, status=error.status_code,
                         details=error.details or None)

    @app.errorhandler(HTTPException)
    def _handle_http_error(error: HTTPException):
        return api_error(E.HTTP, error.description or error.name, status=error.code)

    @app.errorhandler(Exception)
    def _handle_unexpected(error: Exception):
        db.session.rollback()
        logger.exception("Unhandled error: %s", error)
        return api_error(E.INTERNAL, "Internal server error", status=500)
