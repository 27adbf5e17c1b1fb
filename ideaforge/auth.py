"""
IdeaForge
API key authentication and role checks.

Every /api/v1/* request except health checks and CORS pre-flight passes
through ``init_auth``'s before_request hook:

    1. a body on POST/PUT/PATCH/DELETE must be JSON (415 otherwise);
    2. with auth disabled the request runs as ``admin``;
    3. ``X-API-Key`` is looked up in ``API_KEYS`` (401 when absent or unknown);
    4. viewer keys may only read (403 on anything else).

Views needing more than "any writer" add ``@require_role(...)``; idea
deletion is admin-only.

Configuration (env vars):
    API_KEYS            "<key>:<role>,..." with role admin|editor|viewer;
                        a key without a role is a viewer
    API_AUTH_ENABLED    "false" / "0" / "no" / "off" disables the check
                        (app config wins; development and testing ship it off)
"""

import functools
import logging
import os
from typing import Optional

from flask import current_app, g, request

from ideaforge.utils.errors import E, api_error

logger = logging.getLogger(__name__)

ROLE_LEVELS = {"viewer": 1, "editor": 2, "admin": 3}

_READ_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})
_BODY_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})
_FALSY = ("false", "0", "no", "off")
_HEALTH_PREFIX = "/api/v1/health"


@functools.lru_cache(maxsize=8)
def _parse_api_keys(raw: str) -> dict[str, str]:
    """``"k1:admin,k2"`` → ``{"k1": "admin", "k2": "viewer"}``; unknown roles become viewer."""
    keys = {}
    for entry in filter(None, (e.strip() for e in raw.split(","))):
        key, _, role = entry.rpartition(":") if ":" in entry else (entry, "", "viewer")
        role = role.strip().lower()
        if role not in ROLE_LEVELS:
            logger.warning("Unknown role '%s' for API key, defaulting to 'viewer'", role)
            role = "viewer"
        keys[key.strip()] = role
    return keys


def configured_keys() -> dict[str, str]:
    return _parse_api_keys(os.getenv("API_KEYS", ""))


def auth_enabled() -> bool:
    return str(current_app.config.get("API_AUTH_ENABLED", "true")).lower() not in _FALSY


def _is_exempt(path: str, method: str) -> bool:
    if not path.startswith("/api/v1/"):
        return True
    return method == "OPTIONS" or path == _HEALTH_PREFIX or path.startswith(_HEALTH_PREFIX + "/")


def _non_json_body() -> bool:
    if request.method not in _BODY_METHODS or not request.content_length:
        return False
    return "application/json" not in (request.content_type or "")


def require_role(minimum_role: str):
    """
    Require ``g.current_user_role`` to be at least ``minimum_role``.

    Usage:
        @idea_bp.route("/ideas/<idea_id>", methods=["DELETE"])
        @require_role("admin")
        def delete_idea(idea_id): ...
    """
    needed = ROLE_LEVELS[minimum_role]

    def decorator(f):
        @functools.wraps(f)
        def decorated(*args, **kwargs):
            role = getattr(g, "current_user_role", None)
            if role is None:
                return api_error(E.UNAUTHORIZED, "Authentication required")
            if ROLE_LEVELS.get(role, 0) < needed:
                logger.warning("Role '%s' denied '%s'-level endpoint %s %s",
                               role, minimum_role, request.method, request.path)
                return api_error(E.FORBIDDEN, "Insufficient permissions")
            return f(*args, **kwargs)
        return decorated
    return decorator


def _authenticate() -> Optional[tuple]:
    """Resolve the caller's role onto ``g``; return an error response to abort."""
    if not auth_enabled():
        g.current_user_role = "admin"
        return None

    api_key = request.headers.get("X-API-Key", "").strip()
    if not api_key:
        return api_error(E.UNAUTHORIZED, "Authentication required. Provide X-API-Key header.")

    keys = configured_keys()
    if not keys:
        logger.error("API_AUTH_ENABLED is on but API_KEYS is empty")
        return api_error(E.INTERNAL, "Server authentication not configured")

    role = keys.get(api_key)
    if role is None:
        logger.warning("Rejected API key %s...", api_key[:4])
        return api_error(E.UNAUTHORIZED, "Invalid API key")

    if role == "viewer" and request.method not in _READ_METHODS:
        logger.warning("Viewer key attempted %s %s", request.method, request.path)
        return api_error(E.FORBIDDEN, "Insufficient permissions")

    g.current_user_role = role
    return None


def init_auth(app):
    """Install the authentication before_request hook."""

    @app.before_request
    def _before_request_auth():
        if _is_exempt(request.path, request.method):
            return None
        if _non_json_body():
            return api_error(
                E.HTTP, "Content-Type must be application/json for state-changing requests",
                status=415,
            )
        return _authenticate()

    with app.app_context():
        logger.info("Auth middleware installed (enabled=%s)", auth_enabled())
