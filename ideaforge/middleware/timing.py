"""
Request timing middleware.

Every /api/ response carries:
    X-Request-ID           echoed from the request, or generated
    X-Request-Duration-Ms  wall time spent in the view

Requests are logged at DEBUG, slow ones at WARNING. Routes that reach the
LLM get a much larger slow threshold since a single generation, retries
included, routinely takes several seconds.
"""

import logging
import time
import uuid

from flask import Flask, g, request

logger = logging.getLogger(__name__)

SLOW_THRESHOLD_MS = 1000
SLOW_AI_THRESHOLD_MS = 30000

# Final path segments (or segment before an id) of routes that call the LLM
_AI_ACTIONS = frozenset({"analyze", "refine", "generate", "regenerate", "extract", "suggest"})

# Route parameters worth carrying into the log line
_SCOPE_ARGS = ("idea_id", "document_id", "diagram_id", "feature_id", "task_id")


def is_ai_request(path: str) -> bool:
    return any(segment in _AI_ACTIONS for segment in path.strip("/").split("/"))


def _slow_threshold(path: str) -> int:
    return SLOW_AI_THRESHOLD_MS if is_ai_request(path) else SLOW_THRESHOLD_MS


def _request_scope() -> dict:
    view_args = request.view_args or {}
    return {k: view_args[k] for k in _SCOPE_ARGS if k in view_args}


def init_request_timing(app: Flask):
    """Register before/after hooks for request timing."""

    @app.before_request
    def _start_timer():
        g.request_start = time.perf_counter()
        g.request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]

    @app.after_request
    def _log_request(response):
        start = getattr(g, "request_start", None)
        if start is None:
            return response

        duration_ms = (time.perf_counter() - start) * 1000
        response.headers["X-Request-Duration-Ms"] = f"{duration_ms:.1f}"
        response.headers["X-Request-ID"] = g.request_id

        if request.path.startswith("/api/v1/health"):
            return response

        extra = {
            "method": request.method,
            "path": request.path,
            "status": response.status_code,
            "duration_ms": duration_ms,
            "remote_addr": request.remote_addr,
            **_request_scope(),
        }
        args = (request.method, request.path, response.status_code, duration_ms)
        if duration_ms > _slow_threshold(request.path):
            logger.warning("Slow request: %s %s %d (%.0fms)", *args, extra=extra)
        elif response.status_code >= 500:
            logger.error("Server error: %s %s %d (%.0fms)", *args, extra=extra)
        else:
            logger.debug("Request: %s %s %d (%.0fms)", *args, extra=extra)

        return response
