"""
Health check blueprint.

Endpoints:
    GET /api/v1/health          app name
    GET /api/v1/health/ready    200 for load balancers
    GET /api/v1/health/live     database round trip, LLM gateway and prompt registry state

None of these call the LLM; the gateway check reports configuration only.
"""

import logging
import time

from flask import Blueprint, current_app, jsonify

from ideaforge.models import db

logger = logging.getLogger(__name__)

APP_NAME = "IdeaForge"

health_bp = Blueprint("health", __name__, url_prefix="/api/v1/health")


def _check_database() -> dict:
    try:
        t0 = time.perf_counter()
        db.session.execute(db.text("SELECT 1"))
    except Exception as exc:
        logger.error("Health check: database unreachable: %s", exc)
        return {"status": "error", "detail": str(exc)}
    return {"status": "ok", "latency_ms": round((time.perf_counter() - t0) * 1000, 1)}


def _check_llm() -> dict:
    gateway = current_app.extensions.get("llm_gateway")
    if gateway is None:
        return {"status": "not_configured"}
    provider = gateway.provider_name
    # the local stub answers, but nothing real is generated
    return {
        "status": "degraded" if provider == "local" else "ok",
        "provider": provider,
        "model": gateway.model,
        "max_attempts": current_app.config.get("LLM_MAX_ATTEMPTS"),
    }


def _check_prompts() -> dict:
    registry = current_app.extensions.get("prompt_registry")
    if registry is None:
        return {"status": "not_configured"}
    return {"status": "ok", "templates": len(registry.list_templates())}


@health_bp.route("", methods=["GET"])
def health():
    return jsonify({"status": "ok", "app": APP_NAME}), 200


@health_bp.route("/ready", methods=["GET"])
def ready():
    return jsonify({"status": "ok"}), 200


@health_bp.route("/live", methods=["GET"])
def live():
    checks = {
        "database": _check_database(),
        "llm": _check_llm(),
        "prompts": _check_prompts(),
        "app": {"name": APP_NAME, "debug": current_app.debug, "testing": current_app.testing},
    }
    # Only the database is fatal; a stubbed LLM still serves reads and edits
    healthy = checks["database"]["status"] == "ok"
    return jsonify({
        "status": "healthy" if healthy else "degraded",
        "checks": checks,
    }), 200 if healthy else 503
