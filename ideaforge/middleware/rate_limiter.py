"""
Per-IP limits on the routes that spend LLM tokens.

The shared Limiter is created in ideaforge/__init__.py without default
limits, so CRUD and version routes stay unlimited. ``init_rate_limits``
runs after the blueprints are registered and wraps each generating view.
"""

import logging

logger = logging.getLogger(__name__)

# blueprint.view names of routes that make at least one LLM call
AI_ENDPOINTS = (
    "idea.analyze_idea",
    "idea.refine_idea",
    "document.generate_documents",
    "document.regenerate_document",
    "diagram.generate_diagrams",
    "diagram.regenerate_diagram",
    "feature.extract_features",
    "task.suggest_tasks",
)


def init_rate_limits(app, limiter):
    if app.config.get("TESTING"):
        logger.debug("Rate limits skipped under TESTING")
        return

    ai_limit = app.config["AI_RATE_LIMIT"]
    wrapped = []
    for endpoint in AI_ENDPOINTS:
        view = app.view_functions.get(endpoint)
        if view is None:
            logger.warning("Rate limit target %s is not registered", endpoint)
            continue
        app.view_functions[endpoint] = limiter.limit(ai_limit)(view)
        wrapped.append(endpoint)

    if "health" in app.blueprints:
        limiter.exempt(app.blueprints["health"])

    logger.info("AI rate limit %s applied to %d endpoints", ai_limit, len(wrapped))
