"""
IdeaForge
Flask application factory.

Usage:
    from ideaforge import create_app
    app = create_app()           # APP_ENV, else "development"
    app = create_app("testing")
"""

import logging
import os

from flask import Flask, abort, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from sqlalchemy import engine as _sa_engine
from sqlalchemy import event as _sa_event

from ideaforge.auth import init_auth
from ideaforge.config import config
from ideaforge.middleware.logging_config import configure_logging
from ideaforge.middleware.rate_limiter import init_rate_limits
from ideaforge.middleware.timing import init_request_timing
from ideaforge.models import db
from ideaforge.utils.errors import register_error_handlers

logger = logging.getLogger(__name__)

migrate = Migrate()
# Limits are attached per view in init_rate_limits; storage comes from RATELIMIT_STORAGE_URI
limiter = Limiter(key_func=get_remote_address, default_limits=[])


@_sa_event.listens_for(_sa_engine.Engine, "connect")
def _enable_sqlite_fk(dbapi_conn, connection_record):
    # version, link and dependency rows rely on ON DELETE CASCADE
    if "sqlite" in type(dbapi_conn).__module__:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def _init_cors(app):
    origins = app.config.get("CORS_ORIGINS", "*")
    if origins and origins != "*":
        CORS(app, origins=[o.strip() for o in origins.split(",") if o.strip()])
    else:
        CORS(app)


def _register_blueprints(app):
    from ideaforge.blueprints.diagram_bp import diagram_bp
    from ideaforge.blueprints.document_bp import document_bp
    from ideaforge.blueprints.feature_bp import feature_bp
    from ideaforge.blueprints.health_bp import health_bp
    from ideaforge.blueprints.idea_bp import idea_bp
    from ideaforge.blueprints.task_bp import task_bp

    for bp in (health_bp, idea_bp, document_bp, diagram_bp, feature_bp, task_bp):
        app.register_blueprint(bp)


def create_app(config_name=None):
    """Build the app for ``config_name`` ("development", "testing" or "production")."""
    config_name = config_name or os.getenv("APP_ENV", "development")

    app = Flask(__name__, instance_relative_config=True, static_folder=None)
    app.config.from_object(config[config_name]())

    # before anything logs
    configure_logging(app)

    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)
    _init_cors(app)

    # auth runs first so bad Content-Type and missing keys fail before timing starts
    init_auth(app)
    init_request_timing(app)

    @app.before_request
    def _guard_body_size():
        max_len = app.config.get("MAX_CONTENT_LENGTH")
        if max_len and request.content_length and request.content_length > max_len:
            abort(413, description="Request body too large")

    # Register every table on db.metadata before create_all / Alembic
    from ideaforge.models import diagram, document, feature, idea, task  # noqa: F401

    from ideaforge.ai import init_ai
    init_ai(app)

    with app.app_context():
        db.create_all()

    _register_blueprints(app)
    register_error_handlers(app)
    init_rate_limits(app, limiter)

    logger.debug("IdeaForge app created (config=%s)", config_name)
    return app
