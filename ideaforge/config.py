"""
IdeaForge
Configuration classes for the app factory.

``create_app`` picks one by name (``APP_ENV``, default "development").
Every value can be overridden from the environment; the testing config
pins the ones the test suite depends on.
"""

import os
import secrets

basedir = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))


def _db_url(raw: str) -> str:
    # SQLAlchemy 2.x only accepts the postgresql:// scheme
    return raw.replace("postgres://", "postgresql://", 1)


def _env_db(default=None):
    raw = os.getenv("DATABASE_URL", "")
    return _db_url(raw) if raw else default


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY") or secrets.token_hex(32)
    DEBUG = False
    TESTING = False

    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True, "pool_recycle": 300}

    # Idea text, documents and diagrams comfortably fit in 2 MB of JSON
    MAX_CONTENT_LENGTH = 2 * 1024 * 1024
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")

    # Read by Flask-Limiter directly
    RATELIMIT_STORAGE_URI = os.getenv("REDIS_URL", "memory://")
    AI_RATE_LIMIT = os.getenv("AI_RATE_LIMIT", "10/minute")

    # LLM gateway; an empty provider means "detect from API keys"
    LLM_PROVIDER = os.getenv("LLM_PROVIDER", "")
    LLM_MODEL = os.getenv("LLM_MODEL", "claude-sonnet-4-5")
    LLM_MAX_ATTEMPTS = int(os.getenv("LLM_MAX_ATTEMPTS", "2"))
    LLM_RETRY_DELAY_SECONDS = float(os.getenv("LLM_RETRY_DELAY_SECONDS", "1.0"))
    PROMPTS_DIR = os.getenv("PROMPTS_DIR", os.path.join(basedir, "prompts"))

    API_AUTH_ENABLED = os.getenv("API_AUTH_ENABLED", "true")


class DevelopmentConfig(Config):
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = _env_db(
        f"sqlite:///{os.path.join(basedir, 'instance', 'ideaforge_dev.db')}"
    )
    API_AUTH_ENABLED = os.getenv("API_AUTH_ENABLED", "false")


class TestingConfig(Config):
    """In-memory SQLite, no auth, no rate limits, local LLM stub without retry delay."""

    TESTING = True
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    SQLALCHEMY_ENGINE_OPTIONS = {}
    API_AUTH_ENABLED = "false"
    RATELIMIT_ENABLED = False
    LLM_PROVIDER = "local"
    LLM_RETRY_DELAY_SECONDS = 0.0


class ProductionConfig(Config):
    SQLALCHEMY_DATABASE_URI = _env_db()
    # No wildcard default: origins must be listed explicitly
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "")
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "pool_recycle": 300,
        "pool_size": int(os.getenv("DB_POOL_SIZE", "5")),
        "max_overflow": 10,
        "pool_timeout": 20,
    }

    def __init__(self):
        missing = [name for name in ("DATABASE_URL", "SECRET_KEY") if not os.getenv(name)]
        if missing:
            raise RuntimeError(f"Production requires {', '.join(missing)} to be set")


config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "default": DevelopmentConfig,
}
