"""
PARJIS configuration.

Selected by ``APP_ENV`` (development | testing | production) through
``get_config``.  Every setting can be overridden from the environment:

    SECRET_KEY, DATABASE_URL, TEST_DATABASE_URL, CORS_ORIGINS, REDIS_URL,
    RATELIMIT_ENABLED, WORKFLOW_RATE_LIMIT, SLOW_REQUEST_MS,
    LOG_LEVEL / LOG_FORMAT (read by middleware.logging_config)
"""

import os
import secrets

basedir = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))

_SQLITE_DEV = f"sqlite:///{os.path.join(basedir, 'instance', 'parjis_dev.db')}"
_SQLITE_TEST = "sqlite:///:memory:"

# Regenerated per process: dev sessions do not survive a restart
_DEV_SECRET = secrets.token_hex(32)

_POOL_OPTIONS = {
    "pool_pre_ping": True,
    "pool_recycle": 300,
}


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _database_url(default=None):
    # SQLAlchemy 2 only accepts the postgresql:// scheme
    raw = os.getenv("DATABASE_URL", "")
    if not raw:
        return default
    return raw.replace("postgres://", "postgresql://", 1)


class Config:
    """Settings shared by every environment."""

    SECRET_KEY = os.getenv("SECRET_KEY", _DEV_SECRET)
    DEBUG = False
    TESTING = False

    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = dict(_POOL_OPTIONS)

    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")

    # Flask-Limiter keeps its counters here; point at Redis when running several workers
    REDIS_URL = os.getenv("REDIS_URL", "memory://")
    RATELIMIT_STORAGE_URI = REDIS_URL
    RATELIMIT_ENABLED = _env_bool("RATELIMIT_ENABLED", True)
    WORKFLOW_RATE_LIMIT = os.getenv("WORKFLOW_RATE_LIMIT", "60/minute")

    SLOW_REQUEST_MS = int(os.getenv("SLOW_REQUEST_MS", "1000"))
    MAX_CONTENT_LENGTH = 1024 * 1024


class DevelopmentConfig(Config):
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = _database_url(_SQLITE_DEV)


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", _SQLITE_TEST)
    # pool arguments are rejected by the in-memory SQLite engine
    SQLALCHEMY_ENGINE_OPTIONS = {}
    RATELIMIT_ENABLED = False


class ProductionConfig(Config):
    """Production: PostgreSQL, explicit CORS origins, hard startup checks."""

    SQLALCHEMY_DATABASE_URI = _database_url()
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "")

    SQLALCHEMY_ENGINE_OPTIONS = {
        **_POOL_OPTIONS,
        "pool_size": 5,
        "max_overflow": 10,
        "pool_timeout": 20,
        "connect_args": {"options": "-c statement_timeout=30000"},
    }

    def __init__(self):
        if not self.SQLALCHEMY_DATABASE_URI:
            raise RuntimeError("DATABASE_URL environment variable is required in production")
        if not os.getenv("SECRET_KEY"):
            raise RuntimeError("SECRET_KEY environment variable must be set in production")


config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "default": DevelopmentConfig,
}


def get_config(name: str) -> Config:
    """Instantiate the config class for ``name`` (runs its startup checks)."""
    try:
        return config[name]()
    except KeyError:
        raise ValueError(
            f"Unknown APP_ENV {name!r}; expected one of {sorted(config)}"
        ) from None
