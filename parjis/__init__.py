"""
PARJIS — Project Approval & Review.

    from parjis import create_app
    app = create_app()            # APP_ENV, else "development"
    app = create_app("testing")
"""

import logging
import os

from flask import Flask, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from sqlalchemy import engine as _sa_engine, event as _sa_event

from parjis.blueprints import register_error_handlers
from parjis.config import get_config
from parjis.middleware.logging_config import configure_logging
from parjis.middleware.rate_limiter import init_rate_limits
from parjis.middleware.timing import init_request_timing
from parjis.models import db
from parjis.utils.errors import E, api_error

logger = logging.getLogger(__name__)

# Limits are attached per blueprint in init_rate_limits
limiter = Limiter(key_func=get_remote_address, default_limits=[])


@_sa_event.listens_for(_sa_engine.Engine, "connect")
def _enable_sqlite_fk(dbapi_conn, connection_record):
    """SQLite ships with foreign keys off; switch them on per connection."""
    if "sqlite" in type(dbapi_conn).__module__:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def _is_sqlite_file(engine) -> bool:
    return engine.dialect.name == "sqlite" and engine.url.database not in (None, "", ":memory:")


def _begin_immediate_on_sqlite(engine):
    """Take SQLite's write lock when a transaction begins.

    SQLite ignores FOR UPDATE and pysqlite defers BEGIN to the first write, so
    two units of work could both read the review set before either writes.
    BEGIN IMMEDIATE serialises them from their first statement.
    """

    @_sa_event.listens_for(engine, "connect")
    def _driver_autocommit(dbapi_conn, connection_record):
        # let the "begin" listener below issue BEGIN instead of pysqlite
        dbapi_conn.isolation_level = None

    @_sa_event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def _init_extensions(app):
    db.init_app(app)
    limiter.init_app(app)

    with app.app_context():
        engine = db.engine
    # An in-memory database lives on one pooled connection and needs no write lock.
    if _is_sqlite_file(engine):
        _begin_immediate_on_sqlite(engine)

    origins = app.config.get("CORS_ORIGINS", "*")
    if origins and origins != "*":
        CORS(app, origins=[o.strip() for o in origins.split(",") if o.strip()])
    else:
        CORS(app)


def _init_schema(app):
    # Importing the model modules registers their tables on db.metadata.
    from parjis.models import comment, history, notification, project, review, user  # noqa: F401

    uri = app.config["SQLALCHEMY_DATABASE_URI"]
    if uri.startswith("sqlite:///") and ":memory:" not in uri:
        os.makedirs(app.instance_path, exist_ok=True)
    with app.app_context():
        db.create_all()
    logger.debug("Schema ready on %s", uri.split("@")[-1])


def _register_blueprints(app):
    from parjis.blueprints.comment_bp import comment_bp
    from parjis.blueprints.dashboard_bp import dashboard_bp
    from parjis.blueprints.health_bp import health_bp
    from parjis.blueprints.notification_bp import notification_bp
    from parjis.blueprints.project_bp import project_bp
    from parjis.blueprints.review_bp import review_bp
    from parjis.blueprints.user_bp import user_bp

    for bp in (user_bp, project_bp, review_bp, comment_bp, notification_bp, dashboard_bp, health_bp):
        app.register_blueprint(bp)


def _register_http_errors(app):
    """JSON bodies for errors Flask raises before a view runs."""

    @app.errorhandler(404)
    def _not_found(e):
        return api_error(E.NOT_FOUND, "Not found", details={"path": request.path})

    @app.errorhandler(405)
    def _method_not_allowed(e):
        return api_error(E.VALIDATION_INVALID, "Method not allowed", status=405)

    @app.errorhandler(429)
    def _rate_limited(e):
        return api_error(
            E.VALIDATION_INVALID, "Too many requests", status=429,
            details={"limit": e.description},
        )

    @app.errorhandler(500)
    def _server_error(e):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        db.session.rollback()
        return api_error(E.INTERNAL, "Internal server error")


def create_app(config_name=None):
    """Build a configured Flask application.

    Args:
        config_name: "development", "testing" or "production".
                     Defaults to the APP_ENV env var, then "development".
    """
    config_name = config_name or os.getenv("APP_ENV", "development")

    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(get_config(config_name))

    configure_logging(app)
    _init_extensions(app)
    init_request_timing(app)
    _init_schema(app)

    _register_blueprints(app)
    register_error_handlers(app)
    _register_http_errors(app)
    init_rate_limits(app, limiter)

    logger.info("PARJIS app created (env=%s)", config_name)
    return app
