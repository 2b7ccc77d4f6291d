"""
Platform plumbing: health check, request timing headers, error envelope,
logging formatters, configuration and rate-limit wiring.
"""

import json
import logging
from unittest.mock import MagicMock

import pytest
from flask import Flask

from parjis.config import ProductionConfig, TestingConfig, get_config
from parjis.middleware.logging_config import (
    JSONFormatter,
    ReadableFormatter,
    RequestContextFilter,
    configure_logging,
)
from parjis.middleware.rate_limiter import READ_LIMIT, init_rate_limits


def _record(msg="Project submitted", **extra):
    record = logging.LogRecord("parjis.test", logging.INFO, __file__, 10, msg, (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


# ── HTTP plumbing ────────────────────────────────────────────────────────


def test_health_ok(client):
    res = client.get("/api/v1/health")
    assert res.status_code == 200
    body = res.get_json()
    assert body["status"] == "ok"
    assert body["app"] == "PARJIS"
    assert body["checks"]["database"]["status"] == "ok"


def test_request_id_is_echoed(client):
    res = client.get("/api/v1/health", headers={"X-Request-ID": "abc123"})
    assert res.headers["X-Request-ID"] == "abc123"
    assert "X-Request-Duration-Ms" in res.headers


def test_request_id_generated_when_absent(client):
    res = client.get("/api/v1/projects")
    assert len(res.headers["X-Request-ID"]) == 12


def test_unknown_route_uses_error_envelope(client):
    res = client.get("/api/v1/nope")
    assert res.status_code == 404
    body = res.get_json()
    assert body["code"] == "ERR_NOT_FOUND"
    assert body["details"] == {"path": "/api/v1/nope"}


def test_wrong_method_is_405(client):
    assert client.delete("/api/v1/projects").status_code == 405


# ── Logging ──────────────────────────────────────────────────────────────


def test_json_formatter_includes_scope_keys():
    line = json.loads(JSONFormatter().format(_record(project_id=4, user_id=9, event_type="project_submitted")))
    assert line["message"] == "Project submitted"
    assert line["level"] == "INFO"
    assert line["project_id"] == 4
    assert line["user_id"] == 9
    assert line["event_type"] == "project_submitted"
    assert "review_id" not in line


def test_readable_formatter_shows_scope():
    text = ReadableFormatter().format(_record(project_id=4, duration_ms=12.4))
    assert "Project submitted (project_id=4) [12ms]" in text


def test_request_id_stamped_inside_request(app):
    with app.test_request_context("/api/v1/projects", headers={"X-Request-ID": "req-7"}):
        app.preprocess_request()
        record = _record()
        assert RequestContextFilter().filter(record) is True
        assert record.request_id == "req-7"


def test_request_id_left_alone_outside_request():
    record = _record()
    RequestContextFilter().filter(record)
    assert getattr(record, "request_id", None) is None


@pytest.mark.parametrize("fmt,expected", [("json", JSONFormatter), ("readable", ReadableFormatter)])
def test_log_format_override(monkeypatch, fmt, expected):
    monkeypatch.setenv("LOG_FORMAT", fmt)
    flask_app = Flask("log-format-test")
    flask_app.config["TESTING"] = True
    configure_logging(flask_app)
    assert isinstance(logging.getLogger().handlers[0].formatter, expected)


# ── Configuration ────────────────────────────────────────────────────────


def test_production_requires_database_url(monkeypatch):
    monkeypatch.setattr(ProductionConfig, "SQLALCHEMY_DATABASE_URI", None)
    with pytest.raises(RuntimeError, match="DATABASE_URL"):
        ProductionConfig()


def test_production_requires_secret_key(monkeypatch):
    monkeypatch.setattr(ProductionConfig, "SQLALCHEMY_DATABASE_URI", "postgresql://db/parjis")
    monkeypatch.delenv("SECRET_KEY", raising=False)
    with pytest.raises(RuntimeError, match="SECRET_KEY"):
        ProductionConfig()


def test_get_config_instantiates_and_rejects_unknown():
    assert isinstance(get_config("testing"), TestingConfig)
    with pytest.raises(ValueError, match="staging"):
        get_config("staging")


def test_testing_config(app):
    assert app.config["TESTING"] is True
    assert app.config["RATELIMIT_ENABLED"] is False


# ── Rate limits ──────────────────────────────────────────────────────────


def _app_with_blueprints(**config):
    from flask import Blueprint

    app = Flask("ratelimit-test")
    app.config.update(config)
    for name in ("project", "review", "comment", "user", "notification", "dashboard", "health"):
        app.register_blueprint(Blueprint(name, __name__, url_prefix=f"/{name}"))
    return app


def test_rate_limits_skipped_when_disabled():
    limiter = MagicMock()
    init_rate_limits(_app_with_blueprints(RATELIMIT_ENABLED=False), limiter)
    limiter.limit.assert_not_called()
    limiter.exempt.assert_not_called()


def test_rate_limits_per_blueprint():
    limiter = MagicMock()
    app = _app_with_blueprints(RATELIMIT_ENABLED=True, WORKFLOW_RATE_LIMIT="5/minute")
    init_rate_limits(app, limiter)

    limits = [c.args[0] for c in limiter.limit.call_args_list]
    assert limits.count("5/minute") == 3
    assert limits.count(READ_LIMIT) == 3
    limiter.exempt.assert_called_once_with(app.blueprints["health"])
