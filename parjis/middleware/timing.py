"""
Request timing middleware.

Every response carries ``X-Request-ID`` (echoed from the client or freshly
generated) and ``X-Request-Duration-Ms``.  Each request is logged once with
its workflow scope (project / review / user ids taken from the URL):

    duration > SLOW_REQUEST_MS   WARNING
    status >= 500                ERROR
    otherwise                    DEBUG
"""

import logging
import time
import uuid

from flask import Flask, current_app, g, request

logger = logging.getLogger(__name__)

# Polled by load balancers; never logged
_QUIET_PATHS = frozenset({"/api/v1/health"})

DEFAULT_SLOW_REQUEST_MS = 1000

_SCOPE_ARGS = ("project_id", "review_id", "user_id")


def _scope() -> dict:
    view_args = request.view_args or {}
    return {key: view_args[key] for key in _SCOPE_ARGS if key in view_args}


def _level_for(status: int, duration_ms: float) -> int:
    if duration_ms > current_app.config.get("SLOW_REQUEST_MS", DEFAULT_SLOW_REQUEST_MS):
        return logging.WARNING
    if status >= 500:
        return logging.ERROR
    return logging.DEBUG


def init_request_timing(app: Flask):
    """Register the before/after request hooks on ``app``."""

    @app.before_request
    def _start_timer():
        g.request_start = time.perf_counter()
        g.request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]

    @app.after_request
    def _finish_timer(response):
        started = g.pop("request_start", None)
        if started is None:
            return response

        duration_ms = (time.perf_counter() - started) * 1000
        response.headers["X-Request-ID"] = g.request_id
        response.headers["X-Request-Duration-Ms"] = f"{duration_ms:.1f}"

        if request.path in _QUIET_PATHS:
            return response

        level = _level_for(response.status_code, duration_ms)
        logger.log(
            level,
            "%s %s %d (%.0fms)%s",
            request.method, request.path, response.status_code, duration_ms,
            " slow" if level == logging.WARNING else "",
            extra={
                "method": request.method,
                "path": request.path,
                "status": response.status_code,
                "duration_ms": duration_ms,
                "remote_addr": request.remote_addr,
                "request_id": g.request_id,
                **_scope(),
            },
        )
        return response
