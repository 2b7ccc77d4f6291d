"""
Structured logging.

One root handler on stderr, formatter picked per environment:

    production   JSONFormatter      one JSON object per line
    otherwise    ReadableFormatter  coloured single line with workflow scope

``LOG_LEVEL`` sets the level, ``LOG_FORMAT`` (json | readable) overrides the
formatter.  Modules log with ``extra={...}`` using the keys in ``EXTRA_KEYS``;
``RequestContextFilter`` adds the current request id to every record emitted
while a request is being served.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone

from flask import g, has_request_context

EXTRA_KEYS = (
    "request_id",
    "method",
    "path",
    "status",
    "duration_ms",
    "remote_addr",
    "project_id",
    "review_id",
    "user_id",
    "event_type",
    "error_code",
)

# Shown inline by the readable formatter
SCOPE_KEYS = ("project_id", "review_id", "user_id")

QUIET_LOGGERS = ("werkzeug", "sqlalchemy.engine", "urllib3")


def _extras(record: logging.LogRecord, keys=EXTRA_KEYS) -> dict:
    return {k: getattr(record, k) for k in keys if getattr(record, k, None) is not None}


class RequestContextFilter(logging.Filter):
    """Stamp ``request_id`` from ``flask.g`` onto records that lack one."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None and has_request_context():
            record.request_id = g.get("request_id")
        return True


class JSONFormatter(logging.Formatter):
    """One JSON document per record, for log aggregation."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
            **_extras(record),
        }
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class ReadableFormatter(logging.Formatter):
    """Coloured console lines: ``HH:MM:SS LEVEL logger: message (scope) [ms]``."""

    LEVEL_COLOURS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        colour = self.LEVEL_COLOURS.get(record.levelno, "")
        stamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        line = f"{colour}{stamp} {record.levelname:<8}{self.RESET} {record.name}: {record.getMessage()}"

        scope = _extras(record, SCOPE_KEYS)
        if scope:
            line += " (" + " ".join(f"{k}={v}" for k, v in scope.items()) + ")"
        duration = getattr(record, "duration_ms", None)
        if duration is not None:
            line += f" [{duration:.0f}ms]"

        if record.exc_info and record.exc_info[0] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


def _pick_formatter(is_prod: bool) -> logging.Formatter:
    choice = os.getenv("LOG_FORMAT", "").lower()
    if choice == "json" or (choice != "readable" and is_prod):
        return JSONFormatter()
    return ReadableFormatter()


def configure_logging(app):
    """Install the root handler for ``app``.  Safe to call once per create_app()."""
    testing = app.config.get("TESTING", False)
    is_prod = not app.config.get("DEBUG", False) and not testing

    level_name = os.getenv("LOG_LEVEL", "INFO" if is_prod else "DEBUG").upper()
    level = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(_pick_formatter(is_prod))
    handler.addFilter(RequestContextFilter())
    handler.setLevel(level)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    app.logger.setLevel(level)

    if not testing:
        app.logger.info(
            "Logging configured: level=%s formatter=%s",
            level_name, type(handler.formatter).__name__,
        )
