"""
Logging setup.

One stderr handler on the root logger:
  - production: one JSON object per line
  - development / testing: short coloured lines
LOG_LEVEL overrides the level (INFO in production, DEBUG otherwise).
Records emitted while a request is active carry ``request_id`` and
``user_id``; services add ``project_id`` / ``object_path`` via ``extra=``.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone

from flask import g, has_request_context

# Attributes copied from ``extra=`` into JSON output when present
CONTEXT_FIELDS = (
    "request_id",
    "user_id",
    "project_id",
    "object_path",
    "method",
    "path",
    "status",
    "duration_ms",
    "remote_addr",
)

_QUIET_LOGGERS = ("werkzeug", "sqlalchemy.engine", "alembic", "urllib3")


class RequestContextFilter(logging.Filter):
    """Stamp request id and signed-in user onto records logged inside a request."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not has_request_context():
            return True
        if getattr(record, "request_id", None) is None:
            record.request_id = g.get("request_id")
        if getattr(record, "user_id", None) is None:
            record.user_id = g.get("jwt_user_id")
        return True


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        doc = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "where": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        doc.update({
            name: getattr(record, name)
            for name in CONTEXT_FIELDS
            if getattr(record, name, None) is not None
        })
        if record.exc_info:
            doc["exception"] = self.formatException(record.exc_info)
        return json.dumps(doc, default=str, ensure_ascii=False)


class ReadableFormatter(logging.Formatter):
    """``12:01:02 INFO  casebook.x (req-id): message [12ms]``"""

    _LEVEL_COLOURS = {
        logging.DEBUG: "36",
        logging.INFO: "32",
        logging.WARNING: "33",
        logging.ERROR: "31",
        logging.CRITICAL: "35",
    }

    def format(self, record: logging.LogRecord) -> str:
        colour = self._LEVEL_COLOURS.get(record.levelno, "0")
        stamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        line = f"\033[{colour}m{stamp} {record.levelname:<7}\033[0m {record.name}"

        request_id = getattr(record, "request_id", None)
        if request_id:
            line += f" ({request_id})"
        line += f": {record.getMessage()}"

        duration = getattr(record, "duration_ms", None)
        if duration is not None:
            line += f" [{duration:.0f}ms]"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(app):
    """Install the root handler for ``app``'s environment.

    Called first in ``create_app``; replaces existing root handlers so that
    building several apps (tests) does not duplicate output.
    """
    testing = app.config.get("TESTING", False)
    production = not testing and not app.config.get("DEBUG", False)

    default_level = "INFO" if production else "DEBUG"
    level = logging.getLevelName(os.getenv("LOG_LEVEL", default_level).upper())
    if not isinstance(level, int):
        level = logging.INFO

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if production else ReadableFormatter())
    handler.addFilter(RequestContextFilter())
    handler.setLevel(level)

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    app.logger.setLevel(level)

    if not testing:
        app.logger.info("Logging ready (level=%s, %s)", logging.getLevelName(level),
                        "json" if production else "readable")
