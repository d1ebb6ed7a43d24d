"""
Per-request id and duration.

Every response carries ``X-Request-ID`` (the caller's value when one was
sent) and ``X-Request-Duration-Ms``. API calls get one log line each; the
level rises to WARNING for slow calls and ERROR for 5xx answers.
"""

import logging
import time
import uuid

from flask import Flask, g, request

logger = logging.getLogger(__name__)

SLOW_REQUEST_MS = 1000

# Probes and static assets are polled constantly
_QUIET_PREFIXES = ("/api/v1/health", "/static", "/storage")


def _log_level(status: int, elapsed_ms: float) -> int:
    if status >= 500:
        return logging.ERROR
    if elapsed_ms > SLOW_REQUEST_MS:
        return logging.WARNING
    return logging.DEBUG


def init_request_timing(app: Flask):
    @app.before_request
    def _stamp_request():
        g.request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]
        g.request_started = time.perf_counter()

    @app.after_request
    def _report_duration(response):
        started = g.get("request_started")
        if started is None:
            return response

        elapsed_ms = (time.perf_counter() - started) * 1000
        response.headers["X-Request-ID"] = g.request_id
        response.headers["X-Request-Duration-Ms"] = f"{elapsed_ms:.1f}"

        if request.path.startswith(_QUIET_PREFIXES):
            return response

        view_args = request.view_args or {}
        logger.log(
            _log_level(response.status_code, elapsed_ms),
            "%s %s -> %d in %.0fms",
            request.method, request.path, response.status_code, elapsed_ms,
            extra={
                "method": request.method,
                "path": request.path,
                "status": response.status_code,
                "duration_ms": round(elapsed_ms, 1),
                "project_id": view_args.get("project_id"),
            },
        )
        return response
