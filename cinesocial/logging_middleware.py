"""
Flask middleware for structured request logging.

Every request gets a request_id (taken from ``X-Request-ID`` when the caller
sends one) that is bound into the structlog context and echoed back on the
response. Completion lines carry the acting user's id once a handler has
resolved it.
"""

import time

from flask import Flask, request, g

from cinesocial.logging_config import get_logger
from cinesocial.logging_context import set_request_id, get_user_id, clear_context

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# Probe endpoints hit by load balancers and scrapers
QUIET_PATHS = frozenset({"/health", "/api/metrics"})


def _elapsed_ms():
    started = g.get("request_start_time")
    if started is None:
        return None
    return round((time.time() - started) * 1000, 2)


def init_logging_middleware(app: Flask):
    """Register request logging hooks on ``app``."""

    @app.before_request
    def bind_request_context():
        g.request_id = set_request_id(request.headers.get(REQUEST_ID_HEADER) or None)
        g.request_start_time = time.time()

        if request.path not in QUIET_PATHS:
            logger.info("request_started", method=request.method, path=request.path)

    @app.after_request
    def log_request_completed(response):
        if "request_id" in g:
            response.headers[REQUEST_ID_HEADER] = g.request_id

        if request.path in QUIET_PATHS:
            return response

        log = logger.warning if response.status_code >= 500 else logger.info
        log(
            "request_completed",
            method=request.method,
            path=request.path,
            endpoint=request.endpoint,
            status_code=response.status_code,
            duration_ms=_elapsed_ms(),
            user_id=get_user_id(),
        )
        return response

    @app.teardown_request
    def release_request_context(exception=None):
        if exception is not None:
            logger.error(
                "request_failed",
                method=request.method,
                path=request.path,
                error=str(exception),
                exc_info=exception,
            )
        clear_context()
