"""
Structured Logging

structlog configuration for the Flask application factory. Log entries are
key/value events; request-scoped values (the request id) are carried through
``structlog.contextvars`` so every entry written while handling a request is
tagged with it.

Output is human-readable in debug mode and JSON lines otherwise.
"""

import logging
import sys
import uuid

import structlog
from flask import Flask, g, request


def configure_structlog(level: str = 'INFO', json_output: bool = True) -> None:
    """Configure structlog processors and output once per process."""
    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_output:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level.upper())
        ),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def _bind_request_context() -> None:
    """Set up logging context for each Flask request."""
    g.request_id = request.headers.get('X-Request-ID') or str(uuid.uuid4())
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(
        request_id=g.request_id,
        method=request.method,
        path=request.path,
    )


def _attach_request_id(response):
    request_id = getattr(g, 'request_id', None)
    if request_id:
        response.headers['X-Request-ID'] = request_id
    return response


def _clear_request_context(exception=None) -> None:
    structlog.contextvars.clear_contextvars()


def init_logging(app: Flask) -> None:
    """
    Initialize structured logging for the application.

    Reads ``LOG_LEVEL`` and ``LOG_JSON`` from the app config and registers the
    request hooks that bind and clear the per-request context.

    Args:
        app: Flask application instance
    """
    configure_structlog(
        level=app.config.get('LOG_LEVEL', 'INFO'),
        json_output=app.config.get('LOG_JSON', not app.debug),
    )

    app.before_request(_bind_request_context)
    app.after_request(_attach_request_id)
    app.teardown_request(_clear_request_context)

    structlog.get_logger(__name__).info(
        "logging_initialized",
        level=app.config.get('LOG_LEVEL', 'INFO'),
        python_version=f"{sys.version_info.major}.{sys.version_info.minor}",
    )
