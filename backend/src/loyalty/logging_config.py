"""Logging configuration.

Every log line carries the request context bound by ``bind_request`` (request
id, method, path) while a request is being served.
"""

import logging
import sys
import uuid

import structlog

from loyalty.settings import Settings, settings as default_settings

REQUEST_ID_HEADER = "X-Request-ID"

# Processors shared by the console and JSON renderers
SHARED_PROCESSORS = [
    structlog.contextvars.merge_contextvars,
    structlog.processors.add_log_level,
]


def _renderer(log_format: str) -> list:
    if log_format == "json":
        return [
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    return [
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
        structlog.dev.ConsoleRenderer(),
    ]


def configure_logging(settings: Settings | None = None) -> None:
    """Configure structlog and route library logging to stdout.

    Args:
        settings: Source of level, format and SQL echo (defaults to env settings)
    """
    settings = settings or default_settings
    level = logging.getLevelName(settings.log_level)

    structlog.configure(
        processors=SHARED_PROCESSORS + _renderer(settings.log_format),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )

    # uvicorn and SQLAlchemy log through the standard library
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.database_echo else logging.WARNING
    )


def bind_request(method: str, path: str, request_id: str | None = None) -> str:
    """Attach request details to every log line until ``clear_request``.

    Args:
        method: HTTP method
        path: Request path
        request_id: Caller-supplied id, a new one is generated when missing

    Returns:
        The request id in effect
    """
    request_id = request_id or uuid.uuid4().hex
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id, method=method, path=path)
    return request_id


def clear_request() -> None:
    structlog.contextvars.clear_contextvars()


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a logger instance."""
    return structlog.get_logger(name)
