"""structlog setup shared by the API process and scripts.

One event per line: JSON in production, colored console output when
``debug`` is on. Stdlib loggers (uvicorn, SQLAlchemy) go through the same
formatter, and every entry carries the request correlation id when there is
one.
"""

import logging.config

import structlog
from asgi_correlation_id.context import correlation_id

SERVICE_NAME = "tutordesk-backend"

# Chatty third-party loggers capped regardless of the root level
QUIET_LOGGERS = {
    "uvicorn.access": "WARNING",
    "sqlalchemy.engine": "WARNING",
    "aiosqlite": "WARNING",
}


def add_correlation_id(logger, method, event_dict):
    cid = correlation_id.get(None)
    if cid:
        event_dict["correlation_id"] = cid
    return event_dict


def add_service(logger, method, event_dict):
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def _pre_chain() -> list:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_service,
        add_correlation_id,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]


def configure_structlog(log_level: str = "INFO", json_logs: bool = True) -> None:
    """Configure structlog and route stdlib logging through it.

    Must run before other tutordesk modules log anything: structlog caches
    the processor chain on first use.

    Args:
        log_level: Root level name ("DEBUG", "INFO", ...)
        json_logs: JSON lines when True, console renderer otherwise
    """
    pre_chain = _pre_chain()
    if json_logs:
        final = [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        final = [structlog.dev.ConsoleRenderer()]

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "structlog": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "processors": [structlog.stdlib.ProcessorFormatter.remove_processors_meta, *final],
                    "foreign_pre_chain": pre_chain,
                },
            },
            "handlers": {
                "stdout": {
                    "class": "logging.StreamHandler",
                    "formatter": "structlog",
                    "stream": "ext://sys.stdout",
                },
            },
            "root": {"handlers": ["stdout"], "level": log_level},
            "loggers": {name: {"level": level} for name, level in QUIET_LOGGERS.items()},
        }
    )

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
