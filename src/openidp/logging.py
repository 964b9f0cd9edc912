"""ABOUTME: structlog configuration on top of stdlib logging for the account pages and CLI
ABOUTME: JSON lines in deployment, readable console output in development, request-scoped context"""

import logging.config
from typing import Any

import structlog

from openidp import config

_timestamper = structlog.processors.TimeStamper(fmt="iso")

# applied to records from stdlib loggers (werkzeug, sqlalchemy) before rendering
_foreign_pre_chain = [structlog.stdlib.add_log_level, _timestamper]


def _formatter(renderer: Any) -> dict[str, Any]:
    return {
        "()": structlog.stdlib.ProcessorFormatter,
        "processor": renderer,
        "foreign_pre_chain": _foreign_pre_chain,
    }


def build_logging_config(development: bool) -> dict[str, Any]:
    """dictConfig for the root logger. Development gets the console renderer at DEBUG."""
    handler_name = "dev_console" if development else "default"
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "console": _formatter(structlog.dev.ConsoleRenderer(colors=False)),
            "json": _formatter(structlog.processors.JSONRenderer()),
        },
        "handlers": {
            "default": {"level": "INFO", "class": "logging.StreamHandler", "formatter": "json"},
            "dev_console": {"level": "DEBUG", "class": "logging.StreamHandler", "formatter": "console"},
        },
        "loggers": {
            "": {"handlers": [handler_name], "level": "INFO", "propagate": True},
        },
    }


logging.config.dictConfig(build_logging_config(config.is_development()))

structlog.configure(
    processors=[
        # client_id and path bound per request by bind_request_context
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        _timestamper,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ],
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
    cache_logger_on_first_use=True,
)


def logging_setup(log_level: int = logging.INFO) -> None:
    """Apply LOG_LEVEL to the root logger and both handlers. LOG_ALL_REQUESTS turns on request and SQL logging."""
    for handler_name in ("default", "dev_console"):
        handler = logging.getHandlerByName(handler_name)
        if handler is not None:
            handler.setLevel(log_level)
    logging.getLogger().setLevel(log_level)

    if config.should_log_all_requests():
        logging.getLogger().setLevel(logging.DEBUG)
        logging.getLogger("werkzeug").setLevel(logging.DEBUG)
        logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)


def bind_request_context(path: str, client_id: str | None) -> None:
    """Start a fresh log context for a request, so every event names the page and the client."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(path=path, client_id=client_id or "-")
