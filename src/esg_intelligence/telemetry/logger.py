"""Structured logging configuration with request correlation IDs."""

import logging
import sys
from contextvars import ContextVar
from typing import Optional
from uuid import uuid4

import orjson
import structlog
from structlog.processors import CallsiteParameter

# Context variables for request tracking
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def add_context_vars(logger, method_name, event_dict):
    """Add context variables to log events."""
    if request_id := request_id_var.get():
        event_dict["request_id"] = request_id
    return event_dict


def _orjson_dumps(obj, default=None) -> str:
    return orjson.dumps(obj, default=default).decode()


def setup_logging(level: str = "INFO", format: str = "json") -> None:
    """Configure structlog and route stdlib logging to stdout."""
    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_context_vars,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.CallsiteParameterAdder(
            parameters=[
                CallsiteParameter.FUNC_NAME,
                CallsiteParameter.LINENO,
            ]
        ),
    ]

    if format == "json":
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer(serializer=_orjson_dumps))
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
        force=True,
    )

    # Suppress noisy loggers
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


class RequestContext:
    """Context manager for request-scoped logging."""

    def __init__(self, request_id: Optional[str] = None):
        self.request_id = request_id or str(uuid4())
        self._token = None

    def __enter__(self):
        self._token = request_id_var.set(self.request_id)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        request_id_var.reset(self._token)
        return False
