"""
Structured logging for the VPN server API.

Everything logs through structlog on top of stdlib logging and renders one
JSON object per line. Request handlers bind the endpoint and the API consumer
into the context so every line logged while serving a request carries them.
"""

import logging
import sys
import time
from functools import wraps
from typing import Any, Optional
import structlog

SERVICE_NAME = "vpn-server-api"

def _add_service_name(logger: Any, method_name: str, event_dict: dict) -> dict:
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict

def setup_structured_logging(log_level: Optional[str] = None) -> None:
    """Configure stdlib logging and structlog, level from LOG_LEVEL unless given."""
    if log_level is None:
        from config.app_config import get_config
        log_level = get_config().monitoring.log_level

    level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    logging.getLogger().setLevel(level)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            _add_service_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)

def bind_request_context(**values: Any) -> None:
    """Attach values (endpoint, consumer) to every log line of the current request."""
    structlog.contextvars.bind_contextvars(**values)

def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()

class LoggerMixin:
    """Gives a class a ``logger`` named after it."""

    @property
    def logger(self) -> structlog.BoundLogger:
        return get_logger(self.__class__.__name__)

def log_function_call(func):
    """Log entry, completion and failure of an operation such as a housekeeping run."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        logger = get_logger(func.__module__)
        logger.info(
            "Operation started",
            operation=func.__qualname__,
            args=[repr(a) for a in args[1:]],  # Skip self
            kwargs={k: repr(v) for k, v in kwargs.items()}
        )
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            logger.error(
                "Operation failed",
                operation=func.__qualname__,
                error=str(e),
                error_type=type(e).__name__
            )
            raise
        logger.info("Operation completed", operation=func.__qualname__)
        return result
    return wrapper

def log_performance(func):
    """Log how long a call took, e.g. a report that queries every daemon process."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        logger = get_logger(func.__module__)
        start_time = time.perf_counter()
        success = False
        try:
            result = func(*args, **kwargs)
            success = True
            return result
        finally:
            logger.info(
                "Operation timing",
                operation=func.__qualname__,
                duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
                success=success
            )
    return wrapper
