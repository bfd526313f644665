# utils/logging.py
"""
Logging configuration for the billing backend.

structlog renders on top of the standard library logging module, so SQLAlchemy
and uvicorn records end up in the same handlers as our own events.
"""
import logging
import os
import sys
from typing import Any

import structlog


def get_log_level() -> str:
     """Get log level based on environment."""
     env = (os.getenv("ENVIRONMENT") or os.getenv("ENV") or "development").lower()

     level_map = {
          "production": "INFO",
          "staging": "INFO",
          "development": "DEBUG",
          "test": "WARNING",
     }

     return os.getenv("LOG_LEVEL", level_map.get(env, "INFO")).upper()


def setup_stdlib_logging() -> None:
     """Configure standard library logging."""
     log_level = get_log_level()

     root_logger = logging.getLogger()
     root_logger.setLevel(log_level)
     root_logger.handlers = []

     console_handler = logging.StreamHandler(sys.stdout)
     console_handler.setLevel(log_level)
     root_logger.addHandler(console_handler)

     logging.getLogger("urllib3").setLevel(logging.WARNING)
     logging.getLogger("azure").setLevel(logging.WARNING)


def setup_structlog() -> None:
     """Configure structlog for structured logging."""
     env = os.getenv("ENVIRONMENT", "development").lower()

     processors = [
          structlog.stdlib.filter_by_level,
          structlog.stdlib.add_logger_name,
          structlog.stdlib.add_log_level,
          structlog.stdlib.PositionalArgumentsFormatter(),
          structlog.processors.TimeStamper(fmt="iso"),
          structlog.processors.StackInfoRenderer(),
          structlog.processors.format_exc_info,
          structlog.processors.UnicodeDecoder(),
          structlog.contextvars.merge_contextvars,
     ]

     if env in ["production", "staging"]:
          processors.append(structlog.processors.JSONRenderer())
     else:
          processors.append(structlog.dev.ConsoleRenderer(colors=False))

     structlog.configure(
          processors=processors,
          wrapper_class=structlog.stdlib.BoundLogger,
          logger_factory=structlog.stdlib.LoggerFactory(),
          cache_logger_on_first_use=True,
     )


def configure_logging() -> None:
     """Configure all logging for the application."""
     setup_stdlib_logging()
     setup_structlog()


def add_context(**kwargs: Any) -> None:
     """Add context variables that will be included in all subsequent log messages."""
     structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
     """Clear all context variables."""
     structlog.contextvars.clear_contextvars()
