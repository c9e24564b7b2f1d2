"""
Logging Configuration for SCR Agro Farms Admin Analytics

structlog on top of stdlib logging, so records from uvicorn, SQLAlchemy and
asyncpg share one handler and one renderer (JSON in deployments, coloured
console output locally). Every event carries the service name and
environment; request handlers add a request id through contextvars.
"""

import logging
import sys
from typing import Optional

import structlog
from structlog.processors import JSONRenderer, TimeStamper
from structlog.stdlib import ProcessorFormatter, add_log_level

from scr_agro.config.settings import get_settings

# Library loggers kept at WARNING unless the app runs at DEBUG
QUIET_LOGGERS = ("asyncpg", "sqlalchemy.engine", "sqlalchemy.pool", "redis", "faker")

UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def _service_context(service: str, environment: str):
    def add_service(logger, method_name, event_dict):
        event_dict.setdefault("service", service)
        event_dict.setdefault("env", environment)
        return event_dict

    return add_service


def configure_logging(log_level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """
    Configure structured logging for the API and the CLI tools.

    Args:
        log_level: Override of LOG_LEVEL (DEBUG, INFO, WARNING, ERROR)
        log_format: Override of LOG_FORMAT ("json" or "console")
    """
    settings = get_settings()
    level_name = (log_level or settings.monitoring.log_level).upper()
    level = getattr(logging, level_name, logging.INFO)
    fmt = (log_format or settings.monitoring.log_format).lower()

    pre_chain = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        add_log_level,
        _service_context(settings.app_name, settings.app_env),
        TimeStamper(fmt="iso", utc=True),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    structlog.configure(
        processors=pre_chain + [ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    renderer = JSONRenderer(ensure_ascii=False) if fmt == "json" else structlog.dev.ConsoleRenderer(colors=True)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(ProcessorFormatter(processor=renderer, foreign_pre_chain=pre_chain))

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)

    for name in UVICORN_LOGGERS:
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers = [handler]
        uvicorn_logger.propagate = False
        uvicorn_logger.setLevel(level)

    library_level = level if level <= logging.DEBUG else logging.WARNING
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(library_level)

    structlog.get_logger(__name__).info("Logging configured", level=level_name, format=fmt)
