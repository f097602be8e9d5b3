"""Structured logging configuration using structlog.

Modules log through ``logging.getLogger(__name__)``; structlog renders those
records too, so request ids bound by the middleware show up everywhere.
"""

import logging
import sys
from typing import Optional

import structlog

from localehub.config import get_settings

# Probe endpoints hit every few seconds by orchestrators and scrapers
QUIET_PATHS = ("/health", "/metrics")

# Libraries that log every outgoing request or job run at INFO
NOISY_LOGGERS = ("httpx", "openai", "apscheduler.executors.default", "apscheduler.scheduler")


class SuppressProbeFilter(logging.Filter):
    """Drop uvicorn access log entries for health and metrics probes."""

    def filter(self, record: logging.LogRecord) -> bool:
        if record.args and isinstance(record.args, tuple) and len(record.args) >= 3:
            path = record.args[2]
            if isinstance(path, str) and path.startswith(QUIET_PATHS):
                return False
        return True


def _add_service(logger, method_name, event_dict):
    event_dict.setdefault("service", "localehub")
    return event_dict


def configure_logging(json_logs: Optional[bool] = None) -> None:
    """Configure structlog over the stdlib root logger.

    Args:
        json_logs: Force JSON (True) or console (False) rendering. Defaults to
            JSON in production and console output elsewhere.
    """
    settings = get_settings()
    if json_logs is None:
        json_logs = settings.app_env == "production"
    level_name = "DEBUG" if settings.app_debug else settings.log_level.upper()
    log_level = logging.getLevelName(level_name)
    if not isinstance(log_level, int):
        log_level = logging.INFO

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        _add_service,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if json_logs:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
        shared_processors.append(structlog.processors.format_exc_info)
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
            foreign_pre_chain=shared_processors,
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger("uvicorn.access").addFilter(SuppressProbeFilter())
