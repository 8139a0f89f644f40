"""Structured logging setup for the deal intelligence engine.

Every event carries ``service`` and ``environment``, plus whatever the
caller bound with ``structlog.contextvars`` (DashboardService binds
``user_id`` for the duration of a dashboard build). Development renders
to the console; production renders one JSON object per line.
"""

from __future__ import annotations

import logging
from typing import Any

import structlog

from src.dealintel.config import Environment, get_settings

SERVICE_NAME = "dealintel"


def add_service_context(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Stamp the service name and deployment environment on each event."""
    event_dict.setdefault("service", SERVICE_NAME)
    event_dict.setdefault("environment", get_settings().ENVIRONMENT.value)
    return event_dict


def configure_structlog() -> None:
    """Configure structlog processors and the stdlib level from settings."""
    settings = get_settings()
    level = settings.LOG_LEVEL.upper()

    logging.basicConfig(format="%(message)s", level=level)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_service_context,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if settings.ENVIRONMENT == Environment.production:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


__all__ = ["SERVICE_NAME", "add_service_context", "configure_structlog"]
