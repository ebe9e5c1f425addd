"""Structlog configuration for the application.

Configures structlog with colored console output for development
and JSON output for production.
"""

import logging
import os
import sys

import structlog

from infrastructure.settings import Settings, get_settings


def _resolve_level(log_level: str | int | None) -> int:
    if log_level is None:
        return logging.INFO
    if isinstance(log_level, int):
        return log_level
    level = logging.getLevelName(log_level.strip().upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level}")
    return level


def _app_name_adder(app_name: str) -> structlog.types.Processor:
    def add_app_name(logger, method_name, event_dict):
        event_dict.setdefault("app", app_name)
        return event_dict

    return add_app_name


def configure_logging(
    log_level: str | int | None = None, app_name: str | None = None
) -> None:
    """Configure structlog with appropriate processors.

    Uses colored console output for development (when FORCE_COLOR is set
    or running in a TTY), otherwise uses JSON output for production.

    Args:
        log_level: Minimum level to emit, by name or number (default: INFO)
        app_name: Added to every event as ``app`` when given
    """
    # FORCE_COLOR=1 enables colors even in non-TTY environments (like Docker)
    force_color = os.environ.get("FORCE_COLOR", "").lower() in ("1", "true", "yes")
    use_colors = force_color or sys.stdout.isatty()

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if app_name:
        shared_processors.append(_app_name_adder(app_name))

    if use_colors:
        processors: list[structlog.types.Processor] = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(colors=True),
        ]
    else:
        processors = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(_resolve_level(log_level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_logging_from_settings(settings: Settings | None = None) -> None:
    """Configure structlog from application settings.

    ``debug`` forces DEBUG level regardless of ``log_level``.
    """
    settings = settings or get_settings()
    configure_logging(
        "DEBUG" if settings.debug else settings.log_level,
        app_name=settings.app_name,
    )
