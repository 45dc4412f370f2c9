"""Logging configuration for the storyroute package."""

import logging
import os
import sys

import structlog


def _callsite_adder() -> structlog.processors.CallsiteParameterAdder:
    return structlog.processors.CallsiteParameterAdder(
        parameters=[
            structlog.processors.CallsiteParameter.FILENAME,
            structlog.processors.CallsiteParameter.FUNC_NAME,
            structlog.processors.CallsiteParameter.LINENO,
        ]
    )


def configure_logging(
    level: str | None = None,
    format_json: bool | None = None,
) -> None:
    """Configure structured logging for route animation.

    Args:
        level: Logging level name. Falls back to STORYROUTE_LOG_LEVEL, then INFO.
        format_json: Render JSON lines instead of console output. Falls back to
            STORYROUTE_LOG_JSON ("1" enables it).
    """
    if level is None:
        level = os.getenv("STORYROUTE_LOG_LEVEL", "INFO")
    if format_json is None:
        format_json = os.getenv("STORYROUTE_LOG_JSON", "0") == "1"

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    shared_processors = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        _callsite_adder(),
    ]

    if format_json:
        renderer = structlog.processors.JSONRenderer()
        shared_processors.append(structlog.processors.dict_tracebacks)  # pyright: ignore[reportArgumentType]
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Records from plain stdlib loggers (httpx, pytest) go through the same renderer
    formatter = structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=[structlog.stdlib.add_log_level, _callsite_adder()],
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    """Get a configured logger instance.

    Args:
        name: Logger name, typically __name__ of the calling module

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


configure_logging()
