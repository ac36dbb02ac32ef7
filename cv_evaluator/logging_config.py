"""Structured logging configuration using structlog."""

import logging
import sys

import structlog

# Third-party loggers that log every request at INFO
_NOISY_LOGGERS = ("httpx", "httpcore", "openai")


def setup_logging(log_level: str = "INFO", json_logs: bool = False) -> None:
    """Configure structlog for the CLI (console) or the API server (JSON lines).

    Context bound via ``structlog.contextvars`` (``job_id`` inside a worker)
    is merged into every event.

    Args:
        log_level: Python log level name (DEBUG, INFO, WARNING, ERROR).
        json_logs: Render one JSON object per line instead of console text.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    renderer = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer()
    )
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if json_logs:
        processors.append(structlog.processors.format_exc_info)
    else:
        processors += [structlog.processors.StackInfoRenderer(), structlog.dev.set_exc_info]
    processors.append(renderer)

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
