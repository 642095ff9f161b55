"""Structured logging configuration using structlog.

Validation jobs run in GitHub Actions, where logs are emitted as JSON lines
tagged with the workflow run id. Local runs get the console renderer. Modules
log through get_logger() with event-style names (``session_validated``,
``labels_added``...); CLI scripts keep print() for their reports, which is
why logs go to stderr.
"""

import logging
import sys

import structlog


def _renderer(json_output: bool):
    if json_output:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def setup_logging(
    json_output: bool = False,
    log_level: str = "INFO",
    run_id: str | None = None,
) -> None:
    """Configure structlog for a validation run.

    Args:
        json_output: If True, output JSON (CI). If False, console format (dev).
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        run_id: GitHub Actions run id, bound to every log entry when set.
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            _renderer(json_output),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    structlog.contextvars.clear_contextvars()
    if run_id:
        structlog.contextvars.bind_contextvars(run_id=run_id)

    # requests/urllib3 use stdlib logging; connection chatter only in DEBUG
    root = logging.getLogger()
    root.handlers = [logging.StreamHandler(sys.stderr)]
    root.setLevel(numeric_level)
    logging.getLogger("urllib3").setLevel(logging.DEBUG if numeric_level <= logging.DEBUG else logging.WARNING)


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a logger bound to the module name (pass ``__name__``)."""
    return structlog.get_logger(name)
