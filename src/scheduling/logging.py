"""structlog setup for the scheduling package and its scripts.

Everything logs to stderr: scripts/show_schedule.py prints tables and JSON on
stdout, and those must stay parseable.
"""

import logging
import sys

import structlog

# Chatty HTTP libraries stay at WARNING unless DEBUG is requested
_QUIET_LOGGERS = ("urllib3", "requests")


def setup_logging(json_output: bool = False, log_level: str = "INFO") -> None:
    """Configure structlog and route stdlib logging to stderr.

    Args:
        json_output: One JSON object per line instead of the console format.
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL (unknown -> INFO).
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    processors: list[structlog.typing.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if json_output:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        # Module-level loggers must pick up a later setup_logging() call
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(numeric_level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(
            logging.DEBUG if numeric_level <= logging.DEBUG else logging.WARNING
        )


def get_logger(name: str) -> structlog.typing.FilteringBoundLogger:
    """Module logger; every event carries `module=<name>`."""
    return structlog.get_logger(module=name)
