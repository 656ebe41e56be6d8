"""Structured logging for twig using structlog."""

import logging
import os

import structlog
from structlog.types import FilteringBoundLogger


def _resolve_level() -> int:
    level = os.getenv("TWIG_LOG_LEVEL", "WARNING").upper()
    return getattr(logging, level, logging.WARNING)


# Configure structlog based on environment
def configure_structlog():
    """Configure structlog with pretty or JSON output based on LOG_FORMAT env.

    Stdlib logging is routed through structlog so every record, ours or a
    library's, shares one renderer. Output goes to stderr so command output on
    stdout stays clean.
    """
    log_format = os.getenv("LOG_FORMAT", "pretty").lower()
    log_colors_env = os.getenv("LOG_COLORS", "true").lower()
    log_colors = log_colors_env in ("true", "1", "yes", "on")

    # Choose renderer for final output
    if log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=log_colors)

    # Root logger + handler with ProcessorFormatter
    logging.root.handlers = []
    handler = logging.StreamHandler()
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=renderer,
            foreign_pre_chain=[
                structlog.stdlib.add_logger_name,
                structlog.stdlib.add_log_level,
                structlog.processors.TimeStamper(fmt="iso"),
            ],
        )
    )
    logging.root.addHandler(handler)
    logging.root.setLevel(_resolve_level())

    # Capture warnings to logging
    logging.captureWarnings(True)

    # SQL echo is never wanted on the console
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)

    # structlog pipeline; wrap_for_formatter hands off to ProcessorFormatter above
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


# Configure structlog on module import
configure_structlog()


def command_log(
    logger: FilteringBoundLogger,
    verb: str,
    ok: bool,
    duration_ms: float,
    **kwargs,
):
    """Log the outcome of one command invocation."""
    logger.info(
        f"{verb} - {'ok' if ok else 'failed'}",
        verb=verb,
        ok=ok,
        duration_ms=duration_ms,
        **kwargs,
    )


def get_logger(name: str, level: int | None = None) -> FilteringBoundLogger:
    """Get a configured structlog logger."""
    stdlib_logger = logging.getLogger(name)
    if level is not None:
        stdlib_logger.setLevel(level)
    return structlog.get_logger(name)


# Global logger instances
store_logger = get_logger("twig.store")
merge_logger = get_logger("twig.merge")


def set_log_level(level: str) -> None:
    """Change the root level after configuration (config file ``log_level``)."""
    logging.root.setLevel(getattr(logging, level.upper(), logging.WARNING))
