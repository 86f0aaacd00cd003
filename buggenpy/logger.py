import logging
import sys
from typing import IO, Optional

import structlog


def configure_logging(
    log_format: str = "console",
    stream: Optional[IO[str]] = None,
    level: int = logging.INFO,
):
    """Configures structlog to write diagnostics to stderr.

    stdout is reserved for the JSON candidate list, so every log line goes to
    ``stream`` (stderr unless given), either human readable or as JSON lines.
    """
    if stream is None:
        stream = sys.stderr

    if log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.WriteLoggerFactory(file=stream),
        cache_logger_on_first_use=False,
    )


def get_logger() -> structlog.stdlib.BoundLogger:
    """Returns a structured logger instance."""
    logger: structlog.stdlib.BoundLogger = structlog.get_logger()
    return logger
