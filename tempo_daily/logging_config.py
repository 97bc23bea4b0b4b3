"""
structlog setup for the CLI.

A scheduled run logs one JSON object per line on stderr so stdout carries only
the run summary. LOG_LEVEL=DEBUG switches to the console renderer.
"""

import logging
import sys
from typing import IO, Optional

import structlog

QUIET_LOGGERS = ("httpcore", "httpx")


def _shared_processors() -> list[structlog.types.Processor]:
    # run_id and step arrive through merge_contextvars
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def setup_logging(log_level: Optional[str] = None, stream: Optional[IO[str]] = None) -> None:
    """Install the root handler used by every tempo_daily module.

    Args:
        log_level: LOG_LEVEL value; unknown names fall back to INFO
        stream: destination, stderr when omitted
    """
    level = getattr(logging, (log_level or "INFO").upper(), logging.INFO)
    shared = _shared_processors()

    if level == logging.DEBUG:
        renderer = structlog.dev.ConsoleRenderer()
    else:
        shared.append(structlog.processors.format_exc_info)
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
